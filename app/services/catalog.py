"""
services/catalog.py

Action / Entity 레지스트리 관리 로직.

Action / Entity 는 권한 문자열의 구성 요소이며 id 는 변경하지 않는다.
이름 / 코드 / 보안 등급 / 활성 여부만 수정 가능하다.

"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.models import Action, Entity


def build_action_query(*, search: str | None = None, include_inactive: bool = True):
    stmt = select(Action)
    if not include_inactive:
        stmt = stmt.where(Action.is_active.is_(True))
    if search:
        stmt = stmt.where(Action.id.contains(search) | Action.name.contains(search) | Action.code.contains(search))
    return stmt.order_by(Action.id)


def list_active_actions(db: Session) -> list[Action]:
    return list(db.scalars(select(Action).where(Action.is_active.is_(True)).order_by(Action.name)))


def require_action(db: Session, action_id: str) -> Action:
    action = db.get(Action, action_id)
    if action is None:
        raise NotFoundError("Action not found")
    return action


def update_action(db: Session, action: Action, changes: dict) -> Action:
    if "name" in changes:
        if not (changes["name"] or "").strip():
            raise ValidationError("Action name must not be empty")
        action.name = changes["name"].strip()
    if "code" in changes:
        action.code = changes["code"]
    if changes.get("is_active") is not None:
        action.is_active = changes["is_active"]
    db.flush()
    return action


def build_entity_query(*, search: str | None = None):
    stmt = select(Entity)
    if search:
        stmt = stmt.where(Entity.id.contains(search) | Entity.name.contains(search) | Entity.type.contains(search))
    return stmt.order_by(Entity.id)


def require_entity(db: Session, entity_id: str) -> Entity:
    entity = db.get(Entity, entity_id)
    if entity is None:
        raise NotFoundError("Entity not found")
    return entity


def update_entity(db: Session, entity: Entity, changes: dict) -> Entity:
    if "name" in changes:
        if not (changes["name"] or "").strip():
            raise ValidationError("Entity name must not be empty")
        entity.name = changes["name"].strip()
    if changes.get("level_security") is not None:
        entity.level_security = changes["level_security"]
    if "type" in changes:
        entity.type = changes["type"]
    db.flush()
    return entity


def list_entities_by_security_level(db: Session, level: int) -> list[Entity]:
    """보안 등급이 level 이하인 엔티티 (등급, 이름 순)"""
    return list(
        db.scalars(select(Entity).where(Entity.level_security <= level).order_by(Entity.level_security, Entity.name))
    )
