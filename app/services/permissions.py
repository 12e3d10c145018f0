"""
services/permissions.py

권한(Permission) 관리 비즈니스 로직.

- Permission.id  = "{action_id}_{entity_id}_{role_id}" (역할 미지정 시 "{action_id}_{entity_id}")
- Permission.name = "{action 이름} {entity 이름}"
- action 은 활성 상태, entity 는 존재, role(선택)은 활성 상태, 시간대(선택)는 존재해야 함

"""

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models import Action, Entity, Permission, Role, TimeActive, role_permissions

logger = logging.getLogger(__name__)


def permission_id_for(action_id: str, entity_id: str, role_id: str | None) -> str:
    parts = [action_id, entity_id] + ([role_id] if role_id else [])
    return "_".join(parts)


def get_permission(db: Session, permission_id: str) -> Permission | None:
    return db.get(Permission, permission_id)


def require_permission(db: Session, permission_id: str) -> Permission:
    permission = get_permission(db, permission_id)
    if permission is None:
        raise NotFoundError("Permission not found")
    return permission


def permission_exists(db: Session, permission_id: str) -> bool:
    return get_permission(db, permission_id) is not None


def build_permission_query(*, search: str | None = None, include_inactive: bool = True):
    stmt = (
        select(Permission)
        .join(Action, Action.id == Permission.action_id)
        .join(Entity, Entity.id == Permission.entity_id)
        .outerjoin(Role, Role.id == Permission.role_id)
    )
    if not include_inactive:
        stmt = stmt.where(Permission.is_active.is_(True))
    if search:
        stmt = stmt.where(
            Permission.id.contains(search)
            | Permission.name.contains(search)
            | Action.name.contains(search)
            | Entity.name.contains(search)
            | Role.name.contains(search)
        )
    return stmt.order_by(Permission.action_id, Permission.entity_id, Permission.id)


def _active_by(db: Session, column, value) -> list[Permission]:
    return list(
        db.scalars(
            select(Permission)
            .where(column == value, Permission.is_active.is_(True))
            .order_by(Permission.name, Permission.id)
        )
    )


def list_by_action(db: Session, action_id: str) -> list[Permission]:
    return _active_by(db, Permission.action_id, action_id)


def list_by_entity(db: Session, entity_id: str) -> list[Permission]:
    return _active_by(db, Permission.entity_id, entity_id)


def list_by_role(db: Session, role_id: str) -> list[Permission]:
    return _active_by(db, Permission.role_id, role_id)


def _validate_refs(
    db: Session,
    *,
    action_id: str,
    entity_id: str,
    role_id: str | None,
    time_active_id: str | None,
) -> tuple[Action, Entity]:
    action = db.get(Action, action_id)
    if action is None or not action.is_active:
        raise ValidationError(f"Action '{action_id}' does not exist or is inactive")
    entity = db.get(Entity, entity_id)
    if entity is None:
        raise ValidationError(f"Entity '{entity_id}' does not exist")
    if role_id is not None:
        role = db.get(Role, role_id)
        if role is None or not role.is_active:
            raise ValidationError(f"Role '{role_id}' does not exist or is inactive")
    if time_active_id is not None and db.get(TimeActive, time_active_id) is None:
        raise ValidationError(f"Time window '{time_active_id}' does not exist")
    return action, entity


def create_permission(
    db: Session,
    *,
    action_id: str,
    entity_id: str,
    role_id: str | None = None,
    time_active_id: str | None = None,
    is_active: bool = True,
) -> Permission:
    permission_id = permission_id_for(action_id, entity_id, role_id)
    if permission_exists(db, permission_id):
        raise ConflictError(f"Permission '{permission_id}' already exists")

    action, entity = _validate_refs(
        db, action_id=action_id, entity_id=entity_id, role_id=role_id, time_active_id=time_active_id
    )

    permission = Permission(
        id=permission_id,
        name=f"{action.name} {entity.name}",
        action_id=action_id,
        entity_id=entity_id,
        role_id=role_id,
        time_active_id=time_active_id,
        is_active=is_active,
    )
    db.add(permission)
    db.flush()
    return permission


"""
권한 수정

- action/entity/role 이 바뀌면 id 도 다시 계산 (새 id 로 재등록 후 role_permissions 연결을 옮기고 기존 행 삭제)
- 새 id 가 이미 존재하면 409
- 참조 검증은 생성과 동일

"""

def update_permission(db: Session, permission: Permission, changes: dict) -> Permission:
    action_id = changes.get("action_id", permission.action_id)
    entity_id = changes.get("entity_id", permission.entity_id)
    role_id = changes.get("role_id", permission.role_id)
    time_active_id = changes.get("time_active_id", permission.time_active_id)

    action, entity = _validate_refs(
        db, action_id=action_id, entity_id=entity_id, role_id=role_id, time_active_id=time_active_id
    )

    is_active = permission.is_active
    if changes.get("is_active") is not None:
        is_active = changes["is_active"]

    new_id = permission_id_for(action_id, entity_id, role_id)
    if new_id == permission.id:
        permission.time_active_id = time_active_id
        permission.name = f"{action.name} {entity.name}"
        permission.is_active = is_active
        db.flush()
        return permission

    if permission_exists(db, new_id):
        raise ConflictError(f"Permission '{new_id}' already exists")

    old_id = permission.id
    rekeyed = Permission(
        id=new_id,
        name=f"{action.name} {entity.name}",
        action_id=action_id,
        entity_id=entity_id,
        role_id=role_id,
        time_active_id=time_active_id,
        is_active=is_active,
    )
    db.add(rekeyed)
    db.flush()
    db.execute(
        update(role_permissions)
        .where(role_permissions.c.permission_id == old_id)
        .values(permission_id=new_id)
    )
    db.delete(permission)
    db.flush()
    logger.info("Re-keyed permission %s -> %s", old_id, new_id)
    return rekeyed


def deactivate_permission(db: Session, permission: Permission) -> Permission:
    permission.is_active = False
    return permission


def hard_delete_permission(db: Session, permission_id: str) -> None:
    permission = require_permission(db, permission_id)
    db.execute(delete(role_permissions).where(role_permissions.c.permission_id == permission_id))
    db.delete(permission)
    db.flush()
    logger.info("Hard deleted permission %s", permission_id)


def list_available_actions(db: Session) -> list[Action]:
    return list(db.scalars(select(Action).where(Action.is_active.is_(True)).order_by(Action.name)))


def list_available_entities(db: Session) -> list[Entity]:
    return list(db.scalars(select(Entity).order_by(Entity.name)))


def permission_snapshot(permission: Permission) -> dict:
    return {
        "id": permission.id,
        "name": permission.name,
        "action_id": permission.action_id,
        "entity_id": permission.entity_id,
        "role_id": permission.role_id,
        "time_active_id": permission.time_active_id,
        "is_active": permission.is_active,
    }
