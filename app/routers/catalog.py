"""
catalog.py

Action / Entity 레지스트리 조회 및 수정 API.

- Action : READ.ACTIONS / UPDATE.ACTIONS
- Entity : READ.ENTITY / UPDATE.ENTITY

"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import Principal, get_db, require_permissions
from app.models.audit_log import AuditAction
from app.schemas.catalog import ActionResponse, ActionUpdate, EntityResponse, EntityUpdate
from app.services import catalog as catalog_service
from app.services.audit_log import write_audit_log
from app.services.pagination import paginate

actions_router = APIRouter(prefix="/actions", tags=["actions"])
entities_router = APIRouter(prefix="/entities", tags=["entities"])

can_read_actions = require_permissions("READ.ACTIONS")
can_update_actions = require_permissions("UPDATE.ACTIONS")
can_read_entities = require_permissions("READ.ENTITY")
can_update_entities = require_permissions("UPDATE.ENTITY")


def _action_out(action) -> dict:
    return ActionResponse.model_validate(action).model_dump(mode="json")


def _entity_out(entity) -> dict:
    return EntityResponse.model_validate(entity).model_dump(mode="json")


@actions_router.get("")
def list_actions(
    page: int = 1,
    page_size: int = 10,
    search: str | None = None,
    include_inactive: bool = True,
    db: Session = Depends(get_db),
    _: Principal = Depends(can_read_actions),
):
    stmt = catalog_service.build_action_query(search=search, include_inactive=include_inactive)
    return paginate(db, stmt, page, page_size).envelope(_action_out)


@actions_router.get("/active")
def list_active_actions(db: Session = Depends(get_db), _: Principal = Depends(can_read_actions)):
    return {"data": [_action_out(a) for a in catalog_service.list_active_actions(db)]}


@actions_router.get("/{action_id}")
def get_action(action_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read_actions)):
    return {"data": _action_out(catalog_service.require_action(db, action_id))}


@actions_router.put("/{action_id}")
def update_action(
    action_id: str,
    body: ActionUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_update_actions),
):
    action = catalog_service.require_action(db, action_id)
    catalog_service.update_action(db, action, body.model_dump(exclude_unset=True))
    write_audit_log(db, actor=principal.username, action=AuditAction.UPDATE, entity_id="ACTIONS", target_id=action.id)
    db.commit()
    return {"message": "Action updated", "data": _action_out(action)}


@entities_router.get("")
def list_entities(
    page: int = 1,
    page_size: int = 10,
    search: str | None = None,
    db: Session = Depends(get_db),
    _: Principal = Depends(can_read_entities),
):
    stmt = catalog_service.build_entity_query(search=search)
    return paginate(db, stmt, page, page_size).envelope(_entity_out)


# 보안 등급이 level 이하인 엔티티
@entities_router.get("/by-security-level/{level}")
def list_entities_by_security_level(
    level: int,
    db: Session = Depends(get_db),
    _: Principal = Depends(can_read_entities),
):
    return {"data": [_entity_out(e) for e in catalog_service.list_entities_by_security_level(db, level)]}


@entities_router.get("/{entity_id}")
def get_entity(entity_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read_entities)):
    return {"data": _entity_out(catalog_service.require_entity(db, entity_id))}


@entities_router.put("/{entity_id}")
def update_entity(
    entity_id: str,
    body: EntityUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_update_entities),
):
    entity = catalog_service.require_entity(db, entity_id)
    catalog_service.update_entity(db, entity, body.model_dump(exclude_unset=True))
    write_audit_log(db, actor=principal.username, action=AuditAction.UPDATE, entity_id="ENTITY", target_id=entity.id)
    db.commit()
    return {"message": "Entity updated", "data": _entity_out(entity)}
