"""
permissions.py

권한(Permission) 관리 API 모음.

주요 기능:
- 권한 목록 조회 (검색 / 페이지네이션)
- action / entity / role 기준 활성 권한 조회
- 권한 생성 / 수정 / 비활성화 / 영구 삭제
- 선택 가능한 action / entity 목록 조회

설계 원칙:
- 권한 id 는 "{action_id}_{entity_id}_{role_id}" 로 파생되며 중복 생성 시 409
- 권한 이름은 "{action 이름} {entity 이름}" 으로 자동 생성

관련 파일:
- app.services.permissions : 권한 비즈니스 로직
- app.schemas.permission   : 요청/응답 스키마
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.deps import Principal, get_db, require_permissions
from app.core.exceptions import AppError, database_error
from app.models.audit_log import AuditAction
from app.schemas.catalog import ActionResponse, EntityResponse
from app.schemas.permission import PermissionCreate, PermissionResponse, PermissionUpdate
from app.services import permissions as permissions_service
from app.services.audit_log import write_audit_log
from app.services.pagination import paginate

router = APIRouter(prefix="/permissions", tags=["permissions"])

ENTITY = "PERMISSIONS"

can_read = require_permissions("READ.PERMISSIONS")
can_create = require_permissions("CREATE.PERMISSIONS")
can_update = require_permissions("UPDATE.PERMISSIONS")
can_delete = require_permissions("DELETE.PERMISSIONS")


def _out(permission) -> dict:
    return PermissionResponse.model_validate(permission).model_dump(mode="json")


@router.get("")
def list_permissions(
    page: int = 1,
    page_size: int = 10,
    search: str | None = None,
    include_inactive: bool = True,
    db: Session = Depends(get_db),
    _: Principal = Depends(can_read),
):
    stmt = permissions_service.build_permission_query(search=search, include_inactive=include_inactive)
    return paginate(db, stmt, page, page_size).envelope(_out)


@router.get("/available-actions")
def available_actions(db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    actions = permissions_service.list_available_actions(db)
    return {"data": [ActionResponse.model_validate(a).model_dump(mode="json") for a in actions]}


@router.get("/available-entities")
def available_entities(db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    entities = permissions_service.list_available_entities(db)
    return {"data": [EntityResponse.model_validate(e).model_dump(mode="json") for e in entities]}


@router.get("/by-action/{action_id}")
def list_by_action(action_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    return {"data": [_out(p) for p in permissions_service.list_by_action(db, action_id)]}


@router.get("/by-entity/{entity_id}")
def list_by_entity(entity_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    return {"data": [_out(p) for p in permissions_service.list_by_entity(db, entity_id)]}


@router.get("/by-role/{role_id}")
def list_by_role(role_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    return {"data": [_out(p) for p in permissions_service.list_by_role(db, role_id)]}


@router.get("/exists/{permission_id}")
def permission_exists(permission_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    return {"permission_id": permission_id, "exists": permissions_service.permission_exists(db, permission_id)}


@router.get("/{permission_id}")
def get_permission(permission_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    permission = permissions_service.get_permission(db, permission_id)
    if not permission:
        raise HTTPException(status_code=404, detail="Permission not found")
    return {"data": _out(permission)}


"""
권한 생성 API

- action 은 활성, entity 는 존재, role(선택)은 활성, 시간대(선택)는 존재해야 함 (아니면 400)
- 같은 (action, entity, role) 조합이 이미 있으면 409

"""
@router.post("", status_code=201)
def create_permission(
    body: PermissionCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_create),
):
    try:
        permission = permissions_service.create_permission(db, **body.model_dump())
        write_audit_log(
            db,
            actor=principal.username,
            action=AuditAction.CREATE,
            entity_id=ENTITY,
            target_id=permission.id,
            data_after=permissions_service.permission_snapshot(permission),
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Permission created", "data": _out(permission)}


@router.put("/{permission_id}")
def update_permission(
    permission_id: str,
    body: PermissionUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_update),
):
    try:
        permission = permissions_service.require_permission(db, permission_id)
        before = permissions_service.permission_snapshot(permission)
        permission = permissions_service.update_permission(db, permission, body.model_dump(exclude_unset=True))
        write_audit_log(
            db,
            actor=principal.username,
            action=AuditAction.UPDATE,
            entity_id=ENTITY,
            target_id=permission.id,
            data_before=before,
            data_after=permissions_service.permission_snapshot(permission),
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Permission updated", "data": _out(permission)}


@router.delete("/{permission_id}/inactive")
def deactivate_permission(
    permission_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_delete),
):
    try:
        permission = permissions_service.require_permission(db, permission_id)
        permissions_service.deactivate_permission(db, permission)
        write_audit_log(
            db,
            actor=principal.username,
            action=AuditAction.SOFT_DELETE,
            entity_id=ENTITY,
            target_id=permission.id,
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Permission deactivated", "data": _out(permission)}


@router.delete("/{permission_id}/hard")
def hard_delete_permission(
    permission_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_delete),
):
    try:
        permissions_service.hard_delete_permission(db, permission_id)
        write_audit_log(
            db,
            actor=principal.username,
            action=AuditAction.HARD_DELETE,
            entity_id=ENTITY,
            target_id=permission_id,
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Permission permanently deleted", "data": {"id": permission_id}}
