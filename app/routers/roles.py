"""
roles.py

역할(Role) 관리 API 모음.

주요 기능:
- 역할 목록 / 활성 역할 / 사용자 수 포함 목록 조회
- 역할 id 사용 여부 확인
- 역할 상세 / 역할 권한 id 목록 / 역할 보유 사용자 조회
- 역할 생성 / 수정 (권한 집합 교체 포함)
- Soft Delete / Hard Delete

설계 원칙:
- 역할 id 는 이름에서 파생되며 충돌 시 409
- Soft Delete 된 역할도 id 로 조회 가능

관련 파일:
- app.services.roles       : 역할 비즈니스 로직
- app.schemas.role         : 요청/응답 스키마
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.deps import Principal, get_db, require_permissions
from app.core.exceptions import AppError, database_error
from app.models.audit_log import AuditAction
from app.schemas.role import RoleCreate, RoleResponse, RoleUpdate
from app.schemas.user import UserResponse
from app.services import roles as roles_service
from app.services.audit_log import write_audit_log
from app.services.pagination import paginate

router = APIRouter(prefix="/roles", tags=["roles"])

ENTITY = "ROLES"

can_read = require_permissions("READ.ROLES")
can_create = require_permissions("CREATE.ROLES")
can_update = require_permissions("UPDATE.ROLES")
can_delete = require_permissions("DELETE.ROLES")


def _out(role) -> dict:
    return RoleResponse.model_validate(role).model_dump(mode="json")


@router.get("")
def list_roles(
    page: int = 1,
    page_size: int = 10,
    search: str | None = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    _: Principal = Depends(can_read),
):
    stmt = roles_service.build_role_query(search=search, include_inactive=include_inactive)
    return paginate(db, stmt, page, page_size).envelope(_out)


@router.get("/active")
def list_active_roles(db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    return {"data": [_out(r) for r in roles_service.list_active_roles(db)]}


@router.get("/with-user-count")
def list_roles_with_user_count(
    page: int = 1,
    page_size: int = 10,
    search: str | None = None,
    db: Session = Depends(get_db),
    _: Principal = Depends(can_read),
):
    stmt = roles_service.build_role_user_count_query(search=search)
    return paginate(db, stmt, page, page_size).envelope(
        lambda row: {**_out(row[0]), "user_count": row[1]}
    )


@router.get("/check-role-id/{role_id}")
def check_role_id(role_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    return {"role_id": role_id, "exists": roles_service.role_exists(db, role_id)}


@router.get("/{role_id}")
def get_role(role_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    role = roles_service.get_role(db, role_id)
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")
    return {"data": _out(role)}


@router.get("/{role_id}/permissions")
def get_role_permissions(role_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    return {"role_id": role_id, "permission_ids": roles_service.list_role_permission_ids(db, role_id)}


@router.get("/{role_id}/users")
def get_role_users(role_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    users = roles_service.list_role_users(db, role_id)
    return {"data": [UserResponse.model_validate(u).model_dump(mode="json") for u in users]}


"""
역할 생성 API

- id 는 이름에서 공백 / 발음 구별 기호를 제거해 파생
- 이미 같은 id 가 있으면 409 ("Manager" 와 "Mana ger" 는 충돌)

"""
@router.post("", status_code=201)
def create_role(
    body: RoleCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_create),
):
    try:
        role = roles_service.create_role(
            db, name=body.name, is_active=body.is_active, permission_ids=body.permission_ids
        )
        write_audit_log(
            db,
            actor=principal.username,
            action=AuditAction.CREATE,
            entity_id=ENTITY,
            target_id=role.id,
            data_after=roles_service.role_snapshot(role),
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Role created", "data": _out(role)}


@router.put("/{role_id}")
def update_role(
    role_id: str,
    body: RoleUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_update),
):
    try:
        role = roles_service.require_role(db, role_id)
        before = roles_service.role_snapshot(role)
        roles_service.update_role(
            db, role, name=body.name, is_active=body.is_active, permission_ids=body.permission_ids
        )
        write_audit_log(
            db,
            actor=principal.username,
            action=AuditAction.UPDATE,
            entity_id=ENTITY,
            target_id=role.id,
            data_before=before,
            data_after=roles_service.role_snapshot(role),
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Role updated", "data": _out(role)}


@router.delete("/{role_id}")
def soft_delete_role(
    role_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_delete),
):
    try:
        role = roles_service.require_role(db, role_id)
        roles_service.soft_delete_role(db, role)
        write_audit_log(
            db,
            actor=principal.username,
            action=AuditAction.SOFT_DELETE,
            entity_id=ENTITY,
            target_id=role.id,
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Role deactivated", "data": _out(role)}


"""
역할 영구 삭제 API

- role_permissions / role_users / group_roles 연결을 먼저 삭제
- 이 역할로 지정된 권한(permissions.role_id)도 함께 삭제

"""
@router.delete("/{role_id}/permanent")
def hard_delete_role(
    role_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_delete),
):
    try:
        roles_service.hard_delete_role(db, role_id)
        write_audit_log(
            db,
            actor=principal.username,
            action=AuditAction.HARD_DELETE,
            entity_id=ENTITY,
            target_id=role_id,
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Role permanently deleted", "data": {"id": role_id}}
