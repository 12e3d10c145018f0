"""
role_users.py

사용자-역할 직접 할당(RoleUser) API 모음.

- 할당 / 제거 / 교체 : "UPDATE.USERS,UPDATE.ROLES" 중 하나
- 조회               : "READ.USERS,READ.ROLES" 중 하나
- 교체(PUT)는 기존 역할을 모두 지우고 새 집합만 남긴다

관련 파일:
- app.services.role_users  : 할당 비즈니스 로직
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.deps import Principal, get_db, require_permissions
from app.core.exceptions import AppError, database_error
from app.models.audit_log import AuditAction
from app.schemas.role import RoleResponse
from app.schemas.role_user import AssignRolesToUserRequest, AssignUsersToRoleRequest, RoleIdsRequest
from app.schemas.user import UserResponse
from app.services import role_users as role_users_service
from app.services.audit_log import write_audit_log

router = APIRouter(prefix="/role-users", tags=["role-users"])

ENTITY = "USERS"

can_read = require_permissions("READ.USERS,READ.ROLES")
can_manage = require_permissions("UPDATE.USERS,UPDATE.ROLES")


def _apply(db: Session, principal: Principal, action: AuditAction, target_id, fn, *args, **data):
    try:
        result = fn(db, *args)
        write_audit_log(
            db,
            actor=principal.username,
            action=action,
            entity_id=ENTITY,
            target_id=target_id,
            **data,
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return result


@router.post("/assign-roles-to-user")
def assign_roles_to_user(
    body: AssignRolesToUserRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_manage),
):
    added = _apply(
        db, principal, AuditAction.ASSIGN, body.user_id,
        role_users_service.assign_roles_to_user, body.user_id, body.role_ids,
        data_after={"role_ids": body.role_ids},
    )
    return {"message": "Roles assigned", "added": added}


@router.post("/assign-users-to-role")
def assign_users_to_role(
    body: AssignUsersToRoleRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_manage),
):
    added = _apply(
        db, principal, AuditAction.ASSIGN, body.role_id,
        role_users_service.assign_users_to_role, body.role_id, body.user_ids,
        data_after={"user_ids": [str(u) for u in body.user_ids]},
    )
    return {"message": "Users assigned", "added": added}


@router.get("/user/{user_id}/roles")
def list_user_roles(user_id: uuid.UUID, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    roles = role_users_service.list_user_roles(db, user_id)
    return {"data": [RoleResponse.model_validate(r).model_dump(mode="json") for r in roles]}


@router.delete("/user/{user_id}/roles/all")
def remove_all_roles_from_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_manage),
):
    removed = _apply(db, principal, AuditAction.UNASSIGN, user_id, role_users_service.remove_all_roles_from_user, user_id)
    return {"message": "All roles removed", "removed": removed}


@router.delete("/user/{user_id}/roles")
def remove_roles_from_user(
    user_id: uuid.UUID,
    body: RoleIdsRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_manage),
):
    removed = _apply(
        db, principal, AuditAction.UNASSIGN, user_id,
        role_users_service.remove_roles_from_user, user_id, body.role_ids,
        data_before={"role_ids": body.role_ids},
    )
    return {"message": "Roles removed", "removed": removed}


"""
사용자 역할 교체 API

- 기존 역할 전체 삭제 후 새 역할 집합 삽입
- 새 역할 중 하나라도 없거나 비활성이면 400 이며 기존 역할은 그대로 유지

"""
@router.put("/user/{user_id}/roles")
def replace_user_roles(
    user_id: uuid.UUID,
    body: RoleIdsRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_manage),
):
    role_ids = _apply(
        db, principal, AuditAction.REPLACE, user_id,
        role_users_service.replace_user_roles, user_id, body.role_ids,
        data_after={"role_ids": body.role_ids},
    )
    return {"message": "Roles replaced", "role_ids": role_ids}


@router.get("/role/{role_id}/users")
def list_role_users(role_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    users = role_users_service.list_users_with_role(db, role_id)
    return {"data": [UserResponse.model_validate(u).model_dump(mode="json") for u in users]}


@router.get("/user/{user_id}/has-role/{role_id}")
def has_role(user_id: uuid.UUID, role_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    return {"user_id": str(user_id), "role_id": role_id, "has_role": role_users_service.user_has_role(db, user_id, role_id)}
