"""
groups.py

그룹(Group) 관리 및 그룹 소속 / 그룹-역할 할당 API 모음.

주요 기능:
- 그룹 목록 / 활성 그룹 / 사용자 수 포함 목록 / 상세 조회
- 그룹 생성 / 수정 / Soft Delete / Hard Delete
- 그룹 사용자 추가 / 제거 / 이동 / 조회
- 그룹 역할 추가 / 제거 / 교체 / 전체 제거 / 조회

설계 원칙:
- 그룹 자체 관리는 GROUPS 권한
- 소속 변경은 "UPDATE.GROUPS,UPDATE.USERS" 중 하나
- 역할 할당은 "UPDATE.GROUPS,UPDATE.ROLES" 중 하나

관련 파일:
- app.services.groups      : 그룹 비즈니스 로직
- app.schemas.group        : 요청/응답 스키마
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.deps import Principal, get_db, require_permissions
from app.core.exceptions import AppError, database_error
from app.models.audit_log import AuditAction
from app.schemas.group import (
    GroupCreate,
    GroupResponse,
    GroupRoleResponse,
    GroupRolesReplaceRequest,
    GroupRolesRequest,
    GroupUpdate,
    GroupUsersRequest,
    MoveUserRequest,
)
from app.schemas.role import RoleResponse
from app.schemas.user import UserResponse
from app.services import groups as groups_service
from app.services.audit_log import write_audit_log
from app.services.pagination import paginate
from app.services.roles import get_role

router = APIRouter(prefix="/groups", tags=["groups"])

ENTITY = "GROUPS"

can_read = require_permissions("READ.GROUPS")
can_create = require_permissions("CREATE.GROUPS")
can_update = require_permissions("UPDATE.GROUPS")
can_delete = require_permissions("DELETE.GROUPS")
can_read_members = require_permissions("READ.GROUPS,READ.USERS")
can_manage_members = require_permissions("UPDATE.GROUPS,UPDATE.USERS")
can_read_roles = require_permissions("READ.GROUPS,READ.ROLES")
can_manage_roles = require_permissions("UPDATE.GROUPS,UPDATE.ROLES")


def _out(group) -> dict:
    return GroupResponse.model_validate(group).model_dump(mode="json")


def _user_out(user) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json")


def _group_role_out(link) -> dict:
    return GroupRoleResponse.model_validate(link).model_dump(mode="json")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)


def _audit(db: Session, principal: Principal, action: AuditAction, target_id, **data) -> None:
    write_audit_log(db, actor=principal.username, action=action, entity_id=ENTITY, target_id=target_id, **data)


@router.get("")
def list_groups(
    page: int = 1,
    page_size: int = 10,
    search: str | None = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    _: Principal = Depends(can_read),
):
    stmt = groups_service.build_group_query(search=search, include_inactive=include_inactive)
    return paginate(db, stmt, page, page_size).envelope(_out)


@router.get("/active")
def list_active_groups(db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    return {"data": [_out(g) for g in groups_service.list_active_groups(db)]}


"""
사용자 수 포함 그룹 목록 API

- 그룹별 삭제되지 않은 사용자 수
- 미리보기용 사용자 이름 최대 5개

"""
@router.get("/with-user-count")
def list_groups_with_user_count(
    page: int = 1,
    page_size: int = 10,
    search: str | None = None,
    db: Session = Depends(get_db),
    _: Principal = Depends(can_read),
):
    stmt = groups_service.build_group_user_count_query(search=search)
    return paginate(db, stmt, page, page_size).envelope(
        lambda row: {
            **_out(row[0]),
            "user_count": row[1],
            "usernames": groups_service.preview_usernames(db, row[0].id),
        }
    )


@router.get("/check-group-id/{name}")
def check_group_id(name: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    group_id, taken = groups_service.group_id_taken(db, name)
    return {"group_id": group_id, "exists": taken}


@router.get("/time-active/{time_active_id}")
def list_by_time_active(time_active_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    return {"data": [_out(g) for g in groups_service.list_groups_by_time_active(db, time_active_id)]}


@router.delete("/users")
def remove_users_from_any_group(
    body: GroupUsersRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_manage_members),
):
    removed = groups_service.remove_users_from_any_group(db, body.user_ids)
    _audit(db, principal, AuditAction.UNASSIGN, None, data_before={"user_ids": [str(u) for u in body.user_ids]})
    _commit(db)
    return {"message": "Users removed from their groups", "removed": removed}


@router.get("/user/{user_id}")
def get_user_group(user_id: uuid.UUID, db: Session = Depends(get_db), _: Principal = Depends(can_read_members)):
    group = groups_service.get_user_group(db, user_id)
    return {"data": [_out(group)] if group else []}


@router.put("/user/{user_id}/move")
def move_user(
    user_id: uuid.UUID,
    body: MoveUserRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_manage_members),
):
    try:
        user = groups_service.move_user(db, user_id, body.group_id)
        _audit(db, principal, AuditAction.ASSIGN, body.group_id, data_after={"user_id": str(user_id)})
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "User moved", "data": _user_out(user)}


@router.get("/role/{role_id}")
def list_groups_by_role(role_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read_roles)):
    return {"data": [_group_role_out(link) for link in groups_service.list_groups_by_role(db, role_id)]}


@router.get("/{group_id}")
def get_group(group_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    group = groups_service.get_group(db, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    return {"data": _out(group)}


@router.get("/{group_id}/detail")
def get_group_detail(group_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    group = groups_service.require_group(db, group_id)
    users = groups_service.list_group_users(db, group_id)
    links = groups_service.list_group_roles(db, group_id)

    roles = []
    for link in links:
        role = get_role(db, link.role_id)
        if role:
            roles.append({**RoleResponse.model_validate(role).model_dump(mode="json"), "note": link.note})

    return {
        "data": {
            **_out(group),
            "users": [_user_out(u) for u in users],
            "roles": roles,
        }
    }


@router.post("", status_code=201)
def create_group(
    body: GroupCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_create),
):
    try:
        group = groups_service.create_group(
            db, name=body.name, time_active_id=body.time_active_id, is_active=body.is_active
        )
        _audit(db, principal, AuditAction.CREATE, group.id, data_after=groups_service.group_snapshot(group))
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Group created", "data": _out(group)}


@router.put("/{group_id}")
def update_group(
    group_id: str,
    body: GroupUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_update),
):
    try:
        group = groups_service.require_group(db, group_id)
        before = groups_service.group_snapshot(group)
        groups_service.update_group(db, group, body.model_dump(exclude_unset=True))
        _audit(
            db,
            principal,
            AuditAction.UPDATE,
            group.id,
            data_before=before,
            data_after=groups_service.group_snapshot(group),
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Group updated", "data": _out(group)}


@router.delete("/{group_id}")
def soft_delete_group(
    group_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_delete),
):
    group = groups_service.require_group(db, group_id)
    groups_service.soft_delete_group(db, group)
    _audit(db, principal, AuditAction.SOFT_DELETE, group.id)
    _commit(db)
    return {"message": "Group deactivated", "data": _out(group)}


"""
그룹 영구 삭제 API

- 소속 사용자의 group_id 를 해제
- group_roles 연결 삭제 후 그룹 삭제

"""
@router.delete("/{group_id}/permanent")
def hard_delete_group(
    group_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_delete),
):
    try:
        groups_service.hard_delete_group(db, group_id)
        _audit(db, principal, AuditAction.HARD_DELETE, group_id)
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Group permanently deleted", "data": {"id": group_id}}


@router.get("/{group_id}/users")
def list_group_users(group_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read_members)):
    return {"data": [_user_out(u) for u in groups_service.list_group_users(db, group_id)]}


@router.post("/{group_id}/users")
def add_users_to_group(
    group_id: str,
    body: GroupUsersRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_manage_members),
):
    try:
        added = groups_service.add_users_to_group(db, group_id, body.user_ids)
        _audit(db, principal, AuditAction.ASSIGN, group_id, data_after={"user_ids": [str(u) for u in body.user_ids]})
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Users added to group", "added": added}


@router.delete("/{group_id}/users")
def remove_users_from_group(
    group_id: str,
    body: GroupUsersRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_manage_members),
):
    try:
        removed = groups_service.remove_users_from_group(db, group_id, body.user_ids)
        _audit(db, principal, AuditAction.UNASSIGN, group_id, data_before={"user_ids": [str(u) for u in body.user_ids]})
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Users removed from group", "removed": removed}


@router.get("/{group_id}/roles")
def list_group_roles(group_id: str, db: Session = Depends(get_db), _: Principal = Depends(can_read_roles)):
    return {"data": [_group_role_out(link) for link in groups_service.list_group_roles(db, group_id)]}


@router.post("/{group_id}/roles")
def add_roles_to_group(
    group_id: str,
    body: GroupRolesRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_manage_roles),
):
    try:
        added = groups_service.add_roles_to_group(db, group_id, body.role_ids, note=body.note)
        _audit(db, principal, AuditAction.ASSIGN, group_id, data_after={"role_ids": body.role_ids})
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Roles added to group", "added": added}


@router.delete("/{group_id}/roles/all")
def remove_all_roles_from_group(
    group_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_manage_roles),
):
    removed = groups_service.remove_all_roles_from_group(db, group_id)
    _audit(db, principal, AuditAction.UNASSIGN, group_id)
    _commit(db)
    return {"message": "All roles removed from group", "removed": removed}


@router.delete("/{group_id}/roles")
def remove_roles_from_group(
    group_id: str,
    body: GroupRolesRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_manage_roles),
):
    removed = groups_service.remove_roles_from_group(db, group_id, body.role_ids)
    _audit(db, principal, AuditAction.UNASSIGN, group_id, data_before={"role_ids": body.role_ids})
    _commit(db)
    return {"message": "Roles removed from group", "removed": removed}


"""
그룹 역할 교체 API

- 기존 그룹 역할을 모두 삭제한 뒤 새 역할 집합을 삽입
- 새 역할이 하나라도 없거나 비활성이면 400 (기존 역할 유지)

"""
@router.put("/{group_id}/roles")
def replace_group_roles(
    group_id: str,
    body: GroupRolesReplaceRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_manage_roles),
):
    try:
        before = [link.role_id for link in groups_service.list_group_roles(db, group_id)]
        role_ids = groups_service.replace_group_roles(db, group_id, body.role_ids, note=body.note)
        _audit(
            db,
            principal,
            AuditAction.REPLACE,
            group_id,
            data_before={"role_ids": before},
            data_after={"role_ids": role_ids},
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Group roles replaced", "role_ids": role_ids}
