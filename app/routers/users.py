"""
users.py

사용자(User) 관리 API 모음.

주요 기능:
- 사용자 목록 조회 (검색 / 필터 / 정렬 / 페이지네이션)
- 본인 정보 조회 (/users/me)
- username / 관리자 / 보안 등급 기준 조회
- 사용자 생성 / 수정 / 비밀번호 변경
- Soft Delete / Hard Delete

설계 원칙:
- 모든 엔드포인트는 USERS 권한을 요구 (/users/me 는 인증만 필요)
- Soft Delete(user_status = -2)된 사용자는 조회에서 제외
- 변경 작업은 audit_logs 에 기록

관련 파일:
- app.services.users       : 사용자 비즈니스 로직
- app.schemas.user         : 요청/응답 스키마
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.deps import Principal, get_current_principal, get_db, require_permissions
from app.core.exceptions import AppError, database_error
from app.models.audit_log import AuditAction
from app.schemas.user import ChangePasswordRequest, UserCreate, UserResponse, UserUpdate
from app.services import users as users_service
from app.services.audit_log import write_audit_log
from app.services.pagination import paginate

router = APIRouter(prefix="/users", tags=["users"])

ENTITY = "USERS"

can_read = require_permissions("READ.USERS")
can_create = require_permissions("CREATE.USERS")
can_update = require_permissions("UPDATE.USERS")
can_delete = require_permissions("DELETE.USERS")


def _out(user) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json")


@router.get("")
def list_users(
    page: int = 1,
    page_size: int = 10,
    search: str | None = None,
    user_status: int | None = None,
    group_id: str | None = None,
    manage_by: uuid.UUID | None = None,
    min_level: int | None = None,
    max_level: int | None = None,
    sort_by: str = "created_at",
    sort_dir: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    _: Principal = Depends(can_read),
):
    stmt = users_service.build_user_query(
        search=search,
        user_status=user_status,
        group_id=group_id,
        manage_by=manage_by,
        min_level=min_level,
        max_level=max_level,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return paginate(db, stmt, page, page_size).envelope(_out)


"""
본인 정보 조회 API

- 토큰 sub(username) 기준으로 조회
- 개발용 토큰처럼 DB 에 없는 사용자면 404

"""
@router.get("/me")
def me(db: Session = Depends(get_db), principal: Principal = Depends(get_current_principal)):
    user = users_service.get_user_by_username(db, principal.username)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"data": _out(user), "permissions": sorted(principal.permissions)}


@router.get("/username/{username}")
def get_by_username(username: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    user = users_service.get_user_by_username(db, username)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"data": _out(user)}


@router.get("/check-username/{username}")
def check_username(username: str, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    return {"username": username, "exists": users_service.username_exists(db, username)}


@router.get("/manager/{manager_id}")
def list_by_manager(manager_id: uuid.UUID, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    return {"data": [_out(u) for u in users_service.list_users_by_manager(db, manager_id)]}


"""
보안 등급 기준 사용자 조회 API

- less_than=true (기본) : level_security <= level
- less_than=false       : level_security >= level

"""
@router.get("/security-level/{level}")
def list_by_security_level(
    level: int,
    less_than: bool = True,
    db: Session = Depends(get_db),
    _: Principal = Depends(can_read),
):
    users = users_service.list_users_by_security_level(db, level, less_than=less_than)
    return {"data": [_out(u) for u in users]}


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_update),
):
    try:
        user = users_service.require_user(db, body.user_id)
        users_service.change_password(db, user, body.new_password)
        write_audit_log(
            db,
            actor=principal.username,
            action=AuditAction.CHANGE_PASSWORD,
            entity_id=ENTITY,
            target_id=user.id,
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "Password changed"}


@router.get("/{user_id}")
def get_user(user_id: uuid.UUID, db: Session = Depends(get_db), _: Principal = Depends(can_read)):
    user = users_service.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"data": _out(user)}


@router.post("", status_code=201)
def create_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_create),
):
    try:
        user = users_service.create_user(db, **body.model_dump())
        write_audit_log(
            db,
            actor=principal.username,
            action=AuditAction.CREATE,
            entity_id=ENTITY,
            target_id=user.id,
            data_after=users_service.user_snapshot(user),
        )
        db.commit()
        db.refresh(user)
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "User created", "data": _out(user)}


@router.put("/{user_id}")
def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_update),
):
    try:
        user = users_service.require_user(db, user_id)
        before = users_service.user_snapshot(user)
        users_service.update_user(db, user, body.model_dump(exclude_unset=True))
        write_audit_log(
            db,
            actor=principal.username,
            action=AuditAction.UPDATE,
            entity_id=ENTITY,
            target_id=user.id,
            data_before=before,
            data_after=users_service.user_snapshot(user),
        )
        db.commit()
        db.refresh(user)
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "User updated", "data": _out(user)}


@router.delete("/{user_id}")
def soft_delete_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_delete),
):
    try:
        user = users_service.require_user(db, user_id)
        before = users_service.user_snapshot(user)
        users_service.soft_delete_user(db, user)
        write_audit_log(
            db,
            actor=principal.username,
            action=AuditAction.SOFT_DELETE,
            entity_id=ENTITY,
            target_id=user.id,
            data_before=before,
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "User deleted", "data": {"id": str(user_id)}}


@router.delete("/{user_id}/permanent")
def hard_delete_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(can_delete),
):
    try:
        users_service.hard_delete_user(db, user_id)
        write_audit_log(
            db,
            actor=principal.username,
            action=AuditAction.HARD_DELETE,
            entity_id=ENTITY,
            target_id=user_id,
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return {"message": "User permanently deleted", "data": {"id": str(user_id)}}
