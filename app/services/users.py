"""
services/users.py

사용자(User) 관리 비즈니스 로직.

주요 기능:
- 사용자 조회 / 검색 / 정렬 (Soft Delete 사용자 제외)
- 사용자 생성 (bcrypt 해시 저장, username 중복 검사)
- 사용자 수정 (관리자 manage_by 순환 검사)
- 비밀번호 변경
- Soft Delete / Hard Delete

설계 원칙:
- 예외는 app.core.exceptions 로 표현, commit 은 라우터에서 수행
- Hard Delete 시 role_users / login_histories 를 먼저 정리하고
  부하 직원의 manage_by 를 해제한 뒤 삭제

"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import asc, delete, desc, select, update
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.security import get_password_hash
from app.models import Group, LoginHistory, RoleUser, User, UserStatus

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = {
    "created_at": User.created_at,
    "username": User.username,
    "full_name": User.full_name,
    "level_security": User.level_security,
}

_NOT_DELETED = User.user_status != UserStatus.DELETED.value


def get_user(db: Session, user_id: uuid.UUID) -> User | None:
    return db.scalar(select(User).where(User.id == user_id, _NOT_DELETED))


def require_user(db: Session, user_id: uuid.UUID) -> User:
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.scalar(select(User).where(User.username == username, _NOT_DELETED))


def username_exists(db: Session, username: str) -> bool:
    return get_user_by_username(db, username) is not None


"""
사용자 목록 조회 쿼리 생성

- search      : username / full_name / phone_number / department 부분 일치 (대소문자 구분)
- user_status / group_id / manage_by / min_level / max_level 필터
- sort_by     : created_at, username, full_name, level_security
- sort_dir    : asc / desc (기본 desc)

"""

def build_user_query(
    *,
    search: str | None = None,
    user_status: int | None = None,
    group_id: str | None = None,
    manage_by: uuid.UUID | None = None,
    min_level: int | None = None,
    max_level: int | None = None,
    sort_by: str = "created_at",
    sort_dir: str = "desc",
):
    stmt = select(User).where(_NOT_DELETED)

    if search:
        stmt = stmt.where(
            User.username.contains(search)
            | User.full_name.contains(search)
            | User.phone_number.contains(search)
            | User.department.contains(search)
        )
    if user_status is not None:
        stmt = stmt.where(User.user_status == user_status)
    if group_id is not None:
        stmt = stmt.where(User.group_id == group_id)
    if manage_by is not None:
        stmt = stmt.where(User.manage_by == manage_by)
    if min_level is not None:
        stmt = stmt.where(User.level_security >= min_level)
    if max_level is not None:
        stmt = stmt.where(User.level_security <= max_level)

    if sort_by not in SORTABLE_COLUMNS:
        raise ValidationError(f"sort_by must be one of {', '.join(SORTABLE_COLUMNS)}")
    column = SORTABLE_COLUMNS[sort_by]
    order = asc if sort_dir.lower() == "asc" else desc
    return stmt.order_by(order(column), User.id)


def list_users_by_manager(db: Session, manager_id: uuid.UUID) -> list[User]:
    return list(
        db.scalars(select(User).where(User.manage_by == manager_id, _NOT_DELETED).order_by(User.username))
    )


def list_users_by_security_level(db: Session, level: int, *, less_than: bool = True) -> list[User]:
    condition = User.level_security <= level if less_than else User.level_security >= level
    return list(
        db.scalars(
            select(User).where(condition, _NOT_DELETED).order_by(User.level_security, User.username)
        )
    )


"""
관리자(manage_by) 순환 검사

- 자기 자신을 관리자로 지정할 수 없음
- 새 관리자에서 위로 올라가며 user_id 를 만나면 순환

"""

def ensure_no_manager_cycle(db: Session, user_id: uuid.UUID | None, manager_id: uuid.UUID | None) -> None:
    if manager_id is None:
        return
    if user_id is not None and manager_id == user_id:
        raise ValidationError("User cannot manage themselves")

    seen: set[uuid.UUID] = set()
    current = manager_id
    while current is not None:
        if current == user_id:
            raise ValidationError("Manager assignment would create a cycle")
        if current in seen:
            # 기존 데이터에 이미 순환이 있는 경우
            raise ValidationError("Manager chain contains a cycle")
        seen.add(current)
        current = db.scalar(select(User.manage_by).where(User.id == current))


def _ensure_refs(db: Session, *, group_id: str | None, manage_by: uuid.UUID | None) -> None:
    if group_id is not None and db.get(Group, group_id) is None:
        raise NotFoundError("Group not found")
    if manage_by is not None and get_user(db, manage_by) is None:
        raise NotFoundError("Manager not found")


def create_user(
    db: Session,
    *,
    username: str,
    password: str,
    full_name: str | None = None,
    phone_number: str | None = None,
    department: str | None = None,
    manage_by: uuid.UUID | None = None,
    level_security: int = 1,
    group_id: str | None = None,
    user_status: int = UserStatus.ACTIVE.value,
) -> User:
    if username_exists(db, username):
        raise ConflictError("Username already exists")
    _ensure_refs(db, group_id=group_id, manage_by=manage_by)

    user = User(
        username=username,
        password_hash=get_password_hash(password),
        full_name=full_name,
        phone_number=phone_number,
        department=department,
        manage_by=manage_by,
        level_security=level_security,
        group_id=group_id,
        user_status=user_status,
    )
    db.add(user)
    db.flush()
    return user


UPDATABLE_FIELDS = (
    "full_name",
    "phone_number",
    "department",
    "manage_by",
    "level_security",
    "group_id",
    "user_status",
)
NON_NULLABLE_FIELDS = ("level_security", "user_status")


def update_user(db: Session, user: User, changes: dict) -> User:
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    nulled = [field for field in NON_NULLABLE_FIELDS if field in changes and changes[field] is None]
    if nulled:
        raise ValidationError(f"Fields must not be null: {', '.join(nulled)}")

    if "user_status" in changes and changes["user_status"] == UserStatus.DELETED.value:
        raise ValidationError("Use the delete endpoint to delete a user")

    _ensure_refs(db, group_id=changes.get("group_id"), manage_by=changes.get("manage_by"))
    if "manage_by" in changes:
        ensure_no_manager_cycle(db, user.id, changes["manage_by"])

    for field, value in changes.items():
        setattr(user, field, value)
    user.updated_at = datetime.now(timezone.utc)
    return user


def change_password(db: Session, user: User, new_password: str) -> User:
    user.password_hash = get_password_hash(new_password)
    user.updated_at = datetime.now(timezone.utc)
    return user


def soft_delete_user(db: Session, user: User) -> User:
    user.user_status = UserStatus.DELETED.value
    user.updated_at = datetime.now(timezone.utc)
    return user


def hard_delete_user(db: Session, user_id: uuid.UUID) -> None:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    db.execute(delete(RoleUser).where(RoleUser.user_id == user_id))
    db.execute(delete(LoginHistory).where(LoginHistory.user_id == user_id))
    db.execute(update(User).where(User.manage_by == user_id).values(manage_by=None))
    db.delete(user)
    db.flush()
    logger.info("Hard deleted user %s", user_id)


def user_snapshot(user: User) -> dict:
    return {
        "id": str(user.id),
        "username": user.username,
        "full_name": user.full_name,
        "user_status": user.user_status,
        "group_id": user.group_id,
        "manage_by": str(user.manage_by) if user.manage_by else None,
        "level_security": user.level_security,
    }
