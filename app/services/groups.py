"""
services/groups.py

그룹(Group) 관리 및 그룹 소속 / 그룹-역할 할당 비즈니스 로직.

주요 기능:
- 그룹 조회 / 검색 / 사용자 수 집계 / 상세(사용자 + 역할)
- 그룹 생성 (이름에서 id 파생, 충돌 시 ConflictError)
- Soft Delete / Hard Delete (소속 사용자 group_id 해제, group_roles 삭제)
- 사용자 소속 추가 / 제거 / 이동
- 그룹-역할 추가 / 제거 / 교체 / 전체 제거

설계 원칙:
- 사용자는 최대 1개 그룹에만 소속 (users.group_id)
- 역할 추가 시 이미 연결된 역할은 건너뜀
- 역할 교체는 "전체 삭제 후 재삽입"
- commit 은 라우터에서 수행

"""

import logging
import uuid

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models import Group, GroupRole, TimeActive, User, UserStatus
from app.services.identifiers import derive_id
from app.services.roles import require_active_role_ids

logger = logging.getLogger(__name__)

_NOT_DELETED = User.user_status != UserStatus.DELETED.value

PREVIEW_USERNAMES = 5


def get_group(db: Session, group_id: str) -> Group | None:
    return db.get(Group, group_id)


def require_group(db: Session, group_id: str) -> Group:
    group = get_group(db, group_id)
    if group is None:
        raise NotFoundError("Group not found")
    return group


def group_id_taken(db: Session, name: str) -> tuple[str, bool]:
    """이름에서 파생된 id 와 사용 여부"""
    group_id = derive_id(name)
    return group_id, get_group(db, group_id) is not None


def build_group_query(*, search: str | None = None, include_inactive: bool = False):
    stmt = select(Group)
    if not include_inactive:
        stmt = stmt.where(Group.is_active.is_(True))
    if search:
        stmt = stmt.where(
            Group.id.contains(search) | Group.name.contains(search) | Group.time_active_id.contains(search)
        )
    return stmt.order_by(Group.name, Group.id)


def list_active_groups(db: Session) -> list[Group]:
    return list(db.scalars(select(Group).where(Group.is_active.is_(True)).order_by(Group.name)))


def list_groups_by_time_active(db: Session, time_active_id: str) -> list[Group]:
    return list(db.scalars(select(Group).where(Group.time_active_id == time_active_id).order_by(Group.name)))


def build_group_user_count_query(*, search: str | None = None):
    user_count = (
        select(func.count())
        .select_from(User)
        .where(User.group_id == Group.id, _NOT_DELETED)
        .correlate(Group)
        .scalar_subquery()
    )
    stmt = select(Group, user_count.label("user_count"))
    if search:
        stmt = stmt.where(Group.id.contains(search) | Group.name.contains(search))
    return stmt.order_by(Group.name, Group.id)


def preview_usernames(db: Session, group_id: str) -> list[str]:
    return list(
        db.scalars(
            select(User.username)
            .where(User.group_id == group_id, _NOT_DELETED)
            .order_by(User.username)
            .limit(PREVIEW_USERNAMES)
        )
    )


def list_group_users(db: Session, group_id: str) -> list[User]:
    require_group(db, group_id)
    return list(db.scalars(select(User).where(User.group_id == group_id, _NOT_DELETED).order_by(User.username)))


def list_group_roles(db: Session, group_id: str) -> list[GroupRole]:
    require_group(db, group_id)
    return list(db.scalars(select(GroupRole).where(GroupRole.group_id == group_id).order_by(GroupRole.role_id)))


def list_groups_by_role(db: Session, role_id: str) -> list[GroupRole]:
    return list(db.scalars(select(GroupRole).where(GroupRole.role_id == role_id).order_by(GroupRole.group_id)))


def _ensure_time_active(db: Session, time_active_id: str | None) -> None:
    if time_active_id is not None and db.get(TimeActive, time_active_id) is None:
        raise ValidationError(f"Time window '{time_active_id}' does not exist")


def create_group(db: Session, *, name: str, time_active_id: str | None = None, is_active: bool = True) -> Group:
    group_id, taken = group_id_taken(db, name)
    if taken:
        raise ConflictError(f"Group id '{group_id}' already exists")
    _ensure_time_active(db, time_active_id)

    group = Group(id=group_id, name=name.strip(), time_active_id=time_active_id, is_active=is_active)
    db.add(group)
    db.flush()
    return group


def update_group(db: Session, group: Group, changes: dict) -> Group:
    if "name" in changes:
        if not (changes["name"] or "").strip():
            raise ValidationError("Group name must not be empty")
        group.name = changes["name"].strip()
    if "time_active_id" in changes:
        _ensure_time_active(db, changes["time_active_id"])
        group.time_active_id = changes["time_active_id"]
    if changes.get("is_active") is not None:
        group.is_active = changes["is_active"]
    db.flush()
    return group


def soft_delete_group(db: Session, group: Group) -> Group:
    group.is_active = False
    return group


def hard_delete_group(db: Session, group_id: str) -> None:
    group = require_group(db, group_id)
    db.execute(update(User).where(User.group_id == group_id).values(group_id=None))
    db.execute(delete(GroupRole).where(GroupRole.group_id == group_id))
    db.delete(group)
    db.flush()
    logger.info("Hard deleted group %s", group_id)


def _load_users(db: Session, user_ids: list[uuid.UUID]) -> list[User]:
    wanted = list(dict.fromkeys(user_ids))
    if not wanted:
        raise ValidationError("user_ids must not be empty")
    users = list(db.scalars(select(User).where(User.id.in_(wanted), _NOT_DELETED)))
    if len(users) != len(wanted):
        raise NotFoundError("One or more users not found")
    return users


def add_users_to_group(db: Session, group_id: str, user_ids: list[uuid.UUID]) -> int:
    group = require_group(db, group_id)
    if not group.is_active:
        raise ValidationError("Group is inactive")
    users = _load_users(db, user_ids)
    for user in users:
        user.group_id = group_id
    db.flush()
    return len(users)


def remove_users_from_group(db: Session, group_id: str, user_ids: list[uuid.UUID]) -> int:
    require_group(db, group_id)
    result = db.execute(
        update(User)
        .where(User.group_id == group_id, User.id.in_(user_ids))
        .values(group_id=None)
    )
    return result.rowcount or 0


def remove_users_from_any_group(db: Session, user_ids: list[uuid.UUID]) -> int:
    result = db.execute(
        update(User)
        .where(User.id.in_(user_ids), User.group_id.is_not(None))
        .values(group_id=None)
    )
    return result.rowcount or 0


def get_user_group(db: Session, user_id: uuid.UUID) -> Group | None:
    user = db.scalar(select(User).where(User.id == user_id, _NOT_DELETED))
    if user is None:
        raise NotFoundError("User not found")
    if user.group_id is None:
        return None
    return get_group(db, user.group_id)


def move_user(db: Session, user_id: uuid.UUID, group_id: str | None) -> User:
    user = db.scalar(select(User).where(User.id == user_id, _NOT_DELETED))
    if user is None:
        raise NotFoundError("User not found")
    if group_id is not None:
        group = require_group(db, group_id)
        if not group.is_active:
            raise ValidationError("Group is inactive")
    user.group_id = group_id
    db.flush()
    return user


def add_roles_to_group(db: Session, group_id: str, role_ids: list[str], note: str | None = None) -> int:
    require_group(db, group_id)
    wanted = require_active_role_ids(db, role_ids)
    existing = set(db.scalars(select(GroupRole.role_id).where(GroupRole.group_id == group_id)))

    added = 0
    for role_id in wanted:
        if role_id in existing:
            continue
        db.add(GroupRole(group_id=group_id, role_id=role_id, note=note))
        added += 1
    db.flush()
    return added


def remove_roles_from_group(db: Session, group_id: str, role_ids: list[str]) -> int:
    require_group(db, group_id)
    result = db.execute(
        delete(GroupRole).where(GroupRole.group_id == group_id, GroupRole.role_id.in_(role_ids))
    )
    return result.rowcount or 0


def remove_all_roles_from_group(db: Session, group_id: str) -> int:
    require_group(db, group_id)
    result = db.execute(delete(GroupRole).where(GroupRole.group_id == group_id))
    return result.rowcount or 0


def replace_group_roles(db: Session, group_id: str, role_ids: list[str], note: str | None = None) -> list[str]:
    require_group(db, group_id)
    wanted = require_active_role_ids(db, role_ids)

    db.execute(delete(GroupRole).where(GroupRole.group_id == group_id))
    for role_id in wanted:
        db.add(GroupRole(group_id=group_id, role_id=role_id, note=note))
    db.flush()
    logger.info("Replaced roles of group %s with %s", group_id, wanted)
    return wanted


def group_snapshot(group: Group) -> dict:
    return {
        "id": group.id,
        "name": group.name,
        "time_active_id": group.time_active_id,
        "is_active": group.is_active,
    }
