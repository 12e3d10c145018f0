"""
services/role_users.py

사용자-역할 직접 할당(RoleUser) 비즈니스 로직.

- 할당 시 모든 역할이 존재하고 활성 상태여야 함 (아니면 ValidationError)
- 이미 존재하는 할당은 건너뜀
- 교체(replace)는 사용자의 기존 역할을 모두 삭제한 뒤 새 집합을 삽입하므로
  {A, B} 를 {C} 로 교체하면 정확히 {C} 만 남는다

"""

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models import Role, RoleUser, User, UserStatus
from app.services.roles import require_active_role_ids

logger = logging.getLogger(__name__)

_NOT_DELETED = User.user_status != UserStatus.DELETED.value


def _require_user(db: Session, user_id: uuid.UUID) -> User:
    user = db.scalar(select(User).where(User.id == user_id, _NOT_DELETED))
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_user_roles(db: Session, user_id: uuid.UUID) -> list[Role]:
    _require_user(db, user_id)
    return list(
        db.scalars(
            select(Role)
            .join(RoleUser, RoleUser.role_id == Role.id)
            .where(RoleUser.user_id == user_id)
            .order_by(Role.name)
        )
    )


def list_users_with_role(db: Session, role_id: str) -> list[User]:
    if db.get(Role, role_id) is None:
        raise NotFoundError("Role not found")
    return list(
        db.scalars(
            select(User)
            .join(RoleUser, RoleUser.user_id == User.id)
            .where(RoleUser.role_id == role_id, _NOT_DELETED)
            .order_by(User.username)
        )
    )


def user_has_role(db: Session, user_id: uuid.UUID, role_id: str) -> bool:
    return db.get(RoleUser, (user_id, role_id)) is not None


def assign_roles_to_user(db: Session, user_id: uuid.UUID, role_ids: list[str]) -> int:
    _require_user(db, user_id)
    wanted = require_active_role_ids(db, role_ids)
    existing = set(db.scalars(select(RoleUser.role_id).where(RoleUser.user_id == user_id)))

    added = 0
    for role_id in wanted:
        if role_id not in existing:
            db.add(RoleUser(user_id=user_id, role_id=role_id))
            added += 1
    db.flush()
    return added


def assign_users_to_role(db: Session, role_id: str, user_ids: list[uuid.UUID]) -> int:
    require_active_role_ids(db, [role_id])
    wanted = list(dict.fromkeys(user_ids))
    users = set(db.scalars(select(User.id).where(User.id.in_(wanted), _NOT_DELETED)))
    if len(users) != len(wanted):
        raise NotFoundError("One or more users not found")
    existing = set(db.scalars(select(RoleUser.user_id).where(RoleUser.role_id == role_id)))

    added = 0
    for user_id in wanted:
        if user_id not in existing:
            db.add(RoleUser(user_id=user_id, role_id=role_id))
            added += 1
    db.flush()
    return added


def remove_roles_from_user(db: Session, user_id: uuid.UUID, role_ids: list[str]) -> int:
    _require_user(db, user_id)
    result = db.execute(
        delete(RoleUser).where(RoleUser.user_id == user_id, RoleUser.role_id.in_(role_ids))
    )
    return result.rowcount or 0


def remove_all_roles_from_user(db: Session, user_id: uuid.UUID) -> int:
    _require_user(db, user_id)
    result = db.execute(delete(RoleUser).where(RoleUser.user_id == user_id))
    return result.rowcount or 0


def replace_user_roles(db: Session, user_id: uuid.UUID, role_ids: list[str]) -> list[str]:
    _require_user(db, user_id)
    wanted = require_active_role_ids(db, role_ids)

    db.execute(delete(RoleUser).where(RoleUser.user_id == user_id))
    for role_id in wanted:
        db.add(RoleUser(user_id=user_id, role_id=role_id))
    db.flush()
    logger.info("Replaced roles of user %s with %s", user_id, wanted)
    return wanted
