"""
services/roles.py

역할(Role) 관리 비즈니스 로직.

주요 기능:
- 역할 조회 / 검색 / 사용자 수 집계
- 역할 생성 (이름에서 id 파생, 충돌 시 ConflictError)
- 역할 수정 (permission_ids 지정 시 권한 집합 교체)
- Soft Delete (is_active = False) / Hard Delete

설계 원칙:
- Hard Delete 는 role_permissions / role_users / group_roles 를 먼저 정리하고,
  이 역할에 귀속된 권한(permissions.role_id)과 그 연결도 함께 삭제
- commit 은 라우터에서 수행

"""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models import GroupRole, Permission, Role, RoleUser, User, UserStatus, role_permissions
from app.services.identifiers import derive_id

logger = logging.getLogger(__name__)


def get_role(db: Session, role_id: str) -> Role | None:
    return db.get(Role, role_id)


def require_role(db: Session, role_id: str) -> Role:
    role = get_role(db, role_id)
    if role is None:
        raise NotFoundError("Role not found")
    return role


def role_exists(db: Session, role_id: str) -> bool:
    return get_role(db, role_id) is not None


def require_active_role_ids(db: Session, role_ids: list[str]) -> list[str]:
    """중복 제거된 role id 목록. 하나라도 없거나 비활성이면 ValidationError"""
    wanted = list(dict.fromkeys(role_ids))
    if not wanted:
        return []
    active = set(db.scalars(select(Role.id).where(Role.id.in_(wanted), Role.is_active.is_(True))))
    missing = [r for r in wanted if r not in active]
    if missing:
        raise ValidationError(f"Roles do not exist or are inactive: {', '.join(missing)}")
    return wanted


def build_role_query(*, search: str | None = None, include_inactive: bool = False):
    stmt = select(Role)
    if not include_inactive:
        stmt = stmt.where(Role.is_active.is_(True))
    if search:
        stmt = stmt.where(Role.id.contains(search) | Role.name.contains(search))
    return stmt.order_by(Role.name, Role.id)


def list_active_roles(db: Session) -> list[Role]:
    return list(db.scalars(select(Role).where(Role.is_active.is_(True)).order_by(Role.name)))


def build_role_user_count_query(*, search: str | None = None):
    user_count = (
        select(func.count())
        .select_from(RoleUser)
        .join(User, User.id == RoleUser.user_id)
        .where(RoleUser.role_id == Role.id, User.user_status != UserStatus.DELETED.value)
        .correlate(Role)
        .scalar_subquery()
    )
    stmt = select(Role, user_count.label("user_count"))
    if search:
        stmt = stmt.where(Role.id.contains(search) | Role.name.contains(search))
    return stmt.order_by(Role.name, Role.id)


def list_role_permission_ids(db: Session, role_id: str) -> list[str]:
    require_role(db, role_id)
    return list(
        db.scalars(
            select(role_permissions.c.permission_id)
            .where(role_permissions.c.role_id == role_id)
            .order_by(role_permissions.c.permission_id)
        )
    )


def list_role_users(db: Session, role_id: str) -> list[User]:
    require_role(db, role_id)
    return list(
        db.scalars(
            select(User)
            .join(RoleUser, RoleUser.user_id == User.id)
            .where(RoleUser.role_id == role_id, User.user_status != UserStatus.DELETED.value)
            .order_by(User.username)
        )
    )


def _load_permissions(db: Session, permission_ids: list[str]) -> list[Permission]:
    wanted = list(dict.fromkeys(permission_ids))
    if not wanted:
        return []
    found = list(db.scalars(select(Permission).where(Permission.id.in_(wanted))))
    missing = set(wanted) - {p.id for p in found}
    if missing:
        raise ValidationError(f"Unknown permission ids: {', '.join(sorted(missing))}")
    return found


def create_role(db: Session, *, name: str, is_active: bool = True, permission_ids: list[str] | None = None) -> Role:
    role_id = derive_id(name)
    if role_exists(db, role_id):
        raise ConflictError(f"Role id '{role_id}' already exists")

    role = Role(id=role_id, name=name.strip(), is_active=is_active)
    role.permissions = _load_permissions(db, permission_ids or [])
    db.add(role)
    db.flush()
    return role


"""
역할 수정

- name / is_active 부분 수정 (id 는 변경하지 않음)
- permission_ids 가 주어지면 권한 집합 전체를 교체

"""

def update_role(
    db: Session,
    role: Role,
    *,
    name: str | None = None,
    is_active: bool | None = None,
    permission_ids: list[str] | None = None,
) -> Role:
    if name is not None:
        if not name.strip():
            raise ValidationError("Role name must not be empty")
        role.name = name.strip()
    if is_active is not None:
        role.is_active = is_active
    if permission_ids is not None:
        role.permissions = _load_permissions(db, permission_ids)
    db.flush()
    return role


def soft_delete_role(db: Session, role: Role) -> Role:
    role.is_active = False
    return role


def hard_delete_role(db: Session, role_id: str) -> None:
    role = require_role(db, role_id)

    db.execute(delete(role_permissions).where(role_permissions.c.role_id == role_id))
    db.execute(delete(RoleUser).where(RoleUser.role_id == role_id))
    db.execute(delete(GroupRole).where(GroupRole.role_id == role_id))
    scoped_ids = select(Permission.id).where(Permission.role_id == role_id).scalar_subquery()
    db.execute(delete(role_permissions).where(role_permissions.c.permission_id.in_(scoped_ids)))
    db.execute(delete(Permission).where(Permission.role_id == role_id))
    db.expire(role, ["permissions"])
    db.delete(role)
    db.flush()
    logger.info("Hard deleted role %s", role_id)


def role_snapshot(role: Role) -> dict:
    return {"id": role.id, "name": role.name, "is_active": role.is_active}
