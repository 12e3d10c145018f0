# tests/helpers.py
import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.core.security import create_access_token, get_password_hash
from app.models import (
    Action,
    Entity,
    Group,
    GroupRole,
    Permission,
    Role,
    RoleUser,
    TimeActive,
    User,
    UserStatus,
)
from app.services.permissions import permission_id_for


ALL_ADMIN_CLAIMS = [
    f"{action}.{entity}"
    for action in ("READ", "CREATE", "UPDATE", "DELETE")
    for entity in ("USERS", "ROLES", "GROUPS", "PERMISSIONS", "ACTIONS", "ENTITY", "AUDITLOGS")
]


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def claims_header(*claims: str, username: str = "tester") -> dict:
    """DB 없이 지정한 claim 만 가진 토큰 헤더"""
    return auth_header(create_access_token(username, list(claims)))


def admin_header(username: str = "admin") -> dict:
    return claims_header(*ALL_ADMIN_CLAIMS, username=username)


def create_user_in_db(
    db: Session,
    *,
    username: str | None = None,
    password: str = "UserPassw0rd!",
    full_name: str = "Test User",
    status: UserStatus = UserStatus.ACTIVE,
    group_id: str | None = None,
    manage_by: uuid.UUID | None = None,
    level_security: int = 1,
) -> User:
    user = User(
        username=username or f"user_{uuid.uuid4().hex[:6]}",
        password_hash=get_password_hash(password),
        full_name=full_name,
        user_status=status.value,
        group_id=group_id,
        manage_by=manage_by,
        level_security=level_security,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_action(db: Session, action_id: str, *, name: str | None = None, is_active: bool = True) -> Action:
    action = Action(id=action_id, name=name or action_id.title(), code=action_id, is_active=is_active)
    db.add(action)
    db.commit()
    return action


def create_entity(db: Session, entity_id: str, *, name: str | None = None, level_security: int = 1) -> Entity:
    entity = Entity(id=entity_id, name=name or entity_id, level_security=level_security, type="SYSTEM")
    db.add(entity)
    db.commit()
    return entity


def create_role(db: Session, role_id: str, *, is_active: bool = True) -> Role:
    role = Role(id=role_id, name=role_id, is_active=is_active)
    db.add(role)
    db.commit()
    return role


def create_group(db: Session, group_id: str, *, is_active: bool = True, time_active_id: str | None = None) -> Group:
    group = Group(id=group_id, name=group_id, is_active=is_active, time_active_id=time_active_id)
    db.add(group)
    db.commit()
    return group


def create_time_window(db: Session, window_id: str, *, start: datetime | None, end: datetime | None) -> TimeActive:
    window = TimeActive(id=window_id, start_time=start, end_time=end)
    db.add(window)
    db.commit()
    return window


def grant(
    db: Session,
    role: Role,
    action_id: str,
    entity_id: str,
    *,
    is_active: bool = True,
    time_active_id: str | None = None,
) -> Permission:
    """role 에 "{action_id}.{entity_id}" 권한을 role_permissions 로 연결"""
    if db.get(Action, action_id) is None:
        db.add(Action(id=action_id, name=action_id.title(), code=action_id, is_active=True))
    if db.get(Entity, entity_id) is None:
        db.add(Entity(id=entity_id, name=entity_id, level_security=1, type="SYSTEM"))
    db.flush()

    permission = Permission(
        id=permission_id_for(action_id, entity_id, role.id),
        role_id=role.id,
        name=f"{action_id.title()} {entity_id}",
        action_id=action_id,
        entity_id=entity_id,
        time_active_id=time_active_id,
        is_active=is_active,
    )
    db.add(permission)
    role.permissions.append(permission)
    db.commit()
    return permission


def assign_role(db: Session, user: User, role: Role) -> None:
    db.add(RoleUser(user_id=user.id, role_id=role.id))
    db.commit()


def link_group_role(db: Session, group: Group, role: Role, note: str | None = None) -> None:
    db.add(GroupRole(group_id=group.id, role_id=role.id, note=note))
    db.commit()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
