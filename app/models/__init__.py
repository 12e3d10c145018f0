from app.models.user import User, UserStatus
from app.models.time_active import TimeActive
from app.models.group import Group, GroupRole
from app.models.role import Role, RoleUser, role_permissions
from app.models.permission import Action, Entity, Permission
from app.models.login_history import LoginHistory
from app.models.audit_log import AuditAction, AuditLog

__all__ = [
    "User",
    "UserStatus",
    "TimeActive",
    "Group",
    "GroupRole",
    "Role",
    "RoleUser",
    "role_permissions",
    "Action",
    "Entity",
    "Permission",
    "LoginHistory",
    "AuditAction",
    "AuditLog",
]
