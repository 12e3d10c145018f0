"""
role.py

역할(Role), 사용자-역할 연결(RoleUser), 역할-권한 연결(role_permissions) 모델.

- Role.id 는 역할 이름에서 파생
- 역할과 권한은 N:M (role_permissions)
- Soft Delete 는 is_active = False

"""

import uuid

from sqlalchemy import Boolean, Column, ForeignKey, String, Table, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", String(100), ForeignKey("roles.id"), primary_key=True),
    Column("permission_id", String(255), ForeignKey("permissions.id"), primary_key=True),
)


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    permissions: Mapped[list["Permission"]] = relationship(  # noqa: F821
        secondary=role_permissions,
        order_by="Permission.id",
    )


class RoleUser(Base):
    __tablename__ = "role_users"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), primary_key=True)
    role_id: Mapped[str] = mapped_column(String(100), ForeignKey("roles.id"), primary_key=True)
