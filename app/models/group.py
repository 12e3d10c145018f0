"""
group.py

그룹(Group) 및 그룹-역할 연결(GroupRole) 모델.

- Group.id 는 그룹 이름에서 파생되며 요청으로 받지 않는다
- GroupRole 은 (group_id, role_id) 복합 키와 메모(note)를 가진다

"""

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Group(Base):
    __tablename__ = "groups"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    time_active_id: Mapped[str | None] = mapped_column(String(100), ForeignKey("time_actives.id"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class GroupRole(Base):
    __tablename__ = "group_roles"

    group_id: Mapped[str] = mapped_column(String(100), ForeignKey("groups.id"), primary_key=True)
    role_id: Mapped[str] = mapped_column(String(100), ForeignKey("roles.id"), primary_key=True)

    note: Mapped[str | None] = mapped_column(String(255), nullable=True)
