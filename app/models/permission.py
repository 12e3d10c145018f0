"""
permission.py

권한(Permission), 행위(Action), 대상(Entity) 모델.

- Permission.id 는 "{action_id}_{entity_id}_{role_id}" 로 파생되어
  (Action, Entity, Role) 조합을 유일하게 식별한다
- Permission.name 은 "{action 이름} {entity 이름}"
- 토큰 claim 문자열은 "{action_id}.{entity_id}"

"""

from sqlalchemy import Boolean, ForeignKey, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Action(Base):
    __tablename__ = "actions"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Entity(Base):
    __tablename__ = "entities"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    level_security: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=1)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)


class Permission(Base):
    __tablename__ = "permissions"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    action_id: Mapped[str] = mapped_column(String(50), ForeignKey("actions.id"), nullable=False, index=True)
    entity_id: Mapped[str] = mapped_column(String(50), ForeignKey("entities.id"), nullable=False, index=True)
    role_id: Mapped[str | None] = mapped_column(String(100), ForeignKey("roles.id"), nullable=True, index=True)
    time_active_id: Mapped[str | None] = mapped_column(String(100), ForeignKey("time_actives.id"), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def code(self) -> str:
        return f"{self.action_id}.{self.entity_id}"
