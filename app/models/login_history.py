"""
login_history.py

로그인 이력(LoginHistory) 모델.

- status_login : 1 = 성공, 0 = 실패
- logout_time  : 로그아웃 시각 (현재는 기록만 하고 사용하지 않음)

"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, SmallInteger, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.user import utcnow


LOGIN_SUCCESS = 1
LOGIN_FAILED = 0


class LoginHistory(Base):
    __tablename__ = "login_histories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    login_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    logout_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    mac_device: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)

    status_login: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=LOGIN_SUCCESS)
