"""
user.py

사용자(User) 모델 및 사용자 상태(UserStatus) 정의 파일.

모든 인증, 권한 계산, 그룹/역할 할당의 기준이 되는 핵심 모델이다.

- 사용자는 최대 1개의 그룹(group_id)에 소속
- manage_by 로 관리자(상위 사용자)를 지정하며, 순환이 없는 트리를 이룸
- 탈퇴/삭제는 user_status = DELETED(-2) 로 표현하는 Soft Delete

"""

import uuid
from datetime import datetime, timezone
from enum import IntEnum

from sqlalchemy import DateTime, ForeignKey, Index, SmallInteger, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


"""
사용자 상태 정의

- ACTIVE     : 정상 사용자 (기본값)
- PENDING    : 최초 로그인 전 비밀번호 변경 대기
- SUSPENDED  : 정지된 사용자 (로그인 불가)
- DELETED    : Soft Delete 된 사용자

"""

class UserStatus(IntEnum):
    ACTIVE = 1
    PENDING = 0
    SUSPENDED = -1
    DELETED = -2


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        # 삭제되지 않은 사용자 사이에서만 username 유일
        Index(
            "uq_users_username_active",
            "username",
            unique=True,
            postgresql_where=text("user_status <> -2"),
            sqlite_where=text("user_status <> -2"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    username: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)

    user_status: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, default=UserStatus.ACTIVE.value, index=True
    )

    manage_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True)
    level_security: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=1)

    group_id: Mapped[str | None] = mapped_column(String(100), ForeignKey("groups.id"), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.user_status == UserStatus.DELETED
