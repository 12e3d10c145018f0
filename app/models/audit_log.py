"""
audit_log.py

관리 행위 기록(Audit Log) 모델 정의 파일.

사용자 / 그룹 / 역할 / 권한 등 권한 그래프를 변경하는 관리 행위를
DB에 영구적으로 기록하기 위한 로그 테이블이다.

설계 원칙:
- 실제 데이터 변경과 로그 기록을 분리
- 로그 데이터는 수정/삭제하지 않는 것을 전제로 설계
- actor(행위자, username)와 target(대상 레코드 id)을 명확히 구분

"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, DateTime, Enum as SAEnum, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.user import utcnow


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    SOFT_DELETE = "SOFT_DELETE"
    HARD_DELETE = "HARD_DELETE"
    ASSIGN = "ASSIGN"
    UNASSIGN = "UNASSIGN"
    REPLACE = "REPLACE"
    CHANGE_PASSWORD = "CHANGE_PASSWORD"


"""
관리 행위 로그 모델

- actor       : 행위를 수행한 사용자 이름 (토큰 sub)
- action      : 수행된 행위 유형
- entity_id   : 대상 리소스 종류 ("USERS", "ROLES" 등)
- target_id   : 대상 레코드 id
- data_before : 변경 전 스냅샷 (선택)
- data_after  : 변경 후 스냅샷 (선택)

"""

class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    actor: Mapped[str] = mapped_column(String(100), nullable=False)
    action: Mapped[AuditAction] = mapped_column(SAEnum(AuditAction, name="audit_action"), nullable=False)

    entity_id: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    data_before: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    data_after: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
