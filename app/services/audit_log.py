"""
services/audit_log.py

관리 행위 로그 기록 / 조회 서비스.

라우터 또는 서비스 계층에서 호출되며,
로그 기록 자체는 DB에만 영향을 주고 비즈니스 흐름에는 개입하지 않는다.

NOTE:
- db.commit()은 호출 측(라우터)에서 수행하여
  실제 변경과 로그가 같은 트랜잭션으로 저장됨

"""

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from app.models.audit_log import AuditAction, AuditLog


def write_audit_log(
    db: Session,
    *,
    actor: str,
    action: AuditAction,
    entity_id: str,
    target_id=None,
    data_before: dict | None = None,
    data_after: dict | None = None,
) -> None:
    log = AuditLog(
        actor=actor,
        action=action,
        entity_id=entity_id,
        target_id=str(target_id) if target_id is not None else None,
        data_before=data_before,
        data_after=data_after,
    )
    db.add(log)


def list_audit_logs(db: Session, limit: int = 50) -> list[AuditLog]:
    limit = max(1, min(limit, 200))
    return list(db.scalars(select(AuditLog).order_by(desc(AuditLog.created_at)).limit(limit)).all())
