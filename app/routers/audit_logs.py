from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import Principal, get_db, require_permissions
from app.schemas.audit_log import AuditLogResponse
from app.services.audit_log import list_audit_logs

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])

can_read = require_permissions("READ.AUDITLOGS")


# 최신순, limit 은 1~200 으로 보정
@router.get("")
def get_audit_logs(
    limit: int = Query(50),
    db: Session = Depends(get_db),
    _: Principal = Depends(can_read),
):
    logs = list_audit_logs(db, limit)
    return {
        "data": [AuditLogResponse.model_validate(log).model_dump(mode="json") for log in logs],
        "meta": {"limit": max(1, min(limit, 200)), "count": len(logs)},
    }
