from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.audit_log import AuditAction


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    actor: str
    action: AuditAction
    entity_id: str
    target_id: str | None
    data_before: dict | None
    data_after: dict | None
    created_at: datetime
