from pydantic import BaseModel, ConfigDict, Field


class PermissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    action_id: str
    entity_id: str
    role_id: str | None
    time_active_id: str | None
    is_active: bool
    code: str


class PermissionCreate(BaseModel):
    action_id: str = Field(..., min_length=1)
    entity_id: str = Field(..., min_length=1)
    role_id: str | None = None
    time_active_id: str | None = None
    is_active: bool = True


class PermissionUpdate(BaseModel):
    action_id: str | None = None
    entity_id: str | None = None
    role_id: str | None = None
    time_active_id: str | None = None
    is_active: bool | None = None
