from pydantic import BaseModel, ConfigDict, Field


class ActionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str | None
    is_active: bool


class ActionUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    code: str | None = None
    is_active: bool | None = None


class EntityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    level_security: int
    type: str | None


class EntityUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    level_security: int | None = Field(None, ge=1, le=5)
    type: str | None = None
