from pydantic import BaseModel, ConfigDict, Field


class RoleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    is_active: bool


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    is_active: bool = True
    permission_ids: list[str] = []


class RoleUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    is_active: bool | None = None
    # None 이면 권한 집합 유지, 리스트면 전체 교체
    permission_ids: list[str] | None = None
