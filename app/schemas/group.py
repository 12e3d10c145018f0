from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class GroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    time_active_id: str | None
    is_active: bool


class GroupRoleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    group_id: str
    role_id: str
    note: str | None


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    time_active_id: str | None = None
    is_active: bool = True


class GroupUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    time_active_id: str | None = None
    is_active: bool | None = None


class GroupUsersRequest(BaseModel):
    user_ids: list[UUID] = Field(..., min_length=1)


class GroupRolesRequest(BaseModel):
    role_ids: list[str] = Field(..., min_length=1)
    note: str | None = None


class GroupRolesReplaceRequest(BaseModel):
    role_ids: list[str] = []
    note: str | None = None


class MoveUserRequest(BaseModel):
    # None 이면 그룹에서 제외
    group_id: str | None = None
