from uuid import UUID

from pydantic import BaseModel, Field


class AssignRolesToUserRequest(BaseModel):
    user_id: UUID
    role_ids: list[str] = Field(..., min_length=1)


class AssignUsersToRoleRequest(BaseModel):
    role_id: str
    user_ids: list[UUID] = Field(..., min_length=1)


class RoleIdsRequest(BaseModel):
    role_ids: list[str] = []
