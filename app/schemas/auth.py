from pydantic import BaseModel, Field


class DevTokenRequest(BaseModel):
    username: str
    password: str


class DevTokenResponse(BaseModel):
    token: str


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    mac_device: str | None = None


class LoginResponse(BaseModel):
    token: str | None
    token_type: str = "bearer"
    user_name: str
    full_name: str | None
    user_status: int


class FirstChangePasswordRequest(BaseModel):
    username: str = Field(..., min_length=1)
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)
    confirm_password: str = Field(..., min_length=8)


class EffectivePermissionOut(BaseModel):
    permission_id: str
    permission_name: str
    action_id: str
    entity_id: str
    role_id: str
    source: str
    code: str


class UserPermissionsResponse(BaseModel):
    username: str
    permissions: list[EffectivePermissionOut]
    total_permissions: int
