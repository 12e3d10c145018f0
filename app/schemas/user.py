from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# 🔹 유저 응답용 (password_hash 제외)
class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    full_name: str | None
    phone_number: str | None
    department: str | None
    user_status: int
    manage_by: UUID | None
    level_security: int
    group_id: str | None
    created_at: datetime
    updated_at: datetime | None


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8, max_length=64)
    full_name: str | None = None
    phone_number: str | None = None
    department: str | None = None
    manage_by: UUID | None = None
    level_security: int = Field(1, ge=1, le=5)
    group_id: str | None = None
    # 0 으로 생성하면 최초 로그인 시 비밀번호 변경 필요
    user_status: int = Field(1, ge=-1, le=1)


class UserUpdate(BaseModel):
    full_name: str | None = None
    phone_number: str | None = None
    department: str | None = None
    manage_by: UUID | None = None
    level_security: int | None = Field(None, ge=1, le=5)
    group_id: str | None = None
    user_status: int | None = Field(None, ge=-1, le=1)


class ChangePasswordRequest(BaseModel):
    user_id: UUID
    new_password: str = Field(..., min_length=8, max_length=64)
