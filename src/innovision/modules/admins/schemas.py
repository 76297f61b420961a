"""Administrator authentication schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from innovision.modules.admins.models import AdminRole


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=256)


class AdminResponse(BaseModel):
    """The authenticated administrator."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    role: AdminRole


class LoginResponse(BaseModel):
    """Login response schema."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    admin: AdminResponse


class LogoutResponse(BaseModel):
    success: bool = True
