# clinic/modules/users/schemas.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, SecretStr, field_validator


class LoginRequest(BaseModel):
    national_id: str = Field(..., min_length=1, max_length=20)
    password: SecretStr

    @field_validator("national_id", mode="before")
    @classmethod
    def strip_national_id(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v


class UserPublic(BaseModel):
    id: UUID
    national_id: str
    full_name: str
    email: Optional[str] = None
    role: str
    is_active: bool

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserPublic


class ProfessionalPublic(BaseModel):
    """
    What the booking page shows about a professional.
    """
    id: UUID
    full_name: str
    specialty: Optional[str] = None
    description: Optional[str] = None

    class Config:
        from_attributes = True
