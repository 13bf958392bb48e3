# clinic/modules/patients/schemas.py
from __future__ import annotations

from datetime import date
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=60)]
NationalIdStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=20)]
PhoneStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=32)]


class PatientIdentity(BaseModel):
    """
    Patient fields accepted by the public booking form and by professionals.
    """
    national_id: NationalIdStr
    first_name: NameStr
    last_name: NameStr
    email: EmailStr
    phone: Optional[PhoneStr] = None
    birth_date: Optional[date] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("phone", mode="before")
    @classmethod
    def empty_phone_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


PatientCreateRequest = PatientIdentity
PatientUpdateRequest = PatientIdentity


class PatientPublic(BaseModel):
    id: UUID
    national_id: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: Optional[str] = None
    birth_date: Optional[date] = None
    is_active: bool

    class Config:
        from_attributes = True


class PatientLookup(BaseModel):
    """
    Returned by the public lookup so a returning patient can prefill the form.
    """
    national_id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    birth_date: Optional[date] = None

    class Config:
        from_attributes = True


class PatientStatusRequest(BaseModel):
    is_active: bool = Field(..., description="Deactivated patients are hidden from lists")
