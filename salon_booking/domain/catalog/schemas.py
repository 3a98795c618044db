"""Catalog domain schemas - Pydantic models for validation"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import normalize_phone, validate_email


@dataclass(frozen=True)
class ServiceSnapshot:
    """Duration and price of a service frozen at resolution time"""

    service_id: str
    name: str
    price: Decimal
    duration_minutes: int


class ServiceCreate(BaseModel):
    """Schema for creating a salon service"""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: str = Field("general", min_length=1, max_length=100)
    durationMinutes: int = Field(..., gt=0, le=24 * 60)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    displayOrder: int = 0


class ServiceUpdate(BaseModel):
    """Schema for updating a salon service"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    durationMinutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    displayOrder: Optional[int] = None
    isActive: Optional[bool] = None


class ServiceResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    category: str
    durationMinutes: int
    price: Decimal
    displayOrder: int
    isActive: bool

    @classmethod
    def from_model(cls, service) -> "ServiceResponse":
        return cls(
            id=service.id,
            name=service.name,
            description=service.description,
            category=service.category,
            durationMinutes=service.duration_minutes,
            price=service.price,
            displayOrder=service.display_order,
            isActive=service.is_active,
        )


class StaffCreate(BaseModel):
    """Schema for creating a staff member"""

    firstName: str = Field(..., min_length=1, max_length=100)
    lastName: str = Field(..., min_length=1, max_length=100)
    nickname: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    specialties: list[str] = Field(default_factory=list)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return normalize_phone(v)
        return v

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)


class StaffUpdate(BaseModel):
    """Schema for updating a staff member"""

    firstName: Optional[str] = Field(None, min_length=1, max_length=100)
    lastName: Optional[str] = Field(None, min_length=1, max_length=100)
    nickname: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    specialties: Optional[list[str]] = None
    isActive: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return normalize_phone(v)
        return v

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)


class StaffResponse(BaseModel):
    id: str
    firstName: str
    lastName: str
    nickname: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    specialties: list[str]
    isActive: bool

    @classmethod
    def from_model(cls, staff) -> "StaffResponse":
        return cls(
            id=staff.id,
            firstName=staff.first_name,
            lastName=staff.last_name,
            nickname=staff.nickname,
            email=staff.email,
            phone=staff.phone,
            specialties=list(staff.specialties or []),
            isActive=staff.is_active,
        )
