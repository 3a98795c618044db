"""Customer domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import normalize_phone, validate_email
from ...utils.sanitization import validate_and_sanitize_input


class CustomerCreate(BaseModel):
    """Schema for creating a customer"""

    firstName: str = Field(..., min_length=1, max_length=100)
    lastName: str = Field(..., min_length=1, max_length=100)
    phone: str
    email: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("notes")
    @classmethod
    def sanitize_notes(cls, v):
        return validate_and_sanitize_input(v, max_length=2000)


class CustomerUpdate(BaseModel):
    """Schema for updating a customer"""

    firstName: Optional[str] = Field(None, min_length=1, max_length=100)
    lastName: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None

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

    @field_validator("notes")
    @classmethod
    def sanitize_notes(cls, v):
        return validate_and_sanitize_input(v, max_length=2000)


class CustomerResponse(BaseModel):
    id: str
    firstName: str
    lastName: str
    phone: str
    email: Optional[str] = None
    notes: Optional[str] = None
    totalVisits: int
    totalSpent: Decimal
    lastVisitAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, customer) -> "CustomerResponse":
        return cls(
            id=customer.id,
            firstName=customer.first_name,
            lastName=customer.last_name,
            phone=customer.phone,
            email=customer.email,
            notes=customer.notes,
            totalVisits=customer.total_visits or 0,
            totalSpent=customer.total_spent or Decimal("0"),
            lastVisitAt=customer.last_visit_at,
            createdAt=customer.created_at,
        )
