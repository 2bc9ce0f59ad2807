from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from carebook.utils.validation import validate_phone_number


class PatientBase(BaseModel):
    """Base patient schema with common fields."""

    first_name: str = Field(
        ..., min_length=1, max_length=50, description="Patient first name"
    )
    last_name: str = Field(
        ..., min_length=1, max_length=50, description="Patient last name"
    )
    email: EmailStr = Field(..., description="Patient email address")
    phone: Optional[str] = Field(None, max_length=20, description="Phone number")
    date_of_birth: Optional[date] = Field(None, description="Date of birth")

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v):
        return v.lower()

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v and not validate_phone_number(v):
            raise ValueError("Please provide a valid phone number")
        return v

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, v):
        if v and v > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return v


class PatientCreate(PatientBase):
    """Schema for creating a new patient."""

    pass


class PatientUpdate(PatientBase):
    """Schema for replacing a patient's details."""

    is_active: Optional[bool] = None


class PatientResponse(PatientBase):
    model_config = ConfigDict(from_attributes=True)

    uuid: UUID
    is_active: bool
    full_name: str
    age: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_patient(cls, patient):
        """Build from a patient row, deriving ``age`` from the birth date."""
        return cls(
            uuid=patient.uuid,
            first_name=patient.first_name,
            last_name=patient.last_name,
            email=patient.email,
            phone=patient.phone,
            date_of_birth=patient.date_of_birth,
            is_active=patient.is_active,
            full_name=patient.full_name,
            age=patient.age(),
            created_at=patient.created_at,
            updated_at=patient.updated_at,
        )


class PatientListResponse(BaseModel):
    patients: List[PatientResponse]
    count: int
    total: int
