"""Booking domain schemas - Pydantic models for validation"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_date, validate_time

BookingStatus = Literal["pending", "confirmed", "completed", "cancelled"]


class BookingCreate(BaseModel):
    """Schema for a patient booking a service"""

    clinicId: str = Field(min_length=1)
    serviceId: str = Field(min_length=1)
    branchId: Optional[str] = None
    doctorId: Optional[str] = None
    scheduledDate: str
    scheduledTime: str

    @field_validator("scheduledDate")
    @classmethod
    def check_date(cls, v):
        return validate_date(v)

    @field_validator("scheduledTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class BookingCancel(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class BookingStatusUpdate(BaseModel):
    """Clinic-side status transition"""

    status: Literal["confirmed", "completed", "cancelled"]
    price: Optional[float] = Field(default=None, ge=0)
    reason: Optional[str] = Field(default=None, max_length=500)
