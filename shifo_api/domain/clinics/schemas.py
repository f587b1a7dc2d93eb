"""Clinic domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ...shared.validators import validate_email, validate_slug, validate_time
from .plans import PlanType

# ============================================================================
# CLINIC (platform admin)
# ============================================================================


class ClinicCreate(BaseModel):
    """Schema for creating a clinic together with its owner"""

    clinicDisplayName: str = Field(min_length=2, max_length=128)
    clinicUniqueName: str = Field(min_length=2, max_length=64)
    ownerUserName: str = Field(min_length=2, max_length=64)
    ownerDisplayName: str = Field(min_length=1, max_length=128)
    ownerPassword: str = Field(min_length=8)
    plan: PlanType = "starter"

    @field_validator("clinicUniqueName")
    @classmethod
    def validate_unique_name(cls, v):
        return validate_slug(v, "Unique name")

    @field_validator("ownerUserName")
    @classmethod
    def validate_owner_username(cls, v):
        return validate_slug(v, "Username")


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ChangePlanRequest(BaseModel):
    plan: PlanType


class Branding(BaseModel):
    logoUrl: Optional[str] = None
    coverUrl: Optional[str] = None


class Contacts(BaseModel):
    phone: Optional[str] = Field(default=None, max_length=32)
    email: Optional[str] = None
    telegram: Optional[str] = Field(default=None, max_length=64)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class Description(BaseModel):
    short: Optional[str] = Field(default=None, max_length=256)
    full: Optional[str] = Field(default=None, max_length=4000)


class ClinicInfoUpdate(BaseModel):
    """Partial update - omitted keys are left untouched, null clears a nested value"""

    branding: Optional[Branding] = None
    contacts: Optional[Contacts] = None
    description: Optional[Description] = None


class ClinicAdminCreate(BaseModel):
    userName: str = Field(min_length=2, max_length=64)
    displayName: str = Field(min_length=1, max_length=128)
    password: str = Field(min_length=8)

    @field_validator("userName")
    @classmethod
    def validate_username(cls, v):
        return validate_slug(v, "Username")


class StatusUpdate(BaseModel):
    isActive: bool


# ============================================================================
# BRANCHES
# ============================================================================


class WorkingHour(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: int = Field(ge=1, le=7)
    from_: str = Field(alias="from")
    to: str

    @field_validator("from_", "to")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class Geo(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class Address(BaseModel):
    city: str = Field(min_length=1, max_length=64)
    street: str = Field(min_length=1, max_length=256)
    geo: Geo


class BranchCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    phone: str = Field(min_length=1, max_length=32)
    address: Address
    workingHours: list[WorkingHour] = Field(default_factory=list, max_length=7)


class BranchUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    phone: Optional[str] = Field(default=None, min_length=1, max_length=32)
    address: Optional[Address] = None
    workingHours: Optional[list[WorkingHour]] = Field(default=None, max_length=7)


# ============================================================================
# DOCTORS
# ============================================================================


class DoctorCreate(BaseModel):
    fullName: str = Field(min_length=1, max_length=128)
    username: str = Field(min_length=2, max_length=64)
    specialty: str = Field(min_length=1, max_length=128)
    bio: str = Field(default="", max_length=512)
    password: str = Field(min_length=8)
    branchId: str = Field(min_length=1)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        return validate_slug(v, "Username")


class DoctorUpdate(BaseModel):
    fullName: Optional[str] = Field(default=None, min_length=1, max_length=128)
    username: Optional[str] = Field(default=None, min_length=2, max_length=64)
    specialty: Optional[str] = Field(default=None, min_length=1, max_length=128)
    bio: Optional[str] = Field(default=None, max_length=512)
    password: Optional[str] = Field(default=None, min_length=8)
    branchId: Optional[str] = Field(default=None, min_length=1)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        if v is None:
            return v
        return validate_slug(v, "Username")


class DoctorSelfUpdate(BaseModel):
    """Doctor editing their own profile; avatarUrl may be cleared with null"""

    fullName: Optional[str] = Field(default=None, min_length=1, max_length=128)
    username: Optional[str] = Field(default=None, min_length=2, max_length=64)
    specialty: Optional[str] = Field(default=None, min_length=1, max_length=128)
    bio: Optional[str] = Field(default=None, max_length=512)
    avatarUrl: Optional[str] = Field(default=None, max_length=2048)
    password: Optional[str] = Field(default=None, min_length=8)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        if v is None:
            return v
        return validate_slug(v, "Username")

    @field_validator("avatarUrl")
    @classmethod
    def validate_avatar(cls, v):
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError("avatarUrl must be an http(s) URL")
        return v


class ScheduleDay(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: int = Field(ge=1, le=7)
    from_: str = Field(alias="from")
    to: str
    lunchFrom: Optional[str] = None
    lunchTo: Optional[str] = None

    @field_validator("from_", "to", "lunchFrom", "lunchTo")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class ScheduleUpdate(BaseModel):
    timezone: str = Field(default="Asia/Tashkent", min_length=1, max_length=64)
    weekly: list[ScheduleDay] = Field(default_factory=list, max_length=7)


# ============================================================================
# CATEGORIES & SERVICES
# ============================================================================


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)


class Price(BaseModel):
    amount: Optional[float] = Field(default=None, ge=0)
    minAmount: Optional[float] = Field(default=None, ge=0)
    maxAmount: Optional[float] = Field(default=None, ge=0)
    currency: str = "UZS"

    @model_validator(mode="after")
    def check_range(self):
        if self.amount is None and self.minAmount is None and self.maxAmount is None:
            raise ValueError("Provide amount or a minAmount/maxAmount range")
        if self.minAmount is not None and self.maxAmount is not None and self.minAmount > self.maxAmount:
            raise ValueError("minAmount cannot be greater than maxAmount")
        return self


class ServiceCreate(BaseModel):
    title: str = Field(min_length=1, max_length=128)
    description: str = Field(default="", max_length=2000)
    serviceImage: Optional[str] = None
    categoryId: str = Field(min_length=1)
    durationMin: int = Field(gt=0, le=1440)
    price: Price
    branchIds: list[str] = Field(min_length=1)
    doctorIds: list[str] = Field(default_factory=list)


class ServiceUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=128)
    description: Optional[str] = Field(default=None, max_length=2000)
    serviceImage: Optional[str] = None
    categoryId: Optional[str] = Field(default=None, min_length=1)
    durationMin: Optional[int] = Field(default=None, gt=0, le=1440)
    price: Optional[Price] = None
    branchIds: Optional[list[str]] = None
    doctorIds: Optional[list[str]] = None

