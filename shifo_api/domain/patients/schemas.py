"""Patient domain schemas - Pydantic models for validation"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_uz_phone

Gender = Literal["male", "female"]
Language = Literal["uz", "ru", "en"]


class AuthGoogleRequest(BaseModel):
    idToken: str = Field(min_length=1)


class AuthPhoneRequest(BaseModel):
    phone: str

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_uz_phone(v)


class CompleteProfileRequest(BaseModel):
    fullName: str = Field(min_length=1, max_length=128)
    gender: Gender
    age: Optional[int] = Field(default=None, ge=1, le=150)


class ContactsUpdate(BaseModel):
    """Omitted keys are kept; null clears"""

    email: Optional[str] = None
    telegram: Optional[str] = Field(default=None, max_length=64)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class LocationUpdate(BaseModel):
    city: Optional[str] = Field(default=None, min_length=1, max_length=64)


class PreferencesUpdate(BaseModel):
    language: Optional[Language] = None
    notificationsEnabled: Optional[bool] = None


class PatientUpdate(BaseModel):
    """Partial profile update

    ``age`` and ``avatarUrl`` distinguish omitted (unchanged) from null (cleared).
    """

    fullName: Optional[str] = Field(default=None, min_length=1, max_length=128)
    gender: Optional[Gender] = None
    age: Optional[int] = Field(default=None, ge=1, le=150)
    avatarUrl: Optional[str] = Field(default=None, max_length=2048)
    contacts: Optional[ContactsUpdate] = None
    location: Optional[LocationUpdate] = None
    preferences: Optional[PreferencesUpdate] = None

    @field_validator("avatarUrl")
    @classmethod
    def check_avatar(cls, v):
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError("avatarUrl must be an http(s) URL")
        return v
