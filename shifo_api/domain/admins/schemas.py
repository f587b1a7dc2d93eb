"""Platform admin schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_slug


class AdminCreate(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    displayName: str = Field(min_length=1, max_length=128)
    password: str = Field(min_length=8)

    @field_validator("username")
    @classmethod
    def check_username(cls, v):
        return validate_slug(v, "Username").lower()


class AdminLogin(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ChangePasswordRequest(BaseModel):
    currentPassword: str = Field(min_length=1)
    newPassword: str = Field(min_length=8)


class AdminProfileUpdate(BaseModel):
    displayName: Optional[str] = Field(default=None, min_length=1, max_length=128)
    username: Optional[str] = Field(default=None, min_length=3, max_length=64)

    @field_validator("username")
    @classmethod
    def check_username(cls, v):
        if v is None:
            return v
        return validate_slug(v, "Username").lower()
