"""Shared validation utilities"""

import re
from typing import Optional

SLUG_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
UZ_PHONE_PATTERN = re.compile(r"^\+998\d{9}$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

SUPPORTED_LANGUAGES = ("uz", "ru", "en")


def validate_slug(value: str, label: str = "Value") -> str:
    """Usernames and clinic unique names: letters, digits, _ and -"""
    if not SLUG_PATTERN.match(value):
        raise ValueError(f"{label} can only contain letters, numbers, _ and -")
    return value


def validate_time(value: Optional[str]) -> Optional[str]:
    """HH:MM with hours 00-23 and minutes 00-59"""
    if value is None:
        return value
    if not TIME_PATTERN.match(value):
        raise ValueError("Use HH:MM")
    hours, minutes = int(value[:2]), int(value[3:])
    if hours > 23 or minutes > 59:
        raise ValueError("Use HH:MM")
    return value


def validate_date(value: str) -> str:
    if not DATE_PATTERN.match(value):
        raise ValueError("Use YYYY-MM-DD")
    return value


def validate_uz_phone(phone: str) -> str:
    """
    Validate an Uzbekistan mobile number in E.164 format.

    Raises:
        ValueError: If phone number is invalid
    """
    phone = phone.strip()
    if not UZ_PHONE_PATTERN.match(phone):
        raise ValueError("Phone must be in +998XXXXXXXXX format")
    return phone


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address
    """
    if not email:
        return email

    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")
    return email


def normalize_language(value: Optional[str]) -> str:
    """Map an X-Preferred-Language header to a supported language, default uz"""
    if not value:
        return "uz"
    value = value.strip().lower()[:2]
    return value if value in SUPPORTED_LANGUAGES else "uz"


def mask_phone(phone: Optional[str]) -> str:
    """+998901234567 -> +998*****4567 for logs"""
    if not phone or len(phone) < 8:
        return "****"
    return f"{phone[:4]}{'*' * (len(phone) - 8)}{phone[-4:]}"
