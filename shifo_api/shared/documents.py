"""Helpers for ObjectIds, timestamps and JSON-safe document output"""

from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId

from ..errors import not_found


def utcnow() -> datetime:
    """Naive UTC datetime, matching what pymongo returns without tz_aware"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def oid(value: Any, message: str = "Not found") -> ObjectId:
    """Parse an id taken from a path; malformed ids are indistinguishable from missing ones"""
    parsed = parse_object_id(value)
    if parsed is None:
        raise not_found(message)
    return parsed


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"


def to_public(value: Any) -> Any:
    """Recursively convert ObjectIds and datetimes into strings"""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, dict):
        return {k: to_public(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_public(v) for v in value]
    return value


def id_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None
