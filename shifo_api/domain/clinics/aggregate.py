"""Lookups inside a loaded clinic document"""

from typing import Any, Optional

from bson import ObjectId
from pymongo.database import Database

from ...errors import not_found
from ...shared.documents import oid, parse_object_id
from .repository import ClinicRepository


def load_clinic(db: Database, clinic_id: Any) -> dict:
    """Fetch a clinic by id (string or ObjectId) or raise 404"""
    clinic = ClinicRepository.find_by_id(db, oid(clinic_id, "Clinic not found"))
    if not clinic:
        raise not_found("Clinic not found")
    return clinic


def find_item(clinic: dict, array: str, item_id: Any) -> Optional[dict]:
    parsed = parse_object_id(item_id)
    if parsed is None:
        return None
    return next((item for item in clinic.get(array) or [] if item["_id"] == parsed), None)


def require_item(clinic: dict, array: str, item_id: Any, message: str) -> dict:
    item = find_item(clinic, array, item_id)
    if item is None:
        raise not_found(message)
    return item


def require_ids(clinic: dict, array: str, raw_ids: list[str], label: str) -> list[ObjectId]:
    """Resolve a list of string ids that must all belong to the clinic"""
    resolved = []
    for raw in dict.fromkeys(raw_ids):
        resolved.append(require_item(clinic, array, raw, f"{label} not found: {raw}")["_id"])
    return resolved
