"""Clinic repository - Database operations for the clinic aggregate"""

import re
from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database

from ...database import CLINICS_COLLECTION
from ...shared.documents import utcnow

# Embedded array -> stats counter kept equal to its length
COUNT_FIELDS = {
    "branches": "stats.branchesCount",
    "services": "stats.servicesCount",
    "doctors": "stats.doctorsCount",
    "owners": "stats.adminsCount",
}


def _search_filter(search: Optional[str]) -> dict:
    if not search:
        return {}
    pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
    return {
        "$or": [
            {"clinicDisplayName": pattern},
            {"clinicUniqueName": pattern},
            {"owners.userName": pattern},
            {"owners.displayName": pattern},
        ]
    }


def _item_filter(clinic_id: ObjectId, array: str, item_id: ObjectId) -> dict:
    """Clinic filter that binds the positional $ operator to one sub-document"""
    return {"_id": clinic_id, array: {"$elemMatch": {"_id": item_id}}}


def _touch(now: datetime, extra: Optional[dict] = None) -> dict:
    fields = {"updatedAt": now, "stats.updatedAt": now}
    if extra:
        fields.update(extra)
    return fields


class ClinicRepository:
    """Repository for clinic database operations"""

    @staticmethod
    def collection(db: Database):
        return db[CLINICS_COLLECTION]

    # ------------------------------------------------------------------
    # Clinic documents
    # ------------------------------------------------------------------

    @staticmethod
    def find_by_id(db: Database, clinic_id: ObjectId) -> Optional[dict]:
        return db[CLINICS_COLLECTION].find_one({"_id": clinic_id})

    @staticmethod
    def find_by_unique_name(db: Database, unique_name: str) -> Optional[dict]:
        """Non-deleted clinic with the given unique name (stored lowercase)"""
        return db[CLINICS_COLLECTION].find_one({"clinicUniqueName": unique_name.lower(), "deletedAt": None})

    @staticmethod
    def insert_clinic(db: Database, doc: dict) -> dict:
        result = db[CLINICS_COLLECTION].insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    @staticmethod
    def list_clinics(db: Database, skip: int, limit: int, search: Optional[str] = None) -> list[dict]:
        cursor = (
            db[CLINICS_COLLECTION]
            .find(_search_filter(search))
            .sort([("status", ASCENDING), ("createdAt", DESCENDING)])
            .skip(skip)
            .limit(limit)
        )
        return list(cursor)

    @staticmethod
    def count_clinics(db: Database, search: Optional[str] = None) -> int:
        return db[CLINICS_COLLECTION].count_documents(_search_filter(search))

    @staticmethod
    def update_fields(db: Database, clinic_id: ObjectId, fields: dict[str, Any]) -> bool:
        """$set arbitrary fields plus updatedAt; True when the clinic exists"""
        result = db[CLINICS_COLLECTION].update_one(
            {"_id": clinic_id}, {"$set": {**fields, "updatedAt": utcnow()}}
        )
        return result.matched_count > 0

    @staticmethod
    def delete_clinic(db: Database, clinic_id: ObjectId) -> bool:
        return db[CLINICS_COLLECTION].delete_one({"_id": clinic_id}).deleted_count > 0

    @staticmethod
    def set_all_plan_limits(db: Database, plan: str, limits: dict) -> int:
        result = db[CLINICS_COLLECTION].update_many(
            {"plan.type": plan}, {"$set": {"plan.limits": limits, "updatedAt": utcnow()}}
        )
        return result.modified_count

    @staticmethod
    def increment_stats(db: Database, clinic_id: ObjectId, field: str, amount: int = 1) -> None:
        now = utcnow()
        db[CLINICS_COLLECTION].update_one(
            {"_id": clinic_id}, {"$inc": {f"stats.{field}": amount}, "$set": {"stats.updatedAt": now}}
        )

    # ------------------------------------------------------------------
    # Username lookups across all clinics
    # ------------------------------------------------------------------

    @staticmethod
    def find_owner_by_username(db: Database, username: str) -> Optional[tuple[dict, dict]]:
        """(clinic, owner entry) for a staff username, searched across every clinic"""
        username = username.lower()
        clinic = db[CLINICS_COLLECTION].find_one({"owners.userName": username})
        if not clinic:
            return None
        owner = next((o for o in clinic.get("owners", []) if o.get("userName") == username), None)
        return (clinic, owner) if owner else None

    @staticmethod
    def find_doctor_by_username(
        db: Database, username: str, exclude_doctor_id: Optional[ObjectId] = None
    ) -> Optional[tuple[dict, dict]]:
        """(clinic, doctor) for a doctor username, searched across every clinic"""
        username = username.lower()
        for clinic in db[CLINICS_COLLECTION].find({"doctors.username": username}):
            for doctor in clinic.get("doctors", []):
                if doctor.get("username") == username and doctor["_id"] != exclude_doctor_id:
                    return clinic, doctor
        return None

    # ------------------------------------------------------------------
    # Embedded arrays
    # ------------------------------------------------------------------

    @staticmethod
    def push_item(db: Database, clinic: dict, array: str, item: dict) -> bool:
        """Append a sub-document; the companion count is written in the same update"""
        now = utcnow()
        update: dict[str, Any] = {"$push": {array: item}}
        count_field = COUNT_FIELDS.get(array)
        extra = {count_field: len(clinic.get(array, [])) + 1} if count_field else None
        update["$set"] = _touch(now, extra)
        result = db[CLINICS_COLLECTION].update_one({"_id": clinic["_id"]}, update)
        return result.matched_count > 0

    @staticmethod
    def replace_arrays(db: Database, clinic_id: ObjectId, arrays: dict[str, list]) -> bool:
        """$set whole arrays (read-modify-write) together with their counts"""
        now = utcnow()
        fields: dict[str, Any] = dict(arrays)
        for array, items in arrays.items():
            count_field = COUNT_FIELDS.get(array)
            if count_field:
                fields[count_field] = len(items)
        result = db[CLINICS_COLLECTION].update_one({"_id": clinic_id}, {"$set": _touch(now, fields)})
        return result.matched_count > 0

    @staticmethod
    def update_item(db: Database, clinic_id: ObjectId, array: str, item_id: ObjectId, fields: dict[str, Any]) -> bool:
        """Positional $set on one sub-document; updatedAt of the item is refreshed"""
        now = utcnow()
        set_fields = {f"{array}.$.{key}": value for key, value in fields.items()}
        set_fields[f"{array}.$.updatedAt"] = now
        set_fields["updatedAt"] = now
        result = db[CLINICS_COLLECTION].update_one(_item_filter(clinic_id, array, item_id), {"$set": set_fields})
        return result.matched_count > 0

    @staticmethod
    def add_service_to_doctor(db: Database, clinic_id: ObjectId, doctor_id: ObjectId, service_id: ObjectId) -> None:
        db[CLINICS_COLLECTION].update_one(
            _item_filter(clinic_id, "doctors", doctor_id),
            {"$addToSet": {"doctors.$.serviceIds": service_id}},
        )

    @staticmethod
    def remove_service_from_doctor(
        db: Database, clinic_id: ObjectId, doctor_id: ObjectId, service_id: ObjectId
    ) -> None:
        db[CLINICS_COLLECTION].update_one(
            _item_filter(clinic_id, "doctors", doctor_id),
            {"$pull": {"doctors.$.serviceIds": service_id}},
        )

    @staticmethod
    def record_owner_login(db: Database, clinic_id: ObjectId, owner_id: ObjectId, ip: Optional[str]) -> None:
        now = utcnow()
        db[CLINICS_COLLECTION].update_one(
            _item_filter(clinic_id, "owners", owner_id),
            {"$set": {"owners.$.security.lastLoginAt": now, "owners.$.security.lastLoginIP": ip}},
        )

    @staticmethod
    def record_doctor_login(db: Database, clinic_id: ObjectId, doctor_id: ObjectId, ip: Optional[str]) -> None:
        now = utcnow()
        db[CLINICS_COLLECTION].update_one(
            _item_filter(clinic_id, "doctors", doctor_id),
            {"$set": {"doctors.$.security.lastLoginAt": now, "doctors.$.security.lastLoginIP": ip}},
        )
