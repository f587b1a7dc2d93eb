"""Booking repository - Database operations for bookings"""

from datetime import datetime
from typing import Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database

from ...database import BOOKINGS_COLLECTION, CLINICS_COLLECTION, PATIENTS_COLLECTION
from ...shared.documents import utcnow

ACTIVE_STATUSES = ["pending", "confirmed"]
LIST_LIMIT = 200


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def insert_booking(db: Database, doc: dict) -> dict:
        result = db[BOOKINGS_COLLECTION].insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    @staticmethod
    def find_for_user(db: Database, booking_id: ObjectId, user_id: ObjectId) -> Optional[dict]:
        return db[BOOKINGS_COLLECTION].find_one({"_id": booking_id, "userId": user_id, "deletedAt": None})

    @staticmethod
    def find_for_clinic(db: Database, booking_id: ObjectId, clinic_id: ObjectId) -> Optional[dict]:
        return db[BOOKINGS_COLLECTION].find_one({"_id": booking_id, "clinicId": clinic_id, "deletedAt": None})

    @staticmethod
    def list_by_user(db: Database, user_id: ObjectId, status: Optional[str] = None, limit: int = LIST_LIMIT) -> list[dict]:
        query: dict = {"userId": user_id, "deletedAt": None}
        if status:
            query["status"] = status
        cursor = db[BOOKINGS_COLLECTION].find(query).sort([("scheduledAt", DESCENDING), ("_id", DESCENDING)]).limit(limit)
        return list(cursor)

    @staticmethod
    def list_by_clinic(
        db: Database,
        clinic_id: ObjectId,
        status: Optional[str] = None,
        doctor_id: Optional[ObjectId] = None,
        limit: int = LIST_LIMIT,
    ) -> list[dict]:
        query: dict = {"clinicId": clinic_id, "deletedAt": None}
        if status:
            query["status"] = status
        if doctor_id:
            query["doctorId"] = doctor_id
        cursor = db[BOOKINGS_COLLECTION].find(query).sort([("scheduledAt", DESCENDING), ("_id", DESCENDING)]).limit(limit)
        return list(cursor)

    @staticmethod
    def find_next_upcoming(db: Database, user_id: ObjectId, now: datetime) -> Optional[dict]:
        """Soonest pending/confirmed booking at or after now; equal instants by insertion id"""
        cursor = (
            db[BOOKINGS_COLLECTION]
            .find(
                {
                    "userId": user_id,
                    "deletedAt": None,
                    "status": {"$in": ACTIVE_STATUSES},
                    "scheduledAt": {"$gte": now},
                }
            )
            .sort([("scheduledAt", ASCENDING), ("_id", ASCENDING)])
            .limit(1)
        )
        return next(iter(cursor), None)

    @staticmethod
    def transition(
        db: Database, query: dict, from_statuses: list[str], set_fields: dict
    ) -> Optional[dict]:
        """Conditional single-document status change; None when the precondition no longer holds"""
        return db[BOOKINGS_COLLECTION].find_one_and_update(
            {**query, "deletedAt": None, "status": {"$in": from_statuses}},
            {"$set": {**set_fields, "updatedAt": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    @staticmethod
    def load_clinics(db: Database, clinic_ids: list[ObjectId]) -> dict[ObjectId, dict]:
        """One lookup per distinct clinic"""
        clinics = {}
        for clinic_id in dict.fromkeys(clinic_ids):
            clinic = db[CLINICS_COLLECTION].find_one({"_id": clinic_id})
            if clinic:
                clinics[clinic_id] = clinic
        return clinics

    @staticmethod
    def load_patients(db: Database, patient_ids: list[ObjectId]) -> dict[ObjectId, dict]:
        cursor = db[PATIENTS_COLLECTION].find(
            {"_id": {"$in": list(dict.fromkeys(patient_ids))}}, {"fullName": 1, "contacts.phone": 1}
        )
        return {p["_id"]: p for p in cursor}
