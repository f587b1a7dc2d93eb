"""Patient repository - Database operations for patients"""

from typing import Any, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database

from ...database import PATIENTS_COLLECTION
from ...shared.documents import utcnow


class PatientRepository:
    """Repository for patient database operations"""

    @staticmethod
    def find_by_id(db: Database, patient_id: ObjectId) -> Optional[dict]:
        return db[PATIENTS_COLLECTION].find_one({"_id": patient_id, "deletedAt": None})

    @staticmethod
    def find_by_phone(db: Database, phone: str) -> Optional[dict]:
        return db[PATIENTS_COLLECTION].find_one({"contacts.phone": phone, "deletedAt": None})

    @staticmethod
    def find_by_google_id(db: Database, google_id: str) -> Optional[dict]:
        return db[PATIENTS_COLLECTION].find_one({"auth.googleId": google_id, "deletedAt": None})

    @staticmethod
    def find_by_email(db: Database, email: str) -> Optional[dict]:
        return db[PATIENTS_COLLECTION].find_one({"contacts.email": email, "deletedAt": None})

    @staticmethod
    def insert_patient(db: Database, doc: dict) -> dict:
        now = utcnow()
        doc = {**doc, "createdAt": now, "updatedAt": now, "deletedAt": None}
        result = db[PATIENTS_COLLECTION].insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    @staticmethod
    def update_fields(db: Database, patient_id: ObjectId, fields: dict[str, Any]) -> Optional[dict]:
        """$set fields plus updatedAt and return the updated document"""
        return db[PATIENTS_COLLECTION].find_one_and_update(
            {"_id": patient_id, "deletedAt": None},
            {"$set": {**fields, "updatedAt": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    @staticmethod
    def record_login(db: Database, patient_id: ObjectId) -> Optional[dict]:
        return PatientRepository.update_fields(db, patient_id, {"auth.lastLoginAt": utcnow()})
