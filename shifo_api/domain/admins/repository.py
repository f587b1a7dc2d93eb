"""Platform admin repository - Database operations for platform administrators"""

from typing import Any, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database

from ...database import PLATFORM_ADMIN_COLLECTION
from ...shared.documents import utcnow


class AdminRepository:
    """Repository for platform admin database operations"""

    @staticmethod
    def count_admins(db: Database) -> int:
        return db[PLATFORM_ADMIN_COLLECTION].count_documents({"deletedAt": None})

    @staticmethod
    def find_by_id(db: Database, admin_id: ObjectId) -> Optional[dict]:
        return db[PLATFORM_ADMIN_COLLECTION].find_one({"_id": admin_id, "deletedAt": None})

    @staticmethod
    def find_by_username(db: Database, username: str) -> Optional[dict]:
        return db[PLATFORM_ADMIN_COLLECTION].find_one({"username": username.lower(), "deletedAt": None})

    @staticmethod
    def insert_admin(db: Database, doc: dict) -> dict:
        result = db[PLATFORM_ADMIN_COLLECTION].insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    @staticmethod
    def update_fields(db: Database, admin_id: ObjectId, fields: dict[str, Any]) -> Optional[dict]:
        return db[PLATFORM_ADMIN_COLLECTION].find_one_and_update(
            {"_id": admin_id, "deletedAt": None},
            {"$set": {**fields, "updatedAt": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
