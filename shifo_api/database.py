import logging

from fastapi import Request
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import OperationFailure

from .config import MONGODB_DB_NAME, MONGODB_SERVER_SELECTION_TIMEOUT_MS, MONGODB_URI

logger = logging.getLogger(__name__)

# Collection names are part of the storage contract
PLATFORM_ADMIN_COLLECTION = "platform_admin"
CLINICS_COLLECTION = "clinics"
PATIENTS_COLLECTION = "patients"
BOOKINGS_COLLECTION = "bookings"


def connect(uri: str = MONGODB_URI, db_name: str = MONGODB_DB_NAME) -> tuple[MongoClient, Database]:
    """Create the single client (connection pool) used for the app lifetime"""
    client = MongoClient(uri, serverSelectionTimeoutMS=MONGODB_SERVER_SELECTION_TIMEOUT_MS, tz_aware=False)
    db = client[db_name]
    logger.info(f"✅ MongoDB client created for database '{db_name}'")
    return client, db


def get_db(request: Request) -> Database:
    """Dependency returning the database handle attached to the app at startup"""
    return request.app.state.db


def create_indexes(db: Database) -> None:
    """Create indexes required for uniqueness and common queries"""
    specs = {
        PLATFORM_ADMIN_COLLECTION: [
            ([("username", ASCENDING)], {"unique": True}),
            ([("status", ASCENDING)], {}),
            ([("security.lastLoginAt", DESCENDING)], {}),
            ([("deletedAt", ASCENDING)], {}),
        ],
        CLINICS_COLLECTION: [
            ([("clinicUniqueName", ASCENDING)], {"unique": True}),
            ([("owners.userName", ASCENDING)], {}),
            ([("doctors.username", ASCENDING)], {}),
            ([("status", ASCENDING)], {}),
            ([("createdAt", DESCENDING)], {}),
            ([("deletedAt", ASCENDING)], {}),
        ],
        PATIENTS_COLLECTION: [
            # Google-only accounts carry an empty phone, so uniqueness applies to non-empty values
            (
                [("contacts.phone", ASCENDING)],
                {"unique": True, "partialFilterExpression": {"contacts.phone": {"$gt": ""}}},
            ),
            ([("contacts.email", ASCENDING)], {"sparse": True}),
            ([("auth.googleId", ASCENDING)], {"sparse": True}),
        ],
        BOOKINGS_COLLECTION: [
            ([("clinicId", ASCENDING), ("scheduledAt", DESCENDING)], {}),
            ([("userId", ASCENDING), ("scheduledAt", DESCENDING)], {}),
        ],
    }

    for collection_name, indexes in specs.items():
        collection = db[collection_name]
        for keys, options in indexes:
            try:
                collection.create_index(keys, **options)
            except OperationFailure as e:
                # Another worker may have created the same index with different options
                if "already exists" in str(e) or "duplicate" in str(e):
                    logger.info(f"Index on {collection_name} {keys} already exists")
                else:
                    raise
        logger.info(f"📊 Indexes ensured for '{collection_name}'")
