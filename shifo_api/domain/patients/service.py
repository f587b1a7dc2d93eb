"""Patient service - Patient identity resolution and profile management"""

import logging

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from ... import config
from ...auth import issue_patient_token, token_expires_in
from ...errors import bad_request, unauthorized
from ...shared.documents import id_str, parse_object_id, to_iso, utcnow
from ...shared.validators import mask_phone
from . import google
from .repository import PatientRepository
from .schemas import AuthGoogleRequest, AuthPhoneRequest, CompleteProfileRequest, PatientUpdate

logger = logging.getLogger(__name__)

DEFAULT_AVATAR = "https://i.pravatar.cc/150?u=default"
DEFAULT_CITY = "Tashkent"


def public_patient(doc: dict) -> dict:
    return {
        "_id": id_str(doc["_id"]),
        "fullName": doc.get("fullName", ""),
        "gender": doc.get("gender"),
        "age": doc.get("age"),
        "avatarUrl": doc.get("avatarUrl") or DEFAULT_AVATAR,
        "contacts": doc.get("contacts"),
        "status": doc.get("status"),
        "location": doc.get("location"),
        "preferences": doc.get("preferences"),
        "auth": {"type": (doc.get("auth") or {}).get("type")},
        "createdAt": to_iso(doc.get("createdAt")),
        "updatedAt": to_iso(doc.get("updatedAt")),
    }


def _is_verified(claims: dict) -> bool:
    value = claims.get("email_verified")
    return value is True or str(value).lower() == "true"


class PatientService:
    """Service layer for patient identity and profile"""

    def __init__(self, db: Database):
        self.db = db
        self.repo = PatientRepository()

    @staticmethod
    def _ensure_active(patient: dict) -> None:
        if patient.get("status") != "active":
            logger.warning(f"🔒 Patient {patient['_id']} is {patient.get('status')}, login rejected")
            raise unauthorized("Account is not active")

    def _session(self, patient: dict, **extra) -> dict:
        self._ensure_active(patient)
        return {
            "token": issue_patient_token(str(patient["_id"])),
            "patient": public_patient(patient),
            "expiresIn": token_expires_in(),
            **extra,
        }

    # ========================================================================
    # AUTHENTICATION
    # ========================================================================

    def auth_google(self, data: AuthGoogleRequest) -> dict:
        """Resolve by Google subject, then by verified email (linking it), else create"""
        if not config.GOOGLE_CLIENT_ID:
            raise bad_request("Google sign-in is not configured")

        claims = google.verify_id_token(data.idToken, config.GOOGLE_CLIENT_ID)
        google_id = claims["sub"]
        email = (claims.get("email") or "").lower() or None
        name = claims.get("name") or ""
        picture = claims.get("picture")
        now = utcnow()

        patient = self.repo.find_by_google_id(self.db, google_id)
        if patient:
            self._ensure_active(patient)
            patient = self.repo.record_login(self.db, patient["_id"])
        elif email and _is_verified(claims) and (existing := self.repo.find_by_email(self.db, email)):
            self._ensure_active(existing)
            link = {
                "auth.googleId": google_id,
                "auth.email": email,
                "auth.lastLoginAt": now,
                "contacts.email": email,
            }
            if picture:
                link["avatarUrl"] = picture
            if name:
                link["fullName"] = name
            patient = self.repo.update_fields(self.db, existing["_id"], link)
            logger.info(f"🔗 Linked Google account to patient {existing['_id']}")
        else:
            patient = self.repo.insert_patient(
                self.db,
                {
                    "fullName": name or "User",
                    "gender": None,
                    "age": None,
                    "avatarUrl": picture,
                    "contacts": {"phone": "", "email": email, "telegram": None},
                    "status": "active",
                    "auth": {
                        "passwordHash": None,
                        "type": "google",
                        "googleId": google_id,
                        "email": email,
                        "lastLoginAt": now,
                    },
                    "location": {"city": DEFAULT_CITY},
                    "preferences": {"language": "uz", "notificationsEnabled": True},
                },
            )
            logger.info(f"👤 New Google patient {patient['_id']}")

        if not patient:
            raise unauthorized("Patient not found")
        return self._session(patient)

    def auth_phone(self, data: AuthPhoneRequest, language: str = "uz") -> dict:
        """Passwordless phone login; the first contact creates an empty profile"""
        patient = self.repo.find_by_phone(self.db, data.phone)
        if patient:
            self._ensure_active(patient)
            patient = self.repo.record_login(self.db, patient["_id"])
        else:
            try:
                patient = self.repo.insert_patient(
                    self.db,
                    {
                        "fullName": "",
                        "gender": None,
                        "age": None,
                        "avatarUrl": None,
                        "contacts": {"phone": data.phone, "email": None, "telegram": None},
                        "status": "active",
                        "auth": {"passwordHash": None, "type": "phone", "lastLoginAt": utcnow()},
                        "location": {"city": DEFAULT_CITY},
                        "preferences": {"language": language, "notificationsEnabled": True},
                    },
                )
                logger.info(f"👤 New phone patient {patient['_id']} ({mask_phone(data.phone)})")
            except DuplicateKeyError:
                # Lost a race with a concurrent first login for the same phone
                patient = self.repo.find_by_phone(self.db, data.phone)

        if not patient:
            raise unauthorized("Patient not found")
        return self._session(patient, needsProfile=not patient.get("fullName"))

    # ========================================================================
    # PROFILE
    # ========================================================================

    def get_active_patient(self, patient_id: str) -> dict:
        """Patient behind a token; missing or non-active accounts are rejected"""
        parsed = parse_object_id(patient_id)
        patient = self.repo.find_by_id(self.db, parsed) if parsed else None
        if not patient:
            raise unauthorized("Patient not found")
        if patient.get("status") != "active":
            raise unauthorized("Account is not active")
        return patient

    def get_me(self, patient: dict) -> dict:
        return public_patient(patient)

    def complete_profile(self, patient: dict, data: CompleteProfileRequest) -> dict:
        updated = self.repo.update_fields(
            self.db, patient["_id"], {"fullName": data.fullName, "gender": data.gender, "age": data.age}
        )
        if not updated:
            raise unauthorized("Patient not found")
        return public_patient(updated)

    def update_me(self, patient: dict, data: PatientUpdate) -> dict:
        updates = self.build_updates(data)
        if not updates:
            return public_patient(patient)

        updated = self.repo.update_fields(self.db, patient["_id"], updates)
        if not updated:
            raise unauthorized("Patient not found")
        return public_patient(updated)

    @staticmethod
    def build_updates(data: PatientUpdate) -> dict:
        """Translate a partial update into dotted $set fields

        Omitted fields are skipped. ``age``, ``avatarUrl``, ``contacts.email``
        and ``contacts.telegram`` may be cleared with null; the remaining
        fields ignore null.
        """
        fields_set = data.model_fields_set
        updates: dict = {}

        for field in ("fullName", "gender"):
            if field in fields_set and getattr(data, field) is not None:
                updates[field] = getattr(data, field)
        for field in ("age", "avatarUrl"):
            if field in fields_set:
                updates[field] = getattr(data, field)

        if data.contacts is not None:
            for field in data.contacts.model_fields_set:
                updates[f"contacts.{field}"] = getattr(data.contacts, field)
        if data.location is not None and data.location.city is not None:
            updates["location.city"] = data.location.city
        if data.preferences is not None:
            for field in data.preferences.model_fields_set:
                value = getattr(data.preferences, field)
                if value is not None:
                    updates[f"preferences.{field}"] = value

        return updates
