"""Doctor service - Doctors inside the clinic aggregate and doctor self-service"""

import logging
from typing import Any, Optional

from bson import ObjectId
from pymongo.database import Database

from ...auth import ROLE_DOCTOR, DoctorPrincipal, issue_token, token_expires_in
from ...errors import conflict, not_found, unauthorized
from ...security_utils import hash_password, verify_password
from ...shared.documents import utcnow
from .aggregate import find_item, load_clinic, require_item
from .mappers import public_branch, public_doctor, public_service
from .repository import ClinicRepository
from .schemas import DoctorCreate, DoctorSelfUpdate, DoctorUpdate, LoginRequest, ScheduleUpdate
from .service import INVALID_CREDENTIALS, new_security

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Tashkent"


class DoctorService:
    """Service layer for doctor operations"""

    def __init__(self, db: Database):
        self.db = db
        self.repo = ClinicRepository()

    def _ensure_username_free(self, username: str, exclude_doctor_id: Optional[ObjectId] = None) -> None:
        # Read-then-write check across every clinic; two concurrent requests can both pass
        if self.repo.find_doctor_by_username(self.db, username, exclude_doctor_id):
            raise conflict("Username already exists")

    def _profile_updates(self, data, doctor: dict) -> dict[str, Any]:
        """Shared field handling for owner-driven and self-service updates"""
        updates: dict[str, Any] = {}
        for field in ("fullName", "specialty", "bio"):
            value = getattr(data, field)
            if value is not None:
                updates[field] = value
        if data.username is not None:
            username = data.username.lower()
            self._ensure_username_free(username, exclude_doctor_id=doctor["_id"])
            updates["username"] = username
        if data.password is not None:
            updates["security"] = {
                **(doctor.get("security") or {}),
                "passwordHash": hash_password(data.password),
                "passwordUpdatedAt": utcnow(),
            }
        return updates

    # ========================================================================
    # CLINIC STAFF OPERATIONS
    # ========================================================================

    def add_doctor(self, clinic_id: str, data: DoctorCreate) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        if not clinic.get("branches"):
            raise conflict("Cannot create a doctor without an existing branch. Create a branch first.")

        username = data.username.lower()
        self._ensure_username_free(username)
        branch = require_item(clinic, "branches", data.branchId, "Branch not found")

        now = utcnow()
        doctor = {
            "_id": ObjectId(),
            "fullName": data.fullName,
            "username": username,
            "security": new_security(data.password),
            "specialty": data.specialty,
            "bio": data.bio,
            "avatarUrl": None,
            "serviceIds": [],
            "branchIds": [branch["_id"]],
            "isActive": True,
            "schedule": {"timezone": DEFAULT_TIMEZONE, "weekly": []},
            "createdAt": now,
            "updatedAt": now,
        }
        self.repo.push_item(self.db, clinic, "doctors", doctor)
        logger.info(f"🩺 Doctor {username} added to {clinic['clinicUniqueName']}")
        return {"message": "Doctor created successfully", "doctor": public_doctor(doctor)}

    def update_doctor(self, clinic_id: str, doctor_id: str, data: DoctorUpdate) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        doctor = require_item(clinic, "doctors", doctor_id, "Doctor not found")

        updates = self._profile_updates(data, doctor)
        if data.branchId is not None:
            branch = require_item(clinic, "branches", data.branchId, "Branch not found")
            updates["branchIds"] = [branch["_id"]]

        if not updates:
            return {"message": "No changes"}

        self.repo.update_item(self.db, clinic["_id"], "doctors", doctor["_id"], updates)
        return {"message": "Doctor updated successfully"}

    def set_doctor_status(self, clinic_id: str, doctor_id: str, is_active: bool) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        doctor = require_item(clinic, "doctors", doctor_id, "Doctor not found")
        self.repo.update_item(self.db, clinic["_id"], "doctors", doctor["_id"], {"isActive": is_active})
        return {"message": "Doctor activated" if is_active else "Doctor set inactive"}

    def remove_doctor(self, clinic_id: str, doctor_id: str) -> dict:
        """Remove a doctor and drop it from every service's doctorIds in the same update"""
        clinic = load_clinic(self.db, clinic_id)
        doctor = require_item(clinic, "doctors", doctor_id, "Doctor not found")
        did = doctor["_id"]

        doctors = [d for d in clinic["doctors"] if d["_id"] != did]
        services = [
            {**s, "doctorIds": [i for i in s.get("doctorIds", []) if i != did]} for s in clinic.get("services", [])
        ]
        self.repo.replace_arrays(self.db, clinic["_id"], {"doctors": doctors, "services": services})
        logger.info(f"🗑️ Doctor {doctor['username']} removed from {clinic['clinicUniqueName']}")
        return {"message": "Doctor deleted successfully"}

    # ========================================================================
    # DOCTOR LOGIN & SELF-SERVICE
    # ========================================================================

    def login_doctor(self, data: LoginRequest, client_ip: Optional[str]) -> dict:
        found = self.repo.find_doctor_by_username(self.db, data.username)
        if not found:
            raise unauthorized(INVALID_CREDENTIALS)
        clinic, doctor = found

        if not verify_password(data.password, (doctor.get("security") or {}).get("passwordHash")):
            logger.warning(f"🔒 Failed doctor login for {doctor['username']}")
            raise unauthorized(INVALID_CREDENTIALS)
        if not doctor.get("isActive"):
            raise unauthorized("Account is not active")
        if clinic.get("status") != "active":
            raise unauthorized("Clinic is not active")

        self.repo.record_doctor_login(self.db, clinic["_id"], doctor["_id"], client_ip)

        clinic_id = str(clinic["_id"])
        token = issue_token(str(doctor["_id"]), ROLE_DOCTOR, doctor["username"], clinic_id)
        logger.info(f"✅ Doctor logged in: {doctor['username']}")
        return {
            "token": token,
            "doctor": {
                "_id": str(doctor["_id"]),
                "fullName": doctor.get("fullName"),
                "username": doctor["username"],
                "specialty": doctor.get("specialty"),
                "clinicId": clinic_id,
                "clinicDisplayName": clinic.get("clinicDisplayName"),
            },
            "expiresIn": token_expires_in(),
        }

    def _load_self(self, principal: DoctorPrincipal) -> tuple[dict, dict]:
        clinic = load_clinic(self.db, principal.clinic_id)
        doctor = find_item(clinic, "doctors", principal.doctor_id)
        if doctor is None:
            raise not_found("Doctor not found")
        return clinic, doctor

    def get_my_profile(self, principal: DoctorPrincipal) -> dict:
        """Doctor profile with its branch and services; assignments are read-only here"""
        clinic, doctor = self._load_self(principal)
        branch_ids = set(doctor.get("branchIds", []))
        service_ids = set(doctor.get("serviceIds", []))
        return {
            "doctor": public_doctor(doctor),
            "clinic": {
                "_id": str(clinic["_id"]),
                "clinicDisplayName": clinic.get("clinicDisplayName"),
                "clinicUniqueName": clinic.get("clinicUniqueName"),
            },
            "branches": [public_branch(b) for b in clinic.get("branches", []) if b["_id"] in branch_ids],
            "services": [public_service(s) for s in clinic.get("services", []) if s["_id"] in service_ids],
        }

    def update_my_profile(self, principal: DoctorPrincipal, data: DoctorSelfUpdate) -> dict:
        clinic, doctor = self._load_self(principal)
        updates = self._profile_updates(data, doctor)
        if "avatarUrl" in data.model_fields_set:
            updates["avatarUrl"] = data.avatarUrl

        if not updates:
            return {"message": "No changes"}

        self.repo.update_item(self.db, clinic["_id"], "doctors", doctor["_id"], updates)
        return {"message": "Profile updated successfully"}

    def update_my_schedule(self, principal: DoctorPrincipal, data: ScheduleUpdate) -> dict:
        clinic, doctor = self._load_self(principal)

        weekly = []
        for day in data.weekly:
            entry = {"day": day.day, "from": day.from_, "to": day.to}
            # A lunch window needs both ends
            if day.lunchFrom and day.lunchTo:
                entry["lunchFrom"] = day.lunchFrom
                entry["lunchTo"] = day.lunchTo
            weekly.append(entry)

        schedule = {"timezone": data.timezone, "weekly": weekly}
        self.repo.update_item(self.db, clinic["_id"], "doctors", doctor["_id"], {"schedule": schedule})
        return {"message": "Schedule updated successfully", "schedule": schedule}
