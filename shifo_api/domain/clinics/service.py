"""Clinic service - Business logic for the clinic aggregate, its owners and branches"""

import logging
import math
from typing import Optional

from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from ...auth import ClinicStaffPrincipal, issue_token, token_expires_in
from ...errors import conflict, unauthorized
from ...security_utils import hash_password, verify_password
from ...shared.documents import to_public, utcnow
from .aggregate import load_clinic, require_item
from .mappers import detailed_clinic, public_branch, public_clinic, public_owner
from .plans import PLAN_LIMITS, get_plan_limits, limit_reached_message
from .repository import ClinicRepository
from .schemas import (
    Branding,
    BranchCreate,
    BranchUpdate,
    ChangePlanRequest,
    ClinicAdminCreate,
    ClinicCreate,
    ClinicInfoUpdate,
    Contacts,
    Description,
    LoginRequest,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"

INFO_SECTIONS = {"branding": Branding, "contacts": Contacts, "description": Description}


def new_security(password: str) -> dict:
    now = utcnow()
    return {
        "passwordHash": hash_password(password),
        "passwordUpdatedAt": now,
        "lastLoginAt": None,
        "lastLoginIP": None,
    }


class ClinicService:
    """Service layer for clinic lifecycle, staff and branch operations"""

    def __init__(self, db: Database):
        self.db = db
        self.repo = ClinicRepository()

    # ========================================================================
    # PLATFORM ADMIN: CLINIC LIFECYCLE
    # ========================================================================

    def create_clinic(self, data: ClinicCreate) -> dict:
        """Create a clinic with exactly one owner and an empty aggregate"""
        unique_name = data.clinicUniqueName.lower()
        owner_username = data.ownerUserName.lower()

        if self.repo.find_by_unique_name(self.db, unique_name):
            raise conflict("Clinic unique name already exists")
        if self.repo.find_owner_by_username(self.db, owner_username):
            raise conflict("Owner username already exists")

        now = utcnow()
        owner = {
            "_id": ObjectId(),
            "adminId": None,
            "role": "owner",
            "userName": owner_username,
            "displayName": data.ownerDisplayName,
            "security": new_security(data.ownerPassword),
            "addedAt": now,
            "removedAt": None,
            "isActive": True,
        }
        doc = {
            "clinicDisplayName": data.clinicDisplayName,
            "clinicUniqueName": unique_name,
            "status": "active",
            "category": [],
            "branding": {"logoUrl": None, "coverUrl": None},
            "contacts": {"phone": None, "email": None, "telegram": None},
            "description": {"short": None, "full": None},
            "plan": {"type": data.plan, "startedAt": now, "expiresAt": None, "limits": get_plan_limits(data.plan)},
            "ranking": {"score": 0, "boosted": False, "updatedAt": now},
            "rating": {"avg": 0, "count": 0},
            "owners": [owner],
            "branches": [],
            "services": [],
            "doctors": [],
            "categories": [],
            "stats": {
                "branchesCount": 0,
                "servicesCount": 0,
                "doctorsCount": 0,
                "adminsCount": 1,
                "bookingsTotal": 0,
                "completedBookings": 0,
                "updatedAt": now,
            },
            "createdAt": now,
            "updatedAt": now,
            "deletedAt": None,
        }

        try:
            doc = self.repo.insert_clinic(self.db, doc)
        except DuplicateKeyError as e:
            # A stopped clinic keeps its unique name in the index
            raise conflict("Clinic unique name already exists") from e

        logger.info(f"🏥 Clinic created: {unique_name} (plan={data.plan}, owner={owner_username})")
        return public_clinic(doc)

    def list_clinics(self, page: int = 1, limit: int = 100, search: Optional[str] = None) -> dict:
        skip = (page - 1) * limit
        clinics = self.repo.list_clinics(self.db, skip, limit, search)
        total = self.repo.count_clinics(self.db, search)
        return {
            "clinics": [public_clinic(c) for c in clinics],
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit) if limit else 0,
        }

    def get_clinic_details(self, clinic_id: str) -> dict:
        return detailed_clinic(load_clinic(self.db, clinic_id))

    def stop_clinic(self, clinic_id: str) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        self.repo.update_fields(self.db, clinic["_id"], {"status": "inactive", "deletedAt": utcnow()})
        logger.info(f"⏸️ Clinic stopped: {clinic['clinicUniqueName']}")
        return {"message": "Clinic stopped successfully"}

    def activate_clinic(self, clinic_id: str) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        self.repo.update_fields(self.db, clinic["_id"], {"status": "active", "deletedAt": None})
        logger.info(f"▶️ Clinic activated: {clinic['clinicUniqueName']}")
        return {"message": "Clinic activated successfully"}

    def delete_clinic(self, clinic_id: str) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        self.repo.delete_clinic(self.db, clinic["_id"])
        logger.warning(f"🗑️ Clinic permanently deleted: {clinic['clinicUniqueName']}")
        return {"message": "Clinic permanently deleted"}

    def change_plan(self, clinic_id: str, data: ChangePlanRequest) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        limits = get_plan_limits(data.plan)
        self.repo.update_fields(self.db, clinic["_id"], {"plan.type": data.plan, "plan.limits": limits})
        logger.info(f"📦 Clinic {clinic['clinicUniqueName']} plan changed to {data.plan}")
        return {"message": "Plan updated successfully", "plan": data.plan, "limits": limits}

    def migrate_plan_limits(self) -> dict:
        """Rewrite every clinic's limits snapshot from the current tier table"""
        updated = sum(self.repo.set_all_plan_limits(self.db, plan, dict(limits)) for plan, limits in PLAN_LIMITS.items())
        logger.info(f"📦 Plan limits migration updated {updated} clinic(s)")
        return {"message": f"Successfully updated {updated} clinic(s) with new plan limits", "updated": updated}

    # ========================================================================
    # CLINIC STAFF: LOGIN & OWN CLINIC
    # ========================================================================

    def login_staff(self, data: LoginRequest, client_ip: Optional[str]) -> dict:
        found = self.repo.find_owner_by_username(self.db, data.username)
        if not found:
            raise unauthorized(INVALID_CREDENTIALS)
        clinic, owner = found

        if not verify_password(data.password, (owner.get("security") or {}).get("passwordHash")):
            logger.warning(f"🔒 Failed clinic login for {owner['userName']}")
            raise unauthorized(INVALID_CREDENTIALS)
        if not owner.get("isActive"):
            raise unauthorized("Account is not active")
        if clinic.get("status") != "active":
            raise unauthorized("Clinic is not active")

        self.repo.record_owner_login(self.db, clinic["_id"], owner["_id"], client_ip)

        clinic_id = str(clinic["_id"])
        token = issue_token(str(owner["_id"]), f"clinic_{owner['role']}", owner["userName"], clinic_id)
        logger.info(f"✅ Clinic {owner['role']} logged in: {owner['userName']}")
        return {
            "token": token,
            "owner": {
                "_id": str(owner["_id"]),
                "userName": owner["userName"],
                "displayName": owner.get("displayName"),
                "role": owner["role"],
                "clinicId": clinic_id,
                "clinicDisplayName": clinic.get("clinicDisplayName"),
            },
            "expiresIn": token_expires_in(),
        }

    def get_my_clinic(self, principal: ClinicStaffPrincipal) -> dict:
        return detailed_clinic(load_clinic(self.db, principal.clinic_id))

    def get_plan(self, principal: ClinicStaffPrincipal) -> dict:
        clinic = load_clinic(self.db, principal.clinic_id)
        plan = clinic.get("plan") or {}
        return {
            "plan": to_public(plan),
            "usage": {
                "branches": len(clinic.get("branches", [])),
                "services": len(clinic.get("services", [])),
                "admins": len(clinic.get("owners", [])),
                "doctors": len(clinic.get("doctors", [])),
            },
        }

    def update_info(self, clinic_id: str, data: ClinicInfoUpdate) -> dict:
        """Partial update of branding/contacts/description

        Omitted sections are untouched. A section sent as null is reset;
        inside a section only the keys that were sent are written.
        """
        clinic = load_clinic(self.db, clinic_id)
        updates = {}
        for section in INFO_SECTIONS:
            if section not in data.model_fields_set:
                continue
            value = getattr(data, section)
            if value is None:
                updates[section] = {key: None for key in INFO_SECTIONS[section].model_fields}
                continue
            for key in value.model_fields_set:
                updates[f"{section}.{key}"] = getattr(value, key)

        if not updates:
            return {"message": "No updates"}

        self.repo.update_fields(self.db, clinic["_id"], updates)
        return {"message": "Clinic info updated successfully"}

    # ========================================================================
    # CLINIC ADMINS (owner only)
    # ========================================================================

    def add_admin(self, clinic_id: str, data: ClinicAdminCreate) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        username = data.userName.lower()

        if self.repo.find_owner_by_username(self.db, username):
            raise conflict("Username already exists")

        plan = clinic.get("plan") or {}
        max_admins = (plan.get("limits") or {}).get("maxAdmins", 0)
        if len(clinic.get("owners", [])) >= max_admins:
            raise conflict(limit_reached_message("Admin", "admin(s)", plan.get("type"), max_admins))

        admin = {
            "_id": ObjectId(),
            "adminId": None,
            "role": "admin",
            "userName": username,
            "displayName": data.displayName,
            "security": new_security(data.password),
            "addedAt": utcnow(),
            "removedAt": None,
            "isActive": True,
        }
        self.repo.push_item(self.db, clinic, "owners", admin)
        logger.info(f"👤 Clinic admin {username} added to {clinic['clinicUniqueName']}")
        return {"message": "Admin added successfully", "admin": public_owner(admin)}

    def remove_admin(self, clinic_id: str, owner_id: str) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        entry = require_item(clinic, "owners", owner_id, "Admin not found")
        if entry.get("role") == "owner":
            raise conflict("The clinic owner cannot be removed")

        owners = [o for o in clinic["owners"] if o["_id"] != entry["_id"]]
        self.repo.replace_arrays(self.db, clinic["_id"], {"owners": owners})
        return {"message": "Admin removed successfully"}

    # ========================================================================
    # BRANCHES
    # ========================================================================

    def add_branch(self, clinic_id: str, data: BranchCreate) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        plan = clinic.get("plan") or {}
        max_branches = (plan.get("limits") or {}).get("maxBranches", 0)
        if len(clinic.get("branches", [])) >= max_branches:
            raise conflict(limit_reached_message("Branch", "branch(es)", plan.get("type"), max_branches))

        now = utcnow()
        branch = {
            "_id": ObjectId(),
            "name": data.name,
            "phone": data.phone,
            "address": data.address.model_dump(),
            "workingHours": [wh.model_dump(by_alias=True) for wh in data.workingHours],
            "isActive": True,
            "createdAt": now,
            "updatedAt": now,
        }
        self.repo.push_item(self.db, clinic, "branches", branch)
        return {"message": "Branch created successfully", "branch": public_branch(branch)}

    def update_branch(self, clinic_id: str, branch_id: str, data: BranchUpdate) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        branch = require_item(clinic, "branches", branch_id, "Branch not found")

        updates = {k: v for k, v in data.model_dump(exclude_unset=True, by_alias=True).items() if v is not None}
        if not updates:
            return {"message": "No changes"}

        self.repo.update_item(self.db, clinic["_id"], "branches", branch["_id"], updates)
        return {"message": "Branch updated successfully"}

    def set_branch_status(self, clinic_id: str, branch_id: str, is_active: bool) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        branch = require_item(clinic, "branches", branch_id, "Branch not found")
        self.repo.update_item(self.db, clinic["_id"], "branches", branch["_id"], {"isActive": is_active})
        return {"message": "Branch activated" if is_active else "Branch set inactive"}

    def remove_branch(self, clinic_id: str, branch_id: str) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        branch = require_item(clinic, "branches", branch_id, "Branch not found")
        bid = branch["_id"]

        assigned = [d for d in clinic.get("doctors", []) if bid in d.get("branchIds", [])]
        if assigned:
            raise conflict(
                f"Cannot delete a branch with {len(assigned)} assigned doctor(s). Move or remove them first."
            )

        branches = [b for b in clinic["branches"] if b["_id"] != bid]
        services = [
            {**s, "branchIds": [i for i in s.get("branchIds", []) if i != bid]} for s in clinic.get("services", [])
        ]
        self.repo.replace_arrays(self.db, clinic["_id"], {"branches": branches, "services": services})
        logger.info(f"🗑️ Branch {bid} removed from {clinic['clinicUniqueName']}")
        return {"message": "Branch deleted successfully"}

