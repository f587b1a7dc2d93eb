"""Platform admin service - Business logic for platform administrator accounts"""

import logging
from typing import Optional

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from ...auth import ROLE_PLATFORM_ADMIN, PlatformAdminPrincipal, Principal, issue_token, token_expires_in
from ...errors import conflict, forbidden, unauthorized
from ...security_utils import hash_password, verify_password
from ...shared.documents import id_str, parse_object_id, to_iso, utcnow
from .repository import AdminRepository
from .schemas import AdminCreate, AdminLogin, AdminProfileUpdate, ChangePasswordRequest

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


def public_admin(doc: dict) -> dict:
    security = doc.get("security") or {}
    return {
        "_id": id_str(doc["_id"]),
        "username": doc["username"],
        "displayName": doc.get("displayName"),
        "status": doc.get("status"),
        "role": doc.get("role"),
        "access": doc.get("access"),
        "lastLoginAt": to_iso(security.get("lastLoginAt")),
        "createdAt": to_iso(doc.get("createdAt")),
        "updatedAt": to_iso(doc.get("updatedAt")),
    }


class AdminService:
    """Service layer for platform admin operations"""

    def __init__(self, db: Database):
        self.db = db
        self.repo = AdminRepository()

    def _load(self, principal: PlatformAdminPrincipal) -> dict:
        admin_id = parse_object_id(principal.admin_id)
        admin = self.repo.find_by_id(self.db, admin_id) if admin_id else None
        if not admin:
            raise unauthorized("Admin not found")
        return admin

    def create_admin(self, data: AdminCreate, principal: Optional[Principal]) -> dict:
        """Create a platform admin

        The very first admin may be created without a token; after that
        only an existing platform admin can add more.
        """
        if self.repo.count_admins(self.db) > 0:
            if principal is None:
                raise unauthorized("Missing or invalid authorization header")
            if not isinstance(principal, PlatformAdminPrincipal):
                raise forbidden("Platform admin access required")

        if self.repo.find_by_username(self.db, data.username):
            raise conflict("Username already exists")

        now = utcnow()
        doc = {
            "username": data.username,
            "displayName": data.displayName,
            "status": "active",
            "role": ROLE_PLATFORM_ADMIN,
            "access": {"permissions": ["ALL"]},
            "security": {
                "passwordHash": hash_password(data.password),
                "passwordUpdatedAt": now,
                "lastLoginAt": None,
                "lastLoginIP": None,
            },
            "createdAt": now,
            "updatedAt": now,
            "deletedAt": None,
        }
        try:
            doc = self.repo.insert_admin(self.db, doc)
        except DuplicateKeyError as e:
            raise conflict("Username already exists") from e

        logger.info(f"👑 Platform admin created: {data.username}")
        return public_admin(doc)

    def login(self, data: AdminLogin, client_ip: Optional[str]) -> dict:
        admin = self.repo.find_by_username(self.db, data.username)
        if not admin or not verify_password(data.password, (admin.get("security") or {}).get("passwordHash")):
            logger.warning(f"🔒 Failed platform admin login for {data.username.lower()}")
            raise unauthorized(INVALID_CREDENTIALS)
        if admin.get("status") != "active":
            raise unauthorized("Account is not active")

        admin = self.repo.update_fields(
            self.db, admin["_id"], {"security.lastLoginAt": utcnow(), "security.lastLoginIP": client_ip}
        )
        if not admin:
            raise unauthorized(INVALID_CREDENTIALS)

        logger.info(f"✅ Platform admin logged in: {admin['username']}")
        return {
            "token": issue_token(str(admin["_id"]), ROLE_PLATFORM_ADMIN, admin["username"]),
            "admin": public_admin(admin),
            "expiresIn": token_expires_in(),
        }

    def get_me(self, principal: PlatformAdminPrincipal) -> dict:
        return public_admin(self._load(principal))

    def change_password(self, principal: PlatformAdminPrincipal, data: ChangePasswordRequest) -> dict:
        admin = self._load(principal)
        if not verify_password(data.currentPassword, (admin.get("security") or {}).get("passwordHash")):
            raise unauthorized("Current password is incorrect")

        self.repo.update_fields(
            self.db,
            admin["_id"],
            {"security.passwordHash": hash_password(data.newPassword), "security.passwordUpdatedAt": utcnow()},
        )
        logger.info(f"🔑 Password changed for platform admin {admin['username']}")
        return {"message": "Password changed successfully"}

    def update_profile(self, principal: PlatformAdminPrincipal, data: AdminProfileUpdate) -> dict:
        admin = self._load(principal)

        updates = {}
        if data.displayName is not None:
            updates["displayName"] = data.displayName
        if data.username is not None and data.username != admin["username"]:
            if self.repo.find_by_username(self.db, data.username):
                raise conflict("Username already exists")
            updates["username"] = data.username

        if not updates:
            return public_admin(admin)

        try:
            updated = self.repo.update_fields(self.db, admin["_id"], updates)
        except DuplicateKeyError as e:
            raise conflict("Username already exists") from e
        if not updated:
            raise unauthorized("Admin not found")
        return public_admin(updated)
