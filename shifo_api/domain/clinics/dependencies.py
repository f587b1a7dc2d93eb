"""Service factories and account guards shared by the clinic routers"""

from fastapi import Depends
from pymongo.database import Database

from ...auth import ClinicStaffPrincipal, DoctorPrincipal, require_clinic_staff, require_doctor
from ...database import get_db
from ...errors import forbidden, unauthorized
from ...shared.documents import parse_object_id
from .aggregate import find_item
from .catalog import CatalogService
from .doctors import DoctorService
from .repository import ClinicRepository
from .service import ClinicService


def get_clinic_service(db: Database = Depends(get_db)) -> ClinicService:
    """Dependency injection for ClinicService"""
    return ClinicService(db)


def get_doctor_service(db: Database = Depends(get_db)) -> DoctorService:
    return DoctorService(db)


def get_catalog_service(db: Database = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


# ============================================================================
# ACCOUNT GUARDS
# ============================================================================


def _active_clinic_member(db: Database, clinic_id: str, array: str, member_id: str) -> None:
    """Tokens outlive stops and removals; re-check the clinic and the account on every request"""
    parsed = parse_object_id(clinic_id)
    clinic = ClinicRepository.find_by_id(db, parsed) if parsed else None
    if not clinic or clinic.get("status") != "active":
        raise unauthorized("Clinic is not active")

    member = find_item(clinic, array, member_id)
    if member is None or not member.get("isActive"):
        raise unauthorized("Account is not active")


def get_active_staff(
    principal: ClinicStaffPrincipal = Depends(require_clinic_staff),
    db: Database = Depends(get_db),
) -> ClinicStaffPrincipal:
    _active_clinic_member(db, principal.clinic_id, "owners", principal.user_id)
    return principal


def get_active_owner(principal: ClinicStaffPrincipal = Depends(get_active_staff)) -> ClinicStaffPrincipal:
    if not principal.is_owner:
        raise forbidden("Clinic owner access required")
    return principal


def get_active_doctor(
    principal: DoctorPrincipal = Depends(require_doctor),
    db: Database = Depends(get_db),
) -> DoctorPrincipal:
    _active_clinic_member(db, principal.clinic_id, "doctors", principal.doctor_id)
    return principal
