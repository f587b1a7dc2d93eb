"""Clinic staff router - Endpoints for a clinic owner/admin managing their own clinic"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ...auth import ClinicStaffPrincipal
from ...shared.responses import ok
from ..bookings.router import get_booking_service
from ..bookings.schemas import BookingStatus, BookingStatusUpdate
from ..bookings.service import BookingService
from .catalog import CatalogService
from .dependencies import (
    get_active_owner,
    get_active_staff,
    get_catalog_service,
    get_clinic_service,
    get_doctor_service,
)
from .doctors import DoctorService
from .schemas import (
    BranchCreate,
    BranchUpdate,
    CategoryCreate,
    CategoryUpdate,
    ClinicAdminCreate,
    ClinicInfoUpdate,
    DoctorCreate,
    DoctorUpdate,
    ServiceCreate,
    ServiceUpdate,
    StatusUpdate,
)
from .service import ClinicService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/my-clinic", tags=["My Clinic"])


# ============================================================================
# CLINIC
# ============================================================================


@router.get("")
def get_my_clinic(
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: ClinicService = Depends(get_clinic_service),
):
    """Full clinic aggregate of the signed-in owner/admin"""
    return ok(service.get_my_clinic(principal))


@router.patch("/info")
def update_my_clinic_info(
    data: ClinicInfoUpdate,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: ClinicService = Depends(get_clinic_service),
):
    return ok(service.update_info(principal.clinic_id, data))


@router.get("/plan")
def get_my_plan(
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: ClinicService = Depends(get_clinic_service),
):
    """Plan type, limits snapshot and current usage"""
    return ok(service.get_plan(principal))


# ============================================================================
# ADMINS (owner only)
# ============================================================================


@router.post("/admins", status_code=status.HTTP_201_CREATED)
def add_admin(
    data: ClinicAdminCreate,
    principal: ClinicStaffPrincipal = Depends(get_active_owner),
    service: ClinicService = Depends(get_clinic_service),
):
    return ok(service.add_admin(principal.clinic_id, data))


@router.delete("/admins/{owner_id}")
def remove_admin(
    owner_id: str,
    principal: ClinicStaffPrincipal = Depends(get_active_owner),
    service: ClinicService = Depends(get_clinic_service),
):
    return ok(service.remove_admin(principal.clinic_id, owner_id))


# ============================================================================
# BRANCHES
# ============================================================================


@router.post("/branches", status_code=status.HTTP_201_CREATED)
def add_branch(
    data: BranchCreate,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: ClinicService = Depends(get_clinic_service),
):
    return ok(service.add_branch(principal.clinic_id, data))


@router.patch("/branches/{branch_id}")
def update_branch(
    branch_id: str,
    data: BranchUpdate,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: ClinicService = Depends(get_clinic_service),
):
    return ok(service.update_branch(principal.clinic_id, branch_id, data))


@router.patch("/branches/{branch_id}/status")
def set_branch_status(
    branch_id: str,
    data: StatusUpdate,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: ClinicService = Depends(get_clinic_service),
):
    return ok(service.set_branch_status(principal.clinic_id, branch_id, data.isActive))


@router.delete("/branches/{branch_id}")
def remove_branch(
    branch_id: str,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: ClinicService = Depends(get_clinic_service),
):
    """Refused while doctors are still assigned to the branch"""
    return ok(service.remove_branch(principal.clinic_id, branch_id))


# ============================================================================
# DOCTORS
# ============================================================================


@router.post("/doctors", status_code=status.HTTP_201_CREATED)
def add_doctor(
    data: DoctorCreate,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: DoctorService = Depends(get_doctor_service),
):
    return ok(service.add_doctor(principal.clinic_id, data))


@router.patch("/doctors/{doctor_id}")
def update_doctor(
    doctor_id: str,
    data: DoctorUpdate,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: DoctorService = Depends(get_doctor_service),
):
    return ok(service.update_doctor(principal.clinic_id, doctor_id, data))


@router.patch("/doctors/{doctor_id}/status")
def set_doctor_status(
    doctor_id: str,
    data: StatusUpdate,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: DoctorService = Depends(get_doctor_service),
):
    return ok(service.set_doctor_status(principal.clinic_id, doctor_id, data.isActive))


@router.delete("/doctors/{doctor_id}")
def remove_doctor(
    doctor_id: str,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: DoctorService = Depends(get_doctor_service),
):
    return ok(service.remove_doctor(principal.clinic_id, doctor_id))


# ============================================================================
# CATEGORIES
# ============================================================================


@router.post("/categories", status_code=status.HTTP_201_CREATED)
def add_category(
    data: CategoryCreate,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: CatalogService = Depends(get_catalog_service),
):
    return ok(service.add_category(principal.clinic_id, data))


@router.patch("/categories/{category_id}")
def update_category(
    category_id: str,
    data: CategoryUpdate,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: CatalogService = Depends(get_catalog_service),
):
    return ok(service.update_category(principal.clinic_id, category_id, data))


@router.delete("/categories/{category_id}")
def remove_category(
    category_id: str,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: CatalogService = Depends(get_catalog_service),
):
    return ok(service.remove_category(principal.clinic_id, category_id))


# ============================================================================
# SERVICES
# ============================================================================


@router.post("/services", status_code=status.HTTP_201_CREATED)
def add_service(
    data: ServiceCreate,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: CatalogService = Depends(get_catalog_service),
):
    return ok(service.add_service(principal.clinic_id, data))


@router.patch("/services/{service_id}")
def update_service(
    service_id: str,
    data: ServiceUpdate,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: CatalogService = Depends(get_catalog_service),
):
    return ok(service.update_service(principal.clinic_id, service_id, data))


@router.patch("/services/{service_id}/status")
def set_service_status(
    service_id: str,
    data: StatusUpdate,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: CatalogService = Depends(get_catalog_service),
):
    return ok(service.set_service_status(principal.clinic_id, service_id, data.isActive))


@router.delete("/services/{service_id}")
def remove_service(
    service_id: str,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: CatalogService = Depends(get_catalog_service),
):
    return ok(service.remove_service(principal.clinic_id, service_id))


# ============================================================================
# BOOKINGS
# ============================================================================


@router.get("/bookings")
def list_clinic_bookings(
    status: Optional[BookingStatus] = Query(None),
    doctorId: Optional[str] = Query(None),
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: BookingService = Depends(get_booking_service),
):
    return ok(service.list_clinic_bookings(principal.clinic_id, status, doctorId))


@router.patch("/bookings/{booking_id}/status")
def set_booking_status(
    booking_id: str,
    data: BookingStatusUpdate,
    principal: ClinicStaffPrincipal = Depends(get_active_staff),
    service: BookingService = Depends(get_booking_service),
):
    """Confirm, complete (with price) or cancel a booking"""
    return ok(service.set_status(principal.clinic_id, booking_id, data))
