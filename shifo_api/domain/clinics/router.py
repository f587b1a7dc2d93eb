"""Clinic router - Clinic staff login and platform admin clinic management"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from ...auth import PlatformAdminPrincipal, get_client_ip, require_platform_admin
from ...rate_limiter import login_rate_limit
from ...shared.responses import ok
from . import doctor_router, owner_router
from .dependencies import get_clinic_service
from .schemas import ChangePlanRequest, ClinicCreate, LoginRequest
from .service import ClinicService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clinics", tags=["Clinics"])


# ============================================================================
# PUBLIC LOGIN
# ============================================================================


@router.post("/login", dependencies=[Depends(login_rate_limit)])
def login_clinic_staff(data: LoginRequest, request: Request, service: ClinicService = Depends(get_clinic_service)):
    """Clinic owner/admin login"""
    return ok(service.login_staff(data, get_client_ip(request)))


# Static paths must be registered before /{clinic_id}
router.include_router(owner_router.router)
router.include_router(doctor_router.router)


# ============================================================================
# PLATFORM ADMIN
# ============================================================================


@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_clinic(
    data: ClinicCreate,
    _: PlatformAdminPrincipal = Depends(require_platform_admin),
    service: ClinicService = Depends(get_clinic_service),
):
    return ok(service.create_clinic(data))


@router.post("/migrate-plan-limits")
def migrate_plan_limits(
    _: PlatformAdminPrincipal = Depends(require_platform_admin),
    service: ClinicService = Depends(get_clinic_service),
):
    """Rewrite every clinic's limits snapshot from the current plan table"""
    return ok(service.migrate_plan_limits())


@router.get("")
def list_clinics(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    _: PlatformAdminPrincipal = Depends(require_platform_admin),
    service: ClinicService = Depends(get_clinic_service),
):
    return ok(service.list_clinics(page, limit, search))


@router.get("/{clinic_id}")
def get_clinic(
    clinic_id: str,
    _: PlatformAdminPrincipal = Depends(require_platform_admin),
    service: ClinicService = Depends(get_clinic_service),
):
    return ok(service.get_clinic_details(clinic_id))


@router.patch("/{clinic_id}/stop")
def stop_clinic(
    clinic_id: str,
    _: PlatformAdminPrincipal = Depends(require_platform_admin),
    service: ClinicService = Depends(get_clinic_service),
):
    return ok(service.stop_clinic(clinic_id))


@router.patch("/{clinic_id}/activate")
def activate_clinic(
    clinic_id: str,
    _: PlatformAdminPrincipal = Depends(require_platform_admin),
    service: ClinicService = Depends(get_clinic_service),
):
    return ok(service.activate_clinic(clinic_id))


@router.patch("/{clinic_id}/plan")
def change_plan(
    clinic_id: str,
    data: ChangePlanRequest,
    _: PlatformAdminPrincipal = Depends(require_platform_admin),
    service: ClinicService = Depends(get_clinic_service),
):
    return ok(service.change_plan(clinic_id, data))


@router.delete("/{clinic_id}")
def delete_clinic(
    clinic_id: str,
    _: PlatformAdminPrincipal = Depends(require_platform_admin),
    service: ClinicService = Depends(get_clinic_service),
):
    """Hard delete; bookings that reference the clinic are left in place"""
    return ok(service.delete_clinic(clinic_id))
