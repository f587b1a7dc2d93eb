"""Patient router - FastAPI endpoints for patient auth and profile"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from pymongo.database import Database

from ...auth import PatientPrincipal, require_patient
from ...database import get_db
from ...rate_limiter import login_rate_limit
from ...shared.responses import ok
from ...shared.validators import normalize_language
from .schemas import AuthGoogleRequest, AuthPhoneRequest, CompleteProfileRequest, PatientUpdate
from .service import PatientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["Patients"])


def get_patient_service(db: Database = Depends(get_db)) -> PatientService:
    """Dependency injection for PatientService"""
    return PatientService(db)


def get_current_patient(
    principal: PatientPrincipal = Depends(require_patient),
    service: PatientService = Depends(get_patient_service),
) -> dict:
    """Patient document behind the bearer token; non-active accounts get 401"""
    return service.get_active_patient(principal.patient_id)


# ============================================================================
# AUTHENTICATION
# ============================================================================


@router.post("/auth/google", dependencies=[Depends(login_rate_limit)])
def auth_google(data: AuthGoogleRequest, service: PatientService = Depends(get_patient_service)):
    """Sign in with a Google ID token"""
    return ok(service.auth_google(data))


@router.post("/auth/phone", dependencies=[Depends(login_rate_limit)])
def auth_phone(
    data: AuthPhoneRequest,
    x_preferred_language: Optional[str] = Header(None),
    service: PatientService = Depends(get_patient_service),
):
    """Passwordless phone sign-in; creates the patient on first contact"""
    return ok(service.auth_phone(data, normalize_language(x_preferred_language)))


# ============================================================================
# PROFILE
# ============================================================================


@router.get("/me")
def get_me(
    patient: dict = Depends(get_current_patient),
    service: PatientService = Depends(get_patient_service),
):
    return ok(service.get_me(patient))


@router.patch("/me")
def update_me(
    data: PatientUpdate,
    patient: dict = Depends(get_current_patient),
    service: PatientService = Depends(get_patient_service),
):
    return ok(service.update_me(patient, data))


@router.post("/me/complete")
def complete_profile(
    data: CompleteProfileRequest,
    patient: dict = Depends(get_current_patient),
    service: PatientService = Depends(get_patient_service),
):
    """Fill in the profile left empty by phone sign-in"""
    return ok(service.complete_profile(patient, data))
