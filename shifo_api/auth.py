import logging
from dataclasses import dataclass
from typing import Optional, Union

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import JWT_EXPIRES_IN
from .errors import forbidden, unauthorized
from .security_utils import InvalidToken, create_access_token, decode_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# The only role strings ever written into tokens
ROLE_PLATFORM_ADMIN = "SUPER_ADMIN_SHIFO"
ROLE_CLINIC_OWNER = "clinic_owner"
ROLE_CLINIC_ADMIN = "clinic_admin"
ROLE_DOCTOR = "doctor"
ROLE_PATIENT = "patient"

CLINIC_STAFF_ROLES = (ROLE_CLINIC_OWNER, ROLE_CLINIC_ADMIN)


@dataclass(frozen=True)
class PlatformAdminPrincipal:
    admin_id: str
    username: str = ""


@dataclass(frozen=True)
class ClinicStaffPrincipal:
    user_id: str
    clinic_id: str
    role: str
    username: str = ""

    @property
    def is_owner(self) -> bool:
        return self.role == ROLE_CLINIC_OWNER


@dataclass(frozen=True)
class DoctorPrincipal:
    doctor_id: str
    clinic_id: str
    username: str = ""


@dataclass(frozen=True)
class PatientPrincipal:
    patient_id: str


Principal = Union[PlatformAdminPrincipal, ClinicStaffPrincipal, DoctorPrincipal, PatientPrincipal]


# ============================================================================
# TOKEN ISSUE / VERIFY
# ============================================================================


def issue_token(subject_id: str, role: str, username: str = "", clinic_id: Optional[str] = None) -> str:
    """Issue a signed bearer token for a staff or admin principal"""
    claims = {"sub": subject_id, "role": role}
    if username:
        claims["username"] = username
    if clinic_id:
        claims["clinicId"] = clinic_id
    return create_access_token(claims)


def issue_patient_token(patient_id: str) -> str:
    """Patient tokens always carry the fixed patient role and no tenant"""
    return create_access_token({"sub": patient_id, "role": ROLE_PATIENT})


def token_expires_in() -> str:
    return JWT_EXPIRES_IN


def decode_principal(token: str) -> Principal:
    """Verify a token and decide the principal variant from its role claim"""
    claims = decode_access_token(token)
    subject = claims.get("sub")
    role = claims.get("role")
    clinic_id = claims.get("clinicId")
    username = claims.get("username", "")

    if not subject or not role:
        raise InvalidToken("Token is missing subject or role")

    if role == ROLE_PLATFORM_ADMIN:
        return PlatformAdminPrincipal(admin_id=subject, username=username)
    if role in CLINIC_STAFF_ROLES:
        if not clinic_id:
            raise InvalidToken("Clinic token is missing clinicId")
        return ClinicStaffPrincipal(user_id=subject, clinic_id=clinic_id, role=role, username=username)
    if role == ROLE_DOCTOR:
        if not clinic_id:
            raise InvalidToken("Doctor token is missing clinicId")
        return DoctorPrincipal(doctor_id=subject, clinic_id=clinic_id, username=username)
    if role == ROLE_PATIENT:
        return PatientPrincipal(patient_id=subject)

    raise InvalidToken(f"Unknown role: {role}")


# ============================================================================
# ROUTE DEPENDENCIES
# ============================================================================


def get_optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Principal]:
    """Resolve the principal when a bearer token is present, else None"""
    if credentials is None:
        return None
    try:
        return decode_principal(credentials.credentials)
    except InvalidToken as e:
        logger.warning(f"❌ Token verification failed: {e}")
        raise unauthorized("Invalid or expired token") from e


def get_current_principal(principal: Optional[Principal] = Depends(get_optional_principal)) -> Principal:
    if principal is None:
        raise unauthorized("Missing or invalid authorization header")
    return principal


def require_platform_admin(principal: Principal = Depends(get_current_principal)) -> PlatformAdminPrincipal:
    if not isinstance(principal, PlatformAdminPrincipal):
        raise forbidden("Platform admin access required")
    return principal


def require_clinic_staff(principal: Principal = Depends(get_current_principal)) -> ClinicStaffPrincipal:
    if not isinstance(principal, ClinicStaffPrincipal):
        raise forbidden("Clinic owner or admin access required")
    return principal


def require_doctor(principal: Principal = Depends(get_current_principal)) -> DoctorPrincipal:
    if not isinstance(principal, DoctorPrincipal):
        raise forbidden("Doctor access required")
    return principal


def require_patient(principal: Principal = Depends(get_current_principal)) -> PatientPrincipal:
    if not isinstance(principal, PatientPrincipal):
        raise forbidden("Patient access required")
    return principal


def get_client_ip(request: Request) -> Optional[str]:
    """Client IP from proxy headers, falling back to the socket peer"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None
