"""Platform admin router - FastAPI endpoints for platform administrators"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from pymongo.database import Database

from ...auth import PlatformAdminPrincipal, Principal, get_client_ip, get_optional_principal, require_platform_admin
from ...database import get_db
from ...rate_limiter import login_rate_limit
from ...shared.responses import ok
from .schemas import AdminCreate, AdminLogin, AdminProfileUpdate, ChangePasswordRequest
from .service import AdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Platform Admin"])


def get_admin_service(db: Database = Depends(get_db)) -> AdminService:
    """Dependency injection for AdminService"""
    return AdminService(db)


@router.post("/createAdmin", status_code=status.HTTP_201_CREATED)
def create_admin(
    data: AdminCreate,
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: AdminService = Depends(get_admin_service),
):
    """Create a platform admin (open only until the first admin exists)"""
    return ok(service.create_admin(data, principal))


@router.post("/loginAdmin", dependencies=[Depends(login_rate_limit)])
def login_admin(data: AdminLogin, request: Request, service: AdminService = Depends(get_admin_service)):
    return ok(service.login(data, get_client_ip(request)))


@router.post("/changePassword")
def change_password(
    data: ChangePasswordRequest,
    principal: PlatformAdminPrincipal = Depends(require_platform_admin),
    service: AdminService = Depends(get_admin_service),
):
    return ok(service.change_password(principal, data))


@router.patch("/updateProfile")
def update_profile(
    data: AdminProfileUpdate,
    principal: PlatformAdminPrincipal = Depends(require_platform_admin),
    service: AdminService = Depends(get_admin_service),
):
    return ok(service.update_profile(principal, data))


@router.get("/me")
def get_me(
    principal: PlatformAdminPrincipal = Depends(require_platform_admin),
    service: AdminService = Depends(get_admin_service),
):
    return ok(service.get_me(principal))
