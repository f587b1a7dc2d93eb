"""Doctor router - Doctor login and self-service endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from ...auth import DoctorPrincipal, get_client_ip
from ...rate_limiter import login_rate_limit
from ...shared.responses import ok
from ..bookings.router import get_booking_service
from ..bookings.schemas import BookingStatus, BookingStatusUpdate
from ..bookings.service import BookingService
from .dependencies import get_active_doctor, get_doctor_service
from .doctors import DoctorService
from .schemas import DoctorSelfUpdate, LoginRequest, ScheduleUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doctors", tags=["Doctors"])


@router.post("/login", dependencies=[Depends(login_rate_limit)])
def login_doctor(data: LoginRequest, request: Request, service: DoctorService = Depends(get_doctor_service)):
    return ok(service.login_doctor(data, get_client_ip(request)))


@router.get("/me")
def get_my_profile(
    principal: DoctorPrincipal = Depends(get_active_doctor),
    service: DoctorService = Depends(get_doctor_service),
):
    """Own profile with its branch and services"""
    return ok(service.get_my_profile(principal))


@router.patch("/me")
def update_my_profile(
    data: DoctorSelfUpdate,
    principal: DoctorPrincipal = Depends(get_active_doctor),
    service: DoctorService = Depends(get_doctor_service),
):
    return ok(service.update_my_profile(principal, data))


@router.patch("/me/schedule")
def update_my_schedule(
    data: ScheduleUpdate,
    principal: DoctorPrincipal = Depends(get_active_doctor),
    service: DoctorService = Depends(get_doctor_service),
):
    return ok(service.update_my_schedule(principal, data))


@router.get("/me/bookings")
def list_my_bookings(
    status: Optional[BookingStatus] = Query(None),
    principal: DoctorPrincipal = Depends(get_active_doctor),
    service: BookingService = Depends(get_booking_service),
):
    return ok(service.list_clinic_bookings(principal.clinic_id, status, principal.doctor_id))


@router.patch("/me/bookings/{booking_id}/status")
def set_my_booking_status(
    booking_id: str,
    data: BookingStatusUpdate,
    principal: DoctorPrincipal = Depends(get_active_doctor),
    service: BookingService = Depends(get_booking_service),
):
    """Status change on a booking assigned to the signed-in doctor"""
    return ok(service.set_status(principal.clinic_id, booking_id, data, doctor_id=principal.doctor_id))
