"""Booking router - Patient booking endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pymongo.database import Database

from ...database import get_db
from ...shared.responses import ok
from ..patients.router import get_current_patient
from .schemas import BookingCancel, BookingCreate, BookingStatus
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(db: Database = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    patient: dict = Depends(get_current_patient),
    service: BookingService = Depends(get_booking_service),
):
    """Book a service at a clinic; the booking starts as pending"""
    return ok(service.create_booking(patient["_id"], data))


@router.get("/me")
def list_my_bookings(
    status: Optional[BookingStatus] = Query(None),
    patient: dict = Depends(get_current_patient),
    service: BookingService = Depends(get_booking_service),
):
    return ok(service.list_my_bookings(patient["_id"], status))


@router.get("/next-upcoming")
def get_next_upcoming(
    patient: dict = Depends(get_current_patient),
    service: BookingService = Depends(get_booking_service),
):
    """Earliest pending or confirmed booking that has not started yet, or null"""
    return ok(service.get_next_upcoming(patient["_id"]))


@router.get("/{booking_id}")
def get_booking(
    booking_id: str,
    patient: dict = Depends(get_current_patient),
    service: BookingService = Depends(get_booking_service),
):
    return ok(service.get_booking(booking_id, patient["_id"]))


@router.patch("/{booking_id}/cancel")
def cancel_booking(
    booking_id: str,
    data: Optional[BookingCancel] = None,
    patient: dict = Depends(get_current_patient),
    service: BookingService = Depends(get_booking_service),
):
    reason = data.reason if data else None
    return ok(service.cancel_booking(booking_id, patient["_id"], reason))
