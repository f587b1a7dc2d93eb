"""Booking service - Business logic for the booking lifecycle"""

import logging
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from bson import ObjectId
from pymongo.database import Database

from ...config import CLINIC_TIMEZONE
from ...errors import conflict, not_found, validation_error
from ...shared.documents import id_str, oid, parse_object_id, to_iso, utcnow
from ..clinics.aggregate import find_item
from ..clinics.repository import ClinicRepository
from .repository import ACTIVE_STATUSES, BookingRepository
from .schemas import BookingCreate, BookingStatusUpdate

logger = logging.getLogger(__name__)

# Target status -> statuses it may be reached from
TRANSITIONS = {
    "confirmed": ["pending"],
    "completed": ["confirmed"],
    "cancelled": ACTIVE_STATUSES,
}


def combine_schedule(scheduled_date: str, scheduled_time: str, tz_name: str = CLINIC_TIMEZONE) -> datetime:
    """Local clinic date + HH:MM -> naive UTC instant"""
    try:
        local = datetime.strptime(f"{scheduled_date} {scheduled_time}", "%Y-%m-%d %H:%M")
    except ValueError as e:
        raise validation_error("Invalid scheduled date or time") from e
    return local.replace(tzinfo=ZoneInfo(tz_name)).astimezone(timezone.utc).replace(tzinfo=None)


def display_names(clinic: Optional[dict], booking: dict) -> dict:
    """Names resolved from the clinic aggregate at read time"""
    if not clinic:
        return {"clinicDisplayName": "", "serviceTitle": "", "durationMin": None, "doctorName": None, "branchName": None}
    service = find_item(clinic, "services", booking.get("serviceId"))
    doctor = find_item(clinic, "doctors", booking["doctorId"]) if booking.get("doctorId") else None
    branch = find_item(clinic, "branches", booking["branchId"]) if booking.get("branchId") else None
    return {
        "clinicDisplayName": clinic.get("clinicDisplayName", ""),
        "serviceTitle": service.get("title", "") if service else "",
        "durationMin": service.get("durationMin") if service else None,
        "doctorName": doctor.get("fullName") if doctor else None,
        "branchName": branch.get("name") if branch else None,
    }


def public_booking(doc: dict, clinic: Optional[dict] = None) -> dict:
    cancel = doc.get("cancel") or {}
    return {
        "_id": id_str(doc["_id"]),
        "clinicId": id_str(doc.get("clinicId")),
        "branchId": id_str(doc.get("branchId")),
        "serviceId": id_str(doc.get("serviceId")),
        "doctorId": id_str(doc.get("doctorId")),
        "userId": id_str(doc.get("userId")),
        "scheduledAt": to_iso(doc.get("scheduledAt")),
        "scheduledDate": doc.get("scheduledDate"),
        "scheduledTime": doc.get("scheduledTime"),
        "status": doc.get("status"),
        "price": doc.get("price"),
        "cancel": {
            "by": cancel.get("by"),
            "reason": cancel.get("reason"),
            "cancelledAt": to_iso(cancel.get("cancelledAt")),
        },
        "createdAt": to_iso(doc.get("createdAt")),
        "updatedAt": to_iso(doc.get("updatedAt")),
        **display_names(clinic, doc),
    }


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Database):
        self.db = db
        self.repo = BookingRepository()

    def _enrich(self, bookings: list[dict]) -> list[dict]:
        clinics = self.repo.load_clinics(self.db, [b["clinicId"] for b in bookings])
        return [public_booking(b, clinics.get(b["clinicId"])) for b in bookings]

    def _enrich_one(self, booking: dict) -> dict:
        return self._enrich([booking])[0]

    # ========================================================================
    # PATIENT OPERATIONS
    # ========================================================================

    def create_booking(self, patient_id: ObjectId, data: BookingCreate) -> dict:
        """Create a pending booking; slot availability is not checked"""
        clinic_id = parse_object_id(data.clinicId)
        clinic = ClinicRepository.find_by_id(self.db, clinic_id) if clinic_id else None
        if not clinic or clinic.get("status") != "active":
            raise not_found("Clinic not found")

        service = find_item(clinic, "services", data.serviceId)
        if not service or not service.get("isActive", True):
            raise validation_error("Service not found in this clinic")

        branch_id = None
        if data.branchId:
            branch = find_item(clinic, "branches", data.branchId)
            if not branch:
                raise validation_error("Branch not found in this clinic")
            branch_id = branch["_id"]

        doctor_id = None
        if data.doctorId:
            doctor = find_item(clinic, "doctors", data.doctorId)
            if not doctor:
                raise validation_error("Doctor not found in this clinic")
            doctor_id = doctor["_id"]

        now = utcnow()
        doc = {
            "clinicId": clinic["_id"],
            "branchId": branch_id,
            "serviceId": service["_id"],
            "doctorId": doctor_id,
            "userId": patient_id,
            "scheduledAt": combine_schedule(data.scheduledDate, data.scheduledTime),
            "scheduledDate": data.scheduledDate,
            "scheduledTime": data.scheduledTime,
            "status": "pending",
            "price": None,
            "cancel": {"by": None, "reason": None, "cancelledAt": None},
            "createdAt": now,
            "updatedAt": now,
            "deletedAt": None,
        }
        doc = self.repo.insert_booking(self.db, doc)
        ClinicRepository.increment_stats(self.db, clinic["_id"], "bookingsTotal")

        logger.info(f"📅 Booking {doc['_id']} created for clinic {clinic['clinicUniqueName']}")
        return public_booking(doc, clinic)

    def list_my_bookings(self, patient_id: ObjectId, status: Optional[str] = None) -> list[dict]:
        return self._enrich(self.repo.list_by_user(self.db, patient_id, status))

    def get_booking(self, booking_id: str, patient_id: ObjectId) -> dict:
        booking = self.repo.find_for_user(self.db, oid(booking_id, "Booking not found"), patient_id)
        if not booking:
            raise not_found("Booking not found")
        return self._enrich_one(booking)

    def get_next_upcoming(self, patient_id: ObjectId) -> Optional[dict]:
        booking = self.repo.find_next_upcoming(self.db, patient_id, utcnow())
        return self._enrich_one(booking) if booking else None

    def cancel_booking(self, booking_id: str, patient_id: ObjectId, reason: Optional[str]) -> dict:
        """Missing, foreign and terminal bookings all produce the same 404"""
        message = "Booking not found or cannot be cancelled"
        booking = self.repo.transition(
            self.db,
            {"_id": oid(booking_id, message), "userId": patient_id},
            ACTIVE_STATUSES,
            {"status": "cancelled", "cancel": {"by": "patient", "reason": reason, "cancelledAt": utcnow()}},
        )
        if not booking:
            raise not_found(message)

        logger.info(f"❌ Booking {booking['_id']} cancelled by patient")
        return self._enrich_one(booking)

    # ========================================================================
    # CLINIC OPERATIONS
    # ========================================================================

    def list_clinic_bookings(
        self, clinic_id: str, status: Optional[str] = None, doctor_id: Optional[str] = None
    ) -> list[dict]:
        cid = oid(clinic_id, "Clinic not found")
        did = oid(doctor_id, "Doctor not found") if doctor_id else None
        bookings = self.repo.list_by_clinic(self.db, cid, status, did)
        enriched = self._enrich(bookings)

        patients = self.repo.load_patients(self.db, [b["userId"] for b in bookings])
        for public, booking in zip(enriched, bookings):
            patient = patients.get(booking["userId"]) or {}
            public["patientName"] = patient.get("fullName")
            public["patientPhone"] = (patient.get("contacts") or {}).get("phone")
        return enriched

    def set_status(
        self, clinic_id: str, booking_id: str, data: BookingStatusUpdate, doctor_id: Optional[str] = None
    ) -> dict:
        """Clinic-side transition: confirm, complete (with price) or cancel

        When ``doctor_id`` is given the booking must be assigned to that doctor.
        """
        cid = oid(clinic_id, "Clinic not found")
        booking = self.repo.find_for_clinic(self.db, oid(booking_id, "Booking not found"), cid)
        if not booking:
            raise not_found("Booking not found")
        if doctor_id is not None and booking.get("doctorId") != parse_object_id(doctor_id):
            raise not_found("Booking not found")

        allowed_from = TRANSITIONS[data.status]
        if booking["status"] not in allowed_from:
            raise conflict(f"Cannot change booking status from {booking['status']} to {data.status}")

        set_fields: dict = {"status": data.status}
        if data.status == "completed":
            if data.price is None:
                raise validation_error("Price is required to complete a booking")
            set_fields["price"] = data.price
        elif data.status == "cancelled":
            set_fields["cancel"] = {"by": "clinic", "reason": data.reason, "cancelledAt": utcnow()}

        updated = self.repo.transition(self.db, {"_id": booking["_id"], "clinicId": cid}, allowed_from, set_fields)
        if not updated:
            # Status changed between the read and the write
            raise conflict("Booking status changed, reload and try again")

        if data.status == "completed":
            ClinicRepository.increment_stats(self.db, cid, "completedBookings")

        logger.info(f"📅 Booking {booking['_id']} {booking['status']} -> {data.status}")
        return self._enrich_one(updated)
