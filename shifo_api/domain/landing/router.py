"""Landing router - Public contact form"""

from fastapi import APIRouter

from ...shared.responses import ok
from .schemas import LandingContact
from .telegram import send_clinic_contact

router = APIRouter(prefix="/landing", tags=["Landing"])


@router.post("/contact")
def landing_contact(data: LandingContact):
    """A clinic left its contact on the landing page"""
    send_clinic_contact(data)
    return ok({"message": "Notification sent"})
