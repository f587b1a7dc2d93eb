"""Landing page schemas"""

from pydantic import BaseModel, Field


class LandingContact(BaseModel):
    clinicName: str = Field(min_length=1, max_length=500)
    phoneNumber: str = Field(min_length=1, max_length=50)
