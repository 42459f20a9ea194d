from datetime import date as Date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AppointmentCreate(BaseModel):
    """Body of a scheduling request; the doctor is always the caller."""
    model_config = ConfigDict(extra="forbid")

    patient_id: int = Field(..., gt=0)
    date: Date
    time: str = Field(..., min_length=1, max_length=16)
    reason: Optional[str] = Field(None, max_length=1000)


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    doctor_id: int
    patient_id: int
    date: Date
    time: str
    reason: Optional[str] = None


class AppointmentScheduledResponse(BaseModel):
    message: str
    appointment: AppointmentResponse
