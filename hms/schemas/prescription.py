from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PrescriptionCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    patient_id: int = Field(..., gt=0)
    medication: str = Field(..., min_length=1, max_length=255)
    dosage: str = Field(..., min_length=1, max_length=100)
    frequency: str = Field(..., min_length=1, max_length=100)


class PrescriptionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    medication: str = Field(..., min_length=1, max_length=255)
    dosage: str = Field(..., min_length=1, max_length=100)
    frequency: str = Field(..., min_length=1, max_length=100)


class PrescriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    doctor_id: int
    patient_id: int
    medication: str
    dosage: str
    frequency: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PrescriptionCreatedResponse(BaseModel):
    message: str
    prescription: PrescriptionResponse
