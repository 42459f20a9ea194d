from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class DoctorSummary(BaseModel):
    """Public listing entry."""
    id: int
    first_name: str
    last_name: str
    specialty: Optional[str] = None


class DoctorProfileResponse(BaseModel):
    id: int
    email: str
    role: str
    first_name: str
    last_name: str
    specialty: Optional[str] = None
    license_number: Optional[str] = None
    phone_number: Optional[str] = None


class DoctorProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    specialty: Optional[str] = Field(None, max_length=100)
    license_number: Optional[str] = Field(None, max_length=50)
    phone_number: Optional[str] = Field(None, max_length=20)
