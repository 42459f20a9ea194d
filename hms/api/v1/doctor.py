from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...core.security import CallerIdentity
from ...api.deps import get_current_doctor_identity, rate_limit_check
from ...services.availability import AvailabilityService
from ...services.booking_service import BookingService
from ...services.doctor_service import DoctorService
from ...services.ledger import AppointmentLedger
from ...services.prescription_service import PrescriptionService
from ...schemas.appointment import (
    AppointmentCreate, AppointmentResponse, AppointmentScheduledResponse
)
from ...schemas.doctor import DoctorProfileResponse, DoctorProfileUpdate, DoctorSummary
from ...schemas.patient import PatientResponse
from ...schemas.prescription import (
    PrescriptionCreate, PrescriptionUpdate, PrescriptionResponse,
    PrescriptionCreatedResponse
)

router = APIRouter(prefix="/doctor", tags=["Doctor"])

@router.get("/all", response_model=List[DoctorSummary])
async def list_doctors(db: Session = Depends(get_db)):
    """Public directory of doctors."""
    return DoctorService(db).list_doctors()

# Profile
@router.get("/profile", response_model=DoctorProfileResponse)
async def get_profile(
    identity: CallerIdentity = Depends(get_current_doctor_identity),
    db: Session = Depends(get_db)
):
    """Get the calling doctor's profile."""
    return DoctorService(db).get_profile(identity.id)

@router.put("/profile", response_model=DoctorProfileResponse)
async def update_profile(
    profile: DoctorProfileUpdate,
    identity: CallerIdentity = Depends(get_current_doctor_identity),
    db: Session = Depends(get_db)
):
    """Update the calling doctor's profile."""
    return DoctorService(db).update_profile(identity.id, profile)

@router.get("/patients-with-appointments", response_model=List[PatientResponse])
async def patients_with_appointments(
    identity: CallerIdentity = Depends(get_current_doctor_identity),
    db: Session = Depends(get_db)
):
    """Patients the calling doctor has appointments with."""
    return DoctorService(db).patients_with_appointments(identity.id)

# Scheduling
@router.get("/available-slots", response_model=List[str])
async def available_slots(
    date: date = Query(..., description="Calendar day, YYYY-MM-DD"),
    patient_id: Optional[int] = Query(None, description="Patient the slot is for; informational"),
    identity: CallerIdentity = Depends(get_current_doctor_identity),
    db: Session = Depends(get_db)
):
    """Slots still bookable for the calling doctor on a day."""
    return AvailabilityService(db).available_slots(identity.id, date)

@router.get("/appointments", response_model=List[AppointmentResponse])
async def list_appointments(
    date: Optional[date] = Query(None, description="Restrict to one calendar day"),
    identity: CallerIdentity = Depends(get_current_doctor_identity),
    db: Session = Depends(get_db)
):
    """The calling doctor's appointments."""
    return AppointmentLedger(db).for_doctor(identity.id, date)

@router.post(
    "/schedule-appointment",
    response_model=AppointmentScheduledResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit_check)]
)
async def schedule_appointment(
    appointment_data: AppointmentCreate,
    identity: CallerIdentity = Depends(get_current_doctor_identity),
    db: Session = Depends(get_db)
):
    """Book a slot with a patient for the calling doctor."""
    appointment = BookingService(db).schedule(identity.id, appointment_data)
    
    return AppointmentScheduledResponse(
        message="Appointment scheduled successfully",
        appointment=AppointmentResponse.model_validate(appointment)
    )

# Prescriptions
@router.get("/prescriptions", response_model=List[PrescriptionResponse])
async def list_prescriptions(
    identity: CallerIdentity = Depends(get_current_doctor_identity),
    db: Session = Depends(get_db)
):
    return PrescriptionService(db, identity.id).list()

@router.get("/prescriptions/{prescription_id}", response_model=PrescriptionResponse)
async def get_prescription(
    prescription_id: int,
    identity: CallerIdentity = Depends(get_current_doctor_identity),
    db: Session = Depends(get_db)
):
    return PrescriptionService(db, identity.id).get(prescription_id)

@router.post(
    "/prescriptions",
    response_model=PrescriptionCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit_check)]
)
async def create_prescription(
    prescription_data: PrescriptionCreate,
    identity: CallerIdentity = Depends(get_current_doctor_identity),
    db: Session = Depends(get_db)
):
    """Prescribe medication to a patient."""
    prescription = PrescriptionService(db, identity.id).create(prescription_data)
    
    return PrescriptionCreatedResponse(
        message="Medication prescribed successfully",
        prescription=PrescriptionResponse.model_validate(prescription)
    )

@router.put("/prescriptions/{prescription_id}", response_model=PrescriptionResponse)
async def update_prescription(
    prescription_id: int,
    prescription_data: PrescriptionUpdate,
    identity: CallerIdentity = Depends(get_current_doctor_identity),
    db: Session = Depends(get_db)
):
    return PrescriptionService(db, identity.id).update(prescription_id, prescription_data)

@router.delete("/prescriptions/{prescription_id}")
async def delete_prescription(
    prescription_id: int,
    identity: CallerIdentity = Depends(get_current_doctor_identity),
    db: Session = Depends(get_db)
):
    PrescriptionService(db, identity.id).delete(prescription_id)
    
    return {"message": "Prescription deleted successfully"}
