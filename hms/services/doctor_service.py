from typing import List

from sqlalchemy.orm import Session

from ..core.exceptions import NotFound, ValidationFailed
from ..core.security import UserRole
from ..models.doctor import Doctor
from ..models.user import User
from ..schemas.doctor import DoctorProfileResponse, DoctorProfileUpdate, DoctorSummary
from ..schemas.patient import PatientResponse
from .ledger import AppointmentLedger


class DoctorService:
    def __init__(self, db: Session):
        self.db = db

    def list_doctors(self) -> List[DoctorSummary]:
        """Public directory of doctors."""
        rows = self.db.query(User, Doctor).join(Doctor, Doctor.user_id == User.id).filter(
            User.role == UserRole.DOCTOR,
            User.is_active == True
        ).order_by(Doctor.last_name, Doctor.first_name).all()
        
        return [
            DoctorSummary(
                id=user.id,
                first_name=doctor.first_name,
                last_name=doctor.last_name,
                specialty=doctor.specialty
            )
            for user, doctor in rows
        ]

    def get_profile(self, user_id: int) -> DoctorProfileResponse:
        user = self._get_doctor_user(user_id)
        return self._to_profile(user)

    def update_profile(self, user_id: int, profile: DoctorProfileUpdate) -> DoctorProfileResponse:
        user = self._get_doctor_user(user_id)
        
        if profile.email != user.email:
            taken = self.db.query(User).filter(
                User.email == profile.email,
                User.id != user.id
            ).first()
            if taken:
                raise ValidationFailed("email: Email already registered")
            user.email = profile.email
        
        doctor = user.doctor
        doctor.first_name = profile.first_name
        doctor.last_name = profile.last_name
        doctor.specialty = profile.specialty
        doctor.license_number = profile.license_number
        doctor.phone_number = profile.phone_number
        
        self.db.commit()
        self.db.refresh(user)
        
        return self._to_profile(user)

    def patients_with_appointments(self, user_id: int) -> List[PatientResponse]:
        """Distinct patients the doctor has at least one appointment with."""
        patient_ids = AppointmentLedger(self.db).patient_ids_for_doctor(user_id)
        if not patient_ids:
            return []
        
        patients = self.db.query(User).filter(
            User.id.in_(patient_ids),
            User.role == UserRole.PATIENT
        ).order_by(User.id).all()
        
        results = []
        for user in patients:
            profile = user.patient
            results.append(PatientResponse(
                id=user.id,
                email=user.email,
                first_name=profile.first_name if profile else None,
                last_name=profile.last_name if profile else None,
                date_of_birth=profile.date_of_birth if profile else None,
                gender=profile.gender if profile else None,
                phone_number=profile.phone_number if profile else None
            ))
        return results

    def _get_doctor_user(self, user_id: int) -> User:
        user = self.db.query(User).filter(
            User.id == user_id,
            User.role == UserRole.DOCTOR
        ).first()
        if not user or not user.doctor:
            raise NotFound("Doctor not found")
        return user

    @staticmethod
    def _to_profile(user: User) -> DoctorProfileResponse:
        # never expose password_hash
        doctor = user.doctor
        return DoctorProfileResponse(
            id=user.id,
            email=user.email,
            role=user.role.value,
            first_name=doctor.first_name,
            last_name=doctor.last_name,
            specialty=doctor.specialty,
            license_number=doctor.license_number,
            phone_number=doctor.phone_number
        )
