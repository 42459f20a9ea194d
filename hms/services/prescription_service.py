import logging
from typing import List

from sqlalchemy.orm import Session

from ..core.exceptions import NotFound
from ..core.security import UserRole
from ..models.prescription import Prescription
from ..models.user import User
from ..schemas.prescription import PrescriptionCreate, PrescriptionUpdate

logger = logging.getLogger(__name__)


class PrescriptionService:
    """Prescription records, always scoped to the authoring doctor."""

    def __init__(self, db: Session, doctor_id: int):
        self.db = db
        self.doctor_id = doctor_id

    def list(self) -> List[Prescription]:
        return self.db.query(Prescription).filter(
            Prescription.doctor_id == self.doctor_id
        ).order_by(Prescription.id).all()

    def get(self, prescription_id: int) -> Prescription:
        prescription = self.db.query(Prescription).filter(
            Prescription.id == prescription_id,
            Prescription.doctor_id == self.doctor_id
        ).first()
        if not prescription:
            raise NotFound("Prescription not found")
        return prescription

    def create(self, data: PrescriptionCreate) -> Prescription:
        patient = self.db.query(User).filter(
            User.id == data.patient_id,
            User.role == UserRole.PATIENT
        ).first()
        if not patient:
            raise NotFound(f"Patient {data.patient_id} not found")
        
        prescription = Prescription(
            doctor_id=self.doctor_id,
            patient_id=data.patient_id,
            medication=data.medication,
            dosage=data.dosage,
            frequency=data.frequency
        )
        self.db.add(prescription)
        self.db.commit()
        self.db.refresh(prescription)
        
        logger.info("Doctor %s prescribed %s to patient %s",
                    self.doctor_id, prescription.medication, prescription.patient_id)
        return prescription

    def update(self, prescription_id: int, data: PrescriptionUpdate) -> Prescription:
        prescription = self.get(prescription_id)
        prescription.medication = data.medication
        prescription.dosage = data.dosage
        prescription.frequency = data.frequency
        
        self.db.commit()
        self.db.refresh(prescription)
        return prescription

    def delete(self, prescription_id: int) -> None:
        prescription = self.get(prescription_id)
        self.db.delete(prescription)
        self.db.commit()
