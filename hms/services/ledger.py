import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import exists
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import SlotAlreadyBooked
from ..models.appointment import Appointment

logger = logging.getLogger(__name__)


class AppointmentLedger:
    """Access layer over the persisted appointments table."""

    def __init__(self, db: Session):
        self.db = db

    def booked_times(self, doctor_id: int, day: date) -> List[str]:
        """Slot labels already taken for a doctor on a day."""
        rows = self.db.query(Appointment.time).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.date == day
        ).all()
        return [row.time for row in rows]

    def find_slot(self, doctor_id: int, day: date, time: str) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.date == day,
            Appointment.time == time
        ).first()

    def slot_taken(self, doctor_id: int, day: date, time: str) -> bool:
        """Whether a committed appointment holds the slot."""
        return self.db.query(
            exists().where(
                Appointment.doctor_id == doctor_id,
                Appointment.date == day,
                Appointment.time == time
            )
        ).scalar()

    def for_doctor(self, doctor_id: int, day: Optional[date] = None) -> List[Appointment]:
        query = self.db.query(Appointment).filter(Appointment.doctor_id == doctor_id)
        if day is not None:
            query = query.filter(Appointment.date == day)
        return query.order_by(Appointment.date, Appointment.time, Appointment.id).all()

    def patient_ids_for_doctor(self, doctor_id: int) -> List[int]:
        rows = self.db.query(Appointment.patient_id).filter(
            Appointment.doctor_id == doctor_id
        ).distinct().all()
        return [row.patient_id for row in rows]

    def insert(self, appointment: Appointment) -> Appointment:
        """Commit a new appointment.

        The unique (doctor_id, date, time) constraint makes this the
        authoritative check: a concurrent insert for the same slot fails here
        even when every earlier read saw the slot as free.
        """
        self.db.add(appointment)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            # Only the slot constraint means "taken"; other violations are store failures
            if self.slot_taken(appointment.doctor_id, appointment.date, appointment.time):
                raise SlotAlreadyBooked(
                    f"Slot {appointment.time} on {appointment.date.isoformat()} is already booked"
                )
            logger.exception("Integrity failure persisting appointment for doctor %s", appointment.doctor_id)
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to persist appointment")
            raise
        
        self.db.refresh(appointment)
        return appointment
