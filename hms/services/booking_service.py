import logging

from sqlalchemy.orm import Session

from ..core.exceptions import InvalidSlot, NotFound, SlotAlreadyBooked
from ..core.security import UserRole
from ..core.slots import SlotCatalog, get_slot_catalog
from ..models.appointment import Appointment
from ..models.user import User
from ..schemas.appointment import AppointmentCreate
from .ledger import AppointmentLedger

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(self, db: Session, catalog: SlotCatalog = None):
        self.db = db
        self.ledger = AppointmentLedger(db)
        self.catalog = catalog or get_slot_catalog()

    def schedule(self, doctor_id: int, request: AppointmentCreate) -> Appointment:
        """Commit an appointment for the calling doctor if the slot is still free.

        Availability is re-checked here, never trusted from an earlier read.
        """
        time = self.catalog.normalize(request.time)
        if time is None:
            logger.warning(
                "Rejected booking for doctor %s: %r is not an offered slot",
                doctor_id, request.time
            )
            raise InvalidSlot(
                f"time: '{request.time}' is not one of {', '.join(self.catalog)}"
            )
        
        patient = self.db.query(User).filter(
            User.id == request.patient_id,
            User.role == UserRole.PATIENT
        ).first()
        if not patient:
            raise NotFound(f"Patient {request.patient_id} not found")
        
        if self.ledger.find_slot(doctor_id, request.date, time):
            logger.warning(
                "Rejected booking for doctor %s: %s %s already booked",
                doctor_id, request.date, time
            )
            raise SlotAlreadyBooked(
                f"Slot {time} on {request.date.isoformat()} is already booked"
            )
        
        appointment = Appointment(
            doctor_id=doctor_id,
            patient_id=request.patient_id,
            date=request.date,
            time=time,
            reason=request.reason
        )
        
        try:
            appointment = self.ledger.insert(appointment)
        except SlotAlreadyBooked:
            logger.warning(
                "Rejected booking for doctor %s: %s %s taken concurrently",
                doctor_id, request.date, time
            )
            raise
        
        logger.info(
            "Scheduled appointment %s for doctor %s with patient %s at %s %s",
            appointment.id, doctor_id, request.patient_id, request.date, time
        )
        return appointment
