from datetime import date
from typing import List

from sqlalchemy.orm import Session

from ..core.slots import SlotCatalog, get_slot_catalog
from .ledger import AppointmentLedger


class AvailabilityService:
    def __init__(self, db: Session, catalog: SlotCatalog = None):
        self.ledger = AppointmentLedger(db)
        self.catalog = catalog or get_slot_catalog()

    def available_slots(self, doctor_id: int, day: date) -> List[str]:
        """Catalog slots not yet booked for the doctor on that day, in catalog order.

        An unknown doctor simply has no bookings, so the full catalog is returned.
        """
        booked = set(self.ledger.booked_times(doctor_id, day))
        return [slot for slot in self.catalog if slot not in booked]
