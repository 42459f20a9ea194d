"""
Slot catalog

The fixed, ordered set of time-of-day labels a doctor can be booked at on
any calendar day. Labels are stored in canonical 24-hour ``HH:MM`` form.
"""
from datetime import datetime
from typing import Iterable, Iterator, Optional, Tuple

from .config import settings

_ACCEPTED_FORMATS = ("%H:%M", "%I:%M %p", "%I:%M%p")


def normalize_time_label(label: str) -> Optional[str]:
    """Return the canonical ``HH:MM`` form of a time label, or None if unparseable.

    Accepts ``9:00``, ``09:00`` and 12-hour forms such as ``2:00 PM``.
    """
    if not isinstance(label, str):
        return None
    
    text = label.strip().upper()
    for fmt in _ACCEPTED_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed.strftime("%H:%M")
    return None


class SlotCatalog:
    """Immutable ordered sequence of bookable slot labels."""

    __slots__ = ("_slots",)

    def __init__(self, labels: Iterable[str]):
        slots = []
        for label in labels:
            canonical = normalize_time_label(label)
            if canonical is None:
                raise ValueError(f"Invalid slot label in catalog: {label!r}")
            if canonical in slots:
                raise ValueError(f"Duplicate slot label in catalog: {label!r}")
            slots.append(canonical)
        
        if not slots:
            raise ValueError("Slot catalog must define at least one slot")
        
        self._slots: Tuple[str, ...] = tuple(slots)

    @property
    def slots(self) -> Tuple[str, ...]:
        return self._slots

    def normalize(self, label: str) -> Optional[str]:
        """Canonical label if it names a catalog slot, None otherwise."""
        canonical = normalize_time_label(label)
        if canonical in self._slots:
            return canonical
        return None

    def __contains__(self, label) -> bool:
        return self.normalize(label) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __repr__(self):
        return f"<SlotCatalog({', '.join(self._slots)})>"


# Built once at import from configuration
slot_catalog = SlotCatalog(settings.SLOT_TIMES)

def get_slot_catalog() -> SlotCatalog:
    """Get the process-wide slot catalog."""
    return slot_catalog
