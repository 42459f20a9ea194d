from sqlalchemy import Column, Integer, String, ForeignKey, Date, DateTime, Text, UniqueConstraint
from sqlalchemy.sql import func

from ..core.database import Base

class Appointment(Base):
    __tablename__ = "appointments"
    # One appointment per doctor, day and slot; enforced by the store
    __table_args__ = (
        UniqueConstraint("doctor_id", "date", "time", name="uq_appointment_doctor_slot"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    
    # Participants (user ids)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    
    # Appointment details
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # canonical HH:MM slot label
    reason = Column(Text, nullable=True)
    
    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    
    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, date='{self.date}', time='{self.time}')>"
