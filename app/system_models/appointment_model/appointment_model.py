# app/system_models/appointment_model/appointment_model.py
from sqlalchemy import Column, Integer, String, Date, DateTime, Text, JSON, CheckConstraint
from app.database.connection import Base
from app.helpers.time import utcnow


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    # Patient details are free text, copied onto every visit
    patient_name = Column(String, nullable=False, index=True)
    patient_age = Column(String, nullable=True)
    patient_gender = Column(String, nullable=True)
    patient_phone = Column(String, nullable=False, index=True)
    patient_email = Column(String, nullable=True)

    # Display name, not a foreign key (see entity_resolver.doctor_matching)
    doctor_name = Column(String, nullable=False, index=True)

    appointment_date = Column(Date, nullable=False, index=True)
    appointment_time = Column(String, nullable=False)
    appointment_type = Column(String, default="consultation", nullable=False)
    status = Column(String, default="scheduled", nullable=False, index=True)

    token_number = Column(Integer, nullable=True)
    token_generated_at = Column(DateTime(timezone=True), nullable=True)

    symptoms = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    medical_history = Column(Text, nullable=True)
    medications = Column(Text, nullable=True)
    vital_signs = Column(JSON, nullable=True)

    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "status IN ('scheduled', 'token_generated', 'in_progress', 'completed', 'cancelled')",
            name="check_appointment_status",
        ),
        CheckConstraint(
            "appointment_type IN ('consultation', 'checkup', 'emergency', 'followup')",
            name="check_appointment_type",
        ),
    )

    def __repr__(self):
        return f"<Appointment {self.id}: {self.patient_name} {self.appointment_date} token={self.token_number} {self.status}>"
