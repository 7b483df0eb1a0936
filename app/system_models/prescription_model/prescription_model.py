# app/system_models/prescription_model/prescription_model.py
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database.connection import Base
from app.helpers.time import utcnow


class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True)

    patient_id = Column(String, nullable=True)  # directory key: "<name>-<phone>"
    patient_name = Column(String, nullable=False, index=True)
    patient_age = Column(String, nullable=True)
    patient_gender = Column(String, nullable=True)
    patient_phone = Column(String, nullable=True)
    patient_email = Column(String, nullable=True)

    doctor_name = Column(String, nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    prescription_date = Column(Date, nullable=False)
    diagnosis = Column(Text, nullable=False)
    symptoms = Column(Text, nullable=True)
    instructions = Column(Text, nullable=True)
    follow_up_date = Column(Date, nullable=True)
    status = Column(String, default="active", nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    medicines = relationship(
        "PrescriptionMedicine",
        back_populates="prescription",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PrescriptionMedicine.id",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'completed', 'discontinued', 'pending')",
            name="check_prescription_status",
        ),
    )


class PrescriptionMedicine(Base):
    """One medicine line on a prescription. Name and category are copied at prescribing time."""
    __tablename__ = "prescription_medicines"

    id = Column(Integer, primary_key=True)
    prescription_id = Column(Integer, ForeignKey("prescriptions.id", ondelete="CASCADE"), nullable=False)
    medicine_id = Column(Integer, ForeignKey("medicines.id", ondelete="SET NULL"), nullable=True)

    name = Column(String, nullable=False)
    category = Column(String, nullable=True)
    dosage = Column(String, nullable=False)
    frequency = Column(String, nullable=False)
    duration = Column(String, nullable=False)
    timing = Column(String, default="after_meal", nullable=False)
    special_instructions = Column(Text, nullable=True)

    prescription = relationship("Prescription", back_populates="medicines")

    __table_args__ = (
        UniqueConstraint("prescription_id", "medicine_id", name="uq_prescription_medicine"),
    )
