# app/system_models/payment_model/payment_model.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from app.database.connection import Base
from app.helpers.time import utcnow


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False)
    invoice_number = Column(String, nullable=False)
    patient_name = Column(String, nullable=False, index=True)
    patient_phone = Column(String, nullable=True)

    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(String, nullable=False)
    reference = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String, default="completed", nullable=False)

    processed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    processed_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    invoice = relationship("Invoice", back_populates="payments")

    __table_args__ = (
        CheckConstraint("method IN ('cash', 'card', 'online')", name="check_payment_method"),
    )
