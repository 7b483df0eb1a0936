# app/system_models/medicine_model/medicine_model.py
from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, DateTime
from app.database.connection import Base
from app.helpers.time import utcnow


class Medicine(Base):
    __tablename__ = "medicines"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    strength = Column(String, nullable=False)
    form = Column(String, nullable=False)
    manufacturer = Column(String, nullable=False)

    description = Column(Text, nullable=True)
    side_effects = Column(Text, nullable=True)
    contraindications = Column(Text, nullable=True)
    dosage_instructions = Column(Text, nullable=True)
    storage_instructions = Column(Text, nullable=True)

    price = Column(Numeric(10, 2), nullable=False, default=0)
    stock_quantity = Column(Integer, nullable=False, default=0)
    reorder_level = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True)

    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Medicine {self.id}: {self.name} {self.strength}>"
