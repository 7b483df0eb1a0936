# app/system_models/token_counter_model/token_counter_model.py
from sqlalchemy import Column, Integer, Date, DateTime
from app.database.connection import Base
from app.helpers.time import utcnow


class TokenCounter(Base):
    """Last token handed out for a calendar date. Incremented atomically."""
    __tablename__ = "token_counters"

    appointment_date = Column(Date, primary_key=True)
    last_token = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<TokenCounter {self.appointment_date}: {self.last_token}>"
