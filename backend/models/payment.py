"""Payment model definitions."""

from sqlalchemy import Column, DateTime, Float, Integer, String
from backend.database import Base


class Payment(Base):
    """Records a payment the student reported when confirming a hire."""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    email = Column(String, index=True, nullable=False)
    tuition_id = Column(Integer, nullable=False)
    application_id = Column(Integer, nullable=False)
    tutor_email = Column(String)
    amount = Column(Float)
    transaction_id = Column(String)
    paid_at = Column(DateTime)
