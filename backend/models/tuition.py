"""Tuition post model definitions."""

from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String
from backend.database import Base


class TuitionStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    PAID = "Paid"


class TuitionPost(Base):
    """A student's request for a tutor."""
    __tablename__ = "tuitions"

    id = Column(Integer, primary_key=True, index=True)
    student_email = Column(String, index=True, nullable=False)
    subject = Column(String)
    class_level = Column(String)
    budget = Column(String)
    location = Column(String)
    description = Column(String)
    status = Column(String, nullable=False, default=TuitionStatus.PENDING.value)
    hired_tutor_email = Column(String, nullable=True)  # written once, by payment confirmation
    created_at = Column(DateTime)
    updated_at = Column(DateTime)
