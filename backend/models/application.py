"""Application model definitions."""

from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String
from backend.database import Base


class ApplicationStatus(str, Enum):
    APPLIED = "Applied"
    PAID_CONFIRMED = "Paid-Confirmed"


class Application(Base):
    """A tutor's bid on a tuition post."""
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    # plain reference, the post may have been deleted since
    tuition_id = Column(Integer, index=True, nullable=False)
    tutor_email = Column(String, index=True, nullable=False)
    student_email = Column(String, index=True, nullable=False)
    tutor_name = Column(String)
    qualifications = Column(String)
    experience = Column(String)
    expected_salary = Column(String)
    status = Column(String, nullable=False, default=ApplicationStatus.APPLIED.value)
    applied_at = Column(DateTime)
    updated_at = Column(DateTime)
