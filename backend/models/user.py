"""User model definitions."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String
from backend.database import Base


class Role(str, Enum):
    STUDENT = "Student"
    TUTOR = "Tutor"
    ADMIN = "Admin"


class User(Base):
    """Represents a registered student, tutor or admin."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(String, nullable=False, default=Role.STUDENT.value)
    name = Column(String)
    phone = Column(String)
    address = Column(String)
    photo = Column(String)
    # tutor-facing profile
    subjects = Column(String)
    experience = Column(String)
    education = Column(String)
    area = Column(String)
    created_at = Column(DateTime, default=datetime.now)
