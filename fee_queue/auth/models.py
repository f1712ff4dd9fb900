import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from fee_queue.core.clock import utcnow
from fee_queue.db.session import Base


class User(Base):
    """Login account. Students may sign in with email or roll number; staff with email only."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    # Students only; mirrors students.roll_number so login can branch on identifier shape
    roll_number = Column(String(50), unique=True, nullable=True)
    password_hash = Column(Text, nullable=False)
    # student | admin | accountant
    role = Column(String(20), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    student_profile = relationship(
        "StudentProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    accountant_profile = relationship(
        "AccountantProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )


class StudentProfile(Base):
    """Student details keyed 1:1 by user. payments.student_id points here, not at users."""

    __tablename__ = "students"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    full_name = Column(String(255), nullable=False)
    roll_number = Column(String(50), nullable=False, unique=True)
    college_email = Column(String(255), nullable=False)
    phone_number = Column(String(30), nullable=True)
    year = Column(String(20), nullable=True)
    branch = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="student_profile")


class AccountantProfile(Base):
    """Accountant details. unique_id is the staff identifier shown at the counter."""

    __tablename__ = "accountants"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    full_name = Column(String(255), nullable=False)
    unique_id = Column(String(50), nullable=False, unique=True)
    phone_number = Column(String(30), nullable=True)
    assigned_counter_id = Column(UUID(as_uuid=True), ForeignKey("counters.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="accountant_profile")
    assigned_counter = relationship("Counter", foreign_keys=[assigned_counter_id])
