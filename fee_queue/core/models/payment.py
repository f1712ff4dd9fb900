"""Payment request admitted into a counter queue (one queue entry)."""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from fee_queue.core.clock import utcnow
from fee_queue.db.session import Base


class Payment(Base):
    """
    Queue entry for a fee payment.

    queue_position is a per-counter sequence number taken from counters.last_sequence.
    It is never renumbered; the displayed rank is computed on read among active entries.
    """

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending','processing','completed','removed')",
            name="chk_payment_status",
        ),
        CheckConstraint("amount > 0", name="chk_payment_amount_positive"),
        Index("ix_payments_counter_status_position", "counter_id", "status", "queue_position"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="RESTRICT"), nullable=False, index=True)
    counter_id = Column(UUID(as_uuid=True), ForeignKey("counters.id", ondelete="RESTRICT"), nullable=False)
    fee_type_id = Column(UUID(as_uuid=True), ForeignKey("fee_types.id", ondelete="RESTRICT"), nullable=False)
    token_number = Column(String(20), nullable=False, unique=True)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=True)
    queue_position = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    # Accountant (users.id) who completed the payment
    assigned_to = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    payment_method = Column(String(20), nullable=True)
    removal_reason = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    removed_at = Column(DateTime(timezone=True), nullable=True)

    student = relationship("StudentProfile")
    counter = relationship("Counter")
    fee_type = relationship("FeeType")
    processed_by = relationship("User", foreign_keys=[assigned_to])
