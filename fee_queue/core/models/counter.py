"""Counter: a payment-processing station staffed by one accountant."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from fee_queue.core.clock import utcnow
from fee_queue.db.session import Base


class Counter(Base):
    __tablename__ = "counters"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    counter_number = Column(Integer, nullable=False, unique=True)
    counter_name = Column(String(100), nullable=False)
    # Fee type codes this counter accepts; advisory only, not checked on enqueue
    fee_types = Column(JSON, nullable=False, default=list)
    assigned_accountant_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    # Last queue sequence handed out at this counter. Only ever incremented in a single UPDATE.
    last_sequence = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    assigned_accountant = relationship("User", foreign_keys=[assigned_accountant_id])
