"""Fee type master (Tuition, Exam, Hostel, Transport...)."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID

from fee_queue.core.clock import utcnow
from fee_queue.db.session import Base


class FeeType(Base):
    __tablename__ = "fee_types"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(50), nullable=False, unique=True)
    type_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    # Suggested amount shown on the payment form; students may pay any positive amount
    default_amount = Column(Numeric(12, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
