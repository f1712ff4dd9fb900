"""Queue schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from fee_queue.core.schemas import ApiModel


class QueueEntryResponse(ApiModel):
    """One queue entry with display fields and the rank computed at read time."""

    queue_id: UUID
    token_number: str
    student_id: UUID
    student_name: Optional[str] = None
    roll_number: Optional[str] = None
    counter_id: UUID
    counter_name: Optional[str] = None
    counter_number: Optional[int] = None
    fee_type_id: UUID
    fee_type: Optional[str] = None
    amount: Decimal
    description: Optional[str] = None
    queue_position: int = Field(..., description="Sequence number at the counter; may have gaps")
    effective_rank: Optional[int] = Field(None, description="1-based rank among active entries; null when terminal")
    status: str
    payment_method: Optional[str] = None
    processed_by: Optional[str] = None
    removal_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    removed_at: Optional[datetime] = None


class CounterQueueResponse(ApiModel):
    counter_id: UUID
    counter_name: str
    counter_number: int
    current: Optional[QueueEntryResponse] = None
    entries: List[QueueEntryResponse]


class CurrentEntryResponse(ApiModel):
    counter_id: UUID
    current: Optional[QueueEntryResponse] = None


class QueueStatsResponse(ApiModel):
    counter_id: UUID
    queue_count: int
    processed_today: int
    revenue_today: Decimal
    removed_today: int
    current_token: Optional[str] = None


class SkipRequest(ApiModel):
    queue_id: UUID
    counter_id: Optional[UUID] = None


class RemoveRequest(ApiModel):
    queue_id: UUID
    counter_id: Optional[UUID] = None
    # absent | incorrect | duplicate | other, or free text
    reason: Optional[str] = Field(None, max_length=255)


class QueueActionResponse(ApiModel):
    success: bool = True
    message: str
    queue_id: UUID
    status: str
    queue_position: int
    effective_rank: Optional[int] = None
