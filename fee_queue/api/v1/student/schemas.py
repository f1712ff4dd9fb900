"""Student-facing schemas: payment requests, dashboard, profile."""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import EmailStr, Field, model_validator

from fee_queue.api.v1.queue.schemas import QueueEntryResponse
from fee_queue.auth.schemas import StudentDetails
from fee_queue.core.schemas import ApiModel


class PaymentRequestCreate(ApiModel):
    counter_id: UUID
    fee_type_id: UUID
    amount: Decimal = Field(..., gt=0)
    description: Optional[str] = None


class PaymentRequestCreated(ApiModel):
    success: bool = True
    message: str = "Payment request created"
    payment_id: UUID
    token_number: str
    queue_position: int
    effective_rank: int


class CounterOption(ApiModel):
    id: UUID
    counter_number: int
    counter_name: str
    fee_types: List[str] = Field(default_factory=list)

    class Config:
        from_attributes = True


class FeeTypeOption(ApiModel):
    id: UUID
    code: str
    type_name: str
    default_amount: Optional[Decimal] = None

    class Config:
        from_attributes = True


class PaymentOptionsResponse(ApiModel):
    counters: List[CounterOption]
    fee_types: List[FeeTypeOption]


class DashboardStats(ApiModel):
    total_payments: int
    paid_amount: Decimal
    pending_amount: Decimal
    # Rank of the student's earliest active entry; 0 when nothing is waiting
    queue_position: int


class DashboardResponse(ApiModel):
    student: StudentDetails
    stats: DashboardStats
    recent_payments: List[QueueEntryResponse]


class ProfileUpdateRequest(ApiModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    year: Optional[str] = Field(None, max_length=20)
    branch: Optional[str] = Field(None, max_length=100)
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(None, min_length=6)

    @model_validator(mode="after")
    def validate_password_pair(self) -> "ProfileUpdateRequest":
        if self.new_password and not self.current_password:
            raise ValueError("currentPassword is required to set a new password")
        return self


class ProfileUpdateResponse(ApiModel):
    success: bool = True
    message: str = "Profile updated successfully"
    student: StudentDetails
