"""Payment processing schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fee_queue.core.enums import PaymentMethod
from fee_queue.core.schemas import ApiModel


class ProcessPaymentRequest(ApiModel):
    queue_id: UUID
    payment_method: PaymentMethod = PaymentMethod.CASH


class ReceiptResponse(ApiModel):
    """Receipt projection built when a payment is completed. Not stored separately."""

    success: bool = True
    receipt_number: str
    queue_id: UUID
    token_number: str
    student_id: UUID
    student_name: Optional[str] = None
    roll_number: Optional[str] = None
    counter_id: UUID
    counter_name: str
    counter_number: int
    accountant_id: UUID
    accountant_name: str
    fee_type: Optional[str] = None
    amount: Decimal
    description: Optional[str] = None
    payment_method: Optional[str] = None
    status: str
    payment_date: datetime
