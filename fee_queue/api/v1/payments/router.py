"""Payments router: accountant completes the entry at the head of the queue."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fee_queue.auth.rbac import require_accountant
from fee_queue.auth.schemas import CurrentUser
from fee_queue.core.exceptions import ServiceError
from fee_queue.db.session import get_db

from .schemas import ProcessPaymentRequest, ReceiptResponse
from . import service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post("/process", response_model=ReceiptResponse)
async def process_payment(
    payload: ProcessPaymentRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_accountant),
) -> ReceiptResponse:
    try:
        return await service.process_payment(
            db,
            payload.queue_id,
            accountant_id=current_user.id,
            payment_method=payload.payment_method,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
