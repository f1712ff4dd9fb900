"""Student router: payment requests, own queue, dashboard, payment options, profile."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from fee_queue.api.v1.queue.schemas import QueueEntryResponse
from fee_queue.auth.rbac import require_student
from fee_queue.auth.schemas import CurrentUser
from fee_queue.core.exceptions import ServiceError
from fee_queue.db.session import get_db

from .schemas import (
    DashboardResponse,
    PaymentOptionsResponse,
    PaymentRequestCreate,
    PaymentRequestCreated,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/student", tags=["student"])


@router.post(
    "/payments",
    response_model=PaymentRequestCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_payment_request(
    payload: PaymentRequestCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_student),
) -> PaymentRequestCreated:
    try:
        return await service.create_payment_request(db, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/payments/queue", response_model=List[QueueEntryResponse])
async def read_my_queue(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_student),
) -> List[QueueEntryResponse]:
    try:
        return await service.list_my_queue(db, current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/dashboard", response_model=DashboardResponse)
async def read_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_student),
) -> DashboardResponse:
    try:
        return await service.get_dashboard(db, current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/payment-options",
    response_model=PaymentOptionsResponse,
    dependencies=[Depends(require_student)],
)
async def read_payment_options(
    db: AsyncSession = Depends(get_db),
) -> PaymentOptionsResponse:
    return await service.get_payment_options(db)


@router.put("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    payload: ProfileUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_student),
) -> ProfileUpdateResponse:
    try:
        return await service.update_profile(db, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
