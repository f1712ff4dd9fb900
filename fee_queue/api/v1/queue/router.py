"""Queue router: counter queue view, now-serving, stats, skip and remove."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fee_queue.api.v1.payments import service as payment_service
from fee_queue.auth.rbac import require_accountant
from fee_queue.core.exceptions import ServiceError
from fee_queue.db.session import get_db

from .schemas import (
    CounterQueueResponse,
    CurrentEntryResponse,
    QueueActionResponse,
    QueueStatsResponse,
    RemoveRequest,
    SkipRequest,
)
from . import service

router = APIRouter(
    prefix="/api/v1/queue",
    tags=["queue"],
    dependencies=[Depends(require_accountant)],
)


@router.get("/counter/{counter_id}", response_model=CounterQueueResponse)
async def read_counter_queue(
    counter_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> CounterQueueResponse:
    try:
        return await service.queue_for_counter(db, counter_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/counter/{counter_id}/current", response_model=CurrentEntryResponse)
async def read_current_entry(
    counter_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> CurrentEntryResponse:
    try:
        return await service.current_for_counter(db, counter_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/stats/{counter_id}", response_model=QueueStatsResponse)
async def read_counter_stats(
    counter_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> QueueStatsResponse:
    try:
        return await service.stats_for_counter(db, counter_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/skip", response_model=QueueActionResponse)
async def skip_entry(
    payload: SkipRequest,
    db: AsyncSession = Depends(get_db),
) -> QueueActionResponse:
    try:
        return await payment_service.skip_entry(db, payload.queue_id, counter_id=payload.counter_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/remove", response_model=QueueActionResponse)
async def remove_entry(
    payload: RemoveRequest,
    db: AsyncSession = Depends(get_db),
) -> QueueActionResponse:
    try:
        return await payment_service.remove_entry(
            db,
            payload.queue_id,
            reason=payload.reason,
            counter_id=payload.counter_id,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
