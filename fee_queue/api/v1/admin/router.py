"""Admin router: counters, fee types, accountants, account activation."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fee_queue.auth.rbac import require_admin
from fee_queue.auth.schemas import UserInfo
from fee_queue.auth.services import set_account_active
from fee_queue.core.exceptions import ServiceError
from fee_queue.db.session import get_db

from .schemas import (
    AccountActiveUpdate,
    AccountantCreate,
    AccountantResponse,
    CounterCreate,
    CounterResponse,
    CounterUpdate,
    FeeTypeCreate,
    FeeTypeResponse,
)
from . import service

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


# --- Counters ---
@router.post("/counters", response_model=CounterResponse, status_code=status.HTTP_201_CREATED)
async def create_counter(
    payload: CounterCreate,
    db: AsyncSession = Depends(get_db),
) -> CounterResponse:
    try:
        return await service.create_counter(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/counters", response_model=List[CounterResponse])
async def list_counters(
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
) -> List[CounterResponse]:
    return await service.list_counters(db, active_only=active_only)


@router.patch("/counters/{counter_id}", response_model=CounterResponse)
async def update_counter(
    counter_id: UUID,
    payload: CounterUpdate,
    db: AsyncSession = Depends(get_db),
) -> CounterResponse:
    try:
        return await service.update_counter(db, counter_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Fee types ---
@router.post("/fee-types", response_model=FeeTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_fee_type(
    payload: FeeTypeCreate,
    db: AsyncSession = Depends(get_db),
) -> FeeTypeResponse:
    try:
        return await service.create_fee_type(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/fee-types", response_model=List[FeeTypeResponse])
async def list_fee_types(
    db: AsyncSession = Depends(get_db),
) -> List[FeeTypeResponse]:
    return await service.list_fee_types(db)


# --- Accounts ---
@router.post("/accountants", response_model=AccountantResponse, status_code=status.HTTP_201_CREATED)
async def create_accountant(
    payload: AccountantCreate,
    db: AsyncSession = Depends(get_db),
) -> AccountantResponse:
    try:
        return await service.create_accountant(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/accounts/{user_id}/active", response_model=UserInfo)
async def update_account_active(
    user_id: UUID,
    payload: AccountActiveUpdate,
    db: AsyncSession = Depends(get_db),
) -> UserInfo:
    try:
        return await set_account_active(db, user_id, payload.is_active)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
