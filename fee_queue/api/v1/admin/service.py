"""Admin service: counters, fee types, accountant accounts."""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fee_queue.auth.models import AccountantProfile, User
from fee_queue.auth.security import hash_password
from fee_queue.core.enums import UserRole
from fee_queue.core.exceptions import NotFoundError, StorageError, ValidationError
from fee_queue.core.models import Counter, FeeType

from .schemas import (
    AccountantCreate,
    AccountantResponse,
    CounterCreate,
    CounterResponse,
    CounterUpdate,
    FeeTypeCreate,
    FeeTypeResponse,
)

logger = logging.getLogger(__name__)


def _normalize_codes(codes: List[str]) -> List[str]:
    return list(dict.fromkeys(c.strip().upper() for c in codes if c and c.strip()))


# --- Counters ---
async def create_counter(db: AsyncSession, payload: CounterCreate) -> CounterResponse:
    try:
        counter = Counter(
            counter_number=payload.counter_number,
            counter_name=payload.counter_name.strip(),
            fee_types=_normalize_codes(payload.fee_types),
            is_active=True,
            last_sequence=0,
        )
        db.add(counter)
        await db.commit()
        await db.refresh(counter)
    except IntegrityError:
        await db.rollback()
        raise ValidationError("Counter number already exists")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Counter creation failed")
        raise StorageError("Failed to create counter") from e
    logger.info("Created counter %s (%s)", counter.counter_number, counter.counter_name)
    return CounterResponse.model_validate(counter)


async def list_counters(db: AsyncSession, active_only: bool = False) -> List[CounterResponse]:
    stmt = select(Counter)
    if active_only:
        stmt = stmt.where(Counter.is_active.is_(True))
    stmt = stmt.order_by(Counter.counter_number)
    result = await db.execute(stmt)
    return [CounterResponse.model_validate(c) for c in result.scalars().all()]


async def _get_accountant_profile(db: AsyncSession, user_id: UUID) -> AccountantProfile:
    profile = (
        await db.execute(select(AccountantProfile).where(AccountantProfile.user_id == user_id))
    ).scalar_one_or_none()
    if not profile:
        raise NotFoundError("Accountant not found")
    return profile


async def _release_counter(db: AsyncSession, counter: Counter) -> None:
    """Detach the counter's current accountant, clearing both sides of the link."""
    if counter.assigned_accountant_id is None:
        return
    previous = (
        await db.execute(
            select(AccountantProfile).where(AccountantProfile.user_id == counter.assigned_accountant_id)
        )
    ).scalar_one_or_none()
    if previous and previous.assigned_counter_id == counter.id:
        previous.assigned_counter_id = None
    counter.assigned_accountant_id = None


async def update_counter(
    db: AsyncSession, counter_id: UUID, payload: CounterUpdate
) -> CounterResponse:
    counter = await db.get(Counter, counter_id)
    if not counter:
        raise NotFoundError("Counter not found")

    if payload.counter_name is not None:
        counter.counter_name = payload.counter_name.strip()
    if payload.fee_types is not None:
        counter.fee_types = _normalize_codes(payload.fee_types)
    if payload.is_active is not None:
        counter.is_active = payload.is_active

    if payload.unassign_accountant:
        await _release_counter(db, counter)
    elif payload.assigned_accountant_id is not None:
        profile = await _get_accountant_profile(db, payload.assigned_accountant_id)
        # One counter per accountant: release whatever counter they held before
        stmt = select(Counter).where(
            Counter.assigned_accountant_id == payload.assigned_accountant_id,
            Counter.id != counter.id,
        )
        for other in (await db.execute(stmt)).scalars().all():
            other.assigned_accountant_id = None
        if counter.assigned_accountant_id != payload.assigned_accountant_id:
            await _release_counter(db, counter)
        counter.assigned_accountant_id = payload.assigned_accountant_id
        profile.assigned_counter_id = counter.id

    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Counter update failed for %s", counter_id)
        raise StorageError("Failed to update counter") from e
    await db.refresh(counter)
    return CounterResponse.model_validate(counter)


# --- Fee types ---
async def create_fee_type(db: AsyncSession, payload: FeeTypeCreate) -> FeeTypeResponse:
    try:
        fee_type = FeeType(
            code=payload.code.strip().upper()[:50],
            type_name=payload.type_name.strip(),
            description=(payload.description or "").strip() or None,
            default_amount=payload.default_amount,
            is_active=True,
        )
        db.add(fee_type)
        await db.commit()
        await db.refresh(fee_type)
    except IntegrityError:
        await db.rollback()
        raise ValidationError("Fee type code already exists")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Fee type creation failed")
        raise StorageError("Failed to create fee type") from e
    return FeeTypeResponse.model_validate(fee_type)


async def list_fee_types(db: AsyncSession) -> List[FeeTypeResponse]:
    result = await db.execute(select(FeeType).order_by(FeeType.type_name))
    return [FeeTypeResponse.model_validate(f) for f in result.scalars().all()]


# --- Accountants ---
async def create_accountant(db: AsyncSession, payload: AccountantCreate) -> AccountantResponse:
    email = str(payload.email).strip().lower()
    existing = await db.execute(select(User.id).where(func.lower(User.email) == email))
    if existing.first() is not None:
        raise ValidationError("Email is already in use")

    counter: Optional[Counter] = None
    if payload.assigned_counter_id is not None:
        counter = await db.get(Counter, payload.assigned_counter_id)
        if not counter:
            raise NotFoundError("Counter not found")

    try:
        user = User(
            email=email,
            password_hash=hash_password(payload.password),
            role=UserRole.ACCOUNTANT.value,
            is_active=True,
        )
        db.add(user)
        await db.flush()  # to populate user.id

        profile = AccountantProfile(
            user_id=user.id,
            full_name=payload.full_name.strip(),
            unique_id=payload.unique_id.strip().upper(),
            phone_number=(payload.phone_number or "").strip() or None,
            assigned_counter_id=counter.id if counter else None,
        )
        db.add(profile)
        if counter:
            await _release_counter(db, counter)
            counter.assigned_accountant_id = user.id
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationError("Accountant email or staff id already exists")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Accountant creation failed for %s", email)
        raise StorageError("Failed to create accountant") from e

    logger.info("Created accountant %s (%s)", email, profile.unique_id)
    return AccountantResponse(
        id=profile.id,
        user_id=user.id,
        email=user.email,
        full_name=profile.full_name,
        unique_id=profile.unique_id,
        phone_number=profile.phone_number,
        assigned_counter_id=profile.assigned_counter_id,
    )
