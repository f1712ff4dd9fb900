"""
Payment processor: terminal transitions (complete, remove) and skip.

Every mutation is a single conditional UPDATE guarded by status IN ('pending','processing');
when two accountants race on the same entry the loser gets InvalidStateError and the entry
is left as the winner wrote it.
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fee_queue.api.v1.queue.ledger import effective_rank, get_entry, is_active, next_sequence
from fee_queue.api.v1.queue.schemas import QueueActionResponse
from fee_queue.api.v1.queue.tokens import generate_receipt_number
from fee_queue.auth.models import AccountantProfile, User
from fee_queue.core.clock import utcnow
from fee_queue.core.enums import ACTIVE_STATUSES, PaymentMethod, QueueStatus
from fee_queue.core.exceptions import InvalidStateError, NotFoundError, StorageError
from fee_queue.core.models import Payment

from .schemas import ReceiptResponse

logger = logging.getLogger(__name__)


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


async def _load_active_entry(
    db: AsyncSession, entry_id: UUID, counter_id: Optional[UUID] = None
) -> Payment:
    entry = await get_entry(db, entry_id)
    if counter_id is not None and entry.counter_id != counter_id:
        raise NotFoundError("Queue entry not found at this counter")
    if not is_active(entry):
        logger.warning("Rejected transition on %s: already %s", entry.token_number, entry.status)
        raise InvalidStateError(f"Queue entry is already {entry.status}")
    return entry


async def _transition(db: AsyncSession, entry_id: UUID, **values) -> None:
    """Apply values only if the entry is still active, then commit. Raises InvalidStateError otherwise."""
    stmt = (
        update(Payment)
        .where(Payment.id == entry_id, Payment.status.in_(ACTIVE_STATUSES))
        .values(**values)
        .returning(Payment.id)
        .execution_options(synchronize_session=False)
    )
    try:
        updated = (await db.execute(stmt)).scalar_one_or_none()
        if updated is None:
            await db.rollback()
            raise InvalidStateError("Queue entry was already completed or removed")
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Queue transition failed for %s", entry_id)
        raise StorageError("Failed to update queue entry") from e


async def _accountant_name(db: AsyncSession, accountant_id: UUID) -> str:
    profile = (
        await db.execute(select(AccountantProfile).where(AccountantProfile.user_id == accountant_id))
    ).scalar_one_or_none()
    if profile:
        return profile.full_name
    user = await db.get(User, accountant_id)
    return user.email if user else "Accountant"


async def process_payment(
    db: AsyncSession,
    entry_id: UUID,
    accountant_id: UUID,
    payment_method: PaymentMethod = PaymentMethod.CASH,
) -> ReceiptResponse:
    """Complete the entry and return its receipt. The only path to status completed."""
    await _load_active_entry(db, entry_id)
    completed_at = utcnow()
    await _transition(
        db,
        entry_id,
        status=QueueStatus.COMPLETED.value,
        assigned_to=accountant_id,
        payment_method=payment_method.value,
        completed_at=completed_at,
    )

    entry = await get_entry(db, entry_id, refresh=True)
    accountant_name = await _accountant_name(db, accountant_id)
    receipt_number = generate_receipt_number()
    logger.info(
        "Processed %s at counter %s by %s (receipt %s)",
        entry.token_number, entry.counter.counter_number, accountant_name, receipt_number,
    )
    return ReceiptResponse(
        receipt_number=receipt_number,
        queue_id=entry.id,
        token_number=entry.token_number,
        student_id=entry.student_id,
        student_name=entry.student.full_name if entry.student else None,
        roll_number=entry.student.roll_number if entry.student else None,
        counter_id=entry.counter_id,
        counter_name=entry.counter.counter_name,
        counter_number=entry.counter.counter_number,
        accountant_id=accountant_id,
        accountant_name=accountant_name,
        fee_type=entry.fee_type.type_name if entry.fee_type else None,
        amount=_to_decimal(entry.amount),
        description=entry.description,
        payment_method=entry.payment_method,
        status=entry.status,
        payment_date=entry.completed_at or completed_at,
    )


async def skip_entry(
    db: AsyncSession, entry_id: UUID, counter_id: Optional[UUID] = None
) -> QueueActionResponse:
    """Move the entry to the back of its counter's queue; status is unchanged."""
    entry = await _load_active_entry(db, entry_id, counter_id)
    try:
        sequence = await next_sequence(db, entry.counter_id)
    except SQLAlchemyError as e:
        await db.rollback()
        raise StorageError("Failed to update queue entry") from e
    await _transition(db, entry_id, queue_position=sequence)

    entry = await get_entry(db, entry_id, refresh=True)
    rank = await effective_rank(db, entry)
    logger.info("Skipped %s to seq=%s (rank %s)", entry.token_number, sequence, rank)
    return QueueActionResponse(
        message="Student moved to end of queue",
        queue_id=entry.id,
        status=entry.status,
        queue_position=entry.queue_position,
        effective_rank=rank,
    )


async def remove_entry(
    db: AsyncSession,
    entry_id: UUID,
    reason: Optional[str] = None,
    counter_id: Optional[UUID] = None,
) -> QueueActionResponse:
    """Mark the entry removed. Other entries keep their sequence; ranks close up on read."""
    await _load_active_entry(db, entry_id, counter_id)
    await _transition(
        db,
        entry_id,
        status=QueueStatus.REMOVED.value,
        removal_reason=(reason or "").strip() or None,
        removed_at=utcnow(),
    )

    entry = await get_entry(db, entry_id, refresh=True)
    logger.info("Removed %s from counter queue (reason=%s)", entry.token_number, entry.removal_reason)
    return QueueActionResponse(
        message="Student removed from queue",
        queue_id=entry.id,
        status=entry.status,
        queue_position=entry.queue_position,
        effective_rank=None,
    )
