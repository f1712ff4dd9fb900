"""
Queue ledger: admission of payment requests into per-counter queues and rank computation.

queue_position is a sequence number drawn from counters.last_sequence with a single
UPDATE ... RETURNING, so concurrent enqueues at one counter always get distinct,
strictly increasing values. Positions are never renumbered; the rank a student sees is
1 + the number of active entries at the same counter with a smaller sequence number.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from fee_queue.auth.models import StudentProfile, User
from fee_queue.core.enums import ACTIVE_STATUSES, QueueStatus
from fee_queue.core.exceptions import NotFoundError, StorageError, ValidationError
from fee_queue.core.models import Counter, FeeType, Payment

from .tokens import generate_token_number

logger = logging.getLogger(__name__)


def entry_stmt():
    """Select payments with everything the queue projections display."""
    return select(Payment).options(
        selectinload(Payment.student),
        selectinload(Payment.counter),
        selectinload(Payment.fee_type),
        selectinload(Payment.processed_by).selectinload(User.accountant_profile),
    )


def is_active(entry: Payment) -> bool:
    return entry.status in ACTIVE_STATUSES


async def next_sequence(db: AsyncSession, counter_id: UUID) -> Optional[int]:
    """
    Atomically bump and return the counter's sequence. None if the counter does not exist.
    The row stays locked (or the SQLite write lock held) until the caller's transaction ends.
    """
    stmt = (
        update(Counter)
        .where(Counter.id == counter_id)
        .values(last_sequence=Counter.last_sequence + 1)
        .returning(Counter.last_sequence)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def enqueue(
    db: AsyncSession,
    student_id: UUID,
    counter_id: UUID,
    fee_type_id: UUID,
    amount: Decimal,
    description: Optional[str] = None,
) -> Payment:
    """Admit a payment request at the back of the counter's queue (status pending)."""
    if amount is None or Decimal(str(amount)) <= 0:
        raise ValidationError("Amount must be a positive number")

    counter = await db.get(Counter, counter_id)
    if not counter:
        raise NotFoundError("Counter not found")
    if not counter.is_active:
        raise ValidationError("Counter is not accepting payments")
    fee_type = await db.get(FeeType, fee_type_id)
    if not fee_type or not fee_type.is_active:
        raise NotFoundError("Fee type not found")
    student = await db.get(StudentProfile, student_id)
    if not student:
        raise NotFoundError("Student not found")

    token_number = await generate_token_number(db)
    try:
        sequence = await next_sequence(db, counter_id)
        if sequence is None:
            await db.rollback()
            raise NotFoundError("Counter not found")
        entry = Payment(
            student_id=student_id,
            counter_id=counter_id,
            fee_type_id=fee_type_id,
            token_number=token_number,
            amount=amount,
            description=(description or "").strip() or None,
            queue_position=sequence,
            status=QueueStatus.PENDING.value,
        )
        db.add(entry)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.exception("Enqueue conflict at counter %s", counter_id)
        raise StorageError("Failed to create payment") from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Enqueue failed at counter %s", counter_id)
        raise StorageError("Failed to create payment") from e

    logger.info(
        "Enqueued %s at counter %s seq=%s amount=%s",
        entry.token_number, counter.counter_number, entry.queue_position, entry.amount,
    )
    return entry


async def effective_rank(db: AsyncSession, entry: Payment) -> Optional[int]:
    """1-based rank among active entries at the entry's counter; None for terminal entries."""
    if not is_active(entry):
        return None
    stmt = select(func.count(Payment.id)).where(
        Payment.counter_id == entry.counter_id,
        Payment.status.in_(ACTIVE_STATUSES),
        Payment.queue_position < entry.queue_position,
    )
    ahead = (await db.execute(stmt)).scalar() or 0
    return ahead + 1


async def effective_ranks(db: AsyncSession, entries: List[Payment]) -> Dict[UUID, int]:
    """Ranks for many entries in one grouped query; terminal entries are left out of the result."""
    ids = [e.id for e in entries if is_active(e)]
    if not ids:
        return {}
    ahead = aliased(Payment)
    stmt = (
        select(Payment.id, func.count(ahead.id))
        .outerjoin(
            ahead,
            and_(
                ahead.counter_id == Payment.counter_id,
                ahead.status.in_(ACTIVE_STATUSES),
                ahead.queue_position < Payment.queue_position,
            ),
        )
        .where(Payment.id.in_(ids))
        .group_by(Payment.id)
    )
    return {entry_id: count + 1 for entry_id, count in (await db.execute(stmt)).all()}

async def active_entries(db: AsyncSession, counter_id: UUID) -> List[Payment]:
    """Active entries at a counter in queue order (ascending sequence)."""
    stmt = (
        entry_stmt()
        .where(Payment.counter_id == counter_id, Payment.status.in_(ACTIVE_STATUSES))
        .order_by(Payment.queue_position.asc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def current_of_counter(db: AsyncSession, counter_id: UUID) -> Optional[Payment]:
    """The "now serving" entry: smallest active sequence at the counter, if any."""
    stmt = (
        entry_stmt()
        .where(Payment.counter_id == counter_id, Payment.status.in_(ACTIVE_STATUSES))
        .order_by(Payment.queue_position.asc())
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_entry(db: AsyncSession, entry_id: UUID, refresh: bool = False) -> Payment:
    stmt = entry_stmt().where(Payment.id == entry_id)
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    entry = (await db.execute(stmt)).scalar_one_or_none()
    if not entry:
        raise NotFoundError("Queue entry not found")
    return entry
