"""Queue read projections: counter queue, student history, counter stats. No mutation."""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fee_queue.core.clock import local_day_bounds
from fee_queue.core.enums import ACTIVE_STATUSES, QueueStatus
from fee_queue.core.exceptions import NotFoundError
from fee_queue.core.models import Counter, Payment

from .ledger import active_entries, current_of_counter, effective_ranks, entry_stmt
from .schemas import (
    CounterQueueResponse,
    CurrentEntryResponse,
    QueueEntryResponse,
    QueueStatsResponse,
)


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def _processed_by_name(entry: Payment) -> Optional[str]:
    user = entry.processed_by
    if user is None:
        return None
    if user.accountant_profile is not None:
        return user.accountant_profile.full_name
    return user.email


def to_entry_response(entry: Payment, rank: Optional[int]) -> QueueEntryResponse:
    student = entry.student
    counter = entry.counter
    fee_type = entry.fee_type
    return QueueEntryResponse(
        queue_id=entry.id,
        token_number=entry.token_number,
        student_id=entry.student_id,
        student_name=student.full_name if student else None,
        roll_number=student.roll_number if student else None,
        counter_id=entry.counter_id,
        counter_name=counter.counter_name if counter else None,
        counter_number=counter.counter_number if counter else None,
        fee_type_id=entry.fee_type_id,
        fee_type=fee_type.type_name if fee_type else None,
        amount=_to_decimal(entry.amount),
        description=entry.description,
        queue_position=entry.queue_position,
        effective_rank=rank,
        status=entry.status,
        payment_method=entry.payment_method,
        processed_by=_processed_by_name(entry),
        removal_reason=entry.removal_reason,
        created_at=entry.created_at,
        completed_at=entry.completed_at,
        removed_at=entry.removed_at,
    )


async def _get_counter(db: AsyncSession, counter_id: UUID) -> Counter:
    counter = await db.get(Counter, counter_id)
    if not counter:
        raise NotFoundError("Counter not found")
    return counter


async def queue_for_counter(db: AsyncSession, counter_id: UUID) -> CounterQueueResponse:
    counter = await _get_counter(db, counter_id)
    entries = await active_entries(db, counter_id)
    # Entries are in sequence order, so the rank is the list index
    items = [to_entry_response(e, i) for i, e in enumerate(entries, start=1)]
    return CounterQueueResponse(
        counter_id=counter.id,
        counter_name=counter.counter_name,
        counter_number=counter.counter_number,
        current=items[0] if items else None,
        entries=items,
    )


async def current_for_counter(db: AsyncSession, counter_id: UUID) -> CurrentEntryResponse:
    await _get_counter(db, counter_id)
    entry = await current_of_counter(db, counter_id)
    current = to_entry_response(entry, 1) if entry else None
    return CurrentEntryResponse(counter_id=counter_id, current=current)


async def queue_for_student(db: AsyncSession, student_id: UUID) -> List[QueueEntryResponse]:
    """All of a student's entries, newest first; active ones carry their current rank."""
    stmt = (
        entry_stmt()
        .where(Payment.student_id == student_id)
        .order_by(Payment.created_at.desc(), Payment.queue_position.desc())
    )
    result = await db.execute(stmt)
    entries = list(result.scalars().all())
    ranks = await effective_ranks(db, entries)
    return [to_entry_response(e, ranks.get(e.id)) for e in entries]


async def stats_for_counter(db: AsyncSession, counter_id: UUID) -> QueueStatsResponse:
    """Active count plus today's completions and revenue. "Today" is the server's local day."""
    await _get_counter(db, counter_id)
    day_start, day_end = local_day_bounds()

    queue_count = (
        await db.execute(
            select(func.count(Payment.id)).where(
                Payment.counter_id == counter_id,
                Payment.status.in_(ACTIVE_STATUSES),
            )
        )
    ).scalar() or 0

    completed_today = and_(
        Payment.counter_id == counter_id,
        Payment.status == QueueStatus.COMPLETED.value,
        Payment.completed_at >= day_start,
        Payment.completed_at < day_end,
    )
    processed_row = (
        await db.execute(
            select(
                func.count(Payment.id),
                func.coalesce(func.sum(Payment.amount), 0),
            ).where(completed_today)
        )
    ).one()

    removed_today = (
        await db.execute(
            select(func.count(Payment.id)).where(
                Payment.counter_id == counter_id,
                Payment.status == QueueStatus.REMOVED.value,
                Payment.removed_at >= day_start,
                Payment.removed_at < day_end,
            )
        )
    ).scalar() or 0

    current = await current_of_counter(db, counter_id)
    return QueueStatsResponse(
        counter_id=counter_id,
        queue_count=queue_count,
        processed_today=processed_row[0] or 0,
        revenue_today=_to_decimal(processed_row[1]),
        removed_today=removed_today,
        current_token=current.token_number if current else None,
    )
