"""Student service: payment intake, own queue, dashboard, payment options, profile."""

import logging
from decimal import Decimal
from typing import List
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fee_queue.api.v1.queue import ledger
from fee_queue.api.v1.queue.schemas import QueueEntryResponse
from fee_queue.api.v1.queue.service import queue_for_student, to_entry_response
from fee_queue.auth.models import StudentProfile, User
from fee_queue.auth.schemas import StudentDetails
from fee_queue.auth.services import change_password
from fee_queue.core.enums import ACTIVE_STATUSES, QueueStatus
from fee_queue.core.exceptions import NotFoundError, StorageError, ValidationError
from fee_queue.core.models import Counter, FeeType, Payment

from .schemas import (
    CounterOption,
    DashboardResponse,
    DashboardStats,
    FeeTypeOption,
    PaymentOptionsResponse,
    PaymentRequestCreate,
    PaymentRequestCreated,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
)

logger = logging.getLogger(__name__)

RECENT_PAYMENTS_LIMIT = 5


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


async def get_student_for_user(db: AsyncSession, user_id: UUID) -> StudentProfile:
    result = await db.execute(select(StudentProfile).where(StudentProfile.user_id == user_id))
    student = result.scalar_one_or_none()
    if not student:
        raise NotFoundError("Student not found")
    return student


async def create_payment_request(
    db: AsyncSession, user_id: UUID, payload: PaymentRequestCreate
) -> PaymentRequestCreated:
    student = await get_student_for_user(db, user_id)
    entry = await ledger.enqueue(
        db,
        student_id=student.id,
        counter_id=payload.counter_id,
        fee_type_id=payload.fee_type_id,
        amount=payload.amount,
        description=payload.description,
    )
    rank = await ledger.effective_rank(db, entry)
    return PaymentRequestCreated(
        payment_id=entry.id,
        token_number=entry.token_number,
        queue_position=entry.queue_position,
        effective_rank=rank,
    )


async def list_my_queue(db: AsyncSession, user_id: UUID) -> List[QueueEntryResponse]:
    student = await get_student_for_user(db, user_id)
    return await queue_for_student(db, student.id)


async def get_dashboard(db: AsyncSession, user_id: UUID) -> DashboardResponse:
    student = await get_student_for_user(db, user_id)

    totals = (
        await db.execute(
            select(
                func.count(Payment.id),
                func.coalesce(
                    func.sum(case((Payment.status == QueueStatus.COMPLETED.value, Payment.amount), else_=0)),
                    0,
                ),
                func.coalesce(
                    func.sum(case((Payment.status.in_(ACTIVE_STATUSES), Payment.amount), else_=0)),
                    0,
                ),
            ).where(Payment.student_id == student.id)
        )
    ).one()

    earliest_active = (
        await db.execute(
            select(Payment)
            .where(Payment.student_id == student.id, Payment.status.in_(ACTIVE_STATUSES))
            .order_by(Payment.created_at.asc())
            .limit(1)
        )
    ).scalar_one_or_none()
    queue_position = 0
    if earliest_active is not None:
        queue_position = await ledger.effective_rank(db, earliest_active) or 0

    recent = (
        await db.execute(
            ledger.entry_stmt()
            .where(Payment.student_id == student.id)
            .order_by(Payment.created_at.desc())
            .limit(RECENT_PAYMENTS_LIMIT)
        )
    ).scalars().all()
    ranks = await ledger.effective_ranks(db, list(recent))
    recent_items = [to_entry_response(e, ranks.get(e.id)) for e in recent]

    return DashboardResponse(
        student=StudentDetails.model_validate(student),
        stats=DashboardStats(
            total_payments=totals[0] or 0,
            paid_amount=_to_decimal(totals[1]),
            pending_amount=_to_decimal(totals[2]),
            queue_position=queue_position,
        ),
        recent_payments=recent_items,
    )


async def get_payment_options(db: AsyncSession) -> PaymentOptionsResponse:
    counters = (
        await db.execute(
            select(Counter).where(Counter.is_active.is_(True)).order_by(Counter.counter_number)
        )
    ).scalars().all()
    fee_types = (
        await db.execute(
            select(FeeType).where(FeeType.is_active.is_(True)).order_by(FeeType.type_name)
        )
    ).scalars().all()
    return PaymentOptionsResponse(
        counters=[CounterOption.model_validate(c) for c in counters],
        fee_types=[FeeTypeOption.model_validate(f) for f in fee_types],
    )


async def update_profile(
    db: AsyncSession, user_id: UUID, payload: ProfileUpdateRequest
) -> ProfileUpdateResponse:
    student = await get_student_for_user(db, user_id)
    user = await db.get(User, user_id)

    # Verify the current password before touching anything else
    if payload.new_password:
        change_password(user, payload.current_password, payload.new_password)

    if payload.full_name is not None:
        student.full_name = payload.full_name.strip()
    if payload.phone is not None:
        student.phone_number = payload.phone.strip() or None
    if payload.year is not None:
        student.year = payload.year.strip() or None
    if payload.branch is not None:
        student.branch = payload.branch.strip() or None
    if payload.email is not None:
        email = str(payload.email).strip().lower()
        user.email = email
        student.college_email = email
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ValidationError("Email is already in use") from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Profile update failed for %s", user_id)
        raise StorageError("Failed to update profile") from e

    return ProfileUpdateResponse(student=StudentDetails.model_validate(student))
