"""Service-level tests for queue admission, sequence numbers and ranks."""

import asyncio
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from fee_queue.api.v1.payments.service import remove_entry
from fee_queue.api.v1.queue import ledger
from fee_queue.api.v1.queue.service import queue_for_counter, queue_for_student
from fee_queue.core.exceptions import NotFoundError, ValidationError
from fee_queue.core.models import Counter, Payment


@pytest.fixture()
async def counter(make_counter):
    return await make_counter()


@pytest.fixture()
async def fee_type(make_fee_type):
    return await make_fee_type()


@pytest.mark.asyncio
async def test_enqueue_assigns_pending_entry_with_token(db_session, make_student, counter, fee_type) -> None:
    _, student = await make_student()

    entry = await ledger.enqueue(db_session, student.id, counter.id, fee_type.id, Decimal("500"), "Sem 5 tuition")

    assert entry.status == "pending"
    assert entry.queue_position == 1
    assert entry.token_number.startswith("TKN")
    assert len(entry.token_number) == 12
    assert entry.description == "Sem 5 tuition"
    assert await ledger.effective_rank(db_session, entry) == 1


@pytest.mark.asyncio
async def test_sequence_numbers_increase_per_counter(db_session, make_student, make_counter, fee_type) -> None:
    _, a = await make_student("A", "21CS001")
    _, b = await make_student("B", "21CS002")
    c1 = await make_counter(1, "Counter 1")
    c2 = await make_counter(2, "Counter 2")

    e1 = await ledger.enqueue(db_session, a.id, c1.id, fee_type.id, Decimal("100"))
    e2 = await ledger.enqueue(db_session, b.id, c1.id, fee_type.id, Decimal("100"))
    other = await ledger.enqueue(db_session, a.id, c2.id, fee_type.id, Decimal("100"))

    assert (e1.queue_position, e2.queue_position) == (1, 2)
    # Each counter keeps its own sequence
    assert other.queue_position == 1
    assert e1.token_number != e2.token_number


@pytest.mark.asyncio
async def test_concurrent_enqueues_get_distinct_sequences(session_factory, make_student, counter, fee_type) -> None:
    students = [await make_student(f"Student {i}", f"21CS1{i:02d}") for i in range(8)]

    async def admit(student_id):
        async with session_factory() as session:
            entry = await ledger.enqueue(session, student_id, counter.id, fee_type.id, Decimal("250"))
            return entry.queue_position

    positions = await asyncio.gather(*(admit(s.id) for _, s in students))

    assert sorted(positions) == list(range(1, len(students) + 1))
    async with session_factory() as session:
        stored = await session.get(Counter, counter.id)
        assert stored.last_sequence == len(students)


@pytest.mark.asyncio
async def test_enqueue_rejects_non_positive_amount(db_session, make_student, counter, fee_type) -> None:
    _, student = await make_student()

    with pytest.raises(ValidationError):
        await ledger.enqueue(db_session, student.id, counter.id, fee_type.id, Decimal("0"))
    with pytest.raises(ValidationError):
        await ledger.enqueue(db_session, student.id, counter.id, fee_type.id, Decimal("-5"))

    rows = (await db_session.execute(select(Payment))).scalars().all()
    assert rows == []


@pytest.mark.asyncio
async def test_enqueue_unknown_counter_or_fee_type(db_session, make_student, counter, fee_type) -> None:
    _, student = await make_student()

    with pytest.raises(NotFoundError):
        await ledger.enqueue(db_session, student.id, uuid4(), fee_type.id, Decimal("100"))
    with pytest.raises(NotFoundError):
        await ledger.enqueue(db_session, student.id, counter.id, uuid4(), Decimal("100"))

    rows = (await db_session.execute(select(Payment))).scalars().all()
    assert rows == []
    await db_session.refresh(counter)
    assert counter.last_sequence == 0


@pytest.mark.asyncio
async def test_enqueue_inactive_counter(db_session, make_student, make_counter, fee_type) -> None:
    _, student = await make_student()
    closed = await make_counter(5, "Closed counter", is_active=False)

    with pytest.raises(ValidationError):
        await ledger.enqueue(db_session, student.id, closed.id, fee_type.id, Decimal("100"))


@pytest.mark.asyncio
async def test_current_of_counter_is_rank_one(db_session, make_student, counter, fee_type) -> None:
    assert await ledger.current_of_counter(db_session, counter.id) is None

    entries = []
    for i in range(3):
        _, s = await make_student(f"S{i}", f"21EE0{i}")
        entries.append(await ledger.enqueue(db_session, s.id, counter.id, fee_type.id, Decimal("100")))

    current = await ledger.current_of_counter(db_session, counter.id)
    assert current.id == entries[0].id
    assert await ledger.effective_rank(db_session, current) == 1


@pytest.mark.asyncio
async def test_queue_for_counter_orders_by_sequence(db_session, make_student, counter, fee_type) -> None:
    tokens = []
    for i in range(3):
        _, s = await make_student(f"S{i}", f"21ME0{i}")
        entry = await ledger.enqueue(db_session, s.id, counter.id, fee_type.id, Decimal("100"))
        tokens.append(entry.token_number)

    view = await queue_for_counter(db_session, counter.id)

    assert [e.token_number for e in view.entries] == tokens
    assert [e.effective_rank for e in view.entries] == [1, 2, 3]
    assert view.current.token_number == tokens[0]
    assert view.entries[0].student_name == "S0"
    assert view.entries[0].fee_type == "Tuition Fee"


@pytest.mark.asyncio
async def test_queue_for_counter_unknown_counter(db_session) -> None:
    with pytest.raises(NotFoundError):
        await queue_for_counter(db_session, uuid4())


@pytest.mark.asyncio
async def test_enqueue_then_student_view_shows_pending_token(db_session, make_student, counter, fee_type) -> None:
    _, student = await make_student()

    entry = await ledger.enqueue(db_session, student.id, counter.id, fee_type.id, Decimal("500"))
    items = await queue_for_student(db_session, student.id)

    pending = [i for i in items if i.status == "pending"]
    assert len(pending) == 1
    assert pending[0].token_number == entry.token_number
    assert pending[0].effective_rank == 1
    assert pending[0].counter_name == counter.counter_name


@pytest.mark.asyncio
async def test_batch_ranks_match_single_rank(db_session, make_student, make_counter, counter, fee_type) -> None:
    other = await make_counter(2, "Counter 2")
    entries = []
    for i, target in enumerate([counter, other, counter, counter, other]):
        _, s = await make_student(f"Student {i}", f"23CS{i:03d}")
        entries.append(await ledger.enqueue(db_session, s.id, target.id, fee_type.id, Decimal("100")))
    await remove_entry(db_session, entries[0].id, reason="absent")
    entries = [await ledger.get_entry(db_session, e.id, refresh=True) for e in entries]

    ranks = await ledger.effective_ranks(db_session, entries)

    assert entries[0].id not in ranks
    assert [ranks[e.id] for e in entries[1:]] == [1, 1, 2, 2]
    for entry in entries[1:]:
        assert ranks[entry.id] == await ledger.effective_rank(db_session, entry)
