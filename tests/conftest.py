import os
from decimal import Decimal
from typing import AsyncGenerator, Callable, Dict, Optional, Tuple

# Settings are read at import time; give the test run its own values
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./fee_queue_test.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from fee_queue.auth.models import AccountantProfile, StudentProfile, User
from fee_queue.auth.security import create_access_token, credential_claims, hash_password
from fee_queue.core.enums import UserRole
from fee_queue.core.models import Counter, FeeType
from fee_queue.db.session import Base, get_db
from fee_queue.main import app


TEST_PASSWORD = "Secret123"


@pytest.fixture()
async def engine(tmp_path):
    """Fresh SQLite database file per test."""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        future=True,
        connect_args={"timeout": 30},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture()
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture()
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for test setup and assertions. Each request gets its own session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with session_factory() as session:
        yield session
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(
        subject=credential_claims(user.id, user.email, user.role)
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_student(db_session: AsyncSession) -> Callable:
    async def _make(
        full_name: str = "Asha Rao",
        roll_number: str = "21CS001",
        email: Optional[str] = None,
        password: str = TEST_PASSWORD,
    ) -> Tuple[User, StudentProfile]:
        email = email or f"{roll_number.lower()}@college.edu"
        user = User(
            email=email,
            roll_number=roll_number,
            password_hash=hash_password(password),
            role=UserRole.STUDENT.value,
            is_active=True,
        )
        db_session.add(user)
        await db_session.flush()
        student = StudentProfile(
            user_id=user.id,
            full_name=full_name,
            roll_number=roll_number,
            college_email=email,
            year="3",
            branch="CSE",
        )
        db_session.add(student)
        await db_session.commit()
        return user, student

    return _make


@pytest.fixture()
def make_accountant(db_session: AsyncSession) -> Callable:
    async def _make(
        full_name: str = "Ravi Kumar",
        email: str = "ravi@college.edu",
        unique_id: str = "ACC001",
        counter: Optional[Counter] = None,
    ) -> Tuple[User, AccountantProfile]:
        user = User(
            email=email,
            password_hash=hash_password(TEST_PASSWORD),
            role=UserRole.ACCOUNTANT.value,
            is_active=True,
        )
        db_session.add(user)
        await db_session.flush()
        profile = AccountantProfile(
            user_id=user.id,
            full_name=full_name,
            unique_id=unique_id,
            assigned_counter_id=counter.id if counter else None,
        )
        db_session.add(profile)
        if counter is not None:
            counter.assigned_accountant_id = user.id
        await db_session.commit()
        return user, profile

    return _make


@pytest.fixture()
def make_admin(db_session: AsyncSession) -> Callable:
    async def _make(email: str = "admin@college.edu") -> User:
        user = User(
            email=email,
            password_hash=hash_password(TEST_PASSWORD),
            role=UserRole.ADMIN.value,
            is_active=True,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture()
def make_counter(db_session: AsyncSession) -> Callable:
    async def _make(
        counter_number: int = 1,
        counter_name: str = "Counter 1 - Tuition",
        is_active: bool = True,
    ) -> Counter:
        counter = Counter(
            counter_number=counter_number,
            counter_name=counter_name,
            fee_types=["TUITION"],
            is_active=is_active,
            last_sequence=0,
        )
        db_session.add(counter)
        await db_session.commit()
        return counter

    return _make


@pytest.fixture()
def make_fee_type(db_session: AsyncSession) -> Callable:
    async def _make(code: str = "TUITION", type_name: str = "Tuition Fee") -> FeeType:
        fee_type = FeeType(
            code=code,
            type_name=type_name,
            default_amount=Decimal("50000.00"),
            is_active=True,
        )
        db_session.add(fee_type)
        await db_session.commit()
        return fee_type

    return _make
