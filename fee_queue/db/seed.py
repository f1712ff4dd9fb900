"""
Seed script: create tables, the first admin account, and default counters and fee types.

Run once with env set:
  DATABASE_URL=postgresql+asyncpg://...
  ADMIN_EMAIL=admin@college.edu
  ADMIN_PASSWORD=YourSecurePassword

  python -m fee_queue.db.seed

Idempotent: existing rows (matched by email, counter number, fee type code) are left alone.
"""
import asyncio
import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fee_queue.auth.models import User
from fee_queue.auth.security import hash_password
from fee_queue.core.config import settings
from fee_queue.core.enums import UserRole
from fee_queue.core.models import Counter, FeeType
from fee_queue.db.session import AsyncSessionLocal, Base, engine

logger = logging.getLogger(__name__)

DEFAULT_FEE_TYPES = [
    ("TUITION", "Tuition Fee", Decimal("50000.00")),
    ("EXAM", "Examination Fee", Decimal("2500.00")),
    ("HOSTEL", "Hostel Fee", Decimal("30000.00")),
    ("TRANSPORT", "Transport Fee", Decimal("12000.00")),
    ("LIBRARY", "Library Fee", Decimal("1000.00")),
]

DEFAULT_COUNTERS = [
    (1, "Counter 1 - Tuition", ["TUITION"]),
    (2, "Counter 2 - Exam & Library", ["EXAM", "LIBRARY"]),
    (3, "Counter 3 - Hostel & Transport", ["HOSTEL", "TRANSPORT"]),
]


async def create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_defaults(db: AsyncSession) -> None:
    # 1. Admin account
    if settings.admin_email and settings.admin_password:
        email = settings.admin_email.strip().lower()
        existing = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
        if existing is None:
            db.add(
                User(
                    email=email,
                    password_hash=hash_password(settings.admin_password),
                    role=UserRole.ADMIN.value,
                    is_active=True,
                )
            )
            logger.info("Created admin account %s", email)
    else:
        logger.info("No ADMIN_EMAIL/ADMIN_PASSWORD; skipping admin account.")

    # 2. Fee types
    for code, name, amount in DEFAULT_FEE_TYPES:
        found = (await db.execute(select(FeeType.id).where(FeeType.code == code))).first()
        if found is None:
            db.add(FeeType(code=code, type_name=name, default_amount=amount, is_active=True))

    # 3. Counters
    for number, name, fee_codes in DEFAULT_COUNTERS:
        found = (await db.execute(select(Counter.id).where(Counter.counter_number == number))).first()
        if found is None:
            db.add(Counter(counter_number=number, counter_name=name, fee_types=fee_codes, is_active=True, last_sequence=0))

    await db.commit()


async def main() -> None:
    logging.basicConfig(level=settings.log_level.upper())
    await create_tables()
    async with AsyncSessionLocal() as db:
        await seed_defaults(db)
    await engine.dispose()
    logger.info("Seed complete.")


if __name__ == "__main__":
    asyncio.run(main())
