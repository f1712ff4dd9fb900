"""
Token and receipt number generation.

- Token: TKN + last 6 digits of epoch millis + 3 digit random suffix (e.g. TKN482913057).
- Receipt: REC + last 8 digits of epoch millis (e.g. REC17482913).
"""

import secrets
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fee_queue.core.clock import epoch_millis
from fee_queue.core.exceptions import StorageError
from fee_queue.core.models import Payment

TOKEN_PREFIX = "TKN"
RECEIPT_PREFIX = "REC"


def generate_token_candidate(now: Optional[datetime] = None) -> str:
    """Generate a single candidate token number (no DB check)."""
    millis = str(epoch_millis(now))[-6:]
    suffix = f"{secrets.randbelow(1000):03d}"
    return f"{TOKEN_PREFIX}{millis}{suffix}"


async def generate_token_number(
    db: AsyncSession,
    max_attempts: int = 20,
) -> str:
    """
    Generate a token number not yet used by any payment.
    Retries with a new candidate on collision; payments.token_number is also UNIQUE.
    """
    for _ in range(max_attempts):
        token = generate_token_candidate()
        result = await db.execute(
            select(Payment.id).where(Payment.token_number == token)
        )
        if result.scalar_one_or_none() is None:
            return token
    raise StorageError("Could not generate unique token number")


def generate_receipt_number(now: Optional[datetime] = None) -> str:
    return f"{RECEIPT_PREFIX}{str(epoch_millis(now))[-8:]}"
