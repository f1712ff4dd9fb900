from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from uuid import UUID

import bcrypt
from jose import JWTError, jwt

from fee_queue.core.config import settings
from fee_queue.core.exceptions import InvalidTokenError


def hash_password(plain_password: str) -> str:
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def credential_claims(user_id: UUID, email: str, role: str) -> Dict:
    """Claims carried by the signed credential: who the caller is and which role they act in."""
    return {"sub": str(user_id), "user_id": str(user_id), "email": email, "role": role}


def create_access_token(
    *, subject: Dict, expires_minutes: Optional[int] = None
) -> str:
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes

    claims = {**subject, "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict:
    """Verify signature and expiry; raise InvalidTokenError otherwise."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise InvalidTokenError() from e
