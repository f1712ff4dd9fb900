import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fee_queue.auth.models import StudentProfile, User
from fee_queue.auth.schemas import (
    AccountantDetails,
    CurrentUser,
    LoginRequest,
    LoginResponse,
    StudentDetails,
    StudentRegisterRequest,
    StudentRegisterResponse,
    UserInfo,
)
from fee_queue.auth.security import (
    create_access_token,
    credential_claims,
    decode_access_token,
    hash_password,
    verify_password,
)
from fee_queue.core.enums import UserRole
from fee_queue.core.exceptions import (
    InactiveAccountError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _user_stmt():
    return select(User).options(
        selectinload(User.student_profile),
        selectinload(User.accountant_profile),
    )


def to_user_info(user: User) -> UserInfo:
    student = user.student_profile
    accountant = user.accountant_profile
    return UserInfo(
        id=user.id,
        email=user.email,
        role=user.role,
        roll_number=user.roll_number,
        student=StudentDetails.model_validate(student) if student else None,
        accountant=AccountantDetails.model_validate(accountant) if accountant else None,
    )


async def find_user_by_identifier(db: AsyncSession, identifier: str) -> Optional[User]:
    """Emails contain "@"; anything else is treated as a roll number."""
    identifier = identifier.strip()
    if "@" in identifier:
        stmt = _user_stmt().where(func.lower(User.email) == identifier.lower())
    else:
        stmt = _user_stmt().where(User.roll_number == identifier)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    # 1. Look up the account by email or roll number
    user = await find_user_by_identifier(db, payload.identifier)
    if not user:
        logger.warning("Login failed: unknown identifier %s", payload.identifier)
        raise InvalidCredentialsError()

    # 2. Verify password hash
    if not verify_password(payload.password, user.password_hash):
        logger.warning("Login failed: bad password for %s", user.email)
        raise InvalidCredentialsError()

    # 3. Deactivated accounts cannot obtain new tokens
    if not user.is_active:
        raise InactiveAccountError("User is inactive")

    # 4. Issue the signed credential
    token = create_access_token(subject=credential_claims(user.id, user.email, user.role))
    logger.info("Login successful for %s (%s)", user.email, user.role)

    return LoginResponse(token=token, user=to_user_info(user))


async def authenticate(db: AsyncSession, token: str) -> CurrentUser:
    """Verify the bearer credential and confirm the account is still active."""
    payload = decode_access_token(token)

    user_id_str = payload.get("user_id") or payload.get("sub")
    if not user_id_str or not payload.get("role"):
        raise InvalidTokenError()
    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise InvalidTokenError()

    user = await db.get(User, user_id)
    if not user or not user.is_active:
        raise InactiveAccountError()

    return CurrentUser(id=user.id, email=user.email, role=user.role)


async def get_user_info(db: AsyncSession, user_id: UUID) -> UserInfo:
    result = await db.execute(_user_stmt().where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise InactiveAccountError()
    return to_user_info(user)


async def register_student(
    db: AsyncSession, payload: StudentRegisterRequest
) -> StudentRegisterResponse:
    email = str(payload.college_email).strip().lower()
    roll_number = payload.roll_number.strip()

    existing = await db.execute(
        select(User.id).where(
            or_(func.lower(User.email) == email, User.roll_number == roll_number)
        )
    )
    if existing.first() is not None:
        raise ValidationError("Email or Roll Number already exists")

    try:
        user = User(
            email=email,
            roll_number=roll_number,
            password_hash=hash_password(payload.password),
            role=UserRole.STUDENT.value,
            is_active=True,
        )
        db.add(user)
        await db.flush()  # to populate user.id

        student = StudentProfile(
            user_id=user.id,
            full_name=payload.full_name.strip(),
            roll_number=roll_number,
            college_email=email,
            phone_number=(payload.phone_number or "").strip() or None,
            year=(payload.year or "").strip() or None,
            branch=(payload.branch or "").strip() or None,
        )
        db.add(student)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ValidationError("Email or Roll Number already exists") from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Student registration failed for %s", email)
        raise StorageError("Failed to create user account") from e

    logger.info("Student registered: %s", email)
    return StudentRegisterResponse(user_id=user.id, student_id=student.id)


def change_password(user: User, current_password: str, new_password: str) -> None:
    """Caller commits."""
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Invalid current password")
    user.password_hash = hash_password(new_password)


async def set_account_active(db: AsyncSession, user_id: UUID, is_active: bool) -> UserInfo:
    result = await db.execute(_user_stmt().where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("Account not found")
    user.is_active = is_active
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise StorageError("Failed to update account") from e
    logger.info("Account %s set active=%s", user.email, is_active)
    return to_user_info(user)
