from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from fee_queue.auth.dependencies import get_current_user
from fee_queue.auth.schemas import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    MeResponse,
    StudentRegisterRequest,
    StudentRegisterResponse,
)
from fee_queue.auth.services import get_user_info, login_user, register_student
from fee_queue.core.exceptions import ServiceError
from fee_queue.db.session import get_db

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post(
    "/register/student",
    response_model=StudentRegisterResponse,
    status_code=http_status.HTTP_201_CREATED,
)
async def register(
    payload: StudentRegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> StudentRegisterResponse:
    try:
        return await register_student(db, payload)
    except ServiceError as e:
        if e.status_code == http_status.HTTP_500_INTERNAL_SERVER_ERROR:
            raise HTTPException(status_code=e.status_code, detail="Internal server error")
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=http_status.HTTP_200_OK,
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    try:
        return await login_user(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/login-oauth")
async def login_oauth(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    payload = LoginRequest(
        identifier=form_data.username.strip(),
        password=form_data.password,
    )
    try:
        result = await login_user(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {
        "access_token": result.token,
        "token_type": "bearer",
    }


@router.get("/me", response_model=MeResponse)
async def me(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MeResponse:
    try:
        return MeResponse(user=await get_user_info(db, current_user.id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
