from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from fee_queue.core.schemas import ApiModel


class LoginRequest(ApiModel):
    # College email (contains "@") or roll number
    identifier: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class StudentDetails(ApiModel):
    id: UUID
    full_name: str
    roll_number: str
    college_email: str
    phone_number: Optional[str] = None
    year: Optional[str] = None
    branch: Optional[str] = None

    class Config:
        from_attributes = True


class AccountantDetails(ApiModel):
    id: UUID
    full_name: str
    unique_id: str
    phone_number: Optional[str] = None
    assigned_counter_id: Optional[UUID] = None

    class Config:
        from_attributes = True


class UserInfo(ApiModel):
    id: UUID
    email: str
    role: str
    roll_number: Optional[str] = None
    student: Optional[StudentDetails] = None
    accountant: Optional[AccountantDetails] = None


class LoginResponse(ApiModel):
    success: bool = True
    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    user: UserInfo


class MeResponse(ApiModel):
    success: bool = True
    user: UserInfo


class StudentRegisterRequest(ApiModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    roll_number: str = Field(..., min_length=1, max_length=50)
    college_email: EmailStr
    phone_number: Optional[str] = Field(None, max_length=30)
    year: Optional[str] = Field(None, max_length=20)
    branch: Optional[str] = Field(None, max_length=100)
    password: str = Field(..., min_length=6)


class StudentRegisterResponse(ApiModel):
    success: bool = True
    message: str = "Student registered successfully"
    user_id: UUID
    student_id: UUID


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated account for role checks."""

    id: UUID
    email: str
    role: str
