"""Admin schemas: counters, fee types, accountant accounts."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import EmailStr, Field

from fee_queue.core.schemas import ApiModel


class CounterCreate(ApiModel):
    counter_number: int = Field(..., ge=1)
    counter_name: str = Field(..., min_length=1, max_length=100)
    fee_types: List[str] = Field(default_factory=list, description="Fee type codes accepted (advisory)")


class CounterUpdate(ApiModel):
    counter_name: Optional[str] = Field(None, min_length=1, max_length=100)
    fee_types: Optional[List[str]] = None
    is_active: Optional[bool] = None
    assigned_accountant_id: Optional[UUID] = Field(None, description="users.id of an accountant")
    unassign_accountant: bool = False


class CounterResponse(ApiModel):
    id: UUID
    counter_number: int
    counter_name: str
    fee_types: List[str]
    assigned_accountant_id: Optional[UUID] = None
    is_active: bool
    last_sequence: int
    created_at: datetime

    class Config:
        from_attributes = True


class FeeTypeCreate(ApiModel):
    code: str = Field(..., min_length=1, max_length=50)
    type_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    default_amount: Optional[Decimal] = Field(None, gt=0)


class FeeTypeResponse(ApiModel):
    id: UUID
    code: str
    type_name: str
    description: Optional[str] = None
    default_amount: Optional[Decimal] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AccountantCreate(ApiModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)
    unique_id: str = Field(..., min_length=1, max_length=50)
    phone_number: Optional[str] = Field(None, max_length=30)
    assigned_counter_id: Optional[UUID] = None


class AccountantResponse(ApiModel):
    id: UUID
    user_id: UUID
    email: str
    full_name: str
    unique_id: str
    phone_number: Optional[str] = None
    assigned_counter_id: Optional[UUID] = None


class AccountActiveUpdate(ApiModel):
    is_active: bool
