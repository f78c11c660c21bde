# finance_tracker/api/transactions_api.py

import re
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field, field_validator

from finance_tracker.api.dependencies import get_current_user_id, get_transaction_service
from finance_tracker.business_logic.transaction_service import TransactionService

router = APIRouter()

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


# --- Schemas Pydantic ---
class CategorySummary(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class TransactionPublic(BaseModel):
    id: str
    title: str
    amount: float
    type: str
    transaction_date: date = Field(..., alias="date")  # serialized as YYYY-MM-DD
    category_id: str = Field(..., alias="categoryId")
    user_id: str = Field(..., alias="userId")
    category: CategorySummary
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class TransactionWrite(BaseModel):
    title: str = Field(..., min_length=2)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)  # Numeric(12, 2) column
    type: Literal["income", "expense"]
    transaction_date: date = Field(..., alias="date")
    category_id: str = Field(..., alias="categoryId", min_length=1)

    class Config:
        str_strip_whitespace = True
        populate_by_name = True

    @field_validator("transaction_date", mode="before")
    @classmethod
    def calendar_date_only(cls, value):
        # Only plain YYYY-MM-DD strings, no timestamps or datetimes.
        if not isinstance(value, str) or not DATE_PATTERN.match(value):
            raise ValueError("Invalid date.")
        return value


@router.get("", response_model=List[TransactionPublic])
def list_transactions(
        month: Optional[str] = Query(None, pattern=MONTH_PATTERN, description="YYYY-MM"),
        user_id: str = Depends(get_current_user_id),
        service: TransactionService = Depends(get_transaction_service)
):
    """Transactions of the caller, newest first, optionally for one month."""
    return service.list_transactions(user_id, month)


@router.post("", response_model=TransactionPublic, status_code=status.HTTP_201_CREATED)
def create_transaction(
        body: TransactionWrite,
        user_id: str = Depends(get_current_user_id),
        service: TransactionService = Depends(get_transaction_service)
):
    return service.create_transaction(
        user_id, body.title, body.amount, body.type, body.transaction_date, body.category_id
    )


@router.patch("/{transaction_id}", response_model=TransactionPublic)
def update_transaction(
        transaction_id: str,
        body: TransactionWrite,
        user_id: str = Depends(get_current_user_id),
        service: TransactionService = Depends(get_transaction_service)
):
    return service.update_transaction(
        user_id, transaction_id, body.title, body.amount, body.type, body.transaction_date, body.category_id
    )


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
        transaction_id: str,
        user_id: str = Depends(get_current_user_id),
        service: TransactionService = Depends(get_transaction_service)
):
    service.delete_transaction(user_id, transaction_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
