# finance_tracker/api/categories_api.py

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from finance_tracker.api.dependencies import get_category_service, get_current_user_id
from finance_tracker.business_logic.category_service import CategoryService

router = APIRouter()


# --- Schemas Pydantic ---
class CategoryPublic(BaseModel):
    id: str
    name: str
    is_system: bool = Field(..., alias="isSystem")
    user_id: str = Field(..., alias="userId")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class CategoryWrite(BaseModel):
    name: str = Field(..., min_length=2)

    class Config:
        str_strip_whitespace = True


@router.get("", response_model=List[CategoryPublic])
def list_categories(
        user_id: str = Depends(get_current_user_id),
        service: CategoryService = Depends(get_category_service)
):
    """Categories of the caller, system category first."""
    return service.list_categories(user_id)


@router.post("", response_model=CategoryPublic, status_code=status.HTTP_201_CREATED)
def create_category(
        body: CategoryWrite,
        user_id: str = Depends(get_current_user_id),
        service: CategoryService = Depends(get_category_service)
):
    return service.create_category(user_id, body.name)


@router.patch("/{category_id}", response_model=CategoryPublic)
def rename_category(
        category_id: str,
        body: CategoryWrite,
        user_id: str = Depends(get_current_user_id),
        service: CategoryService = Depends(get_category_service)
):
    return service.rename_category(user_id, category_id, body.name)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
        category_id: str,
        user_id: str = Depends(get_current_user_id),
        service: CategoryService = Depends(get_category_service)
):
    """
    Deletes the category after moving its transactions to the caller's
    system category.
    """
    service.delete_category(user_id, category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
