"""Pydantic schemas for fridge item request/response validation."""

import typing as t
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from smartshelf.core.models import ItemCategory
from smartshelf.schemas.classification import ExpiryClassification


class FridgeItemBase(BaseModel):
    """Base fridge item schema."""

    name: str = Field(..., min_length=1, max_length=255)
    category: ItemCategory = ItemCategory.OTHER
    quantity: int = Field(..., ge=1)
    expiry_date: date


class FridgeItemCreate(FridgeItemBase):
    """Schema for creating a new fridge item."""

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Trim surrounding whitespace from the item name.

        Args:
            v (str): The submitted name.

        Returns:
            str: The trimmed name.
        """
        v = v.strip()
        if not v:
            raise ValueError("Item name cannot be blank")
        return v


class FridgeItemUpdate(BaseModel):
    """Schema for updating a fridge item."""

    name: str | None = Field(None, min_length=1, max_length=255)
    category: ItemCategory | None = None
    quantity: int | None = Field(None, ge=1)
    expiry_date: date | None = None


class FridgeItemResponse(FridgeItemBase):
    """Schema for fridge item response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    qr_code_id: str
    expiry: ExpiryClassification
    created_at: datetime
    updated_at: datetime


class FridgeItemListResponse(BaseModel):
    """Schema for paginated fridge item list response."""

    items: t.List[FridgeItemResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
