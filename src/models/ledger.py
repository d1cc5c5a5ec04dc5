"""Append-only ledger entries: purchases, notes and tags."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class Purchase(BaseModel):
    """A recorded purchase and the loyalty points it earned."""

    id: str
    customer_id: str
    store_id: str
    purchase_value: Decimal = Field(ge=0)
    points_earned: int = Field(ge=0)
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class Note(BaseModel):
    """Free-text note about a customer."""

    id: str
    customer_id: str
    store_id: str
    note: str
    created_at: Optional[datetime] = None


class Tag(BaseModel):
    """Segmentation label attached to a customer."""

    id: str
    customer_id: str
    store_id: str
    tag: str
    created_at: Optional[datetime] = None
