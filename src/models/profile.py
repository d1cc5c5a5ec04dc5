"""Store profile models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class Profile(BaseModel):
    """The store (tenant) owned by one signed-in user."""

    id: str
    user_id: str
    owner_name: Optional[str] = None
    store_name: Optional[str] = None
    subscription_status: Optional[str] = None
    subscription_tier: Optional[str] = None
    subscription_end: Optional[datetime] = None
    created_at: Optional[datetime] = None
