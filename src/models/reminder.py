"""Follow-up reminder models."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class Reminder(BaseModel):
    """A follow-up scheduled for a customer on a given day."""

    id: str
    customer_id: str
    store_id: str
    reminder_date: date
    message: Optional[str] = None
    is_sent: bool = False
    created_at: Optional[datetime] = None

    @field_validator("is_sent", mode="before")
    @classmethod
    def null_means_pending(cls, value):
        """Older rows store NULL for reminders that were never sent."""
        return bool(value) if value is not None else False
