"""
Follow-up reminder scheduling.

Reminders are only tracked here; delivering them is someone else's job.
Whatever delivers a reminder calls mark_sent afterwards.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, List, Optional

from models.reminder import Reminder
from repositories.ledger_store import LedgerStore
from repositories.schema import REMINDERS
from services.ownership import require_customer
from utils.error_handling import InvalidInputError, NotFoundError
from utils.logging_config import get_logger
from utils.settings import AppSettings
from utils.validators import ensure_present, parse_date

logger = get_logger(__name__)

_NEWEST_FIRST = (("reminder_date", True), ("created_at", True))


def default_message(customer_name: str) -> str:
    """Message used when the owner leaves the reminder text blank."""
    return f"Follow-up com {customer_name}"


class ReminderService:
    """Creates, lists and marks follow-up reminders."""

    def __init__(self, store: LedgerStore, settings: Optional[AppSettings] = None):
        self.store = store
        self.settings = settings or AppSettings.from_environment()

    def schedule(
        self,
        store_id: str,
        customer_id: str,
        reminder_date: Any,
        message: Optional[str] = None,
    ) -> Reminder:
        """Create a pending reminder; several reminders on the same day are allowed."""
        when = parse_date(reminder_date, "reminder_date")
        customer = require_customer(self.store, store_id, customer_id, for_write=True)

        text = (message or "").strip() or default_message(customer.name)
        row = self.store.insert(
            REMINDERS,
            {
                "customer_id": customer_id,
                "store_id": store_id,
                "reminder_date": when,
                "message": text,
                "is_sent": False,
            },
        )
        logger.info(
            "Reminder scheduled",
            extra={"store_id": store_id, "customer_id": customer_id, "reminder_date": when.isoformat()},
        )
        return Reminder.model_validate(row)

    def list_upcoming(self, store_id: str, start: Any, end: Any) -> List[Reminder]:
        """Reminders of the store dated within [start, end], latest date first."""
        ensure_present(store_id, "store_id")
        low = parse_date(start, "from")
        high = parse_date(end, "to")
        if low > high:
            raise InvalidInputError("'from' must not be after 'to'")

        rows = self.store.select(
            REMINDERS,
            equals={"store_id": store_id},
            between=("reminder_date", low, high),
            order_by=_NEWEST_FIRST,
        )
        return [Reminder.model_validate(row) for row in rows]

    def count_upcoming(
        self, store_id: str, today: Optional[date] = None, days: Optional[int] = None
    ) -> int:
        """Number of reminders due from today through today + days."""
        today = today or date.today()
        window = self.settings.upcoming_reminder_days if days is None else days
        if window < 0:
            raise InvalidInputError("days must not be negative")
        return len(self.list_upcoming(store_id, today, today + timedelta(days=window)))

    def list_for_customer(self, store_id: str, customer_id: str) -> List[Reminder]:
        """All reminders for one customer, latest date first."""
        require_customer(self.store, store_id, customer_id)
        rows = self.store.select(
            REMINDERS,
            equals={"customer_id": customer_id, "store_id": store_id},
            order_by=_NEWEST_FIRST,
        )
        return [Reminder.model_validate(row) for row in rows]

    def mark_sent(self, store_id: str, reminder_id: str) -> Reminder:
        """Flag a reminder as sent; already-sent reminders are returned unchanged."""
        ensure_present(store_id, "store_id")
        ensure_present(reminder_id, "reminder_id")
        row = self.store.select_one(REMINDERS, {"id": reminder_id})
        if row is None or row["store_id"] != store_id:
            raise NotFoundError("Reminder not found")

        reminder = Reminder.model_validate(row)
        if reminder.is_sent:
            return reminder

        updated = self.store.update(REMINDERS, {"id": reminder_id}, {"is_sent": True})
        if not updated:
            raise NotFoundError("Reminder not found")
        logger.info("Reminder marked as sent", extra={"store_id": store_id, "reminder_id": reminder_id})
        return Reminder.model_validate(updated[0])
