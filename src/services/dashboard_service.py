"""Store dashboard figures and the message of the day."""

from __future__ import annotations

from datetime import date
from typing import Optional

from models.dashboard import DashboardStats
from repositories.ledger_store import LedgerStore
from repositories.schema import CUSTOMERS
from services.reminder_service import ReminderService
from utils.settings import AppSettings
from utils.validators import ensure_present

# Rough share of customers considered active until real activity tracking exists.
ACTIVE_CUSTOMER_RATIO = 0.7

MOTIVATIONAL_MESSAGES = (
    "Não esqueça de ligar para seus clientes hoje! 📞",
    "Cada cliente satisfeito é um embaixador da sua marca! ⭐",
    "Mantenha seus follow-ups em dia para não perder oportunidades! 🎯",
    "Lembre-se: relacionamento é a chave do sucesso! 🤝",
    "Seus clientes valorizam a atenção pessoal! 💫",
)


def motivational_message(day: Optional[date] = None) -> str:
    """Message of the day, indexed by weekday counted from Sunday = 0."""
    day = day or date.today()
    sunday_first = (day.weekday() + 1) % 7
    return MOTIVATIONAL_MESSAGES[sunday_first % len(MOTIVATIONAL_MESSAGES)]


class DashboardService:
    """Computes the headline numbers shown on the store dashboard."""

    def __init__(self, store: LedgerStore, settings: Optional[AppSettings] = None):
        self.store = store
        self.settings = settings or AppSettings.from_environment()
        self.reminders = ReminderService(store, self.settings)

    def get_stats(self, store_id: str, today: Optional[date] = None) -> DashboardStats:
        ensure_present(store_id, "store_id")
        rows = self.store.select(CUSTOMERS, equals={"store_id": store_id})
        total = len(rows)
        return DashboardStats(
            total_customers=total,
            active_customers=int(total * ACTIVE_CUSTOMER_RATIO),
            upcoming_reminders=self.reminders.count_upcoming(store_id, today=today),
            total_points=sum(row.get("total_points") or 0 for row in rows),
        )
