"""
Funnel state machine.

Any stage may follow any other; the only rule is membership in
FunnelStage. Writes are upserts keyed on (customer_id, store_id), so a
customer never has more than one status row. Concurrent writers race
last-write-wins: there is no version column.
"""

from __future__ import annotations

from typing import Optional, Union

from models.funnel import FunnelStage, FunnelStatus
from repositories.ledger_store import LedgerStore
from repositories.schema import FUNNEL
from services.ownership import require_customer
from utils.error_handling import InvalidInputError
from utils.logging_config import get_logger

logger = get_logger(__name__)


def parse_stage(stage: Union[str, FunnelStage]) -> FunnelStage:
    """Return the FunnelStage for a raw value or raise InvalidInputError."""
    try:
        return FunnelStage(stage)
    except ValueError:
        allowed = ", ".join(s.value for s in FunnelStage)
        raise InvalidInputError(f"Unknown funnel stage '{stage}' (expected one of: {allowed})") from None


def stored_stage(value: Optional[str]) -> FunnelStage:
    """Rows written by older clients may hold stages we no longer know; show them as new."""
    try:
        return FunnelStage(value) if value else FunnelStage.NEW
    except ValueError:
        return FunnelStage.NEW


class FunnelService:
    """Validates and applies funnel stage changes."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def set_stage(
        self,
        store_id: str,
        customer_id: str,
        stage: Union[str, FunnelStage],
        notes: Optional[str] = None,
    ) -> FunnelStatus:
        """Move a customer to `stage`, creating the status row on first use."""
        new_stage = parse_stage(stage)
        require_customer(self.store, store_id, customer_id, for_write=True)

        values = {"customer_id": customer_id, "store_id": store_id, "stage": new_stage.value}
        if notes is not None:
            values["notes"] = notes
        row = self.store.upsert(FUNNEL, values, conflict_keys=("customer_id", "store_id"))

        logger.info(
            "Funnel stage updated",
            extra={"store_id": store_id, "customer_id": customer_id, "stage": new_stage.value},
        )
        return FunnelStatus.model_validate(row)

    def get_stage(self, store_id: str, customer_id: str) -> FunnelStage:
        """Current stage; customers without a status row are `new`."""
        require_customer(self.store, store_id, customer_id)
        row = self.store.select_one(FUNNEL, {"customer_id": customer_id, "store_id": store_id})
        return stored_stage(row["stage"] if row else None)
