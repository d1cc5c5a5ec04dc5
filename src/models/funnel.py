"""Sales funnel models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class FunnelStage(str, Enum):
    """Position of a customer in the sales pipeline; any stage may follow any other."""

    NEW = "new"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        """Display name shown to store owners."""
        return _STAGE_LABELS[self]


_STAGE_LABELS = {
    FunnelStage.NEW: "Novo",
    FunnelStage.IN_PROGRESS: "Em andamento",
    FunnelStage.COMPLETED: "Concluído",
}


class FunnelStatus(BaseModel):
    """Current funnel stage of one customer (one row per customer and store)."""

    id: str
    customer_id: str
    store_id: str
    stage: FunnelStage = FunnelStage.NEW
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
