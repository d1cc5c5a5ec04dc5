"""Pydantic models shared by services and handlers."""

from models.customer import (  # noqa: F401
    Customer,
    CustomerCreate,
    CustomerCreateResult,
    CustomerFilter,
    CustomerView,
    SecondaryFailure,
)
from models.dashboard import DashboardStats  # noqa: F401
from models.funnel import FunnelStage, FunnelStatus  # noqa: F401
from models.ledger import Note, Purchase, Tag  # noqa: F401
from models.profile import Profile  # noqa: F401
from models.reminder import Reminder  # noqa: F401
from models.response import ApiResponse  # noqa: F401
