"""Dashboard summary models."""

from pydantic import BaseModel


class DashboardStats(BaseModel):
    """Headline numbers for the store dashboard."""

    total_customers: int
    active_customers: int
    upcoming_reminders: int
    total_points: int
