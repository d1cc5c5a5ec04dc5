"""
Runtime configuration for the API Lambda and services.

Deployment sizing lives in infrastructure/config/settings.py; this module
only covers what the running code needs.
"""

from dataclasses import dataclass
from typing import Optional
import os


@dataclass
class AppSettings:
    """Settings read from the Lambda environment."""

    environment: str = "dev"

    # Database: a direct URL wins over the Secrets Manager ARN.
    database_url: Optional[str] = None
    db_secret_arn: Optional[str] = None

    # Loyalty points earned per currency unit (R$) spent.
    points_per_real: int = 1

    # Window used for the "reminders due this week" count.
    upcoming_reminder_days: int = 7

    @classmethod
    def from_environment(cls) -> "AppSettings":
        """Load settings from environment variables."""
        return cls(
            environment=os.environ.get("ENVIRONMENT", "dev"),
            database_url=os.environ.get("DATABASE_URL") or None,
            db_secret_arn=os.environ.get("DB_SECRET_ARN") or None,
            points_per_real=int(os.environ.get("POINTS_PER_REAL", "1")),
            upcoming_reminder_days=int(os.environ.get("UPCOMING_REMINDER_DAYS", "7")),
        )
