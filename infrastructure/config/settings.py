"""
Environment-specific deployment settings.

Cost-optimized defaults for development/testing.
"""

from dataclasses import dataclass
import os


@dataclass
class Settings:
    """Deployment settings with cost-optimized defaults."""

    # Environment
    environment: str = "dev"
    aws_region: str = "sa-east-1"  # Stores are in Brazil

    # Database Configuration (Cost-optimized)
    db_instance_class: str = "t3.micro"  # Free tier eligible
    db_allocated_storage: int = 20  # Minimum GB
    db_name: str = "minicrm"

    # Lambda Configuration
    lambda_memory_mb: int = 256
    lambda_timeout_seconds: int = 15

    # Loyalty / reminders defaults passed to the API Lambda
    points_per_real: int = 1
    upcoming_reminder_days: int = 7

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ.get("ENVIRONMENT", "dev")
        region = os.environ.get("AWS_REGION", cls.aws_region)
        points_per_real = int(os.environ.get("POINTS_PER_REAL", "1"))
        reminder_days = int(os.environ.get("UPCOMING_REMINDER_DAYS", "7"))

        # Production overrides
        if env == "prod":
            return cls(
                environment="prod",
                aws_region=region,
                db_instance_class="t3.small",
                db_allocated_storage=50,
                lambda_memory_mb=512,
                lambda_timeout_seconds=30,
                points_per_real=points_per_real,
                upcoming_reminder_days=reminder_days,
            )

        return cls(
            environment=env,
            aws_region=region,
            points_per_real=points_per_real,
            upcoming_reminder_days=reminder_days,
        )
