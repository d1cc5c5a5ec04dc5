"""
Pytest configuration to ensure paths are set up correctly for tests.

This allows imports like `from handlers import main` to work when running
tests, simulating the Lambda environment where code is deployed from the
src/ directory. Store-backed fixtures run against in-memory SQLite with
the production schema.
"""

import os
import sys
from pathlib import Path

import boto3
import pytest


def _ensure_paths_on_sys_path() -> None:
    """Add repository root AND src/ to sys.path if missing.

    The src/ directory is added to simulate Lambda's import behavior,
    where Code.from_asset("src") makes src/ the root of the package.
    """
    repo_root = Path(__file__).resolve().parents[1]
    src_root = repo_root / "src"

    # Add repo root first (for imports like infrastructure.*)
    root_str = str(repo_root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)

    # Add src/ for Lambda-style imports (from handlers import ...)
    src_str = str(src_root)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


_ensure_paths_on_sys_path()

# Ensure boto3 has offline-friendly defaults so tests do not require AWS access.
os.environ.setdefault("AWS_REGION", "sa-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "sa-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_SESSION_TOKEN", "test")
os.environ.setdefault("ENVIRONMENT", "dev")
os.environ.setdefault("POINTS_PER_REAL", "1")
os.environ.setdefault("UPCOMING_REMINDER_DAYS", "7")

# Create a default boto3 session so clients do not error during import.
boto3.setup_default_session(region_name="sa-east-1")

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from repositories.schema import PROFILES, metadata  # noqa: E402
from repositories.sql_repo import SqlLedgerStore  # noqa: E402
from services.customer_service import CustomerService  # noqa: E402
from services.funnel_service import FunnelService  # noqa: E402
from services.reminder_service import ReminderService  # noqa: E402
from utils.settings import AppSettings  # noqa: E402


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite+pysqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return SqlLedgerStore(engine)


@pytest.fixture
def store_id(store):
    """Store owned by the signed-in user `owner-1`."""
    return store.insert(PROFILES, {"user_id": "owner-1", "store_name": "Floricultura Ana"})["id"]


@pytest.fixture
def other_store_id(store):
    return store.insert(PROFILES, {"user_id": "owner-2", "store_name": "Padaria Central"})["id"]


@pytest.fixture
def settings():
    return AppSettings(points_per_real=1, upcoming_reminder_days=7)


@pytest.fixture
def customer_service(store, settings):
    return CustomerService(store, settings)


@pytest.fixture
def funnel_service(store):
    return FunnelService(store)


@pytest.fixture
def reminder_service(store, settings):
    return ReminderService(store, settings)


@pytest.fixture
def make_customer(customer_service, store_id):
    """Register a customer through the service and return its view."""

    def _make(name="Ana Silva", phone="11999990000", owner=None, **extra):
        payload = {"name": name, "phone": phone, **extra}
        return customer_service.create_customer(owner or store_id, payload).customer

    return _make
