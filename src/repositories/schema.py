"""
Table definitions for the CRM ledger (SQLAlchemy Core).

Column names follow the existing production schema so the same database
can be reused. Ids are uuid4 strings and timestamps UTC, both assigned
here rather than by callers.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

PROFILES = "profiles"
CUSTOMERS = "customers"
NOTES = "customer_notes"
PURCHASES = "purchases"
FUNNEL = "customer_sales_funnel"
TAGS = "customer_tags"
REMINDERS = "follow_up_reminders"


def _new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _id_column() -> Column:
    return Column("id", String(36), primary_key=True, default=_new_id)


def _created_at() -> Column:
    return Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow)


def _updated_at() -> Column:
    return Column(
        "updated_at", DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


def _customer_fk() -> Column:
    return Column(
        "customer_id", String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True
    )


def _store_fk() -> Column:
    return Column("store_id", String(36), ForeignKey("profiles.id"), nullable=False, index=True)


profiles = Table(
    PROFILES,
    metadata,
    _id_column(),
    Column("user_id", String(64), nullable=False, unique=True),
    Column("owner_name", String(255)),
    Column("store_name", String(255)),
    Column("stripe_customer_id", String(255)),
    Column("subscription_status", String(50)),
    Column("subscription_tier", String(50)),
    Column("subscription_end", DateTime(timezone=True)),
    _created_at(),
    _updated_at(),
)

customers = Table(
    CUSTOMERS,
    metadata,
    _id_column(),
    _store_fk(),
    Column("customer_name", String(255)),
    Column("whatsapp_number", String(50), nullable=False),
    Column("email", String(255)),
    Column("product_interest", Text),
    Column("total_points", Integer, nullable=False, default=0),
    _created_at(),
    _updated_at(),
)

customer_notes = Table(
    NOTES,
    metadata,
    _id_column(),
    _customer_fk(),
    _store_fk(),
    Column("note", Text, nullable=False),
    _created_at(),
    _updated_at(),
)

purchases = Table(
    PURCHASES,
    metadata,
    _id_column(),
    _customer_fk(),
    _store_fk(),
    Column("purchase_value", Numeric(12, 2), nullable=False),
    Column("points_earned", Integer, nullable=False),
    Column("description", Text),
    _created_at(),
)

customer_sales_funnel = Table(
    FUNNEL,
    metadata,
    _id_column(),
    _customer_fk(),
    _store_fk(),
    Column("stage", String(20), nullable=False, default="new"),
    Column("notes", Text),
    _created_at(),
    _updated_at(),
    UniqueConstraint("customer_id", "store_id", name="uq_funnel_customer_store"),
)

customer_tags = Table(
    TAGS,
    metadata,
    _id_column(),
    _customer_fk(),
    _store_fk(),
    Column("tag", String(100), nullable=False),
    _created_at(),
    UniqueConstraint("customer_id", "tag", name="uq_tag_customer_label"),
)

follow_up_reminders = Table(
    REMINDERS,
    metadata,
    _id_column(),
    _customer_fk(),
    _store_fk(),
    Column("reminder_date", Date, nullable=False, index=True),
    Column("message", Text),
    Column("is_sent", Boolean, default=False),
    _created_at(),
)
