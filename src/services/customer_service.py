"""
Customer aggregation service.

Joins customers with their funnel stage and tags, registers new customers
together with their optional follow-up records, and keeps the loyalty
ledger (purchases and the cached total_points balance) consistent.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from models.customer import (
    Customer,
    CustomerCreate,
    CustomerCreateResult,
    CustomerFilter,
    CustomerView,
    SecondaryFailure,
)
from models.funnel import FunnelStage
from models.ledger import Note, Purchase, Tag
from repositories.ledger_store import LedgerStore
from repositories.schema import CUSTOMERS, FUNNEL, NOTES, PURCHASES, REMINDERS, TAGS
from services.funnel_service import parse_stage, stored_stage
from services.ownership import require_customer
from services.points import Amount, compute_points, to_amount
from services.reminder_service import default_message
from utils.error_handling import AppError, InvalidInputError
from utils.logging_config import get_logger
from utils.settings import AppSettings
from utils.validators import ensure_present, parse_model

logger = get_logger(__name__)

_NEWEST_FIRST = (("created_at", True),)
_OLDEST_FIRST = (("created_at", False),)


def normalize_tags(labels: Iterable[str]) -> List[str]:
    """Trim labels, drop blanks and keep the first occurrence of each label."""
    seen: Dict[str, None] = {}
    for label in labels:
        cleaned = (label or "").strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def _matches(
    view: CustomerView,
    search: str,
    stage: Optional[FunnelStage],
    tag: str,
) -> bool:
    if search:
        fields = (view.name, view.phone, view.email or "")
        if not any(search in field.lower() for field in fields):
            return False
    if stage is not None and view.stage != stage:
        return False
    if tag and tag not in view.tags:
        return False
    return True


class CustomerService:
    """Service for customer registration, lookup and the points ledger."""

    def __init__(self, store: LedgerStore, settings: Optional[AppSettings] = None):
        self.store = store
        self.settings = settings or AppSettings.from_environment()

    # Reads

    def load_customer(self, store_id: str, customer_id: str) -> CustomerView:
        """Customer plus current stage (default new) and tags."""
        customer = require_customer(self.store, store_id, customer_id)
        scope = {"customer_id": customer_id, "store_id": store_id}
        funnel_row = self.store.select_one(FUNNEL, scope)
        tag_rows = self.store.select(TAGS, equals=scope, order_by=_OLDEST_FIRST)
        return CustomerView(
            **customer.model_dump(),
            stage=stored_stage(funnel_row["stage"] if funnel_row else None),
            tags=[row["tag"] for row in tag_rows],
        )

    def list_customers(self, store_id: str, filters: Any = None) -> List[CustomerView]:
        """
        Customers of a store, newest first, narrowed by the optional filters.

        Stages and tags are fetched once per store and joined in memory, so
        the number of queries does not grow with the number of customers.
        """
        ensure_present(store_id, "store_id")
        criteria = parse_model(CustomerFilter, filters or {})
        stage = parse_stage(criteria.stage_filter.strip()) if criteria.stage_filter.strip() else None
        search = criteria.search_term.lower() if criteria.search_term.strip() else ""
        tag = criteria.tag_filter.strip()

        scope = {"store_id": store_id}
        customer_rows = self.store.select(CUSTOMERS, equals=scope, order_by=_NEWEST_FIRST)
        stages = {row["customer_id"]: row["stage"] for row in self.store.select(FUNNEL, equals=scope)}
        tags: Dict[str, List[str]] = defaultdict(list)
        for row in self.store.select(TAGS, equals=scope, order_by=_OLDEST_FIRST):
            tags[row["customer_id"]].append(row["tag"])

        views = [
            CustomerView(
                **Customer.model_validate(row).model_dump(),
                stage=stored_stage(stages.get(row["id"])),
                tags=tags.get(row["id"], []),
            )
            for row in customer_rows
        ]
        return [view for view in views if _matches(view, search, stage, tag)]

    def list_notes(self, store_id: str, customer_id: str) -> List[Note]:
        """Notes for a customer, newest first."""
        require_customer(self.store, store_id, customer_id)
        rows = self.store.select(
            NOTES, equals={"customer_id": customer_id, "store_id": store_id}, order_by=_NEWEST_FIRST
        )
        return [Note.model_validate(row) for row in rows]

    def list_purchases(self, store_id: str, customer_id: str) -> List[Purchase]:
        """Purchase history for a customer, newest first."""
        require_customer(self.store, store_id, customer_id)
        rows = self.store.select(
            PURCHASES, equals={"customer_id": customer_id, "store_id": store_id}, order_by=_NEWEST_FIRST
        )
        return [Purchase.model_validate(row) for row in rows]

    # Writes

    def create_customer(self, store_id: str, payload: Any) -> CustomerCreateResult:
        """
        Register a customer, then its funnel status, tags, reminder and note.

        The customer insert is the only step that can fail the call. Later
        steps are attempted in order and their failures are reported in the
        result; the customer row is kept either way.
        """
        form = parse_model(CustomerCreate, payload)
        ensure_present(store_id, "store_id")

        row = self.store.insert(
            CUSTOMERS,
            {
                "store_id": store_id,
                "customer_name": form.name,
                "whatsapp_number": form.phone,
                "email": form.email,
                "product_interest": form.product_interest,
                "total_points": 0,
            },
        )
        customer = Customer.model_validate(row)
        scope = {"customer_id": customer.id, "store_id": store_id}
        labels = normalize_tags(form.tags)
        failures: List[SecondaryFailure] = []

        def attempt(step: str, action) -> bool:
            try:
                action()
                return True
            except AppError as exc:
                logger.warning(
                    "Customer created with a failed follow-up step",
                    extra={"store_id": store_id, "customer_id": customer.id, "step": step, "error": str(exc)},
                )
                failures.append(SecondaryFailure(step=step, message=str(exc)))
                return False

        stage_saved = attempt(
            "funnel",
            lambda: self.store.upsert(
                FUNNEL,
                {**scope, "stage": form.stage.value, "notes": form.notes},
                conflict_keys=("customer_id", "store_id"),
            ),
        )
        tags_saved = bool(labels) and attempt(
            "tags",
            lambda: self.store.insert_many(TAGS, [{**scope, "tag": label} for label in labels], ignore_conflicts=True),
        )
        if form.reminder_date is not None:
            attempt(
                "reminder",
                lambda: self.store.insert(
                    REMINDERS,
                    {
                        **scope,
                        "reminder_date": form.reminder_date,
                        "message": form.reminder_message or default_message(customer.name),
                        "is_sent": False,
                    },
                ),
            )
        if form.notes:
            attempt("note", lambda: self.store.insert(NOTES, {**scope, "note": form.notes}))

        logger.info(
            "Customer created",
            extra={"store_id": store_id, "customer_id": customer.id, "failed_steps": len(failures)},
        )
        view = CustomerView(
            **customer.model_dump(),
            stage=form.stage if stage_saved else FunnelStage.NEW,
            tags=labels if tags_saved else [],
        )
        return CustomerCreateResult(customer=view, failures=failures)

    def record_purchase(
        self,
        store_id: str,
        customer_id: str,
        purchase_value: Amount,
        rate: Optional[int] = None,
        description: Optional[str] = None,
    ) -> Purchase:
        """
        Log a purchase and credit its points to the customer.

        The store writes the purchase and increments total_points by delta
        in one transaction, so the balance always equals the sum of
        points_earned, including under concurrent purchases.
        """
        amount = to_amount(purchase_value)
        points = compute_points(amount, self.settings.points_per_real if rate is None else rate)
        require_customer(self.store, store_id, customer_id, for_write=True)

        row = self.store.record_purchase(
            {
                "customer_id": customer_id,
                "store_id": store_id,
                "purchase_value": amount,
                "points_earned": points,
                "description": (description or "").strip() or None,
            }
        )
        logger.info(
            "Purchase recorded",
            extra={"store_id": store_id, "customer_id": customer_id, "points_earned": points},
        )
        return Purchase.model_validate(row)

    def add_note(self, store_id: str, customer_id: str, text: str) -> Note:
        """Append a note to the customer's history."""
        ensure_present(text, "note")
        require_customer(self.store, store_id, customer_id, for_write=True)
        row = self.store.insert(
            NOTES, {"customer_id": customer_id, "store_id": store_id, "note": text.strip()}
        )
        logger.info("Note added", extra={"store_id": store_id, "customer_id": customer_id})
        return Note.model_validate(row)

    def add_tags(self, store_id: str, customer_id: str, labels: Iterable[str]) -> List[Tag]:
        """Attach labels the customer does not have yet; returns the newly stored tags."""
        if isinstance(labels, str):
            labels = [labels]
        cleaned = normalize_tags(labels)
        if not cleaned:
            raise InvalidInputError("At least one non-blank tag is required")
        require_customer(self.store, store_id, customer_id, for_write=True)

        scope = {"customer_id": customer_id, "store_id": store_id}
        existing = {row["tag"] for row in self.store.select(TAGS, equals=scope)}
        fresh = [label for label in cleaned if label not in existing]
        rows = self.store.insert_many(
            TAGS, [{**scope, "tag": label} for label in fresh], ignore_conflicts=True
        )
        logger.info(
            "Tags added",
            extra={"store_id": store_id, "customer_id": customer_id, "added": len(rows)},
        )
        return [Tag.model_validate(row) for row in rows]
