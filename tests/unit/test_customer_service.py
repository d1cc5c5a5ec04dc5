"""
Customer aggregation and loyalty ledger tests.

Run with: pytest tests/unit/test_customer_service.py -v
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from models.funnel import FunnelStage
from repositories.schema import CUSTOMERS, FUNNEL, NOTES, PURCHASES, REMINDERS, TAGS
from services.customer_service import CustomerService, normalize_tags
from utils.error_handling import (
    ConflictingReferenceError,
    InvalidInputError,
    NotFoundError,
    StoreUnavailableError,
)


class TestCreateCustomer:
    """Registration with optional follow-up records."""

    def test_minimal_customer(self, store, store_id, customer_service):
        result = customer_service.create_customer(store_id, {"name": "Ana Silva", "phone": "11999990000"})

        assert result.complete
        customer = result.customer
        assert customer.name == "Ana Silva"
        assert customer.phone == "11999990000"
        assert customer.total_points == 0
        assert customer.stage == FunnelStage.NEW
        assert customer.tags == []
        # Funnel status always exists after registration.
        assert store.select_one(FUNNEL, {"customer_id": customer.id})["stage"] == "new"
        assert store.select(REMINDERS, equals={"customer_id": customer.id}) == []
        assert store.select(NOTES, equals={"customer_id": customer.id}) == []

    def test_full_form(self, store, store_id, customer_service):
        result = customer_service.create_customer(
            store_id,
            {
                "customer_name": "Bruno Costa",
                "whatsapp_number": "21988887777",
                "email": "bruno@example.com",
                "product_interest": "Orquídeas",
                "stage": "in_progress",
                "tags": ["vip", " vip ", "", "buquê"],
                "notes": "Prefere entrega pela manhã",
                "reminder_date": "2026-10-25",
                "reminder_message": "",
            },
        )

        assert result.complete
        customer = result.customer
        assert customer.stage == FunnelStage.IN_PROGRESS
        assert customer.tags == ["vip", "buquê"]

        funnel = store.select_one(FUNNEL, {"customer_id": customer.id})
        assert funnel["notes"] == "Prefere entrega pela manhã"
        reminders = store.select(REMINDERS, equals={"customer_id": customer.id})
        assert len(reminders) == 1
        assert reminders[0]["message"] == "Follow-up com Bruno Costa"
        assert reminders[0]["is_sent"] is False
        notes = store.select(NOTES, equals={"customer_id": customer.id})
        assert [n["note"] for n in notes] == ["Prefere entrega pela manhã"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"phone": "11999990000"},
            {"name": "Ana", "phone": "   "},
            {"name": "", "phone": "11999990000"},
            {"name": "Ana", "phone": "11999990000", "stage": "won"},
            {"name": "Ana", "phone": "11999990000", "reminder_date": "2026-13-01"},
        ],
    )
    def test_invalid_form_writes_nothing(self, store, store_id, customer_service, payload):
        with pytest.raises(InvalidInputError):
            customer_service.create_customer(store_id, payload)
        assert store.select(CUSTOMERS) == []

    def test_secondary_failure_keeps_customer(self, store, store_id, customer_service):
        with patch.object(store, "insert_many", side_effect=StoreUnavailableError("tags table locked")):
            result = customer_service.create_customer(
                store_id,
                {"name": "Ana", "phone": "11999990000", "tags": ["vip"], "notes": "Ligar sexta"},
            )

        assert not result.complete
        assert [(f.step, f.message) for f in result.failures] == [("tags", "tags table locked")]
        assert result.customer.tags == []
        # Later steps still ran.
        assert len(store.select(NOTES, equals={"customer_id": result.customer.id})) == 1
        assert store.select_one(CUSTOMERS, {"id": result.customer.id}) is not None

    def test_funnel_failure_reports_default_stage(self, store, store_id, customer_service):
        with patch.object(store, "upsert", side_effect=StoreUnavailableError("timeout")):
            result = customer_service.create_customer(
                store_id, {"name": "Ana", "phone": "11999990000", "stage": "completed"}
            )

        assert [f.step for f in result.failures] == ["funnel"]
        assert result.customer.stage == FunnelStage.NEW

    def test_primary_insert_failure_propagates(self, store, store_id, customer_service):
        with patch.object(store, "insert", side_effect=StoreUnavailableError("connection refused")):
            with pytest.raises(StoreUnavailableError):
                customer_service.create_customer(store_id, {"name": "Ana", "phone": "11999990000"})


class TestRecordPurchase:
    """Points ledger."""

    def test_points_use_given_rate(self, store, store_id, customer_service, make_customer):
        customer = make_customer()
        purchase = customer_service.record_purchase(store_id, customer.id, "100.00", rate=2)

        assert purchase.points_earned == 200
        assert purchase.purchase_value == Decimal("100.00")
        assert store.select_one(CUSTOMERS, {"id": customer.id})["total_points"] == 200

    def test_balance_equals_sum_of_purchases(self, store, store_id, customer_service, make_customer):
        customer = make_customer()
        for value in ("10.50", "0.99", "250", "0"):
            customer_service.record_purchase(store_id, customer.id, value)

        earned = [row["points_earned"] for row in store.select(PURCHASES, equals={"customer_id": customer.id})]
        assert sorted(earned) == [0, 0, 10, 250]
        assert store.select_one(CUSTOMERS, {"id": customer.id})["total_points"] == sum(earned)

    def test_default_rate_comes_from_settings(self, store, store_id, settings, make_customer):
        settings.points_per_real = 3
        service = CustomerService(store, settings)
        customer = make_customer()

        assert service.record_purchase(store_id, customer.id, 20).points_earned == 60

    def test_points_match_stored_value(self, store, store_id, customer_service, make_customer):
        customer = make_customer()
        purchase = customer_service.record_purchase(store_id, customer.id, "10.005", rate=100)

        stored = store.select_one(PURCHASES, {"id": purchase.id})
        assert purchase.purchase_value == Decimal("10.01")
        assert stored["points_earned"] == int(Decimal(str(stored["purchase_value"])) * 100) == 1001
        assert store.select_one(CUSTOMERS, {"id": customer.id})["total_points"] == 1001

    def test_amount_beyond_column_range_rejected(self, store, store_id, customer_service, make_customer):
        customer = make_customer()
        with pytest.raises(InvalidInputError):
            customer_service.record_purchase(store_id, customer.id, "10000000000")
        assert store.select(PURCHASES) == []

    def test_blank_description_stored_as_null(self, store_id, customer_service, make_customer):
        customer = make_customer()
        purchase = customer_service.record_purchase(store_id, customer.id, 5, description="  ")
        assert purchase.description is None

    @pytest.mark.parametrize("value", [-1, "-0.01", "abc", None])
    def test_invalid_value_never_reaches_store(self, store, store_id, customer_service, make_customer, value):
        customer = make_customer()
        with patch.object(store, "record_purchase") as record:
            with pytest.raises(InvalidInputError):
                customer_service.record_purchase(store_id, customer.id, value)
            record.assert_not_called()

    def test_customer_of_another_store(self, store, store_id, other_store_id, customer_service, make_customer):
        foreign = make_customer(owner=other_store_id)
        with pytest.raises(ConflictingReferenceError):
            customer_service.record_purchase(store_id, foreign.id, 10)
        assert store.select(PURCHASES) == []

    def test_unknown_customer(self, store_id, customer_service):
        with pytest.raises(NotFoundError):
            customer_service.record_purchase(store_id, "missing", 10)

    def test_purchase_history_newest_first(self, store_id, customer_service, make_customer):
        customer = make_customer()
        first = customer_service.record_purchase(store_id, customer.id, 1)
        second = customer_service.record_purchase(store_id, customer.id, 2)

        history = customer_service.list_purchases(store_id, customer.id)

        assert [p.id for p in history] == [second.id, first.id]


class TestListCustomers:
    """Search, filters and ordering."""

    @pytest.fixture
    def roster(self, store_id, customer_service, funnel_service, make_customer):
        ana = make_customer(name="Ana Silva", phone="11999990000", tags=["vip"])
        flor = make_customer(
            name="Carla Souza", phone="11911112222", email="contact@anaflor.com", tags=["atacado"]
        )
        bruno = make_customer(name="Bruno Lima", phone="21977776666", tags=["vip"])
        funnel_service.set_stage(store_id, bruno.id, "completed")
        return {"ana": ana, "flor": flor, "bruno": bruno}

    def test_no_filters_returns_all(self, store_id, customer_service, roster):
        assert len(customer_service.list_customers(store_id)) == 3

    def test_search_is_case_insensitive_across_name_and_email(self, store_id, customer_service, roster):
        found = customer_service.list_customers(store_id, {"search_term": "ANA"})
        assert {c.id for c in found} == {roster["ana"].id, roster["flor"].id}

    def test_search_by_phone(self, store_id, customer_service, roster):
        found = customer_service.list_customers(store_id, {"search_term": "21977"})
        assert [c.id for c in found] == [roster["bruno"].id]

    def test_stage_filter(self, store_id, customer_service, roster):
        found = customer_service.list_customers(store_id, {"stage_filter": "completed"})
        assert [c.id for c in found] == [roster["bruno"].id]
        assert found[0].stage == FunnelStage.COMPLETED

    def test_tag_filter(self, store_id, customer_service, roster):
        found = customer_service.list_customers(store_id, {"tag_filter": "vip"})
        assert {c.id for c in found} == {roster["ana"].id, roster["bruno"].id}

    def test_filters_combine_with_and(self, store_id, customer_service, roster):
        found = customer_service.list_customers(
            store_id, {"search_term": "silva", "tag_filter": "vip", "stage_filter": "new"}
        )
        assert [c.id for c in found] == [roster["ana"].id]
        assert customer_service.list_customers(store_id, {"search_term": "silva", "stage_filter": "completed"}) == []

    def test_invalid_stage_filter(self, store_id, customer_service):
        with pytest.raises(InvalidInputError):
            customer_service.list_customers(store_id, {"stage_filter": "won"})

    def test_other_stores_are_invisible(self, store_id, other_store_id, customer_service, make_customer):
        make_customer(name="Ana Silva", owner=other_store_id)
        assert customer_service.list_customers(store_id, {"search_term": "ana"}) == []

    def test_newest_first(self, store, store_id, customer_service):
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        for offset, name in enumerate(["Primeiro", "Segundo", "Terceiro"]):
            store.insert(
                CUSTOMERS,
                {
                    "store_id": store_id,
                    "customer_name": name,
                    "whatsapp_number": f"1190000000{offset}",
                    "created_at": base + timedelta(days=offset),
                },
            )

        names = [c.name for c in customer_service.list_customers(store_id)]

        assert names == ["Terceiro", "Segundo", "Primeiro"]

    def test_unknown_stored_stage_shows_as_new(self, store, store_id, customer_service, make_customer):
        customer = make_customer()
        store.update(FUNNEL, {"customer_id": customer.id}, {"stage": "archived"})

        assert customer_service.list_customers(store_id)[0].stage == FunnelStage.NEW

    def test_query_count_does_not_grow_with_customers(self, store, store_id, settings, roster):
        spy = MagicMock(wraps=store)
        CustomerService(spy, settings).list_customers(store_id, {"tag_filter": "vip"})
        assert spy.select.call_count == 3


class TestDetailAndFollowUps:
    """Single-customer reads, notes and tags."""

    def test_load_customer_joins_stage_and_tags(self, store_id, customer_service, make_customer):
        customer = make_customer(stage="in_progress", tags=["vip", "buquê"])

        loaded = customer_service.load_customer(store_id, customer.id)

        assert loaded.stage == FunnelStage.IN_PROGRESS
        assert sorted(loaded.tags) == ["buquê", "vip"]

    def test_load_customer_of_another_store_is_not_found(
        self, store_id, other_store_id, customer_service, make_customer
    ):
        foreign = make_customer(owner=other_store_id)
        with pytest.raises(NotFoundError):
            customer_service.load_customer(store_id, foreign.id)

    def test_notes_newest_first(self, store_id, customer_service, make_customer):
        customer = make_customer()
        customer_service.add_note(store_id, customer.id, "Primeira visita")
        customer_service.add_note(store_id, customer.id, "  Voltou para comprar  ")

        notes = customer_service.list_notes(store_id, customer.id)

        assert [n.note for n in notes] == ["Voltou para comprar", "Primeira visita"]

    def test_blank_note_rejected(self, store_id, customer_service, make_customer):
        customer = make_customer()
        with pytest.raises(InvalidInputError):
            customer_service.add_note(store_id, customer.id, "   ")

    def test_note_on_foreign_customer(self, store_id, other_store_id, customer_service, make_customer):
        foreign = make_customer(owner=other_store_id)
        with pytest.raises(ConflictingReferenceError):
            customer_service.add_note(store_id, foreign.id, "Olá")

    def test_add_tags_skips_existing_labels(self, store, store_id, customer_service, make_customer):
        customer = make_customer(tags=["vip"])

        added = customer_service.add_tags(store_id, customer.id, ["vip", "novo", " novo "])

        assert [t.tag for t in added] == ["novo"]
        labels = sorted(row["tag"] for row in store.select(TAGS, equals={"customer_id": customer.id}))
        assert labels == ["novo", "vip"]

    def test_add_single_tag_string(self, store_id, customer_service, make_customer):
        customer = make_customer()
        assert [t.tag for t in customer_service.add_tags(store_id, customer.id, "vip")] == ["vip"]

    def test_blank_tags_rejected(self, store_id, customer_service, make_customer):
        customer = make_customer()
        with pytest.raises(InvalidInputError):
            customer_service.add_tags(store_id, customer.id, ["", "  "])


def test_normalize_tags():
    assert normalize_tags([" vip", "vip ", "", None, "Vip"]) == ["vip", "Vip"]
