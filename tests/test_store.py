"""
Tests for the in-memory mock store and the fault injector.

The store is async (it simulates a database round trip), so each test
drives it with asyncio.run.
"""

import asyncio
import random

import pytest

from bugboy.errors import RecordNotFound, UniqueConstraintError
from bugboy.faults import FaultInjector
from bugboy.store import MockStore


def run(coro):
    return asyncio.run(coro)


class TestQueries:
    def test_seeded_tables(self, store):
        stats = store.stats()
        assert stats["users"] == 3
        assert stats["products"] == 4
        assert stats["orders"] == 3
        assert stats["sessions"] == 0

    def test_where_is_exact_match(self, store):
        admins = run(store.users.find_many(where={"role": "admin"}))
        assert [u["id"] for u in admins] == ["usr_1a2b3c"]

    def test_order_by_desc(self, store):
        products = run(store.products.find_many(order_by=("created_at", "desc")))
        assert [p["id"] for p in products] == ["prod_004", "prod_003", "prod_002", "prod_001"]

    def test_missing_sort_field_goes_last(self, store):
        users = run(store.users.find_many(order_by=("last_login_at", "desc")))
        assert users[-1]["id"] == "usr_7g8h9i"

    def test_cursor_is_inclusive(self, store):
        page = run(store.products.find_many(
            order_by=("created_at", "desc"), cursor="prod_002", take=2,
        ))
        assert [p["id"] for p in page] == ["prod_002", "prod_001"]

    def test_reads_are_copies(self, store):
        """Mutating a returned record must not touch the stored one."""
        user = run(store.users.find_unique("usr_1a2b3c"))
        user["profile"]["department"] = "Sales"
        assert store.users.get("usr_1a2b3c")["profile"]["department"] == "Engineering"

    def test_unknown_key(self, store):
        assert run(store.products.find_unique("prod_999")) is None


class TestWrites:
    def test_create_generates_prefixed_id(self, store):
        order = run(store.orders.create({"total": 1.0, "status": "pending"}))
        assert order["id"].startswith("ord_")
        assert order["id"] in store.orders

    def test_generated_ids_are_unique(self, store):
        first = run(store.events.create({"name": "a"}))
        second = run(store.events.create({"name": "b"}))
        assert first["id"] != second["id"]

    def test_duplicate_key_rejected(self, store):
        with pytest.raises(UniqueConstraintError) as exc:
            run(store.settings.create({"user_id": "usr_1a2b3c", "theme": "light"}))
        assert "already exists" in str(exc.value)

    def test_required_fields_enforced(self, store):
        with pytest.raises(ValueError):
            run(store.notification_logs.create({"user_id": "usr_1a2b3c", "message_id": "msg_1"}))

    def test_update_is_shallow(self, store):
        """A nested dict in the patch replaces the stored one wholesale."""
        updated = run(store.settings.update("usr_1a2b3c", {"notifications": {"email": False}}))
        assert updated["notifications"] == {"email": False}
        assert updated["theme"] == "dark"

    def test_update_cannot_change_key(self, store):
        updated = run(store.products.update("prod_001", {"id": "prod_999", "price": 1.0}))
        assert updated["id"] == "prod_001"
        assert "prod_999" not in store.products

    def test_update_missing_record(self, store):
        with pytest.raises(RecordNotFound):
            run(store.products.update("prod_999", {"price": 1.0}))

    def test_upsert_creates_then_increments(self, store):
        create = {"page_id": "/new", "count": 1}
        first = run(store.page_views.upsert("/new", create=create, increment={"count": 1}))
        second = run(store.page_views.upsert("/new", create=create, increment={"count": 1}))
        assert first["count"] == 1
        assert second["count"] == 2

    def test_delete_many(self, store):
        removed = run(store.notifications.delete_many({"user_id": "usr_1a2b3c"}))
        assert removed == 2
        assert len(store.notifications) == 1

    def test_reset_restores_seed(self, store):
        run(store.products.delete("prod_001"))
        store.login_attempts["x@example.com"] = [{}]
        store.reset()
        assert "prod_001" in store.products
        assert store.login_attempts == {}


class TestFaults:
    def test_dropped_read_returns_none(self):
        store = MockStore(FaultInjector(drop_rate=1.0, min_delay=0, max_delay=0))
        assert run(store.users.find_many()) is None

    def test_seeded_rng_is_repeatable(self):
        a = FaultInjector(drop_rate=0.5, rng=random.Random(7))
        b = FaultInjector(drop_rate=0.5, rng=random.Random(7))
        assert [a.should_drop() for _ in range(20)] == [b.should_drop() for _ in range(20)]

    def test_roll_extremes(self):
        faults = FaultInjector.disabled()
        assert faults.roll(0) is False
        assert faults.roll(1) is True

    @pytest.mark.parametrize("kwargs", [
        {"drop_rate": 1.5},
        {"drop_rate": -0.1},
        {"min_delay": 0.2, "max_delay": 0.1},
        {"min_delay": -1},
    ])
    def test_invalid_configuration(self, kwargs):
        with pytest.raises(ValueError):
            FaultInjector(**kwargs)
