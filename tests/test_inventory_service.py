"""Tests for the inventory history ledger."""
from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError

from inventory_tracker.errors import SecondaryWriteFailure
from inventory_tracker.models.inventory_history import ChangeType, InventoryHistory
from inventory_tracker.schemas.inventory import HistoryFilters
from inventory_tracker.services import inventory_service, product_service


def _product(db, actor, name="Widget", stock=10, **extra):
    fields = {"name": name, "unit": "pcs", "category": "Tools", "brand": "Acme", "stock": stock}
    fields.update(extra)
    return product_service.create_product(db, fields, actor)


class TestAppendEntry:

    @pytest.mark.parametrize(
        "old,new,change_type",
        [(0, 10, ChangeType.INCREASE), (10, 3, ChangeType.DECREASE), (5, 5, ChangeType.ADJUSTMENT)],
    )
    def test_change_type_follows_sign(self, db, old, new, change_type):
        entry = inventory_service.append_entry(db, "p-1", "Widget", old, new, "u-1", "Clerk")
        assert entry.change_amount == new - old
        assert entry.change_type == change_type.value

    def test_default_reason(self, db):
        entry = inventory_service.append_entry(db, "p-1", "Widget", 0, 1, "u-1", "Clerk")
        assert entry.reason == "Manual update"

    def test_database_error_becomes_secondary_failure(self, db, monkeypatch):
        def fail_commit():
            raise OperationalError("INSERT INTO inventory_history", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db, "commit", fail_commit)
        with pytest.raises(SecondaryWriteFailure):
            inventory_service.append_entry(db, "p-1", "Widget", 0, 5, "u-1", "Clerk")
        monkeypatch.undo()
        assert db.query(InventoryHistory).count() == 0


class TestDeleteAllForProduct:

    def test_removes_only_that_product(self, db, clerk):
        widget = _product(db, clerk)
        gadget = _product(db, clerk, name="Gadget", stock=4)
        product_service.update_product(db, widget.id, {"stock": 2}, clerk)

        removed = inventory_service.delete_all_for_product(db, widget.id)

        assert removed == 2
        remaining = db.query(InventoryHistory).all()
        assert [e.product_id for e in remaining] == [gadget.id]


class TestQueryHistory:

    def test_newest_first_with_enrichment(self, db, clerk):
        widget = _product(db, clerk)
        product_service.update_product(db, widget.id, {"stock": 3}, clerk)

        rows, total = inventory_service.query_history(db, HistoryFilters(product_id=widget.id))

        assert total == 2
        (latest, product, user), (first, _, _) = rows
        assert latest.new_quantity == 3
        assert first.reason == "Initial stock"
        assert product.category == "Tools"
        assert user.email == "clerk@example.com"

    def test_missing_product_leaves_snapshot(self, db, clerk):
        inventory_service.append_entry(db, "gone", "Retired Item", 3, 0, clerk.id, clerk.name)

        rows, total = inventory_service.query_history(db, HistoryFilters(product_id="gone"))

        assert total == 1
        entry, product, user = rows[0]
        assert product is None
        assert entry.product_name == "Retired Item"
        assert user.id == clerk.id

    def test_filters_by_change_type_and_user(self, db, clerk, manager):
        widget = _product(db, clerk)
        product_service.update_product(db, widget.id, {"stock": 4}, manager)
        product_service.update_product(db, widget.id, {"stock": 9}, manager)

        _, decreases = inventory_service.query_history(db, HistoryFilters(change_type=ChangeType.DECREASE))
        _, by_manager = inventory_service.query_history(db, HistoryFilters(user_id=manager.id))
        _, by_clerk_increases = inventory_service.query_history(
            db, HistoryFilters(user_id=clerk.id, change_type=ChangeType.INCREASE)
        )

        assert decreases == 1
        assert by_manager == 2
        assert by_clerk_increases == 1

    def test_paginates(self, db, clerk):
        widget = _product(db, clerk, stock=1)
        for qty in range(2, 7):
            product_service.update_product(db, widget.id, {"stock": qty}, clerk)

        rows, total = inventory_service.query_history(db, HistoryFilters(), page=2, limit=4)

        assert total == 6
        assert len(rows) == 2

    def test_date_filter_uses_reference_time_zone(self, db, clerk):
        entry = inventory_service.append_entry(db, "p-1", "Widget", 0, 5, clerk.id, clerk.name)
        entry.created_at = datetime(2024, 3, 10, 23, 30)
        db.commit()

        _, utc_same_day = inventory_service.query_history(db, HistoryFilters(date=date(2024, 3, 10)), tz_name="UTC")
        _, tokyo_same_day = inventory_service.query_history(
            db, HistoryFilters(date=date(2024, 3, 10)), tz_name="Asia/Tokyo"
        )
        _, tokyo_next_day = inventory_service.query_history(
            db, HistoryFilters(date=date(2024, 3, 11)), tz_name="Asia/Tokyo"
        )

        assert utc_same_day == 1
        assert tokyo_same_day == 0
        assert tokyo_next_day == 1


def test_day_bounds_converts_to_utc():
    start, end = inventory_service.day_bounds(date(2024, 3, 11), "Asia/Tokyo")
    assert start == datetime(2024, 3, 10, 15, 0)
    assert end == datetime(2024, 3, 11, 15, 0)
