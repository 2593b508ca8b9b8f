"""
production.py tests
===================
Upserts, bulk update counters, mirroring onto assignments, reclassification
"""
import pytest

from atelier.exceptions import NotFoundError, ValidationError
from atelier.models import OrderItem, ProductionStatus
from atelier.services.assignments import AssignmentService
from atelier.services.classification import KeywordClassifier
from atelier.services.order_sync import OrderSync
from atelier.services.production import ProductionService


class TestUpdateStatus:

    def test_upsert_creates_then_updates(self, store):
        service = ProductionService(store)
        service.update_status(1, 1, "en_cours")
        service.update_status(1, 1, "termine", notes="livré")

        with store.session() as session:
            records = session.query(ProductionStatus).filter_by(order_id=1, line_item_id=1).all()
            assert len(records) == 1
            assert records[0].status == "termine"
            assert records[0].notes == "livré"

    def test_uniqueness_after_many_writes(self, store):
        service = ProductionService(store)
        for status in ("en_cours", "en_pause", "en_cours", "termine"):
            service.update_status(5, 2, status)
        service.set_urgent(5, 2, True)
        service.update_notes(5, 2, "retouche")

        with store.session() as session:
            assert session.query(ProductionStatus).filter_by(order_id=5, line_item_id=2).count() == 1

    def test_invalid_status(self, store):
        with pytest.raises(ValidationError):
            ProductionService(store).update_status(1, 1, "done")

    def test_get_missing(self, store):
        with pytest.raises(NotFoundError):
            ProductionService(store).get_status(1, 1)

    def test_mirrors_onto_assignment(self, store):
        assignments = AssignmentService(store)
        assignments.create_assignment({"article_id": "10-1", "tricoteuse_id": "t1", "status": "en_cours"})

        ProductionService(store).update_status(10, 1, "termine", urgent=True)

        data = assignments.get_assignment_by_article_id("10-1")
        assert data["status"] == "termine"
        assert data["urgent"] is True

    def test_snapshot_refreshed(self, store, source, make_order):
        source.orders = [make_order(1001)]
        OrderSync(store, source).run()

        ProductionService(store).update_status(1001, 1, "en_pause")

        with store.session() as session:
            row = session.query(OrderItem).filter_by(order_id=1001, line_item_id=1).one()
            assert row.production_status["status"] == "en_pause"

    def test_production_type(self, store):
        service = ProductionService(store)
        assert service.set_production_type(3, 1, "maille")["production_type"] == "maille"
        with pytest.raises(ValidationError):
            service.set_production_type(3, 1, "broderie")


class TestBulkUpdate:

    def test_two_updates(self, store):
        service = ProductionService(store)
        result = service.bulk_update_status([
            {"orderId": 1, "lineItemId": 1, "status": "termine"},
            {"orderId": 1, "lineItemId": 2, "status": "en_pause"},
        ])

        assert result["modifiedCount"] == 2
        assert result["errors"] == []
        assert service.get_status(1, 1)["status"] == "termine"
        assert service.get_status(1, 2)["status"] == "en_pause"

    def test_existing_records(self, store):
        service = ProductionService(store)
        service.update_status(1, 1, "a_faire")
        service.update_status(1, 2, "a_faire")

        result = service.bulk_update_status([
            {"orderId": 1, "lineItemId": 1, "status": "termine"},
            {"orderId": 1, "lineItemId": 2, "status": "en_pause"},
        ])

        assert result["matchedCount"] == 2
        assert result["modifiedCount"] == 2
        assert result["upsertedCount"] == 0

    def test_unchanged_not_modified(self, store):
        service = ProductionService(store)
        service.update_status(1, 1, "termine")
        result = service.bulk_update_status([{"orderId": 1, "lineItemId": 1, "status": "termine"}])
        assert result["matchedCount"] == 1
        assert result["modifiedCount"] == 0

    def test_invalid_entries_reported(self, store):
        service = ProductionService(store)
        result = service.bulk_update_status([
            {"orderId": 1, "lineItemId": 1, "status": "termine"},
            {"orderId": "x", "lineItemId": 1, "status": "termine"},
            {"orderId": 1, "lineItemId": 3, "status": "inconnu"},
            "nope",
        ])
        assert result["modifiedCount"] == 1
        assert [e["index"] for e in result["errors"]] == [1, 2, 3]

    def test_empty_list(self, store):
        with pytest.raises(ValidationError):
            ProductionService(store).bulk_update_status([])


class TestListAndReclassify:

    def test_list_by_status(self, store):
        service = ProductionService(store)
        service.update_status(1, 1, "en_cours")
        service.update_status(1, 2, "termine")
        service.update_status(2, 1, "en_cours")

        rows = service.list_by_status("en_cours")
        assert {(r["order_id"], r["line_item_id"]) for r in rows} == {(1, 1), (2, 1)}

    def test_reclassify_all(self, store, source, make_order):
        source.orders = [make_order(1001)]
        OrderSync(store, source).run()

        service = ProductionService(store, classifier=KeywordClassifier(["lin"]))
        result = service.reclassify_all()

        assert result == {"updated": 2, "total": 2}
        assert service.get_status(1001, 1)["production_type"] == "maille"
        assert service.get_status(1001, 2)["production_type"] == "couture"
