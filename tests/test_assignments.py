"""
assignments.py tests
====================
Status mirroring into production_status, legacy ids, repair sync
"""
import pytest

from atelier.exceptions import NotFoundError, ValidationError
from atelier.models import ArticleAssignment, ProductionStatus
from atelier.services.assignments import AssignmentService
from atelier.services.production import ProductionService
from atelier.services.tricoteuses import TricoteuseService


def _status(store, order_id, line_item_id):
    with store.session() as session:
        return session.query(ProductionStatus).filter_by(order_id=order_id, line_item_id=line_item_id).one_or_none()


class TestCreateAssignment:

    def test_mirrors_status(self, store):
        AssignmentService(store).create_assignment(
            {"article_id": "100-1", "tricoteuse_id": "t1", "status": "en_cours"}
        )
        record = _status(store, 100, 1)
        assert record.status == "en_cours"
        assert record.assigned_to == "t1"

    def test_default_status(self, store):
        data = AssignmentService(store).create_assignment({"article_id": "100-2", "tricoteuse_id": "t1"})
        assert data["status"] == "a_faire"
        assert _status(store, 100, 2).status == "a_faire"

    @pytest.mark.parametrize("payload", [
        {"tricoteuse_id": "t1"},
        {"article_id": "100-1"},
        {"article_id": "", "tricoteuse_id": "t1"},
    ])
    def test_required_fields(self, store, payload):
        with pytest.raises(ValidationError):
            AssignmentService(store).create_assignment(payload)

    def test_invalid_status(self, store):
        with pytest.raises(ValidationError):
            AssignmentService(store).create_assignment({"article_id": "100-1", "tricoteuse_id": "t1", "status": "fini"})

    def test_legacy_separator(self, store):
        data = AssignmentService(store).create_assignment(
            {"article_id": "100_1", "tricoteuse_id": "t1", "status": "en_pause"}
        )
        assert (data["order_id"], data["line_item_id"]) == (100, 1)
        assert _status(store, 100, 1).status == "en_pause"

    def test_bare_order_id(self, store):
        AssignmentService(store).create_assignment({"article_id": "100", "tricoteuse_id": "t1", "status": "termine"})
        assert _status(store, 100, 1).status == "termine"

    def test_reassign_existing_article(self, store):
        service = AssignmentService(store)
        first = service.create_assignment({"article_id": "100-1", "tricoteuse_id": "t1"})
        second = service.create_assignment({"article_id": "100_1", "tricoteuse_id": "t2", "status": "en_cours"})

        assert second["id"] == first["id"]
        assert second["tricoteuse_id"] == "t2"
        with store.session() as session:
            assert session.query(ArticleAssignment).count() == 1
        assert _status(store, 100, 1).assigned_to == "t2"

    def test_name_resolution(self, store):
        tricoteuse = TricoteuseService(store).create_tricoteuse({"firstName": "Christine", "email": "c@atelier.fr"})
        service = AssignmentService(store)

        looked_up = service.create_assignment({"article_id": "1-1", "tricoteuse_id": str(tricoteuse["id"])})
        given = service.create_assignment({"article_id": "1-2", "tricoteuse_id": "x", "tricoteuse_name": "Léa"})
        unknown = service.create_assignment({"article_id": "1-3", "tricoteuse_id": "999"})

        assert looked_up["tricoteuse_name"] == "Christine"
        assert given["tricoteuse_name"] == "Léa"
        assert unknown["tricoteuse_name"] == "Tricoteuse inconnue"
        assert _status(store, 1, 1).assigned_name == "Christine"

    def test_keeps_notes_and_urgent(self, store):
        ProductionService(store).update_status(100, 1, "a_faire", notes="ourlet", urgent=True)
        AssignmentService(store).create_assignment({"article_id": "100-1", "tricoteuse_id": "t1", "status": "en_cours"})

        record = _status(store, 100, 1)
        assert record.notes == "ourlet"
        assert record.urgent is True
        assert record.status == "en_cours"


class TestUpdateAssignment:

    def test_status_propagates(self, store):
        service = AssignmentService(store)
        created = service.create_assignment({"article_id": "100-1", "tricoteuse_id": "t1"})

        updated = service.update_assignment(created["id"], {"status": "termine", "urgent": True})

        assert updated["status"] == "termine"
        record = _status(store, 100, 1)
        assert record.status == "termine"
        assert record.urgent is True

    def test_unknown_id(self, store):
        with pytest.raises(NotFoundError):
            AssignmentService(store).update_assignment(42, {"status": "termine"})

    def test_legacy_record_propagates(self, store):
        with store.session() as session:
            session.add(ArticleAssignment(article_id="200_3", tricoteuse_id="t1", status="a_faire"))
        service = AssignmentService(store)
        legacy_id = service.get_assignment_by_article_id("200-3")["id"]

        service.update_assignment(legacy_id, {"status": "en_cours"})
        assert _status(store, 200, 3).status == "en_cours"


class TestDeleteAssignment:

    def test_delete_by_article_resets_status(self, store):
        service = AssignmentService(store)
        service.create_assignment({"article_id": "100-1", "tricoteuse_id": "t1", "status": "en_cours"})

        service.delete_assignment_by_article_id("100-1")

        record = _status(store, 100, 1)
        assert record.status == "a_faire"
        assert record.assigned_to is None
        with pytest.raises(NotFoundError):
            service.get_assignment_by_article_id("100-1")

    def test_delete_by_id(self, store):
        service = AssignmentService(store)
        created = service.create_assignment({"article_id": "100_2", "tricoteuse_id": "t1", "status": "en_pause"})
        service.delete_assignment(created["id"])
        assert _status(store, 100, 2).status == "a_faire"

    def test_delete_missing(self, store):
        service = AssignmentService(store)
        with pytest.raises(NotFoundError):
            service.delete_assignment(1)
        with pytest.raises(NotFoundError):
            service.delete_assignment_by_article_id("100-1")


class TestSyncAssignmentsStatus:

    def test_repairs_drift(self, store):
        service = AssignmentService(store)
        service.create_assignment({"article_id": "100-1", "tricoteuse_id": "t1", "status": "en_cours"})
        service.create_assignment({"article_id": "100-2", "tricoteuse_id": "t1", "status": "termine"})
        with store.session() as session:
            session.query(ProductionStatus).update({ProductionStatus.status: "a_faire"})

        result = service.sync_assignments_status()

        assert result == {"synced": 2, "total": 2}
        assert _status(store, 100, 1).status == "en_cours"
        assert _status(store, 100, 2).status == "termine"

    def test_idempotent(self, store):
        service = AssignmentService(store)
        service.create_assignment({"article_id": "100-1", "tricoteuse_id": "t1", "status": "en_cours"})

        first = service.sync_assignments_status()
        second = service.sync_assignments_status()

        assert first == second == {"synced": 1, "total": 1}
        with store.session() as session:
            assert session.query(ProductionStatus).count() == 1

    def test_unparseable_article_skipped(self, store):
        with store.session() as session:
            session.add(ArticleAssignment(article_id="abc", tricoteuse_id="t1", status="en_cours"))
        result = AssignmentService(store).sync_assignments_status()
        assert result == {"synced": 0, "total": 1}


class TestReadAssignments:

    def test_list_newest_first(self, store):
        service = AssignmentService(store)
        service.create_assignment({"article_id": "1-1", "tricoteuse_id": "t1"})
        service.create_assignment({"article_id": "1-2", "tricoteuse_id": "t1"})
        articles = [a["article_id"] for a in service.list_assignments()]
        assert articles == ["1-2", "1-1"]

    def test_get_by_either_spelling(self, store):
        service = AssignmentService(store)
        service.create_assignment({"article_id": "100-1", "tricoteuse_id": "t1"})
        assert service.get_assignment_by_article_id("100_1")["article_id"] == "100-1"
        assert service.get_assignment_by_article_id("100")["article_id"] == "100-1"

    def test_get_missing(self, store):
        with pytest.raises(NotFoundError):
            AssignmentService(store).get_assignment(7)
