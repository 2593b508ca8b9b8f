"""tricoteuses.py tests"""
import pytest

from atelier.exceptions import DuplicateRecordError, NotFoundError, ValidationError
from atelier.models import ArticleAssignment, ProductionStatus, Tricoteuse
from atelier.services.assignments import AssignmentService
from atelier.services.tricoteuses import TricoteuseService
from atelier.utils.passwords import verify_password


@pytest.fixture
def service(store):
    return TricoteuseService(store)


class TestTricoteuses:

    def test_create(self, store, service):
        created = service.create_tricoteuse({
            "firstName": " Jeanne ",
            "email": "Jeanne@Atelier.fr",
            "color": "#ff8800",
            "password": "laine123",
        })

        assert created["firstName"] == "Jeanne"
        assert created["email"] == "jeanne@atelier.fr"
        assert created["hasPassword"] is True
        assert "password_hash" not in created
        with store.session() as session:
            row = session.get(Tricoteuse, created["id"])
            assert row.password_hash != "laine123"
            assert verify_password("laine123", row.password_hash)
            assert not verify_password("laine124", row.password_hash)

    def test_duplicate_email(self, service):
        service.create_tricoteuse({"firstName": "Jeanne", "email": "jeanne@atelier.fr"})
        with pytest.raises(DuplicateRecordError):
            service.create_tricoteuse({"firstName": "Autre", "email": "JEANNE@atelier.fr"})

    def test_validation(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.create_tricoteuse({"firstName": "", "email": "pas-un-email", "password": "123"})
        fields = [e["field"] for e in exc_info.value.extra["errors"]]
        assert fields == ["firstName", "email", "password"]

    def test_list_sorted_by_name(self, service):
        service.create_tricoteuse({"firstName": "Zoé", "email": "zoe@atelier.fr"})
        service.create_tricoteuse({"firstName": "Anne", "email": "anne@atelier.fr"})
        assert [t["firstName"] for t in service.list_tricoteuses()] == ["Anne", "Zoé"]

    def test_update(self, service):
        created = service.create_tricoteuse({"firstName": "Anne", "email": "anne@atelier.fr"})
        service.create_tricoteuse({"firstName": "Zoé", "email": "zoe@atelier.fr"})

        updated = service.update_tricoteuse(created["id"], {"color": "#00aa00", "password": "secret99"})
        assert updated["color"] == "#00aa00"
        assert updated["hasPassword"] is True

        with pytest.raises(DuplicateRecordError):
            service.update_tricoteuse(created["id"], {"email": "zoe@atelier.fr"})
        with pytest.raises(ValidationError):
            service.update_tricoteuse(created["id"], {"firstName": ""})

    def test_delete(self, service):
        created = service.create_tricoteuse({"firstName": "Anne", "email": "anne@atelier.fr"})
        assert service.delete_tricoteuse(created["id"]) is True
        with pytest.raises(NotFoundError):
            service.get_tricoteuse(created["id"])
        with pytest.raises(NotFoundError):
            service.delete_tricoteuse(created["id"])

    def test_delete_releases_articles(self, store, service):
        created = service.create_tricoteuse({"firstName": "Anne", "email": "anne@atelier.fr"})
        assignments = AssignmentService(store)
        assignments.create_assignment({"article_id": "300-1", "tricoteuse_id": str(created["id"]), "status": "en_cours"})
        assignments.create_assignment({"article_id": "300-2", "tricoteuse_id": "99", "status": "en_cours"})

        service.delete_tricoteuse(created["id"])

        with store.session() as session:
            assert session.query(ArticleAssignment).count() == 1
            released = session.query(ProductionStatus).filter_by(order_id=300, line_item_id=1).one()
            assert released.status == "a_faire"
            assert released.assigned_to is None
            kept = session.query(ProductionStatus).filter_by(order_id=300, line_item_id=2).one()
            assert kept.assigned_to == "99"
