"""validators.py tests"""
import pytest

from atelier.exceptions import ValidationError
from atelier.utils.validators import (
    ManualOrderValidator,
    TricoteuseValidator,
    raise_for_errors,
    require_production_type,
    require_status,
)


class TestStatusChecks:

    @pytest.mark.parametrize("status", ["a_faire", "en_cours", "en_pause", "termine"])
    def test_known_status(self, status):
        assert require_status(status) == status

    @pytest.mark.parametrize("status", ["fini", "", None, "TERMINE"])
    def test_unknown_status(self, status):
        with pytest.raises(ValidationError):
            require_status(status)

    def test_production_type(self):
        assert require_production_type("couture") == "couture"
        with pytest.raises(ValidationError):
            require_production_type("broderie")

    def test_raise_for_errors_empty(self):
        raise_for_errors([])


class TestManualOrderValidator:

    def test_valid(self):
        payload = {"customer": "Boutique", "items": [{"product_name": "Robe", "quantity": 2, "price": "30.5"}]}
        assert ManualOrderValidator().validate(payload) == []

    def test_problems(self):
        errors = ManualOrderValidator().validate({
            "customer": "Boutique",
            "order_number": "B 12",
            "items": [{"product_name": "Robe", "quantity": True, "price": -1, "production_type": "x"}],
        })
        assert [e.field for e in errors] == [
            "order_number",
            "items[0].quantity",
            "items[0].price",
            "items[0].production_type",
        ]

    def test_no_items(self):
        errors = ManualOrderValidator().validate({"customer": "Boutique", "items": []})
        assert [e.field for e in errors] == ["items"]


class TestTricoteuseValidator:

    def test_partial(self):
        assert TricoteuseValidator().validate({"color": "#fff"}, partial=True) == []

    def test_full_requires_name_and_email(self):
        errors = TricoteuseValidator().validate({})
        assert [e.field for e in errors] == ["firstName", "email"]
