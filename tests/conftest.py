"""Shared fixtures: temporary SQLite store and an in-memory order source"""
import pytest

from atelier.database import Store


def _line_item(line_item_id, name="Chemise en lin", quantity=1, price=45.0, **extra):
    item = {
        "id": line_item_id,
        "name": name,
        "product_id": 500 + line_item_id,
        "variation_id": 0,
        "quantity": quantity,
        "price": price,
        "total": str(price * quantity),
        "meta_data": [
            {"id": 1, "key": "pa_taille", "value": "m", "display_key": "Taille", "display_value": "M"},
            {"id": 2, "key": "_reduced_stock", "value": "1"},
        ],
        "image": {"id": 9, "src": f"https://shop.example/img/{line_item_id}.jpg"},
    }
    item.update(extra)
    return item


def _woo_order(order_id, items=None, status="processing", country="FR", shipping_lines=None, **extra):
    order = {
        "id": order_id,
        "number": str(order_id),
        "status": status,
        "date_created": "2024-03-05T10:30:00",
        "total": "90.00",
        "customer_note": "",
        "billing": {
            "first_name": "Marie",
            "last_name": "Dupont",
            "email": "marie@example.com",
            "phone": "0600000000",
            "address_1": "1 rue de la Paix",
            "postcode": "75002",
            "city": "Paris",
            "country": country,
        },
        "shipping": {
            "first_name": "Marie",
            "last_name": "Dupont",
            "address_1": "",
            "postcode": "",
            "city": "",
            "country": country,
        },
        "shipping_lines": shipping_lines if shipping_lines is not None else [
            {"method_id": "flat_rate", "method_title": "Livraison standard", "meta_data": []}
        ],
        "line_items": items if items is not None else [_line_item(1), _line_item(2, name="Pull tricoté main")],
    }
    order.update(extra)
    return order


class FakeOrderSource:
    """In-memory stand-in for WooCommerceClient"""

    def __init__(self, orders=None, products=None):
        self.orders = list(orders or [])
        self.products = dict(products or {})
        self.list_error = None
        self.list_calls = 0

    def list_orders(self, per_page=100, **kwargs):
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        ordered = sorted(self.orders, key=lambda o: o.get("id") or 0, reverse=True)
        return ordered[:per_page]

    def get_order(self, order_id):
        for order in self.orders:
            if order.get("id") == order_id:
                return order
        return None

    def get_product(self, product_id):
        return self.products.get(product_id)

    def test_connection(self):
        return self.list_error is None


@pytest.fixture
def store(tmp_path):
    store = Store(str(tmp_path / "atelier.db")).connect()
    yield store
    store.disconnect()


@pytest.fixture
def make_order():
    return _woo_order


@pytest.fixture
def make_item():
    return _line_item


@pytest.fixture
def source():
    return FakeOrderSource()
