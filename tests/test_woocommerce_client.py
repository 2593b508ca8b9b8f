"""
WooCommerceClient tests
=======================
HTTP is faked at the session level; no network access.
"""
from unittest.mock import Mock

import pytest
import requests

from atelier.api.woocommerce_client import WooCommerceClient
from atelier.exceptions import UpstreamFetchError
from atelier.utils.retry import RetryPolicy


def _response(status_code=200, body=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr("atelier.utils.retry.time.sleep", lambda s: None)


@pytest.fixture
def client():
    return WooCommerceClient(
        "https://shop.example/",
        "ck_test",
        "cs_test",
        retry_policy=RetryPolicy(attempts=3, first_delay=0.01, jitter=False),
    )


class TestRequests:

    def test_auth_and_url(self, client):
        client._session.request = Mock(return_value=_response(body=[{"id": 1}]))

        assert client.list_orders(per_page=500) == [{"id": 1}]

        method, url = client._session.request.call_args.args
        params = client._session.request.call_args.kwargs["params"]
        assert method == "GET"
        assert url == "https://shop.example/wp-json/wc/v3/orders"
        assert params["per_page"] == 100
        assert params["order"] == "desc"
        assert client._session.auth == ("ck_test", "cs_test")

    def test_get_order_not_found(self, client):
        client._session.request = Mock(return_value=_response(404, {"message": "Invalid ID."}))
        assert client.get_order(42) is None
        assert client.get_product(7) is None

    def test_server_error_retried(self, client):
        client._session.request = Mock(return_value=_response(500, {"message": "boom"}))

        with pytest.raises(UpstreamFetchError) as exc_info:
            client.get_order(42)

        assert exc_info.value.upstream_status == 500
        assert client._session.request.call_count == 3

    def test_client_error_not_retried(self, client):
        client._session.request = Mock(return_value=_response(401, {"message": "Unauthorized"}))

        with pytest.raises(UpstreamFetchError) as exc_info:
            client.list_orders()

        assert exc_info.value.upstream_status == 401
        assert "Unauthorized" in exc_info.value.detail
        assert client._session.request.call_count == 1

    def test_connection_error_retried(self, client):
        client._session.request = Mock(side_effect=requests.ConnectionError("refused"))

        with pytest.raises(UpstreamFetchError):
            client.list_orders()
        assert client._session.request.call_count == 3

    def test_recovers_after_transient_failure(self, client):
        client._session.request = Mock(side_effect=[
            requests.Timeout("slow"),
            _response(503, {}),
            _response(body={"id": 42}),
        ])
        assert client.get_order(42) == {"id": 42}

    def test_invalid_json(self, client):
        client._session.request = Mock(return_value=_response(body=ValueError("no json")))
        with pytest.raises(UpstreamFetchError):
            client.get_order(42)

    def test_list_must_be_array(self, client):
        client._session.request = Mock(return_value=_response(body={"id": 1}))
        with pytest.raises(UpstreamFetchError):
            client.list_orders()

    def test_connection_check(self, client):
        client._session.request = Mock(return_value=_response(body=[]))
        assert client.test_connection() is True
        client._session.request = Mock(return_value=_response(403, {"message": "nope"}))
        assert client.test_connection() is False
