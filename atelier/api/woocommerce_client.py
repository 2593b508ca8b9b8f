"""
WooCommerce REST API client
===========================
HTTP Basic auth with a consumer key/secret, bounded timeout, retry with
exponential backoff on connection errors, timeouts, 429 and 5xx.

Usage:
    client = WooCommerceClient("https://shop.example", key="ck_...", secret="cs_...")
    orders = client.list_orders(per_page=100)
    order = client.get_order(1234)       # None when the order does not exist
"""
import logging
from typing import Optional, Dict, Any, List

import requests

from atelier.constants import WOOCOMMERCE_MAX_PER_PAGE
from atelier.exceptions import UpstreamFetchError
from atelier.utils.retry import RetryPolicy, retrying

logger = logging.getLogger(__name__)


class WooCommerceClient:
    """Read-only WooCommerce order source"""

    def __init__(
        self,
        base_url: str,
        consumer_key: Optional[str],
        consumer_secret: Optional[str],
        api_version: str = "wc/v3",
        timeout: int = 30,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version.strip("/")
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self._session = requests.Session()
        if consumer_key and consumer_secret:
            self._session.auth = (consumer_key, consumer_secret)
        self._session.headers.update({"Accept": "application/json"})

    @classmethod
    def from_settings(cls, settings) -> "WooCommerceClient":
        return cls(
            settings.woocommerce_url,
            settings.woocommerce_consumer_key,
            settings.woocommerce_consumer_secret,
            api_version=settings.woocommerce_api_version,
            timeout=settings.woocommerce_timeout,
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}/wp-json/{self.api_version}/{path.lstrip('/')}"

    def _send(self, method: str, url: str, params: Optional[Dict] = None) -> requests.Response:
        send = retrying(self.retry_policy)(self._session.request)
        return send(method, url, params=params, timeout=self.timeout)

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict] = None,
        allow_not_found: bool = False,
    ) -> Any:
        """
        Shared request path

        Args:
            method: HTTP method
            path: path under /wp-json/{api_version}/
            params: query parameters
            allow_not_found: return None on 404 instead of raising

        Returns:
            decoded JSON body

        Raises:
            UpstreamFetchError: network failure, non-2xx (other than an allowed
                404) or an undecodable body
        """
        url = self._url(path)
        logger.debug(f"WooCommerce {method} {path} params={params}")

        try:
            response = self._send(method, url, params)
        except requests.RequestException as e:
            raise UpstreamFetchError(f"WooCommerce request failed: {e}") from e

        if response.status_code == 404 and allow_not_found:
            return None

        if not 200 <= response.status_code < 300:
            try:
                message = response.json().get("message", response.text)
            except (ValueError, AttributeError):
                message = response.text
            raise UpstreamFetchError(
                f"WooCommerce {method} {path} answered {response.status_code}: {message}",
                upstream_status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamFetchError(f"WooCommerce returned invalid JSON for {path}") from e

    def list_orders(
        self,
        per_page: int = WOOCOMMERCE_MAX_PER_PAGE,
        page: int = 1,
        order: str = "desc",
        orderby: str = "id",
        status: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Most recent orders first (one page)"""
        params = {
            "per_page": max(1, min(int(per_page), WOOCOMMERCE_MAX_PER_PAGE)),
            "page": page,
            "order": order,
            "orderby": orderby,
        }
        if status:
            params["status"] = status
        orders = self._request("GET", "orders", params=params)
        if not isinstance(orders, list):
            raise UpstreamFetchError("WooCommerce order list is not an array")
        logger.info(f"Fetched {len(orders)} orders (page {page})")
        return orders

    def get_order(self, order_id: int) -> Optional[Dict[str, Any]]:
        """Single order, None when it does not exist"""
        return self._request("GET", f"orders/{int(order_id)}", allow_not_found=True)

    def get_product(self, product_id: int) -> Optional[Dict[str, Any]]:
        """Single product, None when it does not exist"""
        return self._request("GET", f"products/{int(product_id)}", allow_not_found=True)

    def test_connection(self) -> bool:
        """True when one order can be listed"""
        try:
            self.list_orders(per_page=1)
            return True
        except UpstreamFetchError as e:
            logger.warning(f"WooCommerce connection test failed: {e}")
            return False
