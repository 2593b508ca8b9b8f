"""External API clients"""

from .woocommerce_client import WooCommerceClient

__all__ = ["WooCommerceClient"]
