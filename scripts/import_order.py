"""
Single order import
===================
Imports specific WooCommerce orders regardless of the sync high-water mark

Usage:
    python scripts/import_order.py 1234
    python scripts/import_order.py 1234 1240 1251
"""
import sys
import argparse
import logging
from pathlib import Path

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv
load_dotenv(ROOT / ".env")

from atelier.api.woocommerce_client import WooCommerceClient
from atelier.config import settings
from atelier.database import Store
from atelier.exceptions import AtelierError
from atelier.services.order_sync import OrderSync

logging.basicConfig(
    level=settings.log_level.upper(),
    format='[%(asctime)s] %(levelname)s [%(name)s] %(message)s',
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Import WooCommerce orders by id")
    parser.add_argument("order_ids", type=int, nargs="+", help="WooCommerce order ids")
    parser.add_argument("--db", type=str, default=None, help="database URL or SQLite path (default: DATABASE_URL)")
    args = parser.parse_args()

    store = Store(args.db or settings.database_url).connect()
    syncer = OrderSync.from_settings(store, WooCommerceClient.from_settings(settings), settings)

    failures = 0
    try:
        for order_id in args.order_ids:
            try:
                result = syncer.import_order(order_id)
            except AtelierError as e:
                failures += 1
                logger.error(f"Order {order_id}: {e.detail}")
                continue
            state = "already present" if result["alreadyPresent"] else "imported"
            print(f"  {order_id:>8} | {state:15s} | {result['articlesCount']} articles")
    finally:
        store.disconnect()

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
