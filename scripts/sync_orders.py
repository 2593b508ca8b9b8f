"""
Order sync script
=================
WooCommerce → order_items / production_status, one reconciliation run

Usage:
    python scripts/sync_orders.py                 # one run with .env settings
    python scripts/sync_orders.py --lookback 50   # also re-check 50 ids below the mark
    python scripts/sync_orders.py --cleanup       # remove finished orders afterwards
    python scripts/sync_orders.py --json          # print the summary as JSON
"""
import sys
import json
import argparse
import logging
from pathlib import Path

# Project root
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
    parser = argparse.ArgumentParser(description="WooCommerce order sync")
    parser.add_argument("--db", type=str, default=None, help="database URL or SQLite path (default: DATABASE_URL)")
    parser.add_argument("--lookback", type=int, default=None, help="ids below the mark to re-check")
    parser.add_argument("--cleanup", action="store_true", help="remove completed/refunded/cancelled orders")
    parser.add_argument("--json", action="store_true", help="print the summary as JSON")
    args = parser.parse_args()

    if not settings.woocommerce_configured:
        logger.error("WOOCOMMERCE_CONSUMER_KEY / WOOCOMMERCE_CONSUMER_SECRET are not set")
        return 2

    store = Store(args.db or settings.database_url).connect()
    syncer = OrderSync.from_settings(store, WooCommerceClient.from_settings(settings), settings)
    if args.lookback is not None:
        syncer.lookback_ids = max(0, args.lookback)
    if args.cleanup:
        syncer.cleanup_final_orders = True

    try:
        summary = syncer.run()
    except AtelierError as e:
        logger.error(f"Sync aborted: {e.detail}")
        return 1
    finally:
        store.disconnect()

    result = summary.to_dict()
    if args.json:
        print(json.dumps(result, ensure_ascii=False, indent=2))
        return 0

    print("\n" + "=" * 60)
    print("Order sync result")
    print("=" * 60)
    print(f"  mark before run : {result['lastOrderId']}")
    print(f"  new orders      : {result['synchronized']} ({result['itemsInserted']} articles)")
    print(f"  skipped         : {result['skipped']}")
    print(f"  errors          : {result['errorCount']}")
    print(f"  removed items   : {result['deleted']}")
    if result["newOrders"]:
        print(f"  imported ids    : {', '.join(str(i) for i in result['newOrders'])}")
    print("=" * 60)
    return 0 if result["errorCount"] == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
