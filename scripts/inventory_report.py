"""Print an inventory KPI report from the Inventory Backend.

Fetches the product list, classifies each product's stock status and prints
the dashboard summary counts and stock-health series as JSON. With
``--stockout`` the predicted stockout date of every product is fetched too.

Usage (run from project root):
    python scripts/inventory_report.py

Against another backend, including stockout predictions:
    python scripts/inventory_report.py --api-url http://inventory:8000 --stockout
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Optional, Sequence

# Allow running from the project root without installing
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.inventory_api import InventoryApiClient
from services.inventory_state import InventoryViewModel

logger = logging.getLogger("inventory_report")
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print inventory KPIs from the backend")
    parser.add_argument("--api-url", help="Backend base URL. Defaults to INVENTORY_API_URL")
    parser.add_argument("--business-id", type=int, help="Business scope. Defaults to INVENTORY_BUSINESS_ID")
    parser.add_argument("--stockout", action="store_true", help="Fetch predicted stockout dates")
    parser.add_argument("--rows", action="store_true", help="Include per-product rows")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)

    with InventoryApiClient(base_url=args.api_url, business_id=args.business_id) as client:
        vm = InventoryViewModel(client, extended=True)
        logger.info("Fetching products from %s", client.base_url)
        if not vm.refresh_products():
            logger.error("Could not fetch products, no report produced")
            return 1

        if args.stockout:
            fetched = vm.fetch_all_stockout_dates()
            logger.info("Fetched %d of %d stockout predictions", fetched, len(vm.state.products))

        report = {
            "business_id": client.business_id,
            "summary": vm.summary.as_dict(),
            "stock_health": vm.pie_series,
        }
        if args.stockout:
            report["stockout_dates"] = vm.state.stockout_dates
        if args.rows:
            report["products"] = vm.product_rows

    print(json.dumps(report, indent=2, default=str, ensure_ascii=False))
    logger.info("Report complete for %d product(s)", report["summary"]["total_products"])
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
