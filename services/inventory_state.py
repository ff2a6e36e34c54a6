"""Inventory view model.

``InventoryState`` holds everything the dashboard shows and declares how
each slot takes new data: products, demand trend, demand summary and the
selection are replaced wholesale, stockout dates are merged by product id.
``InventoryViewModel`` runs the backend calls against that state. Backend
failures are logged and dropped here, they never reach the page.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from services.config import EXTENDED_FEATURES, RESTOCK_QUANTITY, SELL_QUANTITY
from services.inventory_api import InventoryApiClient, InventoryApiError
from services.inventory_metrics import (
    InventorySummary,
    build_product_rows,
    build_stock_health_series,
    can_sell,
    summarize_inventory,
)
from services.inventory_models import (
    DemandPoint,
    DemandSummaryEntry,
    Product,
    ProductDraft,
    ProductId,
)

logger = logging.getLogger(__name__)

REPLACE = 'replace'
MERGE = 'merge'

FIELD_POLICIES = {
    'products': REPLACE,
    'selected_product_id': REPLACE,
    'demand_trend': REPLACE,
    'demand_summary': REPLACE,
    'stockout_dates': MERGE,
}

DRAFT_FIELDS = ('product_name', 'stock_keeping_unit', 'unit_price')


class DraftValidationError(ValueError):
    """Raised when the add-product draft has empty required fields."""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(f"Fill all fields (missing: {', '.join(missing)})")


class FeatureDisabledError(RuntimeError):
    """Raised when an extended-only operation runs in the reduced variant."""


def validate_draft(draft: ProductDraft) -> None:
    missing = [name for name in DRAFT_FIELDS if not getattr(draft, name)]
    if missing:
        raise DraftValidationError(missing)


@dataclass
class InventoryState:
    products: List[Product] = field(default_factory=list)
    selected_product_id: Optional[ProductId] = None
    demand_trend: List[DemandPoint] = field(default_factory=list)
    demand_summary: List[DemandSummaryEntry] = field(default_factory=list)
    stockout_dates: Dict[str, Optional[str]] = field(default_factory=dict)

    def apply(self, slot: str, value: Any) -> None:
        policy = FIELD_POLICIES.get(slot)
        if policy is None:
            raise KeyError(f'Unknown state slot: {slot}')

        if policy == MERGE:
            merged = dict(getattr(self, slot))
            merged.update(value)
            setattr(self, slot, merged)
        else:
            setattr(self, slot, value)

    def get_product(self, product_id: ProductId) -> Optional[Product]:
        for product in self.products:
            if str(product.product_id) == str(product_id):
                return product
        return None

    # ---------- dcc.Store documents ----------

    def to_store(self) -> Dict[str, Any]:
        return {
            'products': [p.model_dump() for p in self.products],
            'demand': {
                'selected_product_id': self.selected_product_id,
                'points': [p.model_dump() for p in self.demand_trend],
            },
            'demand_summary': [e.model_dump() for e in self.demand_summary],
            'stockout_dates': dict(self.stockout_dates),
        }

    @classmethod
    def from_store(
        cls,
        products: Optional[List[Mapping]] = None,
        demand: Optional[Mapping] = None,
        demand_summary: Optional[List[Mapping]] = None,
        stockout_dates: Optional[Mapping] = None,
    ) -> 'InventoryState':
        demand = demand or {}
        return cls(
            products=[Product.model_validate(p) for p in products or []],
            selected_product_id=demand.get('selected_product_id'),
            demand_trend=[DemandPoint.model_validate(p) for p in demand.get('points') or []],
            demand_summary=[DemandSummaryEntry.model_validate(e) for e in demand_summary or []],
            stockout_dates=dict(stockout_dates or {}),
        )


class InventoryViewModel:

    def __init__(
        self,
        client: InventoryApiClient,
        state: Optional[InventoryState] = None,
        extended: bool = EXTENDED_FEATURES,
    ) -> None:
        self.client = client
        self.state = state if state is not None else InventoryState()
        self.extended = extended

    def _require_extended(self, operation: str) -> None:
        if not self.extended:
            raise FeatureDisabledError(f'{operation} is not available in the reduced dashboard')

    # ---------- Derived values ----------

    @property
    def summary(self) -> InventorySummary:
        return summarize_inventory(self.state.products)

    @property
    def pie_series(self) -> List[Dict]:
        return build_stock_health_series(self.summary)

    @property
    def product_rows(self) -> List[Dict]:
        return build_product_rows(self.state.products, self.state.stockout_dates)

    # ---------- Reads ----------

    def refresh_products(self) -> bool:
        try:
            products = self.client.list_products()
        except InventoryApiError:
            logger.exception("Product fetch failed")
            return False

        self.state.apply('products', products)
        logger.info("Loaded %d products", len(products))
        return True

    def fetch_demand_trend(self, product_id: ProductId) -> bool:
        self._require_extended('Demand trend')
        try:
            points = self.client.get_demand_trend(product_id)
        except InventoryApiError:
            logger.exception("Demand fetch failed for product %s", product_id)
            return False

        self.state.apply('demand_trend', points)
        self.state.apply('selected_product_id', product_id)
        return True

    def fetch_demand_summary(self) -> bool:
        self._require_extended('Demand summary')
        try:
            entries = self.client.get_demand_summary()
        except InventoryApiError:
            logger.exception("Demand summary fetch failed")
            return False

        self.state.apply('demand_summary', entries)
        return True

    def fetch_stockout_date(self, product_id: ProductId) -> bool:
        self._require_extended('Stockout prediction')
        try:
            stockout_date = self.client.get_stockout_date(product_id)
        except InventoryApiError:
            logger.exception("Stockout fetch failed for product %s", product_id)
            return False

        self.state.apply('stockout_dates', {str(product_id): stockout_date})
        return True

    def fetch_all_stockout_dates(self) -> int:
        self._require_extended('Stockout prediction')
        fetched = 0
        for product in list(self.state.products):
            if self.fetch_stockout_date(product.product_id):
                fetched += 1
        return fetched

    # ---------- Mutations ----------

    def submit_draft(self, draft: ProductDraft) -> Optional[ProductDraft]:
        """Create a product from the draft.

        Raises ``DraftValidationError`` before contacting the backend when a
        field is empty. Returns a fresh empty draft on success and ``None``
        when the backend call failed, in which case the caller keeps its
        draft as is.
        """
        validate_draft(draft)

        try:
            self.client.create_product(draft)
        except InventoryApiError:
            logger.exception("Add product failed")
            return None

        self.refresh_products()
        return ProductDraft()

    def delete_product(self, product_id: ProductId, confirmed: bool = False) -> bool:
        if not confirmed:
            logger.debug("Delete of product %s not confirmed", product_id)
            return False

        try:
            self.client.delete_product(product_id)
        except InventoryApiError:
            logger.exception("Delete failed for product %s", product_id)
            return False

        self.refresh_products()
        return True

    def update_stock(self, product_id: ProductId, quantity_change: int) -> bool:
        self._require_extended('Stock update')
        try:
            self.client.update_stock(product_id, quantity_change)
        except InventoryApiError:
            logger.exception("Stock update error for product %s", product_id)
            return False

        self.refresh_products()
        return True

    def sell(self, product_id: ProductId) -> bool:
        self._require_extended('Sell')
        product = self.state.get_product(product_id)
        if product is None or not can_sell(product):
            logger.warning("Sell refused for product %s: no stock on hand", product_id)
            return False
        return self.update_stock(product_id, SELL_QUANTITY)

    def restock(self, product_id: ProductId) -> bool:
        return self.update_stock(product_id, RESTOCK_QUANTITY)
