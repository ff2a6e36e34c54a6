import logging
import threading
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from services.config import API_BASE_URL, BUSINESS_ID, REQUEST_TIMEOUT
from services.inventory_models import (
    CreateProductPayload,
    DemandPoint,
    DemandSummaryEntry,
    Product,
    ProductDraft,
    ProductId,
    StockoutPrediction,
    StockUpdatePayload,
)

logger = logging.getLogger(__name__)


class InventoryApiError(Exception):
    """Raised when an Inventory Backend call fails for any reason."""


class InventoryApiClient:
    """Synchronous client for the Inventory Backend REST API.

    Network errors, non-2xx responses and malformed bodies all surface as
    ``InventoryApiError``. Nothing is retried.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        business_id: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or API_BASE_URL).rstrip('/')
        self.business_id = BUSINESS_ID if business_id is None else business_id
        self._http_client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(REQUEST_TIMEOUT if timeout is None else timeout),
            headers={'Accept': 'application/json'},
            transport=transport,
        )

    def __enter__(self) -> 'InventoryApiClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._http_client.close()

    def _request(self, method: str, path: str, json: Any = None) -> Any:
        try:
            response = self._http_client.request(method, path, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise InventoryApiError(
                f'{method} {path} failed with status {e.response.status_code}'
            ) from e
        except httpx.HTTPError as e:
            raise InventoryApiError(f'{method} {path} failed: {e}') from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise InventoryApiError(f'{method} {path} returned invalid JSON') from e

    def _get_list(self, path: str) -> List[Any]:
        data = self._request('GET', path)
        if not isinstance(data, list):
            raise InventoryApiError(f'GET {path} returned {type(data).__name__}, expected list')
        return data

    # ---------- Products ----------

    def list_products(self) -> List[Product]:
        data = self._get_list('/api/products')
        try:
            return [Product.model_validate(item) for item in data]
        except ValidationError as e:
            raise InventoryApiError(f'GET /api/products returned malformed products: {e}') from e

    def create_product(self, draft: ProductDraft) -> Any:
        payload = CreateProductPayload.from_draft(draft, business_id=self.business_id)
        logger.info("Creating product %s (%s)", payload.product_name, payload.stock_keeping_unit)
        return self._request('POST', '/api/products', json=payload.model_dump())

    def delete_product(self, product_id: ProductId) -> None:
        logger.info("Deleting product %s", product_id)
        self._request('DELETE', f'/api/products/{product_id}')

    # ---------- Inventory ----------

    def update_stock(self, product_id: ProductId, quantity_change: int) -> None:
        payload = StockUpdatePayload(product_id=product_id, quantity_change=quantity_change)
        logger.info("Updating stock for product %s by %+d", product_id, quantity_change)
        self._request('POST', '/api/inventory/update-stock', json=payload.model_dump())

    def get_demand_trend(self, product_id: ProductId) -> List[DemandPoint]:
        path = f'/api/inventory/demand/{self.business_id}/{product_id}'
        data = self._get_list(path)
        try:
            return [DemandPoint.model_validate(item) for item in data]
        except ValidationError as e:
            raise InventoryApiError(f'GET {path} returned malformed demand points: {e}') from e

    def get_demand_summary(self) -> List[DemandSummaryEntry]:
        path = f'/api/inventory/demand-summary/{self.business_id}'
        data = self._get_list(path)
        try:
            return [DemandSummaryEntry.model_validate(item) for item in data]
        except ValidationError as e:
            raise InventoryApiError(f'GET {path} returned malformed demand summary: {e}') from e

    def get_stockout_date(self, product_id: ProductId) -> Optional[str]:
        path = f'/api/inventory/stockout/{self.business_id}/{product_id}'
        data = self._request('GET', path)
        if not isinstance(data, dict):
            raise InventoryApiError(f'GET {path} returned {type(data).__name__}, expected object')
        try:
            return StockoutPrediction.model_validate(data).stockout_date
        except ValidationError as e:
            raise InventoryApiError(f'GET {path} returned a malformed prediction: {e}') from e


class InventoryClientManager:
    _instance: Optional['InventoryClientManager'] = None
    _client: Optional[InventoryApiClient] = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def get_client(self) -> InventoryApiClient:
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = InventoryApiClient()
                    logger.info("Inventory API client created for %s", self._client.base_url)
        return self._client


def get_inventory_client() -> InventoryApiClient:
    """Shared client for the configured backend."""
    return InventoryClientManager().get_client()
