"""
Tests for the Inventory Backend client using httpx.MockTransport.
Run with: python -m pytest tests/test_inventory_api.py -v
"""
import json
import sys
from pathlib import Path

import httpx
import pytest

# Add root to path so we can import services
sys.path.insert(0, str(Path(__file__).parent.parent))

from services.inventory_api import InventoryApiClient, InventoryApiError
from services.inventory_models import ProductDraft

BASE_URL = 'http://backend.test'


class RecordingBackend:
    """Route table keyed by (method, path) that records every request."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={'detail': 'not found'})
        if callable(handler):
            return handler(request)
        return handler


def _client(routes, business_id=1):
    backend = RecordingBackend(routes)
    client = InventoryApiClient(
        base_url=BASE_URL,
        business_id=business_id,
        timeout=5,
        transport=httpx.MockTransport(backend),
    )
    return client, backend


def test_list_products():
    client, backend = _client({
        ('GET', '/api/products'): httpx.Response(200, json=[
            {'product_id': 1, 'product_name': 'Rice', 'stock_keeping_unit': 'RICE-5',
             'unit_price': '250.00', 'current_stock': 12, 'reorder_point': 10, 'category': 'grain'},
            {'product_id': 2, 'product_name': 'Salt', 'stock_keeping_unit': 'SALT-1', 'unit_price': 20},
        ]),
    })

    products = client.list_products()

    assert [p.product_id for p in products] == [1, 2]
    assert products[0].unit_price == '250.00'
    assert products[1].current_stock is None
    assert products[1].stock_level == 0
    assert str(backend.requests[0].url) == f'{BASE_URL}/api/products'


def test_list_products_tolerates_null_text_fields():
    """Rows with a null name or SKU still load, with blank text."""
    client, _ = _client({
        ('GET', '/api/products'): httpx.Response(200, json=[
            {'product_id': 1, 'product_name': 'Rice', 'stock_keeping_unit': 'RICE-5', 'current_stock': 12},
            {'product_id': 2, 'product_name': None, 'stock_keeping_unit': None, 'current_stock': 3},
        ]),
        ('GET', '/api/inventory/demand-summary/1'): httpx.Response(200, json=[
            {'product_name': None, 'total_demand': 8},
        ]),
    })

    products = client.list_products()
    summary = client.get_demand_summary()

    assert [p.product_id for p in products] == [1, 2]
    assert products[1].product_name == ''
    assert products[1].stock_keeping_unit == ''
    assert products[1].stock_level == 3
    assert summary[0].product_name == ''


def test_create_product_payload():
    client, backend = _client({
        ('POST', '/api/products'): httpx.Response(201, json={'product_id': 3}),
    })

    client.create_product(ProductDraft(product_name='Tea', stock_keeping_unit='TEA-1', unit_price='300'))

    body = json.loads(backend.requests[0].content)
    assert body == {
        'business_id': 1,
        'product_name': 'Tea',
        'stock_keeping_unit': 'TEA-1',
        'unit_cost': 0,
        'unit_price': '300',
    }


def test_delete_product_with_empty_response():
    client, backend = _client({
        ('DELETE', '/api/products/7'): httpx.Response(204),
    })
    assert client.delete_product(7) is None
    assert backend.requests[0].method == 'DELETE'


def test_update_stock_payload():
    client, backend = _client({
        ('POST', '/api/inventory/update-stock'): httpx.Response(200, json={'ok': True}),
    })
    client.update_stock(4, -1)
    assert json.loads(backend.requests[0].content) == {'product_id': 4, 'quantity_change': -1}


def test_business_scoped_paths():
    client, backend = _client({
        ('GET', '/api/inventory/demand/3/5'): httpx.Response(200, json=[
            {'date': '2026-01-01', 'total_quantity': '4'},
            {'date': '2026-01-02', 'total_quantity': 6},
        ]),
        ('GET', '/api/inventory/demand-summary/3'): httpx.Response(200, json=[
            {'product_name': 'Rice', 'total_demand': 40},
        ]),
        ('GET', '/api/inventory/stockout/3/5'): httpx.Response(200, json={'stockout_date': '2026-12-01'}),
    }, business_id=3)

    trend = client.get_demand_trend(5)
    summary = client.get_demand_summary()
    stockout = client.get_stockout_date(5)

    assert [p.total_quantity for p in trend] == [4.0, 6.0]
    assert summary[0].product_name == 'Rice'
    assert stockout == '2026-12-01'


def test_missing_stockout_date():
    client, _ = _client({
        ('GET', '/api/inventory/stockout/1/5'): httpx.Response(200, json={}),
    })
    assert client.get_stockout_date(5) is None


def test_error_status_raises():
    client, _ = _client({
        ('GET', '/api/products'): httpx.Response(500, json={'detail': 'db down'}),
    })
    with pytest.raises(InventoryApiError, match='status 500'):
        client.list_products()


def test_client_error_status_raises():
    client, _ = _client({})
    with pytest.raises(InventoryApiError, match='status 404'):
        client.delete_product(99)


def test_transport_error_raises():
    def _fail(request):
        raise httpx.ConnectError('connection refused', request=request)

    client, _ = _client({('GET', '/api/products'): _fail})
    with pytest.raises(InventoryApiError):
        client.list_products()


def test_invalid_json_raises():
    client, _ = _client({
        ('GET', '/api/products'): httpx.Response(200, content=b'<html>oops</html>'),
    })
    with pytest.raises(InventoryApiError, match='invalid JSON'):
        client.list_products()


def test_unexpected_shape_raises():
    client, _ = _client({
        ('GET', '/api/products'): httpx.Response(200, json={'products': []}),
        ('GET', '/api/inventory/stockout/1/1'): httpx.Response(200, json=['2026-01-01']),
    })
    with pytest.raises(InventoryApiError, match='expected list'):
        client.list_products()
    with pytest.raises(InventoryApiError, match='expected object'):
        client.get_stockout_date(1)


def test_malformed_product_raises():
    client, _ = _client({
        ('GET', '/api/products'): httpx.Response(200, json=[{'product_name': 'no id'}]),
    })
    with pytest.raises(InventoryApiError, match='malformed'):
        client.list_products()


def test_context_manager_closes():
    client, _ = _client({})
    with client as c:
        assert c is client
    assert client._http_client.is_closed


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
