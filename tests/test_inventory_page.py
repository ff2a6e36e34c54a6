"""
Tests for the inventory page callbacks and row controls.
Run with: python -m pytest tests/test_inventory_page.py -v
"""
import sys
from contextvars import copy_context
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from dash import no_update
from dash._callback_context import context_value
from dash._utils import AttributeDict

# Add root to path so we can import app and pages
sys.path.insert(0, str(Path(__file__).parent.parent))

import app  # noqa: F401  registers the pages
import pages.inventory as inventory_page
from services.inventory_api import InventoryApiClient
from services.inventory_models import Product


@pytest.fixture
def client():
    mock = MagicMock(spec=InventoryApiClient)
    mock.list_products.return_value = [
        Product(product_id=5, product_name='Tea', stock_keeping_unit='TEA-1', unit_price='300', current_stock=0),
    ]
    return mock


@pytest.fixture
def page_client(client):
    with patch.object(inventory_page, 'get_inventory_client', return_value=client):
        yield client


def _row(can_sell):
    return {
        'product_id': 5,
        'product_name': 'Tea',
        'stock_keeping_unit': 'TEA-1',
        'price': '₹ 300',
        'status_label': 'OUT OF STOCK',
        'status_color': '#ef4444',
        'stock': '0',
        'stockout_date': '—',
        'can_sell': can_sell,
    }


def _run_with_trigger(func, prop_id, value, *args):
    def run():
        context_value.set(AttributeDict(triggered_inputs=[{'prop_id': prop_id, 'value': value}]))
        return func(*args)
    return copy_context().run(run)


# ---------- Row controls ----------

def test_sell_button_disabled_without_stock():
    with patch.object(inventory_page, 'EXTENDED_FEATURES', True):
        actions = inventory_page._row_actions(_row(can_sell=False))
    sell_button = actions.children[0]
    assert sell_button.id == {'type': 'inventory-sell-btn', 'index': '5'}
    assert sell_button.disabled is True


def test_sell_button_enabled_with_stock():
    with patch.object(inventory_page, 'EXTENDED_FEATURES', True):
        actions = inventory_page._row_actions(_row(can_sell=True))
    assert actions.children[0].disabled is False


def test_reduced_row_only_has_delete():
    with patch.object(inventory_page, 'EXTENDED_FEATURES', False):
        actions = inventory_page._row_actions(_row(can_sell=True))
    assert [button.id['type'] for button in actions.children] == ['inventory-delete-btn']


# ---------- Add product ----------

def test_add_product_with_empty_sku_shows_alert(page_client):
    result = inventory_page.add_product(1, 'Tea', '', 300, [])

    products, alert_text, alert_hidden, name, sku, price = result
    assert products is no_update
    assert 'stock_keeping_unit' in alert_text
    assert alert_hidden is False
    assert (name, sku, price) == (no_update, no_update, no_update)
    page_client.create_product.assert_not_called()
    page_client.list_products.assert_not_called()


def test_add_product_resets_inputs_and_refreshes_once(page_client):
    result = inventory_page.add_product(1, 'Tea', 'TEA-1', 300, [])

    products, alert_text, alert_hidden, name, sku, price = result
    assert [p['product_id'] for p in products] == [5]
    assert alert_hidden is True
    assert (name, sku, price) == ('', '', '')
    page_client.create_product.assert_called_once()
    page_client.list_products.assert_called_once_with()


# ---------- Delete ----------

def test_request_delete_opens_dialog_for_clicked_row():
    displayed, pending = _run_with_trigger(
        inventory_page.request_delete,
        '{"index":"5","type":"inventory-delete-btn"}.n_clicks',
        1,
        [1],
    )
    assert displayed is True
    assert pending == '5'


def test_request_delete_ignores_rerendered_buttons():
    result = _run_with_trigger(
        inventory_page.request_delete,
        '{"index":"5","type":"inventory-delete-btn"}.n_clicks',
        None,
        [None],
    )
    assert result == (no_update, no_update)


def test_confirm_delete_requires_submit(page_client):
    assert inventory_page.confirm_delete(None, '5', []) is no_update
    page_client.delete_product.assert_not_called()


def test_confirm_delete_deletes_and_refreshes(page_client):
    products = inventory_page.confirm_delete(1, '5', [])
    page_client.delete_product.assert_called_once_with('5')
    page_client.list_products.assert_called_once_with()
    assert [p['product_id'] for p in products] == [5]


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
