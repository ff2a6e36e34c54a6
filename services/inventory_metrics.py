from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Union

from services.config import CURRENCY_SYMBOL
from services.inventory_models import Product

OUT_OF_STOCK = 'OUT_OF_STOCK'
LOW_STOCK = 'LOW_STOCK'
STOCK_OK = 'STOCK_OK'

STATUS_COLORS = {
    OUT_OF_STOCK: '#ef4444',
    LOW_STOCK: '#facc15',
    STOCK_OK: '#22c55e',
}

STATUS_LABELS = {
    OUT_OF_STOCK: 'OUT OF STOCK',
    LOW_STOCK: 'LOW STOCK',
    STOCK_OK: 'STOCK OK',
}

# Pie slice order, colors follow the same order
STOCK_HEALTH_SLICES = [
    ('Stock OK', STOCK_OK),
    ('Low Stock', LOW_STOCK),
    ('Out of Stock', OUT_OF_STOCK),
]
STOCK_HEALTH_COLORS = [STATUS_COLORS[code] for _, code in STOCK_HEALTH_SLICES]

MISSING_VALUE = '—'

ProductLike = Union[Product, Mapping]


@dataclass(frozen=True)
class StockStatus:
    code: str
    label: str
    color: str


@dataclass(frozen=True)
class InventorySummary:
    total_products: int
    low_stock_count: int
    out_of_stock_count: int
    stock_ok_count: int

    def as_dict(self) -> Dict[str, int]:
        return {
            'total_products': self.total_products,
            'low_stock_count': self.low_stock_count,
            'out_of_stock_count': self.out_of_stock_count,
            'stock_ok_count': self.stock_ok_count,
        }


def _status(code: str) -> StockStatus:
    return StockStatus(code=code, label=STATUS_LABELS[code], color=STATUS_COLORS[code])


def _stock_fields(product: ProductLike):
    if isinstance(product, Product):
        return product.stock_level, product.reorder_level
    return product.get('current_stock'), product.get('reorder_point')


def classify_stock_status(current_stock: Optional[int], reorder_point: Optional[int]) -> StockStatus:
    """Classify a stock level against its reorder point.

    Missing values count as 0. A stock level equal to the reorder point is
    low stock, and anything at or below zero is out of stock regardless of
    the reorder point.
    """
    stock = current_stock or 0
    reorder = reorder_point or 0

    if stock <= 0:
        return _status(OUT_OF_STOCK)
    if stock <= reorder:
        return _status(LOW_STOCK)
    return _status(STOCK_OK)


def get_stock_status(product: ProductLike) -> StockStatus:
    return classify_stock_status(*_stock_fields(product))


def can_sell(product: ProductLike) -> bool:
    current_stock, _ = _stock_fields(product)
    return (current_stock or 0) > 0


def summarize_inventory(products: Iterable[ProductLike]) -> InventorySummary:
    counts = {OUT_OF_STOCK: 0, LOW_STOCK: 0, STOCK_OK: 0}
    total = 0
    for product in products:
        counts[get_stock_status(product).code] += 1
        total += 1

    return InventorySummary(
        total_products=total,
        low_stock_count=counts[LOW_STOCK],
        out_of_stock_count=counts[OUT_OF_STOCK],
        stock_ok_count=counts[STOCK_OK],
    )


def build_stock_health_series(summary: InventorySummary) -> List[Dict]:
    values = {
        STOCK_OK: summary.stock_ok_count,
        LOW_STOCK: summary.low_stock_count,
        OUT_OF_STOCK: summary.out_of_stock_count,
    }
    return [{'name': name, 'value': values[code]} for name, code in STOCK_HEALTH_SLICES]


# ---------- Display helpers ----------

def format_price(unit_price) -> str:
    if unit_price is None or unit_price == '':
        return MISSING_VALUE
    return f'{CURRENCY_SYMBOL} {unit_price}'


def format_stock(current_stock: Optional[int]) -> str:
    return f'{current_stock or 0:,}'


def format_stockout_date(value: Optional[str]) -> str:
    if not value:
        return MISSING_VALUE
    if isinstance(value, (date, datetime)):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except ValueError:
            try:
                parsed = date.fromisoformat(str(value)[:10])
            except ValueError:
                return MISSING_VALUE
    return parsed.strftime('%d/%m/%Y')


def build_product_rows(
    products: Iterable[Product],
    stockout_dates: Optional[Mapping[str, Optional[str]]] = None,
) -> List[Dict]:
    stockout_dates = stockout_dates or {}
    rows = []
    for product in products:
        status = get_stock_status(product)
        rows.append({
            'product_id': product.product_id,
            'product_name': product.product_name,
            'stock_keeping_unit': product.stock_keeping_unit,
            'price': format_price(product.unit_price),
            'status_code': status.code,
            'status_label': status.label,
            'status_color': status.color,
            'stock': format_stock(product.current_stock),
            'stockout_date': format_stockout_date(stockout_dates.get(str(product.product_id))),
            'can_sell': can_sell(product),
        })
    return rows
