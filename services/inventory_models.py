from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator

from services.config import BUSINESS_ID, NEW_PRODUCT_UNIT_COST

ProductId = Union[int, str]


class Product(BaseModel):
    """Product row as returned by ``GET /api/products``.

    Stock fields stay ``None`` when the backend omits them; every
    calculation treats ``None`` as 0.
    """
    product_id: ProductId
    product_name: Optional[str] = ''
    stock_keeping_unit: Optional[str] = ''
    unit_price: Any = None
    current_stock: Optional[int] = None
    reorder_point: Optional[int] = None

    @field_validator('product_name', 'stock_keeping_unit', mode='before')
    @classmethod
    def _blank_text(cls, value):
        return '' if value is None else value

    @property
    def stock_level(self) -> int:
        return self.current_stock or 0

    @property
    def reorder_level(self) -> int:
        return self.reorder_point or 0


class ProductDraft(BaseModel):
    product_name: str = ''
    stock_keeping_unit: str = ''
    unit_price: Union[str, int, float] = ''


class DemandPoint(BaseModel):
    date: str
    total_quantity: float = 0


class DemandSummaryEntry(BaseModel):
    product_name: Optional[str] = ''
    total_demand: float = 0

    @field_validator('product_name', mode='before')
    @classmethod
    def _blank_name(cls, value):
        return '' if value is None else value


class StockoutPrediction(BaseModel):
    stockout_date: Optional[str] = None


class CreateProductPayload(BaseModel):
    business_id: int = BUSINESS_ID
    product_name: str
    stock_keeping_unit: str
    unit_cost: int = NEW_PRODUCT_UNIT_COST
    unit_price: Union[str, int, float]

    @classmethod
    def from_draft(cls, draft: ProductDraft, business_id: int = BUSINESS_ID) -> 'CreateProductPayload':
        return cls(
            business_id=business_id,
            product_name=draft.product_name,
            stock_keeping_unit=draft.stock_keeping_unit,
            unit_price=draft.unit_price,
        )


class StockUpdatePayload(BaseModel):
    product_id: ProductId
    quantity_change: int = Field(..., description='Signed stock delta')
