from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class OrderItemCreate(BaseModel):
    product_id: str = Field(..., description="Catalogue reference of the product")
    product_title: Optional[str] = None
    quantity: int
    unit_price: Decimal = Field(..., description="Fiat price of one unit")


class OrderCreate(BaseModel):
    order_number: str = Field(..., description="Externally visible order identifier")
    order_date: Optional[datetime] = None
    exchange_rate: Optional[Decimal] = Field(
        default=None, description="Fiat units per one crypto unit"
    )
    owner: Optional[str] = Field(
        default=None, description="Ignored; the order belongs to the authenticated caller"
    )
    items: List[OrderItemCreate] = []


class OrderItemResponse(BaseModel):
    id: Optional[str]
    product_id: str
    product_title: Optional[str]
    quantity: int
    unit_price: str
    line_total: str


class OrderResponse(BaseModel):
    id: Optional[str]
    order_number: str
    order_date: datetime
    owner: str
    exchange_rate: str
    total_fiat: str
    total_crypto: str
    payment_address: Optional[str]
    items: List[OrderItemResponse]


class OrderListResponse(BaseModel):
    items: List[OrderResponse]
