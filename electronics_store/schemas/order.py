from pydantic import Field
from datetime import datetime
from typing import Optional

from electronics_store.models.order import OrderStatus
from electronics_store.schemas.common import CamelModel


class OrderLine(CamelModel):
    """A requested order line."""
    product_id: int = Field(..., description="ID of the product to purchase")
    quantity: int = Field(..., ge=1, description="Quantity to purchase")


class OrderCreate(CamelModel):
    """Schema for placing a new order."""
    client_name: str = Field(..., min_length=1, description="Customer name")
    client_email: str = Field(..., min_length=1, description="Customer email")
    client_phone: Optional[str] = Field(None, description="Customer phone")
    items: list[OrderLine] = Field(..., min_length=1, description="Requested products")


class OrderPlaced(CamelModel):
    """Response body for a successfully placed order."""
    success: bool = True
    order_id: int
    total_amount: float
    message: str = "Order created successfully"


class OrderItemSummary(CamelModel):
    """Flattened order line used in order listings."""
    product_id: int
    quantity: int
    price: float


class OrderItemResponse(OrderItemSummary):
    """Order line with its product resolved to the current product name."""
    id: int
    order_id: int
    product_name: Optional[str] = None


class OrderBase(CamelModel):
    id: int
    client_name: str
    client_email: str
    client_phone: str
    total_amount: float
    status: OrderStatus
    created_at: Optional[datetime] = None


class OrderSummary(OrderBase):
    """Schema for order listings."""
    items: list[OrderItemSummary] = []


class OrderDetail(OrderBase):
    """Schema for a single order including resolved items."""
    items: list[OrderItemResponse] = []
