from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from electronics_store.database import get_db
from electronics_store.services.order_service import OrderService
from electronics_store.schemas.common import ErrorResponse
from electronics_store.schemas.order import (
    OrderCreate,
    OrderDetail,
    OrderPlaced,
    OrderSummary,
)

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.post(
    "",
    response_model=OrderPlaced,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or insufficient stock"},
        500: {"model": ErrorResponse, "description": "Storage failure, nothing was written"},
    },
    summary="Create a new order",
    description="""
    Place an order for one or more products.

    **Race Condition Handling:**
    Stock for every product in the order is checked and decremented in a
    single transaction. When several orders compete for the last items,
    only the ones that fit in the remaining stock succeed; the others
    receive a 400 error reporting available and requested quantities.

    Repeating a product across lines is allowed: the quantities add up
    and are checked together against the product's stock.
    """
)
def create_order(
    order_data: OrderCreate,
    db: Session = Depends(get_db)
):
    """
    Create an order.

    - **clientName**: Customer name (required)
    - **clientEmail**: Customer email (required)
    - **clientPhone**: Customer phone (optional)
    - **items**: Non-empty list of `{productId, quantity}`
    """
    service = OrderService(db)
    order = service.place_order(order_data)
    return OrderPlaced(order_id=order.id, total_amount=order.total_amount)


@router.get(
    "",
    response_model=List[OrderSummary],
    summary="List all orders",
    description="Get every order, newest first, with a flat summary of its items."
)
def list_orders(db: Session = Depends(get_db)):
    """Get the order list."""
    service = OrderService(db)
    return service.list_orders()


@router.get(
    "/{order_id}",
    response_model=OrderDetail,
    responses={404: {"model": ErrorResponse}},
    summary="Get order by ID",
    description="Get an order with its items, each resolved to the product's current name."
)
def get_order(
    order_id: int,
    db: Session = Depends(get_db)
):
    """Get an order by ID."""
    service = OrderService(db)
    return service.get_order(order_id)
