from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from electronics_store.database import get_db
from electronics_store.services.product_service import ProductService
from electronics_store.schemas.common import ErrorResponse
from electronics_store.schemas.product import (
    ProductCreate,
    ProductCreated,
    ProductResponse,
)

router = APIRouter(prefix="/api", tags=["Products"])


@router.get(
    "/products",
    response_model=List[ProductResponse],
    summary="List all products",
    description="Get every product in the catalog, optionally filtered by category."
)
def list_products(
    category: Optional[str] = Query(None, description="Filter by product category"),
    db: Session = Depends(get_db)
):
    """Get the product list."""
    service = ProductService(db)
    return service.list_products(category)


@router.get(
    "/products/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get product by ID",
    description="Get detailed information about a specific product."
)
def get_product(
    product_id: int,
    db: Session = Depends(get_db)
):
    """Get a product by ID."""
    service = ProductService(db)
    return service.get_product(product_id)


@router.post(
    "/products",
    response_model=ProductCreated,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
    summary="Create a new product",
    description="Add a product to the catalog."
)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db)
):
    """
    Create a new product.

    - **name**: Product name (required)
    - **price**: Product price, must be non-negative (required)
    - **description**: Defaults to an empty string
    - **category**: Defaults to "Other"
    - **inStock**: Initial stock quantity, defaults to 0
    """
    service = ProductService(db)
    product = service.create(product_data)
    return ProductCreated(product_id=product.id)


@router.get(
    "/categories",
    response_model=List[str],
    tags=["Categories"],
    summary="List product categories",
    description="Get the distinct categories used by products in the catalog."
)
def list_categories(db: Session = Depends(get_db)):
    """Get all categories."""
    service = ProductService(db)
    return service.list_categories()
