from pydantic import Field
from datetime import datetime
from typing import Optional

from electronics_store.schemas.common import CamelModel

DEFAULT_CATEGORY = "Other"


class ProductBase(CamelModel):
    """Base schema for Product with common attributes."""
    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    description: str = Field("", description="Product description")
    price: float = Field(..., ge=0, description="Product price (must be non-negative)")
    category: Optional[str] = Field(None, max_length=100, description="Product category")
    in_stock: int = Field(0, ge=0, description="Available stock (must be non-negative)")


class ProductCreate(ProductBase):
    """Schema for creating a new product."""
    description: Optional[str] = Field(None, description="Product description")
    category: Optional[str] = Field(None, max_length=100, description="Product category")
    in_stock: Optional[int] = Field(None, ge=0, description="Initial stock, defaults to 0")


class ProductResponse(ProductBase):
    """Schema for product response including all fields."""
    id: int
    created_at: Optional[datetime] = None


class ProductCreated(CamelModel):
    """Response body for a successfully created product."""
    success: bool = True
    product_id: int
    message: str = "Product created successfully"
