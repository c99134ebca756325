from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional, List
import logging

from electronics_store.errors import NotFoundError, StorageError
from electronics_store.models.product import Product
from electronics_store.schemas.product import ProductCreate, DEFAULT_CATEGORY

logger = logging.getLogger(__name__)

DEMO_CATALOG = [
    {"name": "Samsung Galaxy smartphone", "description": "Smartphone with a 6.5\" display",
     "price": 25000, "category": "Smartphones", "in_stock": 15},
    {"name": "ASUS laptop", "description": "15.6\" laptop, Intel Core i5",
     "price": 45000, "category": "Laptops", "in_stock": 8},
    {"name": "Sony headphones", "description": "Wireless headphones",
     "price": 5000, "category": "Accessories", "in_stock": 25},
    {"name": "iPad tablet", "description": "10.2\" tablet",
     "price": 30000, "category": "Tablets", "in_stock": 12},
    {"name": "Logitech mouse", "description": "Wireless mouse",
     "price": 1500, "category": "Accessories", "in_stock": 30},
]


class ProductService:
    """
    Service class for the product catalog.

    This service handles:
    - Creating new products
    - Listing products, optionally filtered by category
    - Looking up a single product
    - Listing distinct categories
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, product_data: ProductCreate) -> Product:
        """
        Create a new product.

        Omitted optional fields fall back to an empty description,
        the default category and zero stock.

        Args:
            product_data: Product creation data

        Returns:
            Created product instance
        """
        product = Product(
            name=product_data.name,
            description=product_data.description or "",
            price=product_data.price,
            category=product_data.category or DEFAULT_CATEGORY,
            in_stock=product_data.in_stock or 0,
        )
        try:
            self.db.add(product)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating product: {e}")
            raise StorageError(str(e)) from e
        self.db.refresh(product)
        logger.info(f"Product #{product.id} created")
        return product

    def get_product(self, product_id: int) -> Product:
        """
        Get a product by ID.

        Raises:
            NotFoundError: If the product doesn't exist
        """
        product = self.db.get(Product, product_id)
        if not product:
            raise NotFoundError(f"Product with id {product_id} not found")
        return product

    def list_products(self, category: Optional[str] = None) -> List[Product]:
        """List products in id order, optionally restricted to one category."""
        query = self.db.query(Product)

        if category:
            query = query.filter(Product.category == category)

        return query.order_by(Product.id).all()

    def list_categories(self) -> List[str]:
        """Distinct non-null categories, in first-seen order."""
        rows = (
            self.db.query(Product.category)
            .filter(Product.category.isnot(None))
            .group_by(Product.category)
            .order_by(func.min(Product.id))
            .all()
        )
        return [row[0] for row in rows]

    def seed_catalog(self) -> int:
        """
        Insert the demo catalog when the products table is empty.

        Returns:
            Number of products inserted
        """
        if self.db.query(Product.id).first() is not None:
            return 0

        self.db.add_all(Product(**item) for item in DEMO_CATALOG)
        self.db.commit()
        logger.info(f"Seeded catalog with {len(DEMO_CATALOG)} demo products")
        return len(DEMO_CATALOG)
