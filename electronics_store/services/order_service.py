from sqlalchemy.orm import Session, selectinload
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from typing import Dict, Iterable, List
import logging

from electronics_store.errors import (
    InsufficientStockError,
    NotFoundError,
    StorageError,
    UnknownProductError,
)
from electronics_store.models.product import Product
from electronics_store.models.order import Order, OrderItem, OrderStatus
from electronics_store.schemas.order import OrderCreate

logger = logging.getLogger(__name__)


class OrderService:
    """
    Service class for Order operations with race condition handling.

    RACE CONDITION HANDLING STRATEGY:
    =================================
    Order placement is a single transaction that combines two guards:

    1. Every referenced product row is read with SELECT ... FOR UPDATE
       (on engines that support it), so concurrent placements touching
       the same product queue behind each other.
    2. Stock is decremented with a conditional UPDATE
       (``in_stock = in_stock - :q WHERE in_stock >= :q``). If another
       transaction consumed the stock between our read and our write, the
       UPDATE affects 0 rows and the whole placement is rolled back.

    The second guard is what keeps engines without row locks (SQLite)
    from overselling. The ``in_stock >= 0`` check constraint is the last
    line: a violation aborts the transaction as a storage error.

    Validation failures are raised before any write, so a rejected order
    leaves the catalog and the order ledger untouched.
    """

    def __init__(self, db: Session):
        self.db = db

    def place_order(self, order_data: OrderCreate) -> Order:
        """
        Place an order with atomic stock reservation.

        Algorithm:
        1. Lock and load all referenced products in one query
        2. Walk the lines in request order, validating the cumulative
           quantity per product against its stock
        3. Compute the total from the prices read in step 1
        4. Decrement stock (re-checked), insert the order and its items
        5. Commit transaction (releases locks)

        Args:
            order_data: Customer details and requested order lines

        Returns:
            Created order instance with its items

        Raises:
            UnknownProductError: If a line references a missing product
            InsufficientStockError: If cumulative quantity exceeds stock
            StorageError: If the transaction could not be committed
        """
        lines = order_data.items

        try:
            products = self._lock_products(line.product_id for line in lines)

            requested: Dict[int, int] = {}
            total_amount = 0.0
            order_items = []

            for line in lines:
                product = products.get(line.product_id)
                if product is None:
                    raise UnknownProductError(line.product_id)

                # Duplicate lines for one product draw on the same stock
                requested[product.id] = requested.get(product.id, 0) + line.quantity
                if requested[product.id] > product.in_stock:
                    raise InsufficientStockError(
                        product.id, product.in_stock, requested[product.id]
                    )

                total_amount += product.price * line.quantity
                order_items.append(
                    OrderItem(
                        product_id=product.id,
                        quantity=line.quantity,
                        price=product.price,
                    )
                )

            for product_id, quantity in requested.items():
                self._decrement_stock(product_id, quantity)

            order = Order(
                client_name=order_data.client_name,
                client_email=order_data.client_email,
                client_phone=order_data.client_phone or "",
                total_amount=round(total_amount, 2),
                status=OrderStatus.PENDING,
                items=order_items,
            )

            self.db.add(order)
            self.db.commit()
            self.db.refresh(order)

        except (UnknownProductError, InsufficientStockError):
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating order: {e}")
            raise StorageError(f"Could not create order: {e}") from e

        logger.info(
            f"Order #{order.id} created: {len(order_items)} item(s), total {order.total_amount}"
        )
        return order

    def _lock_products(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        """Load products by id, locking rows in id order to avoid deadlocks."""
        ids = sorted(set(product_ids))
        rows = (
            self.db.query(Product)
            .filter(Product.id.in_(ids))
            .order_by(Product.id)
            .with_for_update()
            .all()
        )
        return {product.id: product for product in rows}

    def _decrement_stock(self, product_id: int, quantity: int) -> None:
        """
        Atomically subtract ``quantity`` from a product's stock.

        Raises:
            InsufficientStockError: If a concurrent order left too little stock
        """
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.in_stock >= quantity)
            .values(in_stock=Product.in_stock - quantity)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            available = (
                self.db.query(Product.in_stock)
                .filter(Product.id == product_id)
                .scalar()
            )
            logger.warning(
                f"Concurrent stock change detected for product #{product_id}"
            )
            raise InsufficientStockError(product_id, available or 0, quantity)

    def get_order(self, order_id: int) -> Order:
        """
        Get an order by ID with its items and their products.

        Raises:
            NotFoundError: If the order doesn't exist
        """
        order = (
            self.db.query(Order)
            .options(selectinload(Order.items).selectinload(OrderItem.product))
            .filter(Order.id == order_id)
            .first()
        )
        if not order:
            raise NotFoundError(f"Order with id {order_id} not found")
        return order

    def list_orders(self) -> List[Order]:
        """All orders, newest first."""
        return (
            self.db.query(Order)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )
