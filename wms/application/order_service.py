from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from wms.core import get_logger
from wms.core_settings import get_settings
from wms.domain.models import Order, OrderLine, Product
from .exceptions import OrderAlreadyShipped, OrderNotFound, StorageError
from .inventory_service import InventoryService
from .schemas import OrderCreate

logger = get_logger(__name__)

SHIPPED = "shipped"

class OrderService:
    def __init__(self, db: Session, shipment_guard: Optional[bool] = None):
        self.db = db
        if shipment_guard is None:
            shipment_guard = get_settings().SHIPMENT_GUARD_ENABLED
        self.shipment_guard = shipment_guard

    def _product_names(self, orders) -> dict[str, str]:
        ids = {line.product_id for order in orders for line in order.lines}
        if not ids:
            return {}
        rows = self.db.execute(select(Product.id, Product.name).where(Product.id.in_(ids))).all()
        return {row.id: row.name for row in rows}

    def _to_dict(self, order: Order, names: dict[str, str]) -> dict:
        return {
            "id": order.id,
            "name": order.name,
            "address": order.address,
            "note": order.note,
            "status": order.status,
            "created_at": order.created_at,
            "products": [
                {
                    "product_id": line.product_id,
                    "name": names.get(line.product_id),
                    "quantity": line.quantity,
                }
                for line in order.lines
            ],
        }

    def list(self) -> List[dict]:
        orders = self.db.scalars(
            select(Order).options(selectinload(Order.lines)).order_by(Order.created_at.desc())
        ).all()
        names = self._product_names(orders)
        return [self._to_dict(order, names) for order in orders]

    def get(self, order_id: str) -> Order:
        order = self.db.get(Order, order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def get_with_products(self, order_id: str) -> dict:
        order = self.get(order_id)
        return self._to_dict(order, self._product_names([order]))

    def lines(self, order_id: str) -> List[OrderLine]:
        return list(self.get(order_id).lines)

    def create(self, data: OrderCreate) -> Order:
        """Create the order and its lines in a single transaction."""
        order = Order(name=data.name, address=data.address, note=data.note)
        for position, item in enumerate(data.products):
            order.lines.append(
                OrderLine(product_id=item.product_id, quantity=item.quantity, position=position)
            )
        try:
            self.db.add(order)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Order creation failed", exc_info=True)
            raise StorageError("Failed to create order") from exc
        logger.info(
            "Order created",
            extra={'extra_fields': {'order_id': order.id, 'lines': len(data.products)}}
        )
        return order

    def delete(self, order_id: str) -> None:
        order = self.get(order_id)
        try:
            self.db.delete(order)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Order deletion failed", exc_info=True)
            raise StorageError("Failed to delete order") from exc
        logger.info("Order deleted", extra={'extra_fields': {'order_id': order_id}})

    def ship(self, order_id: str) -> None:
        """Deduct every line of the order from inventory as one batch.

        Without the shipment guard nothing records that the order went out,
        so shipping it again deducts again.
        """
        order = self.db.get(
            Order, order_id,
            with_for_update=self.shipment_guard,
            populate_existing=self.shipment_guard,
        )
        if order is None:
            raise OrderNotFound(order_id)
        if self.shipment_guard and order.status == SHIPPED:
            self.db.rollback()
            raise OrderAlreadyShipped(order_id)

        deltas = [(line.product_id, -line.quantity) for line in order.lines]
        inventory = InventoryService(self.db)
        if not self.shipment_guard:
            inventory.apply_deltas(deltas)
        else:
            inventory.apply_deltas(deltas, commit=False)
            try:
                order.status = SHIPPED
                self.db.commit()
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.error("Shipment status update failed", exc_info=True)
                raise StorageError("Failed to record shipment") from exc

        logger.info("Order shipped", extra={'extra_fields': {'order_id': order_id}})
