from collections import OrderedDict
from typing import Iterable, List, Optional, Sequence, Tuple
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from wms.core import get_logger
from wms.domain.models import MAX_QUANTITY, InventoryItem, Product
from .exceptions import (
    InsufficientStock,
    InvalidRequest,
    InventoryNotFound,
    ProductNotFound,
    StorageError,
    WarehouseError,
)

logger = get_logger(__name__)

Delta = Tuple[str, int]

class InventoryService:
    def __init__(self, db: Session):
        self.db = db

    def list(self) -> List[dict]:
        rows = self.db.execute(
            select(
                InventoryItem.id,
                InventoryItem.quantity,
                InventoryItem.created_at,
                Product.id.label("product_id"),
                Product.name,
                Product.note,
            )
            .join(Product, InventoryItem.product_id == Product.id)
            .order_by(InventoryItem.created_at.desc())
        ).all()
        return [dict(row._mapping) for row in rows]

    def get_row(self, product_id: str) -> Optional[InventoryItem]:
        return self.db.scalars(
            select(InventoryItem)
            .where(InventoryItem.product_id == product_id)
            .order_by(InventoryItem.created_at)
        ).first()

    def restock(self, product_id: str, quantity: int) -> Tuple[InventoryItem, bool]:
        """Add stock for a product, merging into its existing row.

        The product row is locked first, so concurrent first restocks of the
        same product queue up instead of each inserting a row.

        Returns the row and whether it was newly created.
        """
        if quantity < 1 or quantity > MAX_QUANTITY:
            raise InvalidRequest(f"Restock quantity must be between 1 and {MAX_QUANTITY}")
        try:
            if self.db.get(Product, product_id, with_for_update=True) is None:
                raise ProductNotFound(product_id)
            row = self.db.scalars(
                select(InventoryItem)
                .where(InventoryItem.product_id == product_id)
                .order_by(InventoryItem.created_at)
                .with_for_update()
            ).first()
            created = row is None
            if created:
                row = InventoryItem(product_id=product_id, quantity=quantity)
                self.db.add(row)
            else:
                if row.quantity + quantity > MAX_QUANTITY:
                    raise InvalidRequest(f"Quantity for product {product_id} would exceed {MAX_QUANTITY}")
                row.quantity = row.quantity + quantity
            self.db.commit()
        except WarehouseError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Restock failed", exc_info=True)
            raise StorageError("Failed to update inventory") from exc

        logger.info(
            "Inventory restocked",
            extra={'extra_fields': {'product_id': product_id, 'quantity': quantity, 'created': created}}
        )
        return row, created

    def set_quantity(self, item_id: str, quantity: int) -> InventoryItem:
        """Overwrite a row's quantity; used for manual corrections."""
        if isinstance(quantity, bool) or not isinstance(quantity, int) or not 0 < quantity <= MAX_QUANTITY:
            raise InvalidRequest(f"Quantity must be an integer between 1 and {MAX_QUANTITY}")
        try:
            row = self.db.get(InventoryItem, item_id, with_for_update=True)
            if row is None:
                raise InventoryNotFound(item_id=item_id)
            row.quantity = quantity
            self.db.commit()
        except WarehouseError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Inventory correction failed", exc_info=True)
            raise StorageError("Failed to update inventory quantity") from exc
        return row

    def delete(self, item_id: str) -> None:
        row = self.db.get(InventoryItem, item_id)
        if row is None:
            raise InventoryNotFound(item_id=item_id)
        try:
            self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Inventory deletion failed", exc_info=True)
            raise StorageError("Failed to delete inventory item") from exc

    def apply_deltas(self, deltas: Sequence[Delta], commit: bool = True) -> None:
        """Apply signed quantity deltas as one all-or-nothing batch.

        Every touched row is locked before anything is checked, and nothing
        is written unless every product in the batch ends at zero or above.
        On failure the transaction is rolled back and the error re-raised;
        database errors surface as ``StorageError``.

        With ``commit=False`` the caller owns the transaction and must commit
        or roll back itself.
        """
        if not deltas:
            raise InvalidRequest("At least one inventory update is required")

        totals: "OrderedDict[str, int]" = OrderedDict()
        for product_id, delta in deltas:
            totals[product_id] = totals.get(product_id, 0) + delta

        try:
            rows = self._lock_rows(totals.keys())
            for product_id, delta in totals.items():
                row = rows.get(product_id)
                if row is None:
                    raise InventoryNotFound(product_id=product_id)
                if row.quantity + delta < 0:
                    raise InsufficientStock(product_id, available=row.quantity, requested=-delta)
                if row.quantity + delta > MAX_QUANTITY:
                    raise InvalidRequest(
                        f"Quantity for product {product_id} would exceed {MAX_QUANTITY}",
                        details={"productId": product_id, "available": row.quantity, "delta": delta},
                    )

            for product_id, delta in totals.items():
                if delta:
                    self._add_delta(rows[product_id].id, delta)

            if commit:
                self.db.commit()
        except WarehouseError as exc:
            self.db.rollback()
            logger.warning(
                f"Inventory batch rejected: {exc.message}",
                extra={'extra_fields': {'deltas': list(totals.items())}}
            )
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Inventory batch failed", exc_info=True)
            raise StorageError("Failed to update inventory") from exc

        logger.info(
            "Inventory batch applied",
            extra={'extra_fields': {'deltas': list(totals.items())}}
        )

    def _lock_rows(self, product_ids: Iterable[str]) -> dict[str, InventoryItem]:
        # Sorted ids give every transaction the same lock order
        ids = sorted(set(product_ids))
        found = self.db.scalars(
            select(InventoryItem)
            .where(InventoryItem.product_id.in_(ids))
            .order_by(InventoryItem.product_id, InventoryItem.created_at)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).all()
        rows: dict[str, InventoryItem] = {}
        for row in found:
            rows.setdefault(row.product_id, row)
        return rows

    def _add_delta(self, row_id: str, delta: int) -> None:
        self.db.execute(
            update(InventoryItem)
            .where(InventoryItem.id == row_id)
            .values(quantity=InventoryItem.quantity + delta)
            .execution_options(synchronize_session="fetch")
        )
