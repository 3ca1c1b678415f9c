from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from wms.core import get_logger
from wms.domain.models import Product
from .exceptions import ProductNotFound, StorageError
from .schemas import ProductCreate

logger = get_logger(__name__)

class ProductService:
    def __init__(self, db: Session):
        self.db = db

    def list(self):
        return self.db.scalars(select(Product).order_by(Product.created_at.desc())).all()

    def get(self, product_id: str) -> Product:
        product = self.db.get(Product, product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    def create(self, data: ProductCreate) -> Product:
        obj = Product(**data.model_dump())
        try:
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Product creation failed", exc_info=True)
            raise StorageError("Failed to create product") from exc
        logger.info("Product created", extra={'extra_fields': {'product_id': obj.id}})
        return obj

    def delete(self, product_id: str) -> None:
        """Delete a product together with its inventory rows.

        Order lines naming the product are kept as they are.
        """
        product = self.get(product_id)
        try:
            self.db.delete(product)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Product deletion failed", exc_info=True)
            raise StorageError("Failed to delete product") from exc
        logger.info("Product deleted", extra={'extra_fields': {'product_id': product_id}})
