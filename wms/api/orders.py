from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from wms.infrastructure.db import get_db
from wms.application.order_service import OrderService
from wms.application.schemas import CreatedRead, OrderCreate, OrderRead, SuccessRead

router = APIRouter(prefix="/orders", tags=["orders"])

@router.get("", response_model=list[OrderRead])
def list_orders(db: Session = Depends(get_db)):
    """List orders with their lines, newest first."""
    return OrderService(db).list()

@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: str, db: Session = Depends(get_db)):
    return OrderService(db).get_with_products(order_id)

@router.post("", response_model=CreatedRead, status_code=201)
def create_order(payload: OrderCreate, db: Session = Depends(get_db)):
    order = OrderService(db).create(payload)
    return {"id": order.id}

@router.post("/{order_id}/ship", response_model=SuccessRead)
def ship_order(order_id: str, db: Session = Depends(get_db)):
    """Deduct the order's lines from inventory, all or nothing."""
    OrderService(db).ship(order_id)
    return {"success": True}

@router.delete("/{order_id}", status_code=204)
def delete_order(order_id: str, db: Session = Depends(get_db)):
    OrderService(db).delete(order_id)
    return None
