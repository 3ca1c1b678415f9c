from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from wms.infrastructure.db import get_db
from wms.application.inventory_service import InventoryService
from wms.application.schemas import (
    CreatedRead,
    InventoryBulkUpdate,
    InventoryQuantitySet,
    InventoryRead,
    InventoryRestock,
    SuccessRead,
)

router = APIRouter(prefix="/inventory", tags=["inventory"])

@router.get("", response_model=list[InventoryRead])
def list_inventory(db: Session = Depends(get_db)):
    return InventoryService(db).list()

@router.post("", response_model=CreatedRead, status_code=201)
def restock(payload: InventoryRestock, response: Response, db: Session = Depends(get_db)):
    """Add stock, merging into the product's existing row (200) or creating one (201)."""
    row, created = InventoryService(db).restock(payload.product_id, payload.quantity)
    if not created:
        response.status_code = status.HTTP_200_OK
    return {"id": row.id}

# Declared before /{item_id} so "bulk" is never read as an item id
@router.put("/bulk", response_model=SuccessRead)
def bulk_update(payload: InventoryBulkUpdate, db: Session = Depends(get_db)):
    InventoryService(db).apply_deltas([(u.product_id, u.quantity) for u in payload.updates])
    return {"success": True}

@router.put("/{item_id}", response_model=SuccessRead)
def set_quantity(item_id: str, payload: InventoryQuantitySet, db: Session = Depends(get_db)):
    InventoryService(db).set_quantity(item_id, payload.quantity)
    return {"success": True}

@router.delete("/{item_id}", status_code=204)
def delete_inventory_item(item_id: str, db: Session = Depends(get_db)):
    InventoryService(db).delete(item_id)
    return None
