from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from wms.infrastructure.db import get_db
from wms.application.product_service import ProductService
from wms.application.schemas import CreatedRead, ProductCreate, ProductRead

router = APIRouter(prefix="/products", tags=["products"])

@router.get("", response_model=list[ProductRead])
def list_products(db: Session = Depends(get_db)):
    return ProductService(db).list()

@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: str, db: Session = Depends(get_db)):
    return ProductService(db).get(product_id)

@router.post("", response_model=CreatedRead, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    product = ProductService(db).create(payload)
    return {"id": product.id}

@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: str, db: Session = Depends(get_db)):
    ProductService(db).delete(product_id)
    return None
