from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator
from datetime import datetime
from typing import Optional
from wms.domain.models import MAX_QUANTITY

class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    note: Optional[str] = None
    image: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be empty")
        return value

class ProductRead(BaseModel):
    id: str
    name: str
    note: Optional[str] = None
    image: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CreatedRead(BaseModel):
    id: str

class SuccessRead(BaseModel):
    success: bool = True

class InventoryRestock(BaseModel):
    product_id: str
    quantity: Optional[int] = Field(default=1, le=MAX_QUANTITY)

    @field_validator("quantity", mode="before")
    @classmethod
    def at_least_one(cls, value):
        # Anything unparsable or below one restocks a single unit
        try:
            return max(1, int(value))
        except (TypeError, ValueError, OverflowError):
            return 1

class InventoryQuantitySet(BaseModel):
    quantity: StrictInt = Field(gt=0, le=MAX_QUANTITY)

class InventoryRead(BaseModel):
    id: str
    quantity: int
    created_at: Optional[datetime] = None
    product_id: str
    name: str
    note: Optional[str] = None

class InventoryDelta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")
    quantity: StrictInt = Field(ge=-MAX_QUANTITY, le=MAX_QUANTITY)

class InventoryBulkUpdate(BaseModel):
    updates: list[InventoryDelta] = Field(min_length=1)

class OrderLineCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")
    quantity: StrictInt = Field(gt=0, le=MAX_QUANTITY)

class OrderCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    address: str = Field(min_length=1, max_length=500)
    note: Optional[str] = None
    products: list[OrderLineCreate] = Field(min_length=1)

class OrderLineRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(serialization_alias="productId")
    # None once the product has been deleted
    name: Optional[str] = None
    quantity: int

class OrderRead(BaseModel):
    id: str
    name: str
    address: str
    note: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    products: list[OrderLineRead]
