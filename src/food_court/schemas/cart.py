from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal


class CartItemRead(BaseModel):
    food_item_id: str
    name: str
    price: Decimal
    takeaway_price: Decimal
    quantity: int
    image: Optional[str] = None
    restaurant_name: str

    class Config:
        from_attributes = True


class CartRead(BaseModel):
    user_id: str
    restaurant_id: Optional[str] = None
    items: List[CartItemRead] = []


class CartItemAdd(BaseModel):
    food_item_id: str
    quantity: int = Field(1, ge=1, le=50)


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., le=50)  # 0 и меньше удаляют позицию
