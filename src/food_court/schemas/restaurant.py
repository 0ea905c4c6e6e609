from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal


class AvailabilityUpdate(BaseModel):
    availability: bool


class RestaurantCreate(BaseModel):
    id: str = Field(..., min_length=1, description="Идентификатор, например R001")
    name: str = Field(..., min_length=1)
    address: Optional[str] = None
    phone: Optional[str] = None
    availability: bool = True


class MenuItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    dinein_price: Decimal = Field(..., ge=0)
    takeaway_price: Decimal = Field(Decimal("0"), ge=0)
    category: Optional[str] = None
    is_veg: bool = True
    description: Optional[str] = None
    image: Optional[str] = None


class RestaurantRead(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    availability: bool
    order_count: int
    total_revenue: Decimal
    rating: Decimal

    class Config:
        from_attributes = True


class MenuItemRead(BaseModel):
    id: str
    restaurant_id: str
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    dinein_price: Decimal
    takeaway_price: Decimal
    is_veg: bool
    is_available: bool
    rating: Decimal
    ratings_count: int

    class Config:
        from_attributes = True
