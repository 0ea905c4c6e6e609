from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Union
from datetime import datetime
from decimal import Decimal

from food_court.models.order import OrderStatusEnum, OrderTypeEnum


class OrderItemRead(BaseModel):
    food_item_id: str
    name: str
    price: Decimal
    quantity: int
    image: Optional[str] = None
    restaurant_name: str

    class Config:
        from_attributes = True


class OrderRead(BaseModel):
    order_id: str
    user_id: str
    restaurant_id: str
    items: List[OrderItemRead] = []
    order_type: OrderTypeEnum
    subtotal: Decimal
    service_charge: Decimal
    total: Decimal
    status: OrderStatusEnum
    otp: str
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    estimated_time: int = 0
    has_rated: bool = False

    class Config:
        from_attributes = True


class OrderDraftItem(BaseModel):
    food_item_id: str
    name: str
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    image: Optional[str] = None
    restaurant_name: str


class OrderDraft(BaseModel):
    """
    Черновик заказа: собирается при оформлении и возвращается клиентом
    после оплаты. До проверки подписи нигде не сохраняется.
    """
    restaurant_id: str
    items: List[OrderDraftItem] = Field(..., min_length=1)
    order_type: OrderTypeEnum
    subtotal: Decimal
    service_charge: Decimal
    total: Decimal


class PaymentIntent(BaseModel):
    id: str
    amount: int  # в минорных единицах (пайсы)
    currency: str
    receipt: Optional[str] = None


class CheckoutRequest(BaseModel):
    order_type: OrderTypeEnum


class CheckoutResponse(BaseModel):
    order: OrderDraft
    payment_intent: PaymentIntent


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str
    order: OrderDraft


class OtpRequest(BaseModel):
    otp: Union[int, str]

    @field_validator("otp")
    @classmethod
    def otp_as_string(cls, value):
        return str(value).strip()


class ConfirmOrderRequest(BaseModel):
    estimated_time: Optional[int] = Field(None, ge=0, le=600)


class StatusUpdate(BaseModel):
    status: str
