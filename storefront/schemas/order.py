# storefront/schemas/order.py
from pydantic import BaseModel, Field
from typing import List, Optional


class ShippingAddress(BaseModel):
    name: str
    street1: str
    street2: str | None = None
    city: str
    state: str
    zip: str
    country: str = "US"


class ShippingMethod(BaseModel):
    carrier: str
    service: str
    rate_cents: int
    rate_id: str | None = None
    delivery_days: int | None = None
    delivery_date: str | None = None


class PaymentMethod(BaseModel):
    type: str
    token: str | None = None


# Схема запроса на оформление заказа из корзины
class CheckoutRequest(BaseModel):
    customer_name: str | None = None
    email: str
    phone: str
    shipping_address: ShippingAddress
    shipping_method: ShippingMethod
    payment_method: PaymentMethod
    payment_intent_id: str | None = None
    location_id: int | None = None


class OrderLineItem(BaseModel):
    product_variant_id: int | None = None
    product_id: int
    quantity: int


class Order(BaseModel):
    id: int
    order_number: str
    status: str
    payment_status: str | None = None
    total_cents: int
    total_formatted: str | None = None
    item_count: int = 0
    created_at: str | None = None


class CreateOrderResponse(BaseModel):
    success: bool
    order: Order
    message: str | None = None


class PaymentIntentCreate(BaseModel):
    email: str
    shipping_cost_cents: int = Field(0, ge=0)


class PaymentIntentResponse(BaseModel):
    client_secret: str
    payment_intent_id: str
    amount_cents: int


class FundraiserOrder(BaseModel):
    id: int
    order_number: str
    status: str
    payment_status: str | None = None
    total_cents: int
    formatted_total: str | None = None
    subtotal_cents: int | None = None
    shipping_cents: int | None = None
    items: List[dict] = []


class FundraiserOrderResponse(BaseModel):
    success: bool = True
    order: FundraiserOrder
    message: Optional[str] = None
