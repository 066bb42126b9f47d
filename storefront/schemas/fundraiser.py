# storefront/schemas/fundraiser.py
from datetime import date
from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional

from .order import ShippingAddress, ShippingMethod


class Fundraiser(BaseModel):
    id: int
    name: str
    slug: str
    description: str | None = None
    public_message: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    image_url: str | None = None
    goal_amount_cents: int | None = None
    raised_amount_cents: int | None = None
    progress_percentage: float = 0
    pickup_location: str | None = None
    pickup_instructions: str | None = None
    allow_shipping: bool = False
    can_order: bool = True
    organization_name: str | None = None


class FundraiserProductVariant(BaseModel):
    id: int
    display_name: str = ""
    size: str | None = None
    color: str | None = None
    sku: str | None = None
    in_stock: bool = True
    stock_quantity: int = 0
    options: Dict[str, str] | None = None


class FundraiserProductImage(BaseModel):
    id: int
    url: str
    alt_text: str | None = None
    position: int = 0
    primary: bool = False


class FundraiserProduct(BaseModel):
    id: int
    product_id: int
    name: str
    slug: str
    description: str | None = None
    price_cents: int
    min_quantity: int = 1
    max_quantity: int | None = None
    image_url: str | None = None
    images: List[FundraiserProductImage] = []
    variants: List[FundraiserProductVariant] = []
    in_stock: bool = True


class Participant(BaseModel):
    id: int
    name: str
    participant_number: str | None = None
    code: str
    display_name: str | None = None


class FundraiserDetail(BaseModel):
    fundraiser: Fundraiser
    products: List[FundraiserProduct] = []
    participants: List[Participant] = []


# --- Корзина сбора средств ---

class FundraiserCartItem(BaseModel):
    fundraiser_product_id: int
    variant_id: int
    quantity: int
    name: str
    variant_name: str = ""
    price_cents: int
    image_url: str | None = None
    min_quantity: int = 1
    max_quantity: int | None = None


class FundraiserCartState(BaseModel):
    fundraiser_slug: str | None = None
    fundraiser_id: int | None = None
    participant_code: str | None = None
    participant_name: str | None = None
    items: List[FundraiserCartItem] = []


class FundraiserCartResponse(BaseModel):
    state: FundraiserCartState
    item_count: int
    subtotal_cents: int


class FundraiserCartItemAdd(BaseModel):
    fundraiser_product_id: int
    variant_id: int
    quantity: Optional[int] = Field(None, gt=0)


class FundraiserCartItemUpdate(BaseModel):
    quantity: int


class ParticipantUpdate(BaseModel):
    code: str | None = None
    name: str | None = None


# --- Заказ ---

class FundraiserOrderItem(BaseModel):
    fundraiser_product_id: int
    variant_id: int
    quantity: int


class FundraiserCheckoutRequest(BaseModel):
    customer_name: str
    customer_email: str | None = None
    customer_phone: str | None = None
    delivery_method: Literal["pickup", "shipping"] = "pickup"
    shipping_address: ShippingAddress | None = None
    shipping_method: ShippingMethod | None = None
    payment_intent_id: str | None = None
