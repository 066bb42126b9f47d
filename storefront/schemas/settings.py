# storefront/schemas/settings.py
from pydantic import BaseModel
from typing import Literal, Optional


class FeatureFlags(BaseModel):
    payments: bool = False
    shipping: bool = False


class StoreInfo(BaseModel):
    name: str
    email: str
    phone: str


class Announcement(BaseModel):
    enabled: bool = False
    text: Optional[str] = None
    style: str = "info"


class AppConfig(BaseModel):
    """Публичная конфигурация витрины (GET /config внешнего API)."""
    app_mode: Literal["test", "production"] = "test"
    stripe_enabled: bool = False
    stripe_publishable_key: Optional[str] = None
    placeholder_image_url: Optional[str] = None
    features: FeatureFlags = FeatureFlags()
    store_info: Optional[StoreInfo] = None
    announcement: Optional[Announcement] = None
