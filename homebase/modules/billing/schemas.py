from pydantic import BaseModel
from typing import Optional


class CheckoutRequest(BaseModel):
    """Either a price key, or a paid tier plus billing interval to derive one from."""

    family_id: Optional[str] = None
    price_key: Optional[str] = None
    plan_tier: Optional[str] = None
    billing_interval: Optional[str] = None


class CheckoutResponse(BaseModel):
    url: str
