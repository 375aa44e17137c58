import logging
from typing import Optional

from supabase import Client

from homebase.config.plans_config import PRICE_KEYS, price_key_for
from homebase.config.settings import settings
from homebase.core.exceptions import InternalError, Unauthorized, ValidationError
from homebase.modules.auth.schemas import Identity
from homebase.modules.billing.schemas import CheckoutRequest, CheckoutResponse
from homebase.modules.families.schemas import Profile
from homebase.modules.families.service import MembershipRegistrar

logger = logging.getLogger(__name__)


class CheckoutGateway:
    """Calls the checkout edge function on behalf of the caller."""

    def __init__(self, supabase: Client, function_name: Optional[str] = None):
        self.supabase = supabase
        self.function_name = function_name or settings.checkout_function_name

    def create_session(self, family_id: str, price_key: str, access_token: str) -> str:
        try:
            data = self.supabase.functions.invoke(
                self.function_name,
                invoke_options={
                    "body": {"familyId": family_id, "priceKey": price_key},
                    "headers": {"Authorization": f"Bearer {access_token}"},
                    "responseType": "json",
                },
            )
        except Exception as e:
            logger.error(f"{self.function_name} failed for family {family_id}: {e}")
            raise InternalError("Failed to start checkout") from e
        url = data.get("url") if isinstance(data, dict) else None
        if not url:
            logger.error(f"{self.function_name} returned no checkout URL for family {family_id}")
            raise InternalError("No checkout URL returned from server")
        return url


class BillingService:
    def __init__(self, registrar: MembershipRegistrar, gateway: CheckoutGateway):
        self.registrar = registrar
        self.gateway = gateway

    @staticmethod
    def resolve_price_key(request: CheckoutRequest) -> str:
        if request.price_key:
            if request.price_key not in PRICE_KEYS:
                raise ValidationError("Invalid priceKey")
            return request.price_key
        try:
            return price_key_for(request.plan_tier or "", request.billing_interval or "monthly")
        except ValueError as e:
            raise ValidationError(str(e)) from e

    def start_checkout(self, identity: Identity, profile: Profile, request: CheckoutRequest) -> CheckoutResponse:
        if not request.family_id:
            raise ValidationError("Missing familyId or priceKey")
        price_key = self.resolve_price_key(request)
        if not identity.access_token:
            raise Unauthorized("Missing access token")

        self.registrar.require_family(request.family_id)
        self.registrar.require_owner(profile.id, request.family_id)

        url = self.gateway.create_session(request.family_id, price_key, identity.access_token)
        logger.info(f"Checkout started for family {request.family_id} ({price_key}) by profile {profile.id}")
        return CheckoutResponse(url=url)
