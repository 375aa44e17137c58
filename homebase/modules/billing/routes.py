from fastapi import APIRouter, Depends
from homebase.core.dependencies import get_current_identity, get_current_profile, get_registrar
from homebase.database.supabase_client import get_supabase
from homebase.modules.auth.schemas import Identity
from homebase.modules.billing.schemas import CheckoutRequest, CheckoutResponse
from homebase.modules.billing.service import BillingService, CheckoutGateway
from homebase.modules.families.schemas import Profile
from homebase.modules.families.service import MembershipRegistrar
from supabase import Client

router = APIRouter(prefix="/billing", tags=["billing"])


def get_checkout_gateway(supabase: Client = Depends(get_supabase)) -> CheckoutGateway:
    return CheckoutGateway(supabase)


def get_billing_service(
    registrar: MembershipRegistrar = Depends(get_registrar),
    gateway: CheckoutGateway = Depends(get_checkout_gateway)
) -> BillingService:
    return BillingService(registrar, gateway)


@router.post("/checkout", response_model=CheckoutResponse)
async def start_checkout(
    payload: CheckoutRequest,
    identity: Identity = Depends(get_current_identity),
    profile: Profile = Depends(get_current_profile),
    service: BillingService = Depends(get_billing_service)
):
    """Start a checkout session for a family's plan (owner only)"""
    return service.start_checkout(identity, profile, payload)
