"""
Plan tiers and checkout price keys.

Tier metadata is returned to clients alongside the family; price keys are the only
values the checkout collaborator accepts.
"""

PLAN_METADATA = {
    "free": {
        "label": "Free",
        "description": "One calendar, one display, core features to get started.",
        "monthly_price": 0,
        "yearly_price": 0,
    },
    "basic": {
        "label": "Basic",
        "description": "Up to 3 calendars, 3 displays, and 5 members.",
        "monthly_price": 4.99,
        "yearly_price": 49,
    },
    "plus": {
        "label": "Plus",
        "description": "Unlimited members, unlimited calendars, up to 6 displays.",
        "monthly_price": 8.99,
        "yearly_price": 89,
    },
    "pro": {
        "label": "Pro",
        "description": "Unlimited displays, multi-home support, advanced features.",
        "monthly_price": 14.99,
        "yearly_price": 149,
    },
    "internal": {
        "label": "Internal",
        "description": "Internal / tester plan - unlimited everything, no billing.",
        "monthly_price": None,
        "yearly_price": None,
    },
}

PAID_TIERS = ("basic", "plus", "pro")
BILLING_INTERVALS = ("monthly", "yearly")

PRICE_KEYS = tuple(
    f"{tier.upper()}_{interval.upper()}"
    for tier in PAID_TIERS
    for interval in BILLING_INTERVALS
)


def price_key_for(tier: str, interval: str) -> str:
    """Map a paid tier and billing interval to its checkout price key."""
    if tier not in PAID_TIERS:
        raise ValueError(f"Unknown paid tier: {tier}")
    if interval not in BILLING_INTERVALS:
        raise ValueError(f"Unknown billing interval: {interval}")
    return f"{tier.upper()}_{interval.upper()}"


def is_billable(tier: str) -> bool:
    return tier in PAID_TIERS
