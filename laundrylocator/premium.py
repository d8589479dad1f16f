# laundrylocator/premium.py
"""Listing tiers, plan pricing and subscription arithmetic.

Payments themselves go through the billing provider; this module only knows
what each tier unlocks and how much it costs.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional

LISTING_TYPES = ("basic", "premium", "featured")
BILLING_CYCLES = ("monthly", "annually")

PREMIUM_FEATURES: Dict[str, Dict[str, Any]] = {
    "basic": {
        "photo_limit": 1,
        "show_hours": True,
        "show_phone": False,
        "show_website": False,
        "highlight_listing": False,
        "priority_search": False,
    },
    "premium": {
        "photo_limit": 5,
        "show_hours": True,
        "show_phone": True,
        "show_website": True,
        "highlight_listing": False,
        "priority_search": True,
    },
    "featured": {
        "photo_limit": 10,
        "show_hours": True,
        "show_phone": True,
        "show_website": True,
        "highlight_listing": True,
        "priority_search": True,
    },
}

PREMIUM_PLANS: Dict[str, Dict[str, Any]] = {
    "premium": {
        "name": "Premium Listing",
        "description": "Enhance visibility with premium placement in search results, "
                       "phone and website display, and up to 5 photos.",
        "monthly_price": 1999,
        "annual_price": 19999,
        "features": [
            "Display phone number and website",
            "Higher placement in search results",
            "Upload up to 5 photos",
            "Detailed business information",
            "Enhanced business profile",
        ],
    },
    "featured": {
        "name": "Featured Listing",
        "description": "Maximum visibility with featured listings on the homepage, "
                       "highlighted appearance, and up to 10 photos.",
        "monthly_price": 3999,
        "annual_price": 39999,
        "features": [
            "All Premium Listing features",
            "Highlighted appearance in search results",
            "Featured placement on homepage",
            "Upload up to 10 photos",
            "Priority search ranking",
            "Special promotional text",
        ],
    },
}

def get_premium_features(listing_type: Optional[str]) -> Dict[str, Any]:
    return dict(PREMIUM_FEATURES.get(listing_type or "basic", PREMIUM_FEATURES["basic"]))

def plan_amount(tier: str, billing_cycle: str) -> int:
    plan = PREMIUM_PLANS[tier]
    return plan["annual_price"] if billing_cycle == "annually" else plan["monthly_price"]

def period_end(start: datetime, billing_cycle: str) -> datetime:
    return start + (timedelta(days=365) if billing_cycle == "annually" else timedelta(days=30))

def as_utc(dt: datetime) -> datetime:
    # sqlite hands back naive datetimes
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt

def calculate_prorated_refund(original_amount: int, start_date: datetime, end_date: datetime,
                              cancel_date: datetime) -> int:
    """Refund in cents for the unused share of a billing period."""
    start, end, cancel = as_utc(start_date), as_utc(end_date), as_utc(cancel_date)
    total = (end - start).total_seconds()
    remaining = (end - cancel).total_seconds()
    if remaining <= 0 or total <= 0:
        return 0
    return round(original_amount * min(remaining / total, 1.0))

def is_subscription_active(status: Optional[str]) -> bool:
    return status in ("active", "past_due")

def format_price(amount: int) -> str:
    return f"${amount / 100:.2f}"
