"""
Checks a customer's order draft before any money moves, and turns it into
the PaymentIntent metadata the webhook later rebuilds the order from.
"""
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from shared.config import settings
from services.order_service.catalog import (
    CUSTOM_WEIGHT,
    MIN_WEIGHT_KG,
    cuts_for,
    is_known_meat_type,
    parse_weight_kg,
)

from .schemas import OrderDraft

DEFAULT_MEAT_TYPE = "turkey"


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_pickup_date(raw: str | None) -> datetime | None:
    """ISO date or datetime; dates and naive datetimes are read in the shop's timezone."""
    if _blank(raw):
        return None
    text = raw.strip().replace("Z", "+00:00")
    tz = ZoneInfo(settings.SHOP_TIMEZONE)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.combine(date.fromisoformat(text), time.min)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed.astimezone(timezone.utc)


def validate_draft(draft: OrderDraft) -> list[str]:
    """Returns the list of problems; an empty list means the draft can be paid."""
    problems = []
    meat, customer = draft.meat, draft.customer
    if meat is None:
        problems.append("meat selection missing")
    if customer is None:
        problems.append("customer details missing")
    if problems:
        return problems

    meat_type = (meat.meat_type or DEFAULT_MEAT_TYPE).lower()
    if not is_known_meat_type(meat_type):
        problems.append(f"unknown meat type: {meat_type}")

    if _blank(meat.pickup_date):
        problems.append("pickupDate required")
    elif parse_pickup_date(meat.pickup_date) is None:
        problems.append("pickupDate is not a valid date")

    if _blank(meat.weight):
        problems.append("weight required")
    elif str(meat.weight).lower() == CUSTOM_WEIGHT and _blank(meat.custom_weight):
        problems.append("customWeight required for custom weight")
    else:
        weight_kg = parse_weight_kg(meat.weight, meat.custom_weight)
        if weight_kg is None or weight_kg < MIN_WEIGHT_KG:
            problems.append(f"weight must be at least {MIN_WEIGHT_KG}kg")

    if _blank(meat.cut):
        problems.append("cut required")
    elif is_known_meat_type(meat_type) and meat.cut not in cuts_for(meat_type):
        problems.append(f"cut {meat.cut!r} is not available for {meat_type}")

    for field in ("name", "phone", "email"):
        if _blank(getattr(customer, field)):
            problems.append(f"customer {field} required")

    return problems


def weight_text(weight) -> str:
    """5, 5.0 and "5" all group as "5" in production stats."""
    if isinstance(weight, float) and weight.is_integer():
        weight = int(weight)
    return str(weight).strip().lower()


def intent_metadata(draft: OrderDraft) -> dict[str, str]:
    """Stripe metadata values must be strings."""
    meat, customer = draft.meat, draft.customer
    return {
        "customerName": customer.name.strip(),
        "customerPhone": customer.phone.strip(),
        "customerEmail": customer.email.strip(),
        "meatType": (meat.meat_type or DEFAULT_MEAT_TYPE).lower(),
        "pickupDate": meat.pickup_date.strip(),
        "weight": weight_text(meat.weight),
        "customWeight": (meat.custom_weight or "").strip(),
        "cut": meat.cut,
        "notes": (meat.notes or "").strip() or "None",
    }
