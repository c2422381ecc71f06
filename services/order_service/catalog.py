"""
What the storefront sells: meat types, their cuts, weight options, and the
servings guide shown next to the weight picker.
"""
import math
from decimal import ROUND_HALF_UP, Decimal

from shared.config import settings

MEAT_CUTS: dict[str, list[str]] = {
    "turkey": ["Whole Turkey", "Turkey Crown", "Turkey Breast", "Turkey Legs", "Turkey Wings"],
    "ham": ["Whole Fillet Ham", "Shoulder Fillet Ham", "Boneless Ham", "Gammon Joint", "Half Ham"],
    "beef": ["Ribeye", "Sirloin", "Fillet", "Brisket", "Mince"],
    "lamb": ["Leg", "Shoulder", "Chops", "Rack"],
    "pork": ["Loin", "Belly", "Shoulder", "Chops", "Sausages"],
}

# Always reported by the summary, even with no pending orders
HEADLINE_MEAT_TYPES = ("turkey", "ham")

CUSTOM_WEIGHT = "custom"
WEIGHT_OPTIONS_KG = (3, 5, 7, 10)
MIN_WEIGHT_KG = 3

GRAMS_PER_PERSON = {"turkey": 500}
DEFAULT_GRAMS_PER_PERSON = 300


def cuts_for(meat_type: str) -> list[str]:
    return MEAT_CUTS.get((meat_type or "").lower(), [])


def is_known_meat_type(meat_type: str) -> bool:
    return (meat_type or "").lower() in MEAT_CUTS


def parse_weight_kg(weight, custom_weight=None) -> float | None:
    """Effective weight in kg: the chosen option, or the custom entry when 'custom'."""
    raw = custom_weight if str(weight).lower() == CUSTOM_WEIGHT else weight
    if raw is None or raw == "":
        return None
    try:
        value = float(str(raw).lower().replace("kg", "").strip())
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def serves(meat_type: str, weight_kg: float | None) -> int | None:
    if not weight_kg or weight_kg < MIN_WEIGHT_KG:
        return None
    grams = GRAMS_PER_PERSON.get((meat_type or "").lower(), DEFAULT_GRAMS_PER_PERSON)
    return math.floor(weight_kg * 1000 / grams)


def weight_label(meat_type: str, weight_kg: int) -> str:
    return f"{weight_kg}kg - serves at least {serves(meat_type, weight_kg)} people"


def deposit_cents() -> int:
    cents = (settings.DEPOSIT_AMOUNT_EUR * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def catalog_payload() -> dict:
    return {
        "meatTypes": [
            {
                "meatType": meat_type,
                "cuts": cuts,
                "weightOptions": [
                    {"value": kg, "label": weight_label(meat_type, kg)} for kg in WEIGHT_OPTIONS_KG
                ] + [{"value": CUSTOM_WEIGHT, "label": "Custom weight"}],
            }
            for meat_type, cuts in MEAT_CUTS.items()
        ],
        "minWeightKg": MIN_WEIGHT_KG,
        "deposit": {
            "amount": str(settings.DEPOSIT_AMOUNT_EUR),
            "amountCents": deposit_cents(),
            "currency": settings.DEPOSIT_CURRENCY,
        },
    }
