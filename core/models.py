# core/models.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

DEFAULT_CATEGORY = "Other"
CENTS = Decimal("0.01")


def to_price(value) -> Decimal:
    """Coerce a number or numeric string to a two-decimal price."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_price(price: Decimal) -> str:
    return f"${to_price(price):.2f}"


@dataclass(frozen=True)
class CatalogItem:
    """
    Normalized menu item as served to callers and persisted in the store.
    Items are only ever created from remote records and replaced as a batch,
    never edited in place.
    """
    id: int
    name: str
    description: str = ""
    price: Decimal = Decimal("0.00")
    image: str | None = None
    category: str = DEFAULT_CATEGORY
