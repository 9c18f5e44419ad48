"""Stock Model: how much of a medicine is left, and how a sale reduces it.

All category-specific behaviour is resolved here, once, through the tagged
stock variants. Everything above this module talks in "units": tablets for
Tablet medicines, sellable units for every other category.
"""
from decimal import Decimal, ROUND_HALF_UP

from medshop.core.config import settings
from medshop.schemas.medicine import Category, Medicine
from medshop.schemas.stock import FlatUnitStock, Stock, TabletStock

CENT = Decimal("0.01")


def available_units(medicine: Medicine) -> int:
    """Total sellable units, never negative."""
    return medicine.stock.available_units()


def apply_decrement(medicine: Medicine, units_sold: int) -> Medicine:
    """Return a copy of `medicine` with `units_sold` removed and stock re-normalized.

    Raises:
        ValueError: if units_sold is negative or exceeds available units.
            Oversell must be rejected by sale reconciliation before this runs.
    """
    return medicine.model_copy(update={"stock": medicine.stock.apply_decrement(units_sold)})


def build_stock(
    category: Category,
    quantity: int = 0,
    strips: int = 0,
    loose_tablets: int = 0,
    tablets_per_strip: int | None = None,
) -> Stock:
    """Create the stock variant the category calls for."""
    if category.stock_kind == "tablet":
        return TabletStock(
            strips=strips,
            loose_tablets=loose_tablets,
            tablets_per_strip=tablets_per_strip,
        )
    return FlatUnitStock(quantity=quantity)


def stock_level(medicine: Medicine) -> int:
    """Stock in display packs: whole strips for tablets, units otherwise."""
    stock = medicine.stock
    if isinstance(stock, TabletStock):
        return stock.strips
    return stock.quantity


def unit_price(medicine: Medicine) -> Decimal:
    """Price of one native unit, rounded to cents (a tablet is strip price / pack size)."""
    stock = medicine.stock
    if isinstance(stock, TabletStock):
        return (medicine.price / stock.tablets_per_strip).quantize(CENT, rounding=ROUND_HALF_UP)
    return medicine.price.quantize(CENT, rounding=ROUND_HALF_UP)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def describe_stock(medicine: Medicine) -> str:
    """Human label, e.g. '3 strips + 5 tablets' or '12 units'."""
    stock = medicine.stock
    if isinstance(stock, TabletStock):
        label = _plural(stock.strips, "strip")
        if stock.loose_tablets:
            label += f" + {_plural(stock.loose_tablets, 'tablet')}"
        return label
    return _plural(stock.quantity, "unit")


def format_money(amount: Decimal) -> str:
    return f"{settings.CURRENCY_SYMBOL} {amount:,.2f}"
