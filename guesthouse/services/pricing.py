from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal


@dataclass(frozen=True)
class PriceQuote:
    price_per_night: Decimal
    nights: int
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def quote_stay(price_per_night: Decimal, nights: int, tax_rate: Decimal) -> PriceQuote:
    """
    subtotal = price x nights, tax rounded to whole units (half up),
    total = subtotal + tax.
    """
    price = Decimal(price_per_night)
    subtotal = price * nights
    tax = (subtotal * Decimal(tax_rate)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return PriceQuote(
        price_per_night=price,
        nights=nights,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
    )
