from decimal import Decimal, ROUND_HALF_UP

MINOR_UNITS_PER_MAJOR = 100
MONEY_QUANT = Decimal("0.01")

def to_major(value) -> Decimal:
    """
    Normalise an amount in major units (naira) to a 2dp Decimal.
    """
    return Decimal(str(value)).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)

def to_minor_units(amount: Decimal) -> int:
    """
    Convert a major-unit amount to the integer minor units (kobo) providers expect.

    Call once, at the point the provider payload is built.
    """
    return int((to_major(amount) * MINOR_UNITS_PER_MAJOR).to_integral_value(rounding=ROUND_HALF_UP))

def from_minor_units(value) -> Decimal:
    """
    Convert a provider amount in minor units (kobo) to major units.
    """
    return to_major(Decimal(str(value)) / MINOR_UNITS_PER_MAJOR)
