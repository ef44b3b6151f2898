"""
Temperature unit conversion.

Pure functions, no failure modes.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

# Kept at 273 rather than 273.15 to match the published API contract
KELVIN_OFFSET = 273


@dataclass(frozen=True)
class Temperatures:
    celsius: float
    fahrenheit: float
    kelvin: float


def round1(value: float) -> float:
    """
    Round to one decimal, halves away from zero.

    The float is scaled by 10 and rounded exactly through Decimal, so
    0.25 becomes 0.3 (the builtin round() would give 0.2).
    """
    scaled = Decimal(value * 10).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return float(scaled) / 10


def convert(celsius: float) -> Temperatures:
    return Temperatures(
        celsius=round1(celsius),
        fahrenheit=round1(celsius * 1.8 + 32),
        kelvin=round1(celsius + KELVIN_OFFSET),
    )
