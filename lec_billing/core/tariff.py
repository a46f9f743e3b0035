"""
Rate schedules for tiered electricity pricing.

Defines the tier boundaries and per-kWh rates the calculator bills against.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class RateTier:
    """A single usage band billed at one marginal rate."""
    upper_bound: Optional[Decimal]  # kWh ceiling of the band, None when unbounded
    rate: Decimal  # Currency units per kWh

    def __post_init__(self):
        """Validate tier values."""
        if self.upper_bound is not None and self.upper_bound <= 0:
            raise ValueError("upper_bound must be > 0")
        if self.rate < 0:
            raise ValueError("rate cannot be negative")


@dataclass(frozen=True)
class RateSchedule:
    """Ordered tiers from the cheapest band upwards.

    Every tier but the last is bounded; the last tier covers all usage above
    the previous bound.
    """
    tiers: Tuple[RateTier, ...]
    currency: str = "M"

    def __post_init__(self):
        """Validate tier ordering and bounds."""
        if not self.tiers:
            raise ValueError("rate schedule needs at least one tier")
        if self.tiers[-1].upper_bound is not None:
            raise ValueError("last tier must be unbounded")

        previous = Decimal("0")
        for index, tier in enumerate(self.tiers[:-1], start=1):
            if tier.upper_bound is None:
                raise ValueError(f"tier {index} must have an upper_bound")
            if tier.upper_bound <= previous:
                raise ValueError("tier upper bounds must be strictly increasing")
            previous = tier.upper_bound

    def lower_bound(self, index: int) -> Decimal:
        """Usage at which the tier at ``index`` (0-based) starts billing."""
        if index == 0:
            return Decimal("0")
        return self.tiers[index - 1].upper_bound

    def label(self, index: int) -> str:
        """Human readable band legend, e.g. ``Tier 2 (101–300 kWh)``."""
        tier = self.tiers[index]
        if tier.upper_bound is None:
            if index == 0:
                return "Tier 1 (All usage)"
            return f"Tier {index + 1} (Above {_format_kwh(self.lower_bound(index))} kWh)"

        if index == 0:
            start = Decimal("0")
        else:
            start = self.lower_bound(index) + 1
        return f"Tier {index + 1} ({_format_kwh(start)}–{_format_kwh(tier.upper_bound)} kWh)"

    def describe(self, currency: Optional[str] = None) -> str:
        """Pricing information for display next to a calculator."""
        symbol = self.currency if currency is None else currency
        lines: List[str] = ["Tiered Pricing Rates:"]
        for index, tier in enumerate(self.tiers):
            rate = tier.rate.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
            lines.append(f"{self.label(index)}: {symbol}{rate} per kWh")
        return "\n".join(lines)


def _format_kwh(value: Decimal) -> str:
    """Render a bound without a trailing ``.0``."""
    if value == value.to_integral_value():
        return str(int(value))
    return str(value.normalize())


# Residential tariff, Maloti per kWh
DEFAULT_RATE_SCHEDULE = RateSchedule(
    tiers=(
        RateTier(upper_bound=Decimal("100"), rate=Decimal("1.20")),
        RateTier(upper_bound=Decimal("300"), rate=Decimal("1.50")),
        RateTier(upper_bound=None, rate=Decimal("2.00")),
    ),
    currency="M",
)
