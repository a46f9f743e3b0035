"""
Tiered bill calculation.

Converts electricity usage into a monetary charge with progressive pricing:
only the portion of usage inside a band is charged at that band's rate.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, DecimalException, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional, Tuple, Union

from .tariff import DEFAULT_RATE_SCHEDULE, RateSchedule

logger = logging.getLogger(__name__)

UsageInput = Union[int, float, str, Decimal]

CENTS = Decimal("0.01")


class InvalidUsage(ValueError):
    """Raised when a usage figure is negative or not a finite number."""
    def __init__(self, message: str, usage: object = None):
        super().__init__(message)
        self.usage = usage


def parse_usage(usage: UsageInput) -> Decimal:
    """Convert a usage figure into an exact, non-negative Decimal.

    Floats go through their shortest repr so ``100.0001`` stays ``100.0001``
    instead of its binary approximation.

    Args:
        usage: kWh consumed as int, float, Decimal or numeric string

    Returns:
        Usage as a Decimal

    Raises:
        InvalidUsage: If usage is negative, non-finite or not a number
    """
    if isinstance(usage, bool):
        raise InvalidUsage(f"Usage must be a number, got {usage!r}", usage)

    if isinstance(usage, Decimal):
        value = usage
    elif isinstance(usage, int):
        value = Decimal(usage)
    elif isinstance(usage, float):
        value = Decimal(repr(usage))
    elif isinstance(usage, str):
        try:
            value = Decimal(usage.strip())
        except InvalidOperation:
            raise InvalidUsage(f"Usage must be a number, got {usage!r}", usage)
    else:
        raise InvalidUsage(f"Usage must be a number, got {usage!r}", usage)

    if not value.is_finite():
        raise InvalidUsage(f"Usage must be finite, got {usage!r}", usage)
    if value < 0:
        raise InvalidUsage(f"Usage cannot be negative: {usage}", usage)
    if value.is_zero():
        # Drops the sign of -0
        value = Decimal("0")
    return value


def to_cents(amount: Decimal) -> Decimal:
    """Round a monetary amount to cents, halves away from zero."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def round_kwh(usage: Decimal) -> Decimal:
    """Round a usage figure to hundredths of a kWh, halves away from zero."""
    return usage.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TierCharge:
    """Portion of one calculation that fell inside a single tier."""
    label: str
    rate: Decimal
    usage: Decimal
    amount: Decimal


@dataclass(frozen=True)
class TierBreakdown:
    """Result of one calculation, decomposed by tier.

    Amounts keep full Decimal precision; rounding to cents happens only in
    ``rounded_total`` and ``render``.
    """
    total_usage: Decimal
    total_amount: Decimal
    charges: Tuple[TierCharge, ...]
    currency: str = "M"

    def _charge(self, index: int) -> TierCharge:
        if index < len(self.charges):
            return self.charges[index]
        return TierCharge(label="", rate=Decimal("0"), usage=Decimal("0"), amount=Decimal("0"))

    @property
    def tier1_usage(self) -> Decimal:
        return self._charge(0).usage

    @property
    def tier2_usage(self) -> Decimal:
        return self._charge(1).usage

    @property
    def tier3_usage(self) -> Decimal:
        return self._charge(2).usage

    @property
    def tier1_amount(self) -> Decimal:
        return self._charge(0).amount

    @property
    def tier2_amount(self) -> Decimal:
        return self._charge(1).amount

    @property
    def tier3_amount(self) -> Decimal:
        return self._charge(2).amount

    def rounded_total(self) -> Decimal:
        """Total amount rounded to cents."""
        return to_cents(self.total_amount)

    def render(self, currency: Optional[str] = None) -> str:
        """Format the breakdown as a multi-line receipt.

        Tiers with no usage are left out.
        """
        symbol = self.currency if currency is None else currency
        rule = "=" * 30
        lines: List[str] = ["Billing Calculation Breakdown:", rule]
        for charge in self.charges:
            if charge.usage > 0:
                lines.append(
                    f"{charge.label}: {round_kwh(charge.usage)} kWh × {symbol}{to_cents(charge.rate)} "
                    f"= {symbol}{to_cents(charge.amount)}"
                )
        lines.append(rule)
        lines.append(f"Total Usage: {round_kwh(self.total_usage)} kWh")
        lines.append(f"Total Amount: {symbol}{self.rounded_total()}")
        return "\n".join(lines) + "\n"


class TieredBillCalculator:
    """Progressive bill calculator over an injected rate schedule.

    Holds no mutable state, so a single instance can be shared between
    callers.
    """

    def __init__(self, schedule: RateSchedule = DEFAULT_RATE_SCHEDULE):
        self.schedule = schedule

    def calculate(self, usage: UsageInput) -> TierBreakdown:
        """Calculate the bill for ``usage`` kWh.

        Walks the tiers from the most expensive band down, peeling off the
        usage above each band's lower bound.

        Args:
            usage: kWh consumed in the billing period

        Returns:
            TierBreakdown with per-tier usage and amounts

        Raises:
            InvalidUsage: If usage is negative, not a number, or too large
                to bill to the cent within Decimal precision
        """
        total_usage = parse_usage(usage)
        tiers = self.schedule.tiers

        charges: List[TierCharge] = []
        remaining = total_usage
        try:
            for index in reversed(range(len(tiers))):
                lower = self.schedule.lower_bound(index)
                if remaining > lower:
                    portion = remaining - lower
                    remaining = lower
                else:
                    portion = Decimal("0")
                rate = tiers[index].rate
                charges.append(TierCharge(
                    label=self.schedule.label(index),
                    rate=rate,
                    usage=portion,
                    amount=portion * rate,
                ))
            charges.reverse()

            total_amount = sum((charge.amount for charge in charges), Decimal("0"))
            # Both figures must still be representable to two decimal places
            to_cents(total_amount)
            round_kwh(total_usage)
        except DecimalException:
            raise InvalidUsage(f"Usage is too large to bill: {usage}", usage)

        logger.debug("Bill calculated: %s kWh = %s%s", total_usage, self.schedule.currency, to_cents(total_amount))

        return TierBreakdown(
            total_usage=total_usage,
            total_amount=total_amount,
            charges=tuple(charges),
            currency=self.schedule.currency,
        )


def calculate_bill_amount(usage: UsageInput, schedule: RateSchedule = DEFAULT_RATE_SCHEDULE) -> Decimal:
    """Total charge for ``usage`` kWh, when the breakdown is not needed."""
    return TieredBillCalculator(schedule).calculate(usage).total_amount
