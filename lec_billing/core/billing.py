"""
Bill drafting from meter readings.

Turns two meter readings and a billing period into an immutable bill record.
Persisting the record is left to the caller's data store.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

from .calculator import InvalidUsage, TieredBillCalculator, UsageInput, parse_usage

logger = logging.getLogger(__name__)

# Days between the end of a billing period and the payment deadline
PAYMENT_TERM_DAYS = 15


class InvalidReading(InvalidUsage):
    """Raised when the current meter reading is below the previous one."""


class BillStatus(Enum):
    """Payment state of a bill."""
    UNPAID = "UNPAID"
    PAID = "PAID"


@dataclass(frozen=True)
class Bill:
    """Immutable bill record.

    Holds the primitives extracted from a calculation rather than the
    breakdown itself, so it can be stored as a flat row.
    """
    bill_number: str
    customer_id: str
    period_start: date
    period_end: date
    previous_reading: Decimal
    current_reading: Decimal
    usage: Decimal
    amount: Decimal
    tier1_usage: Decimal
    tier2_usage: Decimal
    tier3_usage: Decimal
    tier1_amount: Decimal
    tier2_amount: Decimal
    tier3_amount: Decimal
    due_date: date
    status: BillStatus = BillStatus.UNPAID
    payment_date: Optional[date] = None

    def __post_init__(self):
        """Validate period and payment fields."""
        if self.period_end < self.period_start:
            raise ValueError("period_end cannot be before period_start")
        if self.status == BillStatus.PAID and self.payment_date is None:
            raise ValueError("paid bills need a payment_date")

    @property
    def is_paid(self) -> bool:
        return self.status == BillStatus.PAID

    def is_overdue(self, today: Optional[date] = None) -> bool:
        """Unpaid and past its due date."""
        today = today or date.today()
        return not self.is_paid and today > self.due_date


def usage_from_readings(previous_reading: UsageInput, current_reading: UsageInput) -> Decimal:
    """Usage consumed between two meter readings.

    Raises:
        InvalidUsage: If either reading is negative or not a number
        InvalidReading: If the current reading is below the previous one
    """
    previous = parse_usage(previous_reading)
    current = parse_usage(current_reading)
    if current < previous:
        logger.warning("Rejected readings: current %s is below previous %s", current, previous)
        raise InvalidReading(
            f"Current reading {current} is less than previous reading {previous}",
            current - previous,
        )
    return current - previous


def generate_bill_number(year: int, sequence: int) -> str:
    """Bill number in the ``BILL-<year>-<sequence>`` form, e.g. ``BILL-2024-00042``."""
    if sequence < 1:
        raise ValueError("sequence must be >= 1")
    return f"BILL-{year}-{sequence:05d}"


def due_date_for(period_end: date) -> date:
    """Payment deadline for a period ending on ``period_end``."""
    return period_end + timedelta(days=PAYMENT_TERM_DAYS)


def draft_bill(
    customer_id: str,
    previous_reading: UsageInput,
    current_reading: UsageInput,
    period_start: date,
    period_end: date,
    sequence: int,
    calculator: TieredBillCalculator,
    issued_on: Optional[date] = None,
) -> Bill:
    """Build an unpaid bill for a customer's billing period.

    Args:
        customer_id: Customer identifier (required)
        previous_reading: Meter reading at the start of the period
        current_reading: Meter reading at the end of the period
        period_start: First day of the billing period
        period_end: Last day of the billing period
        sequence: Running bill count used for the bill number
        calculator: Calculator pricing the usage
        issued_on: Issue date; its year goes into the bill number (defaults to today)

    Returns:
        New Bill with status UNPAID

    Raises:
        ValueError: If customer_id is empty or the period is reversed
        InvalidReading: If the current reading is below the previous one
    """
    if not customer_id or not customer_id.strip():
        raise ValueError("customer_id is required and cannot be empty")
    if period_end < period_start:
        raise ValueError("period_end cannot be before period_start")

    usage = usage_from_readings(previous_reading, current_reading)
    breakdown = calculator.calculate(usage)
    issued_on = issued_on or date.today()

    bill = Bill(
        bill_number=generate_bill_number(issued_on.year, sequence),
        customer_id=customer_id,
        period_start=period_start,
        period_end=period_end,
        previous_reading=parse_usage(previous_reading),
        current_reading=parse_usage(current_reading),
        usage=breakdown.total_usage,
        amount=breakdown.total_amount,
        tier1_usage=breakdown.tier1_usage,
        tier2_usage=breakdown.tier2_usage,
        tier3_usage=breakdown.tier3_usage,
        tier1_amount=breakdown.tier1_amount,
        tier2_amount=breakdown.tier2_amount,
        tier3_amount=breakdown.tier3_amount,
        due_date=due_date_for(period_end),
    )
    logger.info("Drafted bill %s for customer %s", bill.bill_number, customer_id)
    return bill


def mark_paid(bill: Bill, paid_on: Optional[date] = None) -> Bill:
    """Return a copy of ``bill`` marked as paid.

    Raises:
        ValueError: If the bill is already paid
    """
    if bill.is_paid:
        raise ValueError(f"Bill {bill.bill_number} is already paid")
    paid = replace(bill, status=BillStatus.PAID, payment_date=paid_on or date.today())
    logger.info("Bill marked as paid: %s", bill.bill_number)
    return paid
