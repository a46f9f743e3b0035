"""
Billing reports and dashboard statistics.

Aggregates bill records supplied by the caller's data store.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .billing import Bill, BillStatus


@dataclass(frozen=True)
class ReportData:
    """One labelled row of a report, e.g. a month's revenue."""
    label: str
    value: Decimal
    count: int = 0


@dataclass(frozen=True)
class BillingSummary:
    """Headline figures for the billing dashboard."""
    total_bills: int
    unpaid_bills: int
    total_revenue: Decimal  # Sum of paid bills
    outstanding_amount: Decimal  # Sum of unpaid bills
    monthly_revenue: Decimal  # Billed for periods starting this month


@dataclass(frozen=True)
class CustomerConsumption:
    """Total usage and billed amount for one customer."""
    customer_id: str
    total_usage: Decimal
    total_billed: Decimal
    bill_count: int


def summarize_bills(bills: Iterable[Bill], today: Optional[date] = None) -> BillingSummary:
    """Compute dashboard statistics over a set of bills.

    Args:
        bills: Bill records to aggregate
        today: Reference date for the current month (defaults to today)

    Returns:
        BillingSummary with counts and amounts
    """
    today = today or date.today()
    total_bills = 0
    unpaid_bills = 0
    total_revenue = Decimal("0")
    outstanding = Decimal("0")
    monthly = Decimal("0")

    for bill in bills:
        total_bills += 1
        if bill.is_paid:
            total_revenue += bill.amount
        else:
            unpaid_bills += 1
            outstanding += bill.amount
        if (bill.period_start.year, bill.period_start.month) == (today.year, today.month):
            monthly += bill.amount

    return BillingSummary(
        total_bills=total_bills,
        unpaid_bills=unpaid_bills,
        total_revenue=total_revenue,
        outstanding_amount=outstanding,
        monthly_revenue=monthly,
    )


def _month_index(day: date) -> int:
    return day.year * 12 + (day.month - 1)


def monthly_revenue_report(
    bills: Iterable[Bill],
    months: int = 12,
    today: Optional[date] = None
) -> List[ReportData]:
    """Billed amount per month for the last ``months`` months.

    Months are keyed by each bill's period start and labelled ``YYYY-MM``.
    The window is whole calendar months, not a rolling date cutoff: with
    ``months=2`` on 2024-06-20 every bill starting on or after 2024-05-01
    counts. The current month is the first of the window. Months without
    bills are omitted.

    Args:
        bills: Bill records to aggregate
        months: Size of the window in months
        today: Reference date (defaults to today)

    Returns:
        Report rows ordered newest month first

    Raises:
        ValueError: If months is not positive
    """
    if months <= 0:
        raise ValueError("months must be > 0")

    today = today or date.today()
    newest = _month_index(today)
    oldest = newest - months + 1

    revenue: Dict[str, Decimal] = defaultdict(Decimal)
    counts: Dict[str, int] = defaultdict(int)
    for bill in bills:
        index = _month_index(bill.period_start)
        if oldest <= index <= newest:
            label = f"{bill.period_start.year:04d}-{bill.period_start.month:02d}"
            revenue[label] += bill.amount
            counts[label] += 1

    return [
        ReportData(label=label, value=revenue[label], count=counts[label])
        for label in sorted(revenue, reverse=True)
    ]


def payment_status_distribution(bills: Iterable[Bill]) -> Dict[str, int]:
    """Number of bills per payment status, including statuses with no bills."""
    distribution = {status.value: 0 for status in BillStatus}
    for bill in bills:
        distribution[bill.status.value] += 1
    return distribution


def top_customers_by_consumption(bills: Iterable[Bill], limit: int = 10) -> List[CustomerConsumption]:
    """Customers with the highest total usage, heaviest first.

    Ties are broken by customer id so the ordering is stable.
    """
    if limit <= 0:
        raise ValueError("limit must be > 0")

    usage: Dict[str, Decimal] = defaultdict(Decimal)
    billed: Dict[str, Decimal] = defaultdict(Decimal)
    counts: Dict[str, int] = defaultdict(int)
    for bill in bills:
        usage[bill.customer_id] += bill.usage
        billed[bill.customer_id] += bill.amount
        counts[bill.customer_id] += 1

    ranked = sorted(usage, key=lambda customer: (-usage[customer], customer))
    return [
        CustomerConsumption(
            customer_id=customer,
            total_usage=usage[customer],
            total_billed=billed[customer],
            bill_count=counts[customer],
        )
        for customer in ranked[:limit]
    ]
