"""
CLI interface for LEC Billing.

Provides command-line access to the bill calculator.
"""

import logging
import sys
from datetime import datetime
from decimal import Decimal
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from lec_billing.config.loader import load_rate_schedule, rate_schedule_to_dict
from lec_billing.core.billing import Bill, draft_bill
from lec_billing.core.calculator import InvalidUsage, TieredBillCalculator, round_kwh, to_cents
from lec_billing.core.tariff import DEFAULT_RATE_SCHEDULE, RateSchedule

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

RATES_ENVVAR = "LEC_BILLING_RATES"

_rates_option = typer.Option(
    None,
    "--rates",
    "-r",
    envvar=RATES_ENVVAR,
    help="YAML rate schedule (defaults to the built-in residential tariff)"
)


def _load_schedule(rates: Optional[str]) -> RateSchedule:
    if rates is None:
        return DEFAULT_RATE_SCHEDULE
    return load_rate_schedule(rates)


def _parse_date(value: str, option: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValueError(f"{option} must be a date in YYYY-MM-DD form, got {value!r}")


def _format_currency(amount: Decimal, symbol: str) -> str:
    """Format a monetary amount to cents with the currency symbol."""
    return f"{symbol}{to_cents(amount):,}"


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
):
    """LEC Billing CLI."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )
    if ctx.invoked_subcommand is None:
        console.print("LEC Billing - Use --help to see available commands")


@app.command()
def calculate(
    usage: str = typer.Argument(..., help="Electricity usage in kWh"),
    rates: Optional[str] = _rates_option,
    total_only: bool = typer.Option(
        False,
        "--total-only",
        "-t",
        help="Print only the total amount"
    )
):
    """Calculate a tiered bill for a usage figure."""
    try:
        schedule = _load_schedule(rates)
        breakdown = TieredBillCalculator(schedule).calculate(usage)
    except InvalidUsage as e:
        console.print(f"[red]Validation Error:[/] {e}")
        console.print("Please enter a valid, non-negative number for usage")
        sys.exit(EXIT_CODE_FAIL)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if total_only:
        console.print(f"{schedule.currency}{breakdown.rounded_total()}", highlight=False)
    else:
        console.print(breakdown.render(), highlight=False, markup=False, end="")
    sys.exit(EXIT_CODE_PASS)


@app.command("rates")
def show_rates(
    rates: Optional[str] = _rates_option,
    as_yaml: bool = typer.Option(
        False,
        "--yaml",
        help="Print the schedule as YAML, in the format --rates accepts"
    )
):
    """Show the tiered pricing rates."""
    try:
        schedule = _load_schedule(rates)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if as_yaml:
        console.print(yaml.safe_dump(rate_schedule_to_dict(schedule), sort_keys=False),
                      highlight=False, markup=False, end="")
    else:
        console.print(schedule.describe(), highlight=False, markup=False)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def bill(
    customer: str = typer.Option(..., "--customer", "-c", help="Customer identifier"),
    previous: str = typer.Option(..., "--previous", help="Meter reading at period start"),
    current: str = typer.Option(..., "--current", help="Meter reading at period end"),
    start: str = typer.Option(..., "--start", help="Period start date (YYYY-MM-DD)"),
    end: str = typer.Option(..., "--end", help="Period end date (YYYY-MM-DD)"),
    sequence: int = typer.Option(1, "--sequence", "-n", help="Running bill number"),
    rates: Optional[str] = _rates_option
):
    """Draft a bill from two meter readings."""
    try:
        schedule = _load_schedule(rates)
        drafted = draft_bill(
            customer_id=customer,
            previous_reading=previous,
            current_reading=current,
            period_start=_parse_date(start, "--start").date(),
            period_end=_parse_date(end, "--end").date(),
            sequence=sequence,
            calculator=TieredBillCalculator(schedule),
        )
    except InvalidUsage as e:
        console.print(f"[red]Validation Error:[/] {e}")
        sys.exit(EXIT_CODE_FAIL)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    _display_bill(drafted, schedule.currency)
    sys.exit(EXIT_CODE_PASS)


def _display_bill(drafted: Bill, symbol: str):
    """Display a drafted bill as a table."""
    table = Table(title=f"Bill {drafted.bill_number}")
    table.add_column("Field", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Customer", drafted.customer_id)
    table.add_row("Period", f"{drafted.period_start.isoformat()} to {drafted.period_end.isoformat()}")
    table.add_row("Readings", f"{drafted.previous_reading} -> {drafted.current_reading}")
    table.add_row("Usage", f"{round_kwh(drafted.usage)} kWh")
    table.add_row("Tier 1", _format_currency(drafted.tier1_amount, symbol))
    table.add_row("Tier 2", _format_currency(drafted.tier2_amount, symbol))
    table.add_row("Tier 3", _format_currency(drafted.tier3_amount, symbol))
    table.add_row("Amount due", _format_currency(drafted.amount, symbol))
    table.add_row("Due date", drafted.due_date.isoformat())
    table.add_row("Status", drafted.status.value)

    console.print(table)


if __name__ == "__main__":
    app()
