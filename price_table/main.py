"""Command-line interface for the price table calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can print the full price table of a loan, view only its
summary, or recover a periodic rate from known totals. Schedules can be
printed to the terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

import click

from .data_models import AmortizationSchedule
from .engine import compute_effective_rate, compute_installment_rate, summarize_loan
from .exceptions import InvalidInput, NoConvergence
from .formatter import format_rate, print_schedule, print_summary
from .logging_config import ENV_LOG_FILE, ENV_LOG_LEVEL, configure_logging
from .utils import decimal_from_str, percent_to_fraction

DEFAULT_PERIODS = 96
MAX_PRINTED_ROWS = 120


def parse_amount(value: str, name: str = "amount") -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("10000") and shorthand with ``k``/``m`` suffixes
    (e.g., "10k" meaning 10_000).
    """
    try:
        return decimal_from_str(value)
    except ValueError:
        raise click.BadParameter(f"Invalid {name}: {value}")


def parse_rate(value: str) -> Decimal:
    """Parse a monthly percentage ("2" or "2%") into a fraction."""
    try:
        return percent_to_fraction(value)
    except InvalidInput:
        raise click.BadParameter(f"Invalid rate: {value}")


def _run_summary(principal: str, rate: str, periods: int, down_payment: bool):
    try:
        return summarize_loan(
            parse_amount(principal, "principal"), parse_rate(rate), periods, down_payment
        )
    except InvalidInput as exc:
        raise click.BadParameter(str(exc), param_hint=f"--{exc.field}")


def serialize_schedule(schedule: AmortizationSchedule) -> list:
    """Convert schedule rows into JSON-serialisable dictionaries."""
    return [
        {
            "period": entry.period_index,
            "payment": float(entry.payment_amount),
            "interest": float(entry.interest_portion),
            "principal": float(entry.principal_portion),
            "balance": float(entry.remaining_balance),
        }
        for entry in schedule.rows
    ]


def export_to_json(path: Path, schedule: AmortizationSchedule, summary: Dict[str, Any]) -> None:
    """Export schedule and summary to a JSON file."""
    data = {
        "summary": summary,
        "schedule": serialize_schedule(schedule),
        "totals": {
            "payment": float(schedule.total_payment),
            "interest": float(schedule.total_interest),
            "principal": float(schedule.total_principal),
        },
    }
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: AmortizationSchedule) -> None:
    """Export schedule rows to a CSV file."""
    header = ["Period", "Payment", "Interest", "Principal", "Balance"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule.rows:
            writer.writerow(
                [
                    e.period_index,
                    float(e.payment_amount),
                    float(e.interest_portion),
                    float(e.principal_portion),
                    float(e.remaining_balance),
                ]
            )


def loan_options(func):
    """Options shared by the ``schedule`` and ``summary`` commands."""
    func = click.option(
        "--down-payment/--no-down-payment",
        "down_payment",
        default=False,
        help="Pay the first installment up front as a down payment",
    )(func)
    func = click.option(
        "--periods",
        "-n",
        "periods",
        type=click.IntRange(min=1),
        default=DEFAULT_PERIODS,
        show_default=True,
        help="Number of monthly installments",
    )(func)
    func = click.option("--rate", "-r", "rate", required=True, help="Monthly interest rate (percent)")(func)
    func = click.option("--principal", "-p", "principal", required=True, help="Financed amount")(func)
    return func


@click.group()
@click.option(
    "--log-level",
    envvar=ENV_LOG_LEVEL,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity",
)
@click.option("--log-file", envvar=ENV_LOG_FILE, type=click.Path(dir_okay=False), help="Also log to this file")
def cli(log_level: str, log_file: Optional[str]) -> None:
    """A command-line price table (fixed installment) loan calculator."""
    configure_logging(level=log_level, log_file=log_file)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: str,
    periods: int,
    down_payment: bool,
    output: Optional[str],
) -> None:
    """Compute and print the full price table."""
    if output:
        path = Path(output)
        suffix = path.suffix.lower()
        if suffix not in (".json", ".csv"):
            raise click.BadParameter("Unsupported output format; use .json or .csv", param_hint="--output")
    schedule_data, summary_data = _run_summary(principal, rate, periods, down_payment)
    if output:
        if suffix == ".json":
            export_to_json(path, schedule_data, summary_data)
        else:
            export_to_csv(path, schedule_data)
        click.echo(f"Schedule exported to {path}")
        return
    print_summary(summary_data)
    row_count = len(schedule_data.rows)
    # Limit schedule length printed to avoid flooding the terminal
    if row_count > MAX_PRINTED_ROWS:
        click.echo(f"Schedule has {row_count} rows; showing first {MAX_PRINTED_ROWS} rows.")
    print_schedule(schedule_data, max_rows=MAX_PRINTED_ROWS)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(
    principal: str,
    rate: str,
    periods: int,
    down_payment: bool,
    output: Optional[str],
) -> None:
    """Compute and print only the summary metrics for a loan."""
    if output and Path(output).suffix.lower() != ".json":
        raise click.BadParameter("Summary export must use .json extension", param_hint="--output")
    _, summary_data = _run_summary(principal, rate, periods, down_payment)
    if output:
        path = Path(output)
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": summary_data}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(summary_data)


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Financed amount")
@click.option(
    "--periods",
    "-n",
    "periods",
    type=click.IntRange(min=1),
    default=DEFAULT_PERIODS,
    show_default=True,
    help="Number of monthly installments",
)
@click.option("--total-paid", "total_paid", help="Total amount paid over the loan")
@click.option("--payment", "payment", help="Constant installment amount")
def rate(principal: str, periods: int, total_paid: Optional[str], payment: Optional[str]) -> None:
    """Recover the monthly rate implied by a loan's totals.

    With ``--total-paid`` the effective rate discounts the total paid back to
    the principal in a single sum. With ``--payment`` the rate is the one
    whose fixed installment equals the given payment.
    """
    if (total_paid is None) == (payment is None):
        raise click.UsageError("Provide exactly one of --total-paid or --payment")
    principal_value = parse_amount(principal, "principal")
    try:
        if total_paid is not None:
            label = "Effective rate"
            estimate = compute_effective_rate(
                principal_value, periods, parse_amount(total_paid, "total paid")
            )
        else:
            label = "Installment rate"
            estimate = compute_installment_rate(
                principal_value, periods, parse_amount(payment, "payment")
            )
        found = estimate.require_rate()
    except InvalidInput as exc:
        raise click.BadParameter(str(exc), param_hint=f"--{exc.field.replace('_', '-')}")
    except NoConvergence as exc:
        raise click.ClickException(str(exc))
    click.echo(f"{label}: {format_rate(float(found))} per month ({estimate.iterations} iterations)")


if __name__ == "__main__":
    cli()
