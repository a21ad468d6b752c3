"""Output helpers for the price table calculator.

This module renders loan summaries and amortization schedules in a tabular
text format. Money is shown with two decimals, monthly rates as percentages
with four decimals and the financing coefficient with six, which matches the
legacy calculator's display.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .data_models import AmortizationSchedule, Installment


def format_money(value: object) -> str:
    text = f"{value:.2f}"
    # residual balances like -1E-20 should not print as -0.00
    return "0.00" if text == "-0.00" else text


def format_rate(value: Optional[float], decimals: int = 4) -> str:
    """Render a fractional rate as a percentage (``0.02`` -> ``2.0000%``)."""
    if value is None:
        return "n/a"
    return f"{value * 100:.{decimals}f}%"


def print_summary(summary: Dict[str, object]) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Principal             : {format_money(summary['principal'])}")
    print(f"Periods               : {summary['periods']}")
    print(
        f"Rate                  : {format_rate(summary['rate'])} per month"
        f" = {format_rate(summary['annual_rate'], 2)} per year"
    )
    print(f"Down payment          : {'Yes' if summary['has_down_payment'] else 'No'}")
    print(f"Installment           : {format_money(summary['installment'])}")
    print(f"Financing coefficient : {summary['financing_coefficient']:.6f}")
    print(f"Total paid            : {format_money(summary['total_paid'])}")
    print(f"Total interest        : {format_money(summary['total_interest'])}")
    if summary.get("effective_rate_converged"):
        print(f"Effective rate        : {format_rate(summary['effective_rate'])} per month")
    else:
        print("Effective rate        : n/a (search did not converge)")
    print(f"Corrected value       : {format_money(summary['corrected_value'])}")
    print("-" * 72)


def _row_cells(entry: Installment) -> List[str]:
    label = "Entry" if entry.period_index == 0 else str(entry.period_index)
    return [
        label,
        format_money(entry.payment_amount),
        format_money(entry.interest_portion),
        format_money(entry.principal_portion),
        format_money(entry.remaining_balance),
    ]


def print_schedule(schedule: AmortizationSchedule, max_rows: Optional[int] = None) -> None:
    """Print the price table followed by a totals row.

    Parameters
    ----------
    schedule: AmortizationSchedule
        The schedule to print. The down payment row, when present, is shown
        first and labelled ``Entry``.
    max_rows: Optional[int]
        Print at most this many rows. Totals always cover the full schedule.
    """
    headers = ["Month", "Installment", "Interest", "Amortization", "Balance"]
    print("\t".join(headers))
    rows: Iterable[Installment] = schedule.rows
    if max_rows is not None:
        rows = schedule.rows[:max_rows]
    for entry in rows:
        print("\t".join(_row_cells(entry)))
    totals = [
        "Total",
        format_money(schedule.total_payment),
        format_money(schedule.total_interest),
        format_money(schedule.total_principal),
        format_money(schedule.final_balance),
    ]
    print("\t".join(totals))
