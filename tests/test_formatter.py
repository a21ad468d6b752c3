# tests/test_formatter.py
from decimal import Decimal

from price_table.engine import compute_amortization_schedule, summarize_loan
from price_table.formatter import format_money, format_rate, print_schedule, print_summary


def test_money_and_rate_formats():
    assert format_money(Decimal("945.5959662")) == "945.60"
    assert format_money(Decimal("-1E-20")) == "0.00"
    assert format_rate(0.02) == "2.0000%"
    assert format_rate(0.268241794, 2) == "26.82%"
    assert format_rate(None) == "n/a"


def test_schedule_table_with_totals(capsys):
    print_schedule(compute_amortization_schedule(1_000, 0, 4))
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "Month\tInstallment\tInterest\tAmortization\tBalance"
    assert lines[1] == "1\t250.00\t0.00\t250.00\t750.00"
    assert lines[4] == "4\t250.00\t0.00\t250.00\t0.00"
    assert lines[-1] == "Total\t1000.00\t0.00\t1000.00\t0.00"


def test_schedule_table_labels_down_payment(capsys):
    print_schedule(compute_amortization_schedule(1_000, 0, 4, has_down_payment=True))
    lines = capsys.readouterr().out.splitlines()
    assert lines[1].startswith("Entry\t250.00")
    assert lines[2].startswith("1\t250.00")
    assert len(lines) == 6


def test_schedule_table_truncation_keeps_full_totals(capsys):
    print_schedule(compute_amortization_schedule(1_000, 0, 10), max_rows=3)
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 5
    assert lines[-1] == "Total\t1000.00\t0.00\t1000.00\t0.00"


def test_summary_block(capsys):
    _, summary = summarize_loan(10_000, "0.02", 12)
    print_summary(summary)
    out = capsys.readouterr().out
    assert "Installment           : 945.60" in out
    assert "Financing coefficient : 0.094560" in out
    assert "Total paid            : 11347.15" in out
    assert "2.0000% per month = 26.82% per year" in out
    assert "Effective rate        : 1.05" in out


def test_summary_block_without_convergence(capsys):
    _, summary = summarize_loan(10_000, "0.02", 12)
    summary["effective_rate"] = None
    summary["effective_rate_converged"] = False
    print_summary(summary)
    assert "n/a (search did not converge)" in capsys.readouterr().out
