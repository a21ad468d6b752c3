# tests/test_main.py
import csv
import json

import pytest
from click.testing import CliRunner

from price_table.main import cli


@pytest.fixture
def runner():
    return CliRunner()


def test_schedule_prints_summary_and_table(runner):
    result = runner.invoke(cli, ["schedule", "-p", "10k", "-r", "2", "-n", "12"])
    assert result.exit_code == 0, result.output
    assert "Installment           : 945.60" in result.output
    assert "1\t945.60\t200.00\t745.60\t9254.40" in result.output
    assert "Total\t11347.15\t1347.15\t10000.00\t0.00" in result.output


def test_schedule_defaults_to_96_periods(runner):
    result = runner.invoke(cli, ["schedule", "-p", "10000", "-r", "1"])
    assert result.exit_code == 0, result.output
    assert "Periods               : 96" in result.output
    assert "\n96\t" in result.output


def test_schedule_truncates_long_tables(runner):
    result = runner.invoke(cli, ["schedule", "-p", "10000", "-r", "1", "-n", "200"])
    assert result.exit_code == 0, result.output
    assert "Schedule has 200 rows; showing first 120 rows." in result.output
    assert "\n120\t" in result.output
    assert "\n121\t" not in result.output


def test_schedule_with_down_payment(runner):
    result = runner.invoke(cli, ["schedule", "-p", "10000", "-r", "2", "-n", "12", "--down-payment"])
    assert result.exit_code == 0, result.output
    assert "Down payment          : Yes" in result.output
    assert "Entry\t945.60\t200.00\t745.60\t9254.40" in result.output
    assert "\n11\t" in result.output
    assert "\n12\t" not in result.output


def test_schedule_json_export(runner, tmp_path):
    target = tmp_path / "loan.json"
    result = runner.invoke(cli, ["schedule", "-p", "10000", "-r", "2", "-n", "12", "--output", str(target)])
    assert result.exit_code == 0, result.output
    data = json.loads(target.read_text(encoding="utf-8"))
    assert data["summary"]["installment"] == pytest.approx(945.596, abs=1e-3)
    assert len(data["schedule"]) == 12
    assert data["schedule"][0]["period"] == 1
    assert data["totals"]["payment"] == pytest.approx(11347.15, abs=0.01)


def test_schedule_csv_export(runner, tmp_path):
    target = tmp_path / "loan.csv"
    result = runner.invoke(cli, ["schedule", "-p", "10000", "-r", "2", "-n", "3", "--output", str(target)])
    assert result.exit_code == 0, result.output
    with target.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["Period", "Payment", "Interest", "Principal", "Balance"]
    assert [row[0] for row in rows[1:]] == ["1", "2", "3"]


def test_schedule_rejects_unknown_export_format(runner, tmp_path):
    result = runner.invoke(
        cli, ["schedule", "-p", "10000", "-r", "2", "--output", str(tmp_path / "loan.xlsx")]
    )
    assert result.exit_code == 2
    assert "Unsupported output format" in result.output


@pytest.mark.parametrize(
    "args",
    [
        ["-p", "abc", "-r", "2"],
        ["-p", "0", "-r", "2"],
        ["-p", "10000", "-r", "x"],
        ["-p", "10000", "-r", "-100"],
        ["-p", "10000", "-r", "2", "-n", "0"],
    ],
)
def test_invalid_loan_options(runner, args):
    result = runner.invoke(cli, ["summary"] + args)
    assert result.exit_code == 2
    assert "Traceback" not in result.output


def test_summary_json_export(runner, tmp_path):
    target = tmp_path / "summary.json"
    result = runner.invoke(cli, ["summary", "-p", "10000", "-r", "2", "-n", "12", "--output", str(target)])
    assert result.exit_code == 0, result.output
    data = json.loads(target.read_text(encoding="utf-8"))
    assert data["summary"]["effective_rate_converged"] is True
    assert 0.0105 < data["summary"]["effective_rate"] < 0.0106


def test_rate_from_payment(runner):
    result = runner.invoke(cli, ["rate", "-p", "10000", "-n", "12", "--payment", "945.5959662"])
    assert result.exit_code == 0, result.output
    assert "Installment rate: 2.0000% per month" in result.output


def test_rate_from_total_paid(runner):
    result = runner.invoke(cli, ["rate", "-p", "10000", "-n", "1", "--total-paid", "10200"])
    assert result.exit_code == 0, result.output
    assert "Effective rate: 2.0000% per month" in result.output


def test_rate_without_root_fails_cleanly(runner):
    result = runner.invoke(cli, ["rate", "-p", "10000", "-n", "12", "--total-paid", "-1000"])
    assert result.exit_code == 1
    assert "did not converge" in result.output


@pytest.mark.parametrize(
    "extra",
    [[], ["--payment", "100", "--total-paid", "1200"]],
)
def test_rate_needs_exactly_one_target(runner, extra):
    result = runner.invoke(cli, ["rate", "-p", "1200", "-n", "12"] + extra)
    assert result.exit_code == 2
    assert "exactly one" in result.output


def test_log_file_option(runner, tmp_path):
    log_file = tmp_path / "logs" / "price_table.log"
    result = runner.invoke(
        cli,
        ["--log-level", "debug", "--log-file", str(log_file), "summary", "-p", "10000", "-r", "2", "-n", "12"],
    )
    assert result.exit_code == 0, result.output
    assert "Computed schedule" in log_file.read_text(encoding="utf-8")


def test_summary_with_huge_rate(runner):
    result = runner.invoke(cli, ["summary", "-p", "1000", "-r", "1e402", "-n", "12"])
    assert result.exit_code == 0, result.output
    assert "Installment" in result.output


def test_summary_with_out_of_range_growth_is_a_usage_error(runner):
    result = runner.invoke(cli, ["summary", "-p", "1000", "-r", "-50", "-n", "1000000000"])
    assert result.exit_code == 2
    assert "--rate" in result.output
    assert "out of range" in result.output
    assert "Traceback" not in result.output
