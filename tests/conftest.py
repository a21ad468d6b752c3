# tests/conftest.py
from __future__ import annotations

import pytest

from price_table.logging_config import reset_logging


@pytest.fixture(autouse=True)
def _clean_package_logger():
    # CLI invocations install handlers on the package logger; drop them so
    # caplog sees records and later tests don't write to closed streams.
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def reference_loan():
    """10 000 financed at 2 % a month over 12 months."""
    return {"principal": 10_000, "rate": "0.02", "periods": 12}
