"""Data models for the price table calculator.

This module defines dataclasses representing the entities produced by the
engine: the loan terms, individual installments, the full amortization
schedule and the result of an iterative rate search. All of them are frozen;
a schedule is always recomputed wholesale from its terms.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from .exceptions import NoConvergence


@dataclass(frozen=True)
class LoanTerms:
    """Validated inputs of a fixed-installment loan.

    Attributes
    ----------
    principal: Decimal
        The financed amount, in currency units.
    periodic_rate: Decimal
        Interest rate applied once per period, as a fraction (``0.02`` is
        2 % per month).
    number_of_periods: int
        Number of installments.
    """

    principal: Decimal
    periodic_rate: Decimal
    number_of_periods: int


@dataclass(frozen=True)
class Installment:
    """One row of the schedule.

    ``period_index`` starts at 1 for regular installments. The down payment
    row, when present, uses index 0.
    """

    period_index: int
    payment_amount: Decimal
    interest_portion: Decimal
    principal_portion: Decimal
    remaining_balance: Decimal  # balance after this payment


@dataclass(frozen=True)
class AmortizationSchedule:
    terms: LoanTerms
    installments: Tuple[Installment, ...]
    down_payment: Optional[Installment]
    total_payment: Decimal
    total_interest: Decimal
    total_principal: Decimal

    @property
    def has_down_payment(self) -> bool:
        return self.down_payment is not None

    @property
    def rows(self) -> Tuple[Installment, ...]:
        """All rows in payment order, down payment first."""
        if self.down_payment is None:
            return self.installments
        return (self.down_payment,) + self.installments

    @property
    def final_balance(self) -> Decimal:
        rows = self.rows
        return rows[-1].remaining_balance if rows else self.terms.principal


@dataclass(frozen=True)
class EffectiveRateEstimate:
    """Outcome of a Newton-Raphson rate search.

    When ``converged`` is False the search gave up and ``rate`` is None; the
    caller must not use any value from a failed search.
    """

    rate: Optional[Decimal]
    converged: bool
    iterations: int

    def require_rate(self) -> Decimal:
        """Return the recovered rate or raise ``NoConvergence``."""
        if not self.converged or self.rate is None:
            raise NoConvergence(
                f"Rate search did not converge after {self.iterations} iterations"
            )
        return self.rate
