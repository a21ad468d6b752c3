"""Core calculation engine for the price table calculator.

This module implements the financial logic of a fixed-rate, fixed-installment
("Tabela Price") loan: the annuity installment, the financing coefficient, the
total amount paid, the full amortization schedule, and the inverse problem of
recovering a periodic rate with Newton-Raphson. Every function is pure; the
rate searches report failure through an ``EffectiveRateEstimate`` instead of
raising.
"""

from __future__ import annotations

from contextlib import contextmanager
from decimal import ROUND_CEILING, Decimal, getcontext, localcontext
from typing import Dict, Iterator, List, Optional, Tuple

from .data_models import AmortizationSchedule, EffectiveRateEstimate, Installment, LoanTerms
from .exceptions import InvalidInput
from .logging_config import get_logger
from .utils import Number, to_decimal, to_period_count

getcontext().prec = 28  # increase precision for financial calculations

NEWTON_INITIAL_ESTIMATE = Decimal("0.1")
NEWTON_TOLERANCE = Decimal("1e-6")
NEWTON_MAX_ITERATIONS = 1000
INSTALLMENT_RATE_TOLERANCE = Decimal("1e-9")
MAX_SCHEDULE_EXTRA_DIGITS = 10_000

logger = get_logger(__name__)


def _validate_principal(value: Number, field: str = "principal") -> Decimal:
    principal = to_decimal(value, field)
    if principal <= 0:
        raise InvalidInput(field, value, "must be positive")
    return principal


def _validate_rate(value: Number) -> Decimal:
    rate = to_decimal(value, "rate")
    if rate <= -1:
        raise InvalidInput("rate", value, "must be greater than -1")
    return rate


@contextmanager
def _growth_in_range(rate: Number, periods: int) -> Iterator[None]:
    """Report a ``(1 + i)^n`` that leaves the decimal range as bad input."""
    try:
        yield
    except ArithmeticError as exc:
        raise InvalidInput("rate", rate, f"(1 + rate) ** {periods} is out of range") from exc


def make_terms(principal: Number, rate: Number, periods: Number) -> LoanTerms:
    """Validate raw inputs and bundle them into ``LoanTerms``.

    Raises
    ------
    InvalidInput
        If the principal is not positive, the period count is not a positive
        whole number, or the rate is -1 or lower.
    """
    return LoanTerms(
        principal=_validate_principal(principal),
        periodic_rate=_validate_rate(rate),
        number_of_periods=to_period_count(periods),
    )


def _calculate_annuity_payment(principal: Decimal, rate: Decimal, periods: int) -> Decimal:
    """Return the constant installment of an annuity loan.

    The formula is:

        payment = P * i / (1 - (1 + i)^-n)

    where ``P`` is the principal, ``i`` the periodic rate and ``n`` the
    number of payments. When the rate is zero (or too small to move
    ``(1 + i)^-n`` at the working precision) the payment is ``P / n``.
    """
    if rate == 0:
        return principal / Decimal(periods)
    discount = (1 + rate) ** -periods
    if discount == 1:
        return principal / Decimal(periods)
    return principal * rate / (1 - discount)


def _annuity_payment_and_slope(
    principal: Decimal, rate: Decimal, periods: int
) -> Tuple[Decimal, Decimal]:
    """Return the annuity payment and its derivative with respect to the rate."""
    n = Decimal(periods)
    if rate == 0:
        return principal / n, principal * (n + 1) / (2 * n)
    discount = (1 + rate) ** -periods
    denominator = 1 - discount
    if denominator == 0:
        return principal / n, principal * (n + 1) / (2 * n)
    payment = principal * rate / denominator
    slope = principal * (denominator - rate * n * discount / (1 + rate)) / denominator ** 2
    return payment, slope


def compute_installment_payment(principal: Number, rate: Number, periods: Number) -> Decimal:
    """Constant installment paid each period (the "prestação")."""
    terms = make_terms(principal, rate, periods)
    with _growth_in_range(rate, terms.number_of_periods):
        return _calculate_annuity_payment(terms.principal, terms.periodic_rate, terms.number_of_periods)


def compute_financing_coefficient(rate: Number, periods: Number) -> Decimal:
    """Installment as a fraction of the principal.

    ``CF = i * (1 + i)^n / ((1 + i)^n - 1)``, evaluated as
    ``i / (1 - (1 + i)^-n)`` so long terms underflow to ``i`` instead of
    overflowing. ``1 / n`` for a zero rate.
    """
    rate_value = _validate_rate(rate)
    n = to_period_count(periods)
    if rate_value == 0:
        return Decimal(1) / Decimal(n)
    with _growth_in_range(rate, n):
        discount = (1 + rate_value) ** -n
        if discount == 1:
            return Decimal(1) / Decimal(n)
        return rate_value / (1 - discount)


def compute_total_paid(principal: Number, rate: Number, periods: Number) -> Decimal:
    """Sum of all installments."""
    terms = make_terms(principal, rate, periods)
    with _growth_in_range(rate, terms.number_of_periods):
        payment = _calculate_annuity_payment(terms.principal, terms.periodic_rate, terms.number_of_periods)
        return payment * terms.number_of_periods


def compute_corrected_value(total_paid: Number, rate: Number, periods: Number) -> Decimal:
    """Discount ``total_paid`` back ``periods`` periods at ``rate``."""
    total = to_decimal(total_paid, "total_paid")
    rate_value = _validate_rate(rate)
    n = to_period_count(periods)
    with _growth_in_range(rate, n):
        return total / (1 + rate_value) ** n


def compute_annual_rate(rate: Number, periods_per_year: Number = 12) -> Decimal:
    """Compound a periodic rate into its yearly equivalent."""
    rate_value = _validate_rate(rate)
    n = to_period_count(periods_per_year, "periods_per_year")
    with _growth_in_range(rate, n):
        return (1 + rate_value) ** n - 1


def compute_effective_rate(principal: Number, periods: Number, total_paid: Number) -> EffectiveRateEstimate:
    """Recover the periodic rate that discounts ``total_paid`` to ``principal``.

    Solves ``f(i) = P - T / (1 + i)^n = 0`` with Newton-Raphson starting
    from ``i = 0.1``. The derivative is ``n * T / (1 + i)^(n + 1)``, so each
    step is ``i -= f(i) * (1 + i)^(n + 1) / (n * T)``. The search stops when
    ``|f(i)|`` drops to ``1e-6`` (an absolute tolerance in currency units).

    A step that would leave the domain ``1 + i > 0`` is replaced by a move
    halfway towards -1. The search gives up after 1000 iterations or on an
    arithmetic breakdown (zero derivative, overflow); non-positive totals
    have no root and always end that way.

    Returns
    -------
    EffectiveRateEstimate
        The rate as a fraction when converged; ``rate=None`` otherwise.
    """
    principal_value = _validate_principal(principal)
    n = to_period_count(periods)
    total = to_decimal(total_paid, "total_paid")

    estimate = NEWTON_INITIAL_ESTIMATE
    iterations = 0
    try:
        error = principal_value - total / (1 + estimate) ** n
        while abs(error) > NEWTON_TOLERANCE:
            if iterations >= NEWTON_MAX_ITERATIONS:
                logger.warning(
                    "Effective rate search did not converge after %d iterations "
                    "(principal=%s, periods=%d, total_paid=%s)",
                    iterations,
                    principal_value,
                    n,
                    total,
                )
                return EffectiveRateEstimate(rate=None, converged=False, iterations=iterations)
            candidate = estimate - error * (1 + estimate) ** (n + 1) / (n * total)
            if candidate <= -1:
                candidate = (estimate - 1) / 2
            estimate = candidate
            error = principal_value - total / (1 + estimate) ** n
            iterations += 1
    except ArithmeticError as exc:
        logger.warning(
            "Effective rate search broke down after %d iterations: %s "
            "(principal=%s, periods=%d, total_paid=%s)",
            iterations,
            type(exc).__name__,
            principal_value,
            n,
            total,
        )
        return EffectiveRateEstimate(rate=None, converged=False, iterations=iterations)

    logger.debug("Effective rate %s found in %d iterations", estimate, iterations)
    return EffectiveRateEstimate(rate=estimate, converged=True, iterations=iterations)


def compute_installment_rate(principal: Number, periods: Number, payment: Number) -> EffectiveRateEstimate:
    """Recover the periodic rate whose annuity installment equals ``payment``.

    This is the inverse of :func:`compute_installment_payment`. Newton-Raphson
    runs on ``g(i) = annuity(P, i, n) - payment`` from ``i = 0.1`` until
    ``|g(i)| <= 1e-9``, with the same iteration cap and domain handling as
    :func:`compute_effective_rate`.
    """
    principal_value = _validate_principal(principal)
    n = to_period_count(periods)
    target = _validate_principal(payment, "payment")

    estimate = NEWTON_INITIAL_ESTIMATE
    iterations = 0
    try:
        value, slope = _annuity_payment_and_slope(principal_value, estimate, n)
        while abs(value - target) > INSTALLMENT_RATE_TOLERANCE:
            if iterations >= NEWTON_MAX_ITERATIONS:
                logger.warning(
                    "Installment rate search did not converge after %d iterations "
                    "(principal=%s, periods=%d, payment=%s)",
                    iterations,
                    principal_value,
                    n,
                    target,
                )
                return EffectiveRateEstimate(rate=None, converged=False, iterations=iterations)
            candidate = estimate - (value - target) / slope
            if candidate <= -1:
                candidate = (estimate - 1) / 2
            estimate = candidate
            value, slope = _annuity_payment_and_slope(principal_value, estimate, n)
            iterations += 1
    except ArithmeticError as exc:
        logger.warning(
            "Installment rate search broke down after %d iterations: %s "
            "(principal=%s, periods=%d, payment=%s)",
            iterations,
            type(exc).__name__,
            principal_value,
            n,
            target,
        )
        return EffectiveRateEstimate(rate=None, converged=False, iterations=iterations)

    logger.debug("Installment rate %s found in %d iterations", estimate, iterations)
    return EffectiveRateEstimate(rate=estimate, converged=True, iterations=iterations)


def _schedule_precision(rate: Decimal, periods: int) -> int:
    """Working digits for a schedule.

    The running balance is rebuilt each period as ``b * (1 + i) - payment``, so
    a rounding error grows by ``(1 + i)^n`` before the last row. Extra digits
    cover that growth and keep the final balance at zero to the cent, up to
    ``MAX_SCHEDULE_EXTRA_DIGITS``.
    """
    base = getcontext().prec
    if rate <= 0:
        return base
    extra = (periods * (1 + rate).log10()).to_integral_value(rounding=ROUND_CEILING)
    return base + min(int(extra), MAX_SCHEDULE_EXTRA_DIGITS)


def _amortize(period_index: int, balance: Decimal, payment: Decimal, rate: Decimal) -> Installment:
    interest = balance * rate
    principal_portion = payment - interest
    return Installment(
        period_index=period_index,
        payment_amount=payment,
        interest_portion=interest,
        principal_portion=principal_portion,
        remaining_balance=balance - principal_portion,
    )


def compute_amortization_schedule(
    principal: Number,
    rate: Number,
    periods: Number,
    has_down_payment: bool = False,
) -> AmortizationSchedule:
    """Compute the full price table for a loan.

    Parameters
    ----------
    principal, rate, periods
        The loan terms; see :func:`make_terms`.
    has_down_payment: bool
        When True the first installment is paid up front as a down payment
        (row index 0) and the regular rows run ``1..periods-1``. The
        installment amount is the same in both modes.

    Returns
    -------
    AmortizationSchedule
        Rows ordered by period plus totals of payment, interest and principal
        over every row, down payment included.
    """
    terms = make_terms(principal, rate, periods)
    remaining_periods = terms.number_of_periods
    down_payment: Optional[Installment] = None
    installments: List[Installment] = []

    with _growth_in_range(rate, terms.number_of_periods), localcontext() as ctx:
        ctx.prec = _schedule_precision(terms.periodic_rate, terms.number_of_periods)
        payment = _calculate_annuity_payment(
            terms.principal, terms.periodic_rate, terms.number_of_periods
        )
        balance = terms.principal
        total_payment = Decimal("0")
        total_interest = Decimal("0")
        total_principal = Decimal("0")

        if has_down_payment:
            down_payment = _amortize(0, balance, payment, terms.periodic_rate)
            balance = down_payment.remaining_balance
            total_payment += down_payment.payment_amount
            total_interest += down_payment.interest_portion
            total_principal += down_payment.principal_portion
            remaining_periods -= 1

        for period_index in range(1, remaining_periods + 1):
            entry = _amortize(period_index, balance, payment, terms.periodic_rate)
            installments.append(entry)
            balance = entry.remaining_balance
            total_payment += entry.payment_amount
            total_interest += entry.interest_portion
            total_principal += entry.principal_portion

    logger.debug(
        "Computed schedule: %d rows, down payment=%s, final balance=%s",
        len(installments) + (1 if down_payment else 0),
        has_down_payment,
        balance,
    )
    return AmortizationSchedule(
        terms=terms,
        installments=tuple(installments),
        down_payment=down_payment,
        total_payment=total_payment,
        total_interest=total_interest,
        total_principal=total_principal,
    )


def summarize_loan(
    principal: Number,
    rate: Number,
    periods: Number,
    has_down_payment: bool = False,
) -> Tuple[AmortizationSchedule, Dict[str, object]]:
    """Compute the schedule and every derived metric of a loan.

    Returns
    -------
    schedule: AmortizationSchedule
        The full price table.
    summary: Dict[str, object]
        JSON-ready metrics: installment, financing coefficient, total paid,
        total interest, effective rate (``None`` when the search fails),
        annual equivalent rate, corrected value and final balance. Rates
        are fractions.
    """
    schedule = compute_amortization_schedule(principal, rate, periods, has_down_payment)
    terms = schedule.terms
    with _growth_in_range(rate, terms.number_of_periods):
        installment = _calculate_annuity_payment(terms.principal, terms.periodic_rate, terms.number_of_periods)
        total_paid = installment * terms.number_of_periods
    effective = compute_effective_rate(terms.principal, terms.number_of_periods, total_paid)

    summary: Dict[str, object] = {
        "principal": float(terms.principal),
        "rate": float(terms.periodic_rate),
        "annual_rate": float(compute_annual_rate(terms.periodic_rate)),
        "periods": terms.number_of_periods,
        "has_down_payment": schedule.has_down_payment,
        "installment": float(installment),
        "financing_coefficient": float(
            compute_financing_coefficient(terms.periodic_rate, terms.number_of_periods)
        ),
        "total_paid": float(total_paid),
        "total_interest": float(schedule.total_interest),
        "effective_rate": float(effective.rate) if effective.converged else None,
        "effective_rate_converged": effective.converged,
        "corrected_value": float(
            compute_corrected_value(total_paid, terms.periodic_rate, terms.number_of_periods)
        ),
        "final_balance": float(schedule.final_balance),
    }
    return schedule, summary
