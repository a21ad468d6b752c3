"""Fixed-installment ("Tabela Price") loan calculator."""

from .data_models import AmortizationSchedule, EffectiveRateEstimate, Installment, LoanTerms
from .engine import (
    compute_amortization_schedule,
    compute_annual_rate,
    compute_corrected_value,
    compute_effective_rate,
    compute_financing_coefficient,
    compute_installment_payment,
    compute_installment_rate,
    compute_total_paid,
    make_terms,
    summarize_loan,
)
from .exceptions import InvalidInput, NoConvergence, PriceTableError

__all__ = [
    "AmortizationSchedule",
    "EffectiveRateEstimate",
    "Installment",
    "InvalidInput",
    "LoanTerms",
    "NoConvergence",
    "PriceTableError",
    "compute_amortization_schedule",
    "compute_annual_rate",
    "compute_corrected_value",
    "compute_effective_rate",
    "compute_financing_coefficient",
    "compute_installment_payment",
    "compute_installment_rate",
    "compute_total_paid",
    "make_terms",
    "summarize_loan",
]
