import logging
from typing import TypeAlias

from mortgagecalc.dates import add_years
from mortgagecalc.formulas import (
    annuity_payment,
    differentiated_payment,
    effective_annual_rate,
    total_cost_differentiated,
)
from mortgagecalc.loan import CalculationError, LoanTerms, MortgageCalcError, MortgageSummary, PaymentType

logger = logging.getLogger(__name__)

MortgageOutcome: TypeAlias = MortgageSummary | CalculationError


def summarize(terms: LoanTerms) -> MortgageSummary:
    """Loan economics assuming nothing beyond the scheduled payments is ever paid.

    Raises the loan-model exceptions for invalid terms; ``calculate_mortgage``
    is the non-raising entry point.
    """
    terms.validate()
    n = terms.periods
    rate = terms.annual_interest_rate
    if terms.payment_type is PaymentType.Differentiated:
        monthly_payment = differentiated_payment(terms.principal, rate, n, 1)
        total_cost = total_cost_differentiated(terms.principal, rate, n)
    else:
        monthly_payment = annuity_payment(terms.principal, rate, n)
        total_cost = monthly_payment * n
    return MortgageSummary(
        monthly_payment=monthly_payment,
        total_interest=total_cost - terms.principal,
        total_cost=total_cost,
        payoff_date=add_years(terms.start_date, terms.term_years),
        loan_term=terms.term_years,
        payment_type=terms.payment_type,
        effective_interest_rate=effective_annual_rate(rate),
    )


def calculate_mortgage(terms: LoanTerms) -> MortgageOutcome:
    logger.info("Calculating mortgage: %s starting %s", terms, terms.start_date)
    try:
        return summarize(terms)
    except (MortgageCalcError, ArithmeticError) as exc:
        error = CalculationError.from_exception(exc)
        logger.warning("Mortgage calculation failed: %s", error.message)
        return error
