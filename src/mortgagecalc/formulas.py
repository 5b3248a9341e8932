"""Closed-form payment formulas for annuity and differentiated loans.

Rates are annual percentages (``18.75`` for 18.75%) and terms are counted in
monthly payments.
"""

from decimal import ROUND_CEILING, Decimal

from mortgagecalc.loan import InvalidLoanTermsError

PERIODS_PRECISION = Decimal("1e-9")


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    return annual_rate_percent / Decimal("100") / Decimal("12")


def _check_term(term_months: int) -> None:
    if term_months <= 0:
        raise InvalidLoanTermsError("Term must be a positive number of months", "term_months", term_months)


def discount_factor(annual_rate_percent: Decimal, term_months: int) -> Decimal:
    _check_term(term_months)
    rate = monthly_rate(annual_rate_percent)
    if rate == 0:
        return Decimal(term_months)
    return ((1 + rate) ** term_months - 1) / (rate * (1 + rate) ** term_months)


def annuity_payment(principal: Decimal, annual_rate_percent: Decimal, term_months: int) -> Decimal:
    """Equal monthly payment: ``P * r * (1 + r)^n / ((1 + r)^n - 1)``, or ``P / n`` at zero rate."""
    return principal / discount_factor(annual_rate_percent, term_months)


def differentiated_principal(principal: Decimal, term_months: int) -> Decimal:
    _check_term(term_months)
    return principal / Decimal(term_months)


def differentiated_payment(
    principal: Decimal, annual_rate_percent: Decimal, term_months: int, payment_index: int
) -> Decimal:
    """Fixed principal portion plus interest on what is left before the ``payment_index``-th payment."""
    fixed = differentiated_principal(principal, term_months)
    remaining = principal - fixed * (payment_index - 1)
    return fixed + remaining * monthly_rate(annual_rate_percent)


def total_cost_differentiated(principal: Decimal, annual_rate_percent: Decimal, term_months: int) -> Decimal:
    total = Decimal("0")
    for index in range(1, term_months + 1):
        total += differentiated_payment(principal, annual_rate_percent, term_months, index)
    return total


def remaining_payments(balance: Decimal, annual_rate_percent: Decimal, payment: Decimal) -> int | None:
    """Number of ``payment`` instalments needed to amortize ``balance``.

    Returns ``None`` when the payment does not even cover the monthly interest.
    """
    if payment <= 0:
        return None
    rate = monthly_rate(annual_rate_percent)
    if rate == 0:
        periods = balance / payment
    else:
        interest = balance * rate
        if payment <= interest:
            return None
        periods = (payment / (payment - interest)).ln() / (1 + rate).ln()
    # Drop logarithm noise so an exact annuity term does not round up to n + 1.
    periods = periods.quantize(PERIODS_PRECISION)
    return int(periods.to_integral_value(rounding=ROUND_CEILING))


def effective_annual_rate(annual_rate_percent: Decimal) -> Decimal:
    return ((1 + monthly_rate(annual_rate_percent)) ** 12 - 1) * Decimal("100")


def remaining_fixed_principal_payments(balance: Decimal, principal_portion: Decimal) -> int | None:
    if principal_portion <= 0:
        return None
    periods = (balance / principal_portion).quantize(PERIODS_PRECISION)
    return int(periods.to_integral_value(rounding=ROUND_CEILING))
