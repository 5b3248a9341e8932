import datetime
from decimal import Decimal

from mortgagecalc.loan import CalculationError, ErrorKind, LoanTerms, MortgageSummary, PaymentType
from mortgagecalc.mortgage import calculate_mortgage

START = datetime.date(2024, 1, 15)


def test_annuity_mortgage_summary() -> None:
    terms = LoanTerms(principal=5400000, annual_interest_rate=Decimal("18.75"), term_years=20, start_date=START)

    result = calculate_mortgage(terms)

    assert isinstance(result, MortgageSummary)
    assert abs(result.monthly_payment - Decimal("86468.3672")) < Decimal("0.001")
    assert result.total_cost == result.monthly_payment * 240
    assert result.total_interest == result.total_cost - Decimal("5400000")
    assert result.payoff_date == datetime.date(2044, 1, 15)
    assert result.loan_term == 20
    assert result.payment_type is PaymentType.Annuity
    assert result.effective_interest_rate > Decimal("18.75")


def test_differentiated_mortgage_uses_first_payment_and_summed_cost() -> None:
    terms = LoanTerms(
        principal=12000,
        annual_interest_rate=12,
        term_years=1,
        start_date=START,
        payment_type=PaymentType.Differentiated,
    )

    result = calculate_mortgage(terms)

    assert isinstance(result, MortgageSummary)
    assert result.monthly_payment == Decimal("1120")
    assert result.total_cost == Decimal("12780")
    assert result.total_interest == Decimal("780")


def test_zero_rate_mortgage_has_no_interest() -> None:
    terms = LoanTerms(principal=12000, annual_interest_rate=0, term_years=1, start_date=START)

    result = calculate_mortgage(terms)

    assert isinstance(result, MortgageSummary)
    assert result.monthly_payment == Decimal("1000")
    assert result.total_interest == 0


def test_invalid_rate_returns_error_result() -> None:
    terms = LoanTerms(principal=100000, annual_interest_rate=float("nan"), term_years=10, start_date=START)

    result = calculate_mortgage(terms)

    assert isinstance(result, CalculationError)
    assert result.kind is ErrorKind.InvalidInput
    assert result.field == "annual_interest_rate"


def test_zero_term_returns_error_result() -> None:
    terms = LoanTerms(principal=100000, annual_interest_rate=5, term_years=0, start_date=START)

    result = calculate_mortgage(terms)

    assert isinstance(result, CalculationError)
    assert result.field == "term_years"


def test_negative_principal_returns_error_result() -> None:
    terms = LoanTerms(principal=-1, annual_interest_rate=5, term_years=10, start_date=START)

    result = calculate_mortgage(terms)

    assert isinstance(result, CalculationError)
    assert result.field == "principal"
