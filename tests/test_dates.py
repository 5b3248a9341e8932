import datetime
from decimal import Decimal

from mortgagecalc.dates import (
    accrue_interest,
    add_years,
    clamp_payment_day,
    days_between,
    days_in_year,
    next_payment_date,
)
from mortgagecalc.loan import InterestMethod

TOLERANCE = Decimal("1e-20")


def test_days_between_is_absolute() -> None:
    assert days_between(datetime.date(2024, 1, 15), datetime.date(2024, 2, 15)) == 31
    assert days_between(datetime.date(2024, 2, 15), datetime.date(2024, 1, 15)) == 31
    assert days_between(datetime.date(2024, 2, 15), datetime.date(2024, 3, 15)) == 29


def test_days_in_year_follows_gregorian_rule() -> None:
    assert days_in_year(datetime.date(2024, 6, 1)) == 366
    assert days_in_year(datetime.date(2023, 6, 1)) == 365
    assert days_in_year(datetime.date(1900, 6, 1)) == 365
    assert days_in_year(datetime.date(2000, 6, 1)) == 366


def test_clamp_payment_day_handles_short_months() -> None:
    assert clamp_payment_day(datetime.date(2024, 2, 10), 31) == datetime.date(2024, 2, 29)
    assert clamp_payment_day(datetime.date(2023, 2, 10), 31) == datetime.date(2023, 2, 28)
    assert clamp_payment_day(datetime.date(2024, 4, 1), 31) == datetime.date(2024, 4, 30)
    assert clamp_payment_day(datetime.date(2024, 3, 5), 15) == datetime.date(2024, 3, 15)


def test_next_payment_date_returns_to_desired_day_after_short_month() -> None:
    assert next_payment_date(datetime.date(2024, 1, 31), 31) == datetime.date(2024, 2, 29)
    assert next_payment_date(datetime.date(2024, 2, 29), 31) == datetime.date(2024, 3, 31)
    assert next_payment_date(datetime.date(2024, 12, 15), 15) == datetime.date(2025, 1, 15)


def test_add_years_maps_leap_day_to_end_of_february() -> None:
    assert add_years(datetime.date(2024, 2, 29), 1) == datetime.date(2025, 2, 28)
    assert add_years(datetime.date(2024, 2, 29), 4) == datetime.date(2028, 2, 29)
    assert add_years(datetime.date(2024, 1, 15), 20) == datetime.date(2044, 1, 15)


def test_actual_365_interest_uses_elapsed_days() -> None:
    interest = accrue_interest(
        Decimal("36500"), Decimal("10"), datetime.date(2023, 1, 1), datetime.date(2023, 1, 11)
    )
    assert abs(interest - Decimal("100")) < TOLERANCE


def test_actual_365_interest_uses_leap_year_day_count() -> None:
    interest = accrue_interest(
        Decimal("36600"), Decimal("10"), datetime.date(2024, 1, 1), datetime.date(2024, 1, 11)
    )
    assert abs(interest - Decimal("100")) < TOLERANCE


def test_thirty_360_interest_is_a_flat_month() -> None:
    interest = accrue_interest(
        Decimal("12000"),
        Decimal("12"),
        datetime.date(2024, 1, 15),
        datetime.date(2024, 2, 15),
        InterestMethod.Thirty360,
    )
    assert abs(interest - Decimal("120")) < TOLERANCE


def test_thirty_360_end_of_month_convention() -> None:
    start = datetime.date(2024, 1, 30)
    end = datetime.date(2024, 3, 31)
    interest = accrue_interest(Decimal("36000"), Decimal("10"), start, end, InterestMethod.Thirty360)
    # 60 days in 30/360 terms
    assert abs(interest - Decimal("600")) < TOLERANCE


def test_actual_actual_splits_period_at_year_boundary() -> None:
    interest = accrue_interest(
        Decimal("10000"),
        Decimal("10"),
        datetime.date(2023, 12, 15),
        datetime.date(2024, 1, 15),
        InterestMethod.ActualActual,
    )
    expected = Decimal("1000") * (Decimal(17) / Decimal(365) + Decimal(14) / Decimal(366))
    assert abs(interest - expected) < Decimal("1e-18")
