import calendar
import datetime
from decimal import Decimal

from mortgagecalc.loan import InterestMethod


def days_between(start: datetime.date, end: datetime.date) -> int:
    return abs((end - start).days)


def days_in_year(dt: datetime.date) -> int:
    return 366 if calendar.isleap(dt.year) else 365


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_payment_day(dt: datetime.date, desired_day: int) -> datetime.date:
    return dt.replace(day=min(desired_day, last_day_of_month(dt.year, dt.month)))


def next_payment_date(previous: datetime.date, desired_day: int) -> datetime.date:
    """Payment date one calendar month after ``previous``.

    The day is always derived from ``desired_day`` rather than from ``previous``,
    so a loan due on the 31st goes back to the 31st after a short month.
    """
    year, month = (previous.year + 1, 1) if previous.month == 12 else (previous.year, previous.month + 1)
    return clamp_payment_day(datetime.date(year, month, 1), desired_day)


def add_years(dt: datetime.date, years: int) -> datetime.date:
    year = dt.year + years
    return datetime.date(year, dt.month, min(dt.day, last_day_of_month(year, dt.month)))


def _days_thirty_360(start: datetime.date, end: datetime.date) -> int:
    start, end = min(start, end), max(start, end)
    d1 = min(start.day, 30)
    d2 = end.day
    if d2 == 31 and d1 == 30:
        d2 = 30
    return 360 * (end.year - start.year) + 30 * (end.month - start.month) + (d2 - d1)


def _year_fraction_actual_actual(start: datetime.date, end: datetime.date) -> Decimal:
    start, end = min(start, end), max(start, end)
    fraction = Decimal("0")
    cursor = start
    while cursor < end:
        boundary = min(datetime.date(cursor.year + 1, 1, 1), end)
        fraction += Decimal((boundary - cursor).days) / Decimal(days_in_year(cursor))
        cursor = boundary
    return fraction


def accrue_interest(
    balance: Decimal,
    annual_rate_percent: Decimal,
    period_start: datetime.date,
    period_end: datetime.date,
    method: InterestMethod = InterestMethod.Actual365,
) -> Decimal:
    """Interest accrued on ``balance`` between two payment dates.

    ``Actual365`` divides the annual rate by the day count of the year the
    period starts in and multiplies by the actual number of elapsed days.
    """
    yearly_rate = annual_rate_percent / Decimal("100")
    match method:
        case InterestMethod.Thirty360:
            return balance * yearly_rate / Decimal("360") * _days_thirty_360(period_start, period_end)
        case InterestMethod.ActualActual:
            return balance * yearly_rate * _year_fraction_actual_actual(period_start, period_end)
        case _:
            daily_rate = yearly_rate / Decimal(days_in_year(period_start))
            return balance * daily_rate * days_between(period_start, period_end)
