import datetime
import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Self, TypeAlias

Amount: TypeAlias = int | float | Decimal


def _to_decimal(value: Amount) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(value)


class MortgageCalcError(Exception):
    pass


class InvalidLoanTermsError(MortgageCalcError):
    def __init__(self, message: str, field: str, value: object) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class InvalidExtraPaymentError(MortgageCalcError):
    def __init__(self, message: str, date: datetime.date, amount: Amount) -> None:
        super().__init__(message)
        self.date = date
        self.amount = amount


class InvalidRegularPaymentError(MortgageCalcError):
    def __init__(self, message: str, start_month: datetime.date, amount: Amount) -> None:
        super().__init__(message)
        self.start_month = start_month
        self.amount = amount


class PaymentType(enum.StrEnum):
    Annuity = "annuity"
    Differentiated = "differentiated"


class ExtraPaymentPolicy(enum.StrEnum):
    ReduceTerm = "reduceTerm"
    ReducePayment = "reducePayment"


class InterestMethod(enum.StrEnum):
    Actual365 = "ACTUAL_365"
    Thirty360 = "THIRTY_360"
    ActualActual = "ACTUAL_ACTUAL"


class ErrorKind(enum.StrEnum):
    InvalidInput = "invalid_input"
    ComputationFault = "computation_fault"


@dataclass(frozen=True)
class LoanTerms:
    principal: Decimal
    annual_interest_rate: Decimal
    term_years: int
    start_date: datetime.date
    payment_type: PaymentType = PaymentType.Annuity
    payment_day: int | None = None
    interest_method: InterestMethod = InterestMethod.Actual365

    def __post_init__(self) -> None:
        object.__setattr__(self, "principal", _to_decimal(self.principal))
        object.__setattr__(self, "annual_interest_rate", _to_decimal(self.annual_interest_rate))

    def __str__(self) -> str:
        return (
            f"{self.principal:,.2f} over {self.term_years} years at "
            f"{self.annual_interest_rate:.2f}% yearly interest rate ({self.payment_type})"
        )

    @property
    def periods(self) -> int:
        return self.term_years * 12

    @property
    def monthly_interest_rate(self) -> Decimal:
        return self.annual_interest_rate / Decimal("100") / Decimal("12")

    @property
    def due_day(self) -> int:
        """Day of month payments fall due on, before clamping to short months."""
        return self.payment_day if self.payment_day is not None else self.start_date.day

    def validate(self) -> None:
        if not self.principal.is_finite() or self.principal <= 0:
            raise InvalidLoanTermsError("Loan amount must be a positive number", "principal", self.principal)
        rate = self.annual_interest_rate
        if not rate.is_finite() or rate < 0 or rate > 100:
            raise InvalidLoanTermsError(
                "Interest rate must be a number between 0 and 100", "annual_interest_rate", rate
            )
        if not isinstance(self.term_years, int) or self.term_years <= 0:
            raise InvalidLoanTermsError("Loan term must be a positive number of years", "term_years", self.term_years)
        if not isinstance(self.start_date, datetime.date):
            raise InvalidLoanTermsError("Start date must be a calendar date", "start_date", self.start_date)
        if self.payment_day is not None and not 1 <= self.payment_day <= 31:
            raise InvalidLoanTermsError("Payment day must be between 1 and 31", "payment_day", self.payment_day)


@dataclass(frozen=True)
class ExtraPayment:
    id: str
    date: datetime.date
    amount: Decimal
    policy: ExtraPaymentPolicy = ExtraPaymentPolicy.ReduceTerm

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _to_decimal(self.amount))

    def validate(self) -> None:
        if not self.amount.is_finite() or self.amount <= 0:
            raise InvalidExtraPaymentError("Extra payment amount must be positive", self.date, self.amount)


@dataclass(frozen=True)
class RegularPayment:
    id: str
    amount: Decimal
    start_month: datetime.date
    end_month: datetime.date | None = None
    policy: ExtraPaymentPolicy = ExtraPaymentPolicy.ReduceTerm

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _to_decimal(self.amount))

    def validate(self) -> None:
        if not self.amount.is_finite() or self.amount <= 0:
            raise InvalidRegularPaymentError(
                "Regular payment amount must be positive", self.start_month, self.amount
            )
        if self.end_month is not None and _month_key(self.end_month) < _month_key(self.start_month):
            raise InvalidRegularPaymentError(
                "End month must be after start month", self.start_month, self.amount
            )

    def applies_to(self, date: datetime.date) -> bool:
        key = _month_key(date)
        if key < _month_key(self.start_month):
            return False
        return self.end_month is None or key <= _month_key(self.end_month)


def _month_key(date: datetime.date) -> tuple[int, int]:
    return date.year, date.month


@dataclass(frozen=True)
class ScheduleEntry:
    month: int
    date: datetime.date
    payment: Decimal
    principal: Decimal
    interest: Decimal
    total_interest: Decimal
    balance: Decimal
    extra_payment: Decimal | None = None
    extra_payment_policy: ExtraPaymentPolicy | None = None
    is_regular_payment: bool = False

    @property
    def total(self) -> Decimal:
        """Cash actually paid this month, extra payments included."""
        return self.principal + self.interest + (self.extra_payment or Decimal("0.00"))

    def to_row(self) -> list[str]:
        extra = "" if self.extra_payment is None else f"{self.extra_payment:,.2f}"
        policy = "" if self.extra_payment_policy is None else str(self.extra_payment_policy)
        if self.is_regular_payment:
            policy = f"{policy} (regular)"
        return [
            str(self.month),
            self.date.isoformat(),
            f"{self.payment:,.2f}",
            f"{self.principal:,.2f}",
            f"{self.interest:,.2f}",
            extra,
            policy,
            f"{self.total_interest:,.2f}",
            f"{self.balance:,.2f}",
        ]


@dataclass(frozen=True)
class ScheduleSummary:
    original_term: int
    new_term: int
    original_total_interest: Decimal
    new_total_interest: Decimal
    original_monthly_payment: Decimal
    final_monthly_payment: Decimal
    total_savings: Decimal
    payment_type: PaymentType
    payment_recalculated: bool = False


@dataclass(frozen=True)
class AmortizationResult:
    schedule: list[ScheduleEntry]
    summary: ScheduleSummary


@dataclass(frozen=True)
class MortgageSummary:
    monthly_payment: Decimal
    total_interest: Decimal
    total_cost: Decimal
    payoff_date: datetime.date
    loan_term: int
    payment_type: PaymentType
    effective_interest_rate: Decimal


@dataclass(frozen=True)
class CalculationError:
    kind: ErrorKind
    message: str
    field: str | None = None

    @classmethod
    def from_exception(cls, exc: Exception) -> Self:
        if isinstance(exc, MortgageCalcError):
            return cls(kind=ErrorKind.InvalidInput, message=str(exc), field=getattr(exc, "field", None))
        return cls(kind=ErrorKind.ComputationFault, message=f"{exc.__class__.__name__}: {exc}")
