import datetime
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Self

from mashumaro.config import BaseConfig
from mashumaro.mixins.orjson import DataClassORJSONMixin

from mortgagecalc.config import DEFAULT_CONFIG, EngineConfig
from mortgagecalc.loan import (
    CalculationError,
    ExtraPayment,
    ExtraPaymentPolicy,
    InterestMethod,
    LoanTerms,
    PaymentType,
    RegularPayment,
)


def _decimal_serializer(value: Decimal) -> str:
    return f"{value:.2f}"


def _decimal_deserializer(value: str | int | float) -> Decimal:
    return Decimal(str(value))


def parse_month(value: str | None) -> datetime.date | None:
    """Accept ``YYYY-MM`` as well as a full ISO date; the day is dropped."""
    if value is None:
        return None
    parts = value.split("-")
    if len(parts) < 2:
        raise ValueError(f"Invalid month: {value!r}, expected YYYY-MM")
    return datetime.date(int(parts[0]), int(parts[1]), 1)


def parse_payment_type(value: str) -> PaymentType:
    return PaymentType(value.lower())


class SchemaConfig(BaseConfig):
    serialization_strategy = {Decimal: {"serialize": _decimal_serializer, "deserialize": _decimal_deserializer}}


@dataclass
class EarlyPaymentSchema(DataClassORJSONMixin):
    date: datetime.date
    amount: Decimal
    type: ExtraPaymentPolicy = ExtraPaymentPolicy.ReduceTerm
    id: str = ""

    class Config(SchemaConfig):
        pass

    def to_extra_payment(self, index: int) -> ExtraPayment:
        return ExtraPayment(id=self.id or f"early-{index}", date=self.date, amount=self.amount, policy=self.type)


@dataclass
class RegularPaymentSchema(DataClassORJSONMixin):
    amount: Decimal
    start_month: datetime.date = field(metadata={"deserialize": parse_month})
    end_month: Optional[datetime.date] = field(default=None, metadata={"deserialize": parse_month})
    type: ExtraPaymentPolicy = ExtraPaymentPolicy.ReduceTerm
    id: str = ""

    class Config(SchemaConfig):
        aliases = {"start_month": "startMonth", "end_month": "endMonth"}
        allow_deserialization_not_by_alias = True

    def to_regular_payment(self, index: int) -> RegularPayment:
        return RegularPayment(
            id=self.id or f"regular-{index}",
            amount=self.amount,
            start_month=self.start_month,
            end_month=self.end_month,
            policy=self.type,
        )


@dataclass
class MortgageRequest(DataClassORJSONMixin):
    loan_amount: Decimal
    interest_rate: Decimal
    loan_term: int
    start_date: datetime.date = field(default_factory=datetime.date.today)
    payment_type: PaymentType = field(default=PaymentType.Annuity, metadata={"deserialize": parse_payment_type})
    payment_day: Optional[int] = None
    interest_method: Optional[InterestMethod] = None
    early_payments: list[EarlyPaymentSchema] = field(default_factory=list)
    regular_payments: list[RegularPaymentSchema] = field(default_factory=list)

    def __post_init__(self):
        if self.loan_term <= 0:
            raise ValueError("Loan term must be a positive number of years")
        if self.payment_day is not None and not 1 <= self.payment_day <= 31:
            raise ValueError("Payment day must be between 1 and 31")

    class Config(SchemaConfig):
        aliases = {
            "loan_amount": "loanAmount",
            "interest_rate": "interestRate",
            "loan_term": "loanTerm",
            "start_date": "startDate",
            "payment_type": "paymentType",
            "payment_day": "paymentDay",
            "interest_method": "interestMethod",
            "early_payments": "earlyPayments",
            "regular_payments": "regularPayments",
        }
        allow_deserialization_not_by_alias = True

    def to_loan_terms(self, config: EngineConfig = DEFAULT_CONFIG) -> LoanTerms:
        return LoanTerms(
            principal=self.loan_amount,
            annual_interest_rate=self.interest_rate,
            term_years=self.loan_term,
            start_date=self.start_date,
            payment_type=self.payment_type,
            payment_day=self.payment_day,
            interest_method=self.interest_method or config.interest_method,
        )

    def to_early_payments(self) -> list[ExtraPayment]:
        return [ep.to_extra_payment(i) for i, ep in enumerate(self.early_payments, start=1)]

    def to_regular_payments(self) -> list[RegularPayment]:
        return [rp.to_regular_payment(i) for i, rp in enumerate(self.regular_payments, start=1)]


@dataclass
class MortgageResponse(DataClassORJSONMixin):
    monthly_payment: Decimal
    total_interest: Decimal
    total_cost: Decimal
    payoff_date: datetime.date
    loan_term: int
    payment_type: str
    effective_interest_rate: Decimal

    class Config(SchemaConfig):
        aliases = {
            "monthly_payment": "monthlyPayment",
            "total_interest": "totalInterest",
            "total_cost": "totalCost",
            "payoff_date": "payoffDate",
            "loan_term": "loanTerm",
            "payment_type": "paymentType",
            "effective_interest_rate": "effectiveInterestRate",
        }
        serialize_by_alias = True


@dataclass
class ScheduleEntryResponse(DataClassORJSONMixin):
    month: int
    date: datetime.date
    payment: Decimal
    principal: Decimal
    interest: Decimal
    total_interest: Decimal
    balance: Decimal
    extra_payment: Optional[Decimal] = None
    extra_payment_type: Optional[str] = None
    is_regular_payment: bool = False

    class Config(SchemaConfig):
        aliases = {
            "total_interest": "totalInterest",
            "extra_payment": "extraPayment",
            "extra_payment_type": "extraPaymentType",
            "is_regular_payment": "isRegularPayment",
        }
        serialize_by_alias = True


@dataclass
class ScheduleSummaryResponse(DataClassORJSONMixin):
    original_term: int
    new_term: int
    original_total_interest: Decimal
    new_total_interest: Decimal
    original_monthly_payment: Decimal
    final_monthly_payment: Decimal
    total_savings: Decimal
    payment_type: str
    payment_recalculated: bool = False

    class Config(SchemaConfig):
        aliases = {
            "original_term": "originalTerm",
            "new_term": "newTerm",
            "original_total_interest": "originalTotalInterest",
            "new_total_interest": "newTotalInterest",
            "original_monthly_payment": "originalMonthlyPayment",
            "final_monthly_payment": "finalMonthlyPayment",
            "total_savings": "totalSavings",
            "payment_type": "paymentType",
            "payment_recalculated": "paymentRecalculated",
        }
        serialize_by_alias = True


@dataclass
class AmortizationResponse(DataClassORJSONMixin):
    schedule: list[ScheduleEntryResponse]
    summary: ScheduleSummaryResponse

    class Config(SchemaConfig):
        serialize_by_alias = True


@dataclass
class ErrorResponse(DataClassORJSONMixin):
    kind: str
    message: str
    field: Optional[str] = None

    @classmethod
    def from_error(cls, error: CalculationError) -> Self:
        return cls(kind=str(error.kind), message=error.message, field=error.field)
