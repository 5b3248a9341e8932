import datetime
import logging
import operator as op
from collections import defaultdict
from collections.abc import Generator, Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import TypeAlias

from mortgagecalc.config import DEFAULT_CONFIG, EngineConfig
from mortgagecalc.dates import accrue_interest, next_payment_date
from mortgagecalc.formulas import annuity_payment, remaining_fixed_principal_payments, remaining_payments
from mortgagecalc.loan import (
    AmortizationResult,
    CalculationError,
    ExtraPayment,
    ExtraPaymentPolicy,
    LoanTerms,
    MortgageCalcError,
    PaymentType,
    RegularPayment,
    ScheduleEntry,
    ScheduleSummary,
)
from mortgagecalc.mortgage import summarize

logger = logging.getLogger(__name__)

AmortizationOutcome: TypeAlias = AmortizationResult | CalculationError

ZERO = Decimal("0.00")


@dataclass
class ScheduledExtra:
    amount: Decimal
    policy: ExtraPaymentPolicy
    regular: bool


@dataclass
class SimulationState:
    balance: Decimal
    installment: Decimal
    remaining_term: int
    previous_date: datetime.date
    contract_installment: Decimal = ZERO
    # Set once a ReduceTerm payment holds the contract instalment for the rest of the loan.
    fixed_installment: bool = False
    total_interest: Decimal = ZERO
    extra_paid: Decimal = ZERO
    reduce_payment_applied: bool = False


@dataclass
class AppliedExtras:
    amount: Decimal = ZERO
    policy: ExtraPaymentPolicy | None = None
    regular: bool = False


class AmortizationSimulator:
    """Month-by-month simulation of a loan with one-off and regular extra payments.

    Every call to ``generate`` or ``run`` starts from a fresh state, so the
    simulator can be reused and always yields the same schedule for the same
    inputs.
    """

    def __init__(
        self,
        terms: LoanTerms,
        early_payments: Iterable[ExtraPayment] = (),
        regular_payments: Iterable[RegularPayment] = (),
        config: EngineConfig | None = None,
    ) -> None:
        terms.validate()
        self.terms = terms
        self.config = config if config is not None else DEFAULT_CONFIG
        self.early_payments = sorted(early_payments, key=op.attrgetter("date"))
        self.regular_payments = list(regular_payments)
        for payment in self.early_payments:
            payment.validate()
        for regular in self.regular_payments:
            regular.validate()
        self._early_by_date: dict[datetime.date, list[ExtraPayment]] = defaultdict(list)
        for payment in self.early_payments:
            self._early_by_date[payment.date].append(payment)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(terms={self.terms!r}, early_payments={len(self.early_payments)}, "
            f"regular_payments={len(self.regular_payments)})"
        )

    @property
    def is_differentiated(self) -> bool:
        return self.terms.payment_type is PaymentType.Differentiated

    def _initial_state(self) -> SimulationState:
        terms = self.terms
        installment = annuity_payment(terms.principal, terms.annual_interest_rate, terms.periods)
        return SimulationState(
            balance=terms.principal,
            installment=installment,
            contract_installment=installment,
            remaining_term=terms.periods,
            previous_date=terms.start_date,
        )

    def _extras_for_payment_date(self, payment_date: datetime.date) -> list[ScheduledExtra]:
        extras = [
            ScheduledExtra(amount=payment.amount, policy=payment.policy, regular=False)
            for payment in self._early_by_date.get(payment_date, ())
        ]
        extras.extend(
            ScheduledExtra(amount=regular.amount, policy=regular.policy, regular=True)
            for regular in self.regular_payments
            if regular.applies_to(payment_date)
        )
        return extras

    def _reduce_payment(self, state: SimulationState, month: int) -> None:
        state.reduce_payment_applied = True
        months_after = state.remaining_term - month
        if self.is_differentiated or months_after <= 0:
            # Differentiated principal is re-derived from the balance every month.
            return
        state.installment = annuity_payment(state.balance, self.terms.annual_interest_rate, months_after)
        state.contract_installment = state.installment
        state.fixed_installment = False
        logger.debug("Month %d: payment recalculated to %.2f over %d months", month, state.installment, months_after)

    def _reduce_term(self, state: SimulationState, month: int, principal: Decimal) -> None:
        if self.is_differentiated:
            estimate = remaining_fixed_principal_payments(state.balance, principal)
        else:
            estimate = remaining_payments(state.balance, self.terms.annual_interest_rate, state.contract_installment)
        if estimate is None:
            logger.debug("Month %d: payment of %.2f cannot shorten the term", month, state.contract_installment)
            return
        if not self.is_differentiated:
            state.installment = state.contract_installment
            state.fixed_installment = True
        state.remaining_term = min(state.remaining_term, month + estimate)
        logger.debug("Month %d: term recalculated to %d months", month, state.remaining_term)

    def _apply_extras(
        self, state: SimulationState, month: int, payment_date: datetime.date, principal: Decimal
    ) -> AppliedExtras:
        applied = AppliedExtras()
        epsilon = self.config.balance_epsilon
        for extra in self._extras_for_payment_date(payment_date):
            if state.balance <= 0:
                logger.debug("Month %d: loan already paid off, skipping extra payment of %.2f", month, extra.amount)
                break
            amount = state.balance if extra.amount >= state.balance - epsilon else extra.amount
            state.balance -= amount
            state.extra_paid += amount
            applied.amount += amount
            applied.policy = extra.policy
            applied.regular = applied.regular or extra.regular
            logger.debug("Month %d: applied extra payment of %.2f (%s)", month, amount, extra.policy)
            if state.balance <= 0:
                continue
            match extra.policy:
                case ExtraPaymentPolicy.ReducePayment:
                    self._reduce_payment(state, month)
                case ExtraPaymentPolicy.ReduceTerm:
                    self._reduce_term(state, month, principal)
        return applied

    def _simulate(self, state: SimulationState) -> Generator[ScheduleEntry]:
        terms = self.terms
        epsilon = self.config.balance_epsilon
        month = 1
        matched_dates: set[datetime.date] = set()
        while month <= state.remaining_term and state.balance > epsilon:
            payment_date = next_payment_date(state.previous_date, terms.due_day)
            interest = accrue_interest(
                state.balance,
                terms.annual_interest_rate,
                state.previous_date,
                payment_date,
                terms.interest_method,
            )
            if payment_date in self._early_by_date:
                matched_dates.add(payment_date)
            months_left = state.remaining_term - month + 1
            if self.is_differentiated:
                principal = state.balance / months_left
            else:
                if not state.fixed_installment:
                    # Re-amortized every month, otherwise day-count drift moves the payoff month.
                    state.installment = annuity_payment(state.balance, terms.annual_interest_rate, months_left)
                # Negative when a long period accrues more than the instalment; the shortfall is capitalized.
                principal = state.installment - interest

            # The last payment of the horizon settles whatever is left, absorbing day-count drift.
            if months_left == 1 or state.balance - principal <= epsilon:
                principal = state.balance
            payment = principal + interest if self.is_differentiated else state.installment

            state.balance -= principal
            state.total_interest += interest
            extras = self._apply_extras(state, month, payment_date, principal)

            yield ScheduleEntry(
                month=month,
                date=payment_date,
                payment=payment,
                principal=principal,
                interest=interest,
                total_interest=state.total_interest,
                balance=max(state.balance, ZERO),
                extra_payment=extras.amount if extras.amount > 0 else None,
                extra_payment_policy=extras.policy,
                is_regular_payment=extras.regular,
            )

            state.previous_date = payment_date
            month += 1

        for date in self._early_by_date.keys() - matched_dates:
            logger.debug("Extra payment on %s does not fall on a payment date and was ignored", date.isoformat())

    def generate(self) -> Generator[ScheduleEntry]:
        yield from self._simulate(self._initial_state())

    def run(self) -> AmortizationResult:
        state = self._initial_state()
        schedule = list(self._simulate(state))
        return AmortizationResult(schedule=schedule, summary=self._summarize(schedule, state))

    def _summarize(self, schedule: list[ScheduleEntry], state: SimulationState) -> ScheduleSummary:
        baseline = summarize(self.terms)
        if schedule:
            new_total_interest = schedule[-1].total_interest
            final_monthly_payment = schedule[-1].payment
        else:
            new_total_interest = ZERO
            final_monthly_payment = baseline.monthly_payment
        # Day-count accrual differs slightly from the flat baseline; only extra payments count as savings.
        savings = max(baseline.total_interest - new_total_interest, ZERO) if state.extra_paid > 0 else ZERO
        return ScheduleSummary(
            original_term=self.terms.periods,
            new_term=len(schedule),
            original_total_interest=baseline.total_interest,
            new_total_interest=new_total_interest,
            original_monthly_payment=baseline.monthly_payment,
            final_monthly_payment=final_monthly_payment,
            total_savings=savings,
            payment_type=self.terms.payment_type,
            payment_recalculated=state.reduce_payment_applied,
        )


def generate_amortization_schedule(
    terms: LoanTerms,
    early_payments: Iterable[ExtraPayment] = (),
    regular_payments: Iterable[RegularPayment] = (),
    *,
    config: EngineConfig | None = None,
) -> AmortizationOutcome:
    logger.info("Generating amortization schedule: %s starting %s", terms, terms.start_date)
    try:
        return AmortizationSimulator(terms, early_payments, regular_payments, config=config).run()
    except (MortgageCalcError, ArithmeticError) as exc:
        error = CalculationError.from_exception(exc)
        logger.warning("Amortization schedule failed: %s", error.message)
        return error
