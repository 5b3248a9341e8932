import argparse
import datetime
import sys
from decimal import Decimal, InvalidOperation

from rich.console import Console
from rich.table import Table

from mortgagecalc.amortization import generate_amortization_schedule
from mortgagecalc.config import EngineConfig, configure_logging
from mortgagecalc.loan import (
    AmortizationResult,
    CalculationError,
    ExtraPayment,
    ExtraPaymentPolicy,
    InterestMethod,
    LoanTerms,
    MortgageSummary,
    PaymentType,
    RegularPayment,
)
from mortgagecalc.mortgage import calculate_mortgage
from mortgagecalc.validators import parse_month


class Namespace(argparse.Namespace):
    rate: Decimal
    years: int
    amount: Decimal
    start_date: datetime.date | None
    payment_type: PaymentType
    payment_day: int | None
    interest_method: InterestMethod | None
    extra: list[str]
    regular: list[str]
    summary_only: bool
    log_level: str | None


def _decimal_arg(value: str) -> Decimal:
    try:
        return Decimal(value.replace(",", ""))
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"Invalid number: {value}") from exc


def _policy_arg(value: str) -> ExtraPaymentPolicy:
    aliases = {"term": ExtraPaymentPolicy.ReduceTerm, "payment": ExtraPaymentPolicy.ReducePayment}
    try:
        return aliases.get(value.lower()) or ExtraPaymentPolicy(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Unknown policy {value!r}, expected 'term' or 'payment'") from exc


def parse_extra_arg(arg: str, index: int = 1) -> ExtraPayment:
    parts = arg.split(":")
    if len(parts) < 2:
        raise argparse.ArgumentTypeError("Expected format YYYY-MM-DD:amount[:term|payment]")
    try:
        date = datetime.date.fromisoformat(parts[0])
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc
    amount = _decimal_arg(parts[1])
    policy = _policy_arg(parts[2]) if len(parts) >= 3 else ExtraPaymentPolicy.ReduceTerm
    return ExtraPayment(id=f"early-{index}", date=date, amount=amount, policy=policy)


def parse_regular_arg(arg: str, index: int = 1) -> RegularPayment:
    parts = arg.split(":")
    if len(parts) < 2:
        raise argparse.ArgumentTypeError("Expected format YYYY-MM:amount[:term|payment[:YYYY-MM]]")
    try:
        start = parse_month(parts[0])
        end = parse_month(parts[3]) if len(parts) >= 4 else None
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc
    amount = _decimal_arg(parts[1])
    policy = _policy_arg(parts[2]) if len(parts) >= 3 else ExtraPaymentPolicy.ReduceTerm
    return RegularPayment(id=f"regular-{index}", amount=amount, start_month=start, end_month=end, policy=policy)


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Mortgage calculator and amortization schedule generator")

    parser.add_argument(
        "-r",
        "--rate",
        type=_decimal_arg,
        required=True,
        help="Annual interest rate (as a percentage, e.g., 5.5 for 5.5%% not 0.055)",
    )

    parser.add_argument(
        "-y",
        "--years",
        type=int,
        required=True,
        help="Term in years",
    )

    parser.add_argument("amount", type=_decimal_arg, help="Loan amount")

    parser.add_argument(
        "-s",
        "--start-date",
        type=datetime.date.fromisoformat,
        help="Loan start date as YYYY-MM-DD (default: today)",
    )

    parser.add_argument(
        "-t",
        "--payment-type",
        type=PaymentType,
        choices=list(PaymentType),
        default=PaymentType.Annuity,
        help="Annuity (equal payments) or differentiated (equal principal)",
    )

    parser.add_argument("-d", "--payment-day", type=int, default=None, help="Day of month payments are due")

    parser.add_argument(
        "--interest-method",
        type=InterestMethod,
        choices=list(InterestMethod),
        default=None,
        help="Day count used to accrue interest (default: ACTUAL_365)",
    )

    parser.add_argument(
        "--extra",
        action="append",
        default=[],
        help="One-time extra payment as YYYY-MM-DD:amount[:term|payment]",
    )

    parser.add_argument(
        "--regular",
        action="append",
        default=[],
        help="Regular extra payment as YYYY-MM:amount[:term|payment[:YYYY-MM]]",
    )

    parser.add_argument("--summary-only", action="store_true", help="Print the summaries without the schedule")
    parser.add_argument("--log-level", default=None, help="Logging level (default: WARNING)")

    return parser


def print_mortgage_summary(console: Console, summary: MortgageSummary) -> None:
    console.print(f"[bold]Monthly Payment:[/bold] {summary.monthly_payment:,.2f}")
    console.print(f"[bold]Total Interest:[/bold] {summary.total_interest:,.2f}")
    console.print(f"[bold]Total Cost:[/bold] {summary.total_cost:,.2f}")
    console.print(f"[bold]Effective Annual Rate:[/bold] {summary.effective_interest_rate:.2f}%")
    console.print(f"[bold]Payoff Date:[/bold] {summary.payoff_date.isoformat()}")


def print_schedule(console: Console, result: AmortizationResult) -> None:
    table = Table(title="Amortization Schedule")
    table.add_column("Month #", justify="right", style="cyan", no_wrap=True)
    table.add_column("Date", style="magenta")
    table.add_column("Payment", justify="right", style="yellow")
    table.add_column("Principal", justify="right", style="green")
    table.add_column("Interest", justify="right", style="red")
    table.add_column("Extra", justify="right", style="green")
    table.add_column("Policy", style="magenta")
    table.add_column("Total Interest", justify="right", style="red")
    table.add_column("Balance", justify="right", style="blue")
    for entry in result.schedule:
        table.add_row(*entry.to_row())
    console.print(table)


def print_schedule_summary(console: Console, result: AmortizationResult) -> None:
    s = result.summary
    console.print(f"[bold]Term:[/bold] {s.new_term} of {s.original_term} months")
    console.print(f"[bold]Total Interest Paid:[/bold] {s.new_total_interest:,.2f}")
    console.print(f"[bold]Final Monthly Payment:[/bold] {s.final_monthly_payment:,.2f}")
    console.print(f"[bold]Interest Savings:[/bold] {s.total_savings:,.2f}")


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = get_parser()
    args = parser.parse_args(argv, namespace=Namespace())
    config = EngineConfig.from_env()
    configure_logging(args.log_level or config.log_level)

    try:
        early_payments = [parse_extra_arg(arg, i) for i, arg in enumerate(args.extra, start=1)]
        regular_payments = [parse_regular_arg(arg, i) for i, arg in enumerate(args.regular, start=1)]
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))

    terms = LoanTerms(
        principal=args.amount,
        annual_interest_rate=args.rate,
        term_years=args.years,
        start_date=args.start_date or datetime.date.today(),
        payment_type=args.payment_type,
        payment_day=args.payment_day,
        interest_method=args.interest_method or config.interest_method,
    )

    console = Console()
    mortgage = calculate_mortgage(terms)
    if isinstance(mortgage, CalculationError):
        console.print(f"[bold red]Error:[/bold red] {mortgage.message}")
        return 1
    console.print(f"[bold]{terms}[/bold]")
    print_mortgage_summary(console, mortgage)

    result = generate_amortization_schedule(terms, early_payments, regular_payments, config=config)
    if isinstance(result, CalculationError):
        console.print(f"[bold red]Error:[/bold red] {result.message}")
        return 1
    if not args.summary_only:
        print_schedule(console, result)
    print_schedule_summary(console, result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
