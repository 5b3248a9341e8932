import logging

from mashumaro.exceptions import InvalidFieldValue, MissingField
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Route

from mortgagecalc.amortization import generate_amortization_schedule
from mortgagecalc.api.responses import ORJSONResponse
from mortgagecalc.config import EngineConfig, configure_logging
from mortgagecalc.loan import CalculationError
from mortgagecalc.mortgage import calculate_mortgage
from mortgagecalc.validators import (
    AmortizationResponse,
    ErrorResponse,
    MortgageRequest,
    MortgageResponse,
    ScheduleEntryResponse,
    ScheduleSummaryResponse,
)

logger = logging.getLogger(__name__)


async def health(_: Request) -> PlainTextResponse:
    return PlainTextResponse("ok")


async def _parse_request(request: Request) -> MortgageRequest:
    try:
        body = await request.body()
        return MortgageRequest.from_json(body)
    except (InvalidFieldValue, MissingField, ValueError, KeyError, TypeError) as exc:
        logger.info("Rejected %s request: %s", request.url.path, exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _error_response(error: CalculationError) -> Response:
    return ORJSONResponse(ErrorResponse.from_error(error), status_code=422)


async def calculate(request: Request) -> Response:
    req = await _parse_request(request)
    config: EngineConfig = request.app.state.config
    result = calculate_mortgage(req.to_loan_terms(config))
    if isinstance(result, CalculationError):
        return _error_response(result)

    return ORJSONResponse(
        MortgageResponse(
            monthly_payment=result.monthly_payment,
            total_interest=result.total_interest,
            total_cost=result.total_cost,
            payoff_date=result.payoff_date,
            loan_term=result.loan_term,
            payment_type=str(result.payment_type),
            effective_interest_rate=result.effective_interest_rate,
        )
    )


async def amortization(request: Request) -> Response:
    req = await _parse_request(request)
    config: EngineConfig = request.app.state.config
    result = generate_amortization_schedule(
        req.to_loan_terms(config),
        req.to_early_payments(),
        req.to_regular_payments(),
        config=config,
    )
    if isinstance(result, CalculationError):
        return _error_response(result)

    schedule = [
        ScheduleEntryResponse(
            month=entry.month,
            date=entry.date,
            payment=entry.payment,
            principal=entry.principal,
            interest=entry.interest,
            total_interest=entry.total_interest,
            balance=entry.balance,
            extra_payment=entry.extra_payment,
            extra_payment_type=None if entry.extra_payment_policy is None else str(entry.extra_payment_policy),
            is_regular_payment=entry.is_regular_payment,
        )
        for entry in result.schedule
    ]
    s = result.summary
    summary = ScheduleSummaryResponse(
        original_term=s.original_term,
        new_term=s.new_term,
        original_total_interest=s.original_total_interest,
        new_total_interest=s.new_total_interest,
        original_monthly_payment=s.original_monthly_payment,
        final_monthly_payment=s.final_monthly_payment,
        total_savings=s.total_savings,
        payment_type=str(s.payment_type),
        payment_recalculated=s.payment_recalculated,
    )
    return ORJSONResponse(AmortizationResponse(schedule=schedule, summary=summary))


routes = [
    Route("/health", health, methods=["GET"]),
    Route("/api/mortgage/calculate", calculate, methods=["POST"]),
    Route("/api/mortgage/amortization", amortization, methods=["POST"]),
]


def create_app(config: EngineConfig | None = None) -> Starlette:
    config = config if config is not None else EngineConfig.from_env()
    configure_logging(config.log_level)
    application = Starlette(debug=False, routes=routes)
    application.state.config = config
    return application


app = create_app()
