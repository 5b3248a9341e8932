import pytest
from starlette.testclient import TestClient

from mortgagecalc.config import EngineConfig
from mortgagecalc.web import create_app

LOAN = {
    "loanAmount": 5400000,
    "interestRate": 18.75,
    "loanTerm": 20,
    "startDate": "2024-01-15",
    "paymentType": "annuity",
}


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app(EngineConfig()))


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.text == "ok"


def test_calculate_returns_baseline_summary(client: TestClient) -> None:
    response = client.post("/api/mortgage/calculate", json=LOAN)

    assert response.status_code == 200
    body = response.json()
    assert body["monthlyPayment"] == "86468.37"
    assert body["payoffDate"] == "2044-01-15"
    assert body["loanTerm"] == 20
    assert body["paymentType"] == "annuity"


def test_amortization_applies_early_payment(client: TestClient) -> None:
    payload = dict(
        LOAN,
        earlyPayments=[{"id": "e1", "date": "2026-01-15", "amount": 1000000, "type": "reduceTerm"}],
    )

    response = client.post("/api/mortgage/amortization", json=payload)

    assert response.status_code == 200
    body = response.json()
    entry = body["schedule"][23]
    assert entry["month"] == 24
    assert entry["date"] == "2026-01-15"
    assert entry["extraPayment"] == "1000000.00"
    assert entry["extraPaymentType"] == "reduceTerm"
    assert body["schedule"][0]["extraPayment"] is None
    assert body["summary"]["newTerm"] < body["summary"]["originalTerm"] == 240
    assert body["summary"]["finalMonthlyPayment"] == body["summary"]["originalMonthlyPayment"]
    assert len(body["schedule"]) == body["summary"]["newTerm"]
    assert body["summary"]["paymentRecalculated"] is False


def test_amortization_applies_regular_payments(client: TestClient) -> None:
    payload = dict(
        LOAN,
        regularPayments=[
            {"id": "r1", "amount": 10000, "startMonth": "2024-03", "endMonth": "2024-05", "type": "reducePayment"}
        ],
    )

    response = client.post("/api/mortgage/amortization", json=payload)

    assert response.status_code == 200
    assert response.json()["summary"]["paymentRecalculated"] is True
    flagged = [entry for entry in response.json()["schedule"] if entry["isRegularPayment"]]
    assert [entry["date"] for entry in flagged] == ["2024-03-15", "2024-04-15", "2024-05-15"]


def test_malformed_request_is_rejected(client: TestClient) -> None:
    response = client.post("/api/mortgage/calculate", json={"interestRate": 5, "loanTerm": 10})

    assert response.status_code == 400


def test_non_positive_term_is_rejected(client: TestClient) -> None:
    response = client.post("/api/mortgage/calculate", json=dict(LOAN, loanTerm=0))

    assert response.status_code == 400


def test_engine_error_is_reported(client: TestClient) -> None:
    response = client.post("/api/mortgage/amortization", json=dict(LOAN, interestRate=150))

    assert response.status_code == 422
    body = response.json()
    assert body["kind"] == "invalid_input"
    assert body["field"] == "annual_interest_rate"
