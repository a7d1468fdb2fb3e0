"""API endpoint tests.

Tests the FastAPI endpoints end to end against an in-memory database.
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from wage_ledger.api.app import create_app
from wage_ledger.api.dependencies import get_db_session
from wage_ledger.database import get_engine


@pytest.fixture
def client(session_factory) -> TestClient:
    """Test client whose requests each get a fresh session on the test engine."""
    app = create_app()

    def override_db_session():
        with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    return TestClient(app)


def create_worker(client: TestClient, code: str, rate: str = "100") -> str:
    response = client.post(
        "/api/v1/workers",
        json={"worker_code": code, "name": f"Worker {code}", "hourly_rate": rate},
    )
    assert response.status_code == 201, response.text
    return response.json()["worker_id"]


def record_month(client: TestClient, worker_id: str, present: int, absent: int) -> None:
    day = date(2024, 3, 1)
    for i in range(present + absent):
        status = "present" if i < present else "absent"
        response = client.put(
            "/api/v1/attendance",
            json={
                "worker_id": worker_id,
                "work_date": day.isoformat(),
                "status": status,
                "hours_worked": "8",
            },
        )
        assert response.status_code == 200, response.text
        day += timedelta(days=1)


MARCH = {"period_start": "2024-03-01", "period_end": "2024-03-30"}


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_health_check(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"

    def test_readiness_check(self, client: TestClient):
        response = client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_readiness_without_schema(self):
        engine = get_engine("sqlite:///:memory:")
        app = create_app()

        def empty_db_session():
            with Session(engine) as session:
                yield session

        app.dependency_overrides[get_db_session] = empty_db_session
        response = TestClient(app).get("/ready")
        engine.dispose()

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"

    def test_liveness_check(self, client: TestClient):
        response = client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestWorkerEndpoints:
    def test_create_and_get(self, client: TestClient):
        worker_id = create_worker(client, "W001")

        response = client.get(f"/api/v1/workers/{worker_id}")
        assert response.status_code == 200
        assert response.json()["worker_code"] == "W001"
        assert Decimal(response.json()["advance_balance"]) == 0

        assert len(client.get("/api/v1/workers").json()) == 1

    def test_duplicate_code_conflict(self, client: TestClient):
        create_worker(client, "W001")
        response = client.post(
            "/api/v1/workers",
            json={"worker_code": "W001", "name": "Someone else", "hourly_rate": "90"},
        )
        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    def test_unknown_worker(self, client: TestClient):
        response = client.get(f"/api/v1/workers/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_malformed_body_is_validation_error(self, client: TestClient):
        response = client.post("/api/v1/workers", json={"name": "No code"})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_update_and_deactivate(self, client: TestClient):
        worker_id = create_worker(client, "W001")

        response = client.put(
            f"/api/v1/workers/{worker_id}", json={"name": "Renamed", "hourly_rate": "120"}
        )
        assert response.status_code == 200, response.text
        assert response.json()["name"] == "Renamed"
        assert Decimal(response.json()["hourly_rate"]) == Decimal("120")
        assert response.json()["worker_code"] == "W001"

        response = client.delete(f"/api/v1/workers/{worker_id}")
        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert client.get("/api/v1/workers", params={"active_only": True}).json() == []
        assert len(client.get("/api/v1/workers").json()) == 1

    def test_update_conflicting_code(self, client: TestClient):
        create_worker(client, "W001")
        other = create_worker(client, "W002")
        response = client.put(f"/api/v1/workers/{other}", json={"worker_code": "W001"})
        assert response.status_code == 409

    def test_deactivate_unknown_worker(self, client: TestClient):
        response = client.delete(f"/api/v1/workers/{uuid4()}")
        assert response.status_code == 404


class TestLedgerEndpoints:
    def test_advance_deposit_flow(self, client: TestClient):
        worker_id = create_worker(client, "W001")

        response = client.post(
            "/api/v1/ledger/advance", json={"worker_id": worker_id, "amount": "5000"}
        )
        assert response.status_code == 201
        assert Decimal(response.json()["balance_after"]) == Decimal("5000")

        response = client.post(
            "/api/v1/ledger/deposit", json={"worker_id": worker_id, "amount": "6000"}
        )
        assert response.status_code == 422
        assert response.json()["code"] == "INSUFFICIENT_BALANCE"

        response = client.post(
            "/api/v1/ledger/deposit", json={"worker_id": worker_id, "amount": "5000"}
        )
        assert response.status_code == 201
        assert Decimal(response.json()["balance_after"]) == 0

        history = client.get(f"/api/v1/ledger/workers/{worker_id}/history").json()
        assert [tx["kind"] for tx in history] == ["advance", "deposit"]

        reconcile = client.get(f"/api/v1/ledger/workers/{worker_id}/reconcile").json()
        assert reconcile["is_consistent"] is True
        assert reconcile["transaction_count"] == 2

    def test_non_positive_amount(self, client: TestClient):
        worker_id = create_worker(client, "W001")
        response = client.post(
            "/api/v1/ledger/advance", json={"worker_id": worker_id, "amount": "0"}
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_transactions_and_summary(self, client: TestClient):
        worker_id = create_worker(client, "W001")
        client.post("/api/v1/ledger/advance", json={"worker_id": worker_id, "amount": "300"})
        client.post("/api/v1/ledger/repayment", json={"worker_id": worker_id, "amount": "100"})

        repayments = client.get("/api/v1/ledger/transactions", params={"kind": "repayment"}).json()
        assert len(repayments) == 1

        summary = client.get("/api/v1/ledger/summary").json()
        assert Decimal(summary[0]["advance_balance"]) == Decimal("200")
        assert Decimal(summary[0]["total_advance_repaid"]) == Decimal("100")


class TestAttendanceEndpoints:
    def test_upsert_replaces_and_aggregates(self, client: TestClient):
        worker_id = create_worker(client, "W001")
        for hours in ("8", "6"):
            response = client.put(
                "/api/v1/attendance",
                json={"worker_id": worker_id, "work_date": "2024-03-04", "hours_worked": hours},
            )
            assert response.status_code == 200

        entries = client.get("/api/v1/attendance", params={"worker_id": worker_id}).json()
        assert len(entries) == 1
        assert Decimal(entries[0]["hours_worked"]) == Decimal("6")

        totals = client.get("/api/v1/attendance/aggregate", params=MARCH).json()
        assert Decimal(totals[0]["total_pay"]) == Decimal("600")

        response = client.delete(f"/api/v1/attendance/{entries[0]['entry_id']}")
        assert response.status_code == 204
        assert client.get("/api/v1/attendance").json() == []

    def test_holiday_defaults_status(self, client: TestClient):
        worker_id = create_worker(client, "W001")
        response = client.post(
            "/api/v1/holidays", json={"holiday_date": "2024-03-25", "name": "Holi"}
        )
        assert response.status_code == 201

        entry = client.put(
            "/api/v1/attendance", json={"worker_id": worker_id, "work_date": "2024-03-25"}
        ).json()
        assert entry["status"] == "holiday"
        assert [h["name"] for h in client.get("/api/v1/holidays", params={"year": 2024}).json()] == ["Holi"]

    def test_inverted_period(self, client: TestClient):
        response = client.get(
            "/api/v1/attendance/aggregate",
            params={"period_start": "2024-03-31", "period_end": "2024-03-01"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestBonusEndpoints:
    """Calculate, adjust, pay and finalize through the API."""

    def test_bonus_lifecycle(self, client: TestClient):
        x = create_worker(client, "W001")
        y = create_worker(client, "W002")
        record_month(client, x, present=28, absent=2)
        record_month(client, y, present=30, absent=0)
        client.post("/api/v1/ledger/advance", json={"worker_id": x, "amount": "2000"})

        preview = client.post(
            "/api/v1/bonus/calculate", json={**MARCH, "deduction_per_absent_day": "50"}
        ).json()
        assert preview["persisted"] is False
        assert client.get("/api/v1/bonus", params=MARCH).json() == []

        response = client.post(
            "/api/v1/bonus/calculate",
            json={**MARCH, "deduction_per_absent_day": "50", "persist": True},
        )
        assert response.status_code == 200
        records = {r["worker_id"]: r for r in response.json()["records"]}
        record_id = records[x]["bonus_record_id"]
        assert Decimal(records[x]["net_amount"]) == Decimal("23900")

        response = client.post(
            f"/api/v1/bonus/{record_id}/employee-deposit", json={"amount": "24000"}
        )
        assert response.status_code == 422
        assert response.json()["code"] == "EXCEEDS_ENTITLEMENT"

        response = client.post(
            f"/api/v1/bonus/{record_id}/employee-deposit", json={"amount": "2000"}
        )
        assert Decimal(response.json()["net_amount"]) == Decimal("21900")

        response = client.post(f"/api/v1/bonus/{record_id}/extra-bonus", json={"amount": "100"})
        assert Decimal(response.json()["gross_amount"]) == Decimal("24000")

        response = client.post(f"/api/v1/bonus/{record_id}/pay", json={})
        assert response.json()["is_paid"] is True

        summary = client.get("/api/v1/bonus/summary", params=MARCH).json()
        assert summary["workers_paid"] == 1
        assert summary["workers_pending"] == 1

        response = client.post(
            "/api/v1/bonus/finalize", json={**MARCH, "new_advances": {y: "500"}}
        )
        assert response.status_code == 201, response.text
        history = response.json()
        assert Decimal(history["total_deposit"]) == Decimal("2000")
        assert Decimal(history["total_new_advance"]) == Decimal("500")

        balances = {
            s["worker_id"]: Decimal(s["advance_balance"])
            for s in client.get("/api/v1/ledger/summary").json()
        }
        assert balances == {x: Decimal("0"), y: Decimal("500")}

        response = client.post(f"/api/v1/bonus/{record_id}/extra-bonus", json={"amount": "1"})
        assert response.status_code == 409

    def test_finalize_failure_names_worker(self, client: TestClient):
        x = create_worker(client, "W001")
        record_month(client, x, present=30, absent=0)
        records = client.post(
            "/api/v1/bonus/calculate", json={**MARCH, "persist": True}
        ).json()["records"]
        client.post(
            f"/api/v1/bonus/{records[0]['bonus_record_id']}/employee-deposit",
            json={"amount": "10"},
        )

        response = client.post("/api/v1/bonus/finalize", json=MARCH)

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "INSUFFICIENT_BALANCE"
        assert body["context"]["worker_id"] == x
        assert client.get("/api/v1/settlements").json() == []


class TestSalaryAndSettlementEndpoints:
    def test_salary_finalize_and_history_delete(self, client: TestClient):
        worker_id = create_worker(client, "W001")
        record_month(client, worker_id, present=5, absent=0)
        client.post("/api/v1/ledger/advance", json={"worker_id": worker_id, "amount": "3000"})
        adjustments = [{"worker_id": worker_id, "deposit": "2000", "new_advance": "0"}]

        drafts = client.post(
            "/api/v1/salary/calculate", json={**MARCH, "adjustments": adjustments}
        ).json()
        assert Decimal(drafts[0]["total_pay"]) == Decimal("4000")
        assert Decimal(drafts[0]["final_amount"]) == Decimal("2000")

        response = client.post(
            "/api/v1/salary/finalize", json={**MARCH, "adjustments": adjustments}
        )
        assert response.status_code == 201, response.text
        history_id = response.json()["history_id"]

        listed = client.get("/api/v1/settlements", params={"kind": "salary"}).json()
        assert [h["history_id"] for h in listed] == [history_id]
        assert len(client.get(f"/api/v1/settlements/{history_id}").json()["lines"]) == 1

        assert client.delete(f"/api/v1/settlements/{history_id}").status_code == 204
        assert client.get("/api/v1/settlements").json() == []

        history = client.get(f"/api/v1/ledger/workers/{worker_id}/history").json()
        assert len(history) == 2
        assert Decimal(history[-1]["balance_after"]) == Decimal("1000")

    def test_duplicate_adjustment_rejected(self, client: TestClient):
        worker_id = create_worker(client, "W001")
        adjustments = [{"worker_id": worker_id}, {"worker_id": worker_id}]
        response = client.post(
            "/api/v1/salary/calculate", json={**MARCH, "adjustments": adjustments}
        )
        assert response.status_code == 400
