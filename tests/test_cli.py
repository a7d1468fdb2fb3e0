"""Tests for the operator CLI."""

import json
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from wage_ledger.cli import WageLedgerCli
from wage_ledger.database import get_engine
from wage_ledger.models import Worker
from wage_ledger.services.ledger_service import LedgerService
from wage_ledger.services.worker_service import WorkerService


@pytest.fixture
def database_url(tmp_path) -> str:
    url = f"sqlite:///{tmp_path / 'ledger.db'}"
    assert WageLedgerCli().run(["--database-url", url, "init-db"]) == 0
    return url


@pytest.fixture
def worker_id(database_url):
    """One worker with a 100 advance."""
    engine = get_engine(database_url)
    with Session(engine) as session:
        worker = WorkerService(session).create_worker(
            worker_code="W001", name="Asha", hourly_rate=Decimal("100")
        )
        worker_id = worker.worker_id
        LedgerService(session).give_advance(worker_id, Decimal("100"))
        session.commit()
    engine.dispose()
    return worker_id


class TestCli:
    def test_no_command_prints_help(self, capsys):
        assert WageLedgerCli().run([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_reconcile_clean(self, database_url, worker_id, capsys):
        assert WageLedgerCli().run(["--database-url", database_url, "reconcile"]) == 0
        assert "1 workers checked, 0 with drift" in capsys.readouterr().out

    def test_reconcile_drift_exits_nonzero(self, database_url, worker_id, capsys):
        engine = get_engine(database_url)
        with Session(engine) as session:
            session.get(Worker, worker_id).advance_balance = Decimal("40")
            session.commit()
        engine.dispose()

        code = WageLedgerCli().run(
            ["--database-url", database_url, "reconcile", "--worker-id", str(worker_id), "--json"]
        )

        assert code == 1
        result = json.loads(capsys.readouterr().out.strip())
        assert result["consistent"] is False
        assert result["folded_balance"] == "100.00"

    def test_balance(self, database_url, worker_id, capsys):
        code = WageLedgerCli().run(
            ["--database-url", database_url, "balance", "--worker-id", str(worker_id)]
        )
        assert code == 0
        out = capsys.readouterr().out
        assert "100.00" in out
        assert "Transactions:" in out

    def test_balance_unknown_worker(self, database_url, capsys):
        code = WageLedgerCli().run(
            ["--database-url", database_url, "balance", "--worker-id", str(uuid4())]
        )
        assert code == 2
        assert "NOT_FOUND" in capsys.readouterr().err
