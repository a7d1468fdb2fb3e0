"""Settlement history - finalize drafts into immutable snapshots.

Finalize is the only batch writer to the advance ledger. Batch policy: the
whole batch runs inside one SAVEPOINT. If any worker fails, every ledger
posting from the batch is rolled back and SettlementBatchError names the
failing worker. No history record is written for a failed batch.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import extract, select
from sqlalchemy.orm import Session, selectinload

from wage_ledger.calculators.types import ZERO, Period, SettlementLine, money
from wage_ledger.errors import (
    NotFoundError,
    SettlementBatchError,
    ValidationError,
    WageLedgerError,
)
from wage_ledger.models import (
    LedgerEntryKind,
    SettlementHistory,
    SettlementKind,
    SettlementSnapshotLine,
    Worker,
)
from wage_ledger.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

SETTLEMENT_SOURCE = "settlement"


class SettlementService:
    """Persist settlement snapshots and post their ledger effects.

    Processing order is ascending worker_id. Within a worker the deposit is
    posted before the new advance, so a deposit is checked against the
    balance the worker carried into the settlement.
    """

    def __init__(self, db: Session, ledger: LedgerService | None = None):
        self.db = db
        self.ledger = ledger or LedgerService(db)

    def finalize(
        self,
        *,
        kind: SettlementKind | str,
        period: Period,
        lines: Sequence[SettlementLine],
        notes: str | None = None,
        as_of: date | None = None,
    ) -> SettlementHistory:
        """Post each worker's deposit/new advance and save one snapshot.

        Raises:
            ValidationError: unknown kind, empty batch, duplicate worker,
                negative deposit/new advance
            SettlementBatchError: a worker failed; nothing from the batch
                was kept
        """
        settlement_kind = self._validate_kind(kind)
        self._validate_lines(lines)
        posting_date = as_of or date.today()

        history = SettlementHistory(
            history_id=uuid4(),
            kind=settlement_kind.value,
            period_start=period.start,
            period_end=period.end,
            notes=notes,
        )

        ordered = sorted(lines, key=lambda line: line.worker_id)
        current: UUID | None = None
        try:
            with self.db.begin_nested():
                for position, line in enumerate(ordered):
                    current = line.worker_id
                    history.lines.append(
                        self._settle_line(history, settlement_kind, period, position, line, posting_date)
                    )
                current = None
                self._apply_totals(history)
                self.db.add(history)
                self.db.flush()
        except WageLedgerError as e:
            if current is None:
                raise
            logger.warning(
                "%s settlement for %s..%s rolled back at worker %s: %s",
                settlement_kind.value,
                period.start,
                period.end,
                current,
                e.message,
            )
            raise SettlementBatchError(current, e) from e

        logger.info(
            "Finalized %s settlement %s for %s..%s (%d workers, deposits %s, new advances %s)",
            settlement_kind.value,
            history.history_id,
            period.start,
            period.end,
            len(history.lines),
            history.total_deposit,
            history.total_new_advance,
        )
        return history

    def list_history(
        self,
        *,
        kind: SettlementKind | str | None = None,
        year: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[SettlementHistory]:
        """Saved snapshots, newest first."""
        query = select(SettlementHistory).options(selectinload(SettlementHistory.lines))
        if kind is not None:
            query = query.where(SettlementHistory.kind == self._validate_kind(kind).value)
        if year is not None:
            query = query.where(extract("year", SettlementHistory.period_end) == year)
        if start is not None:
            query = query.where(SettlementHistory.period_start >= start)
        if end is not None:
            query = query.where(SettlementHistory.period_end <= end)
        query = query.order_by(SettlementHistory.saved_at.desc())
        return list(self.db.execute(query).scalars().all())

    def get_history(self, history_id: UUID) -> SettlementHistory:
        history = self.db.execute(
            select(SettlementHistory)
            .where(SettlementHistory.history_id == history_id)
            .options(selectinload(SettlementHistory.lines))
        ).scalar_one_or_none()
        if history is None:
            raise NotFoundError("Settlement history", history_id)
        return history

    def delete_history(self, history_id: UUID) -> None:
        """Remove the snapshot only; ledger postings it caused stay."""
        history = self.get_history(history_id)
        self.db.delete(history)
        self.db.flush()
        logger.info("Deleted %s settlement history %s", history.kind, history_id)

    def _settle_line(
        self,
        history: SettlementHistory,
        kind: SettlementKind,
        period: Period,
        position: int,
        line: SettlementLine,
        posting_date: date,
    ) -> SettlementSnapshotLine:
        worker = self.db.get(Worker, line.worker_id)
        if worker is None:
            raise NotFoundError("Worker", line.worker_id)

        deposit = money(line.deposit)
        new_advance = money(line.new_advance)
        label = f"{kind.value} settlement {period.start}..{period.end}"

        if deposit > 0:
            self.ledger.append_transaction(
                worker_id=worker.worker_id,
                kind=LedgerEntryKind.DEPOSIT,
                amount=deposit,
                entry_date=posting_date,
                notes=f"{worker.name} deposited {deposit} from {label}",
                source_type=SETTLEMENT_SOURCE,
                source_id=history.history_id,
            )
        if new_advance > 0:
            self.ledger.append_transaction(
                worker_id=worker.worker_id,
                kind=LedgerEntryKind.ADVANCE,
                amount=new_advance,
                entry_date=posting_date,
                notes=f"New advance to {worker.name} at {label}",
                source_type=SETTLEMENT_SOURCE,
                source_id=history.history_id,
            )

        return SettlementSnapshotLine(
            position=position,
            worker_id=worker.worker_id,
            worker_code=worker.worker_code,
            worker_name=worker.name,
            hourly_rate=worker.hourly_rate,
            days_worked=line.days_worked,
            days_absent=line.days_absent,
            hours_worked=line.hours_worked,
            total_pay=money(line.total_pay),
            base_amount=money(line.base_amount),
            penalty=money(line.penalty),
            extra_bonus=money(line.extra_bonus),
            deposit=deposit,
            new_advance=new_advance,
            gross_amount=money(line.gross_amount),
            net_amount=money(line.net_amount),
            advance_balance_at_save=Decimal(worker.advance_balance),
        )

    @staticmethod
    def _apply_totals(history: SettlementHistory) -> None:
        def total(attr: str) -> Decimal:
            return money(sum((getattr(line, attr) for line in history.lines), ZERO))

        history.total_base_amount = total("base_amount")
        history.total_penalty = total("penalty")
        history.total_extra_bonus = total("extra_bonus")
        history.total_hours = total("hours_worked")
        history.total_pay = total("total_pay")
        history.total_deposit = total("deposit")
        history.total_new_advance = total("new_advance")
        history.total_gross = total("gross_amount")
        history.total_net = total("net_amount")
        history.total_advance_due = total("advance_balance_at_save")

    @staticmethod
    def _validate_kind(kind: SettlementKind | str) -> SettlementKind:
        try:
            return SettlementKind(kind)
        except ValueError as e:
            raise ValidationError(f"Invalid settlement kind: {kind!r}") from e

    @staticmethod
    def _validate_lines(lines: Sequence[SettlementLine]) -> None:
        if not lines:
            raise ValidationError("Settlement requires at least one worker record")
        seen: set[UUID] = set()
        for line in lines:
            if line.worker_id in seen:
                raise ValidationError(f"Worker {line.worker_id} appears more than once")
            seen.add(line.worker_id)
            if not (line.deposit.is_finite() and line.new_advance.is_finite()):
                raise ValidationError(f"Invalid amount for worker {line.worker_id}")
            if line.deposit < 0 or line.new_advance < 0:
                raise ValidationError("Deposit and new advance must not be negative")
