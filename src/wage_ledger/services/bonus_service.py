"""Bonus drafts - compute, adjust, pay and finalize.

Drafts are recomputed from attendance on demand. The manual adjustments on
a persisted draft (extra bonus, employee deposit) are carried into every
recompute of the same period; finalized drafts are never rewritten.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wage_ledger.calculators.bonus import (
    BonusAdjustments,
    BonusCalculator,
    gross_bonus,
    net_bonus,
)
from wage_ledger.calculators.types import (
    ZERO,
    BonusDraft,
    Period,
    SettlementLine,
    money,
    to_decimal,
)
from wage_ledger.config import get_settings
from wage_ledger.errors import (
    ConflictError,
    ExceedsEntitlementError,
    NotFoundError,
    ValidationError,
)
from wage_ledger.models import (
    BONUS_RECORD_SCHEMA_VERSION,
    BonusRecord,
    SettlementHistory,
    SettlementKind,
    Worker,
)
from wage_ledger.services.attendance_service import AttendanceService
from wage_ledger.services.ledger_service import positive_amount
from wage_ledger.services.settlement_service import SettlementService
from wage_ledger.services.worker_service import worker_profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BonusSummary:
    """Payment position of all drafts in a period."""

    period: Period
    total_workers: int
    workers_paid: int
    workers_pending: int
    total_gross: Decimal
    total_net: Decimal
    total_paid: Decimal
    total_pending: Decimal


class BonusService:
    """Bonus engine backed by persisted drafts."""

    def __init__(
        self,
        db: Session,
        attendance: AttendanceService | None = None,
        settlements: SettlementService | None = None,
    ):
        self.db = db
        self.attendance = attendance or AttendanceService(db)
        self.settlements = settlements or SettlementService(db)

    def compute_drafts(
        self,
        period: Period,
        deduction_per_absent_day: Decimal | int | str = ZERO,
        threshold_relative: bool | None = None,
    ) -> list[BonusDraft]:
        """Compute drafts for every active worker without persisting them."""
        return self._calculate(
            period, deduction_per_absent_day, threshold_relative, self._records_for(period)
        )

    def compute_and_persist(
        self,
        period: Period,
        deduction_per_absent_day: Decimal | int | str = ZERO,
        threshold_relative: bool | None = None,
    ) -> list[BonusRecord]:
        """Recompute drafts and upsert one record per worker and period.

        The period's records are locked and reloaded before the drafts are
        computed, so adjustments committed elsewhere are carried forward.
        Returns every record of the period, finalized ones included.
        """
        existing = {r.worker_id: r for r in self._records_for(period, lock=True)}
        drafts = self._calculate(
            period, deduction_per_absent_day, threshold_relative, existing.values()
        )

        written = 0
        for draft in drafts:
            record = existing.get(draft.worker_id)
            if record is not None and record.is_finalized:
                continue
            if record is None:
                record = BonusRecord(
                    worker_id=draft.worker_id,
                    period_start=period.start,
                    period_end=period.end,
                )
                self.db.add(record)
            self._apply_draft(record, draft)
            written += 1

        try:
            with self.db.begin_nested():
                self.db.flush()
        except IntegrityError as e:
            raise ConflictError(
                f"Bonus drafts for {period.start}..{period.end} were written concurrently"
            ) from e

        logger.info(
            "Computed bonus for %s..%s: %d drafts written, %d workers",
            period.start,
            period.end,
            written,
            len(drafts),
        )
        return self.list_records(period)

    def add_extra_bonus(
        self, record_id: UUID, amount: Decimal | int | str, notes: str | None = None
    ) -> BonusRecord:
        value = positive_amount(amount)
        record = self._lock_record(record_id)
        self._ensure_open(record)

        record.extra_bonus = money(Decimal(record.extra_bonus) + value)
        record.gross_amount = gross_bonus(
            Decimal(record.base_amount), Decimal(record.penalty), Decimal(record.extra_bonus)
        )
        record.net_amount = net_bonus(
            Decimal(record.gross_amount), Decimal(record.employee_deposit)
        )
        record.append_note(
            f"{date.today()}: extra bonus {value}" + (f" ({notes})" if notes else "")
        )
        self.db.flush()

        logger.info("Extra bonus %s on bonus record %s", value, record_id)
        return record

    def add_employee_deposit(
        self, record_id: UUID, amount: Decimal | int | str, notes: str | None = None
    ) -> BonusRecord:
        """Withhold part of the gross bonus as a deposit.

        Raises:
            ExceedsEntitlementError: amount larger than the gross bonus
            ConflictError: record already finalized
        """
        value = positive_amount(amount)
        record = self._lock_record(record_id)
        self._ensure_open(record)

        gross = Decimal(record.gross_amount)
        if value > gross:
            raise ExceedsEntitlementError(value, gross)

        record.employee_deposit = money(Decimal(record.employee_deposit) + value)
        record.net_amount = net_bonus(gross, Decimal(record.employee_deposit))
        record.append_note(
            f"{date.today()}: employee deposit {value}" + (f" ({notes})" if notes else "")
        )
        self.db.flush()

        logger.info("Employee deposit %s on bonus record %s", value, record_id)
        return record

    def mark_paid(
        self,
        record_id: UUID,
        amount_paid: Decimal | int | str | None = None,
        paid_date: date | None = None,
    ) -> BonusRecord:
        """Record the payout. The advance ledger is not touched."""
        record = self._lock_record(record_id)
        if amount_paid is None:
            paid = Decimal(record.net_amount)
        else:
            paid = money(to_decimal(amount_paid, "amount_paid"))
            if paid < 0:
                raise ValidationError("amount_paid must not be negative")

        record.is_paid = True
        record.amount_paid = paid
        record.paid_date = paid_date or date.today()
        self.db.flush()

        logger.info("Bonus record %s paid %s on %s", record_id, paid, record.paid_date)
        return record

    def get_record(self, record_id: UUID) -> BonusRecord:
        record = self.db.get(BonusRecord, record_id)
        if record is None:
            raise NotFoundError("Bonus record", record_id)
        return record

    def list_records(self, period: Period | None = None) -> list[BonusRecord]:
        query = select(BonusRecord).join(Worker, Worker.worker_id == BonusRecord.worker_id)
        if period is not None:
            query = query.where(
                BonusRecord.period_start == period.start,
                BonusRecord.period_end == period.end,
            )
        query = query.order_by(BonusRecord.period_start.desc(), Worker.worker_code)
        return list(self.db.execute(query).scalars().all())

    def summary(self, period: Period) -> BonusSummary:
        records = self.list_records(period)
        paid = [r for r in records if r.is_paid]
        pending = [r for r in records if not r.is_paid]
        return BonusSummary(
            period=period,
            total_workers=len(records),
            workers_paid=len(paid),
            workers_pending=len(pending),
            total_gross=money(sum((Decimal(r.gross_amount) for r in records), ZERO)),
            total_net=money(sum((Decimal(r.net_amount) for r in records), ZERO)),
            total_paid=money(sum((Decimal(r.amount_paid) for r in paid), ZERO)),
            total_pending=money(sum((Decimal(r.net_amount) for r in pending), ZERO)),
        )

    def finalize(
        self,
        period: Period,
        new_advances: Mapping[UUID, Decimal] | None = None,
        notes: str | None = None,
    ) -> SettlementHistory:
        """Settle every open draft of the period.

        Each employee deposit is posted to the ledger as a deposit and each
        entry in ``new_advances`` as an advance; the drafts are then marked
        finalized. A failed batch leaves the drafts open.
        """
        new_advances = dict(new_advances or {})
        records = [r for r in self.list_records(period) if not r.is_finalized]
        if not records:
            raise ValidationError(
                f"No open bonus drafts for {period.start}..{period.end}; compute them first"
            )
        unknown = set(new_advances) - {r.worker_id for r in records}
        if unknown:
            raise ValidationError(
                f"New advances given for workers without an open draft: "
                f"{', '.join(sorted(str(w) for w in unknown))}"
            )

        lines = [
            SettlementLine(
                worker_id=r.worker_id,
                deposit=Decimal(r.employee_deposit),
                new_advance=money(
                    to_decimal(new_advances.get(r.worker_id, ZERO), "new_advance")
                ),
                days_worked=r.days_worked,
                days_absent=r.days_absent,
                base_amount=Decimal(r.base_amount),
                penalty=Decimal(r.penalty),
                extra_bonus=Decimal(r.extra_bonus),
                gross_amount=Decimal(r.gross_amount),
                net_amount=Decimal(r.net_amount),
            )
            for r in records
        ]
        history = self.settlements.finalize(
            kind=SettlementKind.BONUS, period=period, lines=lines, notes=notes
        )

        for record in records:
            record.is_finalized = True
            record.append_note(f"{date.today()}: finalized in settlement {history.history_id}")
        self.db.flush()
        return history

    def _calculate(
        self,
        period: Period,
        deduction_per_absent_day: Decimal | int | str,
        threshold_relative: bool | None,
        records: Iterable[BonusRecord],
    ) -> list[BonusDraft]:
        if threshold_relative is None:
            threshold_relative = get_settings().bonus_threshold_relative
        calculator = BonusCalculator(
            to_decimal(deduction_per_absent_day, "deduction_per_absent_day"), threshold_relative
        )

        workers = self.db.execute(
            select(Worker)
            .where(Worker.is_active.is_(True))
            .execution_options(populate_existing=True)
        ).scalars().all()
        totals = self.attendance.aggregate(period)
        prior = {
            record.worker_id: BonusAdjustments(
                extra_bonus=Decimal(record.extra_bonus),
                employee_deposit=Decimal(record.employee_deposit),
                record_id=record.bonus_record_id,
                is_finalized=record.is_finalized,
            )
            for record in records
        }
        return calculator.calculate(
            period, [worker_profile(w) for w in workers], totals, prior
        )

    def _apply_draft(self, record: BonusRecord, draft: BonusDraft) -> None:
        record.schema_version = BONUS_RECORD_SCHEMA_VERSION
        record.hourly_rate = draft.hourly_rate
        record.base_amount = draft.base_amount
        record.days_worked = draft.days_worked
        record.days_absent = draft.days_absent
        record.chargeable_absences = draft.chargeable_absences
        record.deduction_per_absent_day = draft.deduction_per_absent_day
        record.penalty = draft.penalty
        record.extra_bonus = draft.extra_bonus
        record.employee_deposit = draft.employee_deposit
        record.gross_amount = draft.gross_amount
        record.net_amount = draft.net_amount
        record.advance_balance_snapshot = draft.advance_balance

    def _records_for(self, period: Period, lock: bool = False) -> list[BonusRecord]:
        query = select(BonusRecord).where(
            BonusRecord.period_start == period.start,
            BonusRecord.period_end == period.end,
        )
        if lock:
            query = query.with_for_update()
        query = query.execution_options(populate_existing=True)
        return list(self.db.execute(query).scalars().all())

    def _lock_record(self, record_id: UUID) -> BonusRecord:
        record = self.db.execute(
            select(BonusRecord)
            .where(BonusRecord.bonus_record_id == record_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if record is None:
            raise NotFoundError("Bonus record", record_id)
        return record

    @staticmethod
    def _ensure_open(record: BonusRecord) -> None:
        if record.is_finalized:
            raise ConflictError(f"Bonus record {record.bonus_record_id} is already finalized")
