"""ORM models."""

from wage_ledger.models.attendance import AttendanceEntry, AttendanceStatus
from wage_ledger.models.base import Base, TimestampMixin
from wage_ledger.models.ledger import LedgerEntryKind, LedgerTransaction
from wage_ledger.models.settlement import (
    BONUS_RECORD_SCHEMA_VERSION,
    BonusRecord,
    SettlementHistory,
    SettlementKind,
    SettlementSnapshotLine,
)
from wage_ledger.models.worker import Holiday, Worker

__all__ = [
    "AttendanceEntry",
    "AttendanceStatus",
    "Base",
    "BONUS_RECORD_SCHEMA_VERSION",
    "BonusRecord",
    "Holiday",
    "LedgerEntryKind",
    "LedgerTransaction",
    "SettlementHistory",
    "SettlementKind",
    "SettlementSnapshotLine",
    "TimestampMixin",
    "Worker",
]
