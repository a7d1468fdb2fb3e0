"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from wage_ledger.calculators.types import Period


# ============================================================================
# Base schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None


class PeriodRequest(BaseModel):
    """Inclusive period carried in a request body."""

    period_start: date
    period_end: date

    def to_period(self) -> Period:
        return Period(self.period_start, self.period_end)


class AmountRequest(BaseModel):
    """A positive amount with an optional note."""

    amount: Decimal
    notes: str | None = None


# ============================================================================
# Worker schemas
# ============================================================================


class WorkerCreate(BaseModel):
    """Schema for registering a worker."""

    worker_code: str
    name: str
    hourly_rate: Decimal
    daily_working_hours: Decimal = Decimal("8")
    is_active: bool = True


class WorkerUpdate(BaseModel):
    """Partial worker update; omitted fields are left unchanged."""

    worker_code: str | None = None
    name: str | None = None
    hourly_rate: Decimal | None = None
    daily_working_hours: Decimal | None = None
    is_active: bool | None = None


class WorkerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    worker_id: UUID
    worker_code: str
    name: str
    hourly_rate: Decimal
    daily_working_hours: Decimal
    is_active: bool
    advance_balance: Decimal
    total_advance_taken: Decimal
    total_advance_repaid: Decimal
    created_at: datetime


# ============================================================================
# Ledger schemas
# ============================================================================


class LedgerPostRequest(BaseModel):
    """Schema for posting an advance, repayment or deposit."""

    worker_id: UUID
    amount: Decimal
    entry_date: date | None = None
    notes: str | None = None


class LedgerTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    transaction_id: UUID
    worker_id: UUID
    sequence_no: int
    kind: str
    amount: Decimal
    entry_date: date
    balance_after: Decimal
    notes: str | None = None
    source_type: str
    source_id: UUID | None = None
    created_at: datetime


class WorkerLedgerSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    worker_id: UUID
    worker_code: str
    name: str
    advance_balance: Decimal
    total_advance_taken: Decimal
    total_advance_repaid: Decimal


class ReconciliationResponse(BaseModel):
    """Outcome of folding one worker's ledger."""

    model_config = ConfigDict(from_attributes=True)

    worker_id: UUID
    cached_balance: Decimal
    folded_balance: Decimal
    last_balance_after: Decimal
    transaction_count: int
    chain_breaks: list[int]
    drift: Decimal
    is_consistent: bool


# ============================================================================
# Attendance schemas
# ============================================================================


class AttendanceUpsertRequest(BaseModel):
    """Create or replace one worker-day; status defaults from the holiday calendar."""

    worker_id: UUID
    work_date: date
    status: str | None = None
    hours_worked: Decimal = Decimal("0")
    notes: str | None = None


class AttendanceEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    entry_id: UUID
    worker_id: UUID
    work_date: date
    status: str
    hours_worked: Decimal
    total_pay: Decimal
    notes: str | None = None


class AttendanceTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    worker_id: UUID
    total_hours: Decimal
    total_pay: Decimal
    days_present: int
    days_absent: int
    days_half: int
    entry_count: int


class HolidayCreate(BaseModel):
    holiday_date: date
    name: str
    description: str | None = None


class HolidayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    holiday_id: UUID
    holiday_date: date
    name: str
    description: str | None = None


# ============================================================================
# Bonus schemas
# ============================================================================


class BonusCalculateRequest(PeriodRequest):
    """Schema for computing bonus drafts over a period."""

    deduction_per_absent_day: Decimal = Decimal("0")
    threshold_relative: bool | None = None
    persist: bool = False


class BonusDraftResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    worker_id: UUID
    hourly_rate: Decimal
    base_amount: Decimal
    days_worked: int
    days_absent: int
    chargeable_absences: int
    deduction_per_absent_day: Decimal
    penalty: Decimal
    extra_bonus: Decimal
    employee_deposit: Decimal
    gross_amount: Decimal
    net_amount: Decimal
    advance_balance: Decimal
    record_id: UUID | None = None
    is_finalized: bool = False


class BonusRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bonus_record_id: UUID
    worker_id: UUID
    period_start: date
    period_end: date
    schema_version: int
    hourly_rate: Decimal
    base_amount: Decimal
    days_worked: int
    days_absent: int
    chargeable_absences: int
    deduction_per_absent_day: Decimal
    penalty: Decimal
    extra_bonus: Decimal
    employee_deposit: Decimal
    gross_amount: Decimal
    net_amount: Decimal
    advance_balance_snapshot: Decimal
    is_paid: bool
    amount_paid: Decimal
    paid_date: date | None = None
    is_finalized: bool
    notes: str | None = None


class BonusCalculateResponse(BaseModel):
    """Drafts when computed only, records when persisted."""

    period_start: date
    period_end: date
    persisted: bool
    drafts: list[BonusDraftResponse] = Field(default_factory=list)
    records: list[BonusRecordResponse] = Field(default_factory=list)


class MarkPaidRequest(BaseModel):
    amount_paid: Decimal | None = None
    paid_date: date | None = None


class BonusSummaryResponse(BaseModel):
    period_start: date
    period_end: date
    total_workers: int
    workers_paid: int
    workers_pending: int
    total_gross: Decimal
    total_net: Decimal
    total_paid: Decimal
    total_pending: Decimal


class BonusFinalizeRequest(PeriodRequest):
    """New advances keyed by worker id are posted alongside the deposits."""

    new_advances: dict[UUID, Decimal] = Field(default_factory=dict)
    notes: str | None = None


# ============================================================================
# Salary schemas
# ============================================================================


class SalaryAdjustmentInput(BaseModel):
    worker_id: UUID
    deposit: Decimal = Decimal("0")
    new_advance: Decimal = Decimal("0")


class SalaryRequest(PeriodRequest):
    adjustments: list[SalaryAdjustmentInput] = Field(default_factory=list)
    notes: str | None = None


class SalaryDraftResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    worker_id: UUID
    hourly_rate: Decimal
    total_hours: Decimal
    total_pay: Decimal
    days_present: int
    days_absent: int
    deposit: Decimal
    new_advance: Decimal
    final_amount: Decimal
    advance_balance: Decimal


# ============================================================================
# Settlement history schemas
# ============================================================================


class SettlementLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    position: int
    worker_id: UUID
    worker_code: str
    worker_name: str
    hourly_rate: Decimal
    days_worked: int
    days_absent: int
    hours_worked: Decimal
    total_pay: Decimal
    base_amount: Decimal
    penalty: Decimal
    extra_bonus: Decimal
    deposit: Decimal
    new_advance: Decimal
    gross_amount: Decimal
    net_amount: Decimal
    advance_balance_at_save: Decimal


class SettlementHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    history_id: UUID
    kind: str
    period_start: date
    period_end: date
    saved_at: datetime
    total_base_amount: Decimal
    total_penalty: Decimal
    total_extra_bonus: Decimal
    total_hours: Decimal
    total_pay: Decimal
    total_deposit: Decimal
    total_new_advance: Decimal
    total_gross: Decimal
    total_net: Decimal
    total_advance_due: Decimal
    notes: str | None = None
    lines: list[SettlementLineResponse] = Field(default_factory=list)
