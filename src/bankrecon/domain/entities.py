"""Domain model entities for bankrecon.

These are pure data classes representing reconciliation concepts,
independent of the database schema. Mappers in the database layer build
them from ORM rows.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union


class MatchStatus(str, Enum):
    """State of a statement line in the matching workflow."""

    UNMATCHED = "unmatched"
    SUGGESTED = "suggested"
    CONFIRMED = "confirmed"
    IGNORED = "ignored"


PENDING_MATCH_STATUSES = (MatchStatus.UNMATCHED, MatchStatus.SUGGESTED)


class StatementStatus(str, Enum):
    """Lifecycle status of an imported statement."""

    IMPORTED = "imported"
    RECONCILED = "reconciled"


class ReconciliationStatus(str, Enum):
    """Status of a period reconciliation."""

    CLOSED = "closed"


class EntryStatus(str, Enum):
    """Status of a journal entry owning installments."""

    OPEN = "open"
    PAID = "paid"
    CANCELED = "canceled"


class InstallmentStatus(str, Enum):
    """Payment status of an installment."""

    PLANNED = "planned"
    PENDING = "pending"
    PAID = "paid"
    CANCELED = "canceled"


@dataclass(frozen=True)
class FinancialAccount:
    """Bank account domain entity."""

    id: int
    name: str
    bank_name: str
    current_balance: Decimal
    created_at: datetime


@dataclass(frozen=True)
class JournalEntry:
    """Accounting entry that owns one or more installments."""

    id: int
    financial_account_id: int
    description: Optional[str]
    status: EntryStatus
    created_at: datetime


@dataclass(frozen=True)
class Installment:
    """Scheduled payment obligation eligible for matching."""

    id: int
    journal_entry_id: int
    financial_account_id: int
    number: int
    total_amount: Decimal
    due_date: Optional[date]
    movement_date: Optional[date]
    status: InstallmentStatus
    payment_date: Optional[date]
    entry_description: Optional[str] = None
    entry_status: EntryStatus = EntryStatus.OPEN

    @property
    def is_paid(self) -> bool:
        return self.status == InstallmentStatus.PAID


@dataclass(frozen=True)
class Suggestion:
    """One ranked candidate installment for a statement line."""

    installment_id: int
    journal_entry_id: int
    confidence: int
    entry_description: Optional[str]
    due_date: Optional[date]
    installment_number: int


@dataclass(frozen=True)
class UnmatchedMeta:
    """Line has no suggestion above the threshold (candidates may still exist)."""

    candidates: tuple[Suggestion, ...] = ()


@dataclass(frozen=True)
class SuggestedMeta:
    """Line has a top candidate at or above the suggestion threshold."""

    candidates: tuple[Suggestion, ...] = ()


@dataclass(frozen=True)
class ConfirmedMeta:
    """Line was confirmed against an installment."""

    confirmed_at: datetime
    candidates: tuple[Suggestion, ...] = ()


@dataclass(frozen=True)
class IgnoredMeta:
    """Line was explicitly set aside."""

    ignored_at: datetime
    reason: Optional[str] = None
    candidates: tuple[Suggestion, ...] = ()


MatchMeta = Union[UnmatchedMeta, SuggestedMeta, ConfirmedMeta, IgnoredMeta]


@dataclass(frozen=True)
class Statement:
    """Imported bank statement file."""

    id: int
    financial_account_id: int
    reference: str
    original_name: str
    hash: str
    imported_at: datetime
    imported_by: Optional[str]
    status: StatementStatus
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def opening_balance(self) -> Optional[Decimal]:
        value = self.meta.get("opening_balance")
        return Decimal(str(value)) if value is not None else None

    @property
    def closing_balance(self) -> Optional[Decimal]:
        value = self.meta.get("closing_balance")
        return Decimal(str(value)) if value is not None else None

    @property
    def storage_path(self) -> Optional[str]:
        return self.meta.get("storage_path")


@dataclass(frozen=True)
class StatementLine:
    """One transaction row of an imported statement."""

    id: int
    statement_id: int
    position: int
    transaction_date: date
    description: str
    amount: Decimal
    balance: Optional[Decimal]
    document_number: Optional[str]
    fit_id: Optional[str]
    match_status: MatchStatus
    match_meta: MatchMeta
    matched_installment_id: Optional[int]
    matched_by: Optional[str]
    matched_at: Optional[datetime]

    @property
    def is_pending(self) -> bool:
        return self.match_status in PENDING_MATCH_STATUSES

    @property
    def suggestions(self) -> tuple[Suggestion, ...]:
        return self.match_meta.candidates


@dataclass(frozen=True)
class MatchRecord:
    """Immutable audit row written for every confirmation."""

    id: int
    line_id: int
    installment_id: int
    journal_entry_id: int
    confidence: Optional[int]
    matched_at: datetime
    matched_by: Optional[str]


@dataclass(frozen=True)
class Reconciliation:
    """Locked accounting period for one account."""

    id: int
    financial_account_id: int
    period_start: date
    period_end: date
    opening_balance: Decimal
    closing_balance: Decimal
    status: ReconciliationStatus
    locked_by: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class StatementSummary:
    """Line counts and amount sums for one statement."""

    statement_id: int
    total_lines: int
    pending_lines: int
    suggested_lines: int
    confirmed_lines: int
    ignored_lines: int
    total_amount: Decimal
    credit_amount: Decimal
    debit_amount: Decimal
