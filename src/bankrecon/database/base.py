"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from bankrecon.domain.entities import (
    FinancialAccount,
    JournalEntry,
    Installment,
    Statement,
    StatementLine,
    MatchMeta,
    MatchRecord,
    Reconciliation,
)


class Database(ABC):
    """Abstract database interface for bankrecon."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Group writes into one all-or-nothing unit.

        Writes issued inside the block are committed when it exits normally
        and rolled back when it raises. Nested blocks join the outer one.
        """
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self, name: str, bank_name: str, current_balance: Decimal = Decimal("0")
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[FinancialAccount]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[FinancialAccount]:
        """List all accounts."""
        pass

    @abstractmethod
    def update_account_balance(self, account_id: int, balance: Decimal) -> None:
        """Set the account's current balance."""
        pass

    # Journal entry and installment operations
    @abstractmethod
    def create_journal_entry(
        self, financial_account_id: int, description: Optional[str], status: str = "open"
    ) -> int:
        """Create a journal entry. Returns entry ID."""
        pass

    @abstractmethod
    def get_journal_entry(self, entry_id: int) -> Optional[JournalEntry]:
        """Get journal entry by ID."""
        pass

    @abstractmethod
    def update_journal_entry_status(self, entry_id: int, status: str) -> None:
        """Update journal entry status."""
        pass

    @abstractmethod
    def create_installment(
        self,
        journal_entry_id: int,
        number: int,
        total_amount: Decimal,
        due_date: Optional[date] = None,
        movement_date: Optional[date] = None,
        status: str = "pending",
    ) -> int:
        """Create an installment. Returns installment ID."""
        pass

    @abstractmethod
    def get_installment(self, installment_id: int) -> Optional[Installment]:
        """Get installment by ID."""
        pass

    @abstractmethod
    def list_installments(
        self, financial_account_id: Optional[int] = None, journal_entry_id: Optional[int] = None
    ) -> list[Installment]:
        """List installments filtered by account and/or journal entry."""
        pass

    @abstractmethod
    def list_open_installments(self, financial_account_id: int) -> list[Installment]:
        """List unpaid planned/pending installments of non-canceled entries."""
        pass

    @abstractmethod
    def mark_installment_paid(self, installment_id: int, payment_date: date) -> None:
        """Set installment status to paid with the given payment date."""
        pass

    # Statement operations
    @abstractmethod
    def statement_exists(self, financial_account_id: int, content_hash: str) -> bool:
        """Check if a statement with the given content hash exists for account."""
        pass

    @abstractmethod
    def create_statement(
        self,
        financial_account_id: int,
        reference: str,
        original_name: str,
        content_hash: str,
        imported_at: datetime,
        imported_by: Optional[str],
        meta: dict[str, Any],
        status: str = "imported",
    ) -> int:
        """Create a statement. Returns statement ID.

        Raises:
            DuplicateError: If the account already has a statement with this hash
        """
        pass

    @abstractmethod
    def add_statement_lines(self, statement_id: int, lines: Sequence[dict[str, Any]]) -> None:
        """Insert a batch of lines for a statement."""
        pass

    @abstractmethod
    def get_statement(self, statement_id: int) -> Optional[Statement]:
        """Get statement by ID."""
        pass

    @abstractmethod
    def list_statements(
        self,
        financial_account_id: Optional[int] = None,
        statuses: Optional[Iterable[str]] = None,
        reference: Optional[str] = None,
        imported_from: Optional[datetime] = None,
        imported_to: Optional[datetime] = None,
        statement_ids: Optional[Iterable[int]] = None,
    ) -> list[Statement]:
        """List statements with optional filters, newest import first."""
        pass

    @abstractmethod
    def update_statement_status(self, statement_ids: Iterable[int], status: str) -> None:
        """Set the status of the given statements."""
        pass

    @abstractmethod
    def list_statement_lines(self, statement_id: int) -> list[StatementLine]:
        """List lines of a statement in file order."""
        pass

    @abstractmethod
    def get_statement_line(self, line_id: int, for_update: bool = False) -> Optional[StatementLine]:
        """Get line by ID, optionally locking the row for the current transaction."""
        pass

    @abstractmethod
    def update_line_match(
        self,
        line_id: int,
        match_status: str,
        match_meta: MatchMeta,
        matched_installment_id: Optional[int] = None,
        matched_by: Optional[str] = None,
        matched_at: Optional[datetime] = None,
    ) -> None:
        """Update the matching state of a line.

        Raises:
            ConflictError: If the line was changed concurrently
        """
        pass

    @abstractmethod
    def count_lines_by_status(self, statement_id: int) -> dict[str, int]:
        """Count a statement's lines per match status."""
        pass

    @abstractmethod
    def list_line_amounts(
        self, statement_ids: Iterable[int], match_status: Optional[str] = None
    ) -> list[Decimal]:
        """Return line amounts of the given statements, optionally by status."""
        pass

    # Match record operations
    @abstractmethod
    def create_match_record(
        self,
        line_id: int,
        installment_id: int,
        journal_entry_id: int,
        confidence: Optional[int],
        matched_at: datetime,
        matched_by: Optional[str],
    ) -> int:
        """Create an audit match record. Returns record ID."""
        pass

    @abstractmethod
    def list_match_records(self, line_id: Optional[int] = None) -> list[MatchRecord]:
        """List match records, optionally for one line."""
        pass

    # Reconciliation operations
    @abstractmethod
    def create_reconciliation(
        self,
        financial_account_id: int,
        period_start: date,
        period_end: date,
        opening_balance: Decimal,
        closing_balance: Decimal,
        locked_by: Optional[str],
        created_at: datetime,
        status: str = "closed",
    ) -> int:
        """Create a reconciliation. Returns reconciliation ID."""
        pass

    @abstractmethod
    def get_reconciliation(self, reconciliation_id: int) -> Optional[Reconciliation]:
        """Get reconciliation by ID."""
        pass

    @abstractmethod
    def find_overlapping_reconciliation(
        self, financial_account_id: int, period_start: date, period_end: date
    ) -> Optional[Reconciliation]:
        """Return a reconciliation of the account whose period overlaps the given one."""
        pass

    @abstractmethod
    def list_reconciliations(self, financial_account_id: Optional[int] = None) -> list[Reconciliation]:
        """List reconciliations, most recent period first."""
        pass
