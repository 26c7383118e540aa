"""Statement queries and status aggregation."""

import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from bankrecon.database.base import Database
from bankrecon.domain.entities import (
    MatchStatus,
    PENDING_MATCH_STATUSES,
    Statement as StatementEntity,
    StatementLine as StatementLineEntity,
    StatementStatus,
    StatementSummary,
)
from bankrecon.domain.errors import NotFoundError, line_not_found, statement_not_found

logger = logging.getLogger(__name__)

_STATUS_SYNONYMS = {
    "open": [StatementStatus.IMPORTED],
    "pending": [StatementStatus.IMPORTED],
    "imported": [StatementStatus.IMPORTED],
    "reconciled": [StatementStatus.RECONCILED],
    "closed": [StatementStatus.RECONCILED],
}


def status_filter_values(value: str) -> list[str]:
    """Translate a user-facing status filter into stored status values.

    Unknown values are passed through unchanged and simply match nothing.
    """
    normalized = value.strip().lower()
    statuses = _STATUS_SYNONYMS.get(normalized)
    if statuses is None:
        return [value]
    return [status.value for status in statuses]


class StatementService:
    """Read access to statements plus the reconciled-status rule."""

    def __init__(self, db: Database):
        self.db = db

    def get_statement(self, statement_id: int) -> Optional[StatementEntity]:
        return self.db.get_statement(statement_id)

    def require_statement(self, statement_id: int) -> StatementEntity:
        """Get statement by ID or raise NotFoundError."""
        statement = self.db.get_statement(statement_id)
        if statement is None:
            raise NotFoundError(statement_not_found(statement_id))
        return statement

    def list_statements(
        self,
        financial_account_id: Optional[int] = None,
        status: Optional[str] = None,
        reference: Optional[str] = None,
        imported_from: Optional[date] = None,
        imported_to: Optional[date] = None,
    ) -> list[StatementEntity]:
        """List statements, newest import first.

        Args:
            financial_account_id: Optional account filter
            status: Status or synonym ("open", "reconciled", "closed", ...)
            reference: Substring of the statement reference
            imported_from: First import day (inclusive)
            imported_to: Last import day (inclusive)
        """
        return self.db.list_statements(
            financial_account_id=financial_account_id,
            statuses=status_filter_values(status) if status else None,
            reference=reference,
            imported_from=datetime.combine(imported_from, time.min) if imported_from else None,
            imported_to=datetime.combine(imported_to, time.max) if imported_to else None,
        )

    def list_lines(self, statement_id: int) -> list[StatementLineEntity]:
        """List a statement's lines in file order."""
        self.require_statement(statement_id)
        return self.db.list_statement_lines(statement_id)

    def get_statement_line(self, statement_id: int, line_id: int) -> StatementLineEntity:
        """Get a line, checking that it belongs to the statement.

        Raises:
            NotFoundError: If the line is missing or belongs to another statement
        """
        line = self.db.get_statement_line(line_id)
        if line is None:
            raise NotFoundError(line_not_found(line_id))
        if line.statement_id != statement_id:
            raise NotFoundError(line_not_found(line_id, statement_id))
        return line

    def summarize(self, statement_id: int) -> StatementSummary:
        """Count lines per match state and total the amounts."""
        self.require_statement(statement_id)
        counts = self.db.count_lines_by_status(statement_id)
        amounts = self.db.list_line_amounts([statement_id])

        return StatementSummary(
            statement_id=statement_id,
            total_lines=sum(counts.values()),
            pending_lines=sum(counts.get(s.value, 0) for s in PENDING_MATCH_STATUSES),
            suggested_lines=counts.get(MatchStatus.SUGGESTED.value, 0),
            confirmed_lines=counts.get(MatchStatus.CONFIRMED.value, 0),
            ignored_lines=counts.get(MatchStatus.IGNORED.value, 0),
            total_amount=sum(amounts, Decimal("0.00")),
            credit_amount=sum((a for a in amounts if a > 0), Decimal("0.00")),
            debit_amount=sum((a for a in amounts if a < 0), Decimal("0.00")),
        )

    def refresh_status(self, statement_id: int) -> StatementStatus:
        """Recompute a statement's status from its lines.

        A statement is reconciled when it has lines and none of them is
        unmatched or suggested. A statement without lines keeps its status.
        """
        statement = self.require_statement(statement_id)
        counts = self.db.count_lines_by_status(statement_id)
        total = sum(counts.values())
        if total == 0:
            return statement.status

        pending = sum(counts.get(s.value, 0) for s in PENDING_MATCH_STATUSES)
        status = StatementStatus.IMPORTED if pending else StatementStatus.RECONCILED
        if status != statement.status:
            self.db.update_statement_status([statement_id], status.value)
            logger.info("Statement %d is now %s", statement_id, status.value)
        return status
