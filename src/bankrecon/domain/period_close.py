"""Period close: lock an account period into a reconciliation."""

import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable, Optional

from bankrecon.database.base import Database
from bankrecon.domain.context import OperationContext
from bankrecon.domain.entities import (
    MatchStatus,
    PENDING_MATCH_STATUSES,
    Reconciliation as ReconciliationEntity,
    ReconciliationStatus,
    StatementStatus,
)
from bankrecon.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    pending_lines_block_close,
)
from bankrecon.domain.events import AccountBalancesShouldRefresh, EventSink, LoggingEventSink
from bankrecon.utils.amount_parser import to_money

logger = logging.getLogger(__name__)

# Wider than the 0.01 used to pick match candidates; both are kept as is
BALANCE_TOLERANCE = Decimal("0.05")


class PeriodCloseService:
    """Validates and closes reconciliation periods."""

    def __init__(self, db: Database, events: Optional[EventSink] = None):
        """Initialize period close service.

        Args:
            db: Database instance
            events: Sink receiving balance refresh notifications
        """
        self.db = db
        self.events = events or LoggingEventSink()

    def close_period(
        self,
        financial_account_id: int,
        period_start: date,
        period_end: date,
        opening_balance: Decimal,
        closing_balance: Decimal,
        ctx: OperationContext,
        statement_ids: Optional[Iterable[int]] = None,
    ) -> ReconciliationEntity:
        """Close a period for an account.

        Statements imported within the period (optionally only the given
        ones) must be fully resolved, and the opening balance plus the
        confirmed amounts must reach the closing balance within 0.05.

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the period is invalid or overlaps a closed one,
                a statement has pending lines, or the balances do not tie out
        """
        if self.db.get_account(financial_account_id) is None:
            raise NotFoundError(account_not_found(financial_account_id))

        if period_end < period_start:
            raise ValidationError(
                "Period end must not be before period start", field="period_end"
            )

        overlapping = self.db.find_overlapping_reconciliation(
            financial_account_id, period_start, period_end
        )
        if overlapping is not None:
            raise ValidationError(
                f"A reconciliation already covers {overlapping.period_start.isoformat()} "
                f"to {overlapping.period_end.isoformat()}",
                field="period_start",
            )

        opening_balance = to_money(opening_balance)
        closing_balance = to_money(closing_balance)
        ids = list(statement_ids or [])

        statements = self.db.list_statements(
            financial_account_id=financial_account_id,
            imported_from=datetime.combine(period_start, time.min),
            imported_to=datetime.combine(period_end, time.max),
            statement_ids=ids or None,
        )

        for statement in statements:
            counts = self.db.count_lines_by_status(statement.id)
            pending = sum(counts.get(s.value, 0) for s in PENDING_MATCH_STATUSES)
            if pending:
                raise ValidationError(
                    pending_lines_block_close(statement.reference, pending),
                    field="statement_ids",
                )

        selected_ids = [statement.id for statement in statements]
        if statements:
            confirmed_total = sum(
                self.db.list_line_amounts(selected_ids, MatchStatus.CONFIRMED.value),
                Decimal("0.00"),
            )
            expected_closing = to_money(opening_balance + confirmed_total)
            if abs(expected_closing - closing_balance) > BALANCE_TOLERANCE:
                raise ValidationError(
                    f"Closing balance {closing_balance:.2f} does not match the expected "
                    f"{expected_closing:.2f} from the confirmed movements",
                    field="closing_balance",
                )

        with self.db.transaction():
            reconciliation_id = self.db.create_reconciliation(
                financial_account_id=financial_account_id,
                period_start=period_start,
                period_end=period_end,
                opening_balance=opening_balance,
                closing_balance=closing_balance,
                locked_by=ctx.user,
                created_at=ctx.now(),
                status=ReconciliationStatus.CLOSED.value,
            )
            self.db.update_statement_status(selected_ids, StatementStatus.RECONCILED.value)
            self.db.update_account_balance(financial_account_id, closing_balance)

        self.events.emit(AccountBalancesShouldRefresh(account_ids=(financial_account_id,)))
        logger.info(
            "Closed period %s..%s for account %d (%d statement(s))",
            period_start.isoformat(),
            period_end.isoformat(),
            financial_account_id,
            len(selected_ids),
        )
        return self.db.get_reconciliation(reconciliation_id)

    def list_reconciliations(
        self, financial_account_id: Optional[int] = None
    ) -> list[ReconciliationEntity]:
        """List closed periods, most recent first."""
        return self.db.list_reconciliations(financial_account_id)
