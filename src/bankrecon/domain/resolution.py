"""Manual match resolution: confirm or ignore a statement line."""

import logging
from datetime import date
from typing import Optional, Protocol

from bankrecon.database.base import Database
from bankrecon.domain.context import OperationContext
from bankrecon.domain.entities import (
    ConfirmedMeta,
    IgnoredMeta,
    Installment,
    MatchStatus,
    StatementLine as StatementLineEntity,
)
from bankrecon.domain.errors import (
    NotFoundError,
    ValidationError,
    installment_not_found,
    line_not_found,
)
from bankrecon.domain.installment import InstallmentService
from bankrecon.domain.statement import StatementService

logger = logging.getLogger(__name__)


class PaymentGateway(Protocol):
    """Marks installments paid; implemented by InstallmentService."""

    def pay_installment(self, installment_id: int, payment_date: date) -> Installment:
        ...


def suggestion_confidence(line: StatementLineEntity, installment_id: int) -> Optional[int]:
    """Confidence the engine gave this installment for the line, if it was suggested."""
    for suggestion in line.suggestions:
        if suggestion.installment_id == installment_id:
            return suggestion.confidence
    return None


class MatchResolutionService:
    """Confirms and ignores statement lines."""

    def __init__(self, db: Database, payments: Optional[PaymentGateway] = None):
        """Initialize resolution service.

        Args:
            db: Database instance
            payments: Payment operation invoked on confirmation
                (InstallmentService by default)
        """
        self.db = db
        self.payments = payments or InstallmentService(db)
        self.statements = StatementService(db)

    def _require_line(self, line_id: int) -> StatementLineEntity:
        line = self.db.get_statement_line(line_id)
        if line is None:
            raise NotFoundError(line_not_found(line_id))
        return line

    def confirm_match(
        self,
        line_id: int,
        installment_id: int,
        payment_date: date,
        ctx: OperationContext,
    ) -> StatementLineEntity:
        """Confirm that a line settles an installment.

        Pays the installment when it is still open. If it was already paid
        and the line was not yet confirmed, the recorded payment date wins
        over ``payment_date``.

        Raises:
            NotFoundError: If the line, statement or installment does not exist
            ValidationError: If the installment belongs to another account
        """
        line = self._require_line(line_id)
        statement = self.statements.require_statement(line.statement_id)
        installment = self.db.get_installment(installment_id)
        if installment is None:
            raise NotFoundError(installment_not_found(installment_id))

        if installment.financial_account_id != statement.financial_account_id:
            raise ValidationError(
                f"Installment {installment_id} does not belong to the statement's account",
                field="installment_id",
            )

        if installment.is_paid and line.match_status != MatchStatus.CONFIRMED:
            payment_date = installment.payment_date or payment_date

        with self.db.transaction():
            line = self.db.get_statement_line(line_id, for_update=True)
            if not installment.is_paid:
                self.payments.pay_installment(installment.id, payment_date)

            now = ctx.now()
            self.db.update_line_match(
                line_id,
                MatchStatus.CONFIRMED.value,
                ConfirmedMeta(confirmed_at=now, candidates=line.suggestions),
                matched_installment_id=installment.id,
                matched_by=ctx.user,
                matched_at=now,
            )
            self.db.create_match_record(
                line_id=line_id,
                installment_id=installment.id,
                journal_entry_id=installment.journal_entry_id,
                confidence=suggestion_confidence(line, installment.id),
                matched_at=now,
                matched_by=ctx.user,
            )
            self.statements.refresh_status(statement.id)

        logger.info(
            "Line %d confirmed against installment %d by %s",
            line_id,
            installment.id,
            ctx.user or "unknown user",
        )
        return self.db.get_statement_line(line_id)

    def ignore_line(
        self, line_id: int, ctx: OperationContext, reason: Optional[str] = None
    ) -> StatementLineEntity:
        """Set a line aside so it no longer blocks reconciliation.

        Raises:
            NotFoundError: If the line does not exist
        """
        self._require_line(line_id)

        with self.db.transaction():
            line = self.db.get_statement_line(line_id, for_update=True)
            now = ctx.now()
            self.db.update_line_match(
                line_id,
                MatchStatus.IGNORED.value,
                IgnoredMeta(ignored_at=now, reason=reason, candidates=line.suggestions),
                matched_installment_id=None,
                matched_by=ctx.user,
                matched_at=now,
            )
            self.statements.refresh_status(line.statement_id)

        logger.info("Line %d ignored (%s)", line_id, reason or "no reason given")
        return self.db.get_statement_line(line_id)
