"""Match suggestion engine.

Each unresolved statement line is scored against the account's open
installments of the same absolute amount. Scores combine a base value
with date proximity and description similarity:

    score = 50 + date_score (0..30) + description_score (10, 15 or 30)

capped at 100. Lines whose best candidate reaches 75 become suggested;
the engine never confirms anything by itself.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from bankrecon.database.base import Database
from bankrecon.domain.entities import (
    Installment,
    MatchStatus,
    Statement as StatementEntity,
    StatementLine,
    SuggestedMeta,
    Suggestion,
    UnmatchedMeta,
)
from bankrecon.domain.statement import StatementService

logger = logging.getLogger(__name__)

BASE_SCORE = 50
MAX_DATE_SCORE = 30
MAX_SCORE = 100
SUGGESTION_THRESHOLD = 75
MAX_SUGGESTIONS = 5
AMOUNT_TOLERANCE = Decimal("0.01")


def date_score(transaction_date: date, anchor_date: date) -> int:
    """30 points on the same day, one point less per day apart, floor 0."""
    days = abs((anchor_date - transaction_date).days)
    return max(0, MAX_DATE_SCORE - min(MAX_DATE_SCORE, days))


def description_score(line_description: Optional[str], entry_description: Optional[str]) -> int:
    """30 when one description contains the other, 15 when either is empty, else 10."""
    line_text = (line_description or "").lower()
    entry_text = (entry_description or "").lower()
    if not line_text or not entry_text:
        return 15
    if line_text in entry_text or entry_text in line_text:
        return 30
    return 10


def anchor_date(installment: Installment, fallback: date) -> date:
    """Due date, else movement date, else the line's own date."""
    return installment.due_date or installment.movement_date or fallback


def score_candidate(line: StatementLine, installment: Installment) -> int:
    score = (
        BASE_SCORE
        + date_score(line.transaction_date, anchor_date(installment, line.transaction_date))
        + description_score(line.description, installment.entry_description)
    )
    return min(MAX_SCORE, score)


def amount_matches(line_amount: Decimal, installment_total: Decimal) -> bool:
    return abs(installment_total - abs(line_amount)) <= AMOUNT_TOLERANCE


def rank_candidates(
    line: StatementLine, installments: Iterable[Installment]
) -> list[Suggestion]:
    """Return the best candidates for a line, highest confidence first.

    Equal scores keep the order of ``installments``.
    """
    suggestions = [
        Suggestion(
            installment_id=inst.id,
            journal_entry_id=inst.journal_entry_id,
            confidence=score_candidate(line, inst),
            entry_description=inst.entry_description,
            due_date=inst.due_date,
            installment_number=inst.number,
        )
        for inst in installments
        if amount_matches(line.amount, inst.total_amount)
    ]
    suggestions.sort(key=lambda s: s.confidence, reverse=True)
    return suggestions[:MAX_SUGGESTIONS]


class MatchSuggestionService:
    """Scores open installments against a statement's unresolved lines."""

    def __init__(self, db: Database):
        self.db = db
        self.statements = StatementService(db)

    def suggest_matches(self, statement_id: int) -> StatementEntity:
        """Recompute suggestions for every line that is not confirmed.

        Safe to run repeatedly; confirmed lines are never touched and the
        statement status is left as it is.

        Raises:
            NotFoundError: If the statement does not exist
        """
        statement = self.statements.require_statement(statement_id)
        installments = self.db.list_open_installments(statement.financial_account_id)

        suggested = 0
        with self.db.transaction():
            for line in self.db.list_statement_lines(statement_id):
                if line.match_status == MatchStatus.CONFIRMED:
                    continue

                candidates = tuple(rank_candidates(line, installments))
                if candidates and candidates[0].confidence >= SUGGESTION_THRESHOLD:
                    status, meta = MatchStatus.SUGGESTED, SuggestedMeta(candidates=candidates)
                    suggested += 1
                else:
                    status, meta = MatchStatus.UNMATCHED, UnmatchedMeta(candidates=candidates)

                self.db.update_line_match(line.id, status.value, meta)

        logger.info(
            "Suggestion run for statement %d: %d line(s) suggested from %d open installment(s)",
            statement_id,
            suggested,
            len(installments),
        )
        return self.db.get_statement(statement_id)
