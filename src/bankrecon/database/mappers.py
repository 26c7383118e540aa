"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, including the JSON shape of the
line match metadata, so the schema can change without touching services.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from bankrecon.domain import entities as domain
from bankrecon.database.models import (
    FinancialAccount as ORMFinancialAccount,
    JournalEntry as ORMJournalEntry,
    Installment as ORMInstallment,
    BankStatement as ORMBankStatement,
    BankStatementLine as ORMBankStatementLine,
    BankStatementMatch as ORMBankStatementMatch,
    Reconciliation as ORMReconciliation,
)


def _decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value)).quantize(Decimal("0.01"))


def account_to_domain(orm_account: ORMFinancialAccount) -> domain.FinancialAccount:
    """Convert SQLAlchemy FinancialAccount model to domain entity."""
    return domain.FinancialAccount(
        id=orm_account.id,
        name=orm_account.name,
        bank_name=orm_account.bank_name,
        current_balance=_decimal(orm_account.current_balance) or Decimal("0.00"),
        created_at=orm_account.created_at,
    )


def journal_entry_to_domain(orm_entry: ORMJournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model to domain entity."""
    return domain.JournalEntry(
        id=orm_entry.id,
        financial_account_id=orm_entry.financial_account_id,
        description=orm_entry.description,
        status=domain.EntryStatus(orm_entry.status),
        created_at=orm_entry.created_at,
    )


def installment_to_domain(orm_installment: ORMInstallment) -> domain.Installment:
    """Convert SQLAlchemy Installment model to domain entity.

    The owning entry is denormalised into the entity so callers can check
    account ownership without another lookup.
    """
    entry = orm_installment.journal_entry
    return domain.Installment(
        id=orm_installment.id,
        journal_entry_id=orm_installment.journal_entry_id,
        financial_account_id=entry.financial_account_id,
        number=orm_installment.number,
        total_amount=_decimal(orm_installment.total_amount),
        due_date=orm_installment.due_date,
        movement_date=orm_installment.movement_date,
        status=domain.InstallmentStatus(orm_installment.status),
        payment_date=orm_installment.payment_date,
        entry_description=entry.description,
        entry_status=domain.EntryStatus(entry.status),
    )


def statement_to_domain(orm_statement: ORMBankStatement) -> domain.Statement:
    """Convert SQLAlchemy BankStatement model to domain entity."""
    return domain.Statement(
        id=orm_statement.id,
        financial_account_id=orm_statement.financial_account_id,
        reference=orm_statement.reference,
        original_name=orm_statement.original_name,
        hash=orm_statement.hash,
        imported_at=orm_statement.imported_at,
        imported_by=orm_statement.imported_by,
        status=domain.StatementStatus(orm_statement.status),
        meta=dict(orm_statement.meta or {}),
    )


def statement_line_to_domain(orm_line: ORMBankStatementLine) -> domain.StatementLine:
    """Convert SQLAlchemy BankStatementLine model to domain entity."""
    status = domain.MatchStatus(orm_line.match_status)
    return domain.StatementLine(
        id=orm_line.id,
        statement_id=orm_line.bank_statement_id,
        position=orm_line.position,
        transaction_date=orm_line.transaction_date,
        description=orm_line.description,
        amount=_decimal(orm_line.amount),
        balance=_decimal(orm_line.balance),
        document_number=orm_line.document_number,
        fit_id=orm_line.fit_id,
        match_status=status,
        match_meta=match_meta_from_json(status, orm_line.match_meta),
        matched_installment_id=orm_line.matched_installment_id,
        matched_by=orm_line.matched_by,
        matched_at=orm_line.matched_at,
    )


def match_record_to_domain(orm_match: ORMBankStatementMatch) -> domain.MatchRecord:
    """Convert SQLAlchemy BankStatementMatch model to domain entity."""
    return domain.MatchRecord(
        id=orm_match.id,
        line_id=orm_match.bank_statement_line_id,
        installment_id=orm_match.installment_id,
        journal_entry_id=orm_match.journal_entry_id,
        confidence=orm_match.confidence,
        matched_at=orm_match.matched_at,
        matched_by=orm_match.matched_by,
    )


def reconciliation_to_domain(orm_reconciliation: ORMReconciliation) -> domain.Reconciliation:
    """Convert SQLAlchemy Reconciliation model to domain entity."""
    return domain.Reconciliation(
        id=orm_reconciliation.id,
        financial_account_id=orm_reconciliation.financial_account_id,
        period_start=orm_reconciliation.period_start,
        period_end=orm_reconciliation.period_end,
        opening_balance=_decimal(orm_reconciliation.opening_balance),
        closing_balance=_decimal(orm_reconciliation.closing_balance),
        status=domain.ReconciliationStatus(orm_reconciliation.status),
        locked_by=orm_reconciliation.locked_by,
        created_at=orm_reconciliation.created_at,
    )


# Match metadata serialisation


def _suggestion_to_json(suggestion: domain.Suggestion) -> dict[str, Any]:
    return {
        "installment_id": suggestion.installment_id,
        "journal_entry_id": suggestion.journal_entry_id,
        "confidence": suggestion.confidence,
        "entry_description": suggestion.entry_description,
        "due_date": suggestion.due_date.isoformat() if suggestion.due_date else None,
        "installment_number": suggestion.installment_number,
    }


def _suggestion_from_json(data: dict[str, Any]) -> domain.Suggestion:
    due_date = data.get("due_date")
    return domain.Suggestion(
        installment_id=int(data["installment_id"]),
        journal_entry_id=int(data["journal_entry_id"]),
        confidence=int(data["confidence"]),
        entry_description=data.get("entry_description"),
        due_date=date.fromisoformat(due_date) if due_date else None,
        installment_number=int(data.get("installment_number") or 1),
    )


def _timestamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def match_meta_to_json(meta: domain.MatchMeta) -> dict[str, Any]:
    """Serialise a match metadata variant into its JSON column shape."""
    data: dict[str, Any] = {
        "suggestions": [_suggestion_to_json(s) for s in meta.candidates],
    }
    if isinstance(meta, domain.SuggestedMeta):
        data["kind"] = domain.MatchStatus.SUGGESTED.value
    elif isinstance(meta, domain.ConfirmedMeta):
        data["kind"] = domain.MatchStatus.CONFIRMED.value
        data["confirmed_at"] = meta.confirmed_at.isoformat()
    elif isinstance(meta, domain.IgnoredMeta):
        data["kind"] = domain.MatchStatus.IGNORED.value
        data["ignored_at"] = meta.ignored_at.isoformat()
        data["ignored_reason"] = meta.reason
    else:
        data["kind"] = domain.MatchStatus.UNMATCHED.value
    return data


def match_meta_from_json(
    status: domain.MatchStatus, data: Optional[dict[str, Any]]
) -> domain.MatchMeta:
    """Rebuild the match metadata variant for a line's current status."""
    data = data or {}
    candidates = tuple(_suggestion_from_json(s) for s in data.get("suggestions") or [])

    if status == domain.MatchStatus.SUGGESTED:
        return domain.SuggestedMeta(candidates=candidates)
    if status == domain.MatchStatus.CONFIRMED:
        return domain.ConfirmedMeta(
            confirmed_at=_timestamp(data.get("confirmed_at")),
            candidates=candidates,
        )
    if status == domain.MatchStatus.IGNORED:
        return domain.IgnoredMeta(
            ignored_at=_timestamp(data.get("ignored_at")),
            reason=data.get("ignored_reason"),
            candidates=candidates,
        )
    return domain.UnmatchedMeta(candidates=candidates)
