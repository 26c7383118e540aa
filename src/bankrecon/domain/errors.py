"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed business rule.

    ``field`` names the input the failure is attributed to, when there is one.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as a concurrent update of the same row."""


class DuplicateError(ConflictError):
    """Identical statement content already imported for the account."""


class ParseError(DomainError):
    """Statement file is empty, malformed or yields no usable lines."""


class UnsupportedFormatError(ParseError):
    """No parser accepts the uploaded file."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def statement_not_found(statement_id: int) -> str:
    """Return message for missing statement."""
    return f"Statement {statement_id} not found"


def line_not_found(line_id: int, statement_id: Optional[int] = None) -> str:
    """Return message for a missing line, optionally scoped to a statement."""
    if statement_id is None:
        return f"Statement line {line_id} not found"
    return f"Line {line_id} does not belong to statement {statement_id}"


def installment_not_found(installment_id: int) -> str:
    """Return message for missing installment."""
    return f"Installment {installment_id} not found"


def entry_not_found(entry_id: int) -> str:
    """Return message for missing journal entry."""
    return f"Journal entry {entry_id} not found"


def duplicate_statement(account_id: int) -> str:
    """Return message for a statement file imported twice."""
    return f"This statement has already been imported for account {account_id}"


def pending_lines_block_close(reference: str, pending_count: int) -> str:
    """Return message when a statement still has unresolved lines."""
    return (
        f"Statement '{reference}' has {pending_count} "
        f"line{'s' if pending_count != 1 else ''} pending reconciliation"
    )
