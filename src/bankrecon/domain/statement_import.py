"""Statement import domain service."""

import hashlib
import logging
import mimetypes
import uuid
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path, PurePath
from typing import Any, Optional

from bankrecon.database.base import Database
from bankrecon.domain.context import OperationContext
from bankrecon.domain.entities import Statement as StatementEntity, StatementStatus
from bankrecon.domain.errors import (
    DuplicateError,
    NotFoundError,
    account_not_found,
    duplicate_statement,
)
from bankrecon.domain.storage import BlobStorage, statement_storage_path
from bankrecon.parsers.base import ParsedLine, ParsedStatement
from bankrecon.parsers.selector import ParserSelector
from bankrecon.utils.amount_parser import to_money

logger = logging.getLogger(__name__)

IMPORT_BATCH_SIZE = 500
REFERENCE_MAX_LENGTH = 60


@dataclass(frozen=True)
class UploadedFile:
    """Raw statement upload."""

    name: str
    contents: bytes
    mime_type: str = ""

    @property
    def extension(self) -> str:
        return PurePath(self.name).suffix.lstrip(".").lower()

    @classmethod
    def from_path(cls, path: str | Path) -> "UploadedFile":
        """Read a file from disk, guessing its MIME type from the name."""
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, contents=path.read_bytes(), mime_type=mime_type or "")


def infer_balances(lines: list[ParsedLine]) -> tuple[Optional[Decimal], Optional[Decimal]]:
    """Derive opening and closing balance from running balances.

    Lines are ordered by transaction date, keeping file order for equal
    dates. Opening is the first line's balance before its own amount;
    closing is the last line's balance.
    """
    if not lines:
        return None, None

    ordered = sorted(lines, key=lambda line: line.transaction_date)
    first, last = ordered[0], ordered[-1]

    opening = to_money(first.balance - first.amount) if first.balance is not None else None
    closing = to_money(last.balance) if last.balance is not None else None
    return opening, closing


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(to_money(value))
    return value


def build_statement_meta(
    parsed: ParsedStatement, storage_path: str, overrides: Optional[dict[str, Any]] = None
) -> dict[str, Any]:
    """Merge statement meta.

    Precedence, highest first: caller overrides, balances the parser read
    from the file, balances inferred from the lines. None values are dropped.
    """
    opening, closing = infer_balances(parsed.lines)
    meta = dict(parsed.meta)
    if meta.get("opening_balance") is None:
        meta["opening_balance"] = opening
    if meta.get("closing_balance") is None:
        meta["closing_balance"] = closing
    meta["storage_path"] = storage_path
    meta.update(overrides or {})
    return {key: _json_value(value) for key, value in meta.items() if value is not None}


def resolve_reference(reference: str) -> str:
    """Trim and truncate the reference label, or generate one when empty."""
    reference = (reference or "").strip()
    if not reference:
        return str(uuid.uuid4())
    return reference[:REFERENCE_MAX_LENGTH]


def _line_payload(line: ParsedLine) -> dict[str, Any]:
    return {
        "position": line.position,
        "transaction_date": line.transaction_date,
        "description": line.description,
        "amount": line.amount,
        "balance": line.balance,
        "document_number": line.document_number,
        "fit_id": line.fit_id,
    }


class StatementImportService:
    """Service for importing statement files into an account."""

    def __init__(
        self,
        db: Database,
        storage: BlobStorage,
        selector: Optional[ParserSelector] = None,
    ):
        """Initialize statement import service.

        Args:
            db: Database instance
            storage: Where raw uploads are kept
            selector: Parser selector (CSV, then OFX by default)
        """
        self.db = db
        self.storage = storage
        self.selector = selector or ParserSelector()

    @staticmethod
    def content_hash(contents: bytes) -> str:
        """SHA-256 hex digest used as the per-account dedup key."""
        return hashlib.sha256(contents).hexdigest()

    def import_statement(
        self,
        financial_account_id: int,
        upload: UploadedFile,
        ctx: OperationContext,
        meta: Optional[dict[str, Any]] = None,
    ) -> StatementEntity:
        """Import a statement file.

        Args:
            financial_account_id: Account the statement belongs to
            upload: Raw file with name and MIME type
            ctx: Caller identity and clock
            meta: Optional meta overriding parsed/inferred values

        Returns:
            The persisted statement

        Raises:
            NotFoundError: If the account does not exist
            DuplicateError: If the same content was already imported for the account
            ParseError: If the file is unsupported or has no usable lines
        """
        if self.db.get_account(financial_account_id) is None:
            raise NotFoundError(account_not_found(financial_account_id))

        content_hash = self.content_hash(upload.contents)
        if self.db.statement_exists(financial_account_id, content_hash):
            raise DuplicateError(duplicate_statement(financial_account_id))

        parser = self.selector.select(upload.extension, upload.mime_type)
        parsed = parser.parse(upload.contents, upload.name)

        now = ctx.now()
        stored_path: Optional[str] = None
        try:
            with self.db.transaction():
                stored_path = self.storage.put(
                    statement_storage_path(financial_account_id, upload.extension, now),
                    upload.contents,
                )
                statement_id = self.db.create_statement(
                    financial_account_id=financial_account_id,
                    reference=resolve_reference(parsed.reference),
                    original_name=upload.name,
                    content_hash=content_hash,
                    imported_at=now,
                    imported_by=ctx.user,
                    meta=build_statement_meta(parsed, stored_path, meta),
                    status=StatementStatus.IMPORTED.value,
                )

                payloads = [_line_payload(line) for line in parsed.lines]
                for start in range(0, len(payloads), IMPORT_BATCH_SIZE):
                    self.db.add_statement_lines(
                        statement_id, payloads[start:start + IMPORT_BATCH_SIZE]
                    )
        except Exception:
            if stored_path is not None:
                self.storage.delete(stored_path)
            raise

        logger.info(
            "Imported statement %d (%s, %d lines) into account %d",
            statement_id,
            upload.name,
            len(parsed.lines),
            financial_account_id,
        )
        return self.db.get_statement(statement_id)
