"""Statement parser interface and normalised parse results."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import PurePath
from typing import Any, Optional

NO_DESCRIPTION = "No description"


@dataclass(frozen=True)
class ParsedLine:
    """One normalised transaction extracted from a statement file."""

    position: int
    transaction_date: date
    description: str
    amount: Decimal
    balance: Optional[Decimal] = None
    document_number: Optional[str] = None
    fit_id: Optional[str] = None


@dataclass(frozen=True)
class ParsedStatement:
    """Result of parsing a statement file."""

    reference: str
    lines: list[ParsedLine]
    meta: dict[str, Any] = field(default_factory=dict)


class StatementParser(ABC):
    """Format-specific statement decoder."""

    #: Short format name stored in statement meta
    format_name: str = ""

    @abstractmethod
    def supports(self, extension: str, mime_type: str) -> bool:
        """Return True if this parser handles the given extension / MIME type."""
        pass

    @abstractmethod
    def parse(self, contents: bytes, file_name: str) -> ParsedStatement:
        """Parse raw file bytes.

        Raises:
            ParseError: If the content is empty, malformed or has no usable lines
        """
        pass


def decode_contents(contents: bytes) -> str:
    """Decode statement bytes as UTF-8 (BOM tolerated), falling back to cp1252."""
    try:
        return contents.decode("utf-8-sig")
    except UnicodeDecodeError:
        return contents.decode("cp1252", errors="replace")


def file_stem(file_name: str) -> str:
    """Return the file name without directory and extension."""
    return PurePath(file_name).stem
