"""Parser selection by file extension and MIME type."""

from typing import Optional, Sequence

from bankrecon.domain.errors import UnsupportedFormatError
from bankrecon.parsers.base import StatementParser
from bankrecon.parsers.csv_parser import CsvStatementParser
from bankrecon.parsers.ofx_parser import OfxStatementParser


def default_parsers() -> tuple[StatementParser, ...]:
    """Default registration order; earlier parsers win ambiguous uploads."""
    return (CsvStatementParser(), OfxStatementParser())


class ParserSelector:
    """Picks the first registered parser accepting an upload."""

    def __init__(self, parsers: Optional[Sequence[StatementParser]] = None):
        self.parsers = tuple(parsers) if parsers is not None else default_parsers()

    def select(self, extension: str, mime_type: str = "") -> StatementParser:
        """Return the first parser whose supports() accepts the file.

        Raises:
            UnsupportedFormatError: If no parser matches
        """
        for parser in self.parsers:
            if parser.supports(extension, mime_type):
                return parser
        raise UnsupportedFormatError(
            f"Unsupported statement format (extension '{extension}', type '{mime_type}')"
        )
