"""Statement file parsers."""

from bankrecon.parsers.base import ParsedLine, ParsedStatement, StatementParser
from bankrecon.parsers.csv_parser import CsvStatementParser
from bankrecon.parsers.ofx_parser import OfxStatementParser
from bankrecon.parsers.selector import ParserSelector

__all__ = [
    "ParsedLine",
    "ParsedStatement",
    "StatementParser",
    "CsvStatementParser",
    "OfxStatementParser",
    "ParserSelector",
]
