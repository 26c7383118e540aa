"""Delimited text (CSV/TXT) statement parser."""

import csv
import logging
from typing import Optional

from bankrecon.domain.errors import ParseError
from bankrecon.parsers.base import (
    NO_DESCRIPTION,
    ParsedLine,
    ParsedStatement,
    StatementParser,
    decode_contents,
    file_stem,
)
from bankrecon.utils.amount_parser import parse_optional_amount
from bankrecon.utils.date_parser import parse_statement_date
from bankrecon.utils.text import normalize_header

logger = logging.getLogger(__name__)

# Candidate delimiters in tie-break order
DELIMITERS = (",", ";", "\t", "|")

DATE_HEADERS = ("data", "date", "transactiondate", "datamovimento", "datalancamento")
DESCRIPTION_HEADERS = ("descricao", "description", "historico", "detalhe", "memo")
AMOUNT_HEADERS = ("valor", "amount", "montante", "creditodebito", "value")
BALANCE_HEADERS = ("saldo", "balance")
DOCUMENT_HEADERS = ("documento", "document", "numdocumento", "documentnumber")


def detect_delimiter(header_row: str) -> str:
    """Pick the delimiter occurring most often in the header row.

    Ties go to the earlier entry of DELIMITERS, so a header without any
    candidate character is read as comma separated.
    """
    best_delimiter = ","
    best_count = 0
    for delimiter in DELIMITERS:
        count = header_row.count(delimiter)
        if count > best_count:
            best_count = count
            best_delimiter = delimiter
    return best_delimiter


def map_headers(headers: list[str]) -> dict[str, Optional[int]]:
    """Locate the known columns by header synonym.

    Raises:
        ParseError: If the date, description or amount column is missing
    """
    normalized = [normalize_header(h) for h in headers]

    def find(options: tuple[str, ...]) -> Optional[int]:
        for option in options:
            if option in normalized:
                return normalized.index(option)
        return None

    indexes = {
        "date": find(DATE_HEADERS),
        "description": find(DESCRIPTION_HEADERS),
        "amount": find(AMOUNT_HEADERS),
        "balance": find(BALANCE_HEADERS),
        "document": find(DOCUMENT_HEADERS),
    }
    missing = [name for name in ("date", "description", "amount") if indexes[name] is None]
    if missing:
        raise ParseError(
            "CSV file must contain date, description and amount columns "
            f"(missing: {', '.join(missing)})"
        )
    return indexes


class CsvStatementParser(StatementParser):
    """Parser for delimited statements with a mandatory header row."""

    format_name = "csv"

    def supports(self, extension: str, mime_type: str) -> bool:
        extension = (extension or "").lower().lstrip(".")
        mime_type = (mime_type or "").lower()
        return (
            extension in ("csv", "txt")
            or "csv" in mime_type
            or "text/plain" in mime_type
        )

    def parse(self, contents: bytes, file_name: str) -> ParsedStatement:
        text = decode_contents(contents).strip()
        if not text:
            raise ParseError("CSV file is empty")

        rows = text.splitlines()
        if len(rows) < 2:
            raise ParseError("CSV file does not contain enough data")

        delimiter = detect_delimiter(rows[0])
        headers = self._split(rows[0], delimiter)
        indexes = map_headers(headers)

        lines: list[ParsedLine] = []
        skipped = 0
        for row_number, row in enumerate(rows[1:], start=1):
            if not row.strip():
                continue

            columns = self._split(row, delimiter)
            if len(columns) < len(headers):
                skipped += 1
                logger.debug("Row %d: fewer columns than header, skipped", row_number)
                continue

            transaction_date = parse_statement_date(columns[indexes["date"]])
            amount = parse_optional_amount(columns[indexes["amount"]])
            if transaction_date is None or amount is None:
                skipped += 1
                logger.debug("Row %d: missing date or amount, skipped", row_number)
                continue

            description = columns[indexes["description"]].strip()
            balance = None
            if indexes["balance"] is not None:
                balance = parse_optional_amount(columns[indexes["balance"]])
            document = None
            if indexes["document"] is not None:
                document = columns[indexes["document"]].strip() or None

            lines.append(
                ParsedLine(
                    position=row_number,
                    transaction_date=transaction_date,
                    description=description or NO_DESCRIPTION,
                    amount=amount,
                    balance=balance,
                    document_number=document,
                )
            )

        if not lines:
            raise ParseError("Could not extract any transactions from the CSV file")

        if skipped:
            logger.info("Skipped %d unusable row(s) in %s", skipped, file_name)

        return ParsedStatement(
            reference=file_stem(file_name),
            lines=lines,
            meta={
                "format": self.format_name,
                "delimiter": delimiter,
                "headers": headers,
            },
        )

    @staticmethod
    def _split(row: str, delimiter: str) -> list[str]:
        return next(csv.reader([row], delimiter=delimiter), [])
