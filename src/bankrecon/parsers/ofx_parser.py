"""OFX/QFX statement parser.

Most banks still emit OFX 1.x, an SGML dialect where leaf elements are not
closed (``<TRNAMT>-10.00``). The parser rewrites such lines into closed
elements, escapes stray ampersands and then reads the result as XML, so
OFX 2.x (already XML) passes through unchanged.
"""

import logging
import re
import xml.etree.ElementTree as ET
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from bankrecon.domain.errors import ParseError
from bankrecon.parsers.base import (
    NO_DESCRIPTION,
    ParsedLine,
    ParsedStatement,
    StatementParser,
    decode_contents,
    file_stem,
)
from bankrecon.utils.amount_parser import to_money
from bankrecon.utils.date_parser import parse_ofx_date

logger = logging.getLogger(__name__)

BANK_STATEMENT_PATH = "BANKMSGSRSV1/STMTTRNRS/STMTRS"
CARD_STATEMENT_PATH = "CREDITCARDMSGSRSV1/CCSTMTTRNRS/CCSTMTRS"

_OFX_START = re.compile(r"<OFX>", re.IGNORECASE)
_UNCLOSED_TAG = re.compile(r"<(\w+)>([^<>\r\n]+)\r?\n")
_BARE_AMPERSAND = re.compile(r"&(?!#?[a-z0-9]+;)", re.IGNORECASE)


def sanitize_ofx(text: str) -> str:
    """Turn OFX/SGML content into well-formed XML text.

    Raises:
        ParseError: If there is no <OFX> root element
    """
    match = _OFX_START.search(text)
    if match is None:
        raise ParseError("Invalid OFX content: <OFX> element not found")

    body = text[match.start():]
    body = _UNCLOSED_TAG.sub(lambda m: f"<{m.group(1)}>{m.group(2).strip()}</{m.group(1)}>\n", body)
    body = _BARE_AMPERSAND.sub("&amp;", body)
    return body


def parse_ofx_amount(value: Optional[str]) -> Optional[Decimal]:
    """Parse TRNAMT/BALAMT, tolerating decimal comma with dot thousands."""
    value = (value or "").strip()
    if not value:
        return None
    try:
        return to_money(Decimal(value))
    except InvalidOperation:
        pass
    try:
        return to_money(Decimal(value.replace(".", "").replace(",", ".")))
    except InvalidOperation:
        return None


def _text(element: Optional[ET.Element], path: str) -> Optional[str]:
    if element is None:
        return None
    found = element.find(path)
    if found is None or found.text is None:
        return None
    value = found.text.strip()
    return value or None


class OfxStatementParser(StatementParser):
    """Parser for OFX and QFX statements (bank and credit card)."""

    format_name = "ofx"

    def supports(self, extension: str, mime_type: str) -> bool:
        extension = (extension or "").lower().lstrip(".")
        mime_type = (mime_type or "").lower()
        return extension in ("ofx", "qfx") or "ofx" in mime_type

    def parse(self, contents: bytes, file_name: str) -> ParsedStatement:
        text = decode_contents(contents).strip()
        if not text:
            raise ParseError("OFX file is empty")

        root = self._load_xml(sanitize_ofx(text))

        transactions = self._find_transactions(root)
        if not transactions:
            raise ParseError("OFX file contains no transactions")

        lines: list[ParsedLine] = []
        for position, transaction in enumerate(transactions, start=1):
            amount = parse_ofx_amount(_text(transaction, "TRNAMT"))
            transaction_date = parse_ofx_date(
                _text(transaction, "DTPOSTED") or _text(transaction, "DTUSER")
            )
            if transaction_date is None or amount is None:
                logger.debug("Transaction %d: missing date or amount, skipped", position)
                continue

            description = _text(transaction, "MEMO") or _text(transaction, "NAME")
            lines.append(
                ParsedLine(
                    position=position,
                    transaction_date=transaction_date,
                    description=description or NO_DESCRIPTION,
                    amount=amount,
                    fit_id=_text(transaction, "FITID"),
                )
            )

        if not lines:
            raise ParseError("No valid transactions found in the OFX file")

        meta, transaction_uid = self._statement_meta(root)
        return ParsedStatement(
            reference=transaction_uid or file_stem(file_name),
            lines=lines,
            meta=meta,
        )

    @staticmethod
    def _load_xml(xml_text: str) -> ET.Element:
        try:
            return ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise ParseError(f"Failed to read OFX content: {e}") from e

    @staticmethod
    def _find_transactions(root: ET.Element) -> list[ET.Element]:
        # Bank statements win; credit card statements are the fallback
        bank = root.findall(f".//{BANK_STATEMENT_PATH}/BANKTRANLIST/STMTTRN")
        if bank:
            return bank
        card_list = f".//{CARD_STATEMENT_PATH}/BANKTRANLIST"
        return root.findall(f"{card_list}/STMTTRN") + root.findall(f"{card_list}/CCSTMTTRN")

    def _statement_meta(self, root: ET.Element) -> tuple[dict[str, Any], Optional[str]]:
        """Collect whatever account and balance details the file declares."""
        bank = root.find(f".//{BANK_STATEMENT_PATH}")
        card = root.find(f".//{CARD_STATEMENT_PATH}")
        statement = bank if bank is not None else card
        is_card = bank is None and card is not None

        wrapper_path = ".//CREDITCARDMSGSRSV1/CCSTMTTRNRS" if is_card else ".//BANKMSGSRSV1/STMTTRNRS"
        transaction_uid = _text(root, f"{wrapper_path}/TRNUID")

        account_from = "CCACCTFROM" if is_card else "BANKACCTFROM"
        closing_balance = parse_ofx_amount(_text(statement, "LEDGERBAL/BALAMT"))
        closing_date = parse_ofx_date(_text(statement, "LEDGERBAL/DTASOF"))
        period_start = parse_ofx_date(_text(statement, "BANKTRANLIST/DTSTART"))
        period_end = parse_ofx_date(_text(statement, "BANKTRANLIST/DTEND"))

        meta: dict[str, Any] = {
            "format": self.format_name,
            "account_id": _text(statement, f"{account_from}/ACCTID"),
            "routing_number": _text(statement, f"{account_from}/BANKID"),
            "closing_balance": str(closing_balance) if closing_balance is not None else None,
            "closing_balance_date": closing_date.isoformat() if closing_date else None,
            "period_start": period_start.isoformat() if period_start else None,
            "period_end": period_end.isoformat() if period_end else None,
        }
        return {k: v for k, v in meta.items() if v is not None}, transaction_uid
