"""Tests for the OFX/QFX statement parser."""

import pytest
from datetime import date
from decimal import Decimal

from bankrecon.domain.errors import ParseError
from bankrecon.parsers.ofx_parser import OfxStatementParser, parse_ofx_amount, sanitize_ofx


@pytest.fixture
def parser():
    return OfxStatementParser()


CARD_OFX = """OFXHEADER:100
DATA:OFXSGML

<OFX>
<CREDITCARDMSGSRSV1>
<CCSTMTTRNRS>
<CCSTMTRS>
<CURDEF>BRL
<CCACCTFROM>
<ACCTID>5555-XXXX-1234
</CCACCTFROM>
<BANKTRANLIST>
<DTSTART>20250201
<DTEND>20250228
<CCSTMTTRN>
<TRNTYPE>DEBIT
<DTUSER>20250203
<TRNAMT>-89,90
<FITID>CC1
<NAME>Streaming
</CCSTMTTRN>
<CCSTMTTRN>
<TRNTYPE>DEBIT
<TRNAMT>-10.00
<FITID>CC2
</CCSTMTTRN>
</BANKTRANLIST>
</CCSTMTRS>
</CCSTMTTRNRS>
</CREDITCARDMSGSRSV1>
</OFX>
"""

XML_OFX = """<?xml version="1.0" encoding="UTF-8"?>
<?OFX OFXHEADER="200" VERSION="211"?>
<OFX>
  <BANKMSGSRSV1>
    <STMTTRNRS>
      <STMTRS>
        <BANKTRANLIST>
          <STMTTRN>
            <DTPOSTED>20250301</DTPOSTED>
            <TRNAMT>250.00</TRNAMT>
            <FITID>X1</FITID>
            <MEMO>Transfer in</MEMO>
          </STMTTRN>
        </BANKTRANLIST>
      </STMTRS>
    </STMTTRNRS>
  </BANKMSGSRSV1>
</OFX>
"""


def test_sanitize_closes_single_line_tags():
    text = "HEADER:1\n<OFX>\n<STMTTRN>\n<TRNAMT>-10.00\n<MEMO>A&B\n</STMTTRN>\n</OFX>"
    result = sanitize_ofx(text)

    assert result.startswith("<OFX>")
    assert "<TRNAMT>-10.00</TRNAMT>" in result
    assert "<MEMO>A&amp;B</MEMO>" in result
    assert "<STMTTRN>\n" in result


def test_sanitize_keeps_existing_entities():
    result = sanitize_ofx("<OFX>\n<MEMO>A &amp; B\n</OFX>")
    assert "<MEMO>A &amp; B</MEMO>" in result


def test_sanitize_without_ofx_root():
    with pytest.raises(ParseError):
        sanitize_ofx("date,description,amount")


def test_parse_ofx_amount():
    assert parse_ofx_amount("-300.00") == Decimal("-300.00")
    assert parse_ofx_amount("1.500,50") == Decimal("1500.50")
    assert parse_ofx_amount("") is None
    assert parse_ofx_amount("abc") is None


def test_parse_bank_statement(parser, fixtures_dir):
    parsed = parser.parse((fixtures_dir / "sample_statement.ofx").read_bytes(), "jan.ofx")

    assert len(parsed.lines) == 3
    first, second, third = parsed.lines
    assert first.transaction_date == date(2025, 1, 1)
    assert first.amount == Decimal("1500.50")
    assert first.description == "Pagamento Cliente"
    assert first.fit_id == "202501010001"
    assert second.description == "Pagamento Fornecedor"
    assert second.amount == Decimal("-300.00")
    assert third.description == "Padaria P&B"


def test_transaction_uid_overrides_reference(parser, fixtures_dir):
    parsed = parser.parse((fixtures_dir / "sample_statement.ofx").read_bytes(), "jan.ofx")
    assert parsed.reference == "EXTRATO-JAN-2025"


def test_statement_meta(parser, fixtures_dir):
    parsed = parser.parse((fixtures_dir / "sample_statement.ofx").read_bytes(), "jan.ofx")

    assert parsed.meta == {
        "format": "ofx",
        "account_id": "12345-6",
        "routing_number": "0341",
        "closing_balance": "4654.10",
        "closing_balance_date": "2025-01-31",
        "period_start": "2025-01-01",
        "period_end": "2025-01-31",
    }


def test_parse_credit_card_statement(parser):
    parsed = parser.parse(CARD_OFX.encode("utf-8"), "fatura.qfx")

    # second transaction has no date and is skipped
    assert len(parsed.lines) == 1
    line = parsed.lines[0]
    assert line.transaction_date == date(2025, 2, 3)
    assert line.amount == Decimal("-89.90")
    assert line.description == "Streaming"
    assert parsed.reference == "fatura"
    assert parsed.meta["account_id"] == "5555-XXXX-1234"
    assert "closing_balance" not in parsed.meta


def test_parse_well_formed_xml(parser):
    parsed = parser.parse(XML_OFX.encode("utf-8"), "march.ofx")

    assert len(parsed.lines) == 1
    assert parsed.lines[0].amount == Decimal("250.00")
    assert parsed.lines[0].description == "Transfer in"


def test_description_placeholder(parser):
    content = "<OFX>\n<BANKMSGSRSV1>\n<STMTTRNRS>\n<STMTRS>\n<BANKTRANLIST>\n<STMTTRN>\n" \
        "<DTPOSTED>20250101\n<TRNAMT>1.00\n</STMTTRN>\n</BANKTRANLIST>\n</STMTRS>\n" \
        "</STMTTRNRS>\n</BANKMSGSRSV1>\n</OFX>\n"
    parsed = parser.parse(content.encode("utf-8"), "x.ofx")
    assert parsed.lines[0].description == "No description"


def test_sanitize_closes_blank_values():
    result = sanitize_ofx("<OFX>\n<MEMO> \r\n<NAME>Tarifa\n</OFX>")
    assert "<MEMO></MEMO>" in result
    assert "<NAME>Tarifa</NAME>" in result


def test_blank_memo_falls_back_to_name(parser):
    content = "<OFX>\n<BANKMSGSRSV1>\n<STMTTRNRS>\n<STMTRS>\n<BANKTRANLIST>\n<STMTTRN>\n" \
        "<DTPOSTED>20250110\n<TRNAMT>-12.50\n<FITID>T1\n<MEMO> \n<NAME>Tarifa Pacote\n" \
        "</STMTTRN>\n</BANKTRANLIST>\n</STMTRS>\n</STMTTRNRS>\n</BANKMSGSRSV1>\n</OFX>\n"
    parsed = parser.parse(content.encode("utf-8"), "tarifa.ofx")

    assert len(parsed.lines) == 1
    assert parsed.lines[0].description == "Tarifa Pacote"
    assert parsed.lines[0].amount == Decimal("-12.50")


def test_no_transactions_fails(parser):
    with pytest.raises(ParseError):
        parser.parse(b"<OFX>\n<SIGNONMSGSRSV1>\n</SIGNONMSGSRSV1>\n</OFX>", "empty.ofx")


def test_empty_file_fails(parser):
    with pytest.raises(ParseError):
        parser.parse(b"", "empty.ofx")


def test_malformed_xml_fails(parser):
    with pytest.raises(ParseError):
        parser.parse(b"<OFX>\n<BANKMSGSRSV1>\n</STMTRS>\n</OFX>", "broken.ofx")


def test_supports(parser):
    assert parser.supports("ofx", "")
    assert parser.supports("QFX", "")
    assert parser.supports("", "application/x-ofx")
    assert not parser.supports("csv", "text/csv")
