"""Tests for the command line interface."""

import logging
import pytest
from datetime import date, timedelta
from decimal import Decimal

from bankrecon.cli.main import cli
from bankrecon.domain.entities import InstallmentStatus, StatementStatus


@pytest.fixture(autouse=True)
def reset_logging():
    """The CLI binds a handler to the runner's stderr; drop it after each test."""
    yield
    logger = logging.getLogger("bankrecon")
    logger.handlers.clear()
    logger.propagate = True


@pytest.fixture
def invoke(cli_runner, temp_db, storage_dir):
    """Run the CLI against the temporary database and storage."""

    def _invoke(*args):
        return cli_runner.invoke(
            cli,
            [
                "--db-path",
                temp_db.database_path,
                "--storage-dir",
                str(storage_dir),
                "--user",
                "cli-user",
                *args,
            ],
        )

    return _invoke


def test_help_does_not_need_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "statement" in result.output
    assert "reconcile" in result.output


def test_account_create_and_list(invoke):
    result = invoke("account", "create", "Checking", "--bank", "Itau", "--balance", "1.234,50")
    assert result.exit_code == 0
    assert "Created account 'Checking' (ID: 1)" in result.output

    result = invoke("account", "list")
    assert result.exit_code == 0
    assert "Checking" in result.output
    assert "1,234.50" in result.output


def test_account_create_duplicate(invoke, sample_account):
    result = invoke("account", "create", sample_account.name)
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_account_list_empty(invoke):
    result = invoke("account", "list")
    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_installment_add_and_list(invoke, sample_account, temp_db):
    result = invoke(
        "installment", "add",
        "--account", "Checking",
        "--description", "Aluguel",
        "--amount", "500,00",
        "--due", "2025-01-10",
        "--status", "planned",
    )
    assert result.exit_code == 0
    assert "Created installment 1" in result.output

    installment = temp_db.get_installment(1)
    assert installment.total_amount == Decimal("500.00")
    assert installment.status == InstallmentStatus.PLANNED

    result = invoke("installment", "list", "--account", "Checking")
    assert result.exit_code == 0
    assert "Aluguel" in result.output
    assert "2025-01-10" in result.output


def test_installment_add_invalid_amount(invoke, sample_account):
    result = invoke(
        "installment", "add",
        "--account", "Checking",
        "--description", "x",
        "--amount", "abc",
        "--due", "2025-01-10",
    )
    assert result.exit_code == 2
    assert "Could not parse amount" in result.output


def test_unknown_account(invoke):
    result = invoke("installment", "list", "--account", "Nope")
    assert result.exit_code == 1
    assert "Account 'Nope' not found" in result.output

    result = invoke("reconcile", "list", "--account", "77")
    assert result.exit_code == 1
    assert "Error: Account ID 77 not found" in result.output


def test_statement_import_and_list(invoke, sample_account, fixtures_dir, storage_dir):
    result = invoke(
        "statement", "import", str(fixtures_dir / "sample_statement.csv"), "--account", "Checking"
    )
    assert result.exit_code == 0
    assert "Imported statement 1 (sample_statement)" in result.output
    assert "Lines: 2" in result.output
    assert "Opening balance: 3,499.50" in result.output
    assert "Closing balance: 4,700.00" in result.output
    assert any(path.is_file() for path in storage_dir.rglob("*.csv"))

    result = invoke("statement", "list", "--account", "Checking", "--status", "open")
    assert result.exit_code == 0
    assert "sample_statement" in result.output

    result = invoke("statement", "list", "--status", "closed")
    assert "No statements found" in result.output


def test_statement_import_balance_override(invoke, sample_account, fixtures_dir):
    result = invoke(
        "statement", "import", str(fixtures_dir / "sample_statement.ofx"),
        "--account", "Checking",
        "--opening-balance", "5000",
    )
    assert result.exit_code == 0
    assert "EXTRATO-JAN-2025" in result.output
    assert "Opening balance: 5,000.00" in result.output
    assert "Closing balance: 4,654.10" in result.output


def test_statement_import_duplicate(invoke, sample_account, fixtures_dir):
    args = ("statement", "import", str(fixtures_dir / "sample_statement.csv"), "--account", "Checking")
    assert invoke(*args).exit_code == 0

    result = invoke(*args)
    assert result.exit_code == 1
    assert "already been imported" in result.output


def test_statement_import_unsupported(invoke, sample_account, tmp_path):
    pdf = tmp_path / "statement.pdf"
    pdf.write_bytes(b"%PDF-1.4")

    result = invoke("statement", "import", str(pdf), "--account", "Checking")
    assert result.exit_code == 1
    assert "Unsupported statement format" in result.output


def test_statement_show_unknown(invoke):
    result = invoke("statement", "show", "42")
    assert result.exit_code == 1
    assert "Statement 42 not found" in result.output


def test_confirm_account_mismatch(invoke, sample_statement, other_account, installment_service, temp_db):
    foreign = installment_service.create_installment(
        other_account.id, "Pagamento Cliente", Decimal("1500.50"), due_date=date(2025, 1, 1)
    )
    line = temp_db.list_statement_lines(sample_statement.id)[0]

    result = invoke(
        "statement", "confirm", str(sample_statement.id), str(line.id),
        "--installment", str(foreign),
        "--payment-date", "2025-01-01",
    )
    assert result.exit_code == 1
    assert "Error (installment_id):" in result.output


def test_confirm_line_from_other_statement(invoke, sample_statement, import_text, sample_account, temp_db):
    other = import_text(sample_account.id, "date,description,amount\n2025-01-20,Outro,1.00\n")
    line = temp_db.list_statement_lines(sample_statement.id)[0]

    result = invoke("statement", "ignore", str(other.id), str(line.id))
    assert result.exit_code == 1
    assert "does not belong to statement" in result.output


def test_full_reconciliation_workflow(invoke, fixtures_dir, temp_db):
    """Account, installments, import, suggest, confirm, close."""
    assert invoke("account", "create", "Checking", "--balance", "3499.50").exit_code == 0
    for description, amount, due in (
        ("Pagamento Cliente", "1500.50", "2025-01-01"),
        ("Pagamento Fornecedor", "300.00", "2025-01-05"),
    ):
        result = invoke(
            "installment", "add",
            "--account", "Checking",
            "--description", description,
            "--amount", amount,
            "--due", due,
        )
        assert result.exit_code == 0

    result = invoke(
        "statement", "import", str(fixtures_dir / "sample_statement.csv"), "--account", "Checking"
    )
    assert result.exit_code == 0

    result = invoke("statement", "suggest", "1")
    assert result.exit_code == 0
    assert "2 suggested" in result.output

    result = invoke("statement", "show", "1")
    assert result.exit_code == 0
    assert "-> installment 1 (100%) Pagamento Cliente" in result.output
    assert "-> installment 2 (100%) Pagamento Fornecedor" in result.output

    result = invoke(
        "statement", "confirm", "1", "1", "--installment", "1", "--payment-date", "2025-01-01"
    )
    assert result.exit_code == 0
    assert "(statement imported)" in result.output

    # a still-pending line blocks the close
    today = date.today()
    close_args = (
        "reconcile", "close",
        "--account", "Checking",
        "--start", (today - timedelta(days=2)).isoformat(),
        "--end", (today + timedelta(days=2)).isoformat(),
        "--opening", "3499.50",
        "--closing", "4700.00",
    )
    result = invoke(*close_args)
    assert result.exit_code == 1
    assert "Error (statement_ids):" in result.output

    result = invoke(
        "statement", "confirm", "1", "2", "--installment", "2", "--payment-date", "2025-01-05"
    )
    assert result.exit_code == 0
    assert "(statement reconciled)" in result.output

    result = invoke(*close_args)
    assert result.exit_code == 0
    assert "closing balance 4,700.00" in result.output

    result = invoke("reconcile", "list", "--account", "Checking")
    assert result.exit_code == 0
    assert "cli-user" in result.output

    assert temp_db.get_statement(1).status == StatementStatus.RECONCILED
    assert temp_db.get_statement(1).imported_by == "cli-user"
    assert temp_db.get_account(1).current_balance == Decimal("4700.00")
    assert temp_db.get_installment(1).payment_date == date(2025, 1, 1)


def test_ignore_with_reason(invoke, sample_statement, temp_db):
    line = temp_db.list_statement_lines(sample_statement.id)[1]

    result = invoke("statement", "ignore", str(sample_statement.id), str(line.id), "--reason", "fee")
    assert result.exit_code == 0
    assert f"Line {line.id} ignored (statement imported)" in result.output
    # the CLI wrote through its own session
    temp_db.disconnect()
    assert temp_db.get_statement_line(line.id).match_meta.reason == "fee"
