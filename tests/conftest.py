"""Shared pytest fixtures for bankrecon tests."""

import tempfile
import os
from datetime import datetime
from decimal import Decimal
from pathlib import Path
import pytest

from bankrecon.database.factories import create_sqlite_database
from bankrecon.domain.account import AccountService
from bankrecon.domain.context import OperationContext
from bankrecon.domain.events import CollectingEventSink
from bankrecon.domain.installment import InstallmentService
from bankrecon.domain.period_close import PeriodCloseService
from bankrecon.domain.resolution import MatchResolutionService
from bankrecon.domain.statement import StatementService
from bankrecon.domain.statement_import import StatementImportService, UploadedFile
from bankrecon.domain.storage import LocalFileStorage
from bankrecon.domain.suggestion import MatchSuggestionService

FIXED_NOW = datetime(2025, 1, 31, 12, 0, 0)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for CLI tests that open their own connection
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def storage_dir(tmp_path):
    """Directory receiving raw statement uploads."""
    path = tmp_path / "storage"
    path.mkdir()
    return path


@pytest.fixture
def storage(storage_dir):
    return LocalFileStorage(storage_dir)


@pytest.fixture
def op_context():
    """Operation context with a fixed user and clock."""
    return OperationContext(user="analyst", clock=lambda: FIXED_NOW)


@pytest.fixture
def account_service(temp_db):
    return AccountService(temp_db)


@pytest.fixture
def installment_service(temp_db):
    return InstallmentService(temp_db)


@pytest.fixture
def statement_service(temp_db):
    return StatementService(temp_db)


@pytest.fixture
def import_service(temp_db, storage):
    return StatementImportService(temp_db, storage)


@pytest.fixture
def suggestion_service(temp_db):
    return MatchSuggestionService(temp_db)


@pytest.fixture
def resolution_service(temp_db):
    return MatchResolutionService(temp_db)


@pytest.fixture
def events():
    return CollectingEventSink()


@pytest.fixture
def period_close_service(temp_db, events):
    return PeriodCloseService(temp_db, events=events)


@pytest.fixture
def sample_account(account_service):
    """Create a sample account for testing."""
    account_id = account_service.create_account(
        name="Checking", bank_name="Test Bank", current_balance=Decimal("3499.50")
    )
    return account_service.get_account(account_id)


@pytest.fixture
def other_account(account_service):
    account_id = account_service.create_account(name="Savings", bank_name="Other Bank")
    return account_service.get_account(account_id)


@pytest.fixture
def import_text(import_service, op_context):
    """Import statement text into an account and return the statement."""

    def _import(account_id, text, name="statement.csv", meta=None):
        upload = UploadedFile(name=name, contents=text.encode("utf-8"))
        return import_service.import_statement(account_id, upload, op_context, meta=meta)

    return _import


@pytest.fixture
def sample_statement(import_service, op_context, sample_account, fixtures_dir):
    """The two-line CSV statement imported into the sample account."""
    upload = UploadedFile.from_path(fixtures_dir / "sample_statement.csv")
    return import_service.import_statement(sample_account.id, upload, op_context)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
