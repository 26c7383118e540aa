"""SQLAlchemy models for the bankrecon database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    JSON,
    UniqueConstraint,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class FinancialAccount(Base):
    """Bank account model."""

    __tablename__ = "financial_accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    bank_name = Column(String, nullable=False)
    current_balance = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    journal_entries = relationship("JournalEntry", back_populates="account")
    statements = relationship("BankStatement", back_populates="account")
    reconciliations = relationship("Reconciliation", back_populates="account")


class JournalEntry(Base):
    """Accounting entry owning installments."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    financial_account_id = Column(Integer, ForeignKey("financial_accounts.id"), nullable=False)
    description = Column(String, nullable=True)
    status = Column(String, nullable=False, default="open")
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    account = relationship("FinancialAccount", back_populates="journal_entries")
    installments = relationship(
        "Installment", back_populates="journal_entry", cascade="all, delete-orphan"
    )


class Installment(Base):
    """Installment of a journal entry."""

    __tablename__ = "installments"

    id = Column(Integer, primary_key=True)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False)
    number = Column(Integer, nullable=False, default=1)
    total_amount = Column(Numeric(14, 2), nullable=False)
    due_date = Column(Date, nullable=True)
    movement_date = Column(Date, nullable=True)
    status = Column(String, nullable=False, default="pending")
    payment_date = Column(Date, nullable=True)

    # Relationships
    journal_entry = relationship("JournalEntry", back_populates="installments")


class BankStatement(Base):
    """Imported bank statement model."""

    __tablename__ = "bank_statements"

    id = Column(Integer, primary_key=True)
    financial_account_id = Column(Integer, ForeignKey("financial_accounts.id"), nullable=False)
    reference = Column(String(60), nullable=False)
    original_name = Column(String, nullable=False)
    hash = Column(String(64), nullable=False)
    imported_at = Column(DateTime, nullable=False)
    imported_by = Column(String, nullable=True)
    status = Column(String, nullable=False, default="imported")
    meta = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Same file content may only be imported once per account
    __table_args__ = (
        UniqueConstraint("financial_account_id", "hash", name="uq_statement_account_hash"),
    )

    # Relationships
    account = relationship("FinancialAccount", back_populates="statements")
    lines = relationship(
        "BankStatementLine",
        back_populates="statement",
        cascade="all, delete-orphan",
        order_by="BankStatementLine.position",
    )


class BankStatementLine(Base):
    """Transaction row of an imported statement."""

    __tablename__ = "bank_statement_lines"

    id = Column(Integer, primary_key=True)
    bank_statement_id = Column(Integer, ForeignKey("bank_statements.id"), nullable=False)
    position = Column(Integer, nullable=False)
    transaction_date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    balance = Column(Numeric(14, 2), nullable=True)
    document_number = Column(String, nullable=True)
    fit_id = Column(String, nullable=True)
    match_status = Column(String, nullable=False, default="unmatched")
    match_meta = Column(JSON, nullable=True)
    matched_installment_id = Column(Integer, ForeignKey("installments.id"), nullable=True)
    matched_by = Column(String, nullable=True)
    matched_at = Column(DateTime, nullable=True)
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (Index("ix_lines_statement_status", "bank_statement_id", "match_status"),)
    __mapper_args__ = {"version_id_col": version}

    # Relationships
    statement = relationship("BankStatement", back_populates="lines")
    matched_installment = relationship("Installment")


class BankStatementMatch(Base):
    """Audit record of a confirmed match."""

    __tablename__ = "bank_statement_matches"

    id = Column(Integer, primary_key=True)
    bank_statement_line_id = Column(
        Integer, ForeignKey("bank_statement_lines.id"), nullable=False
    )
    installment_id = Column(Integer, ForeignKey("installments.id"), nullable=False)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False)
    confidence = Column(Integer, nullable=True)
    matched_at = Column(DateTime, nullable=False)
    matched_by = Column(String, nullable=True)


class Reconciliation(Base):
    """Closed reconciliation period."""

    __tablename__ = "reconciliations"

    id = Column(Integer, primary_key=True)
    financial_account_id = Column(Integer, ForeignKey("financial_accounts.id"), nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    opening_balance = Column(Numeric(14, 2), nullable=False)
    closing_balance = Column(Numeric(14, 2), nullable=False)
    status = Column(String, nullable=False, default="closed")
    notes = Column(String, nullable=True)
    locked_by = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False)

    # Relationships
    account = relationship("FinancialAccount", back_populates="reconciliations")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
