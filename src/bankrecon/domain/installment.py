"""Journal entry installments: the payable side of matching.

Installments are owned by the accounting module; this service covers only
what reconciliation needs from it: creating entries for an account,
listing them, and marking an installment paid.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from bankrecon.database.base import Database
from bankrecon.domain.entities import (
    EntryStatus,
    Installment as InstallmentEntity,
    InstallmentStatus,
)
from bankrecon.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    entry_not_found,
    installment_not_found,
)
from bankrecon.utils.amount_parser import to_money

logger = logging.getLogger(__name__)


class InstallmentService:
    """Service for journal entries and their installments."""

    def __init__(self, db: Database):
        self.db = db

    def create_entry(self, financial_account_id: int, description: Optional[str]) -> int:
        """Create an open journal entry. Returns entry ID."""
        if self.db.get_account(financial_account_id) is None:
            raise NotFoundError(account_not_found(financial_account_id))
        return self.db.create_journal_entry(
            financial_account_id=financial_account_id,
            description=description,
            status=EntryStatus.OPEN.value,
        )

    def add_installment(
        self,
        journal_entry_id: int,
        total_amount: Decimal,
        due_date: Optional[date] = None,
        movement_date: Optional[date] = None,
        number: Optional[int] = None,
        status: InstallmentStatus = InstallmentStatus.PENDING,
    ) -> int:
        """Add an installment to an entry. Returns installment ID.

        Numbers continue from the entry's last installment when omitted.
        """
        if self.db.get_journal_entry(journal_entry_id) is None:
            raise NotFoundError(entry_not_found(journal_entry_id))
        if status == InstallmentStatus.PAID:
            raise ValidationError("Use pay_installment to settle an installment", field="status")

        if number is None:
            existing = self.db.list_installments(journal_entry_id=journal_entry_id)
            number = max((inst.number for inst in existing), default=0) + 1

        return self.db.create_installment(
            journal_entry_id=journal_entry_id,
            number=number,
            total_amount=to_money(total_amount),
            due_date=due_date,
            movement_date=movement_date,
            status=InstallmentStatus(status).value,
        )

    def create_installment(
        self,
        financial_account_id: int,
        description: Optional[str],
        total_amount: Decimal,
        due_date: Optional[date] = None,
        movement_date: Optional[date] = None,
        status: InstallmentStatus = InstallmentStatus.PENDING,
        number: int = 1,
    ) -> int:
        """Create a single-installment entry. Returns installment ID."""
        with self.db.transaction():
            entry_id = self.create_entry(financial_account_id, description)
            return self.add_installment(
                entry_id,
                total_amount,
                due_date=due_date,
                movement_date=movement_date,
                number=number,
                status=status,
            )

    def get_installment(self, installment_id: int) -> Optional[InstallmentEntity]:
        return self.db.get_installment(installment_id)

    def list_installments(
        self, financial_account_id: int, open_only: bool = False
    ) -> list[InstallmentEntity]:
        """List an account's installments, optionally only those still matchable."""
        if open_only:
            return self.db.list_open_installments(financial_account_id)
        return self.db.list_installments(financial_account_id=financial_account_id)

    def cancel_entry(self, journal_entry_id: int) -> None:
        """Cancel an entry; its installments stop being match candidates."""
        if self.db.get_journal_entry(journal_entry_id) is None:
            raise NotFoundError(entry_not_found(journal_entry_id))
        self.db.update_journal_entry_status(journal_entry_id, EntryStatus.CANCELED.value)

    def pay_installment(self, installment_id: int, payment_date: date) -> InstallmentEntity:
        """Mark an installment paid on the given date.

        The owning entry becomes paid once all of its installments are.

        Raises:
            NotFoundError: If the installment does not exist
            ValidationError: If it is already paid or its entry is canceled
        """
        installment = self.db.get_installment(installment_id)
        if installment is None:
            raise NotFoundError(installment_not_found(installment_id))
        if installment.is_paid:
            raise ValidationError(
                f"Installment {installment_id} is already paid", field="installment_id"
            )
        if installment.entry_status == EntryStatus.CANCELED:
            raise ValidationError(
                "Cannot pay an installment of a canceled entry", field="installment_id"
            )

        with self.db.transaction():
            self.db.mark_installment_paid(installment_id, payment_date)
            siblings = self.db.list_installments(journal_entry_id=installment.journal_entry_id)
            if all(
                inst.status in (InstallmentStatus.PAID, InstallmentStatus.CANCELED)
                for inst in siblings
            ):
                self.db.update_journal_entry_status(
                    installment.journal_entry_id, EntryStatus.PAID.value
                )

        logger.info("Installment %d paid on %s", installment_id, payment_date.isoformat())
        return self.db.get_installment(installment_id)
