"""Account domain service."""

from decimal import Decimal
from typing import Optional

from bankrecon.database.base import Database
from bankrecon.domain.entities import FinancialAccount as AccountEntity
from bankrecon.domain.errors import ConflictError, NotFoundError, account_not_found
from bankrecon.utils.amount_parser import to_money


class AccountService:
    """Service for managing financial accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self, name: str, bank_name: str, current_balance: Decimal = Decimal("0")
    ) -> int:
        """Create a new account.

        Args:
            name: Account name
            bank_name: Bank name
            current_balance: Starting balance

        Returns:
            Account ID

        Raises:
            ConflictError: If account name already exists
        """
        for acc in self.db.list_accounts():
            if acc.name == name:
                raise ConflictError(f"Account with name '{name}' already exists")

        return self.db.create_account(
            name=name, bank_name=bank_name, current_balance=to_money(current_balance)
        )

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> AccountEntity:
        """Get account by ID or raise NotFoundError."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self) -> list[AccountEntity]:
        """List all accounts."""
        return self.db.list_accounts()
