"""Abstract persistence interfaces."""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from budgetkit.domain.entities import (
    Account,
    Currency,
    Expense,
    Income,
    Investment,
    Project,
    ProjectContribution,
    Store,
    Transfer,
)
from budgetkit.domain.reconciliation import rebuild_derived_state

Patch = dict[str, Any]
BalanceDeltas = Optional[dict[str, Decimal]]


class Database(ABC):
    """Whole-state persistence for budgetkit."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the backend."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the backend."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Prepare the backend for use (create files or tables)."""
        pass

    @abstractmethod
    def load_state(self) -> Optional[Store]:
        """Load the persisted store, or None if nothing was saved yet."""
        pass

    @abstractmethod
    def save_state(self, store: Store) -> None:
        """Persist the whole store."""
        pass


class RecordDatabase(Database):
    """Per-record persistence scoped to one workspace.

    Only the source collections are stored; the journal is rebuilt from them
    on every load. Mutating record operations accept ``balance_deltas``, a
    mapping of account id to balance change that is written in the same
    commit as the record itself.
    """

    def load_state(self) -> Optional[Store]:
        """Rebuild the full in-memory model from the ``list_*`` results."""
        store = Store(
            currency=self.get_currency(),
            accounts=self.list_accounts(),
            incomes=self.list_incomes(),
            expenses=self.list_expenses(),
            transfers=self.list_transfers(),
            projects=self.list_projects(),
            project_contributions=self.list_contributions(),
            investments=self.list_investments(),
        )
        return rebuild_derived_state(store, derive=False)

    def save_state(self, store: Store) -> None:
        """Replace every record of the workspace with the contents of ``store``."""
        self.replace_all(store)

    @abstractmethod
    def replace_all(self, store: Store) -> None:
        """Replace all workspace records and settings in one commit."""
        pass

    # Settings
    @abstractmethod
    def get_currency(self) -> Currency:
        """Get the workspace display currency."""
        pass

    @abstractmethod
    def set_currency(self, currency: Currency) -> None:
        """Set the workspace display currency."""
        pass

    # Account operations
    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """List accounts in creation order."""
        pass

    @abstractmethod
    def add_account(self, account: Account) -> None:
        """Add an account."""
        pass

    @abstractmethod
    def update_account(self, account_id: str, patch: Patch) -> None:
        """Update account fields. Missing accounts are ignored."""
        pass

    @abstractmethod
    def delete_account(self, account_id: str) -> None:
        """Delete an account without touching its history."""
        pass

    # Income operations
    @abstractmethod
    def list_incomes(self) -> list[Income]:
        """List incomes, newest first."""
        pass

    @abstractmethod
    def add_income(self, income: Income, balance_deltas: BalanceDeltas = None) -> None:
        """Add an income."""
        pass

    @abstractmethod
    def update_income(self, income_id: str, patch: Patch, balance_deltas: BalanceDeltas = None) -> None:
        """Update income fields."""
        pass

    @abstractmethod
    def delete_income(self, income_id: str, balance_deltas: BalanceDeltas = None) -> None:
        """Delete an income."""
        pass

    # Expense operations
    @abstractmethod
    def list_expenses(self) -> list[Expense]:
        """List expenses, newest first."""
        pass

    @abstractmethod
    def add_expense(self, expense: Expense, balance_deltas: BalanceDeltas = None) -> None:
        """Add an expense."""
        pass

    @abstractmethod
    def update_expense(self, expense_id: str, patch: Patch, balance_deltas: BalanceDeltas = None) -> None:
        """Update expense fields."""
        pass

    @abstractmethod
    def delete_expense(self, expense_id: str, balance_deltas: BalanceDeltas = None) -> None:
        """Delete an expense."""
        pass

    # Transfer operations
    @abstractmethod
    def list_transfers(self) -> list[Transfer]:
        """List transfers, newest first."""
        pass

    @abstractmethod
    def add_transfer(self, transfer: Transfer, balance_deltas: BalanceDeltas = None) -> None:
        """Add a transfer."""
        pass

    @abstractmethod
    def update_transfer(self, transfer_id: str, patch: Patch, balance_deltas: BalanceDeltas = None) -> None:
        """Update transfer fields."""
        pass

    @abstractmethod
    def delete_transfer(self, transfer_id: str, balance_deltas: BalanceDeltas = None) -> None:
        """Delete a transfer."""
        pass

    # Investment operations
    @abstractmethod
    def list_investments(self) -> list[Investment]:
        """List investments, newest first."""
        pass

    @abstractmethod
    def add_investment(self, investment: Investment, balance_deltas: BalanceDeltas = None) -> None:
        """Add an investment."""
        pass

    @abstractmethod
    def update_investment(self, investment_id: str, patch: Patch, balance_deltas: BalanceDeltas = None) -> None:
        """Update investment fields."""
        pass

    @abstractmethod
    def delete_investment(self, investment_id: str, balance_deltas: BalanceDeltas = None) -> None:
        """Delete an investment."""
        pass

    # Goal operations
    @abstractmethod
    def list_projects(self) -> list[Project]:
        """List savings goals by target date."""
        pass

    @abstractmethod
    def add_project(self, project: Project) -> None:
        """Add a savings goal."""
        pass

    @abstractmethod
    def update_project(self, project_id: str, patch: Patch) -> None:
        """Update savings goal fields."""
        pass

    @abstractmethod
    def delete_project(self, project_id: str) -> None:
        """Delete a savings goal and its contributions."""
        pass

    @abstractmethod
    def list_contributions(self) -> list[ProjectContribution]:
        """List goal contributions, newest first."""
        pass

    @abstractmethod
    def add_contribution(self, contribution: ProjectContribution) -> None:
        """Add a goal contribution."""
        pass

    @abstractmethod
    def update_contribution(self, contribution_id: str, patch: Patch) -> None:
        """Update goal contribution fields."""
        pass

    @abstractmethod
    def delete_contribution(self, contribution_id: str) -> None:
        """Delete a goal contribution."""
        pass
