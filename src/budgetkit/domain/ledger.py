"""Ledger domain service.

``LedgerService`` owns one ``Store`` and is the only code that mutates it.
Every mutator keeps three things consistent: the source records, the
account balances and the journal of account transactions.

Local backends receive the whole new store after each mutation. Record
backends receive one record write carrying its balance deltas, after which
the service refreshes its store from the backend.
"""

from dataclasses import fields, replace
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Sequence, TypeVar

import structlog

from budgetkit.database.base import Database, RecordDatabase
from budgetkit.database.serialization import dumps, loads, merge_state
from budgetkit.domain.entities import (
    Account,
    AccountTxn,
    AccountType,
    Currency,
    Expense,
    Income,
    Investment,
    LinkedType,
    Project,
    ProjectContribution,
    Recurrence,
    Store,
    Transfer,
    TxnType,
)
from budgetkit.domain.errors import NotFoundError, account_not_found, project_not_found
from budgetkit.domain.reconciliation import (
    Deltas,
    account_name,
    apply_deltas,
    derive_balances,
    edit_deltas,
    expense_deltas,
    expense_to_journal_entry,
    income_deltas,
    income_to_journal_entry,
    investment_deltas,
    is_linked_to,
    name_lookup,
    new_id,
    rebuild_derived_state,
    reverse,
    transfer_deltas,
    transfer_to_journal_entries,
    validate_positive,
    validate_transfer,
    without_linked,
)
from budgetkit.domain.recurrence import is_projected_id, normalize_expense
from budgetkit.utils.amount_parser import round_money

logger = structlog.get_logger(__name__)

DEFAULT_ACCOUNT_NAME = "Cash"

Record = TypeVar("Record")


def default_store() -> Store:
    """Store used before anything was saved: one empty Cash wallet."""
    return Store(
        currency=Currency.USD,
        accounts=[
            Account(
                id=new_id(),
                name=DEFAULT_ACCOUNT_NAME,
                type=AccountType.WALLET,
                balance=Decimal("0.00"),
                currency=Currency.USD,
            )
        ],
    )


def record_patch(record: Any) -> dict[str, Any]:
    """All fields of a record except its id, for record backends."""
    return {f.name: getattr(record, f.name) for f in fields(record) if f.name not in ("id", "projected")}


def _find(items: Sequence[Record], record_id: str) -> Optional[Record]:
    return next((item for item in items if item.id == record_id), None)


def _replace_item(items: Sequence[Record], record: Record) -> list[Record]:
    return [record if item.id == record.id else item for item in items]


def _without(items: Sequence[Record], record_id: str) -> list[Record]:
    return [item for item in items if item.id != record_id]


def _rewrite_journal(
    entries: Sequence[AccountTxn],
    linked_type: LinkedType,
    linked_id: str,
    replacements: list[AccountTxn],
) -> list[AccountTxn]:
    """Swap the entries of one source record, keeping their journal position."""
    result: list[AccountTxn] = []
    inserted = False
    for entry in entries:
        if is_linked_to(entry, linked_type, linked_id):
            if not inserted:
                result.extend(replacements)
                inserted = True
            continue
        result.append(entry)
    if not inserted:
        result = replacements + result
    return result


def _entry_id(entries: Sequence[AccountTxn], linked_type: LinkedType, linked_id: str,
              txn_type: Optional[TxnType] = None) -> Optional[str]:
    for entry in entries:
        if is_linked_to(entry, linked_type, linked_id) and (txn_type is None or entry.type == txn_type):
            return entry.id
    return None


class LedgerService:
    """Service for recording money movements and keeping balances reconciled."""

    def __init__(self, db: Database, derive_balances: bool = False):
        """Initialize ledger service.

        Args:
            db: Database instance
            derive_balances: Recompute balances from activity after every
                change instead of adjusting them incrementally
        """
        self.db = db
        self.derive_balances = derive_balances
        self.store = Store()

    @property
    def remote(self) -> bool:
        """Whether the backend persists individual records."""
        return isinstance(self.db, RecordDatabase)

    # Loading and persistence
    def load(self) -> Store:
        """Load the persisted store, falling back to the default store.

        Returns:
            The loaded store
        """
        store = self.db.load_state()
        if store is None:
            logger.info("store_initialized", reason="no saved state")
            store = default_store()

        store = replace(store, expenses=[normalize_expense(expense) for expense in store.expenses])
        has_records = store.incomes or store.expenses or store.transfers
        if not store.account_txns and has_records:
            store = rebuild_derived_state(store, derive=False)
        if self.derive_balances:
            store = replace(store, accounts=derive_balances(store))
        self.store = store
        return store

    def refresh(self) -> Store:
        """Re-read the authoritative state from the backend."""
        store = self.db.load_state() or default_store()
        if self.derive_balances:
            store = replace(store, accounts=derive_balances(store))
        self.store = store
        logger.debug("store_refreshed", accounts=len(store.accounts))
        return store

    def _save(self, store: Store) -> None:
        if self.derive_balances:
            store = replace(store, accounts=derive_balances(store))
        self.db.save_state(store)
        self.store = store

    def _remote_deltas(self, deltas: Deltas) -> Optional[Deltas]:
        # Derived balances never read the stored ones
        if self.derive_balances:
            return None
        return {account_id: delta for account_id, delta in deltas.items() if delta}

    def _write_record(self, operation: str, *args, deltas: Optional[Deltas] = None) -> None:
        method = getattr(self.db, operation)
        if deltas is None:
            method(*args)
        else:
            method(*args, balance_deltas=self._remote_deltas(deltas))
        self.refresh()

    # Account operations
    def account_name(self, account_id: Optional[str]) -> str:
        """Name of an account, or a placeholder for deleted accounts."""
        return account_name(self.store.accounts, account_id)

    def get_account(self, account_id: str) -> Optional[Account]:
        return _find(self.store.accounts, account_id)

    def add_account(
        self,
        name: str,
        type: AccountType = AccountType.WALLET,
        currency: Optional[Currency] = None,
        balance: Decimal | int = 0,
    ) -> Account:
        """Create an account.

        Args:
            name: Account name
            type: Account type
            currency: Account currency (defaults to the store currency)
            balance: Opening balance

        Returns:
            The created account
        """
        account = Account(
            id=new_id(),
            name=name,
            type=type,
            balance=round_money(balance),
            currency=currency or self.store.currency,
        )
        if self.remote:
            self._write_record("add_account", account)
        else:
            self._save(replace(self.store, accounts=self.store.accounts + [account]))
        logger.info("account_added", account_id=account.id, name=name)
        return account

    def update_account(
        self,
        account_id: str,
        name: Optional[str] = None,
        type: Optional[AccountType] = None,
        currency: Optional[Currency] = None,
    ) -> Account:
        """Change an account's name, type or currency.

        Raises:
            NotFoundError: If the account does not exist
        """
        account = self.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))

        patch = {
            key: value
            for key, value in (("name", name), ("type", type), ("currency", currency))
            if value is not None
        }
        updated = replace(account, **patch)
        if self.remote:
            self._write_record("update_account", account_id, patch)
        else:
            self._save(replace(self.store, accounts=_replace_item(self.store.accounts, updated)))
        logger.info("account_updated", account_id=account_id, fields=sorted(patch))
        return updated

    def delete_account(self, account_id: str) -> None:
        """Delete an account. Records referencing it are kept."""
        if self.get_account(account_id) is None:
            logger.debug("account_delete_skipped", account_id=account_id)
            return
        if self.remote:
            self._write_record("delete_account", account_id)
        else:
            self._save(replace(self.store, accounts=_without(self.store.accounts, account_id)))
        logger.info("account_deleted", account_id=account_id)

    # Income operations
    def add_income(
        self,
        date: date,
        source: str,
        amount: Decimal,
        account_id: str,
        notes: Optional[str] = None,
    ) -> Income:
        """Record an income and credit its account.

        Raises:
            ValidationError: If the amount is not positive
        """
        validate_positive("Income", amount)
        income = Income(
            id=new_id(), date=date, source=source, amount=round_money(amount), account_id=account_id, notes=notes
        )
        deltas = income_deltas(income)
        if self.remote:
            self._write_record("add_income", income, deltas=deltas)
        else:
            store = self.store
            self._save(
                replace(
                    store,
                    incomes=[income] + store.incomes,
                    accounts=apply_deltas(store.accounts, deltas),
                    account_txns=[income_to_journal_entry(income)] + store.account_txns,
                )
            )
        logger.info("income_added", income_id=income.id, account_id=account_id, amount=str(income.amount))
        return income

    def update_income(self, edited: Income) -> None:
        """Replace an income, moving its effect to the edited account and amount."""
        original = _find(self.store.incomes, edited.id)
        if original is None:
            logger.debug("income_update_skipped", income_id=edited.id)
            return
        validate_positive("Income", edited.amount)
        edited = replace(edited, amount=round_money(edited.amount))
        deltas = edit_deltas(income_deltas(original), income_deltas(edited))

        if self.remote:
            self._write_record("update_income", edited.id, record_patch(edited), deltas=deltas)
        else:
            store = self.store
            entry_id = _entry_id(store.account_txns, LinkedType.INCOME, edited.id)
            self._save(
                replace(
                    store,
                    incomes=_replace_item(store.incomes, edited),
                    accounts=apply_deltas(store.accounts, deltas),
                    account_txns=_rewrite_journal(
                        store.account_txns, LinkedType.INCOME, edited.id, [income_to_journal_entry(edited, entry_id)]
                    ),
                )
            )
        logger.info("income_updated", income_id=edited.id)

    def delete_income(self, income_id: str) -> None:
        """Delete an income and debit its account."""
        original = _find(self.store.incomes, income_id)
        if original is None:
            logger.debug("income_delete_skipped", income_id=income_id)
            return
        deltas = reverse(income_deltas(original))

        if self.remote:
            self._write_record("delete_income", income_id, deltas=deltas)
        else:
            store = self.store
            self._save(
                replace(
                    store,
                    incomes=_without(store.incomes, income_id),
                    accounts=apply_deltas(store.accounts, deltas),
                    account_txns=without_linked(store.account_txns, LinkedType.INCOME, income_id),
                )
            )
        logger.info("income_deleted", income_id=income_id)

    # Expense operations
    def add_expense(
        self,
        date: date,
        category: str,
        amount: Decimal,
        account_id: str,
        is_recurring: bool = False,
        recurrence: Optional[Recurrence] = None,
        notes: Optional[str] = None,
    ) -> Expense:
        """Record an expense and debit its account.

        Raises:
            ValidationError: If the amount is not positive
        """
        validate_positive("Expense", amount)
        expense = normalize_expense(
            Expense(
                id=new_id(),
                date=date,
                category=category,
                amount=round_money(amount),
                account_id=account_id,
                is_recurring=is_recurring,
                recurrence=recurrence,
                notes=notes,
            )
        )
        deltas = expense_deltas(expense)
        if self.remote:
            self._write_record("add_expense", expense, deltas=deltas)
        else:
            store = self.store
            self._save(
                replace(
                    store,
                    expenses=[expense] + store.expenses,
                    accounts=apply_deltas(store.accounts, deltas),
                    account_txns=[expense_to_journal_entry(expense)] + store.account_txns,
                )
            )
        logger.info("expense_added", expense_id=expense.id, account_id=account_id, amount=str(expense.amount))
        return expense

    def update_expense(self, edited: Expense) -> None:
        """Replace an expense, moving its effect to the edited account and amount.

        Projected rows are display-only and are ignored.
        """
        original = None if is_projected_id(edited.id) else _find(self.store.expenses, edited.id)
        if original is None:
            logger.debug("expense_update_skipped", expense_id=edited.id)
            return
        validate_positive("Expense", edited.amount)
        edited = normalize_expense(replace(edited, amount=round_money(edited.amount), projected=False))
        deltas = edit_deltas(expense_deltas(original), expense_deltas(edited))

        if self.remote:
            self._write_record("update_expense", edited.id, record_patch(edited), deltas=deltas)
        else:
            store = self.store
            entry_id = _entry_id(store.account_txns, LinkedType.EXPENSE, edited.id)
            self._save(
                replace(
                    store,
                    expenses=_replace_item(store.expenses, edited),
                    accounts=apply_deltas(store.accounts, deltas),
                    account_txns=_rewrite_journal(
                        store.account_txns, LinkedType.EXPENSE, edited.id, [expense_to_journal_entry(edited, entry_id)]
                    ),
                )
            )
        logger.info("expense_updated", expense_id=edited.id)

    def delete_expense(self, expense_id: str) -> None:
        """Delete an expense and credit its account back."""
        original = None if is_projected_id(expense_id) else _find(self.store.expenses, expense_id)
        if original is None:
            logger.debug("expense_delete_skipped", expense_id=expense_id)
            return
        deltas = reverse(expense_deltas(original))

        if self.remote:
            self._write_record("delete_expense", expense_id, deltas=deltas)
        else:
            store = self.store
            self._save(
                replace(
                    store,
                    expenses=_without(store.expenses, expense_id),
                    accounts=apply_deltas(store.accounts, deltas),
                    account_txns=without_linked(store.account_txns, LinkedType.EXPENSE, expense_id),
                )
            )
        logger.info("expense_deleted", expense_id=expense_id)

    # Investment operations
    def add_investment(
        self,
        date: date,
        instrument: str,
        amount: Decimal,
        account_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Investment:
        """Record an investment contribution (positive) or withdrawal (negative).

        A linked account is debited by contributions and credited by
        withdrawals. Investments do not appear in the journal.
        """
        investment = Investment(
            id=new_id(),
            date=date,
            instrument=instrument,
            amount=round_money(amount),
            account_id=account_id or None,
            notes=notes,
        )
        deltas = investment_deltas(investment)
        if self.remote:
            self._write_record("add_investment", investment, deltas=deltas)
        else:
            store = self.store
            self._save(
                replace(
                    store,
                    investments=[investment] + store.investments,
                    accounts=apply_deltas(store.accounts, deltas),
                )
            )
        logger.info("investment_added", investment_id=investment.id, amount=str(investment.amount))
        return investment

    def update_investment(self, edited: Investment) -> None:
        original = _find(self.store.investments, edited.id)
        if original is None:
            logger.debug("investment_update_skipped", investment_id=edited.id)
            return
        edited = replace(edited, amount=round_money(edited.amount), account_id=edited.account_id or None)
        deltas = edit_deltas(investment_deltas(original), investment_deltas(edited))

        if self.remote:
            self._write_record("update_investment", edited.id, record_patch(edited), deltas=deltas)
        else:
            store = self.store
            self._save(
                replace(
                    store,
                    investments=_replace_item(store.investments, edited),
                    accounts=apply_deltas(store.accounts, deltas),
                )
            )
        logger.info("investment_updated", investment_id=edited.id)

    def delete_investment(self, investment_id: str) -> None:
        original = _find(self.store.investments, investment_id)
        if original is None:
            logger.debug("investment_delete_skipped", investment_id=investment_id)
            return
        deltas = reverse(investment_deltas(original))

        if self.remote:
            self._write_record("delete_investment", investment_id, deltas=deltas)
        else:
            store = self.store
            self._save(
                replace(
                    store,
                    investments=_without(store.investments, investment_id),
                    accounts=apply_deltas(store.accounts, deltas),
                )
            )
        logger.info("investment_deleted", investment_id=investment_id)

    # Transfer operations
    def add_transfer(
        self,
        date: date,
        from_account_id: str,
        to_account_id: str,
        amount: Decimal,
        notes: Optional[str] = None,
    ) -> Transfer:
        """Move money between two accounts.

        Raises:
            ValidationError: If both sides are the same account or the amount
                is not positive. Nothing is changed in that case.
        """
        transfer = Transfer(
            id=new_id(),
            date=date,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=round_money(amount) if amount is not None else amount,
            notes=notes,
        )
        try:
            validate_transfer(transfer)
        except ValueError as e:
            logger.warning("transfer_rejected", reason=str(e))
            raise

        deltas = transfer_deltas(transfer)
        if self.remote:
            self._write_record("add_transfer", transfer, deltas=deltas)
        else:
            store = self.store
            entries = transfer_to_journal_entries(transfer, name_lookup(store.accounts))
            self._save(
                replace(
                    store,
                    transfers=[transfer] + store.transfers,
                    accounts=apply_deltas(store.accounts, deltas),
                    account_txns=entries + store.account_txns,
                )
            )
        logger.info(
            "transfer_added",
            transfer_id=transfer.id,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=str(transfer.amount),
        )
        return transfer

    def update_transfer(self, edited: Transfer) -> None:
        """Replace a transfer, reversing the old two-sided effect and applying the new one.

        Raises:
            ValidationError: If the edited transfer is invalid
        """
        original = _find(self.store.transfers, edited.id)
        if original is None:
            logger.debug("transfer_update_skipped", transfer_id=edited.id)
            return
        try:
            validate_transfer(edited)
        except ValueError as e:
            logger.warning("transfer_rejected", transfer_id=edited.id, reason=str(e))
            raise
        edited = replace(edited, amount=round_money(edited.amount))
        deltas = edit_deltas(transfer_deltas(original), transfer_deltas(edited))

        if self.remote:
            self._write_record("update_transfer", edited.id, record_patch(edited), deltas=deltas)
        else:
            store = self.store
            entry_ids = (
                _entry_id(store.account_txns, LinkedType.TRANSFER, edited.id, TxnType.WITHDRAWAL),
                _entry_id(store.account_txns, LinkedType.TRANSFER, edited.id, TxnType.DEPOSIT),
            )
            entries = transfer_to_journal_entries(edited, name_lookup(store.accounts), entry_ids)
            self._save(
                replace(
                    store,
                    transfers=_replace_item(store.transfers, edited),
                    accounts=apply_deltas(store.accounts, deltas),
                    account_txns=_rewrite_journal(store.account_txns, LinkedType.TRANSFER, edited.id, entries),
                )
            )
        logger.info("transfer_updated", transfer_id=edited.id)

    def delete_transfer(self, transfer_id: str) -> None:
        """Delete a transfer and undo both of its sides."""
        original = _find(self.store.transfers, transfer_id)
        if original is None:
            logger.debug("transfer_delete_skipped", transfer_id=transfer_id)
            return
        deltas = reverse(transfer_deltas(original))

        if self.remote:
            self._write_record("delete_transfer", transfer_id, deltas=deltas)
        else:
            store = self.store
            self._save(
                replace(
                    store,
                    transfers=_without(store.transfers, transfer_id),
                    accounts=apply_deltas(store.accounts, deltas),
                    account_txns=without_linked(store.account_txns, LinkedType.TRANSFER, transfer_id),
                )
            )
        logger.info("transfer_deleted", transfer_id=transfer_id)

    # Goal operations
    def add_project(
        self, name: str, target_amount: Decimal, target_date: date, notes: Optional[str] = None
    ) -> Project:
        """Create a savings goal.

        Raises:
            ValidationError: If the target amount is not positive
        """
        validate_positive("Goal target", target_amount)
        project = Project(
            id=new_id(), name=name, target_amount=round_money(target_amount), target_date=target_date, notes=notes
        )
        if self.remote:
            self._write_record("add_project", project)
        else:
            self._save(replace(self.store, projects=self.store.projects + [project]))
        logger.info("goal_added", project_id=project.id, name=name)
        return project

    def update_project(self, edited: Project) -> None:
        if _find(self.store.projects, edited.id) is None:
            logger.debug("goal_update_skipped", project_id=edited.id)
            return
        validate_positive("Goal target", edited.target_amount)
        edited = replace(edited, target_amount=round_money(edited.target_amount))
        if self.remote:
            self._write_record("update_project", edited.id, record_patch(edited))
        else:
            self._save(replace(self.store, projects=_replace_item(self.store.projects, edited)))
        logger.info("goal_updated", project_id=edited.id)

    def delete_project(self, project_id: str) -> None:
        """Delete a savings goal together with its contributions."""
        if _find(self.store.projects, project_id) is None:
            logger.debug("goal_delete_skipped", project_id=project_id)
            return
        if self.remote:
            self._write_record("delete_project", project_id)
        else:
            store = self.store
            self._save(
                replace(
                    store,
                    projects=_without(store.projects, project_id),
                    project_contributions=[
                        item for item in store.project_contributions if item.project_id != project_id
                    ],
                )
            )
        logger.info("goal_deleted", project_id=project_id)

    def add_contribution(self, project_id: str, date: date, amount: Decimal) -> ProjectContribution:
        """Record money set aside for a goal. Account balances are not touched.

        Raises:
            NotFoundError: If the goal does not exist
            ValidationError: If the amount is not positive
        """
        if _find(self.store.projects, project_id) is None:
            raise NotFoundError(project_not_found(project_id))
        validate_positive("Contribution", amount)
        contribution = ProjectContribution(id=new_id(), project_id=project_id, date=date, amount=round_money(amount))
        if self.remote:
            self._write_record("add_contribution", contribution)
        else:
            self._save(
                replace(self.store, project_contributions=[contribution] + self.store.project_contributions)
            )
        logger.info("goal_contribution_added", project_id=project_id, amount=str(contribution.amount))
        return contribution

    def update_contribution(self, edited: ProjectContribution) -> None:
        if _find(self.store.project_contributions, edited.id) is None:
            logger.debug("goal_contribution_update_skipped", contribution_id=edited.id)
            return
        validate_positive("Contribution", edited.amount)
        edited = replace(edited, amount=round_money(edited.amount))
        if self.remote:
            self._write_record("update_contribution", edited.id, record_patch(edited))
        else:
            self._save(
                replace(
                    self.store,
                    project_contributions=_replace_item(self.store.project_contributions, edited),
                )
            )
        logger.info("goal_contribution_updated", contribution_id=edited.id)

    def delete_contribution(self, contribution_id: str) -> None:
        if _find(self.store.project_contributions, contribution_id) is None:
            logger.debug("goal_contribution_delete_skipped", contribution_id=contribution_id)
            return
        if self.remote:
            self._write_record("delete_contribution", contribution_id)
        else:
            self._save(
                replace(
                    self.store,
                    project_contributions=_without(self.store.project_contributions, contribution_id),
                )
            )
        logger.info("goal_contribution_deleted", contribution_id=contribution_id)

    # Settings
    def set_currency(self, currency: Currency) -> None:
        """Set the display currency of the store."""
        if self.remote:
            self._write_record("set_currency", currency)
        else:
            self._save(replace(self.store, currency=currency))
        logger.info("currency_set", currency=currency.value)

    def reset(self) -> None:
        """Discard every record and start over from the default store."""
        store = default_store()
        if self.remote:
            self.db.save_state(store)
            self.refresh()
        else:
            self._save(store)
        logger.info("store_reset")

    # Import and export
    def export_state(self) -> str:
        """Serialize the current store to JSON text."""
        return dumps(self.store)

    def import_state(self, text: str) -> list[str]:
        """Merge an exported state into the current store.

        Each top-level field present in ``text`` replaces the current one;
        fields it does not mention are kept. The journal is rebuilt from the
        merged records.

        Returns:
            Top-level keys of the payload that were not recognised

        Raises:
            ValidationError: If the payload is not a valid exported state
        """
        merged, ignored = merge_state(self.store, loads(text))
        merged = rebuild_derived_state(merged, derive=self.derive_balances)
        if self.remote:
            self.db.save_state(merged)
            self.refresh()
        else:
            self._save(merged)
        if ignored:
            logger.warning("import_keys_ignored", keys=ignored)
        logger.info(
            "state_imported",
            accounts=len(merged.accounts),
            incomes=len(merged.incomes),
            expenses=len(merged.expenses),
            transfers=len(merged.transfers),
        )
        return ignored
