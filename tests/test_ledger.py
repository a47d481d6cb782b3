"""Tests for the ledger service on the local backend."""

from collections import Counter
from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from budgetkit.domain.entities import AccountType, Currency, LinkedType, TxnType
from budgetkit.domain.errors import NotFoundError, PersistenceError, ValidationError
from budgetkit.domain.ledger import LedgerService
from budgetkit.domain.reconciliation import derive_balances, name_lookup, replay_journal


def journal_signature(entries):
    """Journal entries without their ids, as a multiset."""
    return Counter(
        (e.date, e.account_id, e.type, e.amount, e.linked_type, e.linked_id, e.notes,
         e.transfer_from_id, e.transfer_to_id)
        for e in entries
    )


def replayed_signature(store):
    return journal_signature(
        replay_journal(store.incomes, store.expenses, store.transfers, name_lookup(store.accounts))
    )


def balance(ledger, account):
    return ledger.get_account(account.id).balance


def test_default_store_has_cash_wallet(ledger):
    """Test that a fresh ledger starts with a single empty Cash wallet."""
    assert len(ledger.store.accounts) == 1
    cash = ledger.store.accounts[0]
    assert cash.name == "Cash"
    assert cash.type == AccountType.WALLET
    assert cash.balance == Decimal("0")
    assert ledger.store.currency == Currency.USD


class TestIncome:
    """Tests for income operations."""

    def test_add_income_credits_account_and_journals(self, ledger, cash):
        income = ledger.add_income(date(2024, 1, 15), "Salary", Decimal("2500"), cash.id)

        assert balance(ledger, cash) == Decimal("2500.00")
        assert ledger.store.incomes[0] == income
        entries = [e for e in ledger.store.account_txns if e.linked_id == income.id]
        assert len(entries) == 1
        assert entries[0].type == TxnType.DEPOSIT
        assert entries[0].linked_type == LinkedType.INCOME
        assert entries[0].notes == "Salary"

    def test_income_without_source_is_journaled_as_income(self, ledger, cash):
        ledger.add_income(date(2024, 1, 15), "", Decimal("10"), cash.id)
        assert ledger.store.account_txns[0].notes == "Income"

    def test_update_income_same_account_applies_difference(self, ledger, cash):
        income = ledger.add_income(date(2024, 1, 15), "Salary", Decimal("100"), cash.id)
        entry_id = ledger.store.account_txns[0].id

        ledger.update_income(replace(income, amount=Decimal("150")))

        assert balance(ledger, cash) == Decimal("150.00")
        assert len(ledger.store.account_txns) == 1
        assert ledger.store.account_txns[0].id == entry_id
        assert ledger.store.account_txns[0].amount == Decimal("150.00")

    def test_update_income_moves_to_new_account(self, ledger, cash, bank):
        income = ledger.add_income(date(2024, 1, 15), "Salary", Decimal("100"), cash.id)

        ledger.update_income(replace(income, account_id=bank.id, amount=Decimal("80")))

        assert balance(ledger, cash) == Decimal("0.00")
        assert balance(ledger, bank) == Decimal("1080.00")
        assert ledger.store.account_txns[0].account_id == bank.id

    def test_update_missing_income_is_noop(self, ledger, cash):
        income = ledger.add_income(date(2024, 1, 15), "Salary", Decimal("100"), cash.id)
        before = ledger.store

        ledger.update_income(replace(income, id="missing", amount=Decimal("999")))

        assert ledger.store == before

    def test_delete_income_is_idempotent(self, ledger, cash):
        income = ledger.add_income(date(2024, 1, 15), "Salary", Decimal("100"), cash.id)

        ledger.delete_income(income.id)
        after_first = ledger.store
        ledger.delete_income(income.id)

        assert ledger.store == after_first
        assert balance(ledger, cash) == Decimal("0.00")
        assert ledger.store.account_txns == []

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
    def test_non_positive_income_rejected(self, ledger, cash, amount):
        before = ledger.store
        with pytest.raises(ValidationError):
            ledger.add_income(date(2024, 1, 15), "Salary", amount, cash.id)
        assert ledger.store == before


class TestExpense:
    """Tests for expense operations."""

    def test_add_expense_debits_account(self, ledger, bank):
        expense = ledger.add_expense(date(2024, 1, 5), "Rent", Decimal("1000"), bank.id)

        assert balance(ledger, bank) == Decimal("0.00")
        entry = ledger.store.account_txns[0]
        assert entry.type == TxnType.WITHDRAWAL
        assert entry.linked_type == LinkedType.EXPENSE
        assert entry.linked_id == expense.id
        assert entry.notes == "Rent"

    def test_legacy_recurring_flag_is_normalised(self, ledger, bank):
        expense = ledger.add_expense(date(2024, 1, 5), "Rent", Decimal("1000"), bank.id, is_recurring=True)

        assert expense.recurrence is not None
        assert expense.recurrence.enabled is True
        assert expense.recurrence.start == date(2024, 1, 5)
        assert expense.is_recurring is True

    def test_update_expense_moves_between_accounts(self, ledger, cash, bank):
        expense = ledger.add_expense(date(2024, 1, 5), "Food", Decimal("50"), bank.id)

        ledger.update_expense(replace(expense, account_id=cash.id))

        assert balance(ledger, bank) == Decimal("1000.00")
        assert balance(ledger, cash) == Decimal("-50.00")

    def test_projected_ids_are_ignored(self, ledger, bank):
        expense = ledger.add_expense(date(2024, 1, 5), "Rent", Decimal("1000"), bank.id, is_recurring=True)
        before = ledger.store

        projected_id = f"{expense.id}__proj__2024-02"
        ledger.update_expense(replace(expense, id=projected_id, amount=Decimal("1")))
        ledger.delete_expense(projected_id)

        assert ledger.store == before

    def test_delete_expense_restores_balance(self, ledger, bank):
        expense = ledger.add_expense(date(2024, 1, 5), "Food", Decimal("50"), bank.id)
        ledger.delete_expense(expense.id)

        assert balance(ledger, bank) == Decimal("1000.00")
        assert ledger.store.account_txns == []


class TestTransfer:
    """Tests for transfer operations."""

    def test_transfer_conserves_total(self, ledger, cash, bank):
        total_before = sum(account.balance for account in ledger.store.accounts)

        transfer = ledger.add_transfer(date(2024, 1, 10), bank.id, cash.id, Decimal("200"))

        assert sum(account.balance for account in ledger.store.accounts) == total_before
        assert balance(ledger, bank) == Decimal("800.00")
        assert balance(ledger, cash) == Decimal("200.00")

        entries = [e for e in ledger.store.account_txns if e.linked_id == transfer.id]
        assert len(entries) == 2
        withdrawal = next(e for e in entries if e.type == TxnType.WITHDRAWAL)
        deposit = next(e for e in entries if e.type == TxnType.DEPOSIT)
        assert withdrawal.account_id == bank.id
        assert withdrawal.notes == "Transfer to Cash"
        assert deposit.account_id == cash.id
        assert deposit.notes == "Transfer from Bank"
        assert {withdrawal.transfer_from_id, deposit.transfer_from_id} == {bank.id}
        assert {withdrawal.transfer_to_id, deposit.transfer_to_id} == {cash.id}

    def test_transfer_to_same_account_rejected(self, ledger, cash):
        before = ledger.store

        with pytest.raises(ValidationError):
            ledger.add_transfer(date(2024, 1, 10), cash.id, cash.id, Decimal("50"))

        assert ledger.store == before
        assert balance(ledger, cash) == Decimal("0")
        assert ledger.store.account_txns == []

    def test_non_positive_transfer_rejected(self, ledger, cash, bank):
        with pytest.raises(ValidationError):
            ledger.add_transfer(date(2024, 1, 10), bank.id, cash.id, Decimal("0"))

    def test_update_transfer_rewrites_both_sides(self, ledger, cash, bank):
        savings = ledger.add_account("Savings", AccountType.SAVINGS)
        transfer = ledger.add_transfer(date(2024, 1, 10), bank.id, cash.id, Decimal("200"))

        ledger.update_transfer(replace(transfer, to_account_id=savings.id, amount=Decimal("300")))

        assert balance(ledger, bank) == Decimal("700.00")
        assert balance(ledger, cash) == Decimal("0.00")
        assert balance(ledger, savings) == Decimal("300.00")
        entries = [e for e in ledger.store.account_txns if e.linked_id == transfer.id]
        assert len(entries) == 2
        deposit = next(e for e in entries if e.type == TxnType.DEPOSIT)
        assert deposit.account_id == savings.id
        assert deposit.amount == Decimal("300.00")

    def test_invalid_transfer_edit_rejected(self, ledger, cash, bank):
        transfer = ledger.add_transfer(date(2024, 1, 10), bank.id, cash.id, Decimal("200"))
        before = ledger.store

        with pytest.raises(ValidationError):
            ledger.update_transfer(replace(transfer, to_account_id=bank.id))

        assert ledger.store == before

    def test_delete_transfer_reverses_both_sides(self, ledger, cash, bank):
        transfer = ledger.add_transfer(date(2024, 1, 10), bank.id, cash.id, Decimal("200"))
        ledger.delete_transfer(transfer.id)
        ledger.delete_transfer(transfer.id)

        assert balance(ledger, bank) == Decimal("1000.00")
        assert balance(ledger, cash) == Decimal("0.00")
        assert ledger.store.account_txns == []


class TestInvestment:
    """Tests for the investment sign convention."""

    def test_contribution_reduces_and_withdrawal_increases(self, ledger, bank):
        ledger.add_investment(date(2024, 2, 1), "Index Fund", Decimal("500"), bank.id)
        assert balance(ledger, bank) == Decimal("500.00")

        ledger.add_investment(date(2024, 3, 1), "Index Fund", Decimal("-200"), bank.id)
        assert balance(ledger, bank) == Decimal("700.00")

        assert ledger.store.account_txns == []

    def test_unlinked_investment_has_no_balance_effect(self, ledger, bank):
        ledger.add_investment(date(2024, 2, 1), "Gold", Decimal("500"))
        assert balance(ledger, bank) == Decimal("1000.00")

    def test_derived_mode_uses_same_signs(self, derived_ledger):
        account = derived_ledger.store.accounts[0]
        derived_ledger.add_investment(date(2024, 2, 1), "Index Fund", Decimal("500"), account.id)
        derived_ledger.add_investment(date(2024, 3, 1), "Index Fund", Decimal("-200"), account.id)

        assert derived_ledger.get_account(account.id).balance == Decimal("-300.00")

    def test_update_and_delete_investment(self, ledger, cash, bank):
        investment = ledger.add_investment(date(2024, 2, 1), "Index Fund", Decimal("500"), bank.id)

        ledger.update_investment(replace(investment, account_id=cash.id))
        assert balance(ledger, bank) == Decimal("1000.00")
        assert balance(ledger, cash) == Decimal("-500.00")

        ledger.delete_investment(investment.id)
        assert balance(ledger, cash) == Decimal("0.00")


def test_journal_always_matches_replay(ledger, cash, bank):
    """Test that the journal equals the journal replayed from surviving records."""
    salary = ledger.add_income(date(2024, 1, 1), "Salary", Decimal("3000"), bank.id)
    rent = ledger.add_expense(date(2024, 1, 5), "Rent", Decimal("1000"), bank.id)
    ledger.add_expense(date(2024, 1, 7), "Food", Decimal("80"), cash.id)
    transfer = ledger.add_transfer(date(2024, 1, 10), bank.id, cash.id, Decimal("200"))
    ledger.update_income(replace(salary, amount=Decimal("3100")))
    ledger.update_transfer(replace(transfer, from_account_id=cash.id, to_account_id=bank.id))
    ledger.delete_expense(rent.id)
    ledger.add_investment(date(2024, 1, 20), "ETF", Decimal("100"), bank.id)

    assert journal_signature(ledger.store.account_txns) == replayed_signature(ledger.store)


def test_edit_equals_reverse_plus_apply(tmp_path):
    """Test that editing a record equals recording the edited version directly."""
    from budgetkit.database.json_store import JSONFileDatabase

    edited = LedgerService(JSONFileDatabase(str(tmp_path / "edited.json")))
    edited.load()
    a = edited.add_account("A", AccountType.BANK, balance=Decimal("100"))
    b = edited.add_account("B", AccountType.BANK, balance=Decimal("100"))
    expense = edited.add_expense(date(2024, 1, 5), "Food", Decimal("30"), a.id)
    edited.update_expense(replace(expense, account_id=b.id, amount=Decimal("45")))

    direct = LedgerService(JSONFileDatabase(str(tmp_path / "direct.json")))
    direct.load()
    c = direct.add_account("A", AccountType.BANK, balance=Decimal("100"))
    d = direct.add_account("B", AccountType.BANK, balance=Decimal("100"))
    direct.add_expense(date(2024, 1, 5), "Food", Decimal("45"), d.id)

    assert edited.get_account(a.id).balance == direct.get_account(c.id).balance
    assert edited.get_account(b.id).balance == direct.get_account(d.id).balance


def test_incremental_balances_equal_derived(ledger, cash):
    """Test that incremental balances from zero equal balances derived from activity."""
    savings = ledger.add_account("Savings", AccountType.SAVINGS)
    income = ledger.add_income(date(2024, 1, 1), "Salary", Decimal("1234.56"), cash.id)
    ledger.add_expense(date(2024, 1, 2), "Food", Decimal("34.56"), cash.id)
    transfer = ledger.add_transfer(date(2024, 1, 3), cash.id, savings.id, Decimal("500"))
    ledger.add_investment(date(2024, 1, 4), "ETF", Decimal("100"), savings.id)
    ledger.add_investment(date(2024, 1, 5), "ETF", Decimal("-40"), savings.id)
    ledger.update_income(replace(income, account_id=savings.id))
    ledger.update_transfer(replace(transfer, amount=Decimal("250")))

    derived = {account.id: account.balance for account in derive_balances(ledger.store)}
    incremental = {account.id: account.balance for account in ledger.store.accounts}
    assert incremental == derived


def test_derived_mode_ignores_opening_balances(derived_ledger):
    account = derived_ledger.add_account("Bank", AccountType.BANK, balance=Decimal("1000"))
    assert derived_ledger.get_account(account.id).balance == Decimal("0.00")

    derived_ledger.add_income(date(2024, 1, 1), "Salary", Decimal("300"), account.id)
    assert derived_ledger.get_account(account.id).balance == Decimal("300.00")


class TestAccounts:
    """Tests for account operations."""

    def test_delete_account_keeps_history(self, ledger, cash, bank):
        ledger.add_income(date(2024, 1, 1), "Salary", Decimal("100"), bank.id)

        ledger.delete_account(bank.id)

        assert ledger.get_account(bank.id) is None
        assert len(ledger.store.incomes) == 1
        assert ledger.account_name(bank.id) == "—"

    def test_delete_missing_account_is_noop(self, ledger):
        before = ledger.store
        ledger.delete_account("missing")
        assert ledger.store == before

    def test_update_account(self, ledger, cash):
        updated = ledger.update_account(cash.id, name="Wallet", currency=Currency.KSH)

        assert updated.name == "Wallet"
        assert ledger.get_account(cash.id).currency == Currency.KSH
        assert ledger.get_account(cash.id).type == AccountType.WALLET

    def test_update_missing_account_raises(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.update_account("missing", name="Nope")

    def test_new_account_uses_store_currency(self, ledger):
        ledger.set_currency(Currency.KSH)
        account = ledger.add_account("M-Pesa")
        assert account.currency == Currency.KSH


class TestGoals:
    """Tests for savings goals and contributions."""

    def test_contributions_do_not_touch_balances(self, ledger, bank):
        project = ledger.add_project("Laptop", Decimal("1200"), date(2024, 7, 1))
        ledger.add_contribution(project.id, date(2024, 1, 1), Decimal("200"))

        assert balance(ledger, bank) == Decimal("1000.00")
        assert len(ledger.store.project_contributions) == 1

    def test_delete_project_cascades(self, ledger):
        laptop = ledger.add_project("Laptop", Decimal("1200"), date(2024, 7, 1))
        trip = ledger.add_project("Trip", Decimal("500"), date(2024, 9, 1))
        ledger.add_contribution(laptop.id, date(2024, 1, 1), Decimal("200"))
        kept = ledger.add_contribution(trip.id, date(2024, 1, 1), Decimal("50"))

        ledger.delete_project(laptop.id)

        assert [project.id for project in ledger.store.projects] == [trip.id]
        assert ledger.store.project_contributions == [kept]

    def test_contribution_to_unknown_goal_raises(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.add_contribution("missing", date(2024, 1, 1), Decimal("10"))

    def test_update_and_delete_contribution(self, ledger):
        project = ledger.add_project("Laptop", Decimal("1200"), date(2024, 7, 1))
        contribution = ledger.add_contribution(project.id, date(2024, 1, 1), Decimal("200"))

        ledger.update_contribution(replace(contribution, amount=Decimal("250")))
        assert ledger.store.project_contributions[0].amount == Decimal("250.00")

        ledger.delete_contribution(contribution.id)
        assert ledger.store.project_contributions == []

    def test_update_project(self, ledger):
        project = ledger.add_project("Laptop", Decimal("1200"), date(2024, 7, 1))
        ledger.update_project(replace(project, name="Desktop", target_amount=Decimal("1500")))

        assert ledger.store.projects[0].name == "Desktop"
        assert ledger.store.projects[0].target_amount == Decimal("1500.00")


class TestPersistence:
    """Tests for saving, reloading, importing and resetting."""

    def test_state_survives_reload(self, ledger, local_db, cash, bank):
        ledger.add_income(date(2024, 1, 1), "Salary", Decimal("100"), cash.id)
        ledger.add_expense(
            date(2024, 1, 5), "Rent", Decimal("40"), bank.id, is_recurring=True, notes="Flat"
        )
        ledger.add_transfer(date(2024, 1, 10), bank.id, cash.id, Decimal("25"))

        reloaded = LedgerService(local_db)
        reloaded.load()

        assert reloaded.store == ledger.store

    def test_failed_save_leaves_state_untouched(self, ledger, cash, monkeypatch):
        before = ledger.store

        def fail(store):
            raise PersistenceError("disk full")

        monkeypatch.setattr(ledger.db, "save_state", fail)
        with pytest.raises(PersistenceError):
            ledger.add_income(date(2024, 1, 1), "Salary", Decimal("100"), cash.id)

        assert ledger.store == before

    def test_import_is_shallow_merge(self, ledger, cash):
        ledger.add_income(date(2024, 1, 1), "Salary", Decimal("100"), cash.id)

        ignored = ledger.import_state('{"currency": "KSH", "theme": "dark"}')

        assert ignored == ["theme"]
        assert ledger.store.currency == Currency.KSH
        assert len(ledger.store.incomes) == 1
        assert ledger.get_account(cash.id).balance == Decimal("100.00")

    def test_import_replaces_collections_and_rebuilds_journal(self, ledger, cash):
        ledger.add_expense(date(2024, 1, 3), "Food", Decimal("10"), cash.id)
        payload = (
            '{"incomes": [{"id": "i1", "date": "2024-02-01", "source": "Gift",'
            f' "amount": 50, "accountId": "{cash.id}"}}]}}'
        )

        ledger.import_state(payload)

        assert [income.id for income in ledger.store.incomes] == ["i1"]
        assert len(ledger.store.expenses) == 1
        assert journal_signature(ledger.store.account_txns) == replayed_signature(ledger.store)

    def test_import_invalid_json_rejected(self, ledger):
        before = ledger.store
        with pytest.raises(ValidationError):
            ledger.import_state("{not json")
        assert ledger.store == before

    def test_export_import_roundtrip(self, ledger, tmp_path, cash):
        from budgetkit.database.json_store import JSONFileDatabase

        ledger.add_income(date(2024, 1, 1), "Salary", Decimal("100.50"), cash.id)
        ledger.add_project("Laptop", Decimal("1200"), date(2024, 7, 1))

        other = LedgerService(JSONFileDatabase(str(tmp_path / "other.json")))
        other.load()
        other.import_state(ledger.export_state())

        assert other.store.accounts == ledger.store.accounts
        assert other.store.incomes == ledger.store.incomes
        assert other.store.projects == ledger.store.projects

    def test_reset_restores_default_store(self, ledger, cash, bank):
        ledger.add_income(date(2024, 1, 1), "Salary", Decimal("100"), cash.id)

        ledger.reset()

        assert [account.name for account in ledger.store.accounts] == ["Cash"]
        assert ledger.store.incomes == []
        assert ledger.store.account_txns == []
