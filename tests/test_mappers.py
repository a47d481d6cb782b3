"""Tests for database mappers."""

from datetime import date
from decimal import Decimal

from budgetkit.database.models import (
    Account as ORMAccount,
    Investment as ORMInvestment,
    Transaction as ORMTransaction,
)
from budgetkit.database.mappers import (
    account_columns,
    account_to_domain,
    expense_columns,
    income_columns,
    investment_columns,
    investment_to_domain,
    transaction_to_expense,
    transaction_to_income,
)
from budgetkit.domain.entities import (
    Account,
    AccountType,
    Currency,
    Recurrence,
    RecurrencePeriod,
)


class TestAccountMapper:
    """Tests for Account mapper."""

    def test_account_to_domain(self):
        """Test converting ORM Account to domain Account."""
        orm_account = ORMAccount(
            id="a1",
            workspace_id="w",
            name="Test Account",
            type="Savings",
            currency="KSH",
            balance=Decimal("12.5"),
        )
        domain_account = account_to_domain(orm_account)

        assert isinstance(domain_account, Account)
        assert domain_account.id == "a1"
        assert domain_account.type == AccountType.SAVINGS
        assert domain_account.currency == Currency.KSH
        assert domain_account.balance == Decimal("12.50")

    def test_account_columns_store_enum_values(self):
        assert account_columns({"name": "X", "type": AccountType.BANK, "currency": Currency.USD}) == {
            "name": "X",
            "type": "Bank",
            "currency": "USD",
        }


class TestTransactionMapper:
    """Tests for the signed transaction mappers."""

    def test_positive_row_is_income(self):
        row = ORMTransaction(
            id="t1", workspace_id="w", account_id="a1", trx_date=date(2024, 1, 1),
            amount=Decimal("100"), description="Salary",
        )
        income = transaction_to_income(row)
        assert income.source == "Salary"
        assert income.amount == Decimal("100.00")

    def test_negative_row_is_expense_with_recurrence(self):
        row = ORMTransaction(
            id="t2", workspace_id="w", account_id="a1", trx_date=date(2024, 1, 31),
            amount=Decimal("-120"), description="Insurance", is_recurring=True,
            rec_enabled=True, rec_period="quarterly", rec_start=date(2024, 1, 31), rec_end=None,
        )
        expense = transaction_to_expense(row)

        assert expense.amount == Decimal("120.00")
        assert expense.recurrence == Recurrence(
            enabled=True, period=RecurrencePeriod.QUARTERLY, start=date(2024, 1, 31)
        )

    def test_legacy_recurring_row_is_normalised(self):
        row = ORMTransaction(
            id="t3", workspace_id="w", account_id="a1", trx_date=date(2024, 1, 5),
            amount=Decimal("-10"), description=None, is_recurring=True,
        )
        expense = transaction_to_expense(row)

        assert expense.category == ""
        assert expense.recurrence.period == RecurrencePeriod.MONTHLY

    def test_column_translators_apply_sign(self):
        assert income_columns({"amount": Decimal("-5"), "source": "Gift"}) == {
            "description": "Gift",
            "amount": Decimal("5.00"),
        }
        columns = expense_columns({
            "amount": Decimal("5"),
            "date": date(2024, 1, 1),
            "recurrence": None,
            "projected": False,
        })
        assert columns["amount"] == Decimal("-5.00")
        assert columns["trx_date"] == date(2024, 1, 1)
        assert columns["rec_period"] is None
        assert "projected" not in columns


class TestInvestmentMapper:
    """Tests for Investment mapper."""

    def test_investment_roundtrip_columns(self):
        row = ORMInvestment(
            id="v", workspace_id="w", account_id=None, inv_date=date(2024, 1, 1),
            instrument="ETF", amount=Decimal("-20"),
        )
        investment = investment_to_domain(row)

        assert investment.amount == Decimal("-20.00")
        assert investment.account_id is None
        assert investment_columns({"date": date(2024, 2, 1), "amount": Decimal("3")}) == {
            "inv_date": date(2024, 2, 1),
            "amount": Decimal("3"),
        }
