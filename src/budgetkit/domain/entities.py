"""Domain model entities for budgetkit.

These are pure data classes representing budgeting concepts, independent of
how a backend stores them. Source records (incomes, expenses, transfers,
investments) are immutable; the ``Store`` aggregate that owns them is the
only mutable object and is replaced field by field by the ledger service.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional


class Currency(str, Enum):
    """Display currency of a store or an account."""

    USD = "USD"
    KSH = "KSH"


class AccountType(str, Enum):
    """Kind of money container."""

    SAVINGS = "Savings"
    INVESTMENT = "Investment"
    WALLET = "Wallet"
    BANK = "Bank"


class RecurrencePeriod(str, Enum):
    """Supported recurrence periods for expenses."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"


class TxnType(str, Enum):
    """Direction of a journal entry relative to its account."""

    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"


class LinkedType(str, Enum):
    """Kind of source record a journal entry was derived from."""

    INCOME = "Income"
    EXPENSE = "Expense"
    TRANSFER = "Transfer"


@dataclass(frozen=True)
class Account:
    """Account domain entity."""

    id: str
    name: str
    type: AccountType
    balance: Decimal
    currency: Currency


@dataclass(frozen=True)
class Income:
    """Deposit into an account."""

    id: str
    date: date
    source: str
    amount: Decimal
    account_id: str
    notes: Optional[str] = None


@dataclass(frozen=True)
class Recurrence:
    """Structured recurrence schedule of an expense."""

    enabled: bool
    period: RecurrencePeriod
    start: date
    end: Optional[date] = None


@dataclass(frozen=True)
class Expense:
    """Withdrawal from an account, optionally recurring.

    ``is_recurring`` is the legacy flag. Once an expense has gone through
    ``normalize_expense`` it mirrors ``recurrence.enabled``.
    """

    id: str
    date: date
    category: str
    amount: Decimal
    account_id: str
    is_recurring: bool = False
    recurrence: Optional[Recurrence] = None
    notes: Optional[str] = None
    projected: bool = False


@dataclass(frozen=True)
class Transfer:
    """Movement of money between two accounts."""

    id: str
    date: date
    from_account_id: str
    to_account_id: str
    amount: Decimal
    notes: Optional[str] = None


@dataclass(frozen=True)
class Investment:
    """Investment contribution (positive) or withdrawal (negative)."""

    id: str
    date: date
    instrument: str
    amount: Decimal
    account_id: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class Project:
    """Savings goal."""

    id: str
    name: str
    target_amount: Decimal
    target_date: date
    notes: Optional[str] = None


@dataclass(frozen=True)
class ProjectContribution:
    """Dated contribution towards a savings goal."""

    id: str
    project_id: str
    date: date
    amount: Decimal


@dataclass(frozen=True)
class AccountTxn:
    """Journal entry: one side of a money movement on one account."""

    id: str
    date: date
    account_id: str
    type: TxnType
    amount: Decimal
    linked_type: LinkedType
    linked_id: str
    notes: str
    transfer_from_id: Optional[str] = None
    transfer_to_id: Optional[str] = None


@dataclass
class Store:
    """Top-level aggregate owning every collection of one budget."""

    currency: Currency = Currency.USD
    accounts: list[Account] = field(default_factory=list)
    incomes: list[Income] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)
    transfers: list[Transfer] = field(default_factory=list)
    account_txns: list[AccountTxn] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    project_contributions: list[ProjectContribution] = field(default_factory=list)
    investments: list[Investment] = field(default_factory=list)


@dataclass(frozen=True)
class TrendPoint:
    """One month of the merged income/expense/investment trend."""

    month: str
    income: Decimal
    expenses: Decimal
    investments: Decimal
    net: Decimal


@dataclass(frozen=True)
class ProjectStats:
    """Funding status of one savings goal."""

    project: Project
    contributed: Decimal
    remaining: Decimal
    months_left: int
    required_monthly: Decimal


@dataclass(frozen=True)
class DashboardSummary:
    """Derived values for one selected month."""

    month: str
    currency: Currency
    income_this_month: Decimal
    expense_this_month: Decimal
    net_this_month: Decimal
    total_account_balances: Decimal
    month_incomes: tuple[Income, ...]
    month_expenses: tuple[Expense, ...]
    month_account_txns: tuple[AccountTxn, ...]
    projected_recurring_monthly: Decimal
    project_stats: tuple[ProjectStats, ...]
    required_for_goals_monthly: Decimal
    available_for_goals_this_month: Decimal
