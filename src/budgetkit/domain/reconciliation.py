"""Balance reconciliation and journal derivation.

Every money-moving record maps to a set of balance deltas keyed by account
id. Creating a record applies its deltas, deleting it applies their negation,
and editing it applies ``reverse(old) + new``. The journal of account
transactions is a pure projection of incomes, expenses and transfers, so it
can always be rebuilt from those records alone.
"""

from dataclasses import replace
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence
from uuid import uuid4

from budgetkit.domain.entities import (
    Account,
    AccountTxn,
    Expense,
    Income,
    Investment,
    LinkedType,
    Store,
    Transfer,
    TxnType,
)
from budgetkit.domain.errors import (
    ValidationError,
    non_positive_amount,
    transfer_same_account,
)
from budgetkit.utils.amount_parser import round_money

MISSING_ACCOUNT = "—"

Deltas = dict[str, Decimal]
AccountNameLookup = Callable[[str], Optional[str]]


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid4().hex


def account_name(accounts: Iterable[Account], account_id: Optional[str], default: str = MISSING_ACCOUNT) -> str:
    """Resolve an account name, falling back to a placeholder for orphans."""
    for account in accounts:
        if account.id == account_id:
            return account.name
    return default


def name_lookup(accounts: Sequence[Account]) -> AccountNameLookup:
    """Build a lookup returning an account's name or ``None``."""
    names = {account.id: account.name for account in accounts}
    return names.get


# Delta computation


def income_deltas(income: Income) -> Deltas:
    return {income.account_id: round_money(income.amount)}


def expense_deltas(expense: Expense) -> Deltas:
    return {expense.account_id: -round_money(expense.amount)}


def investment_deltas(investment: Investment) -> Deltas:
    """Positive amounts fund the investment and drain the account."""
    if not investment.account_id:
        return {}
    return {investment.account_id: -round_money(investment.amount)}


def transfer_deltas(transfer: Transfer) -> Deltas:
    amount = round_money(transfer.amount)
    return combine({transfer.from_account_id: -amount}, {transfer.to_account_id: amount})


def combine(*delta_sets: Deltas) -> Deltas:
    """Sum several delta sets per account."""
    result: Deltas = {}
    for deltas in delta_sets:
        for account_id, delta in deltas.items():
            result[account_id] = result.get(account_id, Decimal("0")) + delta
    return result


def reverse(deltas: Deltas) -> Deltas:
    return {account_id: -delta for account_id, delta in deltas.items()}


def edit_deltas(original: Deltas, edited: Deltas) -> Deltas:
    """Deltas that turn the effect of ``original`` into that of ``edited``.

    When both sides touch the same account this is the signed difference;
    when the account changed it is a full reversal on the old account plus a
    full application on the new one.
    """
    return combine(reverse(original), edited)


def adjust(accounts: Sequence[Account], account_id: str, delta: Decimal) -> list[Account]:
    """Apply ``delta`` to one account's balance.

    Unknown account ids are ignored; balances can always be re-derived.
    """
    return [
        replace(account, balance=round_money(account.balance + delta)) if account.id == account_id else account
        for account in accounts
    ]


def apply_deltas(accounts: Sequence[Account], deltas: Deltas) -> list[Account]:
    result = list(accounts)
    for account_id, delta in deltas.items():
        if delta:
            result = adjust(result, account_id, delta)
    return result


# Validation


def validate_positive(kind: str, amount: Decimal) -> None:
    if amount is None or amount <= 0:
        raise ValidationError(non_positive_amount(kind, amount))


def validate_transfer(transfer: Transfer) -> None:
    """Reject transfers that would move nothing or move money in place."""
    if transfer.from_account_id == transfer.to_account_id:
        raise ValidationError(transfer_same_account(transfer.from_account_id))
    validate_positive("Transfer", transfer.amount)


# Journal projection


def income_to_journal_entry(income: Income, entry_id: Optional[str] = None) -> AccountTxn:
    return AccountTxn(
        id=entry_id or new_id(),
        date=income.date,
        account_id=income.account_id,
        type=TxnType.DEPOSIT,
        amount=round_money(income.amount),
        linked_type=LinkedType.INCOME,
        linked_id=income.id,
        notes=income.source or "Income",
    )


def expense_to_journal_entry(expense: Expense, entry_id: Optional[str] = None) -> AccountTxn:
    return AccountTxn(
        id=entry_id or new_id(),
        date=expense.date,
        account_id=expense.account_id,
        type=TxnType.WITHDRAWAL,
        amount=round_money(expense.amount),
        linked_type=LinkedType.EXPENSE,
        linked_id=expense.id,
        notes=expense.category or "Expense",
    )


def transfer_to_journal_entries(
    transfer: Transfer,
    account_name: AccountNameLookup,
    entry_ids: tuple[Optional[str], Optional[str]] = (None, None),
) -> list[AccountTxn]:
    """Project a transfer onto its withdrawal and deposit journal entries.

    Args:
        transfer: Source transfer
        account_name: Lookup returning an account name or None
        entry_ids: Ids to reuse for the (withdrawal, deposit) entries

    Returns:
        ``[withdrawal, deposit]``
    """
    amount = round_money(transfer.amount)
    from_name = account_name(transfer.from_account_id) or "From"
    to_name = account_name(transfer.to_account_id) or "To"
    withdrawal_id, deposit_id = entry_ids
    return [
        AccountTxn(
            id=withdrawal_id or new_id(),
            date=transfer.date,
            account_id=transfer.from_account_id,
            type=TxnType.WITHDRAWAL,
            amount=amount,
            linked_type=LinkedType.TRANSFER,
            linked_id=transfer.id,
            notes=transfer.notes or f"Transfer to {to_name}",
            transfer_from_id=transfer.from_account_id,
            transfer_to_id=transfer.to_account_id,
        ),
        AccountTxn(
            id=deposit_id or new_id(),
            date=transfer.date,
            account_id=transfer.to_account_id,
            type=TxnType.DEPOSIT,
            amount=amount,
            linked_type=LinkedType.TRANSFER,
            linked_id=transfer.id,
            notes=transfer.notes or f"Transfer from {from_name}",
            transfer_from_id=transfer.from_account_id,
            transfer_to_id=transfer.to_account_id,
        ),
    ]


def is_linked_to(entry: AccountTxn, linked_type: LinkedType, linked_id: str) -> bool:
    return entry.linked_type == linked_type and entry.linked_id == linked_id


def without_linked(entries: Sequence[AccountTxn], linked_type: LinkedType, linked_id: str) -> list[AccountTxn]:
    """Drop every journal entry derived from one source record."""
    return [entry for entry in entries if not is_linked_to(entry, linked_type, linked_id)]


def replay_journal(
    incomes: Sequence[Income],
    expenses: Sequence[Expense],
    transfers: Sequence[Transfer],
    account_name: AccountNameLookup,
) -> list[AccountTxn]:
    """Rebuild the whole journal from source records, newest first."""
    entries: list[AccountTxn] = []
    entries.extend(income_to_journal_entry(income) for income in incomes)
    entries.extend(expense_to_journal_entry(expense) for expense in expenses)
    for transfer in transfers:
        entries.extend(transfer_to_journal_entries(transfer, account_name))
    entries.sort(key=lambda entry: entry.date, reverse=True)
    return entries


def activity_deltas(store: Store) -> Deltas:
    """Net effect of every recorded money movement per account."""
    return combine(
        *(income_deltas(income) for income in store.incomes),
        *(expense_deltas(expense) for expense in store.expenses),
        *(transfer_deltas(transfer) for transfer in store.transfers),
        *(investment_deltas(investment) for investment in store.investments),
    )


def derive_balances(store: Store) -> list[Account]:
    """Recompute every balance from scratch as the sum of its activity."""
    totals = activity_deltas(store)
    return [
        replace(account, balance=round_money(totals.get(account.id, Decimal("0"))))
        for account in store.accounts
    ]


def rebuild_derived_state(store: Store, derive: bool) -> Store:
    """Return ``store`` with its journal replayed and, optionally, balances derived."""
    journal = replay_journal(store.incomes, store.expenses, store.transfers, name_lookup(store.accounts))
    accounts = derive_balances(store) if derive else list(store.accounts)
    return replace(store, account_txns=journal, accounts=accounts)
