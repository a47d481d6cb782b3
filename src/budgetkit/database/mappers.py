"""Mapper functions between domain entities and SQLAlchemy rows.

Incomes and expenses both live in the signed ``transactions`` table, so the
sign of ``amount`` decides which entity a row becomes and the column
translators below re-apply it on the way in.
"""

from decimal import Decimal
from typing import Any, Optional

from budgetkit.domain import entities as domain
from budgetkit.domain.recurrence import normalize_expense
from budgetkit.utils.amount_parser import round_money
from budgetkit.database.models import (
    Account as ORMAccount,
    Investment as ORMInvestment,
    Project as ORMProject,
    ProjectContribution as ORMProjectContribution,
    Transaction as ORMTransaction,
    Transfer as ORMTransfer,
)


def _money(value: Optional[Decimal]) -> Decimal:
    return round_money(value if value is not None else 0)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        type=domain.AccountType(orm_account.type),
        balance=_money(orm_account.balance),
        currency=domain.Currency.KSH if orm_account.currency == "KSH" else domain.Currency.USD,
    )


def transaction_to_income(row: ORMTransaction) -> domain.Income:
    """Convert a positive transaction row to an Income entity."""
    return domain.Income(
        id=row.id,
        date=row.trx_date,
        source=row.description or "",
        amount=_money(row.amount),
        account_id=row.account_id,
        notes=row.notes,
    )


def transaction_to_expense(row: ORMTransaction) -> domain.Expense:
    """Convert a negative transaction row to an Expense entity."""
    recurrence = None
    if row.rec_period is not None and row.rec_start is not None:
        recurrence = domain.Recurrence(
            enabled=bool(row.rec_enabled),
            period=domain.RecurrencePeriod(row.rec_period),
            start=row.rec_start,
            end=row.rec_end,
        )
    expense = domain.Expense(
        id=row.id,
        date=row.trx_date,
        category=row.description or "",
        amount=abs(_money(row.amount)),
        account_id=row.account_id,
        is_recurring=bool(row.is_recurring),
        recurrence=recurrence,
        notes=row.notes,
    )
    return normalize_expense(expense)


def transfer_to_domain(row: ORMTransfer) -> domain.Transfer:
    """Convert SQLAlchemy Transfer model to domain Transfer entity."""
    return domain.Transfer(
        id=row.id,
        date=row.trx_date,
        from_account_id=row.from_account_id,
        to_account_id=row.to_account_id,
        amount=_money(row.amount),
        notes=row.notes,
    )


def investment_to_domain(row: ORMInvestment) -> domain.Investment:
    """Convert SQLAlchemy Investment model to domain Investment entity."""
    return domain.Investment(
        id=row.id,
        date=row.inv_date,
        instrument=row.instrument,
        amount=_money(row.amount),
        account_id=row.account_id,
        notes=row.notes,
    )


def project_to_domain(row: ORMProject) -> domain.Project:
    """Convert SQLAlchemy Project model to domain Project entity."""
    return domain.Project(
        id=row.id,
        name=row.name,
        target_amount=_money(row.target_amount),
        target_date=row.target_date,
        notes=row.notes,
    )


def contribution_to_domain(row: ORMProjectContribution) -> domain.ProjectContribution:
    """Convert SQLAlchemy ProjectContribution model to domain entity."""
    return domain.ProjectContribution(
        id=row.id,
        project_id=row.project_id,
        date=row.date,
        amount=_money(row.amount),
    )


# Domain field patches -> column values


def account_columns(patch: dict[str, Any]) -> dict[str, Any]:
    columns = {}
    for key, value in patch.items():
        if key in ("type", "currency"):
            columns[key] = value.value if hasattr(value, "value") else value
        elif key in ("name", "balance"):
            columns[key] = value
    return columns


def income_columns(patch: dict[str, Any]) -> dict[str, Any]:
    renames = {"date": "trx_date", "source": "description", "account_id": "account_id", "notes": "notes"}
    columns = {renames[key]: value for key, value in patch.items() if key in renames}
    if "amount" in patch:
        columns["amount"] = abs(round_money(patch["amount"]))
    return columns


def recurrence_columns(recurrence: Optional[domain.Recurrence]) -> dict[str, Any]:
    if recurrence is None:
        return {"rec_enabled": None, "rec_period": None, "rec_start": None, "rec_end": None}
    return {
        "rec_enabled": recurrence.enabled,
        "rec_period": recurrence.period.value,
        "rec_start": recurrence.start,
        "rec_end": recurrence.end,
    }


def expense_columns(patch: dict[str, Any]) -> dict[str, Any]:
    renames = {
        "date": "trx_date",
        "category": "description",
        "account_id": "account_id",
        "notes": "notes",
        "is_recurring": "is_recurring",
    }
    columns = {renames[key]: value for key, value in patch.items() if key in renames}
    if "amount" in patch:
        columns["amount"] = -abs(round_money(patch["amount"]))
    if "recurrence" in patch:
        columns.update(recurrence_columns(patch["recurrence"]))
    return columns


def transfer_columns(patch: dict[str, Any]) -> dict[str, Any]:
    renames = {
        "date": "trx_date",
        "from_account_id": "from_account_id",
        "to_account_id": "to_account_id",
        "amount": "amount",
        "notes": "notes",
    }
    return {renames[key]: value for key, value in patch.items() if key in renames}


def investment_columns(patch: dict[str, Any]) -> dict[str, Any]:
    renames = {
        "date": "inv_date",
        "instrument": "instrument",
        "amount": "amount",
        "account_id": "account_id",
        "notes": "notes",
    }
    return {renames[key]: value for key, value in patch.items() if key in renames}


def project_columns(patch: dict[str, Any]) -> dict[str, Any]:
    allowed = ("name", "target_amount", "target_date", "notes")
    return {key: value for key, value in patch.items() if key in allowed}


def contribution_columns(patch: dict[str, Any]) -> dict[str, Any]:
    allowed = ("project_id", "date", "amount")
    return {key: value for key, value in patch.items() if key in allowed}
