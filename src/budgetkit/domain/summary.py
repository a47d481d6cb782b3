"""Monthly aggregation, trend and goal funding views."""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from math import ceil
from typing import Iterable, Optional, Protocol, Sequence

from budgetkit.domain.entities import (
    DashboardSummary,
    ProjectStats,
    Store,
    TrendPoint,
)
from budgetkit.domain.recurrence import (
    month_expenses_for_display,
    month_expenses_real,
    projected_recurring_monthly,
)
from budgetkit.utils.amount_parser import round_money
from budgetkit.utils.periods import month_key, month_label, month_number, split_month_key, year_of

ALL_MONTHS = "All"
DAYS_PER_MONTH = 30.4

ZERO = Decimal("0")


class Dated(Protocol):
    date: date
    amount: Decimal


def monthly_totals(rows: Iterable[Dated]) -> list[tuple[str, Decimal]]:
    """Sum amounts per month, oldest month first."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for row in rows:
        key = month_key(row.date)
        if not key:
            continue
        totals[key] += row.amount
    return [(key, round_money(totals[key])) for key in sorted(totals)]


def merge_trend(
    incomes: Iterable[Dated],
    expenses: Iterable[Dated],
    investments: Iterable[Dated],
) -> list[TrendPoint]:
    """Align income, expense and investment totals on the union of months."""
    income_by_month = dict(monthly_totals(incomes))
    expense_by_month = dict(monthly_totals(expenses))
    investment_by_month = dict(monthly_totals(investments))
    months = sorted(set(income_by_month) | set(expense_by_month) | set(investment_by_month))

    points = []
    for month in months:
        income = income_by_month.get(month, ZERO)
        spent = expense_by_month.get(month, ZERO)
        points.append(
            TrendPoint(
                month=month,
                income=income,
                expenses=spent,
                investments=investment_by_month.get(month, ZERO),
                net=round_money(income - spent),
            )
        )
    return points


def store_trend(store: Store) -> list[TrendPoint]:
    return merge_trend(store.incomes, store.expenses, store.investments)


def filter_trend(points: Sequence[TrendPoint], year: str, month_name: Optional[str] = None) -> list[TrendPoint]:
    """Keep the points of ``year`` and, unless ``month_name`` is "All", of one month."""
    selected = [point for point in points if year_of(point.month) == str(year)]
    if month_name is None or month_name == ALL_MONTHS:
        return selected
    wanted = month_number(month_name)
    return [point for point in selected if split_month_key(point.month)[1] == wanted]


def trend_labels(points: Sequence[TrendPoint]) -> list[str]:
    return [month_label(point.month) for point in points]


def years_in_data(store: Store) -> list[str]:
    """Years that have at least one income, expense or investment."""
    years = set()
    for rows in (store.incomes, store.expenses, store.investments):
        years.update(str(row.date.year) for row in rows)
    return sorted(years)


def months_until(target: date, today: date) -> int:
    """Whole months left until ``target``, never less than one."""
    days = (target - today).days
    return max(1, ceil(days / DAYS_PER_MONTH))


def project_stats(store: Store, today: date) -> list[ProjectStats]:
    """Funding gap of every savings goal as of ``today``."""
    contributed_by_project: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for contribution in store.project_contributions:
        contributed_by_project[contribution.project_id] += contribution.amount

    stats = []
    for project in store.projects:
        contributed = round_money(contributed_by_project[project.id])
        remaining = max(ZERO, round_money(project.target_amount - contributed))
        months_left = months_until(project.target_date, today)
        stats.append(
            ProjectStats(
                project=project,
                contributed=contributed,
                remaining=remaining,
                months_left=months_left,
                required_monthly=round_money(remaining / months_left),
            )
        )
    return stats


def build_dashboard(store: Store, ym: str, today: Optional[date] = None) -> DashboardSummary:
    """Compute every derived value shown for month ``ym``.

    Expense totals use recorded expenses only; projected recurring rows are
    part of the display list but never of the accounting numbers.
    """
    today = today or date.today()

    month_incomes = [income for income in store.incomes if month_key(income.date) == ym]
    income_this_month = round_money(sum((income.amount for income in month_incomes), ZERO))
    expense_this_month = round_money(
        sum((expense.amount for expense in month_expenses_real(store.expenses, ym)), ZERO)
    )
    net_this_month = round_money(income_this_month - expense_this_month)

    stats = project_stats(store, today)
    required_for_goals = round_money(sum((item.required_monthly for item in stats), ZERO))

    return DashboardSummary(
        month=ym,
        currency=store.currency,
        income_this_month=income_this_month,
        expense_this_month=expense_this_month,
        net_this_month=net_this_month,
        total_account_balances=round_money(sum((account.balance for account in store.accounts), ZERO)),
        month_incomes=tuple(month_incomes),
        month_expenses=tuple(month_expenses_for_display(store.expenses, ym)),
        month_account_txns=tuple(txn for txn in store.account_txns if month_key(txn.date) == ym),
        projected_recurring_monthly=projected_recurring_monthly(store.expenses),
        project_stats=tuple(stats),
        required_for_goals_monthly=required_for_goals,
        available_for_goals_this_month=round_money(net_this_month - required_for_goals),
    )
