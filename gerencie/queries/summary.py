"""
Finance Summaries

Deterministic aggregation over records already fetched from storage. The
dashboard, the reports page and the list screens all read through here,
and the advisor agent only ever sees numbers produced by these functions.
"""

import calendar
from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from gerencie.models.entities import (
    Category,
    Debt,
    Goal,
    ShoppingItem,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from gerencie.models.finance import ChartPoint, FinancialData

HEALTH_NO_DATA = "No Data"
HEALTH_CRITICAL = "Critical"
HEALTH_EXCELLENT = "Excellent"
HEALTH_GOOD = "Good"

# Share of the month's totals shown in each weekly bucket
WEEKLY_INCOME_SPLIT = (0.2, 0.3, 0.1, 0.4)
WEEKLY_EXPENSE_SPLIT = (0.25, 0.15, 0.40, 0.20)

TYPE_FILTERS = ("all", "income", "expense")


def health_score(income: float, expenses: float) -> str:
    if income == 0 and expenses == 0:
        return HEALTH_NO_DATA
    if expenses > income:
        return HEALTH_CRITICAL
    if (income - expenses) / (income or 1) > 0.2:
        return HEALTH_EXCELLENT
    return HEALTH_GOOD


def summarize(transactions: Iterable[Transaction]) -> FinancialData:
    """
    Dashboard totals.

    Income and expenses count paid transactions only; pending expenses are
    reported separately and do not affect the balance.
    """
    income = 0.0
    expenses = 0.0
    pending_expenses = 0.0

    for tx in transactions:
        if tx.type == TransactionType.INCOME:
            if tx.status == TransactionStatus.PAID:
                income += tx.amount
        else:
            if tx.status == TransactionStatus.PAID:
                expenses += tx.amount
            elif tx.status == TransactionStatus.PENDING:
                pending_expenses += tx.amount

    return FinancialData(
        income=income,
        expenses=expenses,
        balance=income - expenses,
        pending_expenses=pending_expenses,
        health_score=health_score(income, expenses),
    )


def weekly_chart(data: FinancialData, has_transactions: bool) -> list[ChartPoint]:
    """Four weekly buckets for the dashboard chart (flat line when empty)."""
    points = []
    for week, (income_share, expense_share) in enumerate(
        zip(WEEKLY_INCOME_SPLIT, WEEKLY_EXPENSE_SPLIT), start=1
    ):
        points.append(ChartPoint(
            name=f"Week {week}",
            income=data.income * income_share if has_transactions else 0.0,
            expense=data.expenses * expense_share if has_transactions else 0.0,
        ))
    return points


def shift_month(start: date, months: int) -> date:
    """
    Same day `months` later, clamped to the end of shorter months.

    Jan 31 + 1 month -> Feb 28 (or 29).
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(start.day, last_day))


def monthly_totals(
    transactions: Iterable[Transaction],
    months: int = 6,
    today: Optional[date] = None,
) -> list[ChartPoint]:
    """Paid income vs. paid expenses for the last `months` months, oldest first."""
    today = today or date.today()
    first_of_month = today.replace(day=1)
    buckets = [shift_month(first_of_month, -offset) for offset in range(months - 1, -1, -1)]
    totals = {(b.year, b.month): ChartPoint(name=b.strftime("%b %Y")) for b in buckets}

    for tx in transactions:
        if tx.status != TransactionStatus.PAID:
            continue
        point = totals.get((tx.date.year, tx.date.month))
        if point is None:
            continue
        if tx.type == TransactionType.INCOME:
            point.income += tx.amount
        else:
            point.expense += tx.amount

    return [totals[(b.year, b.month)] for b in buckets]


def category_totals(
    transactions: Iterable[Transaction],
    tx_type: TransactionType = TransactionType.EXPENSE,
) -> dict[str, float]:
    """Paid totals per category name, largest first."""
    totals: dict[str, float] = defaultdict(float)
    for tx in transactions:
        if tx.type == tx_type and tx.status == TransactionStatus.PAID:
            totals[tx.category or "Other"] += tx.amount
    return dict(sorted(totals.items(), key=lambda kv: kv[1], reverse=True))


def sort_by_date_desc(transactions: Iterable[Transaction]) -> list[Transaction]:
    return sorted(transactions, key=lambda t: t.date, reverse=True)


def filter_transactions(
    transactions: Iterable[Transaction],
    search: str = "",
    type_filter: str = "all",
) -> list[Transaction]:
    """
    Case-insensitive search over description and category, plus a type filter.
    """
    if type_filter not in TYPE_FILTERS:
        raise ValueError(f"Unknown type filter: {type_filter}")

    needle = search.strip().lower()
    result = []
    for tx in transactions:
        if needle and needle not in tx.description.lower() and needle not in tx.category.lower():
            continue
        if type_filter != "all" and tx.type.value != type_filter:
            continue
        result.append(tx)
    return result


def paid_and_pending(transactions: Iterable[Transaction]) -> tuple[float, float]:
    """Totals of paid and pending amounts (used on the expenses page)."""
    paid = 0.0
    pending = 0.0
    for tx in transactions:
        if tx.status == TransactionStatus.PAID:
            paid += tx.amount
        else:
            pending += tx.amount
    return paid, pending


def debt_progress(debt: Debt) -> float:
    """Percentage of the debt already paid (0-100)."""
    total = debt.total_amount or 1
    remaining = debt.remaining_amount or 0
    return max(0.0, min(100.0, (total - remaining) / total * 100))


def total_remaining_debt(debts: Iterable[Debt]) -> float:
    return sum(d.remaining_amount for d in debts)


def goal_progress(goal: Goal) -> float:
    """Percentage of the target already saved (0-100)."""
    if goal.target_amount <= 0:
        return 100.0 if goal.current_amount > 0 else 0.0
    return max(0.0, min(100.0, goal.current_amount / goal.target_amount * 100))


def category_spent(category: Category, transactions: Iterable[Transaction]) -> float:
    """
    Paid amount recorded against a category.

    Matches transactions by category name, case-insensitively.
    """
    name = category.name.strip().lower()
    tx_type = category.type or TransactionType.EXPENSE
    return sum(
        tx.amount
        for tx in transactions
        if tx.type == tx_type
        and tx.status == TransactionStatus.PAID
        and tx.category.strip().lower() == name
    )


def budget_usage(category: Category, spent: float) -> Optional[float]:
    """Spent as a percentage of the budget; None when there is no budget."""
    if category.budget <= 0:
        return None
    return spent / category.budget * 100


def restock_cost(items: Iterable[ShoppingItem]) -> float:
    """What it costs to bring every item back to its ideal quantity."""
    return sum(item.missing_qty * item.price for item in items)
