"""Finance summary package."""

from gerencie.queries.summary import (
    budget_usage,
    category_spent,
    category_totals,
    debt_progress,
    filter_transactions,
    goal_progress,
    health_score,
    monthly_totals,
    paid_and_pending,
    restock_cost,
    shift_month,
    sort_by_date_desc,
    summarize,
    total_remaining_debt,
    weekly_chart,
)

__all__ = [
    "budget_usage",
    "category_spent",
    "category_totals",
    "debt_progress",
    "filter_transactions",
    "goal_progress",
    "health_score",
    "monthly_totals",
    "paid_and_pending",
    "restock_cost",
    "shift_month",
    "sort_by_date_desc",
    "summarize",
    "total_remaining_debt",
    "weekly_chart",
]
