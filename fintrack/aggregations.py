"""Derived metrics over a snapshot of transactions and budgets.

Every function here is pure: inputs are only read, results are new frozen
records, and divisions by zero fall back to ``0`` instead of raising.
"""
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence

from fintrack.domain import (
    Budget,
    BudgetCategory,
    Category,
    Transaction,
    month_key,
    month_label,
    previous_month,
)
from fintrack.filters import by_month, newest_first
from fintrack.lazy import expense_totals, iter_transactions, lazy_top_categories, ranked

MONTHS_SHOWN = 6
TOP_CATEGORIES = 3
WARNING_THRESHOLD = 80.0
OVER_THRESHOLD = 100.0

STATUS_OVER = "over"
STATUS_WARNING = "warning"
STATUS_GOOD = "good"


@dataclass(frozen=True)
class SummaryTotals:
    total_income: float
    total_expenses: float
    net_balance: float
    transaction_count: int


@dataclass(frozen=True)
class MonthlyExpense:
    month: str   # sortable YYYY-MM key
    label: str   # display only
    total: float


@dataclass(frozen=True)
class CategoryShare:
    category: Category
    amount: float
    percentage: float


@dataclass(frozen=True)
class BudgetStatus:
    budget: Budget
    actual_spending: float
    percentage_used: float
    remaining: float
    status: str

    @property
    def category(self) -> BudgetCategory:
        return self.budget.category

    @property
    def month(self) -> str:
        return self.budget.month

    @property
    def amount(self) -> float:
        return self.budget.amount


@dataclass(frozen=True)
class BudgetAlert:
    category: BudgetCategory
    spent: float
    budget_amount: float
    percentage: float
    status: str


@dataclass(frozen=True)
class SpendingInsights:
    current_month: str
    last_month: str
    current_month_spending: float
    last_month_spending: float
    spending_trend_percent: float
    top_categories: tuple[CategoryShare, ...]
    budget_alerts: tuple[BudgetAlert, ...]
    average_transaction_amount: float
    transaction_count: int
    most_frequent_category: Optional[Category]
    most_frequent_count: int
    days_since_last_transaction: Optional[int]


def _percent(part: float, whole: float) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def summary_totals(transactions: Iterable[Transaction]) -> SummaryTotals:
    trans = tuple(transactions)
    income = sum(t.amount for t in trans if t.is_income)
    expenses = sum(t.amount for t in trans if t.is_expense)
    return SummaryTotals(
        total_income=float(income),
        total_expenses=float(expenses),
        net_balance=float(income - expenses),
        transaction_count=len(trans),
    )


def monthly_expenses(
    transactions: Iterable[Transaction], limit: int = MONTHS_SHOWN
) -> tuple[MonthlyExpense, ...]:
    """Expense totals per calendar month, oldest first, last ``limit`` months.

    Months without expenses are skipped, not filled with zero.
    """
    totals: dict[str, float] = defaultdict(float)
    for t in transactions:
        if t.is_expense:
            totals[t.month_key] += t.amount

    keys = sorted(totals)[-limit:] if limit > 0 else []
    return tuple(MonthlyExpense(month=k, label=month_label(k), total=totals[k]) for k in keys)


def category_breakdown(transactions: Iterable[Transaction]) -> tuple[CategoryShare, ...]:
    totals = expense_totals(transactions)
    grand_total = sum(totals.values())
    return tuple(
        CategoryShare(category=cat, amount=amount, percentage=_percent(amount, grand_total))
        for cat, amount in ranked(totals)
    )


def budget_spending(budget: Budget, transactions: Iterable[Transaction]) -> float:
    category = budget.expense_category
    return float(sum(
        t.amount
        for t in transactions
        if t.is_expense and t.category is category and t.month_key == budget.month
    ))


def budget_status(percentage_used: float) -> str:
    if percentage_used > OVER_THRESHOLD:
        return STATUS_OVER
    if percentage_used > WARNING_THRESHOLD:
        return STATUS_WARNING
    return STATUS_GOOD


def compare_budget(budget: Budget, transactions: Iterable[Transaction]) -> BudgetStatus:
    actual = budget_spending(budget, transactions)
    percentage = _percent(actual, budget.amount)
    return BudgetStatus(
        budget=budget,
        actual_spending=actual,
        percentage_used=percentage,
        remaining=budget.amount - actual,
        status=budget_status(percentage),
    )


def budget_comparison(
    budgets: Iterable[Budget], transactions: Iterable[Transaction]
) -> tuple[BudgetStatus, ...]:
    trans = tuple(transactions)
    return tuple(compare_budget(b, trans) for b in budgets)


def budget_alerts(
    budgets: Iterable[Budget], transactions: Iterable[Transaction], month: str
) -> tuple[BudgetAlert, ...]:
    return tuple(
        BudgetAlert(
            category=s.category,
            spent=s.actual_spending,
            budget_amount=s.amount,
            percentage=s.percentage_used,
            status=s.status,
        )
        for s in budget_comparison((b for b in budgets if b.month == month), transactions)
        if s.percentage_used > WARNING_THRESHOLD
    )


def month_spending(transactions: Iterable[Transaction], key: str) -> float:
    return float(sum(t.amount for t in iter_transactions(transactions, by_month(key)) if t.is_expense))


def spending_trend(current: float, previous: float) -> float:
    return (current - previous) / previous * 100 if previous > 0 else 0.0


def most_frequent_category(transactions: Iterable[Transaction]) -> tuple[Optional[Category], int]:
    """Category with the most transactions of any type.

    Ties go to the category seen first in the input.
    """
    counts: dict[Category, int] = {}
    for t in transactions:
        counts[t.category] = counts.get(t.category, 0) + 1
    if not counts:
        return None, 0
    best = max(counts, key=counts.__getitem__)
    return best, counts[best]


def days_since_last(transactions: Iterable[Transaction], today: date) -> Optional[int]:
    dates = [t.date for t in transactions]
    if not dates:
        return None
    return (today - max(dates)).days


def recent_transactions(transactions: Iterable[Transaction], limit: int = 5) -> tuple[Transaction, ...]:
    return newest_first(transactions)[:limit]


def spending_insights(
    transactions: Sequence[Transaction], budgets: Sequence[Budget], today: date
) -> SpendingInsights:
    trans = tuple(transactions)
    current = month_key(today)
    last = previous_month(current)

    current_spending = month_spending(trans, current)
    last_spending = month_spending(trans, last)

    this_month = tuple(iter_transactions(trans, by_month(current)))
    top = tuple(
        CategoryShare(category=cat, amount=amount, percentage=_percent(amount, current_spending))
        for cat, amount in lazy_top_categories(this_month, TOP_CATEGORIES)
    )

    category, count = most_frequent_category(trans)
    total = sum(t.amount for t in trans)

    return SpendingInsights(
        current_month=current,
        last_month=last,
        current_month_spending=current_spending,
        last_month_spending=last_spending,
        spending_trend_percent=spending_trend(current_spending, last_spending),
        top_categories=top,
        budget_alerts=budget_alerts(budgets, trans, current),
        average_transaction_amount=float(total / len(trans)) if trans else 0.0,
        transaction_count=len(trans),
        most_frequent_category=category,
        most_frequent_count=count,
        days_since_last_transaction=days_since_last(trans, today),
    )
