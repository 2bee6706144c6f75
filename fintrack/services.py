from collections import Counter
from datetime import date
from typing import Any, Callable, Dict, List, Sequence

from fintrack import aggregations as agg
from fintrack.domain import Snapshot

Validator = Callable[[Snapshot], Sequence[str]]
Calculator = Callable[[Snapshot, date, Dict[str, Any]], Dict[str, Any]]


class DashboardService:
    """Facade for building the dashboard from injected validators and calculators.

    validators: functions taking a Snapshot -> Sequence[str] of problems found
    calculators: functions taking (snapshot, today, acc) -> dict (partial results);
        ``acc`` holds everything earlier calculators returned
    """

    def __init__(self, validators: Sequence[Validator], calculators: Sequence[Calculator]):
        self.validators = validators
        self.calculators = calculators

    def build(self, snapshot: Snapshot, today: date) -> Dict[str, Any]:
        """Run validators and calculators and return the report with intermediate steps."""
        report: Dict[str, Any] = {
            "today": today,
            "validation": [],
            "steps": [],
            "result": {},
        }

        for v in self.validators:
            report["validation"].append({"validator": v.__name__, "messages": list(v(snapshot))})

        acc: Dict[str, Any] = {}
        for calc in self.calculators:
            out = calc(snapshot, today, acc)
            report["steps"].append({"calculator": calc.__name__, "output": out})
            acc.update(out)

        report["result"] = acc
        return report


def duplicate_budgets(snapshot: Snapshot) -> List[str]:
    counts = Counter((b.category, b.month) for b in snapshot.budgets)
    return [
        f"duplicate budget for {category.value} in {month}"
        for (category, month), n in counts.items()
        if n > 1
    ]


def non_positive_amounts(snapshot: Snapshot) -> List[str]:
    return [
        f"transaction {t.id} has non-positive amount {t.amount}"
        for t in snapshot.transactions
        if t.amount <= 0
    ]


def calc_summary(snapshot: Snapshot, today: date, acc: Dict[str, Any]) -> Dict[str, Any]:
    return {"summary": agg.summary_totals(snapshot.transactions)}


def calc_monthly(snapshot: Snapshot, today: date, acc: Dict[str, Any]) -> Dict[str, Any]:
    return {"monthly_expenses": agg.monthly_expenses(snapshot.transactions)}


def calc_categories(snapshot: Snapshot, today: date, acc: Dict[str, Any]) -> Dict[str, Any]:
    return {"category_breakdown": agg.category_breakdown(snapshot.transactions)}


def calc_budgets(snapshot: Snapshot, today: date, acc: Dict[str, Any]) -> Dict[str, Any]:
    return {"budget_comparison": agg.budget_comparison(snapshot.budgets, snapshot.transactions)}


def calc_insights(snapshot: Snapshot, today: date, acc: Dict[str, Any]) -> Dict[str, Any]:
    return {"insights": agg.spending_insights(snapshot.transactions, snapshot.budgets, today)}


def calc_recent(snapshot: Snapshot, today: date, acc: Dict[str, Any]) -> Dict[str, Any]:
    return {"recent_transactions": agg.recent_transactions(snapshot.transactions)}


def default_dashboard_service() -> DashboardService:
    return DashboardService(
        validators=[duplicate_budgets, non_positive_amounts],
        calculators=[calc_summary, calc_monthly, calc_categories, calc_budgets, calc_insights, calc_recent],
    )
