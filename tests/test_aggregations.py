import math
from datetime import date

from fintrack.aggregations import (
    budget_comparison,
    budget_status,
    category_breakdown,
    compare_budget,
    monthly_expenses,
    recent_transactions,
    summary_totals,
)
from fintrack.domain import Budget, BudgetCategory, Category, Transaction, TransactionType

EXPENSE = TransactionType.EXPENSE
INCOME = TransactionType.INCOME


def make_tx(id, kind, amount, ts, category=Category.FOOD_AND_DINING, description="x"):
    return Transaction(
        id=id,
        amount=amount,
        date=date.fromisoformat(ts),
        description=description,
        category=category,
        type=kind,
    )


def scenario_a():
    return (
        make_tx("t1", EXPENSE, 100, "2024-01-15"),
        make_tx("t2", EXPENSE, 50, "2024-01-20"),
        make_tx("t3", INCOME, 1000, "2024-01-01", category=Category.INCOME, description="Salary"),
    )


def test_summary_totals_scenario_a():
    s = summary_totals(scenario_a())
    assert s.total_income == 1000
    assert s.total_expenses == 150
    assert s.net_balance == 850
    assert s.transaction_count == 3


def test_summary_totals_empty():
    s = summary_totals(())
    assert s.total_income == 0
    assert s.total_expenses == 0
    assert s.net_balance == 0
    assert s.transaction_count == 0


def test_net_balance_can_be_negative():
    trans = (
        make_tx("t1", INCOME, 100, "2024-01-01", category=Category.INCOME),
        make_tx("t2", EXPENSE, 250.5, "2024-01-02"),
    )
    s = summary_totals(trans)
    assert s.net_balance == s.total_income - s.total_expenses
    assert s.net_balance == -150.5


def test_monthly_expenses_groups_and_orders():
    trans = (
        make_tx("t1", EXPENSE, 30, "2024-03-02"),
        make_tx("t2", EXPENSE, 20, "2024-01-10"),
        make_tx("t3", EXPENSE, 5, "2024-03-28"),
        make_tx("t4", INCOME, 999, "2024-02-01", category=Category.INCOME),
    )
    series = monthly_expenses(trans)
    assert [m.month for m in series] == ["2024-01", "2024-03"]
    assert [m.total for m in series] == [20, 35]
    assert series[0].label == "Jan 2024"


def test_monthly_expenses_keeps_last_six_in_order():
    trans = tuple(
        make_tx(f"t{m}", EXPENSE, m, f"2023-{m:02d}-15")
        for m in range(1, 13)
    ) + (make_tx("t13", EXPENSE, 7, "2024-01-03"),)
    series = monthly_expenses(trans)
    assert len(series) == 6
    assert [m.month for m in series] == ["2023-08", "2023-09", "2023-10", "2023-11", "2023-12", "2024-01"]
    keys = [m.month for m in series]
    assert keys == sorted(keys)


def test_monthly_expenses_orders_across_years_by_key():
    trans = (
        make_tx("t1", EXPENSE, 1, "2024-02-01"),
        make_tx("t2", EXPENSE, 1, "2023-12-01"),
        make_tx("t3", EXPENSE, 1, "2023-11-30"),
    )
    assert [m.month for m in monthly_expenses(trans)] == ["2023-11", "2023-12", "2024-02"]


def test_category_breakdown_sorted_with_percentages():
    trans = (
        make_tx("t1", EXPENSE, 60, "2024-01-01", category=Category.SHOPPING),
        make_tx("t2", EXPENSE, 30, "2024-01-02", category=Category.FOOD_AND_DINING),
        make_tx("t3", EXPENSE, 10, "2024-01-03", category=Category.TRAVEL),
        make_tx("t4", INCOME, 500, "2024-01-03", category=Category.INCOME),
    )
    rows = category_breakdown(trans)
    assert [r.category for r in rows] == [Category.SHOPPING, Category.FOOD_AND_DINING, Category.TRAVEL]
    assert [r.amount for r in rows] == [60, 30, 10]
    assert math.isclose(rows[0].percentage, 60.0)
    assert math.isclose(sum(r.percentage for r in rows), 100.0)


def test_category_breakdown_ties_break_by_label():
    trans = (
        make_tx("t1", EXPENSE, 40, "2024-01-01", category=Category.TRAVEL),
        make_tx("t2", EXPENSE, 40, "2024-01-02", category=Category.EDUCATION),
        make_tx("t3", EXPENSE, 40, "2024-01-03", category=Category.HEALTHCARE),
    )
    rows = category_breakdown(trans)
    assert [r.category for r in rows] == [Category.EDUCATION, Category.HEALTHCARE, Category.TRAVEL]


def test_empty_collection_scenario_d():
    assert monthly_expenses(()) == ()
    assert category_breakdown(()) == ()


def test_compare_budget_scenario_b():
    budget = Budget("b1", BudgetCategory.FOOD_AND_DINING, 100, "2024-01")
    result = compare_budget(budget, scenario_a())
    assert result.actual_spending == 150
    assert result.percentage_used == 150
    assert result.remaining == -50
    assert result.status == "over"


def test_compare_budget_zero_amount_scenario_c():
    budget = Budget("b1", BudgetCategory.FOOD_AND_DINING, 0, "2024-01")
    result = compare_budget(budget, scenario_a())
    assert result.percentage_used == 0
    assert not math.isnan(result.percentage_used)
    assert result.status == "good"


def test_compare_budget_only_counts_matching_month_and_category():
    trans = (
        make_tx("t1", EXPENSE, 40, "2024-01-31"),
        make_tx("t2", EXPENSE, 40, "2024-02-01"),
        make_tx("t3", EXPENSE, 40, "2024-01-10", category=Category.SHOPPING),
        make_tx("t4", INCOME, 40, "2024-01-10", category=Category.FOOD_AND_DINING),
    )
    budget = Budget("b1", BudgetCategory.FOOD_AND_DINING, 200, "2024-01")
    result = compare_budget(budget, trans)
    assert result.actual_spending == 40
    assert result.remaining == 160
    assert result.status == "good"


def test_budget_status_boundaries():
    assert budget_status(80) == "good"
    assert budget_status(80.01) == "warning"
    assert budget_status(100) == "warning"
    assert budget_status(100.01) == "over"
    assert budget_status(0) == "good"


def test_budget_comparison_preserves_budget_order():
    budgets = (
        Budget("b2", BudgetCategory.TRAVEL, 100, "2024-01"),
        Budget("b1", BudgetCategory.FOOD_AND_DINING, 170, "2024-01"),
    )
    rows = budget_comparison(budgets, scenario_a())
    assert [r.budget.id for r in rows] == ["b2", "b1"]
    assert rows[0].actual_spending == 0
    assert rows[1].status == "warning"
    for r in rows:
        assert r.remaining == r.amount - r.actual_spending


def test_aggregations_do_not_mutate_inputs():
    trans = scenario_a()
    budgets = (Budget("b1", BudgetCategory.FOOD_AND_DINING, 100, "2024-01"),)
    before = (trans, budgets)

    first = (summary_totals(trans), monthly_expenses(trans), category_breakdown(trans), budget_comparison(budgets, trans))
    second = (summary_totals(trans), monthly_expenses(trans), category_breakdown(trans), budget_comparison(budgets, trans))

    assert first == second
    assert (trans, budgets) == before


def test_recent_transactions_newest_first():
    trans = (
        make_tx("t1", EXPENSE, 1, "2024-01-01"),
        make_tx("t2", EXPENSE, 1, "2024-03-01"),
        make_tx("t3", EXPENSE, 1, "2024-02-01"),
    )
    assert [t.id for t in recent_transactions(trans, limit=2)] == ["t2", "t3"]
