from datetime import date

from fintrack.domain import Category, Transaction, TransactionType
from fintrack.filters import by_category, by_month, by_type, filter_transactions, matching


def make_tx(id, kind, ts, category, description):
    return Transaction(id, 10.0, date.fromisoformat(ts), description, category, kind)


def make_sample():
    return (
        make_tx("t1", TransactionType.EXPENSE, "2024-05-01", Category.FOOD_AND_DINING, "Groceries"),
        make_tx("t2", TransactionType.EXPENSE, "2024-05-09", Category.TRANSPORTATION, "Bus pass"),
        make_tx("t3", TransactionType.INCOME, "2024-04-30", Category.INCOME, "Salary"),
        make_tx("t4", TransactionType.EXPENSE, "2024-06-02", Category.FOOD_AND_DINING, "Pizza night"),
    )


def test_by_type():
    result = list(filter(by_type(TransactionType.INCOME), make_sample()))
    assert [t.id for t in result] == ["t3"]


def test_by_category():
    result = list(filter(by_category(Category.FOOD_AND_DINING), make_sample()))
    assert {t.id for t in result} == {"t1", "t4"}


def test_by_month():
    result = list(filter(by_month("2024-05"), make_sample()))
    assert {t.id for t in result} == {"t1", "t2"}


def test_matching_is_case_insensitive_over_description_and_category():
    trans = make_sample()
    assert [t.id for t in filter(matching("PIZZA"), trans)] == ["t4"]
    assert {t.id for t in filter(matching("dining"), trans)} == {"t1", "t4"}


def test_filter_transactions_combines_and_sorts_newest_first():
    trans = make_sample()
    assert [t.id for t in filter_transactions(trans)] == ["t4", "t2", "t1", "t3"]
    result = filter_transactions(trans, term="", category=Category.FOOD_AND_DINING, kind=TransactionType.EXPENSE)
    assert [t.id for t in result] == ["t4", "t1"]
    assert filter_transactions(trans, term="rent") == ()
