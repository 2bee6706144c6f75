from datetime import date
from itertools import islice
from typing import Iterable

from fintrack.domain import Category, Transaction, TransactionType
from fintrack.lazy import iter_transactions, lazy_top_categories


def make_sample():
    def tx(id, amount, category, kind=TransactionType.EXPENSE):
        return Transaction(id, amount, date(2025, 1, int(id[1:])), "x", category, kind)

    return (
        tx("t1", 300, Category.FOOD_AND_DINING),
        tx("t2", 200, Category.TRANSPORTATION),
        tx("t3", 5000, Category.INCOME, TransactionType.INCOME),
        tx("t4", 700, Category.FOOD_AND_DINING),
        tx("t5", 100, Category.TRANSPORTATION),
    )


def test_iter_transactions_filters_expenses_only():
    result = list(iter_transactions(make_sample(), lambda t: t.is_expense))
    assert len(result) == 4
    assert all(t.is_expense for t in result)


def test_iter_transactions_is_lazy_stop_early():
    trans = make_sample()
    calls = {"n": 0}

    def pred(t: Transaction) -> bool:
        calls["n"] += 1
        return t.is_expense

    first_two = list(islice(iter_transactions(trans, pred), 2))

    assert len(first_two) == 2
    assert calls["n"] < len(trans)


def test_lazy_top_categories_sum_and_order():
    result = list(lazy_top_categories(make_sample(), k=2))
    assert result == [(Category.FOOD_AND_DINING, 1000), (Category.TRANSPORTATION, 300)]


def test_lazy_top_categories_ignores_income():
    cats = [c for c, _ in lazy_top_categories(make_sample(), k=5)]
    assert Category.INCOME not in cats


def test_lazy_top_categories_accepts_generator_input():
    trans = make_sample()

    def tx_stream() -> Iterable[Transaction]:
        for t in trans:
            yield t

    assert list(lazy_top_categories(tx_stream(), k=1)) == [(Category.FOOD_AND_DINING, 1000)]


def test_lazy_top_categories_k_bigger_than_categories():
    assert len(list(lazy_top_categories(make_sample(), k=10))) == 2
    assert list(lazy_top_categories(make_sample(), k=0)) == []
