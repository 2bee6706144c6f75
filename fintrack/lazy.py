from collections import defaultdict
from typing import Callable, Iterable, Iterator

from fintrack.domain import Category, Transaction


def iter_transactions(
    trans: Iterable[Transaction], pred: Callable[[Transaction], bool]
) -> Iterator[Transaction]:
    for t in trans:
        if pred(t):
            yield t


def expense_totals(trans: Iterable[Transaction]) -> dict[Category, float]:
    totals_by_category: dict[Category, float] = defaultdict(float)
    for t in trans:
        if t.is_expense:
            totals_by_category[t.category] += t.amount
    return dict(totals_by_category)


def ranked(totals: dict[Category, float]) -> list[tuple[Category, float]]:
    # largest first, equal totals fall back to the category label
    return sorted(totals.items(), key=lambda item: (-item[1], item[0].value))


def lazy_top_categories(
    trans: Iterable[Transaction], k: int
) -> Iterator[tuple[Category, float]]:
    for category, total in ranked(expense_totals(trans))[: max(0, k)]:
        yield category, total
