from typing import Callable, Iterable, Optional

from fintrack.domain import Category, Transaction, TransactionType

Predicate = Callable[[Transaction], bool]


def by_type(kind: TransactionType) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.type is kind

    return _filter


def by_category(category: Category) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.category is category

    return _filter


def by_month(key: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.month_key == key

    return _filter


def matching(term: str) -> Predicate:
    """Case-insensitive search over description and category label."""
    needle = term.strip().lower()

    def _filter(t: Transaction) -> bool:
        return needle in t.description.lower() or needle in t.category.value.lower()

    return _filter


def all_of(*preds: Predicate) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return all(p(t) for p in preds)

    return _filter


def newest_first(trans: Iterable[Transaction]) -> tuple[Transaction, ...]:
    return tuple(sorted(trans, key=lambda t: t.date, reverse=True))


def filter_transactions(
    trans: Iterable[Transaction],
    term: str = "",
    category: Optional[Category] = None,
    kind: Optional[TransactionType] = None,
) -> tuple[Transaction, ...]:
    preds = []
    if term.strip():
        preds.append(matching(term))
    if category is not None:
        preds.append(by_category(category))
    if kind is not None:
        preds.append(by_type(kind))
    return newest_first(filter(all_of(*preds), trans))
