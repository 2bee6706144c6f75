import math
import re
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Callable, Generic, Mapping, TypeVar

from fintrack.domain import (
    BudgetCategory,
    BudgetInput,
    Category,
    TransactionInput,
    TransactionType,
)

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')

# year 0000 has no calendar month
MONTH_RE = re.compile(r"^(?!0000)\d{4}-(0[1-9]|1[0-2])$")

TRANSACTION_FIELDS = ("amount", "date", "description", "category", "type")
BUDGET_FIELDS = ("category", "amount", "month")


class Maybe(Generic[T], ABC):
    """Optional lookup result: ``Some(value)`` or ``Nothing()``."""

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return self

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):
    """Validation result: ``Right(value)`` or ``Left(error)``.

    ``bind`` chains steps and stops at the first ``Left``.
    """

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_left(self) -> bool:
        pass

    @abstractmethod
    def get_error(self) -> E:
        pass


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value))

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_left(self) -> bool:
        return False

    def get_error(self) -> E:
        raise ValueError("Right holds no error")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return self

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return self

    def get_or_else(self, default: T) -> T:
        return default

    def is_left(self) -> bool:
        return True

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def pipe(x, *funcs):
    """Pipe a value through a series of functions.

    pipe(x, f, g, h) == h(g(f(x)))
    """
    res = x
    for f in funcs:
        res = f(res)
    return res


def _invalid(field: str, message: str, error: str = "invalid_field") -> Left:
    return Left({"error": error, "field": field, "message": message})


def safe_category(value: Any) -> Maybe[Category]:
    if isinstance(value, Category):
        return Some(value)
    for cat in Category:
        if cat.value == value:
            return Some(cat)
    return Nothing()


def safe_budget_category(value: Any) -> Maybe[BudgetCategory]:
    if isinstance(value, BudgetCategory):
        return Some(value)
    if isinstance(value, Category):
        value = value.value
    for cat in BudgetCategory:
        if cat.value == value:
            return Some(cat)
    return Nothing()


def parse_amount(value: Any) -> Either[dict, float]:
    if isinstance(value, bool):
        return _invalid("amount", "Amount must be a number")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return _invalid("amount", "Amount must be a number")
    if not math.isfinite(amount):
        return _invalid("amount", "Amount must be a finite number")
    if amount <= 0:
        return _invalid("amount", "Amount must be greater than 0")
    return Right(amount)


def parse_date(value: Any) -> Either[dict, date]:
    if isinstance(value, datetime):
        return Right(value.date())
    if isinstance(value, date):
        return Right(value)
    try:
        return Right(date.fromisoformat(str(value).strip()[:10]))
    except ValueError:
        return _invalid("date", f"Invalid date: {value!r}")


def parse_description(value: Any) -> Either[dict, str]:
    text = str(value).strip() if value is not None else ""
    if not text:
        return _invalid("description", "Description is required", error="missing_field")
    return Right(text)


def parse_category(value: Any) -> Either[dict, Category]:
    return safe_category(value).map(Right).get_or_else(
        _invalid("category", f"Unknown category: {value!r}")
    )


def parse_budget_category(value: Any) -> Either[dict, BudgetCategory]:
    if value in (Category.INCOME, Category.INCOME.value):
        return _invalid("category", "Budgets cannot be set on the Income category")
    return safe_budget_category(value).map(Right).get_or_else(
        _invalid("category", f"Unknown category: {value!r}")
    )


def parse_type(value: Any) -> Either[dict, TransactionType]:
    if isinstance(value, TransactionType):
        return Right(value)
    for kind in TransactionType:
        if kind.value == value:
            return Right(kind)
    return _invalid("type", "Type must be either income or expense")


def parse_month(value: Any) -> Either[dict, str]:
    text = str(value).strip()
    if not MONTH_RE.match(text):
        return _invalid("month", f"Month must look like YYYY-MM, got {value!r}")
    return Right(text)


def _missing(data: Mapping[str, Any], fields: tuple[str, ...]) -> Maybe[str]:
    for name in fields:
        value = data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            return Some(name)
    return Nothing()


def _field(data: Mapping[str, Any], name: str, parser: Callable[[Any], Either[dict, Any]]):
    def step(acc: Either[dict, dict]) -> Either[dict, dict]:
        return acc.bind(lambda fields: parser(data.get(name)).map(lambda v: {**fields, name: v}))
    return step


def validate_transaction(data: Mapping[str, Any]) -> Either[dict, TransactionInput]:
    """Check a raw transaction payload and normalize it.

    Returns ``Right(TransactionInput)`` or ``Left`` with the first problem found:
    ``{"error": ..., "field": ..., "message": ...}``.
    """
    missing = _missing(data, TRANSACTION_FIELDS)
    if missing.is_some():
        name = missing.get_or_else("")
        return _invalid(name, f"Missing required field: {name}", error="missing_field")

    return pipe(
        Right({}),
        _field(data, "amount", parse_amount),
        _field(data, "date", parse_date),
        _field(data, "description", parse_description),
        _field(data, "category", parse_category),
        _field(data, "type", parse_type),
    ).map(lambda fields: TransactionInput(**fields))


def validate_budget(data: Mapping[str, Any]) -> Either[dict, BudgetInput]:
    missing = _missing(data, BUDGET_FIELDS)
    if missing.is_some():
        name = missing.get_or_else("")
        return _invalid(name, f"Missing required field: {name}", error="missing_field")

    return pipe(
        Right({}),
        _field(data, "category", parse_budget_category),
        _field(data, "amount", parse_amount),
        _field(data, "month", parse_month),
    ).map(lambda fields: BudgetInput(**fields))
