from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class Category(Enum):
    FOOD_AND_DINING = "Food & Dining"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    BILLS_AND_UTILITIES = "Bills & Utilities"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    TRAVEL = "Travel"
    INCOME = "Income"
    OTHER = "Other"

    @property
    def label(self) -> str:
        return self.value


# Budgets can only be set on spending categories, so Income is not a member.
class BudgetCategory(Enum):
    FOOD_AND_DINING = Category.FOOD_AND_DINING.value
    TRANSPORTATION = Category.TRANSPORTATION.value
    SHOPPING = Category.SHOPPING.value
    ENTERTAINMENT = Category.ENTERTAINMENT.value
    BILLS_AND_UTILITIES = Category.BILLS_AND_UTILITIES.value
    HEALTHCARE = Category.HEALTHCARE.value
    EDUCATION = Category.EDUCATION.value
    TRAVEL = Category.TRAVEL.value
    OTHER = Category.OTHER.value

    @property
    def category(self) -> Category:
        return Category(self.value)

    @property
    def label(self) -> str:
        return self.value


class TransactionType(Enum):
    INCOME = "income"
    EXPENSE = "expense"


def month_key(d: date) -> str:
    """Sortable ``YYYY-MM`` key for the calendar month containing ``d``."""
    return f"{d.year:04d}-{d.month:02d}"


def previous_month(key: str) -> str:
    year, month = int(key[:4]), int(key[5:7])
    if month == 1:
        return f"{year - 1:04d}-12"
    return f"{year:04d}-{month - 1:02d}"


def month_label(key: str) -> str:
    """Short month + year for display, e.g. ``2024-03`` -> ``Mar 2024``."""
    return datetime.strptime(key + "-01", "%Y-%m-%d").strftime("%b %Y")


@dataclass(frozen=True)
class TransactionInput:
    amount: float
    date: date
    description: str
    category: Category
    type: TransactionType


@dataclass(frozen=True)
class Transaction:
    id: str                  # assigned by the store
    amount: float            # always positive, sign comes from type
    date: date
    description: str
    category: Category
    type: TransactionType

    @property
    def month_key(self) -> str:
        return month_key(self.date)

    @property
    def is_expense(self) -> bool:
        return self.type is TransactionType.EXPENSE

    @property
    def is_income(self) -> bool:
        return self.type is TransactionType.INCOME

    @classmethod
    def from_input(cls, id: str, data: TransactionInput) -> "Transaction":
        return cls(
            id=id,
            amount=data.amount,
            date=data.date,
            description=data.description,
            category=data.category,
            type=data.type,
        )


@dataclass(frozen=True)
class BudgetInput:
    category: BudgetCategory
    amount: float
    month: str  # YYYY-MM


# A monthly spending cap for one category
@dataclass(frozen=True)
class Budget:
    id: str
    category: BudgetCategory
    amount: float
    month: str  # YYYY-MM

    @property
    def expense_category(self) -> Category:
        return self.category.category


@dataclass(frozen=True)
class Snapshot:
    transactions: tuple[Transaction, ...] = ()
    budgets: tuple[Budget, ...] = ()


def transaction_to_dict(t: Transaction) -> dict:
    return {
        "id": t.id,
        "amount": t.amount,
        "date": t.date.isoformat(),
        "description": t.description,
        "category": t.category.value,
        "type": t.type.value,
    }


def budget_to_dict(b: Budget) -> dict:
    return {
        "id": b.id,
        "category": b.category.value,
        "amount": b.amount,
        "month": b.month,
    }
