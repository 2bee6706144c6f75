import json
from typing import Tuple

from fintrack.domain import Budget, Transaction
from fintrack.functional import validate_budget, validate_transaction


def load_seed(path: str) -> Tuple[Tuple[Transaction, ...], Tuple[Budget, ...]]:
    """Read sample transactions and budgets from a JSON file.

    Records go through the same validation as store writes; a bad record raises
    ``ValueError`` naming its position in the file.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    transactions = []
    for i, raw in enumerate(data.get("transactions", [])):
        parsed = validate_transaction(raw)
        if parsed.is_left():
            raise ValueError(f"transactions[{i}]: {parsed.get_error()['message']}")
        transactions.append(Transaction.from_input(str(raw.get("id", f"seed-t{i}")), parsed.get_or_else(None)))

    budgets = []
    for i, raw in enumerate(data.get("budgets", [])):
        parsed = validate_budget(raw)
        if parsed.is_left():
            raise ValueError(f"budgets[{i}]: {parsed.get_error()['message']}")
        b = parsed.get_or_else(None)
        budgets.append(Budget(id=str(raw.get("id", f"seed-b{i}")), category=b.category, amount=b.amount, month=b.month))

    return tuple(transactions), tuple(budgets)
