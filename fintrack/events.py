import logging
from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

from fintrack.aggregations import STATUS_GOOD, compare_budget
from fintrack.domain import Transaction

__all__ = [
    'Event', 'EventBus',
    'TRANSACTION_SAVED', 'TRANSACTION_DELETED', 'BUDGET_SAVED', 'BUDGET_ALERT',
    'budget_alert_handler',
]

logger = logging.getLogger(__name__)

TRANSACTION_SAVED = "TRANSACTION_SAVED"
TRANSACTION_DELETED = "TRANSACTION_DELETED"
BUDGET_SAVED = "BUDGET_SAVED"
BUDGET_ALERT = "BUDGET_ALERT"


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = self._subscribers.get(name)
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        logger.debug("publishing %s to %d handler(s)", name, len(handlers))
        return [handler(event, payload) for handler in list(handlers)]

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)


def budget_alert_handler(event: Event, payload: dict) -> dict:
    """Check a saved expense against the budget for its category and month.

    payload: ``transaction`` (the saved Transaction), ``transactions`` (all of
    them, including the saved one) and ``budgets``.
    """
    t: Transaction = payload.get("transaction")
    if t is None or not t.is_expense:
        return {}

    for budget in payload.get("budgets", ()):
        if budget.expense_category is t.category and budget.month == t.month_key:
            result = compare_budget(budget, payload.get("transactions", ()))
            if result.status == STATUS_GOOD:
                return {"status": result.status}
            return {
                "alert": (
                    f"{budget.category.value} budget for {budget.month}: "
                    f"{result.actual_spending:.2f} of {budget.amount:.2f} spent "
                    f"({result.percentage_used:.0f}%)"
                ),
                "category": budget.category,
                "status": result.status,
                "spent": result.actual_spending,
                "limit": budget.amount,
            }
    return {}
