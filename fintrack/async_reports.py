import asyncio
import logging
from typing import Any, Callable, Tuple

from fintrack.domain import Snapshot
from fintrack.store import FinanceStore

logger = logging.getLogger(__name__)


async def load_snapshot(store: FinanceStore) -> Snapshot:
    """Fetch transactions and budgets concurrently.

    Store calls are blocking, so each runs in a worker thread; a failure in
    either propagates to the caller.
    """
    transactions, budgets = await asyncio.gather(
        asyncio.to_thread(store.transactions.list_all),
        asyncio.to_thread(store.budgets.list_all),
    )
    logger.debug("loaded %d transactions and %d budgets", len(transactions), len(budgets))
    return Snapshot(transactions=transactions, budgets=budgets)


async def apply_and_reload(
    store: FinanceStore, action: Callable[..., Any], *args: Any
) -> Tuple[Any, Snapshot]:
    """Run one store write, then re-fetch everything.

    Returns the write's result together with the fresh snapshot.
    """
    result = await asyncio.to_thread(action, *args)
    snapshot = await load_snapshot(store)
    return result, snapshot
