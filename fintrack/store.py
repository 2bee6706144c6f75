"""SQLAlchemy-backed storage for transactions and budgets.

``FinanceStore`` owns the engine and is opened and closed explicitly, so the
app (or a test) decides when a connection exists:

    with FinanceStore("sqlite:///fintrack.db") as store:
        store.transactions.create({...})
        snapshot = store.snapshot()
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Mapping, Optional
from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Float, String, UniqueConstraint, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from fintrack.domain import (
    Budget,
    BudgetCategory,
    Category,
    Snapshot,
    Transaction,
    TransactionType,
    budget_to_dict,
    transaction_to_dict,
)
from fintrack.errors import NotFoundError, TransportError, ValidationError
from fintrack.events import BUDGET_SAVED, TRANSACTION_DELETED, TRANSACTION_SAVED, EventBus
from fintrack.functional import validate_budget, validate_transaction
from fintrack.transforms import load_seed

logger = logging.getLogger(__name__)

Base = declarative_base()

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


class TransactionRow(Base):
    __tablename__ = "transactions"

    id = Column(String(32), primary_key=True)
    amount = Column(Float, nullable=False)
    date = Column(Date, nullable=False, index=True)
    description = Column(String, nullable=False)
    category = Column(String, nullable=False)
    type = Column(String(16), nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, nullable=True)


class BudgetRow(Base):
    __tablename__ = "budgets"
    __table_args__ = (UniqueConstraint("category", "month", name="uq_budget_category_month"),)

    id = Column(String(32), primary_key=True)
    category = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    month = Column(String(7), nullable=False, index=True)


def _to_transaction(row: TransactionRow) -> Transaction:
    return Transaction(
        id=row.id,
        amount=row.amount,
        date=row.date,
        description=row.description,
        category=Category(row.category),
        type=TransactionType(row.type),
    )


def _to_budget(row: BudgetRow) -> Budget:
    return Budget(
        id=row.id,
        category=BudgetCategory(row.category),
        amount=row.amount,
        month=row.month,
    )


class FinanceStore:

    def __init__(self, url: str, bus: Optional[EventBus] = None):
        self.url = url
        self.bus = bus
        self._engine = None
        self._session_factory = None
        self.transactions = TransactionStore(self)
        self.budgets = BudgetStore(self)

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> "FinanceStore":
        if self.is_open:
            return self

        kwargs: dict[str, Any] = {}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in IN_MEMORY_URLS:
                # one shared connection, otherwise every thread sees an empty database
                kwargs["poolclass"] = StaticPool

        try:
            engine = create_engine(self.url, **kwargs)
            Base.metadata.create_all(bind=engine)
        except SQLAlchemyError as exc:
            logger.error("Could not open store at %s: %s", self.url, exc)
            raise TransportError(f"Could not open store: {exc}") from exc

        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        logger.info("Store opened at %s", self.url)
        return self

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Store closed")

    def __enter__(self) -> "FinanceStore":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    @contextmanager
    def session(self) -> Iterator[Session]:
        if self._session_factory is None:
            raise TransportError("Store is not open")

        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Store request failed: %s", exc)
            raise TransportError(str(exc)) from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def publish(self, name: str, payload: dict) -> list[dict]:
        if self.bus is None:
            return []
        return self.bus.publish(name, payload)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            transactions=self.transactions.list_all(),
            budgets=self.budgets.list_all(),
        )


class TransactionStore:

    def __init__(self, store: FinanceStore):
        self._store = store

    def list_all(self) -> tuple[Transaction, ...]:
        """Every transaction, newest date first."""
        with self._store.session() as db:
            rows = db.query(TransactionRow).order_by(TransactionRow.date.desc(), TransactionRow.created_at.desc()).all()
            return tuple(_to_transaction(r) for r in rows)

    def get(self, tid: str) -> Transaction:
        with self._store.session() as db:
            row = db.get(TransactionRow, tid)
            if row is None:
                raise NotFoundError("Transaction", tid)
            return _to_transaction(row)

    def create(self, data: Mapping[str, Any]) -> Transaction:
        parsed = validate_transaction(data)
        if parsed.is_left():
            raise ValidationError.from_left(parsed.get_error())

        t = Transaction.from_input(uuid4().hex, parsed.get_or_else(None))
        with self._store.session() as db:
            db.add(TransactionRow(
                id=t.id,
                amount=t.amount,
                date=t.date,
                description=t.description,
                category=t.category.value,
                type=t.type.value,
                created_at=datetime.now(),
            ))

        logger.info("Created transaction %s (%s %.2f)", t.id, t.type.value, t.amount)
        self._store.publish(TRANSACTION_SAVED, {"transaction": t, "created": True})
        return t

    def update(self, tid: str, data: Mapping[str, Any]) -> Transaction:
        parsed = validate_transaction(data)
        if parsed.is_left():
            raise ValidationError.from_left(parsed.get_error())

        t = Transaction.from_input(tid, parsed.get_or_else(None))
        with self._store.session() as db:
            row = db.get(TransactionRow, tid)
            if row is None:
                raise NotFoundError("Transaction", tid)
            row.amount = t.amount
            row.date = t.date
            row.description = t.description
            row.category = t.category.value
            row.type = t.type.value
            row.updated_at = datetime.now()

        logger.info("Updated transaction %s", tid)
        self._store.publish(TRANSACTION_SAVED, {"transaction": t, "created": False})
        return t

    def delete(self, tid: str) -> None:
        with self._store.session() as db:
            row = db.get(TransactionRow, tid)
            if row is None:
                raise NotFoundError("Transaction", tid)
            db.delete(row)

        logger.info("Deleted transaction %s", tid)
        self._store.publish(TRANSACTION_DELETED, {"id": tid})


class BudgetStore:

    def __init__(self, store: FinanceStore):
        self._store = store

    def list_all(self) -> tuple[Budget, ...]:
        """Every budget, latest month first."""
        with self._store.session() as db:
            rows = db.query(BudgetRow).order_by(BudgetRow.month.desc(), BudgetRow.category).all()
            return tuple(_to_budget(r) for r in rows)

    def upsert(self, data: Mapping[str, Any]) -> Budget:
        """Set the cap for a (category, month) pair, replacing any earlier amount."""
        parsed = validate_budget(data)
        if parsed.is_left():
            raise ValidationError.from_left(parsed.get_error())
        b = parsed.get_or_else(None)

        with self._store.session() as db:
            row = (
                db.query(BudgetRow)
                .filter(BudgetRow.category == b.category.value, BudgetRow.month == b.month)
                .one_or_none()
            )
            created = row is None
            if created:
                row = BudgetRow(id=uuid4().hex, category=b.category.value, amount=b.amount, month=b.month)
                db.add(row)
            else:
                row.amount = b.amount
            budget = Budget(id=row.id, category=b.category, amount=b.amount, month=b.month)

        logger.info(
            "%s budget %s for %s: %.2f",
            "Created" if created else "Updated", b.category.value, b.month, b.amount,
        )
        self._store.publish(BUDGET_SAVED, {"budget": budget, "created": created})
        return budget


def seed_store(store: FinanceStore, path: str) -> int:
    """Load sample data into an empty store. Returns the number of records written."""
    if store.transactions.list_all() or store.budgets.list_all():
        logger.info("Store already has data, skipping seed")
        return 0

    transactions, budgets = load_seed(path)
    for t in transactions:
        store.transactions.create(transaction_to_dict(t))
    for b in budgets:
        store.budgets.upsert(budget_to_dict(b))

    logger.info("Seeded %d transactions and %d budgets from %s", len(transactions), len(budgets), path)
    return len(transactions) + len(budgets)
