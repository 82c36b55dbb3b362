from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Protocol, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import (
    Customer,
    MaintenanceReminder,
    Profile,
    Quote,
    QuoteItem,
    ServiceItem,
    Supplier,
    Tenant,
    Vehicle,
)

logger = logging.getLogger(__name__)

TABLE_MODELS = {
    "customers": Customer,
    "vehicles": Vehicle,
    "quotes": Quote,
    "quote_items": QuoteItem,
    "service_items": ServiceItem,
    "maintenance_reminders": MaintenanceReminder,
    "suppliers": Supplier,
    "tenants": Tenant,
    "profiles": Profile,
}

FILTER_OPS = {"eq", "ilike", "gte", "lte", "lt"}


class StoreError(RuntimeError):
    pass


class StoreConflictError(StoreError):
    """Violação de unicidade (ex.: número de cotação repetido)."""


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any


@dataclass(frozen=True)
class OrderBy:
    column: str
    descending: bool = False


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def contains(column: str, value: str) -> Filter:
    """Case-insensitive "contém" (ILIKE %valor%)."""
    return Filter(column, "ilike", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


def lt(column: str, value: Any) -> Filter:
    return Filter(column, "lt", value)


def newest_first() -> OrderBy:
    return OrderBy("created_date", descending=True)


class DataStore(Protocol):
    def select(
        self,
        table: str,
        filters: Iterable[Filter] = (),
        *,
        columns: Sequence[str] | None = None,
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        ...

    def first(
        self,
        table: str,
        filters: Iterable[Filter] = (),
        *,
        columns: Sequence[str] | None = None,
        order_by: OrderBy | None = None,
    ) -> dict[str, Any] | None:
        ...

    def count(self, table: str, filters: Iterable[Filter] = ()) -> int:
        ...

    def insert(self, table: str, row: dict[str, Any], *, columns: Sequence[str] | None = None) -> dict[str, Any]:
        ...

    def update(self, table: str, filters: Iterable[Filter], patch: dict[str, Any]) -> int:
        ...

    def increment(self, table: str, filters: Iterable[Filter], column: str, amount: int = 1) -> int:
        ...

    def atomic(self):
        ...


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLAlchemyDataStore:
    """DataStore sobre uma Session do SQLAlchemy.

    Cada operação fora de `atomic()` faz commit próprio; dentro de `atomic()`
    as escritas só são confirmadas na saída do bloco e qualquer exceção
    desfaz o bloco inteiro.
    """

    def __init__(self, db: Session) -> None:
        self._db = db
        self._atomic_depth = 0

    @property
    def session(self) -> Session:
        return self._db

    def _model(self, table: str):
        model = TABLE_MODELS.get(table)
        if model is None:
            raise StoreError(f"unknown table: {table}")
        return model

    def _column(self, model, name: str):
        if name not in model.__table__.columns:
            raise StoreError(f"unknown column: {model.__tablename__}.{name}")
        return getattr(model, name)

    def _apply_filters(self, query, model, filters: Iterable[Filter]):
        for item in filters:
            if item.op not in FILTER_OPS:
                raise StoreError(f"unsupported filter op: {item.op}")
            column = self._column(model, item.column)
            if item.op == "eq":
                query = query.filter(column.is_(None) if item.value is None else column == item.value)
            elif item.op == "ilike":
                query = query.filter(column.ilike(f"%{_escape_like(str(item.value))}%", escape="\\"))
            elif item.op == "gte":
                query = query.filter(column >= item.value)
            elif item.op == "lte":
                query = query.filter(column <= item.value)
            else:
                query = query.filter(column < item.value)
        return query

    def _project(self, model, obj, columns: Sequence[str] | None) -> dict[str, Any]:
        names = columns or [column.name for column in model.__table__.columns]
        return {name: getattr(obj, name) for name in names}

    def _commit(self) -> None:
        if self._atomic_depth:
            return
        self._db.commit()

    def _fail(self, exc: SQLAlchemyError, table: str) -> StoreError:
        if not self._atomic_depth:
            self._db.rollback()
        if isinstance(exc, IntegrityError):
            return StoreConflictError(f"conflict on {table}")
        return StoreError(f"store failure on {table}: {exc.__class__.__name__}")

    def select(
        self,
        table: str,
        filters: Iterable[Filter] = (),
        *,
        columns: Sequence[str] | None = None,
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        model = self._model(table)
        for name in columns or ():
            self._column(model, name)
        query = self._apply_filters(self._db.query(model), model, filters)
        if order_by is not None:
            column = self._column(model, order_by.column)
            query = query.order_by(column.desc() if order_by.descending else column.asc())
        if limit is not None:
            query = query.limit(limit)
        try:
            rows = query.all()
        except SQLAlchemyError as exc:
            raise self._fail(exc, table) from exc
        return [self._project(model, row, columns) for row in rows]

    def first(
        self,
        table: str,
        filters: Iterable[Filter] = (),
        *,
        columns: Sequence[str] | None = None,
        order_by: OrderBy | None = None,
    ) -> dict[str, Any] | None:
        rows = self.select(table, filters, columns=columns, order_by=order_by, limit=1)
        return rows[0] if rows else None

    def count(self, table: str, filters: Iterable[Filter] = ()) -> int:
        model = self._model(table)
        query = self._apply_filters(self._db.query(model), model, filters)
        try:
            return int(query.count())
        except SQLAlchemyError as exc:
            raise self._fail(exc, table) from exc

    def insert(self, table: str, row: dict[str, Any], *, columns: Sequence[str] | None = None) -> dict[str, Any]:
        model = self._model(table)
        for name in row:
            self._column(model, name)
        obj = model(**row)
        try:
            self._db.add(obj)
            self._db.flush()
            self._db.refresh(obj)
            projected = self._project(model, obj, columns)
            self._commit()
        except SQLAlchemyError as exc:
            raise self._fail(exc, table) from exc
        return projected

    def update(self, table: str, filters: Iterable[Filter], patch: dict[str, Any]) -> int:
        model = self._model(table)
        values = {self._column(model, name): value for name, value in patch.items()}
        query = self._apply_filters(self._db.query(model), model, filters)
        try:
            affected = query.update(values, synchronize_session=False)
            self._commit()
        except SQLAlchemyError as exc:
            raise self._fail(exc, table) from exc
        return int(affected or 0)

    def increment(self, table: str, filters: Iterable[Filter], column: str, amount: int = 1) -> int:
        model = self._model(table)
        target = self._column(model, column)
        query = self._apply_filters(self._db.query(model), model, filters)
        try:
            affected = query.update({target: target + amount}, synchronize_session=False)
            self._commit()
        except SQLAlchemyError as exc:
            raise self._fail(exc, table) from exc
        return int(affected or 0)

    @contextmanager
    def atomic(self) -> Iterator["SQLAlchemyDataStore"]:
        self._atomic_depth += 1
        try:
            yield self
        except Exception:
            self._atomic_depth -= 1
            if not self._atomic_depth:
                self._db.rollback()
            raise
        else:
            self._atomic_depth -= 1
            if not self._atomic_depth:
                try:
                    self._db.commit()
                except SQLAlchemyError as exc:
                    raise self._fail(exc, "transaction") from exc
