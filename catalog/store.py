"""
catalog/store.py -- Product repositories.

Pattern: Repository. ProductRepository is the contract route handlers depend
on; two implementations satisfy it:

  InMemoryProductRepository -- insertion-ordered list guarded by a lock.
      The default backend.
  SqlProductRepository -- SQLAlchemy Core. Defaults to an in-memory SQLite
      engine; swapping in another database is a connection string change.

Contract (both backends):
  - list() returns every product in insertion order.
  - create() requires name, description, price and stock. A field counts as
    missing when it is absent, None, or an empty string -- 0 is a valid price
    and a valid stock.
  - update() applies only the fields that are present by the same rule and
    returns the full record.
  - Ids come from a monotonic counter and are never reused within the
    repository's lifetime, even after deletes.

Concurrency: every read and write runs under one lock per repository, so id
assignment and read-modify-write updates are atomic across worker threads.

Usage:
    repo = InMemoryProductRepository()
    product = repo.create({"name": "C", "description": "d", "price": 50, "stock": 3})
    repo.update(product.id, {"price": 150})
    repo.delete(product.id)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Protocol

from sqlalchemy import Column, Float, Integer, MetaData, String, Table, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from catalog.models import PRODUCT_FIELDS, Product
from core.errors import MissingFieldError, NotFoundError

logger = logging.getLogger("catalogapi.catalog")


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def _required_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Return the four product fields, or raise MissingFieldError naming every absent one."""
    missing = [name for name in PRODUCT_FIELDS if not _is_present(fields.get(name))]
    if missing:
        raise MissingFieldError(missing)
    return {name: fields[name] for name in PRODUCT_FIELDS}


def _present_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {name: fields[name] for name in PRODUCT_FIELDS if _is_present(fields.get(name))}


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class ProductRepository(Protocol):
    def list(self) -> list[Product]: ...

    def get(self, product_id: int) -> Product: ...

    def create(self, fields: Mapping[str, Any]) -> Product: ...

    def update(self, product_id: int, fields: Mapping[str, Any]) -> Product: ...

    def delete(self, product_id: int) -> None: ...

    def close(self) -> None: ...


def seed_products(repo: ProductRepository, products: list[Mapping[str, Any]]) -> None:
    """Create each product in order. Only meaningful on an empty repository."""
    for fields in products:
        repo.create(fields)


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class InMemoryProductRepository:
    """List-backed repository. Returned products are copies; mutate through update()."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: list[Product] = []
        self._next_id = 1

    def list(self) -> list[Product]:
        with self._lock:
            return [replace(p) for p in self._items]

    def get(self, product_id: int) -> Product:
        with self._lock:
            return replace(self._find(product_id))

    def create(self, fields: Mapping[str, Any]) -> Product:
        values = _required_fields(fields)
        with self._lock:
            product = Product(id=self._next_id, **values)
            self._next_id += 1
            self._items.append(product)
            logger.info("Created product id=%d", product.id)
            return replace(product)

    def update(self, product_id: int, fields: Mapping[str, Any]) -> Product:
        changes = _present_fields(fields)
        with self._lock:
            product = self._find(product_id)
            for name, value in changes.items():
                setattr(product, name, value)
            return replace(product)

    def delete(self, product_id: int) -> None:
        with self._lock:
            product = self._find(product_id)
            self._items.remove(product)
        logger.info("Deleted product id=%d", product_id)

    def close(self) -> None:
        with self._lock:
            self._items.clear()

    def _find(self, product_id: int) -> Product:
        # Caller holds the lock.
        for product in self._items:
            if product.id == product_id:
                return product
        raise NotFoundError("Product", product_id)


# ---------------------------------------------------------------------------
# SQLAlchemy Core backend
# ---------------------------------------------------------------------------

metadata = MetaData()

# sqlite_autoincrement emits AUTOINCREMENT so SQLite never hands out the id of
# a deleted max row again.
_products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("description", Text, nullable=False),
    Column("price", Float, nullable=False),
    Column("stock", Integer, nullable=False),
    sqlite_autoincrement=True,
)


class SqlProductRepository:
    """SQLAlchemy Core repository.

    Usage:
        repo = SqlProductRepository()                               # in-memory SQLite
        repo = SqlProductRepository("postgresql://user:pw@host/db") # PostgreSQL
    """

    def __init__(self, db_url: str = "sqlite://") -> None:
        engine_args: dict = {}
        if db_url.startswith("sqlite"):
            engine_args["connect_args"] = {"check_same_thread": False}
            # One shared connection, otherwise every pooled connection to
            # "sqlite://" would open its own empty database.
            if db_url in ("sqlite://", "sqlite:///:memory:"):
                engine_args["poolclass"] = StaticPool
        self.engine: Engine = create_engine(db_url, **engine_args)
        metadata.create_all(self.engine)
        self._lock = threading.Lock()

    def list(self) -> list[Product]:
        with self._lock, self.engine.connect() as conn:
            rows = conn.execute(_products.select().order_by(_products.c.id)).fetchall()
        return [_row_to_product(r) for r in rows]

    def get(self, product_id: int) -> Product:
        with self._lock:
            return self._fetch(product_id)

    def create(self, fields: Mapping[str, Any]) -> Product:
        values = _required_fields(fields)
        with self._lock:
            with self.engine.begin() as conn:
                result = conn.execute(_products.insert().values(**values))
                product_id = result.inserted_primary_key[0]
            logger.info("Created product id=%d", product_id)
            return self._fetch(product_id)

    def update(self, product_id: int, fields: Mapping[str, Any]) -> Product:
        changes = _present_fields(fields)
        with self._lock:
            if changes:
                with self.engine.begin() as conn:
                    result = conn.execute(_products.update().where(_products.c.id == product_id).values(**changes))
                if result.rowcount == 0:
                    raise NotFoundError("Product", product_id)
            return self._fetch(product_id)

    def delete(self, product_id: int) -> None:
        with self._lock:
            with self.engine.begin() as conn:
                result = conn.execute(_products.delete().where(_products.c.id == product_id))
            if result.rowcount == 0:
                raise NotFoundError("Product", product_id)
        logger.info("Deleted product id=%d", product_id)

    def close(self) -> None:
        self.engine.dispose()

    def _fetch(self, product_id: int) -> Product:
        # Caller holds the lock.
        with self.engine.connect() as conn:
            row = conn.execute(_products.select().where(_products.c.id == product_id)).fetchone()
        if row is None:
            raise NotFoundError("Product", product_id)
        return _row_to_product(row)


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_product(row) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        description=row.description,
        price=row.price,
        stock=row.stock,
    )


def build_product_repository(backend: str, sql_url: str = "sqlite://") -> ProductRepository:
    """Return the repository named by Settings.product_store."""
    if backend == "sql":
        return SqlProductRepository(sql_url)
    if backend == "memory":
        return InMemoryProductRepository()
    raise ValueError(f"Unknown product store backend: {backend!r}")


