"""
tests/conftest.py -- Shared test fixtures for the Catalog API tests.

This module provides:
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - stores: freshly seeded (UserStore, InMemoryProductRepository) pair
  - api_client: TestClient over a fresh seeded app, plus admin and user JWTs

Design: each test gets its own stores so product ids are predictable (the two
seeded products are always 1 and 2, the next create is 3).

DEBUG and BCRYPT_ROUNDS must be set before any auth/core import so
get_settings() auto-generates SECRET_KEY and hashing stays fast.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set env before any auth/core import -- get_settings() is cached on first call.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app, init_stores
from auth.store import UserStore
from auth.tokens import create_access_token
from catalog.store import ProductRepository
from core.config import get_settings

# Seeded ids -- init_stores() registers admin first, then the regular user.
ADMIN_ID = 1
USER_ID = 2


@dataclass
class ApiClient:
    client: TestClient
    admin_token: str
    user_token: str
    user_store: UserStore
    products: ProductRepository

    @property
    def admin_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.admin_token}"}

    @property
    def user_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.user_token}"}


def _patch_lifespan(user_store: UserStore, products: ProductRepository):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.products = products
        yield
        products.close()

    return test_lifespan


@pytest.fixture
def stores() -> tuple[UserStore, ProductRepository]:
    return init_stores(get_settings())


@pytest.fixture
def api_client(stores) -> Generator[ApiClient, None, None]:
    """Yield an ApiClient bound to freshly seeded stores.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers and the real access control gate.
    """
    user_store, products = stores
    app.router.lifespan_context = _patch_lifespan(user_store, products)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiClient(
            client=client,
            admin_token=create_access_token(ADMIN_ID, "admin"),
            user_token=create_access_token(USER_ID, "user"),
            user_store=user_store,
            products=products,
        )
