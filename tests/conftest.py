"""Shared fixtures: transaction factory, in-memory database, API client."""

from __future__ import annotations

import itertools
from types import SimpleNamespace
from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import init_db
from models import Transaction

# Monday 20 May 2024, midday
NOW = datetime(2024, 5, 20, 12, 0, 0)


@pytest.fixture
def make_txn():
    """Build a Transaction with sensible defaults; ids are unique per test."""
    counter = itertools.count(1)

    def _make(amount, day=date(2024, 5, 15), merchant_name=None, name="", hierarchy=(), account_id="acc-1"):
        return Transaction(
            id=f"txn-{next(counter)}",
            account_id=account_id,
            date=day,
            amount=amount,
            merchant_name=merchant_name,
            name=name,
            category_hierarchy=tuple(hierarchy),
        )

    return _make


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def api(db_session):
    """TestClient with the database, clock and transaction source stubbed.

    ``feed`` holds the Transactions the linked accounts return; ``calls``
    records each loader invocation as (item count, start, end).  ``accounts``
    holds the Accounts the balance loader returns.
    """
    from fastapi.testclient import TestClient

    from api_server import app, get_account_loader, get_now, get_transaction_loader
    from database import get_db

    feed = []
    calls = []
    accounts = []

    def loader(items, start, end):
        calls.append((len(items), start, end))
        return list(feed)

    def account_loader(items):
        return list(accounts)

    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_now] = lambda: NOW
    app.dependency_overrides[get_transaction_loader] = lambda: loader
    app.dependency_overrides[get_account_loader] = lambda: account_loader
    try:
        yield SimpleNamespace(client=TestClient(app), feed=feed, calls=calls, accounts=accounts)
    finally:
        app.dependency_overrides.clear()
