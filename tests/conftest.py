"""
Pytest fixtures for the loyalty engine.

Provides an in-memory stand-in for the Supabase client that records every
gateway call, enforces the store's unique keys, and can inject failures.
"""

import copy
import itertools
import uuid

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from app.api import deps
from app.core.config import Settings
from app.main import app
from app.services.coupons import CouponManager
from app.services.identity import IdentityResolver
from app.services.notifications import NotificationTracker
from app.services.visits import VisitLedger
from app.services.votes import VoteEngine
from database import supabase_client
from database.schema import UNIQUE_KEYS

ADMIN_SECRET = "open-sesame"

# Tables keyed by UUID strings; the rest use bigserial ids.
UUID_TABLES = {"customers", "visit_history", "coupon_history"}


class FakeResult:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    """Mimics the postgrest request builder chain used by the repositories."""

    def __init__(self, store, table):
        self.store = store
        self.table = table
        self.op = None
        self.columns = "*"
        self.count_mode = None
        self.payload = None
        self.filters = []
        self.orders = []
        self.limit_to = None

    # ----- operations -----

    def select(self, columns="*", count=None):
        self.op = "select"
        self.columns = columns
        self.count_mode = count
        return self

    def insert(self, row):
        self.op = "insert"
        self.payload = row
        return self

    def update(self, patch):
        self.op = "update"
        self.payload = patch
        return self

    def delete(self):
        self.op = "delete"
        return self

    # ----- modifiers -----

    def eq(self, column, value):
        self.filters.append((column, lambda v, value=value: v == value))
        return self

    def neq(self, column, value):
        self.filters.append((column, lambda v, value=value: v != value))
        return self

    def in_(self, column, values):
        self.filters.append((column, lambda v, values=tuple(values): v in values))
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, n):
        self.limit_to = n
        return self

    # ----- execution -----

    def _matches(self, row):
        return all(predicate(row.get(column)) for column, predicate in self.filters)

    def _project(self, row):
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        wanted = [c.strip() for c in self.columns.split(",")]
        return {c: copy.deepcopy(row.get(c)) for c in wanted}

    def execute(self):
        self.store.calls.append((self.table, self.op))
        self.store.raise_if_failing(self.table, self.op)

        rows = self.store.tables.setdefault(self.table, [])

        if self.op == "select":
            found = [r for r in rows if self._matches(r)]
            for column, desc in reversed(self.orders):
                found.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
            if self.limit_to is not None:
                found = found[: self.limit_to]
            count = len(found) if self.count_mode == "exact" else None
            return FakeResult([self._project(r) for r in found], count)

        if self.op == "insert":
            row = dict(self.payload)
            row.setdefault("id", self.store.next_id(self.table))
            self.store.check_unique(self.table, row)
            rows.append(row)
            return FakeResult([copy.deepcopy(row)])

        if self.op == "update":
            updated = []
            for r in rows:
                if self._matches(r):
                    r.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(r))
            return FakeResult(updated)

        if self.op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.store.tables[self.table] = [r for r in rows if not self._matches(r)]
            return FakeResult(copy.deepcopy(removed))

        raise AssertionError(f"no operation chosen on {self.table}")


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.calls = []
        self._failures = {}
        self._counter = itertools.count(1)

    def table(self, name):
        return FakeQuery(self, name)

    def next_id(self, table):
        if table in UUID_TABLES:
            return str(uuid.uuid4())
        return next(self._counter) + 1000

    def seed(self, table, *rows):
        self.tables.setdefault(table, []).extend(dict(r) for r in rows)

    def rows(self, table):
        return self.tables.get(table, [])

    def check_unique(self, table, row):
        existing = self.tables.get(table, [])
        for key in UNIQUE_KEYS.get(table, []):
            values = tuple(row.get(c) for c in key)
            if any(tuple(r.get(c) for c in key) == values for r in existing):
                raise APIError({
                    "message": f"duplicate key value violates unique constraint on {table}{key}",
                    "code": "23505",
                    "hint": None,
                    "details": None,
                })

    def fail(self, table, op, error=None, times=1):
        """Make the next ``times`` calls of ``op`` on ``table`` raise ``error``."""
        if error is None:
            error = APIError({"message": "internal error", "code": "XX000", "hint": None, "details": None})
        self._failures[(table, op)] = [error, times]

    def raise_if_failing(self, table, op):
        failure = self._failures.get((table, op))
        if not failure:
            return
        error, remaining = failure
        if remaining <= 1:
            del self._failures[(table, op)]
        else:
            failure[1] = remaining - 1
        raise error

    def calls_since(self, mark):
        return self.calls[mark:]


@pytest.fixture
def fake_db(monkeypatch):
    """Route every repository call to an in-memory store."""
    fake = FakeSupabase()
    monkeypatch.setattr(supabase_client, "get_supabase_client", lambda: fake)
    return fake


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        supabase_url="",
        supabase_secret_key="",
        admin_redemption_secret=ADMIN_SECRET,
        allow_guest_login=True,
    )


@pytest.fixture
def resolver(settings):
    return IdentityResolver(settings)


@pytest.fixture
def ledger(settings):
    return VisitLedger(settings)


@pytest.fixture
def coupons(settings):
    return CouponManager(settings)


@pytest.fixture
def engine():
    return VoteEngine()


@pytest.fixture
def tracker(settings):
    return NotificationTracker(settings)


@pytest.fixture
def client(fake_db, resolver, ledger, coupons, engine, tracker):
    """Test client wired to the fake store and test settings."""
    app.dependency_overrides[deps.get_identity_resolver] = lambda: resolver
    app.dependency_overrides[deps.get_visit_ledger] = lambda: ledger
    app.dependency_overrides[deps.get_coupon_manager] = lambda: coupons
    app.dependency_overrides[deps.get_vote_engine] = lambda: engine
    app.dependency_overrides[deps.get_notification_tracker] = lambda: tracker
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def customer(fake_db):
    row = {
        "id": "cust-1",
        "phone_number": "010-1234-5678",
        "nickname": "Mina",
        "current_stamps": 4,
        "total_stamps": 14,
        "visit_count": 7,
        "coupons": 0,
    }
    fake_db.seed("customers", row)
    return row
