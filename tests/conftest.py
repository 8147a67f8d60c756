"""Shared fixtures: an in-memory Supabase client and fake browser objects."""
import asyncio
import itertools
from collections import defaultdict
from datetime import datetime
from types import SimpleNamespace

import pytest

from src.parse.dates import UK_TZ


class FakeQuery:
    """Chainable stand-in for a supabase-py table query."""

    def __init__(self, client: "FakeSupabase", table: str):
        self.client = client
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.max_rows = None

    def select(self, columns: str = "*", count=None):
        self.op = "select"
        return self

    def insert(self, rows):
        self.op = "insert"
        self.payload = rows
        return self

    def update(self, values):
        self.op = "update"
        self.payload = values
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def lt(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] < value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def _matching(self):
        rows = [row for row in self.client.tables[self.table] if all(f(row) for f in self.filters)]
        return rows[: self.max_rows] if self.max_rows is not None else rows

    def execute(self):
        self.client.calls.append((self.table, self.op))
        if self.client.failures.get(self.op):
            self.client.failures[self.op] -= 1
            raise ConnectionError(f"simulated {self.op} failure")

        if self.op == "insert":
            rows = self.payload if isinstance(self.payload, list) else [self.payload]
            stored = []
            for row in rows:
                row = dict(row)
                row.setdefault("id", f"{self.table}-{next(self.client.ids)}")
                self.client.tables[self.table].append(row)
                stored.append(row)
            return SimpleNamespace(data=stored)
        if self.op == "update":
            rows = self._matching()
            for row in rows:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(row) for row in rows])
        return SimpleNamespace(data=[dict(row) for row in self._matching()])


class FakeSupabase:
    """Tables are plain lists of dicts; ``failures`` makes the next N calls of an op raise."""

    def __init__(self):
        self.tables = defaultdict(list)
        self.calls = []
        self.failures = {}
        self.ids = itertools.count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


class FakePage:
    def __init__(self):
        self.visited = []
        self.closed = False

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, close_delay=0):
        self.pages = []
        self.closed = False
        self.close_delay = close_delay

    async def new_page(self):
        page = FakePage()
        self.pages.append(page)
        return page

    async def close(self):
        if self.close_delay:
            await asyncio.sleep(self.close_delay)
        self.closed = True


class FakeBrowser:
    """BrowserManager double: hands out FakeContexts and records discards.

    ``close_delay`` makes every context hang on close, like a wedged Chromium.
    """

    def __init__(self, close_delay=0):
        self.close_delay = close_delay
        self.contexts = []
        self.discarded = 0
        self.closed = False

    @property
    def is_running(self) -> bool:
        return not self.closed

    async def ensure(self):
        return self

    async def new_context(self):
        context = FakeContext(self.close_delay)
        self.contexts.append(context)
        return context

    async def discard(self):
        self.discarded += 1

    async def close(self):
        self.closed = True


@pytest.fixture
def now():
    """Saturday 10 January 2026, noon in London."""
    return datetime(2026, 1, 10, 12, 0, tzinfo=UK_TZ)


@pytest.fixture
def supabase():
    client = FakeSupabase()
    client.tables["sites"] = [
        {"id": "site-botb", "slug": "botb", "active": True},
        {"id": "site-rev", "slug": "rev-comps", "active": True},
        {"id": "site-old", "slug": "llf-games", "active": False},
    ]
    return client


@pytest.fixture
def fake_browser():
    return FakeBrowser()


@pytest.fixture
def fake_context():
    return FakeContext()


@pytest.fixture
def wedged_browser():
    return FakeBrowser(close_delay=3600)
