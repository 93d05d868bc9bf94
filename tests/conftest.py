from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any
from uuid import uuid4

import pytest


class FakeQuery:
    """Subset of the supabase-py query builder used by SupabaseStore."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self._insert: list[dict[str, Any]] | None = None
        self._filters: list[tuple[str, Any]] = []
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None

    def insert(self, rows):
        self._insert = rows if isinstance(rows, list) else [rows]
        return self

    def select(self, columns: str = "*"):  # noqa: ARG002
        return self

    def eq(self, column: str, value: Any):
        self._filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False):
        self._order = (column, desc)
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    def execute(self):
        self.db.executed += 1
        if self.db.fail:
            raise RuntimeError("connection refused")
        rows = self.db.tables.setdefault(self.table, [])

        if self._insert is not None:
            stored = []
            for row in self._insert:
                self.db.clock += timedelta(seconds=1)
                record = {"id": str(uuid4()), "created_at": self.db.clock.isoformat(), **row}
                rows.append(record)
                stored.append(record)
            return SimpleNamespace(data=stored)

        matched = [r for r in rows if all(r.get(col) == val for col, val in self._filters)]
        if self._order is not None:
            column, desc = self._order
            matched.sort(key=lambda r: r.get(column) or "", reverse=desc)
        if self._limit is not None:
            matched = matched[: self._limit]
        return SimpleNamespace(data=matched)


class FakeSupabase:
    def __init__(self):
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.executed = 0
        self.fail = False
        self.clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()
