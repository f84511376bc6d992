"""
In-memory stand-in for the Supabase client's table query builder.

Supports the subset RecordStore uses: insert, select, eq, gte, lte, lt,
order, limit, update, delete and execute. Rows are deep-copied in and out
so tests see stored state, not shared references.

Failure injection:
- ``fail_tables``: any execute() on these tables raises.
- ``fail_update_keys``: update().eq(col, key) raises when key is listed.
"""

import copy
from types import SimpleNamespace


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table_name = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.desc = False
        self.limit_n = None

    # builder methods
    def select(self, *_columns):
        self.op = "select"
        return self

    def insert(self, row):
        self.op = "insert"
        self.payload = row
        return self

    def update(self, values):
        self.op = "update"
        self.payload = values
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(("eq", column, value))
        return self

    def gte(self, column, value):
        self.filters.append(("gte", column, value))
        return self

    def lte(self, column, value):
        self.filters.append(("lte", column, value))
        return self

    def lt(self, column, value):
        self.filters.append(("lt", column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = column
        self.desc = desc
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def _matches(self, row):
        for op, column, value in self.filters:
            current = row.get(column)
            if op == "eq" and current != value:
                return False
            if op in ("gte", "lte", "lt") and current is None:
                return False
            if op == "gte" and not current >= value:
                return False
            if op == "lte" and not current <= value:
                return False
            if op == "lt" and not current < value:
                return False
        return True

    def execute(self):
        self.client.calls.append((self.table_name, self.op))
        if self.table_name in self.client.fail_tables:
            raise RuntimeError(f"simulated outage on {self.table_name}")

        rows = self.client.tables.setdefault(self.table_name, [])

        if self.op == "insert":
            stored = copy.deepcopy(self.payload)
            rows.append(stored)
            return SimpleNamespace(data=[copy.deepcopy(stored)])

        if self.op == "update":
            for op, _column, value in self.filters:
                if op == "eq" and value in self.client.fail_update_keys:
                    raise RuntimeError(f"simulated write failure for {value}")
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return SimpleNamespace(data=updated)

        if self.op == "delete":
            removed = [row for row in rows if self._matches(row)]
            self.client.tables[self.table_name] = [row for row in rows if not self._matches(row)]
            return SimpleNamespace(data=copy.deepcopy(removed))

        result = [row for row in rows if self._matches(row)]
        if self.order_by:
            result = sorted(result, key=lambda r: r.get(self.order_by) or "", reverse=self.desc)
        if self.limit_n is not None:
            result = result[: self.limit_n]
        return SimpleNamespace(data=copy.deepcopy(result))


class FakeSupabase:
    def __init__(self, tables=None):
        self.tables = {name: [copy.deepcopy(r) for r in rows] for name, rows in (tables or {}).items()}
        self.fail_tables = set()
        self.fail_update_keys = set()
        self.calls = []

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, name):
        return self.tables.get(name, [])


def make_student(student_id, status="unvalidated", **extra):
    """A students-table row that passes field validation."""
    row = {
        "student_id": student_id,
        "first_name": "Ana",
        "last_name": "Reyes",
        "email": f"{student_id.lower()}@school.edu",
        "year": "10",
        "section": "A",
        "enrolled_classes": ["C1"],
        "validation_status": status,
        "validation_date": None,
        "validated_by": None,
    }
    row.update(extra)
    return row
