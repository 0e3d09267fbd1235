"""
Row Store

Thin data-access layer over the hosted database. The engine only reads
through it; the ingestion reconciler also inserts and updates rows.
"""

import copy
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


class StoreError(Exception):
    """A store call failed."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class DuplicateRowError(StoreError):
    """An insert was rejected by a uniqueness constraint."""


class RowStore:
    """
    Interface for the row-fetch and row-mutate collaborators.

    Filters are exact-match column equality.
    """

    def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[dict]:
        raise NotImplementedError

    def insert(self, table: str, row: dict) -> dict:
        raise NotImplementedError

    def update(self, table: str, row_id: str, changes: dict) -> dict:
        raise NotImplementedError

    def delete(self, table: str, row_id: str) -> None:
        raise NotImplementedError

    def call_procedure(self, name: str, **params) -> Any:
        raise NotImplementedError

    def find_one(self, table: str, **filters) -> Optional[dict]:
        rows = self.select(table, filters=filters, limit=1)
        return rows[0] if rows else None


class InMemoryRowStore(RowStore):
    """
    Dict-backed store for tests and local runs.

    unique_columns maps a table to the columns that reject duplicate
    non-null values on insert.
    """

    def __init__(
        self,
        tables: Optional[Dict[str, List[dict]]] = None,
        unique_columns: Optional[Dict[str, List[str]]] = None,
    ):
        self.tables: Dict[str, List[dict]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self.unique_columns = unique_columns or {}
        self.procedures: Dict[str, Callable[..., Any]] = {}
        self.procedure_calls: List[tuple] = []

    def register_procedure(self, name: str, func: Callable[..., Any]) -> None:
        self.procedures[name] = func

    def select(self, table, filters=None, order_by=None, descending=False, limit=None):
        rows = [
            copy.deepcopy(row)
            for row in self.tables.get(table, [])
            if all(row.get(column) == value for column, value in (filters or {}).items())
        ]
        if order_by:
            rows.sort(key=lambda row: (row.get(order_by) is None, row.get(order_by) or ""), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    def insert(self, table, row):
        rows = self.tables.setdefault(table, [])
        for column in self.unique_columns.get(table, []):
            value = row.get(column)
            if value is not None and any(existing.get(column) == value for existing in rows):
                raise DuplicateRowError(
                    f"duplicate key value violates unique constraint on {table}.{column}",
                    code=UNIQUE_VIOLATION,
                )
        stored = dict(row)
        stored.setdefault("id", str(uuid.uuid4()))
        rows.append(stored)
        return copy.deepcopy(stored)

    def update(self, table, row_id, changes):
        for row in self.tables.get(table, []):
            if row.get("id") == row_id:
                row.update(changes)
                return copy.deepcopy(row)
        raise StoreError(f"{table} row not found: {row_id}")

    def delete(self, table, row_id):
        rows = self.tables.get(table, [])
        self.tables[table] = [row for row in rows if row.get("id") != row_id]

    def call_procedure(self, name, **params):
        self.procedure_calls.append((name, params))
        if name not in self.procedures:
            raise StoreError(f"Unknown procedure: {name}")
        return self.procedures[name](**params)


class SupabaseRowStore(RowStore):
    """RowStore backed by the Supabase PostgREST client."""

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_credentials(cls, url: str, service_key: str) -> "SupabaseRowStore":
        if not url or not service_key:
            raise StoreError("Missing Supabase credentials")
        from supabase import create_client

        return cls(create_client(url, service_key))

    def _execute(self, query):
        try:
            return query.execute()
        except Exception as e:
            code = getattr(e, "code", None)
            message = getattr(e, "message", None) or str(e)
            if code == UNIQUE_VIOLATION:
                raise DuplicateRowError(message, code=code) from e
            raise StoreError(message, code=code) from e

    def select(self, table, filters=None, order_by=None, descending=False, limit=None):
        query = self.client.table(table).select("*")
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.limit(limit)
        return self._execute(query).data or []

    def insert(self, table, row):
        response = self._execute(self.client.table(table).insert(row))
        if not response.data:
            raise StoreError(f"Insert into {table} returned no row")
        return response.data[0]

    def update(self, table, row_id, changes):
        response = self._execute(self.client.table(table).update(changes).eq("id", row_id))
        if not response.data:
            raise StoreError(f"{table} row not found: {row_id}")
        return response.data[0]

    def delete(self, table, row_id):
        self._execute(self.client.table(table).delete().eq("id", row_id))

    def call_procedure(self, name, **params):
        return self._execute(self.client.rpc(name, params)).data
