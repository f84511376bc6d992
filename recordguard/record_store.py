"""
Supabase-backed record store: the only module that talks to the database.

Services above this layer receive a RecordStore and decide how failures are
surfaced. The store itself raises RecordStoreError on any client failure.
"""

import uuid
from typing import Any, Dict, List, Optional

from recordguard.config import DEFAULT_COLLECTIONS, CollectionConfig


class RecordStoreError(Exception):
    """Raised when the underlying Supabase call fails or no client is configured."""


class RecordStore:
    """
    Thin wrapper over a Supabase client.

    Supports exactly what the validation core needs: create, point-read,
    filtered query (equality + range on indexed columns), merge-update and
    filtered delete. No transactions or joins.
    """

    def __init__(self, client, collections: CollectionConfig = DEFAULT_COLLECTIONS):
        self.client = client
        self.collections = collections

    def _table(self, table: str):
        if self.client is None:
            raise RecordStoreError("Supabase client is not configured")
        return self.client.table(table)

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one row. Assigns an ``id`` when the row has none."""
        payload = dict(row)
        payload.setdefault("id", str(uuid.uuid4()))
        try:
            result = self._table(table).insert(payload).execute()
        except RecordStoreError:
            raise
        except Exception as e:
            raise RecordStoreError(f"insert into {table} failed: {e}") from e
        if result.data:
            return result.data[0]
        return payload

    def get(self, table: str, key_column: str, key: str) -> Optional[Dict[str, Any]]:
        """Point read by a natural or generated key. Returns None when absent."""
        try:
            result = self._table(table).select("*").eq(key_column, key).limit(1).execute()
        except RecordStoreError:
            raise
        except Exception as e:
            raise RecordStoreError(f"read from {table} failed: {e}") from e
        if result.data:
            return result.data[0]
        return None

    def exists(self, table: str, key_column: str, key: str) -> bool:
        return self.get(table, key_column, key) is not None

    def query(
        self,
        table: str,
        equals: Optional[Dict[str, Any]] = None,
        gte: Optional[Dict[str, Any]] = None,
        lte: Optional[Dict[str, Any]] = None,
        lt: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Filtered select. Only non-None filter values are applied."""
        try:
            query = self._table(table).select("*")
            for column, value in (equals or {}).items():
                if value is not None:
                    query = query.eq(column, value)
            for column, value in (gte or {}).items():
                if value is not None:
                    query = query.gte(column, value)
            for column, value in (lte or {}).items():
                if value is not None:
                    query = query.lte(column, value)
            for column, value in (lt or {}).items():
                if value is not None:
                    query = query.lt(column, value)
            if order_by:
                query = query.order(order_by, desc=desc)
            if limit:
                query = query.limit(limit)
            result = query.execute()
        except RecordStoreError:
            raise
        except Exception as e:
            raise RecordStoreError(f"query on {table} failed: {e}") from e
        return result.data if result.data else []

    def update(self, table: str, key_column: str, key: str, updates: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Merge-update rows matching key. Returns the updated rows.
        Raises RecordStoreError when no row matched, mirroring a document update on a missing doc.
        """
        try:
            result = self._table(table).update(dict(updates)).eq(key_column, key).execute()
        except RecordStoreError:
            raise
        except Exception as e:
            raise RecordStoreError(f"update on {table} failed: {e}") from e
        if not result.data:
            raise RecordStoreError(f"no row in {table} with {key_column}={key}")
        return result.data

    def delete_older_than(self, table: str, column: str, cutoff: str) -> int:
        """Delete rows whose ``column`` sorts before ``cutoff``. Returns the number removed."""
        try:
            result = self._table(table).delete().lt(column, cutoff).execute()
        except RecordStoreError:
            raise
        except Exception as e:
            raise RecordStoreError(f"delete from {table} failed: {e}") from e
        return len(result.data) if result.data else 0


def get_default_store() -> RecordStore:
    """Build a store from environment credentials (service role preferred for server-side writes)."""
    from auth.supabase_client import get_service_role_client, get_supabase_client
    from recordguard.config import get_collections

    client = get_service_role_client() or get_supabase_client()
    return RecordStore(client, collections=get_collections())
