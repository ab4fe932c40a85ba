"""
Supabase provider: PostgREST tables and Storage buckets of the hosted backend.
"""
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from supabase import Client

from .errors import ProviderError
from .provider import Provider, encode_fields

logger = logging.getLogger(__name__)


class SupabaseProvider(Provider):
    """Provider delegating every call to a Supabase client.

    The client carries the signed-in user's session, so row-level security
    policies on the hosted database decide what each call may touch.
    """

    def __init__(self, client: Client):
        self.client = client

    def _execute(self, query: Any, table: str, operation: str) -> List[Dict[str, Any]]:
        try:
            response = query.execute()
        except Exception as e:
            logger.error("Supabase %s on %s failed: %s", operation, table, e)
            raise ProviderError(str(e), table, operation) from e
        return list(response.data or [])

    @staticmethod
    def _apply_filters(query: Any, filters: Mapping[str, Any]) -> Any:
        for column, value in encode_fields(filters).items():
            query = query.is_(column, "null") if value is None else query.eq(column, value)
        return query

    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> List[Dict[str, Any]]:
        query = self._apply_filters(self.client.table(table).select("*"), filters or {})
        if order_by:
            query = query.order(order_by, desc=not ascending)
        return self._execute(query, table, "select")

    def insert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        query = self.client.table(table).insert(encode_fields(row))
        rows = self._execute(query, table, "insert")
        if not rows:
            raise ProviderError("Insert returned no row", table, "insert")
        return rows[0]

    def update(
        self, table: str, filters: Mapping[str, Any], fields: Mapping[str, Any]
    ) -> List[Dict[str, Any]]:
        if not filters:
            raise ProviderError("Refusing to update without filters", table, "update")
        query = self._apply_filters(
            self.client.table(table).update(encode_fields(fields)), filters
        )
        return self._execute(query, table, "update")

    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        if not filters:
            raise ProviderError("Refusing to delete without filters", table, "delete")
        query = self._apply_filters(self.client.table(table).delete(), filters)
        self._execute(query, table, "delete")

    def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> None:
        try:
            self.client.storage.from_(bucket).upload(
                path,
                data,
                {"content-type": content_type, "cache-control": "3600", "upsert": "false"},
            )
        except Exception as e:
            logger.error("Upload of %s to %s failed: %s", path, bucket, e)
            raise ProviderError(str(e), bucket, "upload") from e

    def remove(self, bucket: str, paths: Iterable[str]) -> None:
        paths = list(paths)
        if not paths:
            return
        try:
            self.client.storage.from_(bucket).remove(paths)
        except Exception as e:
            logger.error("Removing %s from %s failed: %s", paths, bucket, e)
            raise ProviderError(str(e), bucket, "remove") from e

    def public_url(self, bucket: str, path: str) -> str:
        return self.client.storage.from_(bucket).get_public_url(path)
