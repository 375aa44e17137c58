"""
Row store boundary.

Services never talk to the Supabase client directly. They go through a Store, which
offers get-by-key, get-by-filter, insert, update and delete, each atomic for a
single row, and which maps every row to its pydantic schema on the way in and out.
Unique constraints live in the database; a losing write surfaces as UniqueViolation.

Filter values follow PostgREST semantics: None means "is null", a list or tuple
means "in", anything else is an equality match.
"""

import logging
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from fastapi.encoders import jsonable_encoder
from postgrest.exceptions import APIError
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaError
from supabase import Client

from homebase.core.exceptions import InternalError, UniqueViolation, ValidationError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION_CODE = "23505"

OrderBy = Sequence[Tuple[str, bool]]  # (column, descending)


class Row(BaseModel):
    """Base for every stored row type. Unknown columns are dropped."""

    table_name: ClassVar[str] = ""

    model_config = ConfigDict(extra="ignore")


RowT = TypeVar("RowT", bound=Row)


class Store:
    """Typed row access. Subclasses implement the four raw operations on dicts."""

    def get_by_key(self, model: Type[RowT], key: str) -> Optional[RowT]:
        rows = self._select(model.table_name, {"id": key}, ())
        if not rows:
            return None
        return self._parse(model, rows[0])

    def get_by_filter(self, model: Type[RowT], order_by: OrderBy = (), **filters: Any) -> List[RowT]:
        rows = self._select(model.table_name, self._encode(filters), order_by)
        return [self._parse(model, row) for row in rows]

    def insert(self, model: Type[RowT], row: Dict[str, Any]) -> RowT:
        created = self._insert(model.table_name, self._encode(row))
        return self._parse(model, created)

    def update(
        self,
        model: Type[RowT],
        key: str,
        patch: Dict[str, Any],
        expect: Optional[Dict[str, Any]] = None,
    ) -> Optional[RowT]:
        """
        Patch one row. With `expect`, the update only applies while the row still
        holds those values, which makes it a single-writer gate: None is returned
        when no row matched.
        """
        filters = {"id": key, **(expect or {})}
        rows = self._update(model.table_name, self._encode(filters), self._encode(patch))
        if not rows:
            return None
        return self._parse(model, rows[0])

    def delete(self, model: Type[RowT], key: str) -> bool:
        """Delete by key. Deleting a missing row is not an error."""
        rows = self._delete(model.table_name, {"id": key})
        return len(rows) > 0

    @staticmethod
    def _encode(values: Dict[str, Any]) -> Dict[str, Any]:
        return jsonable_encoder(values)

    @staticmethod
    def _parse(model: Type[RowT], row: Dict[str, Any]) -> RowT:
        try:
            return model.model_validate(row)
        except SchemaError as e:
            logger.error("Invalid %s row %s: %s", model.table_name, row.get("id"), e)
            raise ValidationError(f"Invalid {model.table_name} row: {e.errors()[0]['msg']}") from e

    def _select(self, table: str, filters: Dict[str, Any], order_by: OrderBy) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def _insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def _update(self, table: str, filters: Dict[str, Any], patch: Dict[str, Any]) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def _delete(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        raise NotImplementedError


class SupabaseStore(Store):
    def __init__(self, supabase: Client):
        self.supabase = supabase

    @staticmethod
    def _apply_filters(query, filters: Dict[str, Any]):
        for column, value in filters.items():
            if value is None:
                query = query.is_(column, "null")
            elif isinstance(value, (list, tuple)):
                query = query.in_(column, list(value))
            else:
                query = query.eq(column, value)
        return query

    def _execute(self, table: str, operation: str, query) -> List[Dict[str, Any]]:
        try:
            result = query.execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION_CODE:
                raise UniqueViolation(f"{table}: {e.message}") from e
            logger.error(f"Store {operation} on {table} failed: {e.message}")
            raise InternalError(f"Store {operation} on {table} failed") from e
        except Exception as e:
            logger.error(f"Store {operation} on {table} failed: {e}")
            raise InternalError(f"Store {operation} on {table} failed") from e
        return result.data or []

    def _select(self, table, filters, order_by):
        query = self._apply_filters(self.supabase.table(table).select("*"), filters)
        for column, desc in order_by:
            query = query.order(column, desc=desc)
        return self._execute(table, "select", query)

    def _insert(self, table, row):
        rows = self._execute(table, "insert", self.supabase.table(table).insert(row))
        if not rows:
            raise InternalError(f"Store insert on {table} returned no row")
        return rows[0]

    def _update(self, table, filters, patch):
        query = self._apply_filters(self.supabase.table(table).update(patch), filters)
        return self._execute(table, "update", query)

    def _delete(self, table, filters):
        query = self._apply_filters(self.supabase.table(table).delete(), filters)
        return self._execute(table, "delete", query)
