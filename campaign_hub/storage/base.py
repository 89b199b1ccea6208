"""Shared row mapping for the entity stores."""

import sqlite3
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from .database import Database, StorageError, decode_json, encode_json
from .schemas import Record

RecordT = TypeVar("RecordT", bound=Record)


class BaseStore(Generic[RecordT]):
    """Maps one table to one record type.

    Subclasses set ``table``, ``model``, the JSON-encoded columns and the
    columns callers are allowed to change through ``update``.
    """

    table: str = ""
    model: type[RecordT]
    json_columns: frozenset[str] = frozenset()
    updatable: frozenset[str] = frozenset()
    touch_column: str | None = None  # bumped to now() on every update

    def __init__(self, db: Database):
        self.db = db

    def _from_row(self, row: sqlite3.Row | None) -> RecordT | None:
        if row is None:
            return None
        data = {key: row[key] for key in row.keys()}
        for column in self.json_columns:
            if column in data:
                data[column] = decode_json(data[column])
        try:
            return self.model.model_validate(data)
        except ValidationError as e:
            raise StorageError(f"Corrupt row in {self.table}: {e}") from e

    def _to_columns(self, values: dict[str, Any]) -> dict[str, Any]:
        columns = {}
        for key, value in values.items():
            if key in self.json_columns:
                value = encode_json(value)
            elif isinstance(value, datetime):
                value = value.isoformat()
            columns[key] = value
        return columns

    def normalize_keys(self, values: dict[str, Any]) -> dict[str, Any]:
        """Map camelCase API keys onto field names, dropping unknown keys."""
        fields = self.model.model_fields
        by_alias = {info.alias: name for name, info in fields.items() if info.alias}
        normalized = {}
        for key, value in values.items():
            if key in fields:
                normalized[key] = value
            elif key in by_alias:
                normalized[by_alias[key]] = value
        return normalized

    def _create(self, values: dict[str, Any]) -> RecordT:
        row_id = self.db.insert(self.table, self._to_columns(values))
        record = self.get(row_id)
        if record is None:
            raise StorageError(f"Inserted row {row_id} missing from {self.table}")
        return record

    def _list(self, where: str = "1=1", params: tuple = (), order: str = "id") -> list[RecordT]:
        rows = self.db.fetch_all(
            f"SELECT * FROM {self.table} WHERE {where} ORDER BY {order}", params
        )
        return [self._from_row(row) for row in rows]

    def get(self, row_id: int) -> RecordT | None:
        row = self.db.fetch_one(f"SELECT * FROM {self.table} WHERE id = ?", (row_id,))
        return self._from_row(row)

    def update(self, row_id: int, updates: dict[str, Any]) -> RecordT | None:
        """Apply whitelisted updates. Returns None when the row does not exist."""
        values = {k: v for k, v in self.normalize_keys(updates).items() if k in self.updatable}
        if self.touch_column:
            values[self.touch_column] = datetime.now()
        if not self.db.update(self.table, row_id, self._to_columns(values)):
            return None
        return self.get(row_id)

    def delete(self, row_id: int) -> bool:
        return self.db.delete(self.table, row_id)
