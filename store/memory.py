"""In-memory record store, used for tests and for YAML fixture runs."""

import copy
import logging
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import yaml
from dateutil.parser import isoparse

from .gateway import (
    ChangeCallback,
    ChangeEvent,
    DuplicateRecord,
    Filter,
    RecordNotFound,
    RecordStore,
    StoreError,
)

logger = logging.getLogger("fleetwatch.store.memory")


def _comparable(value: Any) -> Any:
    """Normalize ISO date/datetime strings so they compare chronologically."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str) and len(value) >= 10 and value[4:5] == "-" and value[7:8] == "-":
        try:
            parsed = isoparse(value)
        except ValueError:
            return value
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return value


def _matches(row: Dict[str, Any], flt: Filter) -> bool:
    value = row.get(flt.column)
    if flt.op == "is_null":
        return value is None
    if flt.op == "not_null":
        return value is not None
    if flt.op == "eq":
        return value == flt.value
    if flt.op == "neq":
        return value != flt.value
    if flt.op == "in":
        return value in flt.value
    if value is None or flt.value is None:
        return False
    left, right = _comparable(value), _comparable(flt.value)
    try:
        if flt.op == "lt":
            return left < right
        if flt.op == "lte":
            return left <= right
        if flt.op == "gt":
            return left > right
        if flt.op == "gte":
            return left >= right
    except TypeError as exc:
        raise StoreError(f"Cannot compare {flt.column}={value!r} with {flt.value!r}") from exc
    raise StoreError(f"Unsupported operator: {flt.op}")


class InMemoryRecordStore(RecordStore):
    """Dict-backed store with partial unique indexes and change events."""

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self._tables: Dict[str, List[Dict[str, Any]]] = {}
        self._unique: Dict[str, List[Tuple[Tuple[str, ...], Dict[str, Any]]]] = {}
        self._subscribers: Dict[str, List[ChangeCallback]] = {}
        for table, rows in (tables or {}).items():
            for row in rows:
                self._rows(table).append(self._with_id(row))

    @classmethod
    def from_yaml(cls, filename: Union[str, Path]) -> "InMemoryRecordStore":
        """Load a fixture file mapping table names to lists of rows."""
        with open(filename, "r") as fp:
            data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
        return cls(data)

    def add_unique_index(
        self, table: str, columns: Tuple[str, ...], where: Optional[Dict[str, Any]] = None
    ) -> None:
        """Declare a (partial) unique index: rows matching ``where`` must be unique on ``columns``."""
        self._unique.setdefault(table, []).append((tuple(columns), dict(where or {})))

    def _rows(self, table: str) -> List[Dict[str, Any]]:
        return self._tables.setdefault(table, [])

    @staticmethod
    def _with_id(row: Dict[str, Any]) -> Dict[str, Any]:
        row = copy.deepcopy(row)
        if row.get("id") is None:
            row["id"] = str(uuid.uuid4())
        return row

    def _check_unique(self, table: str, candidate: Dict[str, Any]) -> None:
        for columns, where in self._unique.get(table, []):
            if any(candidate.get(k) != v for k, v in where.items()):
                continue
            # NULLs never collide, as in SQL
            if any(candidate.get(c) is None for c in columns):
                continue
            for row in self._rows(table):
                if row["id"] == candidate["id"]:
                    continue
                if any(row.get(k) != v for k, v in where.items()):
                    continue
                if all(row.get(c) == candidate.get(c) for c in columns):
                    raise DuplicateRecord(
                        f"{table}: duplicate key on ({', '.join(columns)})"
                    )

    def _emit(self, event: ChangeEvent) -> None:
        for callback in list(self._subscribers.get(event.table, [])):
            callback(event)

    def select(
        self,
        table: str,
        filters: Optional[List[Filter]] = None,
        order: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        rows = [r for r in self._rows(table) if all(_matches(r, f) for f in filters or [])]
        if order:
            present = [r for r in rows if r.get(order) is not None]
            missing = [r for r in rows if r.get(order) is None]
            present.sort(key=lambda r: _comparable(r[order]), reverse=desc)
            rows = present + missing
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    def count(self, table: str, filters: Optional[List[Filter]] = None) -> int:
        return sum(1 for r in self._rows(table) if all(_matches(r, f) for f in filters or []))

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        new_row = self._with_id(row)
        self._check_unique(table, new_row)
        self._rows(table).append(new_row)
        logger.debug("insert %s id=%s", table, new_row["id"])
        self._emit(ChangeEvent("INSERT", table, copy.deepcopy(new_row)))
        return copy.deepcopy(new_row)

    def update(self, table: str, row_id: Any, values: Dict[str, Any]) -> Dict[str, Any]:
        for index, row in enumerate(self._rows(table)):
            if row["id"] == row_id:
                updated = {**row, **copy.deepcopy(values)}
                self._check_unique(table, updated)
                self._rows(table)[index] = updated
                self._emit(ChangeEvent("UPDATE", table, copy.deepcopy(updated), copy.deepcopy(row)))
                return copy.deepcopy(updated)
        raise RecordNotFound(f"{table}: no row with id {row_id!r}")

    def update_where(
        self, table: str, filters: List[Filter], values: Dict[str, Any]
    ) -> int:
        targets = [r["id"] for r in self._rows(table) if all(_matches(r, f) for f in filters)]
        for row_id in targets:
            self.update(table, row_id, values)
        return len(targets)

    def subscribe(self, table: str, callback: ChangeCallback) -> Callable[[], None]:
        self._subscribers.setdefault(table, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(table, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe
