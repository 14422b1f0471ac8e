"""Record store contract shared by the engine and the clients."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence


class StoreError(Exception):
    """Raised when the backing store rejects a query or mutation."""


class DuplicateRecord(StoreError):
    """Raised when an insert violates a unique constraint."""


class RecordNotFound(StoreError):
    """Raised when an update targets an id that does not exist."""


@dataclass(frozen=True)
class Filter:
    """A single column predicate: ``column <op> value``."""

    column: str
    op: str
    value: Any = None


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def neq(column: str, value: Any) -> Filter:
    return Filter(column, "neq", value)


def lt(column: str, value: Any) -> Filter:
    return Filter(column, "lt", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


def gt(column: str, value: Any) -> Filter:
    return Filter(column, "gt", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def is_null(column: str) -> Filter:
    return Filter(column, "is_null")


def not_null(column: str) -> Filter:
    return Filter(column, "not_null")


def in_(column: str, values: Sequence[Any]) -> Filter:
    return Filter(column, "in", tuple(values))


@dataclass
class ChangeEvent:
    """A row change delivered to subscribers (INSERT or UPDATE)."""

    event: str
    table: str
    new: Dict[str, Any]
    old: Dict[str, Any] = field(default_factory=dict)


ChangeCallback = Callable[[ChangeEvent], None]


class RecordStore:
    """
    Generic query/mutation API over typed tables.

    Rows are plain dicts with JSON-compatible values; dates travel as ISO
    strings. Implementations must support every operator built by the
    helpers above.
    """

    def select(
        self,
        table: str,
        filters: Optional[List[Filter]] = None,
        order: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def first(
        self,
        table: str,
        filters: Optional[List[Filter]] = None,
        order: Optional[str] = None,
        desc: bool = False,
    ) -> Optional[Dict[str, Any]]:
        """Return the first matching row, or None."""
        rows = self.select(table, filters, order=order, desc=desc, limit=1)
        return rows[0] if rows else None

    def get(self, table: str, row_id: Any) -> Optional[Dict[str, Any]]:
        return self.first(table, [eq("id", row_id)])

    def count(self, table: str, filters: Optional[List[Filter]] = None) -> int:
        raise NotImplementedError

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def update(self, table: str, row_id: Any, values: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def update_where(
        self, table: str, filters: List[Filter], values: Dict[str, Any]
    ) -> int:
        raise NotImplementedError

    def subscribe(self, table: str, callback: ChangeCallback) -> Callable[[], None]:
        """Register for change events on a table. Returns an unsubscribe function."""
        raise NotImplementedError
