"""PostgREST-backed record store (the platform's auto-generated REST API)."""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from .gateway import (
    ChangeCallback,
    DuplicateRecord,
    Filter,
    RecordNotFound,
    RecordStore,
    StoreError,
)

logger = logging.getLogger("fleetwatch.store.rest")

UNIQUE_VIOLATION = "23505"


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_filter(flt: Filter) -> Tuple[str, str]:
    """Translate a Filter into a PostgREST query parameter."""
    if flt.op == "is_null":
        return flt.column, "is.null"
    if flt.op == "not_null":
        return flt.column, "not.is.null"
    if flt.op == "in":
        return flt.column, "in.(" + ",".join(_literal(v) for v in flt.value) + ")"
    if flt.op in ("eq", "neq", "lt", "lte", "gt", "gte"):
        if flt.value is None:
            return flt.column, "is.null" if flt.op == "eq" else "not.is.null"
        return flt.column, f"{flt.op}.{_literal(flt.value)}"
    raise StoreError(f"Unsupported operator: {flt.op}")


def parse_content_range(header: Optional[str]) -> int:
    """Extract the total from a ``Content-Range: 0-9/42`` header."""
    if not header or "/" not in header:
        return 0
    total = header.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else 0


class RestRecordStore(RecordStore):
    """Talks to ``{url}/rest/v1/<table>`` with the service role key."""

    def __init__(
        self,
        url: str,
        service_key: str,
        timeout: float = 20,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = url.rstrip("/") + "/rest/v1"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Content-Type": "application/json",
            }
        )
        self._pollers: List[Any] = []

    def _params(self, filters: Optional[List[Filter]]) -> List[Tuple[str, str]]:
        return [encode_filter(f) for f in filters or []]

    def _check(self, resp: requests.Response, table: str) -> None:
        if resp.status_code < 400:
            return
        try:
            body = resp.json()
        except ValueError:
            body = {}
        code = body.get("code") if isinstance(body, dict) else None
        message = body.get("message") if isinstance(body, dict) else None
        if resp.status_code == 409 or code == UNIQUE_VIOLATION:
            raise DuplicateRecord(f"{table}: {message or 'duplicate key'}")
        raise StoreError(f"{table}: HTTP {resp.status_code} {message or resp.text[:200]}")

    def select(
        self,
        table: str,
        filters: Optional[List[Filter]] = None,
        order: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = [("select", "*")] + self._params(filters)
        if order:
            params.append(("order", f"{order}.{'desc' if desc else 'asc'}.nullslast"))
        if limit is not None:
            params.append(("limit", str(limit)))
        resp = self.session.get(f"{self.base_url}/{table}", params=params, timeout=self.timeout)
        self._check(resp, table)
        return resp.json()

    def count(self, table: str, filters: Optional[List[Filter]] = None) -> int:
        params = [("select", "id")] + self._params(filters)
        resp = self.session.head(
            f"{self.base_url}/{table}",
            params=params,
            headers={"Prefer": "count=exact"},
            timeout=self.timeout,
        )
        self._check(resp, table)
        return parse_content_range(resp.headers.get("Content-Range"))

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        resp = self.session.post(
            f"{self.base_url}/{table}",
            json=row,
            headers={"Prefer": "return=representation"},
            timeout=self.timeout,
        )
        self._check(resp, table)
        data = resp.json()
        return data[0] if isinstance(data, list) and data else row

    def update(self, table: str, row_id: Any, values: Dict[str, Any]) -> Dict[str, Any]:
        resp = self.session.patch(
            f"{self.base_url}/{table}",
            params=[("id", f"eq.{row_id}")],
            json=values,
            headers={"Prefer": "return=representation"},
            timeout=self.timeout,
        )
        self._check(resp, table)
        data = resp.json()
        if not data:
            raise RecordNotFound(f"{table}: no row with id {row_id!r}")
        return data[0]

    def update_where(
        self, table: str, filters: List[Filter], values: Dict[str, Any]
    ) -> int:
        if not filters:
            # PostgREST refuses unfiltered updates
            raise StoreError(f"{table}: update_where requires at least one filter")
        resp = self.session.patch(
            f"{self.base_url}/{table}",
            params=self._params(filters),
            json=values,
            headers={"Prefer": "return=representation"},
            timeout=self.timeout,
        )
        self._check(resp, table)
        return len(resp.json())

    def subscribe(self, table: str, callback: ChangeCallback) -> Callable[[], None]:
        """Emulate change events by polling the table (see ``ChangePoller``)."""
        from .polling import ChangePoller

        poller = ChangePoller(self, table, callback)
        poller.start()
        self._pollers.append(poller)

        def unsubscribe() -> None:
            poller.stop()
            if poller in self._pollers:
                self._pollers.remove(poller)

        return unsubscribe
