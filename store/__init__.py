"""
Record store gateway.

- RecordStore: the query/mutation contract the engine and clients consume
- InMemoryRecordStore: dict-backed store for tests and YAML fixtures
- RestRecordStore: PostgREST client for the hosted platform
"""

from .gateway import (
    ChangeEvent,
    DuplicateRecord,
    Filter,
    RecordNotFound,
    RecordStore,
    StoreError,
    eq,
    gt,
    gte,
    in_,
    is_null,
    lt,
    lte,
    neq,
    not_null,
)
from .memory import InMemoryRecordStore
from .rest import RestRecordStore

__all__ = [
    "ChangeEvent",
    "DuplicateRecord",
    "Filter",
    "RecordNotFound",
    "RecordStore",
    "StoreError",
    "eq",
    "gt",
    "gte",
    "in_",
    "is_null",
    "lt",
    "lte",
    "neq",
    "not_null",
    "InMemoryRecordStore",
    "RestRecordStore",
]
