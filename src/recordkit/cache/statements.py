"""
Cache of prepared primary-key and attribute lookups.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock, RLock, get_ident
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Type

from ..utils import get_logger

if TYPE_CHECKING:
    from ..adapters.base import StorageAdapter
    from ..core.model import Model


@dataclass(frozen=True)
class CacheKey:
    """
    Shape of a lookup: model class, looked-up columns, prepared-statement mode.
    """

    model: Type["Model"]
    columns: Tuple[str, ...]
    prepared_statements: bool

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(sorted(self.columns)))
        object.__setattr__(self, "prepared_statements", bool(self.prepared_statements))

    @classmethod
    def for_lookup(
        cls, model: Type["Model"], columns: Iterable[str], prepared_statements: bool
    ) -> "CacheKey":
        return cls(model=model, columns=tuple(columns), prepared_statements=prepared_statements)

    @property
    def bucket_id(self) -> Tuple[Type["Model"], bool]:
        return (self.model, self.prepared_statements)


@dataclass(frozen=True)
class LookupPlan:
    """
    Compiled lookup against a single table, reusable across calls.
    """

    model: Type["Model"]
    table: str
    fields: Tuple[str, ...]
    columns: Tuple[str, ...]
    prepared: bool

    @classmethod
    def compile(
        cls, model: Type["Model"], field_names: Iterable[str], *, prepared: bool
    ) -> "LookupPlan":
        names = tuple(sorted(field_names))
        if not names:
            raise ValueError(f"A lookup on '{model.__name__}' needs at least one column.")
        columns = tuple(model._meta.get_field(name).column_name() for name in names)
        return cls(
            model=model,
            table=model._meta.table,
            fields=names,
            columns=columns,
            prepared=prepared,
        )

    def bind(self, values: Mapping[str, Any]) -> Tuple[Any, ...]:
        missing = [name for name in self.fields if name not in values]
        if missing:
            raise ValueError(f"Missing lookup values for {missing} on '{self.model.__name__}'")
        extra = sorted(set(values) - set(self.fields))
        if extra:
            raise ValueError(f"Unexpected lookup values for {extra} on '{self.model.__name__}'")
        params = []
        for name in self.fields:
            field = self.model._meta.get_field(name)
            params.append(field.to_python(values[name]))
        return tuple(params)

    def execute(self, adapter: "StorageAdapter", values: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        return adapter.select_first(self.table, self.columns, self.bind(values))


class RecursiveBuildError(RuntimeError):
    """Raised when a plan builder asks the cache for the key it is building."""


class StatementCache:
    """
    Stores one plan per :class:`CacheKey`.

    Plans are grouped in buckets per (model, prepared-statement mode) and are
    never evicted; owners replace the whole cache to invalidate it.
    """

    def __init__(self, model: Type["Model"] | None = None) -> None:
        self.model = model
        self._buckets: Dict[Tuple[Type["Model"], bool], Dict[Tuple[str, ...], Any]] = {}
        self._key_locks: Dict[CacheKey, Lock] = {}
        self._building: Dict[CacheKey, int] = {}
        self._lock = RLock()
        self.logger = get_logger("cache.statements")

    def get(self, key: CacheKey) -> Any:
        with self._lock:
            return self._buckets.get(key.bucket_id, {}).get(key.columns)

    def get_or_create(self, key: CacheKey, builder: Callable[[], Any]) -> Any:
        with self._lock:
            bucket = self._buckets.get(key.bucket_id)
            if bucket is not None and key.columns in bucket:
                return bucket[key.columns]
            if self._building.get(key) == get_ident():
                raise RecursiveBuildError(
                    f"Lookup plan for {key.model.__name__} by {', '.join(key.columns)} "
                    "was requested by its own builder"
                )
            key_lock = self._key_locks.setdefault(key, Lock())

        with key_lock:
            with self._lock:
                bucket = self._buckets.get(key.bucket_id)
                if bucket is not None and key.columns in bucket:
                    return bucket[key.columns]
                self._building[key] = get_ident()
            try:
                plan = builder()
            finally:
                with self._lock:
                    self._building.pop(key, None)

            with self._lock:
                self._buckets.setdefault(key.bucket_id, {})[key.columns] = plan
                self._key_locks.pop(key, None)
        self.logger.debug(
            "Cached lookup plan for %s by %s (prepared_statements=%s)",
            key.model.__name__,
            ", ".join(key.columns),
            key.prepared_statements,
        )
        return plan

    def size(self, prepared_statements: bool | None = None) -> int:
        with self._lock:
            return sum(
                len(bucket)
                for (_, prepared), bucket in self._buckets.items()
                if prepared_statements is None or prepared == prepared_statements
            )

    def bucket(
        self, prepared_statements: bool, model: Type["Model"] | None = None
    ) -> Mapping[Tuple[str, ...], Any]:
        owner = model or self.model
        with self._lock:
            return MappingProxyType(dict(self._buckets.get((owner, bool(prepared_statements)), {})))

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return key.columns in self._buckets.get(key.bucket_id, {})

    def __len__(self) -> int:
        return self.size()
