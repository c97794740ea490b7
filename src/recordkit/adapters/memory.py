"""
In-process storage adapter keeping rows in dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from ..utils import get_logger
from .base import (
    AdapterConnectionError,
    AdapterExecutionError,
    ConnectionConfig,
    StorageAdapter,
    key_of,
)


@dataclass
class MemoryTable:
    key_columns: Tuple[str, ...]
    rows: Dict[Tuple[Any, ...], Dict[str, Any]] = field(default_factory=dict)
    next_id: int = 1


@dataclass
class MemoryDatabase:
    name: Optional[str]
    tables: Dict[str, MemoryTable] = field(default_factory=dict)
    lock: RLock = field(default_factory=RLock)


_named_databases: Dict[str, MemoryDatabase] = {}
_registry_lock = RLock()


def _open_database(name: Optional[str]) -> MemoryDatabase:
    if not name:
        return MemoryDatabase(name=None)
    with _registry_lock:
        database = _named_databases.get(name)
        if database is None:
            database = MemoryDatabase(name=name)
            _named_databases[name] = database
        return database


def drop_database(name: str) -> None:
    """
    Forget a named in-memory database so the next connection starts empty.
    """
    with _registry_lock:
        _named_databases.pop(name, None)


class MemoryAdapter(StorageAdapter):
    """
    Adapter storing rows in process memory.

    ``memory://`` opens a private database; ``memory://name`` shares one
    database between every adapter connected under that name.
    """

    def __init__(self) -> None:
        self._database: MemoryDatabase | None = None
        self._config: ConnectionConfig | None = None
        self.logger = get_logger("adapters.memory")

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    def connect(self, config: ConnectionConfig) -> MemoryDatabase:
        name = config.dsn.database if config.dsn else None
        self._database = _open_database(name)
        self._config = config
        self.logger.debug("Connected to %s", config.descriptive_label())
        return self._database

    def close(self) -> None:
        self._database = None

    @property
    def prepared_statements(self) -> bool:
        if self._config is None:
            return True
        return self._config.prepared_statements

    def _ensure_database(self) -> MemoryDatabase:
        if self._database is None:
            raise AdapterConnectionError("MemoryAdapter is not connected.")
        return self._database

    def _table(self, database: MemoryDatabase, table: str, key_columns: Sequence[str]) -> MemoryTable:
        existing = database.tables.get(table)
        if existing is None:
            start = 1
            if self._config is not None:
                start = self._config.option("auto_increment_start", 1)
            existing = MemoryTable(key_columns=tuple(key_columns), next_id=start)
            database.tables[table] = existing
        elif existing.key_columns != tuple(key_columns):
            raise AdapterExecutionError(
                f"Table '{table}' is keyed by {existing.key_columns}, not {tuple(key_columns)}"
            )
        return existing

    # ------------------------------------------------------------------ #
    # Reads and writes
    # ------------------------------------------------------------------ #
    def insert(self, table: str, row: Mapping[str, Any], key_columns: Sequence[str]) -> None:
        database = self._ensure_database()
        key = key_of(row, key_columns)
        if any(value is None for value in key):
            raise AdapterExecutionError(f"Cannot insert into '{table}' without a complete key {key!r}")
        with database.lock:
            storage = self._table(database, table, key_columns)
            if key in storage.rows:
                raise AdapterExecutionError(f"Duplicate key {key!r} for table '{table}'")
            storage.rows[key] = dict(row)
            if len(key) == 1 and isinstance(key[0], int) and key[0] >= storage.next_id:
                storage.next_id = key[0] + 1

    def update(self, table: str, row: Mapping[str, Any], key_columns: Sequence[str]) -> None:
        database = self._ensure_database()
        key = key_of(row, key_columns)
        with database.lock:
            storage = self._table(database, table, key_columns)
            if key not in storage.rows:
                raise AdapterExecutionError(f"No row with key {key!r} in table '{table}'")
            storage.rows[key] = dict(row)

    def select_first(
        self, table: str, columns: Sequence[str], params: Sequence[Any]
    ) -> Optional[Dict[str, Any]]:
        database = self._ensure_database()
        if len(columns) != len(params):
            raise AdapterExecutionError(
                f"Lookup on '{table}' binds {len(params)} values to {len(columns)} columns"
            )
        with database.lock:
            storage = database.tables.get(table)
            if storage is None:
                return None
            wanted = tuple(params)
            if sorted(columns) == sorted(storage.key_columns):
                by_column = dict(zip(columns, wanted))
                row = storage.rows.get(key_of(by_column, storage.key_columns))
                return dict(row) if row is not None else None
            for row in storage.rows.values():
                if key_of(row, columns) == wanted:
                    return dict(row)
        return None

    def next_id(self, table: str, key_columns: Sequence[str]) -> int:
        database = self._ensure_database()
        with database.lock:
            storage = self._table(database, table, key_columns)
            value = storage.next_id
            storage.next_id += 1
            return value

    def row_count(self, table: str) -> int:
        database = self._ensure_database()
        with database.lock:
            storage = database.tables.get(table)
            return len(storage.rows) if storage is not None else 0
