"""
Adapter protocol and connection configuration for recordkit.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence, Tuple

from ..security.dsns import DSNConfig, parse_dsn


class AdapterError(RuntimeError):
    """Base error for adapter-related failures."""


class AdapterConfigurationError(AdapterError):
    """Raised when configuration values are invalid."""


class AdapterConnectionError(AdapterError):
    """Raised when an adapter is used without an open connection."""


class AdapterExecutionError(AdapterError):
    """Raised when a read or write against storage fails."""


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: str, *, key: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise AdapterConfigurationError(f"Invalid boolean value for '{key}': {value!r}")


def _parse_int(value: str, *, key: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise AdapterConfigurationError(f"Invalid integer value for '{key}': {value!r}") from exc


def _pop_bool(query: dict[str, str], key: str) -> bool | None:
    if key not in query:
        return None
    return _parse_bool(query.pop(key), key=key)


_INT_OPTIONS = {"auto_increment_start", "slow_query_ms"}


def _parse_option_values(query: Mapping[str, str]) -> dict[str, Any]:
    options: dict[str, Any] = {}
    for key, value in query.items():
        if key in _INT_OPTIONS:
            options[key] = _parse_int(value, key=key)
        else:
            options[key] = value
    return options


@dataclass
class ConnectionConfig:
    """
    Normalized connection configuration for adapters.
    """

    url: str = "memory://"
    prepared_statements: bool = True
    options: dict[str, Any] | None = None
    dsn: DSNConfig | None = None
    source: str | None = None

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a connection config by parsing the DSN string.

        ``prepared_statements`` may be given in the query string; other query
        parameters become adapter options.
        """

        try:
            parsed = parse_dsn(dsn)
        except ValueError as exc:
            raise AdapterConfigurationError(str(exc)) from exc
        query = dict(parsed.query)

        parsed_prepared = _pop_bool(query, "prepared_statements")
        options = _parse_option_values(query)
        options.update(kwargs.pop("options", None) or {})

        prepared_statements = kwargs.pop("prepared_statements", parsed_prepared)
        if prepared_statements is None:
            prepared_statements = True

        return cls(
            url=dsn,
            dsn=parsed,
            prepared_statements=prepared_statements,
            options=options or None,
            **kwargs,
        )

    @classmethod
    def from_env(cls, env_var: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a config from an environment variable containing a DSN.
        """

        value = os.getenv(env_var)
        if not value:
            raise AdapterConfigurationError(f"Environment variable {env_var} is not set")
        return cls.from_dsn(value, source=env_var, **kwargs)

    def option(self, key: str, default: Any = None) -> Any:
        if not self.options:
            return default
        return self.options.get(key, default)

    def redacted_dsn(self) -> str:
        """
        Return a DSN safe for logging (credentials removed).
        """

        if self.dsn:
            return self.dsn.redacted()
        return self.url

    def descriptive_label(self) -> str:
        redacted = self.redacted_dsn()
        if self.source:
            return f"{self.source} ({redacted})"
        return redacted


class StorageAdapter(Protocol):
    """
    Row storage used by sessions. Rows are dictionaries keyed by column name.
    """

    @property
    def prepared_statements(self) -> bool:
        """
        Whether lookups run as prepared statements; part of each lookup cache key.
        """

    def connect(self, config: ConnectionConfig) -> Any:
        """
        Open the storage using the supplied configuration.
        """

    def close(self) -> None:
        """
        Release underlying resources. Implementations should be idempotent.
        """

    def insert(self, table: str, row: Mapping[str, Any], key_columns: Sequence[str]) -> None:
        """
        Store a new row; duplicate keys raise :class:`AdapterExecutionError`.
        """

    def update(self, table: str, row: Mapping[str, Any], key_columns: Sequence[str]) -> None:
        """
        Replace the stored row that has the same key.
        """

    def select_first(
        self, table: str, columns: Sequence[str], params: Sequence[Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Return the first row whose ``columns`` equal ``params``, or ``None``.
        """

    def next_id(self, table: str, key_columns: Sequence[str]) -> int:
        """
        Reserve the next auto-increment value for ``table``.
        """


def key_of(row: Mapping[str, Any], key_columns: Sequence[str]) -> Tuple[Any, ...]:
    return tuple(row.get(column) for column in key_columns)
