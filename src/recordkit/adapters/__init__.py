"""
Storage adapter interfaces and implementations.
"""

from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterError,
    AdapterExecutionError,
    ConnectionConfig,
    StorageAdapter,
)
from .memory import MemoryAdapter, drop_database

__all__ = [
    "ConnectionConfig",
    "StorageAdapter",
    "AdapterError",
    "AdapterConfigurationError",
    "AdapterConnectionError",
    "AdapterExecutionError",
    "MemoryAdapter",
    "drop_database",
]
