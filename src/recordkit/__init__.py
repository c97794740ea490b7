"""
recordkit public package initialization.

Record identity, display and cached primary-key lookups for mapped models.
"""

from .adapters import ConnectionConfig, MemoryAdapter  # noqa: F401
from .cache import CacheKey, LookupPlan, StatementCache  # noqa: F401
from .core.display import describe_model, pretty_format  # noqa: F401
from .core.fields import (
    AutoField,
    BooleanField,
    DateTimeField,
    FloatField,
    IntegerField,
    StringField,
)  # noqa: F401
from .core.identity import IncomparableTypeError, equal, hash_code, key_present, resolve_default_key  # noqa: F401
from .core.model import Model, ModelConfigurationError  # noqa: F401
from .hooks import hooks  # noqa: F401
from .persistence import PrimaryKeyMissingError, RecordNotFound, Session  # noqa: F401

__all__ = [
    "Model",
    "AutoField",
    "BooleanField",
    "DateTimeField",
    "FloatField",
    "IntegerField",
    "StringField",
    "ModelConfigurationError",
    "IncomparableTypeError",
    "equal",
    "hash_code",
    "key_present",
    "resolve_default_key",
    "describe_model",
    "pretty_format",
    "CacheKey",
    "LookupPlan",
    "StatementCache",
    "ConnectionConfig",
    "MemoryAdapter",
    "Session",
    "RecordNotFound",
    "PrimaryKeyMissingError",
    "hooks",
]
