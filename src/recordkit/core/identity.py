"""
Identity rules for model instances.

Two instances are the same record when they share a concrete model class,
both have been persisted, and every primary-key column holds an equal,
non-null value. Instances that have not been persisted only ever equal
themselves, even when a default primary key makes their key values match.
"""

from __future__ import annotations

import uuid
import weakref
from threading import RLock
from typing import TYPE_CHECKING, Any, Tuple, Type

from ..utils import get_logger

if TYPE_CHECKING:
    from .model import Model


logger = get_logger("core.identity")


class IncomparableTypeError(TypeError):
    """Raised when identity is requested for something that is not a model instance."""


def new_instance_token() -> int:
    """
    Return a token unique to one in-memory instance. Tokens are never stored.
    """
    return uuid.uuid4().int


def _require_entity(value: Any) -> "Model":
    from .model import Model

    if not isinstance(value, Model):
        raise IncomparableTypeError(
            f"Cannot compare record identity of {type(value).__name__!r}; expected a Model instance"
        )
    return value


def key_values(entity: "Model") -> Tuple[Any, ...]:
    """
    Primary-key values of ``entity`` in declared column order.
    """
    entity = _require_entity(entity)
    values = getattr(entity, "_field_values", {})
    return tuple(values.get(name) for name in entity._meta.primary_key_names)


def is_persisted(entity: "Model") -> bool:
    """Instances created without ``__init__`` count as unsaved."""
    return getattr(_require_entity(entity), "_persisted", False)


def key_present(entity: "Model") -> bool:
    return all(value is not None for value in key_values(entity))


def has_durable_identity(entity: "Model") -> bool:
    entity = _require_entity(entity)
    return is_persisted(entity) and key_present(entity)


def equal(a: Any, b: Any) -> bool:
    a = _require_entity(a)
    b = _require_entity(b)
    if a is b:
        return True
    if type(a) is not type(b):
        return False
    if not (has_durable_identity(a) and has_durable_identity(b)):
        return False
    return key_values(a) == key_values(b)


def hash_code(entity: "Model") -> int:
    entity = _require_entity(entity)
    if has_durable_identity(entity):
        return hash((type(entity), key_values(entity)))
    token = getattr(entity, "_instance_token", None)
    if token is None:
        token = id(entity)
    return hash((type(entity), token))


def mark_persisted(entity: "Model") -> None:
    """
    Record that ``entity`` was durably written or read back from storage.
    """
    entity = _require_entity(entity)
    if is_persisted(entity):
        return
    entity._persisted = True
    logger.debug(
        "Marked %s persisted with key %r",
        type(entity).__name__,
        key_values(entity),
    )


_NO_DEFAULT = object()


class DefaultKeyRegistry:
    """
    Resolves and caches the default primary key of each model class.

    The default comes from ``db_default`` on a single-column primary key. It is
    computed once per class and shared by every unsaved instance of it.
    """

    def __init__(self) -> None:
        self._values: weakref.WeakKeyDictionary[Type["Model"], Any] = weakref.WeakKeyDictionary()
        self._lock = RLock()

    def resolve(self, model: Type["Model"]) -> Any:
        with self._lock:
            value = self._values.get(model, _NO_DEFAULT)
            if value is _NO_DEFAULT:
                value = self._compute(model)
                self._values[model] = value
        return value

    def reset(self, model: Type["Model"] | None = None) -> None:
        with self._lock:
            if model is None:
                self._values.clear()
            else:
                self._values.pop(model, None)

    def __contains__(self, model: Type["Model"]) -> bool:
        with self._lock:
            return model in self._values

    @staticmethod
    def _compute(model: Type["Model"]) -> Any:
        field = model._meta.default_key_field
        if field is None:
            return None
        default = field.db_default
        value = default() if callable(default) else default
        value = field.to_python(value)
        logger.debug("Resolved default primary key for %s: %r", model.__name__, value)
        return value


default_keys = DefaultKeyRegistry()


def resolve_default_key(model: Type["Model"]) -> Any:
    return default_keys.resolve(model)
