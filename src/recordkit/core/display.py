"""
Human-readable rendering of models and model instances.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Callable, Iterator, List, Tuple, Type

if TYPE_CHECKING:
    from .model import Model


DateTimeFormatter = Callable[[datetime], str]


def _default_datetime_formatter(value: datetime) -> str:
    return value.isoformat(sep=" ")


_datetime_formatter: DateTimeFormatter = _default_datetime_formatter


def get_datetime_formatter() -> DateTimeFormatter:
    return _datetime_formatter


def set_datetime_formatter(formatter: DateTimeFormatter | None) -> None:
    """
    Replace how datetimes are rendered. ``None`` restores the default.
    """
    global _datetime_formatter
    _datetime_formatter = formatter or _default_datetime_formatter


@contextmanager
def datetime_formatter(formatter: DateTimeFormatter) -> Iterator[None]:
    previous = get_datetime_formatter()
    set_datetime_formatter(formatter)
    try:
        yield
    finally:
        set_datetime_formatter(previous)


def format_value(value: Any) -> str:
    if isinstance(value, datetime):
        return repr(_datetime_formatter(value))
    if isinstance(value, date):
        return repr(value.isoformat())
    return repr(value)


def _pretty_value(value: Any) -> str:
    if isinstance(value, datetime):
        return _datetime_formatter(value)
    if isinstance(value, date):
        return value.isoformat()
    return repr(value)


def _initialized(instance: "Model") -> bool:
    return "_field_values" in instance.__dict__


def _visible_items(instance: "Model") -> List[Tuple[str, Any]]:
    names = instance._loaded_columns
    if names is None:
        names = tuple(instance._meta.fields)
    values = instance._field_values
    return [(name, values.get(name)) for name in names]


def describe_instance(instance: "Model") -> str:
    """
    Default ``describe`` rendering: every field in schema order.
    """
    name = instance.__class__.__name__
    if not _initialized(instance):
        return f"<{name} not initialized>"
    parts = ", ".join(f"{field}={format_value(value)}" for field, value in _visible_items(instance))
    return f"<{name} {parts}>"


def describe_model(model: Type["Model"]) -> str:
    meta = getattr(model, "_meta", None)
    if meta is None or meta.model is not model:
        return model.__name__
    if meta.abstract:
        return f"{model.__name__}(abstract)"
    columns = ", ".join(f"{name}: {field.type_name}" for name, field in meta.fields.items())
    return f"{model.__name__}({columns})"


def pretty_format(instance: "Model") -> str:
    """
    Multi-line rendering with one field per line.

    Classes that override ``describe`` or ``__repr__`` are rendered through
    their override unchanged.
    """
    from .model import Model

    cls = type(instance)
    if cls.describe is not Model.describe:
        return instance.describe()
    if cls.__repr__ is not Model.__repr__:
        return repr(instance)

    header = f"<{cls.__name__}:{hex(id(instance))}"
    if not _initialized(instance):
        return f"{header} not initialized>"
    lines = [f" {field}={_pretty_value(value)}" for field, value in _visible_items(instance)]
    if not lines:
        return f"{header}>"
    return header + "\n" + ",\n".join(lines) + ">"
