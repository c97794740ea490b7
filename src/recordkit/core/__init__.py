"""
Core building blocks for recordkit models, identity and display.
"""

from .display import describe_model, pretty_format
from .fields import (
    AutoField,
    BooleanField,
    DateTimeField,
    Field,
    FloatField,
    IntegerField,
    StringField,
)
from .identity import (
    DefaultKeyRegistry,
    IncomparableTypeError,
    default_keys,
    equal,
    hash_code,
    is_persisted,
    key_present,
    key_values,
    mark_persisted,
    resolve_default_key,
)
from .model import Model, ModelConfigurationError, ModelMeta, ModelOptions

__all__ = [
    "AutoField",
    "BooleanField",
    "DateTimeField",
    "DefaultKeyRegistry",
    "Field",
    "FloatField",
    "IncomparableTypeError",
    "IntegerField",
    "Model",
    "ModelConfigurationError",
    "ModelMeta",
    "ModelOptions",
    "StringField",
    "default_keys",
    "describe_model",
    "equal",
    "hash_code",
    "is_persisted",
    "key_present",
    "key_values",
    "mark_persisted",
    "pretty_format",
    "resolve_default_key",
]
