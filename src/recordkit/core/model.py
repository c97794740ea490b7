"""
Model base classes and metadata orchestration for recordkit.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Type, TypeVar

from ..cache.statements import StatementCache
from ..utils import camel_to_snake
from ..utils.naming import qualified_table
from . import identity
from .fields import AutoField, Field


class ModelConfigurationError(Exception):
    """Raised when a model class is misconfigured."""


@dataclass
class ModelOptions:
    """
    Container for model metadata calculated by :class:`ModelMeta`.
    """

    model: Type["Model"]
    table_name: str = ""
    schema: Optional[str] = None
    abstract: bool = False
    fields: "OrderedDict[str, Field]" = field(default_factory=OrderedDict)
    primary_key_names: Tuple[str, ...] = ()
    statement_cache: StatementCache = field(default_factory=StatementCache)

    def add_field(self, field_obj: Field) -> None:
        if field_obj.name in self.fields:
            raise ModelConfigurationError(
                f"Duplicate field name '{field_obj.name}' on model '{self.model.__name__}'"
            )
        self.fields[field_obj.require_name()] = field_obj

    @property
    def table(self) -> str:
        return qualified_table(self.table_name, self.schema)

    @property
    def composite_key(self) -> bool:
        return len(self.primary_key_names) > 1

    @property
    def primary_key(self) -> Optional[Field]:
        """The primary-key field of a single-column key, ``None`` for composite keys."""
        if len(self.primary_key_names) != 1:
            return None
        return self.fields[self.primary_key_names[0]]

    @property
    def primary_key_fields(self) -> Tuple[Field, ...]:
        return tuple(self.fields[name] for name in self.primary_key_names)

    @property
    def default_key_field(self) -> Optional[Field]:
        pk_field = self.primary_key
        if pk_field is not None and pk_field.has_db_default:
            return pk_field
        return None

    @property
    def column_map(self) -> Dict[str, Field]:
        return {field_obj.column_name(): field_obj for field_obj in self.fields.values()}

    def get_field(self, name: str) -> Field:
        try:
            return self.fields[name]
        except KeyError as exc:
            raise KeyError(f"Unknown field '{name}' on model '{self.model.__name__}'") from exc

    def get_fields(self) -> Iterable[Field]:
        return self.fields.values()


TModel = TypeVar("TModel", bound="Model")


class ModelMeta(type):
    """
    Metaclass responsible for collecting fields and establishing metadata.
    """

    def __new__(mcls, name: str, bases: tuple[type, ...], attrs: Dict[str, Any]) -> "ModelMeta":
        # The base Model class carries no metadata of its own.
        if not any(isinstance(base, ModelMeta) for base in bases):
            return super().__new__(mcls, name, bases, attrs)

        declared_fields: Dict[str, Field] = {}
        for attr_name, value in list(attrs.items()):
            if isinstance(value, Field):
                declared_fields[attr_name] = attrs.pop(attr_name)

        cls = super().__new__(mcls, name, bases, attrs)

        # Only the class's own Meta counts; abstract flags are not inherited.
        meta = attrs.get("Meta")
        table_name = camel_to_snake(name)
        schema = None
        abstract = False
        declared_key: Optional[Tuple[str, ...]] = None

        if meta:
            table_name = getattr(meta, "table", table_name)
            schema = getattr(meta, "schema", None)
            abstract = getattr(meta, "abstract", False)
            declared_key = mcls._normalize_key(getattr(meta, "primary_key", None))

        options = ModelOptions(model=cls, table_name=table_name, schema=schema, abstract=abstract)
        options.statement_cache = StatementCache(cls)
        cls._meta = options

        inherited_key: Tuple[str, ...] = ()
        for base in reversed(cls.__mro__[1:]):
            base_meta = getattr(base, "_meta", None)
            if base_meta is None or base_meta.model is not base:
                continue
            for inherited in base_meta.get_fields():
                if inherited.name not in declared_fields and inherited.name not in options.fields:
                    options.fields[inherited.require_name()] = inherited
            if base_meta.primary_key_names:
                inherited_key = base_meta.primary_key_names

        sorted_fields = sorted(declared_fields.items(), key=lambda item: item[1].creation_counter)
        for attr_name, field_obj in sorted_fields:
            field_obj.contribute_to_class(cls, attr_name)
            options.fields.pop(attr_name, None)
            options.add_field(field_obj)

        options.primary_key_names = mcls._resolve_primary_key(
            cls, declared_fields, declared_key, inherited_key
        )

        if not options.primary_key_names and not options.abstract:
            if "id" in options.fields:
                raise ModelConfigurationError(
                    f"Model '{cls.__name__}' defines a field named 'id' but no primary key. "
                    "Either set primary_key=True on that field or define a different name."
                )
            auto_field = AutoField()
            auto_field.contribute_to_class(cls, "id")
            options.fields = OrderedDict([("id", auto_field), *options.fields.items()])
            options.primary_key_names = ("id",)

        if options.composite_key and any(f.has_db_default for f in options.primary_key_fields):
            raise ModelConfigurationError(
                f"Model '{cls.__name__}' declares db_default on a composite primary key column."
            )

        return cls

    @staticmethod
    def _normalize_key(value: Any) -> Optional[Tuple[str, ...]]:
        if value is None:
            return None
        if isinstance(value, str):
            return (value,)
        return tuple(value)

    @staticmethod
    def _resolve_primary_key(
        cls: Type["Model"],
        declared_fields: Mapping[str, Field],
        declared_key: Optional[Tuple[str, ...]],
        inherited_key: Tuple[str, ...],
    ) -> Tuple[str, ...]:
        options = cls._meta
        flagged = tuple(name for name, f in declared_fields.items() if f.primary_key)

        if declared_key is not None:
            if not declared_key:
                raise ModelConfigurationError(f"Model '{cls.__name__}' declares an empty primary key.")
            unknown = [name for name in declared_key if name not in options.fields]
            if unknown:
                raise ModelConfigurationError(
                    f"Primary key of model '{cls.__name__}' references unknown fields {unknown}"
                )
            if flagged and set(flagged) != set(declared_key):
                raise ModelConfigurationError(
                    f"Model '{cls.__name__}' marks {list(flagged)} as primary key but Meta declares "
                    f"{list(declared_key)}"
                )
            for name in declared_key:
                options.fields[name].primary_key = True
            return declared_key

        if len(flagged) > 1:
            raise ModelConfigurationError(
                f"Multiple primary keys defined on model '{cls.__name__}'; "
                "use Meta.primary_key for a composite key."
            )
        if flagged:
            return flagged
        return inherited_key


class Model(metaclass=ModelMeta):
    """
    Base model providing data container functionality and record identity.
    Persistence operations are supplied by the persistence layer.
    """

    _meta: ModelOptions

    def __init__(self, **kwargs: Any) -> None:
        if self._meta.abstract:
            raise ModelConfigurationError(
                f"Cannot instantiate abstract model '{self.__class__.__name__}'"
            )
        self._init_state()

        unknown = sorted(set(kwargs) - set(self._meta.fields))
        if unknown:
            raise TypeError(f"Unknown field(s) {unknown} for model '{self.__class__.__name__}'")

        default_key_field = self._meta.default_key_field
        for field_obj in self._meta.get_fields():
            name = field_obj.require_name()
            if name in kwargs:
                setattr(self, name, kwargs[name])
            elif field_obj is default_key_field:
                setattr(self, name, identity.resolve_default_key(type(self)))
            elif field_obj.has_default:
                setattr(self, name, field_obj.get_default())

    def _init_state(self) -> None:
        self._field_values: Dict[str, Any] = {}
        self._loaded_columns: Optional[Tuple[str, ...]] = None
        self._persisted = False
        self._instance_token = identity.new_instance_token()

    @classmethod
    def instantiate(cls: Type[TModel], row: Mapping[str, Any]) -> TModel:
        """
        Build a persisted instance from a storage row keyed by column name.
        """
        instance = cls.__new__(cls)
        instance._init_state()
        column_map = cls._meta.column_map
        loaded = []
        for column, value in row.items():
            field_obj = column_map.get(column)
            if field_obj is None:
                continue
            setattr(instance, field_obj.require_name(), value)
            loaded.append(field_obj.require_name())
        if len(loaded) < len(cls._meta.fields):
            instance._loaded_columns = tuple(loaded)
        identity.mark_persisted(instance)
        return instance

    # Identity ------------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Model):
            return NotImplemented
        return identity.equal(self, other)

    def __hash__(self) -> int:
        return identity.hash_code(self)

    @property
    def persisted(self) -> bool:
        return identity.is_persisted(self)

    @property
    def new_record(self) -> bool:
        return not identity.is_persisted(self)

    @property
    def pk(self) -> Any:
        values = identity.key_values(self)
        if self._meta.composite_key:
            return values
        return values[0]

    # Display -------------------------------------------------------------
    def describe(self) -> str:
        from .display import describe_instance

        return describe_instance(self)

    def __repr__(self) -> str:
        return self.describe()

    # Data helpers --------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self._meta.fields}

    # Class-level helpers -------------------------------------------------
    @classmethod
    def initialize_find_by_cache(cls) -> StatementCache:
        """
        Replace the lookup plan cache, dropping every cached plan.
        """
        cls._meta.statement_cache = StatementCache(cls)
        return cls._meta.statement_cache

    @classmethod
    def register_hook(cls, event: str, handler) -> None:
        from ..hooks import hooks

        hooks.register(event, handler, model=cls)
