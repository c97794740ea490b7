"""
Session coordinating record writes and cached primary-key lookups.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Type, TypeVar

from ..adapters.base import ConnectionConfig, StorageAdapter
from ..cache.statements import CacheKey, LookupPlan
from ..core import identity
from ..core.fields import AutoField
from ..core.model import Model
from ..security.redaction import redact_lookup
from ..utils import get_logger, time_call


TModel = TypeVar("TModel", bound=Model)


class RecordNotFound(LookupError):
    """Raised by :meth:`Session.find` when no row matches the primary key."""

    def __init__(self, model: Type[Model], lookups: Dict[str, Any]) -> None:
        self.model = model
        self.lookups = dict(lookups)
        conditions = ", ".join(f"{name}={value!r}" for name, value in self.lookups.items())
        super().__init__(f"Couldn't find {model.__name__} with {conditions}")


class PrimaryKeyMissingError(ValueError):
    """Raised when saving a record whose primary key cannot be assigned automatically."""


class Session:
    """
    Writes model instances to a storage adapter and reads them back.

    Every lookup returns a new instance; identity between loaded instances
    comes from primary-key equality, not from object reuse.
    """

    def __init__(
        self,
        adapter: StorageAdapter,
        *,
        connection_config: Optional[ConnectionConfig] = None,
    ) -> None:
        self.adapter = adapter
        self.connection_config = connection_config or ConnectionConfig()
        self.slow_query_ms: int = self.connection_config.option("slow_query_ms", 200)
        from ..hooks import hooks

        self.hooks = hooks
        self.logger = get_logger("persistence.session")
        self.adapter.connect(self.connection_config)

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.adapter.close()

    @property
    def prepared_statements(self) -> bool:
        return self.adapter.prepared_statements

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def save(self, instance: TModel) -> TModel:
        created = instance.new_record
        self.hooks.fire("before_save", instance, session=self, created=created)
        meta = instance._meta
        key_columns = tuple(field.column_name() for field in meta.primary_key_fields)

        if created:
            assigned = self._assign_key(instance, key_columns)
            try:
                with time_call("session.insert", self.logger, threshold_ms=self.slow_query_ms):
                    self.adapter.insert(meta.table, self._row_for(instance), key_columns)
            except Exception:
                if assigned is not None:
                    setattr(instance, assigned, None)
                raise
            identity.mark_persisted(instance)
        else:
            with time_call("session.update", self.logger, threshold_ms=self.slow_query_ms):
                self.adapter.update(meta.table, self._row_for(instance), key_columns)

        self.hooks.fire("after_save", instance, session=self, created=created)
        return instance

    def save_all(self, instances: Iterable[Model]) -> None:
        for instance in instances:
            self.save(instance)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def find(self, model: Type[TModel], *pk_values: Any) -> TModel:
        names = model._meta.primary_key_names
        if len(pk_values) == 1 and len(names) > 1 and isinstance(pk_values[0], tuple):
            pk_values = pk_values[0]
        if len(pk_values) != len(names):
            raise ValueError(
                f"{model.__name__} is keyed by {list(names)}; got {len(pk_values)} value(s)"
            )
        lookups = dict(zip(names, pk_values))
        instance = self.find_by(model, **lookups)
        if instance is None:
            raise RecordNotFound(model, lookups)
        return instance

    def find_by(self, model: Type[TModel], **lookups: Any) -> Optional[TModel]:
        if not lookups:
            raise ValueError("find_by() requires at least one lookup value.")
        plan = self.lookup_plan(model, lookups)
        with time_call(
            f"session.find_by {model.__name__}",
            self.logger,
            params=redact_lookup(lookups),
            threshold_ms=self.slow_query_ms,
        ):
            row = plan.execute(self.adapter, lookups)
        if row is None:
            return None
        instance = model.instantiate(row)
        self.hooks.fire("after_find", instance, session=self)
        return instance

    def lookup_plan(self, model: Type[Model], columns: Iterable[str]) -> LookupPlan:
        """
        Return the cached plan for looking ``model`` up by ``columns``.
        """
        key = CacheKey.for_lookup(model, columns, self.prepared_statements)
        return model._meta.statement_cache.get_or_create(
            key,
            lambda: LookupPlan.compile(model, key.columns, prepared=key.prepared_statements),
        )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _assign_key(self, instance: Model, key_columns: tuple[str, ...]) -> Optional[str]:
        if identity.key_present(instance):
            return None
        meta = instance._meta
        pk_field = meta.primary_key
        if isinstance(pk_field, AutoField):
            name = pk_field.require_name()
            setattr(instance, name, self.adapter.next_id(meta.table, key_columns))
            return name
        missing = [
            name for name, value in zip(meta.primary_key_names, identity.key_values(instance)) if value is None
        ]
        raise PrimaryKeyMissingError(
            f"Cannot save {instance.__class__.__name__} without primary key values for {missing}"
        )

    @staticmethod
    def _row_for(instance: Model) -> Dict[str, Any]:
        values = instance._field_values
        return {
            field.column_name(): values.get(field.require_name())
            for field in instance._meta.get_fields()
        }
