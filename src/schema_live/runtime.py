"""
Runtime access to built model configurations.

A ``ConfigurationStore`` holds one configuration per connection, written once
at startup and only read afterwards. Models receive a ``ModelSchema`` for
their table, which merges the derived field metadata with the model's own
declarations, and resolve relationship accessors through a
``RelationshipDispatcher``::

    store = ConfigurationStore()
    store.register("default", Builder(catalog, resolver).build())

    schema = ModelSchema.for_connection(store, "default", "users")
    schema.casts({"id": "int"})

    dispatcher = RelationshipDispatcher(schema)
    dispatcher.dispatch(orm_adapter, "posts")
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from schema_live.models import ModelConfiguration, RelationKind, RelationshipEdge
from schema_live.naming import import_model_class

logger = logging.getLogger(__name__)


class ConfigurationNotBuiltError(RuntimeError):
    """A configuration was read for a connection before it was built."""


class ConfigurationAlreadyBuiltError(RuntimeError):
    """A connection already holds a configuration."""


class UnknownRelationshipError(AttributeError):
    """No relationship with this name is configured for the table."""


class UnresolvedModelError(LookupError):
    """The relationship has no resolvable target model class."""


class ConfigurationStore:
    """
    Built configurations keyed by connection name.

    Configurations are frozen on the way in; readers get read-only views.
    """

    def __init__(self) -> None:
        self._configurations: Dict[str, ModelConfiguration] = {}

    def register(self, connection: str, configuration: ModelConfiguration) -> None:
        if connection in self._configurations:
            raise ConfigurationAlreadyBuiltError(
                f"Configuration for connection '{connection}' is already built; use rebuild()"
            )
        self._configurations[connection] = configuration.freeze()
        logger.info(f"Registered configuration for connection: {connection}")

    def rebuild(self, connection: str, configuration: ModelConfiguration) -> None:
        """Replace the configuration of a connection."""
        self._configurations[connection] = configuration.freeze()
        logger.info(f"Replaced configuration for connection: {connection}")

    def get(self, connection: str) -> ModelConfiguration:
        try:
            return self._configurations[connection]
        except KeyError:
            raise ConfigurationNotBuiltError(
                f"No configuration built for connection '{connection}'"
            ) from None

    def __contains__(self, connection: str) -> bool:
        return connection in self._configurations

    @property
    def connections(self) -> List[str]:
        return list(self._configurations)


class ModelSchema:
    """Derived metadata of one table, merged with a model's own declarations."""

    def __init__(self, configuration: ModelConfiguration, table: str):
        self.configuration = configuration
        self.table = table
        self._fields = configuration.field_config(table)

    @classmethod
    def for_connection(cls, store: ConfigurationStore, connection: str, table: str) -> ModelSchema:
        return cls(store.get(connection), table)

    def guarded(self, declared: Iterable[str] = ()) -> List[str]:
        return list(declared) + list(self._fields.guarded)

    def casts(self, declared: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        merged = dict(declared or {})
        merged.update(self._fields.casts)
        return merged

    def attributes(self, declared: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        merged = dict(self._fields.attributes)
        merged.update(declared or {})
        return merged

    def rules(self) -> Dict[str, List[str]]:
        return {column: list(rules) for column, rules in self._fields.rules.items()}

    @property
    def fillable(self) -> List[str]:
        return list(self._fields.fillable)

    @property
    def hidden(self) -> List[str]:
        return list(self._fields.hidden)

    def relationship(self, name: str) -> Optional[RelationshipEdge]:
        return self.configuration.relationship(self.table, name)

    @property
    def relationship_names(self) -> List[str]:
        return list(self.configuration.relationships_for(self.table))


class RelationshipCapable(Protocol):
    """The relationship constructors of the underlying ORM model."""

    def has_one(self, related: type, foreign_key: Any, local_key: Any) -> Any: ...

    def belongs_to(self, related: type, foreign_key: Any, owner_key: Any, relation: str) -> Any: ...

    def has_many(self, related: type, foreign_key: Any, local_key: Any) -> Any: ...

    def belongs_to_many(
        self,
        related: type,
        table: str,
        foreign_pivot_key: Any,
        related_pivot_key: Any,
        parent_key: Any,
        related_key: Any,
        relation: str,
    ) -> Any: ...


class RelationshipStrategy:
    """Invokes one kind of relationship constructor."""

    kind: RelationKind

    def invoke(self, orm: RelationshipCapable, related: type, params: List[Any]) -> Any:
        raise NotImplementedError


class HasOneStrategy(RelationshipStrategy):
    kind = RelationKind.HAS_ONE

    def invoke(self, orm, related, params):
        foreign_key, local_key = params
        return orm.has_one(related, foreign_key, local_key)


class BelongsToStrategy(RelationshipStrategy):
    kind = RelationKind.BELONGS_TO

    def invoke(self, orm, related, params):
        foreign_key, owner_key, relation = params
        return orm.belongs_to(related, foreign_key, owner_key, relation)


class HasManyStrategy(RelationshipStrategy):
    kind = RelationKind.HAS_MANY

    def invoke(self, orm, related, params):
        foreign_key, local_key = params
        return orm.has_many(related, foreign_key, local_key)


class BelongsToManyStrategy(RelationshipStrategy):
    kind = RelationKind.BELONGS_TO_MANY

    def invoke(self, orm, related, params):
        table, foreign_pivot_key, related_pivot_key, parent_key, related_key, relation = params
        return orm.belongs_to_many(
            related,
            table,
            foreign_pivot_key,
            related_pivot_key,
            parent_key,
            related_key,
            relation,
        )


STRATEGIES: Dict[RelationKind, RelationshipStrategy] = {
    strategy.kind: strategy
    for strategy in (HasOneStrategy(), BelongsToStrategy(), HasManyStrategy(), BelongsToManyStrategy())
}


class RelationshipDispatcher:
    """Builds configured relationships of a table by name."""

    def __init__(
        self,
        schema: ModelSchema,
        class_loader: Callable[[str], type] = import_model_class,
    ):
        self.schema = schema
        self.class_loader = class_loader

    def resolve(self, name: str) -> RelationshipEdge:
        edge = self.schema.relationship(name)
        if edge is None:
            raise UnknownRelationshipError(
                f"No relationship '{name}' configured for table '{self.schema.table}'"
            )
        return edge

    def dispatch(self, orm: RelationshipCapable, name: str) -> Any:
        """Call the ORM constructor for the relationship ``name``."""
        edge = self.resolve(name)
        if edge.target_class is None:
            raise UnresolvedModelError(
                f"Relationship '{self.schema.table}.{name}' has no model class"
            )
        related = self.class_loader(edge.target_class)
        return STRATEGIES[edge.kind].invoke(orm, related, list(edge.params))
