"""
Schema Live - Model configuration derived from database schemas

Inspects tables, indexes, foreign keys and column comments and derives the
configuration an ORM model layer needs at runtime:

- Field metadata: defaults, fillable/guarded/hidden columns, casts, validation rules
- Relationships: hasOne, belongsTo, hasMany, and belongsToMany through
  inferred pivot tables
"""

__version__ = "0.1.0"

from schema_live.models import (
    ColumnInfo,
    ColumnType,
    ForeignKeyInfo,
    IndexInfo,
    ModelConfiguration,
    RelationKind,
    RelationshipEdge,
    SchemaCatalog,
    TableFieldConfig,
    TableSchema,
)
from schema_live.config import Settings, load_settings
from schema_live.naming import ModelResolver
from schema_live.builder import Builder, build_configurations
from schema_live.runtime import (
    ConfigurationNotBuiltError,
    ConfigurationStore,
    ModelSchema,
    RelationshipDispatcher,
)

__all__ = [
    # Catalog
    "ColumnInfo",
    "ColumnType",
    "ForeignKeyInfo",
    "IndexInfo",
    "SchemaCatalog",
    "TableSchema",
    # Output
    "ModelConfiguration",
    "RelationKind",
    "RelationshipEdge",
    "TableFieldConfig",
    # Building
    "Settings",
    "load_settings",
    "ModelResolver",
    "Builder",
    "build_configurations",
    # Runtime
    "ConfigurationNotBuiltError",
    "ConfigurationStore",
    "ModelSchema",
    "RelationshipDispatcher",
]
