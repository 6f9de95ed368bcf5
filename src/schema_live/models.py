"""
Core data models for the schema_live package.

Defines the schema catalog read from a database, the intermediate structures
used while inferring relationships, and the model configuration produced by
a build.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import yaml

Columns = Union[str, List[str]]


class ColumnType(str, Enum):
    """Normalized column types across database dialects."""
    STRING = "string"       # Bounded text (VARCHAR, CHAR, ENUM)
    TEXT = "text"           # Unbounded text
    INTEGER = "integer"
    BIGINT = "bigint"
    DECIMAL = "decimal"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    TIME = "time"
    JSON = "json"
    BINARY = "binary"
    UNKNOWN = "unknown"

    @property
    def is_temporal(self) -> bool:
        return self in (ColumnType.DATE, ColumnType.DATETIME, ColumnType.TIMESTAMP)


class Multiplicity(str, Enum):
    """How many rows may match a set of columns."""
    SINGLE = "1"
    MANY = "n"


class RelationKind(str, Enum):
    """Relationship constructors understood by the runtime model layer."""
    HAS_ONE = "hasOne"
    BELONGS_TO = "belongsTo"
    HAS_MANY = "hasMany"
    BELONGS_TO_MANY = "belongsToMany"

    @property
    def is_single(self) -> bool:
        return self in (RelationKind.HAS_ONE, RelationKind.BELONGS_TO)


@dataclass
class ColumnInfo:
    """A column as reported by schema introspection."""
    name: str
    type: ColumnType = ColumnType.UNKNOWN
    nullable: bool = True
    default: Optional[Any] = None
    autoincrement: bool = False
    length: Optional[int] = None  # Only meaningful for textual types
    comment: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "nullable": self.nullable,
            "default": self.default,
            "autoincrement": self.autoincrement,
            "length": self.length,
            "comment": self.comment,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ColumnInfo:
        return cls(
            name=data["name"],
            type=ColumnType(data.get("type", "unknown")),
            nullable=data.get("nullable", True),
            default=data.get("default"),
            autoincrement=data.get("autoincrement", False),
            length=data.get("length"),
            comment=data.get("comment"),
        )


@dataclass
class IndexInfo:
    """An index or key constraint as reported by schema introspection."""
    name: str
    columns: List[str]
    is_unique: bool = False
    is_primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "columns": list(self.columns),
            "is_unique": self.is_unique,
            "is_primary": self.is_primary,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> IndexInfo:
        return cls(
            name=data["name"],
            columns=list(data["columns"]),
            is_unique=data.get("is_unique", False),
            is_primary=data.get("is_primary", False),
        )


@dataclass
class ForeignKeyInfo:
    """A foreign key constraint, directional as declared in the schema."""
    local_table: str
    local_columns: List[str]
    foreign_table: str
    foreign_columns: List[str]
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "local_table": self.local_table,
            "local_columns": list(self.local_columns),
            "foreign_table": self.foreign_table,
            "foreign_columns": list(self.foreign_columns),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], local_table: Optional[str] = None) -> ForeignKeyInfo:
        return cls(
            local_table=data.get("local_table") or local_table,
            local_columns=list(data["local_columns"]),
            foreign_table=data["foreign_table"],
            foreign_columns=list(data["foreign_columns"]),
            name=data.get("name"),
        )


@dataclass
class TableSchema:
    """Columns, indexes and foreign keys of a single table."""
    name: str
    columns: List[ColumnInfo] = field(default_factory=list)
    indexes: List[IndexInfo] = field(default_factory=list)
    foreign_keys: List[ForeignKeyInfo] = field(default_factory=list)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def get_column(self, name: str) -> Optional[ColumnInfo]:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "columns": [c.to_dict() for c in self.columns],
            "indexes": [i.to_dict() for i in self.indexes],
            "foreign_keys": [fk.to_dict() for fk in self.foreign_keys],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TableSchema:
        name = data["name"]
        return cls(
            name=name,
            columns=[ColumnInfo.from_dict(c) for c in data.get("columns", [])],
            indexes=[IndexInfo.from_dict(i) for i in data.get("indexes", [])],
            foreign_keys=[
                ForeignKeyInfo.from_dict(fk, local_table=name)
                for fk in data.get("foreign_keys", [])
            ],
        )


@dataclass
class SchemaCatalog:
    """
    In-memory snapshot of a database schema.

    Table order is preserved; builds are deterministic for a fixed order.
    """
    tables: List[TableSchema] = field(default_factory=list)
    connection: Optional[str] = None

    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def add_table(self, table: TableSchema) -> None:
        self.tables.append(table)

    def get_table(self, name: str) -> Optional[TableSchema]:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def foreign_keys(self) -> List[ForeignKeyInfo]:
        """All foreign keys, in table order."""
        return [fk for table in self.tables for fk in table.foreign_keys]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connection": self.connection,
            "tables": [t.to_dict() for t in self.tables],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SchemaCatalog:
        return cls(
            tables=[TableSchema.from_dict(t) for t in data.get("tables", [])],
            connection=data.get("connection"),
        )

    @classmethod
    def load(cls, path: Path) -> SchemaCatalog:
        """Load a catalog snapshot from a YAML or JSON file."""
        path = Path(path)
        with open(path, "r") as f:
            if path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f) or {}
        return cls.from_dict(data)


@dataclass(frozen=True)
class Index:
    """An entry of the index catalog, keyed by table and sorted columns."""
    table: str
    columns: Tuple[str, ...]
    name: str
    is_unique: bool = False
    is_primary: bool = False

    @property
    def multiplicity(self) -> Multiplicity:
        if self.is_unique or self.is_primary:
            return Multiplicity.SINGLE
        return Multiplicity.MANY


@dataclass
class SideDescriptor:
    """One end of a relationship: a table, its model, its index and join columns."""
    table: str
    model_class: Optional[str]
    index: Optional[Index]
    columns: Columns

    @property
    def is_primary(self) -> bool:
        return self.index.is_primary if self.index else False

    @property
    def multiplicity(self) -> Multiplicity:
        # No index means nothing prevents duplicates
        return self.index.multiplicity if self.index else Multiplicity.MANY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "class": self.model_class,
            "index": self.index.name if self.index else None,
            "columns": self.columns,
        }


@dataclass
class RelationshipEdge:
    """
    A named relationship from a source table to a target model.

    ``params`` holds the positional arguments of the relationship constructor
    after the target class:

    - hasOne / hasMany: ``[foreign_key, local_key]``
    - belongsTo: ``[foreign_key, owner_key, relation]``
    - belongsToMany: ``[pivot_table, foreign_pivot_key, related_pivot_key,
      parent_key, related_key, relation]``

    ``sides`` keeps the descriptors the edge was derived from (source first,
    target last) and is not part of the exported configuration.
    """
    name: str
    kind: RelationKind
    target_class: Optional[str]
    params: List[Any] = field(default_factory=list)
    sides: Tuple[SideDescriptor, ...] = ()

    @property
    def source(self) -> Optional[SideDescriptor]:
        return self.sides[0] if self.sides else None

    @property
    def target(self) -> Optional[SideDescriptor]:
        return self.sides[-1] if self.sides else None

    @property
    def target_table(self) -> Optional[str]:
        return self.target.table if self.target else None

    def same_definition(self, other: RelationshipEdge) -> bool:
        """True when both edges would build the same relationship."""
        return (
            self.kind == other.kind
            and self.target_class == other.target_class
            and self.params == other.params
        )

    def freeze(self) -> RelationshipEdge:
        """Copy with params (and composite key lists) as tuples."""
        params = tuple(tuple(p) if isinstance(p, list) else p for p in self.params)
        return replace(self, params=params)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "targetClass": self.target_class,
            "params": list(self.params),
        }

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> RelationshipEdge:
        return cls(
            name=name,
            kind=RelationKind(data["kind"]),
            target_class=data.get("targetClass"),
            params=list(data.get("params", [])),
        )


@dataclass
class TableFieldConfig:
    """Field metadata derived for a single table."""
    attributes: Dict[str, Any] = field(default_factory=dict)
    fillable: List[str] = field(default_factory=list)
    guarded: List[str] = field(default_factory=list)
    hidden: List[str] = field(default_factory=list)
    casts: Dict[str, str] = field(default_factory=dict)
    rules: Dict[str, List[str]] = field(default_factory=dict)

    def add_rule(self, column: str, rule: str) -> None:
        self.rules.setdefault(column, []).append(rule)

    def freeze(self) -> TableFieldConfig:
        return TableFieldConfig(
            attributes=MappingProxyType(dict(self.attributes)),
            fillable=tuple(self.fillable),
            guarded=tuple(self.guarded),
            hidden=tuple(self.hidden),
            casts=MappingProxyType(dict(self.casts)),
            rules=MappingProxyType({k: tuple(v) for k, v in self.rules.items()}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attributes": dict(self.attributes),
            "fillable": list(self.fillable),
            "guarded": list(self.guarded),
            "hidden": list(self.hidden),
            "casts": dict(self.casts),
            "rules": {k: list(v) for k, v in self.rules.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TableFieldConfig:
        return cls(
            attributes=dict(data.get("attributes", {})),
            fillable=list(data.get("fillable", [])),
            guarded=list(data.get("guarded", [])),
            hidden=list(data.get("hidden", [])),
            casts=dict(data.get("casts", {})),
            rules={k: list(v) for k, v in data.get("rules", {}).items()},
        )


@dataclass
class ModelConfiguration:
    """
    Output of a build: field metadata and relationships, keyed by table.

    Once handed to the runtime layer this object is only read.
    """
    fields: Dict[str, TableFieldConfig] = field(default_factory=dict)
    relationships: Dict[str, Dict[str, RelationshipEdge]] = field(default_factory=dict)

    def field_config(self, table: str) -> TableFieldConfig:
        """Field metadata for a table, empty when the table is unknown."""
        return self.fields.get(table) or TableFieldConfig()

    def relationship(self, table: str, name: str) -> Optional[RelationshipEdge]:
        return self.relationships.get(table, {}).get(name)

    def relationships_for(self, table: str) -> Dict[str, RelationshipEdge]:
        return dict(self.relationships.get(table, {}))

    def edges(self) -> Sequence[Tuple[str, RelationshipEdge]]:
        """All (table, edge) pairs in registration order."""
        return [
            (table, edge)
            for table, edges in self.relationships.items()
            for edge in edges.values()
        ]

    def freeze(self) -> ModelConfiguration:
        """
        Read-only copy for sharing between model instances.

        Mappings become ``MappingProxyType`` views and lists become tuples, so
        in-place changes raise instead of leaking into other readers.
        """
        return ModelConfiguration(
            fields=MappingProxyType({table: f.freeze() for table, f in self.fields.items()}),
            relationships=MappingProxyType({
                table: MappingProxyType({name: edge.freeze() for name, edge in edges.items()})
                for table, edges in self.relationships.items()
            }),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fields": {table: f.to_dict() for table, f in self.fields.items()},
            "relationships": {
                table: {name: edge.to_dict() for name, edge in edges.items()}
                for table, edges in self.relationships.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ModelConfiguration:
        return cls(
            fields={
                table: TableFieldConfig.from_dict(f)
                for table, f in data.get("fields", {}).items()
            },
            relationships={
                table: {
                    name: RelationshipEdge.from_dict(name, edge)
                    for name, edge in edges.items()
                }
                for table, edges in data.get("relationships", {}).items()
            },
        )
