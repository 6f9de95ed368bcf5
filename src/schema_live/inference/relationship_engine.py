"""
Relationship Engine - Turns foreign keys into named, bidirectional relationships.

Every foreign key yields up to two edges, one per direction. The kind of each
edge follows from the indexes on both ends:

- source keyed by its primary index, target single, different tables -> hasOne
- source not primary-keyed, target single -> belongsTo
- target many (non-unique or unindexed) -> hasMany

A self-referencing primary-to-single key matches none of these and yields no
edge in that direction.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from schema_live.config import PRIMARY_INDEX_NAME
from schema_live.inference.index_catalog import IndexCatalog
from schema_live.models import (
    Columns,
    ForeignKeyInfo,
    Multiplicity,
    RelationKind,
    RelationshipEdge,
    SchemaCatalog,
    SideDescriptor,
)
from schema_live.naming import ModelResolver, lower_camel, singularize

logger = logging.getLogger(__name__)

Relationships = Dict[str, Dict[str, RelationshipEdge]]


def collapse_columns(columns: Sequence[str]) -> Columns:
    """A single join column is stored as a scalar, several as a list."""
    return columns[0] if len(columns) == 1 else list(columns)


def guess_relation_name(
    source: SideDescriptor,
    target: SideDescriptor,
    kind: RelationKind,
    primary_index_name: str = PRIMARY_INDEX_NAME,
) -> str:
    """
    Name a relationship from ``source`` to ``target``.

    A named, non-primary index on the source columns names the relationship.
    Otherwise the target table does, singular for single-row kinds.
    """
    index = source.index
    if index is not None and not index.is_primary and index.name != primary_index_name:
        return lower_camel(index.name)

    base = target.table
    if kind.is_single:
        base = singularize(base)
    return lower_camel(base)


class RelationshipEngine:
    """
    Infers relationships from foreign keys.

    Edges are kept in ``relationships[table][name]``. The first edge
    registered under a name wins; later edges with the same name are dropped.
    """

    def __init__(
        self,
        index_catalog: IndexCatalog,
        resolver: Optional[ModelResolver] = None,
        primary_index_name: str = PRIMARY_INDEX_NAME,
    ):
        self.index_catalog = index_catalog
        self.resolver = resolver or ModelResolver()
        self.primary_index_name = primary_index_name
        self.relationships: Relationships = {}

    def describe(self, table: str, columns: Sequence[str]) -> SideDescriptor:
        """Build the descriptor of one end of a foreign key."""
        return SideDescriptor(
            table=table,
            model_class=self.resolver.resolve(table),
            index=self.index_catalog.lookup(table, columns),
            columns=collapse_columns(columns),
        )

    def register_foreign_key(self, fk: ForeignKeyInfo) -> List[RelationshipEdge]:
        """Register both directions of a foreign key; return the edges added."""
        local = self.describe(fk.local_table, fk.local_columns)
        foreign = self.describe(fk.foreign_table, fk.foreign_columns)

        added = []
        for source, target in ((local, foreign), (foreign, local)):
            edge = self._register(source, target)
            if edge is not None:
                added.append(edge)
        return added

    def register_all(self, catalog: SchemaCatalog) -> Relationships:
        """Register every foreign key of the catalog, in table order."""
        foreign_keys = catalog.foreign_keys()
        for fk in foreign_keys:
            self.register_foreign_key(fk)

        total = sum(len(edges) for edges in self.relationships.values())
        logger.info(f"Registered {total} relationships from {len(foreign_keys)} foreign keys")
        return self.relationships

    @staticmethod
    def decide_kind(source: SideDescriptor, target: SideDescriptor) -> Optional[RelationKind]:
        """Pick the relationship kind from source to target, if any."""
        target_single = target.multiplicity == Multiplicity.SINGLE

        if source.is_primary and target_single and source.table != target.table:
            return RelationKind.HAS_ONE
        if not source.is_primary and target_single:
            return RelationKind.BELONGS_TO
        if target.multiplicity == Multiplicity.MANY:
            return RelationKind.HAS_MANY
        return None

    @staticmethod
    def build_edge(
        name: str,
        kind: RelationKind,
        source: SideDescriptor,
        target: SideDescriptor,
    ) -> RelationshipEdge:
        if kind == RelationKind.BELONGS_TO:
            params = [source.columns, target.columns, name]
        else:
            params = [target.columns, source.columns]

        return RelationshipEdge(
            name=name,
            kind=kind,
            target_class=target.model_class,
            params=params,
            sides=(source, target),
        )

    def _register(self, source: SideDescriptor, target: SideDescriptor) -> Optional[RelationshipEdge]:
        kind = self.decide_kind(source, target)
        if kind is None:
            logger.debug(f"No relationship from {source.table} to {target.table}")
            return None

        name = guess_relation_name(source, target, kind, self.primary_index_name)
        edges = self.relationships.setdefault(source.table, {})
        if name in edges:
            logger.debug(f"Relationship {source.table}.{name} already registered, skipping")
            return None

        edge = self.build_edge(name, kind, source, target)
        edges[name] = edge
        return edge
