"""
Many-to-many collapsing.

Two hasMany edges pointing at the same pivot table describe a many-to-many
relationship between their owners. For ``users -> role_user`` and
``roles -> role_user`` the collapser adds ``users.roles`` and ``roles.users``
as belongsToMany edges through ``role_user``.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from schema_live.inference.relationship_engine import Relationships
from schema_live.models import RelationKind, RelationshipEdge
from schema_live.naming import lower_camel

logger = logging.getLogger(__name__)


class ManyToManyCollapser:
    """
    Adds belongsToMany edges for every pair of hasMany edges sharing a target.

    Must run after all foreign keys are registered. Running it again on the
    same relationships adds nothing.
    """

    def __init__(self, relationships: Relationships):
        self.relationships = relationships

    def _has_many_edges(self) -> List[Tuple[str, RelationshipEdge]]:
        return [
            (table, edge)
            for table, edges in self.relationships.items()
            for edge in edges.values()
            if edge.kind == RelationKind.HAS_MANY
        ]

    def collapse(self) -> List[RelationshipEdge]:
        """Add the belongsToMany edges; return those actually added."""
        has_many = self._has_many_edges()
        added = []

        for table, reference in has_many:
            for _, candidate in has_many:
                if candidate is reference or candidate.target_table != reference.target_table:
                    continue
                edge = self._add(table, reference, candidate)
                if edge is not None:
                    added.append(edge)

        logger.info(f"Collapsed {len(added)} many-to-many relationships")
        return added

    def synthesize(self, name: str, reference: RelationshipEdge, candidate: RelationshipEdge) -> RelationshipEdge:
        """
        Build ``owner belongsToMany related`` through the shared pivot.

        ``reference`` is owner -> pivot, ``candidate`` is related -> pivot.
        """
        owner, owner_pivot = reference.source, reference.target
        related, related_pivot = candidate.source, candidate.target

        return RelationshipEdge(
            name=name,
            kind=RelationKind.BELONGS_TO_MANY,
            target_class=related.model_class,
            params=[
                owner_pivot.table,
                owner_pivot.columns,
                related_pivot.columns,
                owner.columns,
                related.columns,
                name,
            ],
            sides=(owner, owner_pivot, related_pivot, related),
        )

    def _add(
        self,
        table: str,
        reference: RelationshipEdge,
        candidate: RelationshipEdge,
    ) -> Optional[RelationshipEdge]:
        # Named after the related table; pivot indexes never name the edge
        base_name = lower_camel(candidate.source.table)
        edges = self.relationships.setdefault(table, {})

        for name in (base_name, f"{base_name}2"):
            edge = self.synthesize(name, reference, candidate)
            existing = edges.get(name)
            if existing is None:
                edges[name] = edge
                return edge
            if existing.same_definition(edge):
                return None

        logger.debug(f"Relationship {table}.{base_name} collides twice, dropping many-to-many edge")
        return None
