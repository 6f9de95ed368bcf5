"""
Relationship inference from schema shape.

Indexes are read into an ``IndexCatalog``; each foreign key is resolved
against it by the ``RelationshipEngine`` into a pair of relationship edges;
the ``ManyToManyCollapser`` then folds pairs of hasMany edges sharing a pivot
table into belongsToMany edges.
"""

from schema_live.inference.index_catalog import IndexCatalog
from schema_live.inference.relationship_engine import (
    RelationshipEngine,
    guess_relation_name,
)
from schema_live.inference.many_to_many import ManyToManyCollapser

__all__ = [
    "IndexCatalog",
    "RelationshipEngine",
    "guess_relation_name",
    "ManyToManyCollapser",
]
