"""
Schema introspection for live databases.

Provides a reader that turns SQLAlchemy reflection results into a
``SchemaCatalog`` the builder can consume.
"""

from schema_live.metadata.sqlalchemy_reader import (
    SqlAlchemyCatalogReader,
    map_column_type,
    normalize_default,
)

__all__ = [
    "SqlAlchemyCatalogReader",
    "map_column_type",
    "normalize_default",
]
