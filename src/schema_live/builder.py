"""
Builder - reads a schema catalog and assembles the model configuration.

Usage:
    from schema_live import Builder, ModelResolver

    catalog = SqlAlchemyCatalogReader(url="sqlite:///app.db").read()
    configuration = Builder(catalog, ModelResolver("myapp.models")).build()

    configuration.relationship("users", "posts")
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

from schema_live.config import PRIMARY_INDEX_NAME, Settings
from schema_live.fields import ColumnRuleDeriver
from schema_live.inference import IndexCatalog, ManyToManyCollapser, RelationshipEngine
from schema_live.models import ModelConfiguration, SchemaCatalog
from schema_live.naming import ModelResolver

logger = logging.getLogger(__name__)


class Builder:
    """
    Derives field metadata and relationships from one schema catalog.

    Each call to ``build`` starts from scratch, so building twice from the
    same catalog gives equal configurations.
    """

    def __init__(
        self,
        catalog: SchemaCatalog,
        resolver: Optional[ModelResolver] = None,
        primary_index_name: str = PRIMARY_INDEX_NAME,
    ):
        self.catalog = catalog
        self.resolver = resolver or ModelResolver()
        self.primary_index_name = primary_index_name
        self.deriver = ColumnRuleDeriver()

    @classmethod
    def from_settings(cls, catalog: SchemaCatalog, settings: Settings) -> Builder:
        return cls(
            catalog,
            resolver=ModelResolver(settings.model_namespace),
            primary_index_name=settings.primary_index_name,
        )

    def build(self) -> ModelConfiguration:
        logger.info(f"Building model configuration for {len(self.catalog.tables)} tables")

        index_catalog = IndexCatalog.from_catalog(self.catalog)
        engine = RelationshipEngine(index_catalog, self.resolver, self.primary_index_name)
        relationships = engine.register_all(self.catalog)

        fields = {table.name: self.deriver.derive(table) for table in self.catalog.tables}

        # Needs the complete set of hasMany edges
        ManyToManyCollapser(relationships).collapse()

        return ModelConfiguration(fields=fields, relationships=relationships)


def build_configurations(
    catalogs: Mapping[str, SchemaCatalog],
    settings: Optional[Settings] = None,
) -> Dict[str, ModelConfiguration]:
    """Build one independent configuration per connection."""
    settings = settings or Settings()
    configurations = {}
    for connection, catalog in catalogs.items():
        logger.info(f"Building configuration for connection: {connection}")
        configurations[connection] = Builder.from_settings(catalog, settings).build()
    return configurations
