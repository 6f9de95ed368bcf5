"""
Index catalog: every index of the schema keyed by table and column set.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, Optional, Tuple

from schema_live.models import Index, SchemaCatalog

logger = logging.getLogger(__name__)

IndexKey = Tuple[str, Tuple[str, ...]]


class IndexCatalog:
    """
    Lookup of indexes by ``(table, sorted columns)``.

    Column order never matters: ``("b", "a")`` and ``("a", "b")`` address the
    same entry. A later index on the same column set replaces an earlier one.
    """

    def __init__(self) -> None:
        self._indexes: Dict[IndexKey, Index] = {}

    @staticmethod
    def _key(table: str, columns: Iterable[str]) -> IndexKey:
        return table, tuple(sorted(columns))

    def record(
        self,
        table: str,
        columns: Iterable[str],
        name: str,
        is_unique: bool = False,
        is_primary: bool = False,
    ) -> Index:
        """Store an index and return the catalog entry."""
        key = self._key(table, columns)
        index = Index(
            table=table,
            columns=key[1],
            name=name,
            is_unique=is_unique,
            is_primary=is_primary,
        )
        self._indexes[key] = index
        return index

    def lookup(self, table: str, columns: Iterable[str]) -> Optional[Index]:
        """Return the index covering exactly these columns, or None."""
        return self._indexes.get(self._key(table, columns))

    def __len__(self) -> int:
        return len(self._indexes)

    def __iter__(self) -> Iterator[Index]:
        return iter(self._indexes.values())

    @classmethod
    def from_catalog(cls, catalog: SchemaCatalog) -> IndexCatalog:
        """Read every index of every table in the catalog."""
        index_catalog = cls()
        for table in catalog.tables:
            for index in table.indexes:
                index_catalog.record(
                    table.name,
                    index.columns,
                    index.name,
                    is_unique=index.is_unique,
                    is_primary=index.is_primary,
                )
        logger.info(f"Indexed {len(index_catalog)} indexes from {len(catalog.tables)} tables")
        return index_catalog
