"""
Schema catalog reader using SQLAlchemy reflection.

Reads table names, columns, primary keys, unique constraints, indexes and
foreign keys through ``sqlalchemy.inspect`` and normalizes them into a
``SchemaCatalog``.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import create_engine, inspect
from sqlalchemy import types as sqltypes
from sqlalchemy.engine import Engine
from sqlalchemy.engine.reflection import Inspector
from sqlalchemy.exc import SQLAlchemyError

from schema_live.config import PRIMARY_INDEX_NAME
from schema_live.models import (
    ColumnInfo,
    ColumnType,
    ForeignKeyInfo,
    IndexInfo,
    SchemaCatalog,
    TableSchema,
)

logger = logging.getLogger(__name__)


# Checked in order: subclasses before their bases
SQLALCHEMY_TYPE_MAP: List[Tuple[type, ColumnType]] = [
    (sqltypes.Enum, ColumnType.STRING),
    (sqltypes.Text, ColumnType.TEXT),
    (sqltypes.String, ColumnType.STRING),
    (sqltypes.BigInteger, ColumnType.BIGINT),
    (sqltypes.Integer, ColumnType.INTEGER),
    (sqltypes.Float, ColumnType.FLOAT),
    (sqltypes.Numeric, ColumnType.DECIMAL),
    (sqltypes.Boolean, ColumnType.BOOLEAN),
    (sqltypes.TIMESTAMP, ColumnType.TIMESTAMP),
    (sqltypes.DateTime, ColumnType.DATETIME),
    (sqltypes.Date, ColumnType.DATE),
    (sqltypes.Time, ColumnType.TIME),
    (sqltypes.JSON, ColumnType.JSON),
    (sqltypes.LargeBinary, ColumnType.BINARY),
]


def map_column_type(sa_type: Any) -> Tuple[ColumnType, Optional[int]]:
    """Map a reflected SQLAlchemy type to a ColumnType and text length."""
    for sa_class, column_type in SQLALCHEMY_TYPE_MAP:
        if isinstance(sa_type, sa_class):
            length = getattr(sa_type, "length", None) if column_type == ColumnType.STRING else None
            return column_type, length
    return ColumnType.UNKNOWN, None


# Trailing PostgreSQL cast, e.g. ::character varying
_CAST_SUFFIX = re.compile(r"::[\w\s\[\]\"]+$")


def normalize_default(value: Any) -> Optional[str]:
    """
    Turn a reflected column default into its value.

    ``'draft'::character varying`` becomes ``draft``, ``'it''s'`` becomes
    ``it's`` and ``NULL`` becomes None. Expressions such as
    ``CURRENT_TIMESTAMP`` or ``nextval(...)`` are returned unchanged.
    """
    if value is None:
        return None

    text = _CAST_SUFFIX.sub("", str(value).strip())
    if text.upper() == "NULL":
        return None
    if len(text) >= 2 and text.startswith("'") and text.endswith("'"):
        return text[1:-1].replace("''", "'")
    return text


class SqlAlchemyCatalogReader:
    """
    Reads a ``SchemaCatalog`` from a live database.

    Primary keys are reported as an index named ``primary_index_name``;
    unique constraints as unique indexes.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        engine: Optional[Engine] = None,
        schema: Optional[str] = None,
        connection_name: Optional[str] = None,
        primary_index_name: str = PRIMARY_INDEX_NAME,
    ):
        """
        Initialize the reader.

        Args:
            url: SQLAlchemy database URL, used when no engine is given
            engine: Existing SQLAlchemy engine
            schema: Database schema to read (dialect default if None)
            connection_name: Name recorded on the catalog
            primary_index_name: Name given to primary-key indexes
        """
        if url is None and engine is None:
            raise ValueError("Either url or engine is required")
        self.url = url
        self.schema = schema
        self.connection_name = connection_name
        self.primary_index_name = primary_index_name
        self._engine = engine
        self._owns_engine = engine is None

    def connect(self) -> Engine:
        if self._engine is None:
            self._engine = create_engine(self.url)
            logger.info(f"Connected to {self._engine.url.render_as_string(hide_password=True)}")
        return self._engine

    def disconnect(self) -> None:
        if self._engine is not None and self._owns_engine:
            self._engine.dispose()
            self._engine = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def read(self) -> SchemaCatalog:
        """Read all tables of the schema."""
        inspector = inspect(self.connect())
        catalog = SchemaCatalog(connection=self.connection_name)

        for table_name in inspector.get_table_names(schema=self.schema):
            try:
                catalog.add_table(self.read_table(inspector, table_name))
            except SQLAlchemyError as e:
                logger.error(f"Error reading metadata for {table_name}: {e}")

        logger.info(f"Read {len(catalog.tables)} tables")
        return catalog

    def read_table(self, inspector: Inspector, table_name: str) -> TableSchema:
        pk = inspector.get_pk_constraint(table_name, schema=self.schema) or {}
        pk_columns = pk.get("constrained_columns") or []

        return TableSchema(
            name=table_name,
            columns=self._read_columns(inspector, table_name, pk_columns),
            indexes=self._read_indexes(inspector, table_name, pk_columns),
            foreign_keys=self._read_foreign_keys(inspector, table_name),
        )

    def _read_columns(
        self,
        inspector: Inspector,
        table_name: str,
        pk_columns: List[str],
    ) -> List[ColumnInfo]:
        columns = []
        for col in inspector.get_columns(table_name, schema=self.schema):
            column_type, length = map_column_type(col["type"])
            columns.append(ColumnInfo(
                name=col["name"],
                type=column_type,
                nullable=col.get("nullable", True),
                default=normalize_default(col.get("default")),
                autoincrement=self._is_autoincrement(col, column_type, pk_columns),
                length=length,
                comment=col.get("comment"),
            ))
        return columns

    @staticmethod
    def _is_autoincrement(col: Dict[str, Any], column_type: ColumnType, pk_columns: List[str]) -> bool:
        flag = col.get("autoincrement", "auto")
        if flag is True:
            return True
        # SQLAlchemy's "auto": a lone integer primary key generates its own values
        return (
            flag == "auto"
            and pk_columns == [col["name"]]
            and column_type in (ColumnType.INTEGER, ColumnType.BIGINT)
        )

    def _read_indexes(
        self,
        inspector: Inspector,
        table_name: str,
        pk_columns: List[str],
    ) -> List[IndexInfo]:
        indexes = []
        if pk_columns:
            indexes.append(IndexInfo(
                name=self.primary_index_name,
                columns=list(pk_columns),
                is_unique=True,
                is_primary=True,
            ))

        try:
            unique_constraints = inspector.get_unique_constraints(table_name, schema=self.schema)
        except NotImplementedError:
            unique_constraints = []

        seen = set()
        for uc in unique_constraints:
            columns = list(uc["column_names"])
            name = uc.get("name") or f"{table_name}_{'_'.join(columns)}_unique"
            seen.add(name)
            indexes.append(IndexInfo(name=name, columns=columns, is_unique=True))

        for idx in inspector.get_indexes(table_name, schema=self.schema):
            columns = idx.get("column_names") or []
            if idx.get("duplicates_constraint") or idx["name"] in seen:
                continue
            if not columns or None in columns:
                # Expression index
                continue
            indexes.append(IndexInfo(
                name=idx["name"],
                columns=list(columns),
                is_unique=bool(idx.get("unique")),
            ))

        return indexes

    def _read_foreign_keys(self, inspector: Inspector, table_name: str) -> List[ForeignKeyInfo]:
        return [
            ForeignKeyInfo(
                local_table=table_name,
                local_columns=list(fk["constrained_columns"]),
                foreign_table=fk["referred_table"],
                foreign_columns=list(fk["referred_columns"]),
                name=fk.get("name"),
            )
            for fk in inspector.get_foreign_keys(table_name, schema=self.schema)
            if fk.get("referred_table")
        ]
