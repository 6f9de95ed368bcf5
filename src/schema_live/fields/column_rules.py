"""
Column Rule Deriver - Derives field metadata from column definitions.

For each column, in order:

1. its default goes into ``attributes`` and the column into ``fillable``
2. NOT NULL without default and not auto-incrementing -> ``required``
3. bounded text -> ``max:<length>``
4. date/time -> ``date`` rule and ``datetime`` cast
5. comment directives

Comment directives are ``;``-separated, each ``method`` or
``method:arg1,arg2``. ``hidden``, ``guarded`` and ``json`` change the field
config; any other non-empty directive is kept verbatim as a validation rule::

    COMMENT 'hidden;json'          -> hidden, cast to array
    COMMENT 'guarded;email'        -> guarded, rule "email"
    COMMENT 'in:draft,published'   -> rule "in:draft,published"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from schema_live.models import ColumnInfo, ColumnType, TableFieldConfig, TableSchema

logger = logging.getLogger(__name__)


@dataclass
class Directive:
    """One parsed comment directive."""
    raw: str
    method: str
    args: List[str] = field(default_factory=list)


class ColumnOptions:
    """Handlers for the directives recognized in column comments."""

    DIRECTIVES = ("hidden", "guarded", "json")

    def __init__(self, column: str, table_config: TableFieldConfig):
        self.key = column
        self.table_config = table_config

    def hidden(self, *args: str) -> None:
        self.table_config.hidden.append(self.key)

    def guarded(self, *args: str) -> None:
        self.table_config.guarded.append(self.key)

    def json(self, *args: str) -> None:
        self.table_config.casts[self.key] = "array"

    def apply(self, directive: Directive) -> bool:
        """Run a recognized directive; False when the method is unknown."""
        if directive.method not in self.DIRECTIVES:
            return False
        getattr(self, directive.method)(*directive.args)
        return True


class ColumnRuleDeriver:
    """Builds the ``TableFieldConfig`` of a table from its columns."""

    def derive(self, table: TableSchema) -> TableFieldConfig:
        config = TableFieldConfig()
        for column in table.columns:
            self.derive_column(column, config)
        return config

    def derive_column(self, column: ColumnInfo, config: TableFieldConfig) -> None:
        key = column.name
        config.attributes[key] = column.default
        config.fillable.append(key)

        if not column.nullable and column.default is None and not column.autoincrement:
            config.add_rule(key, "required")

        if column.type == ColumnType.STRING and column.length is not None:
            config.add_rule(key, f"max:{column.length}")

        if column.type.is_temporal:
            config.add_rule(key, "date")
            config.casts[key] = "datetime"

        self.apply_comment(column, config)

    @staticmethod
    def parse_directives(comment: Optional[str]) -> List[Directive]:
        if not comment:
            return []

        directives = []
        for raw in comment.split(";"):
            method, sep, arguments = raw.partition(":")
            args = arguments.strip().split(",") if sep else []
            directives.append(Directive(raw=raw.strip(), method=method.strip(), args=args))
        return directives

    def apply_comment(self, column: ColumnInfo, config: TableFieldConfig) -> None:
        options = ColumnOptions(column.name, config)
        for directive in self.parse_directives(column.comment):
            if options.apply(directive):
                continue
            if directive.method:
                logger.debug(f"Keeping directive '{directive.raw}' on {column.name} as a rule")
                config.add_rule(column.name, directive.raw)
