"""
Field metadata derived from columns: defaults, validation rules, casts and
comment directives.
"""

from schema_live.fields.column_rules import ColumnOptions, ColumnRuleDeriver, Directive

__all__ = [
    "ColumnOptions",
    "ColumnRuleDeriver",
    "Directive",
]
