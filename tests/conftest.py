"""Shared fixtures for the schema_live tests."""

import sys
import types
from pathlib import Path

import pytest

from schema_live.models import (
    ColumnInfo,
    ColumnType,
    ForeignKeyInfo,
    IndexInfo,
    SchemaCatalog,
    TableSchema,
)
from schema_live.naming import ModelResolver

SAMPLES_DIR = Path(__file__).parent.parent / "samples"


def primary(columns=("id",)):
    return IndexInfo(name="PRIMARY", columns=list(columns), is_unique=True, is_primary=True)


def fk(local_table, local_columns, foreign_table, foreign_columns=("id",)):
    return ForeignKeyInfo(
        local_table=local_table,
        local_columns=list(local_columns),
        foreign_table=foreign_table,
        foreign_columns=list(foreign_columns),
    )


def id_column():
    return ColumnInfo(name="id", type=ColumnType.BIGINT, nullable=False, autoincrement=True)


@pytest.fixture
def models_module(monkeypatch):
    """An importable module holding the blog model classes."""
    module = types.ModuleType("blog_models")
    for name in ("User", "Post", "Role", "Profile", "Employee"):
        setattr(module, name, type(name, (), {}))
    monkeypatch.setitem(sys.modules, "blog_models", module)
    return module


@pytest.fixture
def resolver(models_module):
    return ModelResolver(models_module)


@pytest.fixture
def blog_catalog():
    """The sample blog schema: users, profiles, posts, roles and role_user."""
    return SchemaCatalog.load(SAMPLES_DIR / "blog_catalog.yaml")


@pytest.fixture
def users_posts_catalog():
    """users(id PK), posts(id PK, user_id FK -> users.id)."""
    return SchemaCatalog(tables=[
        TableSchema(name="users", columns=[id_column()], indexes=[primary()]),
        TableSchema(
            name="posts",
            columns=[id_column(), ColumnInfo(name="user_id", type=ColumnType.BIGINT, nullable=False)],
            indexes=[primary()],
            foreign_keys=[fk("posts", ["user_id"], "users")],
        ),
    ])


@pytest.fixture
def pivot_catalog():
    """users, roles and the pivot role_user without extra indexes."""
    return SchemaCatalog(tables=[
        TableSchema(name="users", columns=[id_column()], indexes=[primary()]),
        TableSchema(name="roles", columns=[id_column()], indexes=[primary()]),
        TableSchema(
            name="role_user",
            columns=[
                ColumnInfo(name="user_id", type=ColumnType.BIGINT, nullable=False),
                ColumnInfo(name="role_id", type=ColumnType.BIGINT, nullable=False),
            ],
            foreign_keys=[
                fk("role_user", ["user_id"], "users"),
                fk("role_user", ["role_id"], "roles"),
            ],
        ),
    ])
