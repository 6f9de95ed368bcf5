"""Tests for runtime access to built configurations."""

import pytest

from schema_live.builder import Builder
from schema_live.runtime import (
    ConfigurationAlreadyBuiltError,
    ConfigurationNotBuiltError,
    ConfigurationStore,
    ModelSchema,
    RelationshipDispatcher,
    UnknownRelationshipError,
    UnresolvedModelError,
)


class RecordingOrm:
    """Records relationship constructor calls."""

    def __init__(self):
        self.calls = []

    def has_one(self, related, foreign_key, local_key):
        self.calls.append(("has_one", related, foreign_key, local_key))
        return "has_one"

    def belongs_to(self, related, foreign_key, owner_key, relation):
        self.calls.append(("belongs_to", related, foreign_key, owner_key, relation))
        return "belongs_to"

    def has_many(self, related, foreign_key, local_key):
        self.calls.append(("has_many", related, foreign_key, local_key))
        return "has_many"

    def belongs_to_many(self, related, table, foreign_pivot_key, related_pivot_key, parent_key, related_key, relation):
        self.calls.append((
            "belongs_to_many", related, table, foreign_pivot_key,
            related_pivot_key, parent_key, related_key, relation,
        ))
        return "belongs_to_many"


@pytest.fixture
def store(blog_catalog, resolver):
    store = ConfigurationStore()
    store.register("default", Builder(blog_catalog, resolver).build())
    return store


class TestConfigurationStore:
    """Tests for ConfigurationStore."""

    def test_read_before_build(self):
        store = ConfigurationStore()

        with pytest.raises(ConfigurationNotBuiltError):
            store.get("default")

    def test_register_once(self, store, users_posts_catalog):
        with pytest.raises(ConfigurationAlreadyBuiltError):
            store.register("default", Builder(users_posts_catalog).build())

    def test_rebuild(self, store, users_posts_catalog):
        store.rebuild("default", Builder(users_posts_catalog).build())

        assert store.get("default").relationship("users", "roles") is None
        assert store.connections == ["default"]

    def test_registered_configuration_is_read_only(self, store):
        configuration = store.get("default")

        with pytest.raises(AttributeError):
            configuration.fields["users"].guarded.append("id")
        with pytest.raises(TypeError):
            configuration.fields["users"].casts["id"] = "int"
        with pytest.raises(TypeError):
            configuration.fields["audit_log"] = configuration.fields["users"]
        with pytest.raises(TypeError):
            del configuration.relationships["users"]["posts"]

        assert ModelSchema.for_connection(store, "default", "users").guarded() == ["password"]

    def test_later_changes_to_built_configuration_do_not_leak(self, blog_catalog, resolver):
        configuration = Builder(blog_catalog, resolver).build()
        store = ConfigurationStore()
        store.register("default", configuration)

        configuration.fields["users"].guarded.append("id")
        configuration.relationships["users"].pop("posts")

        schema = ModelSchema.for_connection(store, "default", "users")
        assert schema.guarded() == ["password"]
        assert "posts" in schema.relationship_names

    def test_connections_are_separate(self, store):
        assert "default" in store
        assert "reporting" not in store
        with pytest.raises(ConfigurationNotBuiltError):
            ModelSchema.for_connection(store, "reporting", "users")


class TestModelSchema:
    """Tests for ModelSchema."""

    @pytest.fixture
    def users(self, store):
        return ModelSchema.for_connection(store, "default", "users")

    def test_guarded(self, users):
        assert users.guarded(["id"]) == ["id", "password"]

    def test_casts(self, users):
        casts = users.casts({"id": "int", "settings": "object"})

        assert casts == {"id": "int", "settings": "array", "created_at": "datetime"}

    def test_attributes(self, users):
        attributes = users.attributes({"email": "nobody@example.com"})

        assert attributes["email"] == "nobody@example.com"
        assert attributes["password"] is None

    def test_rules_and_visibility(self, users):
        assert users.rules()["password"] == ["required", "max:60"]
        assert users.hidden == ["password"]
        assert "email" in users.fillable

    def test_unknown_table(self, store):
        schema = ModelSchema.for_connection(store, "default", "audit_log")

        assert schema.guarded() == []
        assert schema.rules() == {}
        assert schema.relationship_names == []


class TestRelationshipDispatcher:
    """Tests for RelationshipDispatcher."""

    def test_has_many(self, store, models_module):
        orm = RecordingOrm()
        dispatcher = RelationshipDispatcher(ModelSchema.for_connection(store, "default", "users"))

        assert dispatcher.dispatch(orm, "posts") == "has_many"
        assert orm.calls == [("has_many", models_module.Post, "user_id", "id")]

    def test_belongs_to(self, store, models_module):
        orm = RecordingOrm()
        dispatcher = RelationshipDispatcher(ModelSchema.for_connection(store, "default", "posts"))

        dispatcher.dispatch(orm, "user")

        assert orm.calls == [("belongs_to", models_module.User, "user_id", "id", "user")]

    def test_has_one(self, store, models_module):
        orm = RecordingOrm()
        dispatcher = RelationshipDispatcher(ModelSchema.for_connection(store, "default", "users"))

        dispatcher.dispatch(orm, "profile")

        assert orm.calls == [("has_one", models_module.Profile, "user_id", "id")]

    def test_belongs_to_many(self, store, models_module):
        orm = RecordingOrm()
        dispatcher = RelationshipDispatcher(ModelSchema.for_connection(store, "default", "users"))

        dispatcher.dispatch(orm, "roles")

        assert orm.calls == [(
            "belongs_to_many", models_module.Role, "role_user", "user_id", "role_id", "id", "id", "roles",
        )]

    def test_unknown_relationship(self, store):
        dispatcher = RelationshipDispatcher(ModelSchema.for_connection(store, "default", "users"))

        with pytest.raises(UnknownRelationshipError):
            dispatcher.dispatch(RecordingOrm(), "comments")
        # Behaves like a missing attribute for callers using getattr fallbacks
        with pytest.raises(AttributeError):
            dispatcher.resolve("comments")

    def test_unresolved_model(self, store):
        orm = RecordingOrm()
        dispatcher = RelationshipDispatcher(ModelSchema.for_connection(store, "default", "users"))

        with pytest.raises(UnresolvedModelError):
            dispatcher.dispatch(orm, "roleUser")
        assert orm.calls == []

    def test_custom_class_loader(self, store):
        orm = RecordingOrm()
        loaded = []

        def loader(path):
            loaded.append(path)
            return object

        dispatcher = RelationshipDispatcher(
            ModelSchema.for_connection(store, "default", "posts"),
            class_loader=loader,
        )
        dispatcher.dispatch(orm, "user")

        assert loaded == ["blog_models.User"]
        assert orm.calls[0][1] is object
