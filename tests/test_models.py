from types import SimpleNamespace

from sample_app import Post, User
from swagger_attributes.schema.docstrings import parse_field_section
from swagger_attributes.schema.models import (
    ChainedModelFieldProvider,
    DeclarativeModelFieldProvider,
    ModelDefinition,
    ModelSchemaResolver,
    StaticModelFieldProvider,
)


class FakeColumnType:
    def __init__(self, name):
        self.name = name

    def __str__(self):
        return self.name


class TableModel:
    """Model with an SQLAlchemy-style table."""

    __table__ = SimpleNamespace(columns=[
        SimpleNamespace(name="id", type=FakeColumnType("INTEGER")),
        SimpleNamespace(name="price", type=FakeColumnType("NUMERIC(10, 2)")),
        SimpleNamespace(name="sku", type=FakeColumnType("VARCHAR(32)")),
    ])

    sku: str | None


class TestDeclarativeModelFieldProvider:
    def test_columns_from_mapping(self):
        columns = DeclarativeModelFieldProvider().get_columns(User)
        assert columns[0] == ("id", "bigint")
        assert [name for name, _ in columns] == ["id", "name", "email", "is_active", "created_at", "settings"]

    def test_columns_from_pairs(self):
        assert DeclarativeModelFieldProvider().get_columns(Post) == [
            ("id", "integer"), ("title", "text"), ("user_id", "bigint"),
        ]

    def test_columns_from_table(self):
        assert DeclarativeModelFieldProvider().get_columns(TableModel) == [
            ("id", "INTEGER"), ("price", "NUMERIC(10, 2)"), ("sku", "VARCHAR(32)"),
        ]

    def test_declared_types_from_docstring(self):
        declared = DeclarativeModelFieldProvider().get_declared_field_types(User)
        assert declared == {"full_name": "str", "settings": "dict | None"}

    def test_declared_types_from_annotations(self):
        declared = DeclarativeModelFieldProvider().get_declared_field_types(TableModel)
        assert declared == {"sku": "str | None"}

    def test_import_string_identifier(self):
        assert DeclarativeModelFieldProvider().get_appended_fields("sample_app:User") == ["full_name", "avatar_url"]


class TestModelSchemaResolver:
    def test_columns_appends_and_declared_types(self):
        schema = ModelSchemaResolver().resolve(User)
        assert schema == {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "name": {"type": "string"},
                "email": {"type": "string"},
                "is_active": {"type": "boolean"},
                "created_at": {"type": "string", "format": "date-time"},
                "settings": {"type": "object", "properties": {}, "nullable": True},
                "full_name": {"type": "string"},
                "avatar_url": {"type": "string"},
            },
        }

    def test_declared_type_wins_over_column(self):
        schema = ModelSchemaResolver().resolve(TableModel)
        assert schema["properties"]["sku"] == {"type": "string", "nullable": True}
        assert schema["properties"]["price"] == {"type": "number", "format": "float"}

    def test_unresolvable_model_degrades(self):
        assert ModelSchemaResolver().resolve("nowhere.models:Ghost") == {"type": "object", "properties": {}}

    def test_model_without_fields(self):
        class Empty:
            pass

        assert ModelSchemaResolver().resolve(Empty) == {"type": "object", "properties": {}}


class TestStaticProvider:
    MODELS = {
        "Account": ModelDefinition(
            columns={"id": "bigint", "name": "varchar(255)"},
            appends=["display_name"],
            declared_types={"name": "?string"},
        ),
    }

    def test_resolve_from_definitions(self):
        schema = ModelSchemaResolver(StaticModelFieldProvider(self.MODELS)).resolve("Account")
        assert schema["properties"] == {
            "id": {"type": "integer"},
            "name": {"type": "string", "nullable": True},
            "display_name": {"type": "string"},
        }

    def test_chained_provider_falls_through(self):
        provider = ChainedModelFieldProvider(StaticModelFieldProvider(self.MODELS), DeclarativeModelFieldProvider())
        resolver = ModelSchemaResolver(provider)
        assert list(resolver.resolve("Account")["properties"]) == ["id", "name", "display_name"]
        assert resolver.resolve(Post)["properties"]["title"] == {"type": "string"}

    def test_chained_provider_unknown_model(self):
        provider = ChainedModelFieldProvider(StaticModelFieldProvider(self.MODELS))
        assert ModelSchemaResolver(provider).resolve("Ghost") == {"type": "object", "properties": {}}


class TestParseFieldSection:
    def test_entries_and_continuations(self):
        doc = """Summary line.

        Attributes:
            id (int): Primary key.
            email (str | None): Contact address,
                verified on signup.

        Notes:
            ignored (str): Not part of the section.
        """
        assert parse_field_section(doc, ("Attributes",)) == [
            ("id", "int", "Primary key."),
            ("email", "str | None", "Contact address, verified on signup."),
        ]

    def test_missing_section(self):
        assert parse_field_section("Just a summary.", ("Attributes",)) == []
        assert parse_field_section(None, ("Attributes",)) == []
