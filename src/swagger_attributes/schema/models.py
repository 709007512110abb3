"""Build object schemas for data models.

A model's fields come from its storage columns plus any appended
(computed) fields. Explicitly declared field types win over column types.
"""

import inspect
import logging
from typing import Any, Protocol

from pydantic import BaseModel, Field

from ..importing import resolve_object
from .docstrings import parse_field_section
from .types import annotation_token, map_column_type, map_type

logger = logging.getLogger(__name__)


class ModelFieldProvider(Protocol):
    def get_columns(self, model_id: Any) -> list[tuple[str, str]]: ...

    def get_appended_fields(self, model_id: Any) -> list[str]: ...

    def get_declared_field_types(self, model_id: Any) -> dict[str, str]: ...


class DeclarativeModelFieldProvider:
    """Reads fields from model classes.

    Columns come from an SQLAlchemy-style ``__table__.columns`` or a
    ``__columns__`` mapping of ``name -> column type``. ``__appends__`` lists
    computed fields. Declared types come from class annotations and the
    ``Attributes:`` section of the class docstring (the docstring wins).
    """

    def get_columns(self, model_id: Any) -> list[tuple[str, str]]:
        model = resolve_object(model_id)
        table = getattr(model, "__table__", None)
        if table is not None and hasattr(table, "columns"):
            return [(column.name, _column_type_name(column)) for column in table.columns]

        columns = getattr(model, "__columns__", None)
        if columns is None:
            return []
        if isinstance(columns, dict):
            return [(name, str(type_name)) for name, type_name in columns.items()]
        return [(name, str(type_name)) for name, type_name in columns]

    def get_appended_fields(self, model_id: Any) -> list[str]:
        model = resolve_object(model_id)
        return list(getattr(model, "__appends__", ()))

    def get_declared_field_types(self, model_id: Any) -> dict[str, str]:
        model = resolve_object(model_id)
        declared: dict[str, str] = {}
        for klass in reversed(getattr(model, "__mro__", (model,))):
            for name, annotation in _class_annotations(klass).items():
                if not name.startswith("_"):
                    declared[name] = annotation_token(annotation)
        for name, type_token, _ in parse_field_section(model.__doc__, ("Attributes", "Properties")):
            declared[name] = type_token
        return declared


class ModelDefinition(BaseModel):
    columns: dict[str, str] = Field(default_factory=dict)
    appends: list[str] = Field(default_factory=list)
    declared_types: dict[str, str] = Field(default_factory=dict)


class StaticModelFieldProvider:
    """Serves field metadata from an in-memory table of model definitions."""

    def __init__(self, models: dict[str, ModelDefinition]):
        self.models = models

    def _get(self, model_id: Any) -> ModelDefinition:
        key = _model_key(model_id)
        if key not in self.models and not isinstance(model_id, str):
            key = model_id.__qualname__
        return self.models[key]

    def get_columns(self, model_id: Any) -> list[tuple[str, str]]:
        return list(self._get(model_id).columns.items())

    def get_appended_fields(self, model_id: Any) -> list[str]:
        return list(self._get(model_id).appends)

    def get_declared_field_types(self, model_id: Any) -> dict[str, str]:
        return dict(self._get(model_id).declared_types)


class ChainedModelFieldProvider:
    """Asks each provider in turn; the first one that knows the model answers."""

    def __init__(self, *providers: ModelFieldProvider):
        self.providers = providers

    def _call(self, method: str, model_id: Any):
        error: Exception | None = None
        for provider in self.providers:
            try:
                return getattr(provider, method)(model_id)
            except Exception as e:
                error = e
        raise LookupError(f"No provider knows model {model_id!r}") from error

    def get_columns(self, model_id: Any) -> list[tuple[str, str]]:
        return self._call("get_columns", model_id)

    def get_appended_fields(self, model_id: Any) -> list[str]:
        return self._call("get_appended_fields", model_id)

    def get_declared_field_types(self, model_id: Any) -> dict[str, str]:
        return self._call("get_declared_field_types", model_id)


class ModelSchemaResolver:
    """Resolves a model identifier into an object schema. Never raises."""

    def __init__(self, provider: ModelFieldProvider | None = None):
        self.provider = provider or DeclarativeModelFieldProvider()

    def resolve(self, model_id: Any) -> dict:
        schema: dict = {"type": "object", "properties": {}}
        try:
            declared = self.provider.get_declared_field_types(model_id)
            properties = schema["properties"]

            for name, column_type in self.provider.get_columns(model_id):
                if name in declared:
                    properties[name] = map_type(declared[name])
                else:
                    properties[name] = map_column_type(column_type)

            for name in self.provider.get_appended_fields(model_id):
                properties[name] = map_type(declared[name]) if name in declared else {"type": "string"}
        except Exception as e:
            logger.debug("Cannot resolve model %r: %s", model_id, e)
            return {"type": "object", "properties": {}}
        return schema


def _model_key(model_id: Any) -> str:
    if isinstance(model_id, str):
        return model_id
    return f"{model_id.__module__}:{model_id.__qualname__}"


def _column_type_name(column) -> str:
    try:
        return str(column.type)
    except Exception:
        # Types without a default compilation still carry a class name.
        return type(column.type).__name__


def _class_annotations(klass) -> dict:
    try:
        return inspect.get_annotations(klass)
    except Exception:
        return dict(klass.__dict__.get("__annotations__", {}))
