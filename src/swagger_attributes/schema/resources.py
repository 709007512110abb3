"""Infer response schemas from resource (transform) classes.

A resource is either a single-item transform, whose ``to_dict`` literal is
analyzed statically, or a collection wrapping an item resource, optionally
paginated. Resolution is best-effort: failures degrade to an empty object
schema and never propagate.
"""

import copy
import inspect
import logging
import re
import sys
import typing
from typing import Any, Protocol

from ..importing import resolve_object
from ..resources import AnonymousResourceCollection, JsonResource, ResourceCollection
from .docstrings import parse_field_section
from .literal import MethodAnalysis, analyze_method, is_opaque, literal_schema
from .models import ModelSchemaResolver
from .types import annotation_token, map_type

logger = logging.getLogger(__name__)

PRIMARY_HOOK = "to_dict"
SECONDARY_HOOKS = ("with_data", "additional", "with_response", "with_meta")

_LIBRARY_CLASSES = (JsonResource, ResourceCollection, AnonymousResourceCollection)
_PAGINATION_RE = re.compile(r"paginat(e|or|ion)", re.IGNORECASE)
_COLLECTION_SITE_RE = re.compile(r"\b([A-Za-z_]\w*)\.collection\(")

RESOURCE_PAGINATION_ENVELOPE = {
    "type": "object",
    "properties": {
        "data": {"type": "array", "items": {}},
        "links": {
            "type": "object",
            "properties": {
                "first": {"type": "string", "format": "uri"},
                "last": {"type": "string", "format": "uri"},
                "prev": {"type": "string", "format": "uri", "nullable": True},
                "next": {"type": "string", "format": "uri", "nullable": True},
            },
        },
        "meta": {
            "type": "object",
            "properties": {
                "current_page": {"type": "integer"},
                "from": {"type": "integer", "nullable": True},
                "last_page": {"type": "integer"},
                "path": {"type": "string"},
                "per_page": {"type": "integer"},
                "to": {"type": "integer", "nullable": True},
                "total": {"type": "integer"},
            },
        },
    },
}


def pagination_envelope(item: dict) -> dict:
    envelope = copy.deepcopy(RESOURCE_PAGINATION_ENVELOPE)
    envelope["properties"]["data"]["items"] = item
    return envelope


def empty_object() -> dict:
    return {"type": "object", "properties": {}}


class TransformIntrospector(Protocol):
    def resolve(self, transform_id: Any) -> Any | None: ...

    def is_collection_type(self, transform: Any) -> bool: ...

    def is_paginated_type(self, transform: Any) -> bool: ...

    def resolve_item_type(self, transform: Any) -> Any | None: ...

    def get_primary_mapping(self, transform: Any) -> MethodAnalysis | None: ...

    def get_declared_fields(self, transform: Any) -> dict[str, tuple[str, str]]: ...

    def get_secondary_mappings(self, transform: Any) -> list[MethodAnalysis]: ...


class ClassTransformIntrospector:
    """Introspects :class:`~swagger_attributes.resources.JsonResource` subclasses."""

    def resolve(self, transform_id: Any) -> type | None:
        try:
            transform = resolve_object(transform_id)
        except ImportError as e:
            logger.debug("Unknown resource %r: %s", transform_id, e)
            return None
        if isinstance(transform, type) and issubclass(transform, JsonResource):
            return transform
        return None

    def is_collection_type(self, transform: type) -> bool:
        if issubclass(transform, ResourceCollection):
            return True
        # Only a factory the class declares itself counts, not the inherited one.
        if transform not in _LIBRARY_CLASSES and isinstance(vars(transform).get("collection"), (classmethod, staticmethod)):
            return True
        return issubclass(transform, AnonymousResourceCollection)

    def is_paginated_type(self, transform: type) -> bool:
        if hasattr(transform, "paginate"):
            return True
        source = _source_of(transform)
        return bool(source and _PAGINATION_RE.search(source))

    def resolve_item_type(self, transform: type) -> Any | None:
        collects = getattr(transform, "collects", None)
        if collects is not None:
            return collects

        module = sys.modules.get(transform.__module__)

        if issubclass(transform, AnonymousResourceCollection) and module is not None:
            source = _source_of(module)
            match = _COLLECTION_SITE_RE.search(source or "")
            if match and hasattr(module, match.group(1)):
                return getattr(module, match.group(1))

        name = transform.__name__
        if name.endswith("Collection") and module is not None:
            candidate = getattr(module, name[: -len("Collection")] + "Resource", None)
            if candidate is not None:
                return candidate

        if transform not in _LIBRARY_CLASSES and not issubclass(transform, ResourceCollection) and "collection" in vars(transform):
            return transform
        return None

    def get_primary_mapping(self, transform: type) -> MethodAnalysis | None:
        method = _own_method(transform, PRIMARY_HOOK)
        return _analyze(method) if method else None

    def get_declared_fields(self, transform: type) -> dict[str, tuple[str, str]]:
        method = _own_method(transform, PRIMARY_HOOK)
        if method is None:
            return {}

        declared: dict[str, tuple[str, str]] = {}
        returned = _return_annotation(method)
        if returned is not None and typing.is_typeddict(returned):
            for name, annotation in typing.get_type_hints(returned).items():
                declared[name] = (annotation_token(annotation), "")
        for name, type_token, description in parse_field_section(method.__doc__, ("Fields",)):
            declared[name] = (type_token, description)
        return declared

    def get_secondary_mappings(self, transform: type) -> list[MethodAnalysis]:
        analyses = []
        for hook in SECONDARY_HOOKS:
            method = _own_method(transform, hook)
            if method is not None:
                analysis = _analyze(method)
                if analysis is not None:
                    analyses.append(analysis)
        return analyses


class ResourceSchemaResolver:
    """Resolves resource identifiers into schemas, seeded by an optional model."""

    def __init__(self, model_resolver: ModelSchemaResolver, introspector: TransformIntrospector | None = None):
        self.model_resolver = model_resolver
        self.introspector = introspector or ClassTransformIntrospector()

    def resolve(self, transform_id: Any, model_id: Any = None) -> dict | None:
        """Return the resource schema, or None when ``transform_id`` is not a known resource."""
        return self._resolve(transform_id, model_id, ())

    def _resolve(self, transform_id: Any, model_id: Any, seen: tuple) -> dict | None:
        try:
            transform = self.introspector.resolve(transform_id)
            if transform is None:
                return None
            if transform in seen:
                logger.debug("Resource %r collects itself; using an empty item schema", transform_id)
                return empty_object()
            if self.introspector.is_collection_type(transform):
                return self._collection_schema(transform, model_id, seen + (transform,))
            return self._resource_schema(transform, model_id)
        except Exception as e:
            logger.debug("Cannot resolve resource %r: %s", transform_id, e)
            return empty_object()

    def _collection_schema(self, transform: Any, model_id: Any, seen: tuple) -> dict:
        item_type = self.introspector.resolve_item_type(transform)

        item = None
        if item_type is transform:
            item = self._resource_schema(transform, model_id)
        elif item_type is not None:
            item = self._resolve(item_type, model_id, seen)
        if item is None and model_id is not None:
            item = self.model_resolver.resolve(model_id)
        if item is None:
            item = empty_object()

        if self.introspector.is_paginated_type(transform):
            return pagination_envelope(item)
        return {"type": "array", "items": item}

    def _resource_schema(self, transform: Any, model_id: Any) -> dict:
        properties: dict[str, dict] = {}
        if model_id is not None:
            properties.update(self.model_resolver.resolve(model_id)["properties"])

        declared = self.introspector.get_declared_fields(transform)
        for name, (type_token, description) in declared.items():
            prop = map_type(type_token)
            if description:
                prop["description"] = description
            properties[name] = prop

        primary = self.introspector.get_primary_mapping(transform)
        if primary is not None:
            _merge_analysis(primary, properties, protected=set(declared))

        for analysis in self.introspector.get_secondary_mappings(transform):
            _merge_analysis(analysis, properties, protected=set(properties))

        return {"type": "object", "properties": properties}


def _merge_analysis(analysis: MethodAnalysis, properties: dict, protected: set) -> None:
    """Merge a method analysis into ``properties``; keys in ``protected`` are never replaced.

    An opaque expression never replaces a type already known from the model.
    Relation names that are not yet properties get a placeholder.
    """
    if analysis.mapping is not None:
        for key, node in analysis.mapping.entries:
            if key in protected or (is_opaque(node) and key in properties):
                continue
            if is_opaque(node):
                logger.debug("Cannot infer type of %r from %s; using string", key, node.source)
            properties[key] = literal_schema(node)

    for relation in analysis.relations:
        if relation not in properties:
            properties[relation] = relationship_schema(relation)


def relationship_schema(relation: str) -> dict:
    return {
        "type": "object",
        "nullable": True,
        "description": f"Loaded relationship: {relation}",
        "properties": {},
    }


def _own_method(transform: type, name: str):
    """Return ``transform.<name>`` unless it is only provided by the library base classes."""
    for klass in transform.__mro__:
        if name in vars(klass):
            if klass in _LIBRARY_CLASSES:
                return None
            member = vars(klass)[name]
            if isinstance(member, (classmethod, staticmethod)):
                member = member.__func__
            return member if inspect.isfunction(member) else None
    return None


def _analyze(method) -> MethodAnalysis | None:
    try:
        return analyze_method(method)
    except (OSError, TypeError, SyntaxError) as e:
        logger.debug("Cannot read source of %s: %s", getattr(method, "__qualname__", method), e)
        return None


def _source_of(obj) -> str | None:
    try:
        return inspect.getsource(obj)
    except (OSError, TypeError):
        return None


def _return_annotation(method):
    try:
        return typing.get_type_hints(method).get("return")
    except Exception:
        return None
