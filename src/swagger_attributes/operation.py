"""Assemble one OpenAPI Operation per documented endpoint."""

import copy
import hashlib
import logging
import re
from typing import Any

from .annotations import (
    ITEM_SCHEMA,
    ExceptionResponse,
    OpenApi,
    QueryParam,
    RequestBody,
    Response,
    ValidationErrorResponse,
    find_annotation,
    find_annotations,
)
from .collector import EndpointDescriptor
from .config import GeneratorConfig
from .enums import IMPLICIT_METHODS, HttpMethod, OpenApiDataType, data_type_schema, wrap_response
from .importing import resolve_object
from .schema.models import ModelSchemaResolver
from .schema.resources import ResourceSchemaResolver, empty_object
from .schema.rules import translate_rules

logger = logging.getLogger(__name__)

VALIDATION_ERROR_SCHEMA = "ValidationError"
VALIDATION_ERROR_REF = f"#/components/schemas/{VALIDATION_ERROR_SCHEMA}"

_PATH_PARAM_RE = re.compile(r"\{([^}]+)\}")
_OPTIONAL_PARAM_RE = re.compile(r"\{([^}]+)\?\}")


def validation_error_schema() -> dict:
    return {
        "type": "object",
        "properties": {
            "message": {"type": "string", "example": "The given data was invalid."},
            "errors": {
                "type": "object",
                "properties": {},
                "additionalProperties": {"type": "array", "items": {"type": "string"}},
            },
        },
    }


def normalize_path(uri: str) -> str:
    """Turn ``users/{id?}`` into ``/users/{id}``."""
    path = _OPTIONAL_PARAM_RE.sub(r"{\1}", uri)
    if not path.startswith("/"):
        path = "/" + path
    return path


def resolve_method(primary: OpenApi, route_methods: list[str]) -> HttpMethod:
    """The declared method, unless it is the implicit GET and the route says otherwise."""
    if primary.method is not HttpMethod.GET or not route_methods:
        return primary.method
    candidates = [m.upper() for m in route_methods if m.upper() not in {i.value for i in IMPLICIT_METHODS}]
    if not candidates:
        return primary.method
    try:
        return HttpMethod(candidates[0])
    except ValueError:
        return primary.method


def operation_id(descriptor: EndpointDescriptor) -> str:
    handler = descriptor.handler
    if handler.controller:
        return _lcfirst(handler.controller) + _ucfirst(handler.method_name)
    if handler.method_name.isidentifier():
        first, *rest = handler.method_name.split("_")
        return first + "".join(_ucfirst(part) for part in rest)
    return hashlib.md5((descriptor.uri + "|".join(descriptor.methods)).encode()).hexdigest()


class OperationAssembler:
    """Builds Operation objects; registers shared component schemas as they are referenced."""

    def __init__(
        self,
        config: GeneratorConfig,
        model_resolver: ModelSchemaResolver,
        resource_resolver: ResourceSchemaResolver,
    ):
        self.config = config
        self.model_resolver = model_resolver
        self.resource_resolver = resource_resolver
        self.component_schemas: dict[str, dict] = {}

    def assemble(self, descriptor: EndpointDescriptor) -> tuple[str, HttpMethod, dict]:
        records = descriptor.annotations
        primary = descriptor.primary

        path = primary.path or normalize_path(descriptor.uri)
        method = resolve_method(primary, descriptor.methods)

        operation: dict[str, Any] = {
            "tags": [primary.tag],
            "summary": primary.summary,
            "description": primary.description,
            "operationId": operation_id(descriptor),
            "responses": {"200": {"description": "Successful operation"}},
        }
        if primary.deprecated:
            operation["deprecated"] = True

        for response in find_annotations(records, Response):
            operation["responses"][str(response.status_code)] = self.build_response(response)
        for exception in find_annotations(records, ExceptionResponse):
            operation["responses"][str(exception.status_code)] = self.build_exception(exception)

        validation_error = find_annotation(records, ValidationErrorResponse)
        if validation_error is not None:
            operation["responses"]["422"] = self._validation_error_response(validation_error.description)

        request_body = find_annotation(records, RequestBody)
        if request_body is not None:
            self._add_request_body(request_body, operation)

        parameters = path_parameters(descriptor.uri)
        parameters.extend(query_parameter(p) for p in find_annotations(records, QueryParam))
        if parameters:
            operation["parameters"] = parameters

        if self.config.security:
            operation["security"] = copy.deepcopy(self.config.security)

        return path, method, operation

    def build_response(self, response: Response) -> dict:
        result: dict[str, Any] = {"description": response.description}
        if response.has_content:
            result["content"] = {response.content_type: {"schema": self.response_schema(response)}}
        return result

    def build_exception(self, exception: ExceptionResponse) -> dict:
        if exception.response_schema:
            schema = copy.deepcopy(exception.response_schema)
        else:
            schema = {
                "type": "object",
                "properties": {
                    "message": {"type": "string", "example": exception.message},
                    "status_code": {"type": "integer", "example": int(exception.status_code)},
                },
            }
        return {"description": exception.message, "content": {"application/json": {"schema": schema}}}

    def response_schema(self, response: Response) -> dict:
        """Resolve the item schema, apply inline overrides, then wrap per response type."""
        item = None
        if response.resource is not None:
            item = self.resource_resolver.resolve(response.resource, response.model)
        if item is None and response.model is not None:
            item = self.model_resolver.resolve(response.model)
        has_source = item is not None
        if item is None:
            item = empty_object()

        override = response.schema_override
        if not override:
            return wrap_response(item, response.response_type)

        if not has_source and "type" in override and not _uses_item_marker(override):
            return copy.deepcopy(override)

        if _uses_item_marker(override):
            # The override is the envelope; the wrapped item goes where the marker is.
            return _apply_override(empty_object(), override, wrap_response(item, response.response_type))
        return wrap_response(_apply_override(item, override, item), response.response_type)

    def _add_request_body(self, request_body: RequestBody, operation: dict) -> None:
        rules = self._request_rules(request_body)
        properties, required = translate_rules(rules)

        schema: dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required

        operation["requestBody"] = {
            "description": request_body.description or "Request Body",
            "required": request_body.required,
            "content": {request_body.content_type: {"schema": schema}},
        }

        if rules and "422" not in operation["responses"]:
            operation["responses"]["422"] = self._validation_error_response("Validation Error")

    def _request_rules(self, request_body: RequestBody) -> dict:
        if request_body.request_class is None:
            return dict(request_body.rules)
        try:
            request_class = resolve_object(request_body.request_class)
            rules_method = getattr(request_class, "rules")
            if isinstance(request_class, type) and not _is_class_callable(request_class, "rules"):
                rules_method = getattr(request_class(), "rules")
            rules = rules_method()
            return dict(rules) if rules else {}
        except Exception as e:
            logger.debug("Cannot read rules from %r: %s", request_body.request_class, e)
            return dict(request_body.rules)

    def _validation_error_response(self, description: str) -> dict:
        self.component_schemas.setdefault(VALIDATION_ERROR_SCHEMA, validation_error_schema())
        return {
            "description": description,
            "content": {"application/json": {"schema": {"$ref": VALIDATION_ERROR_REF}}},
        }


def path_parameters(uri: str) -> list[dict]:
    parameters = []
    for raw_name in _PATH_PARAM_RE.findall(uri):
        optional = raw_name.endswith("?")
        name = raw_name.rstrip("?")
        parameters.append(
            {
                "name": name,
                "in": "path",
                "description": _ucfirst(name.replace("_", " ")),
                "required": not optional,
                "schema": {"type": "string"},
            }
        )
    return parameters


def query_parameter(param: QueryParam) -> dict:
    schema: dict[str, Any] = {"type": param.type.value}
    if param.format:
        schema["format"] = param.format
    if param.example is not None:
        schema["example"] = param.example
    if param.default is not None:
        schema["default"] = param.default
    if param.enum:
        schema["enum"] = list(param.enum)
    if param.type is OpenApiDataType.ARRAY and "items" not in param.extra_schema:
        schema["items"] = {"type": "string"}
    schema.update(copy.deepcopy(param.extra_schema))

    return {
        "name": param.name,
        "in": "query",
        "description": param.description,
        "required": param.required,
        "schema": schema,
    }


def _apply_override(base: dict, override: dict, item: dict) -> dict:
    """Merge an inline override into ``base``; override keys win."""
    merged = copy.deepcopy(base)
    if "type" in override:
        properties = override.get("properties", {})
        for key, value in override.items():
            if key != "properties":
                merged[key] = copy.deepcopy(value)
    else:
        properties = override

    merged.setdefault("properties", {})
    for name, value in properties.items():
        merged["properties"][name] = _override_property(value, item)
    return merged


def _override_property(value: Any, item: dict) -> dict:
    if isinstance(value, str) and value == ITEM_SCHEMA:
        return copy.deepcopy(item)
    if isinstance(value, OpenApiDataType):
        return data_type_schema(value)
    if isinstance(value, dict):
        return copy.deepcopy(value)
    return {"type": str(value)}


def _uses_item_marker(override: dict) -> bool:
    properties = override.get("properties", {}) if "type" in override else override
    return any(isinstance(v, str) and v == ITEM_SCHEMA for v in properties.values())


def _is_class_callable(cls: type, name: str) -> bool:
    for klass in cls.__mro__:
        if name in vars(klass):
            return isinstance(vars(klass)[name], (classmethod, staticmethod))
    return False


def _lcfirst(text: str) -> str:
    return text[:1].lower() + text[1:]


def _ucfirst(text: str) -> str:
    return text[:1].upper() + text[1:]
