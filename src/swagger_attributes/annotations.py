"""Declarative endpoint metadata.

Each decorator validates its arguments into a pydantic record and attaches
it to the handler. Records are kept in declaration order (top decorator
first), so repeatable annotations read the way they are written.
"""

from typing import Any, Callable

from pydantic import BaseModel, Field

from .enums import HttpMethod, OpenApiDataType, ResponseType

ANNOTATIONS_ATTR = "__openapi_annotations__"

# Inline schema-override value meaning "put the resolved item schema here".
ITEM_SCHEMA = "@item"


class OpenApi(BaseModel):
    """Primary documentation record. Endpoints without one are not documented."""

    tag: str
    summary: str
    description: str = ""
    method: HttpMethod = HttpMethod.GET
    path: str | None = None
    deprecated: bool = False


class RequestBody(BaseModel):
    """Request body described by inline rules or a class exposing ``rules()``."""

    request_class: Any = None
    rules: dict[str, Any] = Field(default_factory=dict)
    content_type: str = "application/json"
    required: bool = True
    description: str = ""


class Response(BaseModel):
    """A documented response. Later records for the same status win."""

    status_code: int = Field(default=200, ge=100, le=599)
    description: str = "Successful operation"
    model: Any = None
    resource: Any = None
    schema_override: dict[str, Any] = Field(default_factory=dict)
    response_type: ResponseType = ResponseType.SINGLE
    content_type: str = "application/json"

    @property
    def has_content(self) -> bool:
        return bool(self.model or self.resource or self.schema_override)


class ExceptionResponse(BaseModel):
    """An error response; always documented with a JSON body."""

    status_code: int = Field(ge=100, le=599)
    message: str
    exception: Any = None
    response_schema: dict[str, Any] = Field(default_factory=dict)


class QueryParam(BaseModel):
    name: str
    type: OpenApiDataType = OpenApiDataType.STRING
    description: str = ""
    required: bool = False
    example: Any = None
    default: Any = None
    enum: list[Any] = Field(default_factory=list)
    format: str | None = None
    extra_schema: dict[str, Any] = Field(default_factory=dict)


class ValidationErrorResponse(BaseModel):
    description: str = "Validation Error"


def get_annotations(func: Callable) -> list[BaseModel]:
    """Return the annotation records attached to a handler, in declaration order."""
    return list(getattr(func, ANNOTATIONS_ATTR, ()))


def find_annotation(records: list[BaseModel], kind: type[BaseModel]) -> BaseModel | None:
    for record in records:
        if isinstance(record, kind):
            return record
    return None


def find_annotations(records: list[BaseModel], kind: type[BaseModel]) -> list[BaseModel]:
    return [r for r in records if isinstance(r, kind)]


def _attach(record: BaseModel, repeatable: bool = False):
    def decorator(func):
        records = getattr(func, ANNOTATIONS_ATTR, None)
        if records is None:
            records = []
            setattr(func, ANNOTATIONS_ATTR, records)
        if not repeatable:
            # Decorators run bottom-up: the one written highest is applied last and wins.
            records[:] = [r for r in records if type(r) is not type(record)]
        records.insert(0, record)
        return func

    return decorator


def openapi(tag: str, summary: str, **kwargs):
    return _attach(OpenApi(tag=tag, summary=summary, **kwargs))


def openapi_request_body(**kwargs):
    return _attach(RequestBody(**kwargs))


def openapi_response(**kwargs):
    return _attach(Response(**kwargs), repeatable=True)


def openapi_exception(status_code: int, message: str, **kwargs):
    return _attach(ExceptionResponse(status_code=status_code, message=message, **kwargs), repeatable=True)


def openapi_query_param(name: str, **kwargs):
    return _attach(QueryParam(name=name, **kwargs), repeatable=True)


def openapi_validation_error(description: str = "Validation Error"):
    return _attach(ValidationErrorResponse(description=description))
