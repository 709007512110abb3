"""Closed value sets used by annotations and the document builder.

Each enum is a plain set of named values. Associated data (descriptions,
formats, envelopes) lives in module-level tables keyed by the enum.
"""

import copy
from enum import Enum, IntEnum


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"


METHOD_DESCRIPTIONS = {
    HttpMethod.GET: "Retrieve a resource",
    HttpMethod.POST: "Create a new resource",
    HttpMethod.PUT: "Replace a resource",
    HttpMethod.PATCH: "Partially update a resource",
    HttpMethod.DELETE: "Delete a resource",
    HttpMethod.HEAD: "Same as GET but without response body",
    HttpMethod.OPTIONS: "Get supported methods and options",
    HttpMethod.TRACE: "Perform a message loop-back test",
}

METHODS_WITH_BODY = frozenset({HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH})

IDEMPOTENT_METHODS = frozenset(
    {HttpMethod.GET, HttpMethod.PUT, HttpMethod.DELETE, HttpMethod.HEAD, HttpMethod.OPTIONS, HttpMethod.TRACE}
)

# Added automatically by most routers; never chosen as the documented method.
IMPLICIT_METHODS = frozenset({HttpMethod.HEAD, HttpMethod.OPTIONS})


class HttpStatusCode(IntEnum):
    OK = 200
    CREATED = 201
    ACCEPTED = 202
    NO_CONTENT = 204

    MOVED_PERMANENTLY = 301
    FOUND = 302
    SEE_OTHER = 303
    NOT_MODIFIED = 304
    TEMPORARY_REDIRECT = 307
    PERMANENT_REDIRECT = 308

    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    PAYMENT_REQUIRED = 402
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    NOT_ACCEPTABLE = 406
    CONFLICT = 409
    GONE = 410
    UNPROCESSABLE_ENTITY = 422
    TOO_MANY_REQUESTS = 429

    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504


STATUS_DESCRIPTIONS = {
    HttpStatusCode.OK: "OK",
    HttpStatusCode.CREATED: "Created",
    HttpStatusCode.ACCEPTED: "Accepted",
    HttpStatusCode.NO_CONTENT: "No Content",
    HttpStatusCode.MOVED_PERMANENTLY: "Moved Permanently",
    HttpStatusCode.FOUND: "Found",
    HttpStatusCode.SEE_OTHER: "See Other",
    HttpStatusCode.NOT_MODIFIED: "Not Modified",
    HttpStatusCode.TEMPORARY_REDIRECT: "Temporary Redirect",
    HttpStatusCode.PERMANENT_REDIRECT: "Permanent Redirect",
    HttpStatusCode.BAD_REQUEST: "Bad Request",
    HttpStatusCode.UNAUTHORIZED: "Unauthorized",
    HttpStatusCode.PAYMENT_REQUIRED: "Payment Required",
    HttpStatusCode.FORBIDDEN: "Forbidden",
    HttpStatusCode.NOT_FOUND: "Not Found",
    HttpStatusCode.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HttpStatusCode.NOT_ACCEPTABLE: "Not Acceptable",
    HttpStatusCode.CONFLICT: "Conflict",
    HttpStatusCode.GONE: "Gone",
    HttpStatusCode.UNPROCESSABLE_ENTITY: "Unprocessable Entity",
    HttpStatusCode.TOO_MANY_REQUESTS: "Too Many Requests",
    HttpStatusCode.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HttpStatusCode.NOT_IMPLEMENTED: "Not Implemented",
    HttpStatusCode.BAD_GATEWAY: "Bad Gateway",
    HttpStatusCode.SERVICE_UNAVAILABLE: "Service Unavailable",
    HttpStatusCode.GATEWAY_TIMEOUT: "Gateway Timeout",
}


def status_description(code: int) -> str:
    """Return the standard reason phrase for a status code, or ``HTTP <code>`` for unlisted codes."""
    try:
        return STATUS_DESCRIPTIONS[HttpStatusCode(code)]
    except ValueError:
        return f"HTTP {int(code)}"


def is_success(code: int) -> bool:
    return 200 <= code < 300


def is_redirection(code: int) -> bool:
    return 300 <= code < 400


def is_client_error(code: int) -> bool:
    return 400 <= code < 500


def is_server_error(code: int) -> bool:
    return 500 <= code < 600


class OpenApiDataType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


DATA_TYPE_FORMATS = {
    OpenApiDataType.STRING: {
        "date": "Date (RFC3339 full-date)",
        "date-time": "DateTime (RFC3339 date-time)",
        "password": "Password (obscured in Swagger UI)",
        "byte": "Base64-encoded characters",
        "binary": "Binary data",
        "email": "Email address",
        "uuid": "UUID string",
        "uri": "URI string",
        "hostname": "Hostname",
        "ipv4": "IPv4 address",
        "ipv6": "IPv6 address",
    },
    OpenApiDataType.NUMBER: {
        "float": "Floating point number",
        "double": "Double precision floating point number",
    },
    OpenApiDataType.INTEGER: {
        "int32": "32-bit integer",
        "int64": "64-bit integer",
    },
    OpenApiDataType.BOOLEAN: {},
    OpenApiDataType.ARRAY: {},
    OpenApiDataType.OBJECT: {},
}

DEFAULT_FORMATS = {
    OpenApiDataType.NUMBER: "float",
    OpenApiDataType.INTEGER: "int32",
}


def data_type_schema(data_type: OpenApiDataType) -> dict:
    """Schema fragment for a bare data type, including its default format."""
    schema: dict = {"type": data_type.value}
    if data_type in DEFAULT_FORMATS:
        schema["format"] = DEFAULT_FORMATS[data_type]
    if data_type is OpenApiDataType.ARRAY:
        schema["items"] = {"type": "string"}
    elif data_type is OpenApiDataType.OBJECT:
        schema["properties"] = {}
    return schema


class ResponseType(str, Enum):
    SINGLE = "single"
    COLLECTION = "collection"
    PAGINATED = "paginated"


PAGINATED_RESPONSE_ENVELOPE = {
    "type": "object",
    "properties": {
        "data": {"type": "array", "items": {}},
        "meta": {
            "type": "object",
            "properties": {
                "current_page": {"type": "integer"},
                "from": {"type": "integer"},
                "last_page": {"type": "integer"},
                "per_page": {"type": "integer"},
                "to": {"type": "integer"},
                "total": {"type": "integer"},
            },
        },
        "links": {
            "type": "object",
            "properties": {
                "first": {"type": "string"},
                "last": {"type": "string"},
                "prev": {"type": "string", "nullable": True},
                "next": {"type": "string", "nullable": True},
            },
        },
    },
}


def wrap_response(item: dict, response_type: ResponseType) -> dict:
    """Wrap an item schema in the envelope for the given response type."""
    if response_type is ResponseType.COLLECTION:
        return {"type": "array", "items": item}
    if response_type is ResponseType.PAGINATED:
        envelope = copy.deepcopy(PAGINATED_RESPONSE_ENVELOPE)
        envelope["properties"]["data"]["items"] = item
        return envelope
    return item
