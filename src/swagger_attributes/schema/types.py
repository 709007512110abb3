"""Map type tokens and database column types to JSON-Schema fragments.

Both mappers are total: an unknown token yields ``{"type": "string"}``.
Every call returns a fresh dict the caller may mutate.
"""

import copy
import re
import typing

NULL_MEMBERS = {"null", "none", "nonetype"}
IGNORED_UNION_MEMBERS = NULL_MEMBERS | {"mixed", "any"}

ARRAY_WRAPPERS = {
    "array", "collection", "list", "sequence", "iterable", "set",
    "frozenset", "tuple", "abstractset", "mutablesequence",
}
MAPPING_WRAPPERS = {"dict", "mapping", "mutablemapping", "ordereddict", "defaultdict"}
# Wrappers whose single parameter is the value type itself.
TRANSPARENT_WRAPPERS = {"mapped", "annotated", "final", "classvar", "required", "notrequired", "readonly"}

_GENERIC_RE = re.compile(r"^([\w.\\]+)\s*[<\[](.*)[>\]]$", re.DOTALL)
_COLUMN_PARAMS_RE = re.compile(r"\(.*?\)")

_SCALAR_TYPES = {
    "string": {"type": "string"},
    "str": {"type": "string"},
    "int": {"type": "integer"},
    "integer": {"type": "integer"},
    "float": {"type": "number", "format": "float"},
    "double": {"type": "number", "format": "float"},
    "decimal": {"type": "number", "format": "float"},
    "number": {"type": "number", "format": "float"},
    "bool": {"type": "boolean"},
    "boolean": {"type": "boolean"},
    "array": {"type": "array", "items": {"type": "string"}},
    "list": {"type": "array", "items": {"type": "string"}},
    "tuple": {"type": "array", "items": {"type": "string"}},
    "set": {"type": "array", "items": {"type": "string"}},
    "frozenset": {"type": "array", "items": {"type": "string"}},
    "object": {"type": "object", "properties": {}},
    "stdclass": {"type": "object", "properties": {}},
    "dict": {"type": "object", "properties": {}},
    "mapping": {"type": "object", "properties": {}},
    "typeddict": {"type": "object", "properties": {}},
    "model": {"type": "object", "properties": {}},
    "jsonresource": {"type": "object", "properties": {}},
    "collection": {"type": "array", "items": {"type": "object", "properties": {}}},
    "resourcecollection": {"type": "array", "items": {"type": "object", "properties": {}}},
    "datetime": {"type": "string", "format": "date-time"},
    "datetimeinterface": {"type": "string", "format": "date-time"},
    "carbon": {"type": "string", "format": "date-time"},
    "date": {"type": "string", "format": "date"},
    "time": {"type": "string", "format": "time"},
    "uuid": {"type": "string", "format": "uuid"},
    "bytes": {"type": "string", "format": "binary"},
}

_INTEGER_COLUMN = {"type": "integer"}
_NUMBER_COLUMN = {"type": "number", "format": "float"}
_STRING_COLUMN = {"type": "string"}
_GEOMETRIC_COLUMN = {"type": "string", "description": "PostgreSQL geometric type"}

_COLUMN_TYPES = {
    **dict.fromkeys(
        ["bigint", "int", "integer", "smallint", "tinyint", "mediumint", "int2", "int4", "int8",
         "serial", "bigserial", "smallserial"],
        _INTEGER_COLUMN,
    ),
    **dict.fromkeys(
        ["decimal", "double", "double precision", "float", "float4", "float8", "numeric", "real", "money"],
        _NUMBER_COLUMN,
    ),
    "boolean": {"type": "boolean"},
    "bool": {"type": "boolean"},
    "date": {"type": "string", "format": "date"},
    **dict.fromkeys(
        ["datetime", "datetime2", "timestamp", "timestamptz", "timestamp with time zone",
         "timestamp without time zone"],
        {"type": "string", "format": "date-time"},
    ),
    **dict.fromkeys(["json", "jsonb", "array"], {"type": "object", "properties": {}}),
    **dict.fromkeys(
        ["time", "timetz", "time with time zone", "time without time zone"],
        {"type": "string", "format": "time"},
    ),
    "uuid": {"type": "string", "format": "uuid"},
    "guid": {"type": "string", "format": "uuid"},
    **dict.fromkeys(["inet", "cidr", "macaddr"], _STRING_COLUMN),
    **dict.fromkeys(["point", "line", "lseg", "box", "path", "polygon", "circle"], _GEOMETRIC_COLUMN),
}


def map_type(token: str) -> dict:
    """Map a language-level type token (``?int``, ``string[]``, ``int | None``) to a schema."""
    token = (token or "").strip()
    if not token:
        return {"type": "string"}

    if token.startswith("?"):
        schema = map_type(token[1:])
        schema["nullable"] = True
        return schema

    if token.startswith("\\"):
        token = token[1:]
    token = re.sub(r"\btyping(_extensions)?\.", "", token)

    members = split_top_level(token, "|")
    if len(members) > 1:
        return _map_union(members)

    if token.endswith("[]"):
        return {"type": "array", "items": map_type(token[:-2])}

    match = _GENERIC_RE.match(token)
    if match:
        return _map_generic(_last_segment(match.group(1)).lower(), match.group(2))

    return copy.deepcopy(_SCALAR_TYPES.get(_last_segment(token).lower(), {"type": "string"}))


def map_column_type(token: str) -> dict:
    """Map a relational column type name (``VARCHAR(255)``, ``int4``, ``jsonb``) to a schema."""
    token = (token or "").strip().lower()
    if token.endswith("[]"):
        return {"type": "array", "items": map_column_type(token[:-2])}
    token = " ".join(_COLUMN_PARAMS_RE.sub("", token).split())
    return copy.deepcopy(_COLUMN_TYPES.get(token, _STRING_COLUMN))


def annotation_token(annotation) -> str:
    """Render a Python annotation (class, typing construct or string) as a type token."""
    if isinstance(annotation, str):
        return annotation
    if annotation is None or annotation is type(None):
        return "None"
    if isinstance(annotation, type) and not typing.get_args(annotation):
        return annotation.__name__
    return str(annotation)


def split_top_level(text: str, separator: str) -> list[str]:
    """Split on ``separator`` outside of any brackets."""
    parts = []
    depth = 0
    current = []
    for char in text:
        if char in "[<(":
            depth += 1
        elif char in "]>)":
            depth -= 1
        if char == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    parts.append("".join(current).strip())
    return [p for p in parts if p]


def _map_union(members: list[str]) -> dict:
    has_null = any(m.lower() in NULL_MEMBERS for m in members)
    remaining = [m for m in members if m.lower() not in IGNORED_UNION_MEMBERS]
    if not remaining:
        return {"type": "string"}
    schema = map_type(remaining[0])
    if has_null:
        schema["nullable"] = True
    return schema


def _map_generic(wrapper: str, inner: str) -> dict:
    params = split_top_level(inner, ",")
    params = [p for p in params if p != "..."]

    if wrapper == "optional":
        schema = map_type(params[0]) if params else {"type": "string"}
        schema["nullable"] = True
        return schema
    if wrapper == "union":
        return _map_union(params)
    if wrapper in TRANSPARENT_WRAPPERS:
        return map_type(params[0]) if params else {"type": "string"}
    if wrapper in MAPPING_WRAPPERS:
        return {"type": "object", "properties": {}}
    if wrapper in ARRAY_WRAPPERS:
        # array<K, V> carries the value type last.
        return {"type": "array", "items": map_type(params[-1]) if params else {"type": "string"}}
    return copy.deepcopy(_SCALAR_TYPES.get(wrapper, {"type": "string"}))


def _last_segment(name: str) -> str:
    return re.split(r"[.\\]", name)[-1]
