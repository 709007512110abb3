"""Resolve ``"package.module:Qualified.name"`` import strings to objects."""

import importlib
from typing import Any


def import_string(path: str) -> Any:
    """Import an object from ``module:attr.path`` or dotted ``module.attr`` form.

    Raises ImportError when the module or attribute cannot be found.
    """
    if ":" in path:
        module_name, _, attr_path = path.partition(":")
        return _walk(importlib.import_module(module_name), attr_path, path)

    # Dotted form: import the longest importable module prefix.
    parts = path.split(".")
    for index in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:index])
        try:
            module = importlib.import_module(module_name)
        except ImportError:
            continue
        return _walk(module, ".".join(parts[index:]), path)
    raise ImportError(f"Cannot import {path!r}")


def resolve_object(target: Any) -> Any:
    """Return ``target`` itself, or the object a string import path names."""
    if isinstance(target, str):
        return import_string(target)
    return target


def _walk(obj: Any, attr_path: str, full_path: str) -> Any:
    for attr in filter(None, attr_path.split(".")):
        try:
            obj = getattr(obj, attr)
        except AttributeError as e:
            raise ImportError(f"Cannot import {full_path!r}: {e}") from e
    return obj
