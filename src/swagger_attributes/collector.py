"""Route collection and handler resolution.

The host application supplies routes; this module turns each route into an
:class:`EndpointDescriptor` carrying the handler's annotation records.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Protocol

from pydantic import BaseModel, ConfigDict, Field

from .annotations import OpenApi, find_annotation, get_annotations
from .importing import import_string

logger = logging.getLogger(__name__)


class Route(BaseModel):
    """One registered route: URL template, HTTP methods and handler action.

    ``action`` is a callable, or an import string such as
    ``"app.controllers:UserController.show"`` or ``"app.views:list_users"``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    uri: str
    methods: list[str] = Field(default_factory=lambda: ["GET"])
    action: Any
    name: str | None = None


class EndpointCollector(Protocol):
    def list_routes(self) -> Iterable[Route]: ...


class RouteTable:
    """In-memory route table, in registration order."""

    def __init__(self, routes: Iterable[Route] = ()):
        self.routes: list[Route] = list(routes)

    def add(self, methods: str | list[str], uri: str, action: Any, name: str | None = None) -> Route:
        if isinstance(methods, str):
            methods = [methods]
        route = Route(uri=uri, methods=[m.upper() for m in methods], action=action, name=name)
        self.routes.append(route)
        return route

    def list_routes(self) -> list[Route]:
        return list(self.routes)


def as_collector(source: Any) -> EndpointCollector:
    """Accept a collector, an iterable of routes, or a callable returning either."""
    if hasattr(source, "list_routes"):
        return source
    if callable(source):
        return as_collector(source())
    return RouteTable(source)


@dataclass(frozen=True)
class Handler:
    func: Callable
    method_name: str
    controller: str | None = None


class HandlerCache:
    """Memoizes handler lookups for one generation run."""

    def __init__(self):
        self._entries: dict[tuple[str, str], Handler | None] = {}
        self.hits = 0

    def get_or_resolve(self, key: tuple[str, str], resolve: Callable[[], Handler | None]) -> Handler | None:
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        handler = resolve()
        self._entries[key] = handler
        return handler


@dataclass
class EndpointDescriptor:
    handler: Handler
    uri: str
    methods: list[str]
    annotations: list[BaseModel]

    @property
    def primary(self) -> OpenApi:
        return find_annotation(self.annotations, OpenApi)


def resolve_handler(action: Any, cache: HandlerCache) -> Handler | None:
    """Resolve a route action to its handler function, or None if it cannot be found."""
    if isinstance(action, str):
        module_name, sep, qualname = action.partition(":")
        if not sep or not qualname:
            logger.debug("Skipping action %r: expected 'module:qualname'", action)
            return None
        owner, _, method_name = qualname.rpartition(".")
        key = (f"{module_name}:{owner}" if owner else module_name, method_name)
        return cache.get_or_resolve(key, lambda: _import_handler(action, owner, method_name))

    func = getattr(action, "__func__", action)
    if not callable(func):
        return None
    owner, _, method_name = getattr(func, "__qualname__", "").rpartition(".")
    if not method_name:
        return None
    key = (f"{getattr(func, '__module__', '')}:{owner}@{id(func):x}", method_name)
    controller = owner.rpartition(".")[2]
    if controller in ("", "<locals>"):
        controller = None
    return cache.get_or_resolve(key, lambda: Handler(func=func, method_name=method_name, controller=controller))


def describe(route: Route, cache: HandlerCache) -> EndpointDescriptor | None:
    """Build the descriptor for a documented route; None when the route is not documented."""
    handler = resolve_handler(route.action, cache)
    if handler is None:
        logger.debug("Skipping %s: handler %r cannot be resolved", route.uri, route.action)
        return None
    annotations = get_annotations(handler.func)
    if find_annotation(annotations, OpenApi) is None:
        return None
    return EndpointDescriptor(
        handler=handler,
        uri=route.uri,
        methods=[m.upper() for m in route.methods],
        annotations=annotations,
    )


def _import_handler(action: str, owner: str, method_name: str) -> Handler | None:
    try:
        func = import_string(action)
    except ImportError as e:
        logger.debug("Cannot import handler %r: %s", action, e)
        return None
    func = getattr(func, "__func__", func)
    if not callable(func) or inspect.isclass(func):
        return None
    return Handler(func=func, method_name=method_name, controller=owner.rpartition(".")[2] or None)
