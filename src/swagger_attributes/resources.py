"""Resource classes that transform model instances into response payloads.

Subclass :class:`JsonResource` and return a dict literal from ``to_dict``;
the schema generator reads that literal to document the payload shape.
"""

from typing import Any, Iterable


class JsonResource:
    """Wraps one model instance."""

    def __init__(self, resource: Any = None):
        self.resource = resource

    def __getattr__(self, name: str) -> Any:
        # Only called when normal lookup fails, so resource fields read as self.<field>.
        if name == "resource":
            raise AttributeError(name)
        return getattr(self.resource, name)

    def to_dict(self, request: Any = None) -> dict:
        if self.resource is None:
            return {}
        if isinstance(self.resource, dict):
            return dict(self.resource)
        return {k: v for k, v in vars(self.resource).items() if not k.startswith("_")}

    def when_loaded(self, relation: str, value: Any = None, default: Any = None) -> Any:
        """Return the relation (or ``value``) only if it is already loaded on the resource."""
        loaded = getattr(self.resource, "__dict__", {})
        if relation not in loaded:
            return default
        return loaded[relation] if value is None else value

    def resolve(self, request: Any = None) -> dict:
        data = self.to_dict(request)
        for hook in ("with_data", "additional", "with_meta"):
            extra = getattr(self, hook, None)
            if callable(extra):
                for key, value in extra(request).items():
                    data.setdefault(key, value)
        return data

    @classmethod
    def collection(cls, resources: Iterable[Any]) -> "AnonymousResourceCollection":
        return AnonymousResourceCollection(resources, collects=cls)


class ResourceCollection(JsonResource):
    """Wraps many model instances; ``collects`` names the item resource."""

    collects: type[JsonResource] | str | None = None

    def __init__(self, resource: Iterable[Any] = (), collects: type[JsonResource] | None = None):
        super().__init__(list(resource))
        if collects is not None:
            self.collects = collects

    def to_dict(self, request: Any = None) -> list:
        item_class = self.collects if isinstance(self.collects, type) else JsonResource
        return [item_class(item).resolve(request) for item in self.resource]


class AnonymousResourceCollection(ResourceCollection):
    """Collection built on the fly by ``SomeResource.collection(...)``."""
