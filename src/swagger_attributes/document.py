"""Build, serialize and write the OpenAPI document."""

import json
import logging
import re
from pathlib import Path
from typing import Any

import yaml

from .collector import HandlerCache, as_collector, describe
from .config import GeneratorConfig
from .operation import OperationAssembler
from .schema.models import ChainedModelFieldProvider, DeclarativeModelFieldProvider, ModelFieldProvider, ModelSchemaResolver, StaticModelFieldProvider
from .schema.resources import ResourceSchemaResolver, TransformIntrospector

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.0"

_JSON_SUFFIX_RE = re.compile(r"\.json$", re.IGNORECASE)
_YAML_SUFFIX_RE = re.compile(r"\.ya?ml$", re.IGNORECASE)


class OutputError(OSError):
    """The generated document could not be written."""


class DocumentState:
    """The document under construction for one run."""

    def __init__(self, config: GeneratorConfig):
        self.document: dict[str, Any] = {
            "openapi": OPENAPI_VERSION,
            "info": config.info(),
            "servers": [server.model_dump() for server in config.servers],
            "paths": {},
            "components": {
                "schemas": {},
                "securitySchemes": dict(config.security_schemes),
            },
            "tags": [],
        }
        self._seen_tags: set[str] = set()

    def add_tag(self, name: str) -> None:
        if name in self._seen_tags:
            return
        self._seen_tags.add(name)
        self.document["tags"].append({"name": name, "description": f"{name} endpoints"})

    def add_operation(self, path: str, method: str, operation: dict) -> None:
        self.document["paths"].setdefault(path, {})[method.lower()] = operation


class DocumentBuilder:
    """Walks the collected routes and assembles the OpenAPI document."""

    def __init__(
        self,
        config: GeneratorConfig,
        model_provider: ModelFieldProvider | None = None,
        introspector: TransformIntrospector | None = None,
    ):
        self.config = config
        if model_provider is None:
            model_provider = DeclarativeModelFieldProvider()
            if config.models:
                model_provider = ChainedModelFieldProvider(StaticModelFieldProvider(config.models), model_provider)
        self.model_resolver = ModelSchemaResolver(model_provider)
        self.resource_resolver = ResourceSchemaResolver(self.model_resolver, introspector)

    def build(self, source: Any) -> dict:
        """Build the document from a collector, an iterable of routes, or a callable returning either."""
        state = DocumentState(self.config)
        assembler = OperationAssembler(self.config, self.model_resolver, self.resource_resolver)
        cache = HandlerCache()

        documented = 0
        for route in as_collector(source).list_routes():
            descriptor = describe(route, cache)
            if descriptor is None:
                continue
            state.add_tag(descriptor.primary.tag)
            path, method, operation = assembler.assemble(descriptor)
            state.add_operation(path, method.value, operation)
            documented += 1

        state.document["components"]["schemas"].update(assembler.component_schemas)
        logger.info(
            "Documented %d operations across %d paths (%d handler cache hits)",
            documented,
            len(state.document["paths"]),
            cache.hits,
        )
        return state.document


def serialize(document: dict, fmt: str = "json") -> str:
    """Serialize to pretty JSON or block-style YAML."""
    if fmt.lower() in ("yaml", "yml"):
        return yaml.safe_dump(
            document,
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
            indent=2,
            width=120,
        )
    return json.dumps(document, indent=4, ensure_ascii=False)


def normalize_output_path(path: Path | str, fmt: str = "json") -> Path:
    """Make the file suffix match the format, replacing a .json/.yaml/.yml suffix if present."""
    text = str(path)
    if fmt.lower() in ("yaml", "yml"):
        if not _YAML_SUFFIX_RE.search(text):
            text = _JSON_SUFFIX_RE.sub("", text) + ".yaml"
    elif not _JSON_SUFFIX_RE.search(text):
        text = _YAML_SUFFIX_RE.sub("", text) + ".json"
    return Path(text)


def write_document(document: dict, output_path: Path | str, fmt: str = "json") -> Path:
    """Write the document, replacing any stale file. Returns the final path."""
    requested = Path(output_path)
    final_path = normalize_output_path(requested, fmt)
    content = serialize(document, fmt)

    try:
        final_path.parent.mkdir(parents=True, exist_ok=True)
        for stale in {requested, final_path}:
            if stale.is_file():
                stale.unlink()
        with final_path.open("w", encoding="utf-8") as fh:
            fh.write(content)
    except OSError as e:
        raise OutputError(f"Cannot write {final_path}: {e}") from e
    return final_path


class SwaggerGenerator:
    """One-call facade: build the document from routes and write it."""

    def __init__(self, config: GeneratorConfig, **builder_options: Any):
        self.config = config
        self.builder = DocumentBuilder(config, **builder_options)

    def generate(self, source: Any, output_path: Path | str | None = None, fmt: str | None = None) -> Path:
        fmt = (fmt or self.config.format).lower()
        document = self.builder.build(source)
        return write_document(document, output_path or self.config.output_file, fmt)
