"""Generator configuration.

One :class:`GeneratorConfig` is built per run, from an optional YAML file
followed by ``SWAGGER_*`` environment overrides, and passed explicitly to
the document builder.
"""

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError

from .schema.models import ModelDefinition

FORMATS = ("json", "yaml", "yml")

ENV_OVERRIDES = {
    "SWAGGER_TITLE": "title",
    "SWAGGER_DESCRIPTION": "description",
    "SWAGGER_VERSION": "version",
    "SWAGGER_FORMAT": "format",
    "SWAGGER_OUTPUT_FILE": "output_file",
    "SWAGGER_UI_ROUTE": "ui_route",
    "SWAGGER_ENABLE_UI": "enable_ui",
}

CONTACT_OVERRIDES = {
    "SWAGGER_CONTACT_NAME": "name",
    "SWAGGER_CONTACT_EMAIL": "email",
    "SWAGGER_CONTACT_URL": "url",
}


class ConfigError(Exception):
    """The configuration file cannot be read or is invalid."""


class Server(BaseModel):
    url: str
    description: str = ""


def _default_servers() -> list[Server]:
    return [Server(url="http://localhost", description="API Server")]


def _default_security_schemes() -> dict[str, Any]:
    return {"bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}}


def _default_security() -> list[dict[str, list]]:
    return [{"bearerAuth": []}]


class GeneratorConfig(BaseModel):
    title: str = "API Documentation"
    description: str = "API Documentation generated using Swagger Attributes"
    version: str = "1.0.0"
    contact: dict[str, str] = Field(default_factory=dict)
    servers: list[Server] = Field(default_factory=_default_servers)
    security_schemes: dict[str, Any] = Field(default_factory=_default_security_schemes)
    security: list[dict[str, list]] = Field(default_factory=_default_security)
    output_file: Path = Path("storage/api-docs/swagger.json")
    format: str = "json"
    enable_ui: bool = True
    ui_route: str = "api/documentation"
    viewer: str = "swagger"
    models: dict[str, ModelDefinition] = Field(default_factory=dict)

    def info(self) -> dict:
        info = {"title": self.title, "description": self.description, "version": self.version}
        info["contact"] = {k: v for k, v in self.contact.items() if v}
        return info


def load_config(path: Path | None = None, environ: Mapping[str, str] | None = None) -> GeneratorConfig:
    """Load configuration from a YAML file (optional) and environment overrides."""
    environ = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    if path is not None:
        try:
            loaded = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read config {path}: {e}") from e
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigError(f"Config {path} must be a mapping, got {type(loaded).__name__}")
        data = loaded or {}

    for env_name, key in ENV_OVERRIDES.items():
        if environ.get(env_name):
            data[key] = environ[env_name]

    contact = dict(data.get("contact") or {})
    for env_name, key in CONTACT_OVERRIDES.items():
        if environ.get(env_name):
            contact[key] = environ[env_name]
    if contact:
        data["contact"] = contact

    if environ.get("APP_URL") and "servers" not in data:
        data["servers"] = [{"url": environ["APP_URL"], "description": "API Server"}]

    try:
        config = GeneratorConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    if config.format.lower() not in FORMATS:
        raise ConfigError(f"Invalid format {config.format!r}. Allowed formats: {', '.join(FORMATS)}")
    return config
