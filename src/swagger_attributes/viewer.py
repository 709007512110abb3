"""Serve the generated document and render the HTML viewer pages."""

import html
import json
from dataclasses import dataclass
from pathlib import Path
from string import Template

TEMPLATES_DIR = Path(__file__).parent / "templates"

VIEWERS = {
    "swagger": "swagger-ui.html",
    "redoc": "redoc.html",
}

NOT_GENERATED_MESSAGE = (
    "Swagger documentation has not been generated yet. Run the 'swagger-attributes generate' command."
)


@dataclass
class DocumentResponse:
    status: int
    content_type: str
    body: bytes


def serve_document(path: Path | str) -> DocumentResponse:
    """Return the stored document unchanged, or a 404 JSON error when it is missing."""
    path = Path(path)
    if not path.is_file():
        body = json.dumps({"error": NOT_GENERATED_MESSAGE}).encode("utf-8")
        return DocumentResponse(status=404, content_type="application/json", body=body)

    if path.suffix.lower() in (".yaml", ".yml"):
        content_type = "application/yaml"
    else:
        content_type = "application/json"
    return DocumentResponse(status=200, content_type=content_type, body=path.read_bytes())


def _render(viewer: str, title: str, document_url: str, options: dict | None) -> str:
    if viewer not in VIEWERS:
        raise ValueError(f"Unknown viewer {viewer!r}. Expected one of: {', '.join(VIEWERS)}")
    template = Template((TEMPLATES_DIR / VIEWERS[viewer]).read_text(encoding="utf-8"))
    return template.substitute(
        title=html.escape(title),
        document_url=json.dumps(document_url),
        options=json.dumps(options or {}),
    )


def render_swagger_ui(title: str, document_url: str, options: dict | None = None) -> str:
    return _render("swagger", title, document_url, options)


def render_redoc(title: str, document_url: str, options: dict | None = None) -> str:
    return _render("redoc", title, document_url, options)


def render_viewer(viewer: str, title: str, document_url: str, options: dict | None = None) -> str:
    """Render the page for the named viewer (``swagger`` or ``redoc``)."""
    return _render(viewer, title, document_url, options)
