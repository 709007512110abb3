"""Read typed field declarations from Google-style docstring sections.

A section looks like::

    Attributes:
        id (int): Primary key.
        email (str | None): Contact address.
"""

import inspect
import re

_ENTRY_RE = re.compile(r"^(\w+)\s*\((.+?)\)\s*:\s*(.*)$")


def parse_field_section(doc: str | None, headers: tuple[str, ...]) -> list[tuple[str, str, str]]:
    """Return ``(name, type, description)`` entries of the first matching section."""
    if not doc:
        return []

    lines = inspect.cleandoc(doc).splitlines()
    entries = []
    in_section = False
    section_indent = None

    for line in lines:
        stripped = line.strip()
        if not in_section:
            if stripped.rstrip(":") in headers and stripped.endswith(":"):
                in_section = True
            continue

        if not stripped:
            continue
        indent = len(line) - len(line.lstrip())
        if indent == 0:
            break
        if section_indent is None:
            section_indent = indent
        if indent > section_indent:
            # Continuation of the previous description.
            if entries:
                name, type_token, description = entries[-1]
                entries[-1] = (name, type_token, f"{description} {stripped}".strip())
            continue

        match = _ENTRY_RE.match(stripped)
        if match:
            entries.append((match.group(1), match.group(2).strip(), match.group(3).strip()))

    return entries
