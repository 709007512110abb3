"""Translate validation rules into request-body schema properties.

Rules follow the ``"required|integer|min:18"`` convention: a ``|``-separated
string or an explicit list of tokens per field. Tokens are applied in
declaration order; unknown tokens are ignored.
"""

from typing import Any, Mapping

REQUIRED_RULES = {"required", "required_with", "required_without"}

_BOUND_KEYS = {
    "string": ("minLength", "maxLength"),
    "integer": ("minimum", "maximum"),
    "array": ("minItems", "maxItems"),
}


def normalize_rules(rule_set: Any) -> list:
    """Return the rule tokens of a single field as a list."""
    if rule_set is None:
        return []
    if isinstance(rule_set, str):
        return [token.strip() for token in rule_set.split("|") if token.strip()]
    if isinstance(rule_set, (list, tuple)):
        return list(rule_set)
    return [rule_set]


def translate_rules(rules: Mapping[str, Any]) -> tuple[dict[str, dict], list[str]]:
    """Translate ``{field: rules}`` into ``(properties, required)``."""
    properties: dict[str, dict] = {}
    required: list[str] = []

    for field, rule_set in rules.items():
        prop: dict = {"type": "string"}
        for rule in normalize_rules(rule_set):
            if not isinstance(rule, str):
                continue
            apply_rule(rule.strip(), prop)
            if _rule_name(rule) in REQUIRED_RULES and field not in required:
                required.append(field)
        properties[field] = prop

    return properties, required


def apply_rule(rule: str, prop: dict) -> None:
    """Apply one rule token to a property schema in place."""
    name, _, argument = rule.partition(":")

    if name.startswith("integer") or name == "numeric":
        prop["type"] = "integer"
    elif name == "boolean":
        prop["type"] = "boolean"
    elif name == "array":
        prop["type"] = "array"
        prop["items"] = {"type": "string"}
    elif name in ("min", "max"):
        bound = _parse_bound(argument)
        keys = _BOUND_KEYS.get(prop.get("type"))
        if bound is not None and keys:
            prop[keys[0] if name == "min" else keys[1]] = bound
    elif name == "email":
        prop["format"] = "email"
    elif name in ("date", "date_format"):
        prop["format"] = "date-time"
    elif name == "in":
        prop["enum"] = argument.split(",") if argument else []
    elif name == "uuid":
        prop["format"] = "uuid"
    elif name == "url":
        prop["format"] = "uri"
    elif name == "nullable":
        prop["nullable"] = True


def _rule_name(rule: str) -> str:
    return rule.strip().partition(":")[0]


def _parse_bound(text: str) -> int | None:
    """Parse a size bound, truncating fractional values toward zero."""
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return None
