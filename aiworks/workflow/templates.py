"""``{{path}}`` placeholder resolution against an execution namespace."""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import BaseModel

TEMPLATE_PATTERN = re.compile(r"\{\{\s*([\w-]+(?:\.[\w-]+)*)\s*\}\}")

_MISSING = object()


def resolve_path(namespace: dict[str, Any], path: str, default: Any = None) -> Any:
    """Walk a dotted path through dicts, lists and pydantic models.

    Example:
        >>> resolve_path({"fetch": {"data": {"items": [1, 2]}}}, "fetch.data.items.1")
        2
    """
    value = _walk(namespace, path)
    return default if value is _MISSING else value


def _walk(namespace: dict[str, Any], path: str) -> Any:
    parts = path.strip().split(".")
    if not parts or parts[0] not in namespace:
        return _MISSING

    value: Any = namespace[parts[0]]
    for key in parts[1:]:
        if isinstance(value, dict):
            if key not in value:
                return _MISSING
            value = value[key]
        elif isinstance(value, (list, tuple)) and key.lstrip("-").isdigit():
            index = int(key)
            if not -len(value) <= index < len(value):
                return _MISSING
            value = value[index]
        elif isinstance(value, BaseModel) and key in type(value).model_fields:
            value = getattr(value, key)
        else:
            return _MISSING
    return value


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def resolve_template(template: str, namespace: dict[str, Any]) -> Any:
    """Substitute ``{{path}}`` placeholders.

    A string that is exactly one placeholder resolves to the raw value, so
    ``"{{fetch.data}}"`` can hand a dict to the next node. Unresolvable
    placeholders are left as they are.
    """
    whole = TEMPLATE_PATTERN.fullmatch(template.strip())
    if whole:
        value = _walk(namespace, whole.group(1))
        return template if value is _MISSING else value

    def replacer(match: re.Match) -> str:
        value = _walk(namespace, match.group(1))
        if value is _MISSING:
            return match.group(0)
        return _stringify(value)

    return TEMPLATE_PATTERN.sub(replacer, template)


def resolve_value(value: Any, namespace: dict[str, Any]) -> Any:
    """Recursively resolve templates in nested parameter structures."""
    if isinstance(value, str):
        return resolve_template(value, namespace)
    if isinstance(value, dict):
        return {k: resolve_value(v, namespace) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_value(item, namespace) for item in value]
    return value


def render_text(template: str, namespace: dict[str, Any]) -> str:
    """Resolve a template and always return a string."""
    return _stringify(resolve_template(template, namespace))
