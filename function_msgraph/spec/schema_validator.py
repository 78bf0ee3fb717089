"""Schema validator — structural validation of the function Input.

Walks the Input schema by hand and reports every violation together with
the field path where it occurred (``.groups[1]``, ``.identity.type``). Only
the keywords the Input schema uses are understood: type, enum, minLength,
required, properties, and items (optionally a ``oneOf`` of item schemas).
"""

from __future__ import annotations

from function_msgraph.spec.schema import get_schema

_JSON_TYPES = {
    "string": str,
    "boolean": bool,
    "array": list,
    "object": dict,
    "null": type(None),
}


def validate_input(data: dict) -> list[str]:
    """Validate a parsed function Input against the schema.

    Args:
        data: The Input document as a dict.

    Returns:
        List of error messages. Empty list means valid.
    """
    issues: list[str] = []
    _check(data, get_schema(), "", issues)
    return issues


def _check(value, schema: dict, path: str, issues: list[str]) -> None:
    where = path or "/"
    expected = schema.get("type")
    if expected and not isinstance(value, _JSON_TYPES[expected]):
        issues.append(f"{where}: expected {expected}, got {_json_type(value)}")
        return

    if "enum" in schema and value not in schema["enum"]:
        allowed = ", ".join(str(v) for v in schema["enum"])
        issues.append(f"{where}: {value!r} is not one of: {allowed}")

    if isinstance(value, str) and len(value) < schema.get("minLength", 0):
        issues.append(f"{where}: must not be empty")

    if isinstance(value, dict):
        missing = [name for name in schema.get("required", []) if name not in value]
        for name in missing:
            issues.append(f"{where}: missing required field {name!r}")
        properties = schema.get("properties", {})
        for name, child in value.items():
            if name in properties:
                _check(child, properties[name], f"{path}.{name}", issues)

    if isinstance(value, list) and "items" in schema:
        for i, item in enumerate(value):
            _check_item(item, schema["items"], f"{path}[{i}]", issues)


def _check_item(item, schema: dict, path: str, issues: list[str]) -> None:
    options = schema.get("oneOf")
    if options is None:
        _check(item, schema, path, issues)
        return
    for option in options:
        trial: list[str] = []
        _check(item, option, path, trial)
        if not trial:
            return
    issues.append(f"{path}: item does not match any of the allowed schemas")


def _json_type(value) -> str:
    for name, py_type in _JSON_TYPES.items():
        if isinstance(value, py_type):
            return name
    if isinstance(value, (int, float)):
        return "number"
    return type(value).__name__
