"""Document writer — non-destructive, copy-on-write updates at a path.

Writes only ever land under ``status`` or ``context``. Missing intermediate
objects are created; existing objects are descended into; anything else in
the way is a conflict. The final key is overwritten and every sibling key
along the path is left alone.
"""

from __future__ import annotations

import copy
from typing import Any

from function_msgraph.document.errors import (
    PathParseError,
    TypeConflictError,
    UnrecognizedTargetError,
)
from function_msgraph.document.nodes import (
    NOT_FOUND,
    WRITABLE_ROOTS,
    Document,
    NodeKind,
    Root,
    kind_of,
)
from function_msgraph.document.paths import format_path, parse_path


def parse_target(raw: str | None) -> list[str]:
    """Parse a write target, accepting only ``status.*`` and ``context.*``."""
    if raw is None:
        raw = ""
    if not isinstance(raw, str):
        raise UnrecognizedTargetError(str(raw))
    try:
        segments = parse_path(raw)
    except PathParseError:
        raise UnrecognizedTargetError(raw) from None
    if len(segments) < 2 or segments[0] not in WRITABLE_ROOTS:
        raise UnrecognizedTargetError(raw)
    return segments


def set_value(document: Document, segments: list[str], value: Any) -> Document:
    """Return a copy of ``document`` with ``value`` written at ``segments``.

    The input document is never modified.

    Raises:
        UnrecognizedTargetError: if the path is not rooted at status/context.
        TypeConflictError: if a list or scalar sits where an object is needed.
    """
    path = format_path(segments)
    if len(segments) < 2 or segments[0] not in WRITABLE_ROOTS:
        raise UnrecognizedTargetError(path)

    updated = document.copy()
    root = segments[0]
    if root == Root.CONTEXT.value:
        node = updated.context
    else:
        node = _ensure_object(updated.resource, root, path)

    for segment in segments[1:-1]:
        node = _ensure_object(node, segment, path)

    node[segments[-1]] = copy.deepcopy(value)
    return updated


def _ensure_object(parent: dict, key: str, path: str) -> dict:
    child = parent.get(key, NOT_FOUND)
    if child is NOT_FOUND:
        child = parent[key] = {}
        return child
    kind = kind_of(child)
    if kind is not NodeKind.OBJECT:
        raise TypeConflictError(path, key, kind.value)
    return child
