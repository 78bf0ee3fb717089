"""Path parsing and resolution.

A path is a dot-separated list of segments whose first segment names a
document root (``spec``, ``status`` or ``context``). Keys that contain dots
or slashes are written as bracket literals, copied verbatim:

    status.groups
    context.[apiextensions.crossplane.io/environment].groups

Resolution walks object keys only. It never mutates the document.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from function_msgraph.document.errors import (
    PathNotFoundError,
    PathParseError,
    ReferenceTypeError,
)
from function_msgraph.document.nodes import NOT_FOUND, Document, NodeKind, kind_of


class Arity(Enum):
    """Shape a reference field must resolve to."""

    SINGLE = "single"  # groupRef
    MULTIPLE = "multiple"  # usersRef, groupsRef, servicePrincipalsRef


def parse_path(raw: str) -> list[str]:
    """Split a raw path into segments.

    Dots separate segments outside of bracket literals. A bracket literal
    runs from ``[`` to the next ``]`` and becomes one segment as-is.

    Raises:
        PathParseError: for an empty path or an unterminated ``[``.
    """
    if not raw:
        raise PathParseError(raw, "path is empty")

    segments: list[str] = []
    current: list[str] = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch == "[":
            end = raw.find("]", i + 1)
            if end == -1:
                raise PathParseError(raw, "unterminated '['")
            if current:
                segments.append("".join(current))
                current = []
            segments.append(raw[i + 1 : end])
            i = end + 1
            continue
        if ch == ".":
            if current:
                segments.append("".join(current))
                current = []
        else:
            current.append(ch)
        i += 1

    if current:
        segments.append("".join(current))
    if not segments:
        raise PathParseError(raw, "path has no segments")
    return segments


def format_path(segments: list[str]) -> str:
    """Render segments back into a path string, bracketing where needed."""
    parts = []
    for segment in segments:
        if not segment or any(c in segment for c in ".[]/"):
            parts.append(f"[{segment}]")
        else:
            parts.append(segment)
    return ".".join(parts)


def resolve(document: Document, segments: list[str], raw: str | None = None) -> Any:
    """Read the value at ``segments``.

    Args:
        document: The invocation document.
        segments: Parsed path; the first segment selects the root.
        raw: The original path string, echoed in errors. Defaults to the
            formatted segments.

    Raises:
        PathParseError: if the path names only a root.
        PathNotFoundError: if any node is missing or is not an object where
            further descent is required.
    """
    path = raw if raw is not None else format_path(segments)
    if len(segments) < 2:
        raise PathParseError(path, "a path must address a key beneath its root")

    node = document.root(segments[0])
    if node is NOT_FOUND:
        raise PathNotFoundError(path)

    for segment in segments[1:]:
        if kind_of(node) is not NodeKind.OBJECT or segment not in node:
            raise PathNotFoundError(path)
        node = node[segment]
    return node


def lookup(document: Document, segments: list[str]) -> Any:
    """Like :func:`resolve`, but returns NOT_FOUND instead of raising."""
    try:
        return resolve(document, segments)
    except PathNotFoundError:
        return NOT_FOUND


def resolve_reference_field(document: Document, raw: str, arity: Arity) -> str | list[str]:
    """Resolve a ``*Ref`` input field to the parameter it points at.

    SINGLE references must land on a string. MULTIPLE references must land
    on a list of strings; null entries are dropped and an empty result is
    returned as-is.
    """
    value = resolve(document, parse_path(raw), raw)

    if arity is Arity.SINGLE:
        if not isinstance(value, str):
            raise ReferenceTypeError(raw, "a string")
        return value

    if not isinstance(value, list):
        raise ReferenceTypeError(raw, "a list of strings")
    for item in value:
        if item is not None and not isinstance(item, str):
            raise ReferenceTypeError(raw, "a list of strings")
    return [item for item in value if item is not None]
