"""Errors raised by the path-addressable document engine."""

from __future__ import annotations


class DocumentError(Exception):
    """Base class for path parsing, resolution and write failures."""


class PathParseError(DocumentError):
    """The raw path string is malformed."""

    def __init__(self, raw: str, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"invalid path {raw!r}: {reason}")


class PathNotFoundError(DocumentError):
    """A node along the path is missing or cannot be descended into."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"{path} not found")


class ReferenceTypeError(DocumentError):
    """A reference resolved to a value of the wrong shape."""

    def __init__(self, path: str, expected: str):
        self.path = path
        self.expected = expected
        super().__init__(f"{path} is not {expected}")


class TypeConflictError(DocumentError):
    """A write was blocked by a non-object intermediate node."""

    def __init__(self, path: str, segment: str, found_kind: str):
        self.path = path
        self.segment = segment
        self.found_kind = found_kind
        super().__init__(
            f"cannot write {path}: {segment!r} holds a {found_kind}, not an object"
        )


class UnrecognizedTargetError(DocumentError):
    """A write target is empty, malformed, or rooted outside status/context."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Unrecognized target field: {raw}")


class UnsupportedNodeError(DocumentError):
    """A node holds a value that is not JSON-shaped (e.g. a YAML timestamp)."""

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(f"unsupported document node type: {type_name}")
