"""Path-addressable document engine.

This package provides the primitives every invocation is built on:
- Nodes: the document model and its closed set of node kinds
- Paths: parsing dotted/bracketed paths and resolving them
- Writer: copy-on-write updates that keep sibling data intact
"""

from function_msgraph.document.errors import (
    DocumentError,
    PathNotFoundError,
    PathParseError,
    ReferenceTypeError,
    TypeConflictError,
    UnrecognizedTargetError,
    UnsupportedNodeError,
)
from function_msgraph.document.nodes import NOT_FOUND, Document, NodeKind, Root, kind_of
from function_msgraph.document.paths import (
    Arity,
    format_path,
    lookup,
    parse_path,
    resolve,
    resolve_reference_field,
)
from function_msgraph.document.writer import parse_target, set_value

__all__ = [
    "Arity",
    "Document",
    "DocumentError",
    "NOT_FOUND",
    "NodeKind",
    "PathNotFoundError",
    "PathParseError",
    "ReferenceTypeError",
    "Root",
    "TypeConflictError",
    "UnrecognizedTargetError",
    "UnsupportedNodeError",
    "format_path",
    "kind_of",
    "lookup",
    "parse_path",
    "parse_target",
    "resolve",
    "resolve_reference_field",
    "set_value",
]
