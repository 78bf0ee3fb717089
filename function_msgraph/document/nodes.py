"""Document model — the three roots an invocation reads from and writes to.

A document is a plain JSON-like tree. Every node is exactly one of three
kinds: an object (``dict``), a list, or a scalar (string, number, bool or
null). ``spec`` and ``status`` live inside the resource; ``context`` is a
sibling document carried alongside it through the pipeline.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from function_msgraph.document.errors import UnsupportedNodeError


class NodeKind(Enum):
    """The closed set of node kinds a document may contain."""

    OBJECT = "object"
    LIST = "list"
    SCALAR = "scalar"


class _Missing(Enum):
    NOT_FOUND = "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


# Returned by non-raising lookups when a path does not resolve.
NOT_FOUND = _Missing.NOT_FOUND

_SCALAR_TYPES = (str, int, float, bool, type(None))


def kind_of(value: Any) -> NodeKind:
    """Classify a node, rejecting anything that is not JSON-shaped."""
    if isinstance(value, dict):
        return NodeKind.OBJECT
    if isinstance(value, list):
        return NodeKind.LIST
    if isinstance(value, _SCALAR_TYPES):
        return NodeKind.SCALAR
    raise UnsupportedNodeError(type(value).__name__)


class Root(Enum):
    """Named document roots. Only STATUS and CONTEXT accept writes."""

    SPEC = "spec"
    STATUS = "status"
    CONTEXT = "context"

    @property
    def writable(self) -> bool:
        return self is not Root.SPEC


ROOT_NAMES = {root.value for root in Root}
WRITABLE_ROOTS = {root.value for root in Root if root.writable}


@dataclass
class Document:
    """The resource plus its side-channel context for one invocation."""

    resource: dict = field(default_factory=dict)
    context: dict = field(default_factory=dict)

    def root(self, name: str) -> Any:
        """Return the node for a root name, or NOT_FOUND."""
        if name == Root.CONTEXT.value:
            return self.context
        if name in (Root.SPEC.value, Root.STATUS.value):
            return self.resource.get(name, NOT_FOUND)
        return NOT_FOUND

    def copy(self) -> Document:
        return Document(
            resource=copy.deepcopy(self.resource),
            context=copy.deepcopy(self.context),
        )
