"""Drift detection — detect divergence between recorded and fresh query results.

Drift happens when the value an operation finds at its target (written by an
earlier run) no longer matches what Graph returns now: a user was renamed, a
group gained members, an object was recreated with a new ID. The boolean is
surfaced as an annotation so users and automation can react to it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from function_msgraph.document.nodes import NOT_FOUND, Document, NodeKind, kind_of
from function_msgraph.document.paths import format_path, lookup


@dataclass
class DriftReport:
    """Outcome of comparing one target's observed and computed values."""

    target: str
    observed: Any
    computed: Any
    has_drift: bool

    def summary(self) -> str:
        if self.observed is NOT_FOUND:
            return f"{self.target}: no previous value, first population counts as drift"
        if not self.has_drift:
            return f"{self.target}: no drift detected"
        return f"{self.target}: DRIFT detected"


def has_drifted(observed: Any, computed: Any) -> bool:
    """Return True unless the two values are structurally equal.

    A NOT_FOUND observation always counts as drift.
    """
    if observed is NOT_FOUND or computed is NOT_FOUND:
        return True
    return not _equal(observed, computed)


def _equal(a: Any, b: Any) -> bool:
    kind = kind_of(a)
    if kind is not kind_of(b):
        return False

    if kind is NodeKind.OBJECT:
        if a.keys() != b.keys():
            return False
        return all(_equal(a[k], b[k]) for k in a)

    if kind is NodeKind.LIST:
        if len(a) != len(b):
            return False
        return all(_equal(x, y) for x, y in zip(a, b))

    return _scalar_type(a) == _scalar_type(b) and a == b


def _scalar_type(value: Any) -> str:
    # bool is an int subclass; int and float are both JSON numbers.
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if value is None:
        return "null"
    return "string"


class DriftDetector:
    """Compares a target's pre-invocation value with a freshly computed one."""

    def __init__(self, before: Document):
        self.before = before

    def check(self, target: list[str], computed: Any) -> DriftReport:
        observed = lookup(self.before, target)
        return DriftReport(
            target=format_path(target),
            observed=observed,
            computed=computed,
            has_drift=has_drifted(observed, computed),
        )
