"""Skip policy — decide whether a Graph query can be bypassed.

Graph is rate limited, so once a target already holds data a composition
may opt out of re-querying it on every reconcile. Operations exist to force
a fresh read, so they never skip.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from function_msgraph.document.nodes import NOT_FOUND, NodeKind, kind_of

SKIP_REASON = "Target already has data, skipped query to avoid throttling"


class InvocationMode(Enum):
    """How the function was invoked."""

    PIPELINE = "pipeline"  # Composition pipeline step
    OPERATION = "operation"  # Cron- or watch-triggered operation


@dataclass
class SkipDecision:
    """Result of evaluating the skip policy."""

    skip: bool
    reason: str = ""


def has_data(value: Any) -> bool:
    """Return True for a present scalar or a non-empty list/object."""
    if value is NOT_FOUND:
        return False
    if kind_of(value) is NodeKind.SCALAR:
        return True
    return len(value) > 0


def should_skip(existing: Any, skip_flag: bool, mode: InvocationMode) -> bool:
    """Return True when the query should be skipped.

    Args:
        existing: The current target value, or NOT_FOUND.
        skip_flag: The input's ``skipQueryWhenTargetHasData`` setting.
        mode: Invocation mode; OPERATION always queries.
    """
    if mode is InvocationMode.OPERATION:
        return False
    return skip_flag and has_data(existing)


class SkipPolicy:
    """Evaluates the skip rule and explains the outcome."""

    def __init__(self, skip_flag: bool = False, mode: InvocationMode = InvocationMode.PIPELINE):
        self.skip_flag = skip_flag
        self.mode = mode

    def evaluate(self, existing: Any) -> SkipDecision:
        if self.mode is InvocationMode.OPERATION:
            return SkipDecision(skip=False, reason="operations always query")
        if not self.skip_flag:
            return SkipDecision(skip=False, reason="skipQueryWhenTargetHasData is not set")
        if not has_data(existing):
            return SkipDecision(skip=False, reason="target has no data")
        return SkipDecision(skip=True, reason=SKIP_REASON)
