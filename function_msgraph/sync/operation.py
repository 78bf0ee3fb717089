"""Operation guard — the single-resource, self-healing invocation shape.

Operations run on a schedule or when a watched resource changes. Crossplane
hands the function exactly one watched resource under a fixed requirement
name instead of a composed pipeline state. The guard validates that shape,
and after the query has run it records the outcome as two annotations on the
resource so drift is visible without reading status.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping

from function_msgraph import TOOL_NAME

WATCHED_RESOURCE = "ops.crossplane.io/watched-resource"
COMPOSITE_FINALIZER = "composite.apiextensions.crossplane.io"
DESIRED_RESOURCE_NAME = "xr"

LAST_EXECUTION_ANNOTATION = f"{TOOL_NAME}/last-execution"
DRIFT_ANNOTATION = f"{TOOL_NAME}/last-execution-query-drift-detected"


class OperationError(Exception):
    """The operation request does not have the shape the function supports."""

    def __init__(self, message: str):
        super().__init__(f"operation: {message}")


class RequirementMissingError(OperationError):
    def __init__(self, name: str = WATCHED_RESOURCE):
        self.name = name
        super().__init__(f"no resource to process with name {name}")


class CardinalityError(OperationError):
    def __init__(self, expected: int, got: int):
        self.expected = expected
        self.got = got
        super().__init__(
            "incorrect number of resources sent to the function. "
            f"expected {expected}, got {got}"
        )


class EmptyResourceError(OperationError):
    def __init__(self):
        super().__init__("Resource.Object property in operation resource can not be empty")


class UnsupportedKindError(OperationError):
    def __init__(self):
        super().__init__(f"{TOOL_NAME} support only operations on composite resources")


def is_composite(resource: dict) -> bool:
    """Composite resources carry the composite finalizer; claims and MRs don't."""
    finalizers = (resource.get("metadata") or {}).get("finalizers") or []
    return COMPOSITE_FINALIZER in finalizers


class OperationGuard:
    """Validates and adapts an operation invocation."""

    def __init__(self, required_resources: Mapping[str, list[dict]] | None):
        self.required_resources = required_resources or {}

    def watched_resource(self) -> dict:
        """Return the single watched composite resource.

        Raises:
            RequirementMissingError: no watched-resource requirement at all.
            CardinalityError: not exactly one item under the requirement.
            EmptyResourceError: the item has no body.
            UnsupportedKindError: the item is not a composite resource.
        """
        if WATCHED_RESOURCE not in self.required_resources:
            raise RequirementMissingError()

        items = self.required_resources[WATCHED_RESOURCE] or []
        if len(items) != 1:
            raise CardinalityError(expected=1, got=len(items))

        resource = items[0]
        if not resource:
            raise EmptyResourceError()
        if not is_composite(resource):
            raise UnsupportedKindError()
        return resource


def merge_annotations(resource: dict, drifted: bool, executed_at: str) -> dict:
    """Return a copy of ``resource`` with the two execution annotations set.

    Other annotations are kept as they are.
    """
    merged = copy.deepcopy(resource)
    metadata = merged.setdefault("metadata", {})
    annotations = metadata.get("annotations") or {}
    annotations[LAST_EXECUTION_ANNOTATION] = executed_at
    annotations[DRIFT_ANNOTATION] = "true" if drifted else "false"
    metadata["annotations"] = annotations
    return merged


def to_apply_patch(resource: dict) -> dict:
    """Trim a resource to the fields an operation owns.

    Operations apply their desired resources with server-side apply, so the
    patch carries identity plus annotations and nothing that would take
    ownership of spec or status fields.
    """
    metadata = resource.get("metadata") or {}
    patch_metadata = {"name": metadata.get("name", "")}
    if metadata.get("namespace"):
        patch_metadata["namespace"] = metadata["namespace"]
    if metadata.get("annotations"):
        patch_metadata["annotations"] = dict(metadata["annotations"])
    return {
        "apiVersion": resource.get("apiVersion", ""),
        "kind": resource.get("kind", ""),
        "metadata": patch_metadata,
    }
