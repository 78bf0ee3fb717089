"""Tests for sync primitives (skip policy, drift, operation guard)."""

import pytest

from function_msgraph.document import NOT_FOUND, Document
from function_msgraph.sync.drift import DriftDetector, has_drifted
from function_msgraph.sync.operation import (
    DRIFT_ANNOTATION,
    LAST_EXECUTION_ANNOTATION,
    WATCHED_RESOURCE,
    CardinalityError,
    EmptyResourceError,
    OperationGuard,
    RequirementMissingError,
    UnsupportedKindError,
    is_composite,
    merge_annotations,
    to_apply_patch,
)
from function_msgraph.sync.policy import (
    SKIP_REASON,
    InvocationMode,
    SkipPolicy,
    has_data,
    should_skip,
)


def _xr(**metadata) -> dict:
    meta = {
        "name": "test-xr",
        "finalizers": ["composite.apiextensions.crossplane.io"],
    }
    meta.update(metadata)
    return {
        "apiVersion": "example.crossplane.io/v1",
        "kind": "XR",
        "metadata": meta,
        "spec": {"groupNames": ["Developers"]},
        "status": {"groupObjectIDs": [{"id": "group-id-1"}]},
    }


# --- Skip Policy Tests ---


def test_has_data():
    assert not has_data(NOT_FOUND)
    assert not has_data([])
    assert not has_data({})
    assert has_data([{"id": "x"}])
    assert has_data({"a": 1})
    assert has_data("")
    assert has_data(None)


def test_skip_requires_flag_and_data():
    assert should_skip([1], True, InvocationMode.PIPELINE)
    assert not should_skip([1], False, InvocationMode.PIPELINE)
    assert not should_skip([], True, InvocationMode.PIPELINE)
    assert not should_skip(NOT_FOUND, True, InvocationMode.PIPELINE)


def test_operations_never_skip():
    assert not should_skip([1], True, InvocationMode.OPERATION)
    decision = SkipPolicy(True, InvocationMode.OPERATION).evaluate([1])
    assert not decision.skip


def test_skip_policy_reason():
    decision = SkipPolicy(skip_flag=True).evaluate([{"id": "x"}])
    assert decision.skip
    assert decision.reason == SKIP_REASON

    decision = SkipPolicy(skip_flag=True).evaluate(NOT_FOUND)
    assert not decision.skip
    assert decision.reason == "target has no data"


# --- Drift Tests ---


def test_not_found_counts_as_drift():
    assert has_drifted(NOT_FOUND, [])


def test_structurally_equal_values_do_not_drift():
    observed = [{"id": "a", "displayName": "A", "tags": {"x": 1}}]
    computed = [{"displayName": "A", "tags": {"x": 1.0}, "id": "a"}]
    assert not has_drifted(observed, computed)


def test_list_order_and_type_changes_drift():
    assert has_drifted([{"id": "a"}, {"id": "b"}], [{"id": "b"}, {"id": "a"}])
    assert has_drifted({"v": 1}, {"v": "1"})
    assert has_drifted({"v": True}, {"v": 1})
    assert has_drifted({"v": None}, {})


def test_drift_detector_report():
    doc = Document(resource=_xr(), context={})
    target = ["status", "groupObjectIDs"]

    same = DriftDetector(doc).check(target, [{"id": "group-id-1"}])
    assert not same.has_drift
    assert same.target == "status.groupObjectIDs"
    assert "no drift" in same.summary()

    changed = DriftDetector(doc).check(target, [{"id": "group-id-2"}])
    assert changed.has_drift
    assert "DRIFT" in changed.summary()

    first = DriftDetector(doc).check(["status", "users"], [])
    assert first.has_drift
    assert first.observed is NOT_FOUND


# --- Operation Guard Tests ---


def test_watched_resource():
    xr = _xr()
    assert OperationGuard({WATCHED_RESOURCE: [xr]}).watched_resource() is xr


def test_missing_requirement():
    with pytest.raises(RequirementMissingError) as exc:
        OperationGuard(None).watched_resource()
    assert str(exc.value) == (
        "operation: no resource to process with name ops.crossplane.io/watched-resource"
    )


def test_wrong_cardinality():
    with pytest.raises(CardinalityError) as exc:
        OperationGuard({WATCHED_RESOURCE: [_xr(), _xr()]}).watched_resource()
    assert str(exc.value) == (
        "operation: incorrect number of resources sent to the function. expected 1, got 2"
    )
    with pytest.raises(CardinalityError):
        OperationGuard({WATCHED_RESOURCE: []}).watched_resource()


def test_empty_resource():
    with pytest.raises(EmptyResourceError):
        OperationGuard({WATCHED_RESOURCE: [{}]}).watched_resource()


def test_non_composite_rejected():
    claim = _xr(finalizers=[])
    assert not is_composite(claim)
    with pytest.raises(UnsupportedKindError) as exc:
        OperationGuard({WATCHED_RESOURCE: [claim]}).watched_resource()
    assert str(exc.value) == (
        "operation: function-msgraph support only operations on composite resources"
    )


# --- Annotation Tests ---


def test_merge_annotations_keeps_existing():
    xr = _xr(annotations={"existing": "value"})
    merged = merge_annotations(xr, True, "2025-01-01T00:00:00+01:00")
    assert merged["metadata"]["annotations"] == {
        "existing": "value",
        LAST_EXECUTION_ANNOTATION: "2025-01-01T00:00:00+01:00",
        DRIFT_ANNOTATION: "true",
    }
    assert xr["metadata"]["annotations"] == {"existing": "value"}


def test_merge_annotations_without_drift():
    merged = merge_annotations(_xr(), False, "now")
    assert merged["metadata"]["annotations"][DRIFT_ANNOTATION] == "false"


def test_apply_patch_carries_identity_and_annotations_only():
    patch = to_apply_patch(merge_annotations(_xr(), False, "now"))
    assert patch == {
        "apiVersion": "example.crossplane.io/v1",
        "kind": "XR",
        "metadata": {
            "name": "test-xr",
            "annotations": {
                LAST_EXECUTION_ANNOTATION: "now",
                DRIFT_ANNOTATION: "false",
            },
        },
    }


def test_apply_patch_keeps_namespace():
    patch = to_apply_patch(_xr(namespace="team-a"))
    assert patch["metadata"] == {"name": "test-xr", "namespace": "team-a"}
