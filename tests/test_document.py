"""Tests for the document engine (paths, resolution, writes)."""

import pytest

from function_msgraph.document import (
    NOT_FOUND,
    Arity,
    Document,
    NodeKind,
    PathNotFoundError,
    PathParseError,
    ReferenceTypeError,
    TypeConflictError,
    UnrecognizedTargetError,
    UnsupportedNodeError,
    format_path,
    kind_of,
    lookup,
    parse_path,
    parse_target,
    resolve,
    resolve_reference_field,
    set_value,
)


def _doc(**overrides) -> Document:
    """Build a document with a typical XR and environment context."""
    resource = {
        "apiVersion": "example.crossplane.io/v1",
        "kind": "XR",
        "metadata": {"name": "example-xr"},
        "spec": {
            "groupConfig": {"groupNames": ["Developers", "Operations"], "owner": "Developers"},
        },
        "status": {"groups": [{"id": "group-id-1"}], "note": "kept"},
    }
    context = {
        "apiextensions.crossplane.io/environment": {"groups": ["Developers", None]},
        "count": 3,
    }
    resource.update(overrides.get("resource", {}))
    context.update(overrides.get("context", {}))
    return Document(resource=resource, context=context)


# --- Node Tests ---


def test_kind_of():
    assert kind_of({}) is NodeKind.OBJECT
    assert kind_of([]) is NodeKind.LIST
    for scalar in ("a", 1, 1.5, True, None):
        assert kind_of(scalar) is NodeKind.SCALAR


def test_kind_of_rejects_non_json_values():
    with pytest.raises(UnsupportedNodeError) as exc:
        kind_of(object())
    assert str(exc.value) == "unsupported document node type: object"


def test_not_found_is_falsy():
    assert not NOT_FOUND


# --- Parse Tests ---


def test_parse_dotted_path():
    assert parse_path("spec.groupConfig.groupNames") == ["spec", "groupConfig", "groupNames"]


def test_parse_bracket_literal():
    assert parse_path("context.[apiextensions.crossplane.io/environment].groups") == [
        "context",
        "apiextensions.crossplane.io/environment",
        "groups",
    ]


def test_parse_drops_empty_segments():
    assert parse_path("status..groups.") == ["status", "groups"]


def test_parse_rejects_empty_and_unterminated():
    with pytest.raises(PathParseError):
        parse_path("")
    with pytest.raises(PathParseError):
        parse_path("context.[apiextensions.crossplane.io")
    with pytest.raises(PathParseError):
        parse_path("...")


def test_format_path_brackets_special_keys():
    segments = ["context", "apiextensions.crossplane.io/environment", "groups"]
    assert format_path(segments) == "context.[apiextensions.crossplane.io/environment].groups"
    assert parse_path(format_path(segments)) == segments


# --- Resolve Tests ---


def test_resolve_spec_status_and_context():
    doc = _doc()
    assert resolve(doc, ["spec", "groupConfig", "owner"]) == "Developers"
    assert resolve(doc, ["status", "note"]) == "kept"
    assert resolve(doc, ["context", "count"]) == 3


def test_resolve_missing_key_reports_raw_path():
    with pytest.raises(PathNotFoundError) as exc:
        resolve(_doc(), parse_path("context.nonexistent.value"), "context.nonexistent.value")
    assert str(exc.value) == "context.nonexistent.value not found"


def test_resolve_does_not_descend_into_scalars_or_lists():
    doc = _doc()
    with pytest.raises(PathNotFoundError):
        resolve(doc, ["status", "note", "length"])
    with pytest.raises(PathNotFoundError):
        resolve(doc, ["status", "groups", "0"])


def test_resolve_unknown_root_and_missing_status():
    doc = Document(resource={"spec": {}}, context={})
    with pytest.raises(PathNotFoundError):
        resolve(doc, ["metadata", "name"])
    with pytest.raises(PathNotFoundError):
        resolve(doc, ["status", "groups"])


def test_resolve_root_only_is_a_parse_error():
    with pytest.raises(PathParseError):
        resolve(_doc(), ["status"])


def test_lookup_returns_not_found():
    doc = _doc()
    assert lookup(doc, ["status", "missing"]) is NOT_FOUND
    assert lookup(doc, ["status", "note"]) == "kept"


def test_resolve_does_not_mutate():
    doc = _doc()
    before = doc.copy()
    lookup(doc, ["status", "a", "b"])
    assert doc == before


# --- Reference Tests ---


def test_reference_single():
    assert resolve_reference_field(_doc(), "spec.groupConfig.owner", Arity.SINGLE) == "Developers"


def test_reference_single_rejects_list():
    with pytest.raises(ReferenceTypeError):
        resolve_reference_field(_doc(), "spec.groupConfig.groupNames", Arity.SINGLE)


def test_reference_multiple_filters_nulls():
    groups = resolve_reference_field(
        _doc(), "context.[apiextensions.crossplane.io/environment].groups", Arity.MULTIPLE
    )
    assert groups == ["Developers"]


def test_reference_multiple_accepts_empty_list():
    doc = _doc(resource={"spec": {"names": []}})
    assert resolve_reference_field(doc, "spec.names", Arity.MULTIPLE) == []


def test_reference_multiple_rejects_non_string_items():
    doc = _doc(resource={"spec": {"names": ["a", 1]}})
    with pytest.raises(ReferenceTypeError):
        resolve_reference_field(doc, "spec.names", Arity.MULTIPLE)
    with pytest.raises(ReferenceTypeError):
        resolve_reference_field(_doc(), "spec.groupConfig.owner", Arity.MULTIPLE)


# --- Target Tests ---


def test_parse_target_accepts_status_and_context():
    assert parse_target("status.groupObjectIDs") == ["status", "groupObjectIDs"]
    assert parse_target("context.results") == ["context", "results"]


@pytest.mark.parametrize(
    "raw", ["", None, 5, ["status", "x"], "spec.groups", "status", "metadata.name", "invalid"]
)
def test_parse_target_rejects(raw):
    with pytest.raises(UnrecognizedTargetError) as exc:
        parse_target(raw)
    assert str(exc.value).startswith("Unrecognized target field: ")


# --- Write Tests ---


def test_set_value_creates_intermediates():
    doc = _doc()
    updated = set_value(doc, ["status", "azure", "groups"], [{"id": "g"}])
    assert updated.resource["status"]["azure"]["groups"] == [{"id": "g"}]
    assert updated.resource["status"]["note"] == "kept"


def test_set_value_is_copy_on_write():
    doc = _doc()
    value = [{"id": "g"}]
    updated = set_value(doc, ["context", "results"], value)
    assert "results" not in doc.context
    value[0]["id"] = "changed"
    assert updated.context["results"] == [{"id": "g"}]


def test_set_value_overwrites_leaf_and_keeps_siblings():
    doc = _doc()
    updated = set_value(doc, ["status", "groups"], [])
    assert updated.resource["status"] == {"groups": [], "note": "kept"}
    assert updated.resource["spec"] == doc.resource["spec"]


def test_set_value_creates_status_root():
    doc = Document(resource={"spec": {}}, context={})
    updated = set_value(doc, ["status", "users"], [])
    assert updated.resource["status"] == {"users": []}


def test_set_value_into_bracketed_context_key():
    doc = _doc()
    target = parse_target("context.[apiextensions.crossplane.io/environment].ids")
    updated = set_value(doc, target, ["x"])
    env = updated.context["apiextensions.crossplane.io/environment"]
    assert env == {"groups": ["Developers", None], "ids": ["x"]}


def test_written_value_resolves_back():
    doc = _doc()
    for raw in ("status.groups", "status.a.b.c", "context.[x.y/z].v", "context.count"):
        segments = parse_target(raw)
        value = {"written": raw}
        assert resolve(set_value(doc, segments, value), segments) == value


def test_set_value_conflicts_with_scalar_and_list():
    doc = _doc()
    with pytest.raises(TypeConflictError):
        set_value(doc, ["status", "note", "inner"], 1)
    with pytest.raises(TypeConflictError):
        set_value(doc, ["status", "groups", "inner"], 1)


def test_set_value_refuses_spec():
    with pytest.raises(UnrecognizedTargetError):
        set_value(_doc(), ["spec", "x"], 1)
