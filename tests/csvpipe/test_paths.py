import pytest

from payloadtools.csvpipe.paths import MISSING, FieldPath, deep_get, deep_set, format_path, parse_path
from payloadtools.errors import MalformedPathError, PathShapeError


@pytest.mark.parametrize(
    "text",
    ["name", "name[3]", "a.b[0].c", "disbursements[0].payees[0].amount", "[0].a", "m[1][2]"],
)
def test_parse_format_roundtrip(text):
    p = parse_path(text)
    assert parse_path(format_path(p)) == p
    assert format_path(p) == text


def test_segments_are_keys_and_indices():
    assert parse_path("a.b[0].c").segments == ("a", "b", 0, "c")


def test_dotted_digits_normalize_to_brackets():
    p = parse_path("a.0.b")
    assert p == parse_path("a[0].b")
    assert str(p) == "a[0].b"


@pytest.mark.parametrize("bad", ["a[0", "a[x]", "a]", "", "   ", "a..b", "a.", ".a", "a[0]b", "a.[0]"])
def test_malformed_paths(bad):
    with pytest.raises(MalformedPathError):
        parse_path(bad)


def test_malformed_path_is_a_value_error():
    with pytest.raises(ValueError, match="unterminated"):
        parse_path("a[1")


def test_child_and_index_builders():
    p = FieldPath(()).child("items").index(2).child("id")
    assert str(p) == "items[2].id"
    assert p.last == "id"


def test_set_then_get_creates_objects():
    doc = {}
    deep_set(doc, "a.b", 1)
    assert deep_get(doc, "a.b") == 1
    assert doc == {"a": {"b": 1}}


def test_set_then_get_creates_arrays_and_pads():
    doc = {}
    deep_set(doc, "items[2].id", "x")
    assert deep_get(doc, "items[2].id") == "x"
    assert doc == {"items": [None, None, {"id": "x"}]}


def test_set_overwrites_terminal():
    doc = {"server": "live"}
    deep_set(doc, "server", "test")
    assert doc == {"server": "test"}


def test_set_writes_into_existing_array_element():
    doc = {"d": [{"a": 1, "b": 2}]}
    deep_set(doc, "d[0].b", 3)
    assert doc == {"d": [{"a": 1, "b": 3}]}


def test_set_replaces_scalar_intermediate():
    doc = {"server": "live"}
    deep_set(doc, "server.name", "x")
    assert doc == {"server": {"name": "x"}}


def test_get_missing_returns_sentinel_or_default():
    doc = {"a": [1]}
    assert deep_get(doc, "a[3]") is MISSING
    assert deep_get(doc, "b.c", default=None) is None
    assert deep_get(doc, "a[0].x", default="?") == "?"


def test_digit_keys_of_objects_are_strings():
    doc = {"a": {"0": "zero"}}
    assert deep_get(doc, "a[0]") == "zero"
    deep_set(doc, "a[0]", "changed")
    assert doc == {"a": {"0": "changed"}}


def test_set_on_list_root_needs_index():
    doc = [{"name": ""}]
    deep_set(doc, "[0].name", "x")
    assert doc == [{"name": "x"}]
    with pytest.raises(PathShapeError, match="list document"):
        deep_set(doc, "name", "x")


@pytest.mark.parametrize("root", ["hello", 5, None])
def test_set_on_scalar_root_fails(root):
    with pytest.raises(PathShapeError):
        deep_set(root, "a.b", 1)
