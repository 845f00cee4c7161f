"""Tests for token formatting over configuration data."""

from dataclasses import dataclass, field

import pytest

from pyqt_formpage.services.token_formatter import (
    format,
    format_deep,
    format_paths,
    get_path,
    is_formatable,
    set_path,
    to_boolean,
)


CONTEXT = {
    "_routeParams": {"uuid": "abc"},
    "_routeQueryParams": {},
    "_routeConfig": {"data": {"editing": True}},
    "_editing": True,
    "devicename": "eth0",
}


@pytest.mark.parametrize("value, expected", [
    (True, True),
    (False, False),
    ("true", True),
    ("TRUE", True),
    (" yes ", True),
    ("1", True),
    ("on", True),
    ("y", True),
    ("false", False),
    ("0", False),
    ("", False),
    ("maybe", False),
    (1, True),
    (0, False),
    (None, False),
    ([], False),
])
def test_to_boolean(value, expected):
    assert to_boolean(value) is expected


def test_is_formatable():
    assert is_formatable("{{ _routeParams.uuid }}")
    assert is_formatable("Device {{ devicename }} saved")
    assert not is_formatable("plain text")
    assert not is_formatable("{ single }")
    assert not is_formatable(42)
    assert not is_formatable(None)
    assert is_formatable({"uuid": "{{ _routeParams.uuid }}", "x": 1})
    assert is_formatable([1, ["{{ a }}"]])
    assert not is_formatable({"uuid": "abc", "n": [1, 2]})


def test_format_resolves_paths():
    assert format("{{ _routeParams.uuid }}", CONTEXT) == "abc"
    assert format("/network/{{ devicename }}/edit", CONTEXT) == "/network/eth0/edit"


def test_format_conditional_expression():
    template = '{{ "getEthernetIface" if _routeConfig.data.editing else "getEthernetIfaceCandidates" }}'
    assert format(template, CONTEXT) == "getEthernetIface"
    creating = dict(CONTEXT, _routeConfig={"data": {"editing": False}})
    assert format(template, creating) == "getEthernetIfaceCandidates"


def test_format_toboolean_filter():
    assert to_boolean(format("{{ _routeConfig.data.editing | toboolean }}", CONTEXT)) is True
    assert to_boolean(format("{{ 'no' | toboolean }}", CONTEXT)) is False


def test_format_missing_path_renders_empty():
    assert format("{{ missing.deeper.path }}", CONTEXT) == ""
    assert format("x{{ _routeParams.nope }}y", CONTEXT) == "xy"


def test_format_without_tokens_is_identity():
    assert format("plain", CONTEXT) == "plain"
    assert format(5, CONTEXT) == 5
    assert format(None, CONTEXT) is None
    obj = {"a": 1}
    assert format(obj, CONTEXT) is obj


def test_format_malformed_template_returned_unchanged(caplog):
    template = "{{ devicename | }}"
    with caplog.at_level("WARNING"):
        assert format(template, CONTEXT) == template
    assert any("Cannot format" in r.getMessage() for r in caplog.records)


def test_format_runtime_error_returned_unchanged(caplog):
    template = "{{ total / count }}"
    with caplog.at_level("WARNING"):
        assert format(template, {"total": 10, "count": 0}) == template
    assert any("Cannot format" in r.getMessage() for r in caplog.records)


def test_format_deep_runtime_error_keeps_other_leaves():
    result = format_deep({"ratio": "{{ rx / tx }}", "name": "{{ name }}"}, {"rx": 1, "tx": 0, "name": "eth0"})
    assert result == {"ratio": "{{ rx / tx }}", "name": "eth0"}


def test_format_output_is_not_evaluated_again():
    # Values substituted into a template are plain text
    assert format("{{ uuid }}", {"uuid": "{{ 6 * 7 }}"}) == "{{ 6 * 7 }}"


def test_format_deep_preserves_structure():
    params = {
        "uuid": "{{ _routeParams.uuid }}",
        "limit": 10,
        "filter": {"names": ["{{ devicename }}", "lo"]},
        "flag": None,
    }
    result = format_deep(params, CONTEXT)
    assert result == {
        "uuid": "abc",
        "limit": 10,
        "filter": {"names": ["eth0", "lo"]},
        "flag": None,
    }
    # Source untouched
    assert params["uuid"] == "{{ _routeParams.uuid }}"


def test_get_path():
    data = {"a": {"b": [{"c": 1}]}, "none": None}
    assert get_path(data, "a.b.0.c") == 1
    assert get_path(data, "a.b.5.c", "dflt") == "dflt"
    assert get_path(data, "a.x") is None
    assert get_path(data, "none") is None
    assert get_path(data, "none.deeper", "dflt") == "dflt"


@dataclass
class _Node:
    value: object = None
    validators: dict = field(default_factory=dict)


def test_set_path_on_dicts_and_dataclasses():
    data = {"request": {"params": {}}}
    assert set_path(data, "request.params", {"uuid": "abc"})
    assert data == {"request": {"params": {"uuid": "abc"}}}
    assert not set_path(data, "missing.params", 1)

    node = _Node()
    assert set_path(node, "value", 3)
    assert set_path(node, "validators.required", True)
    assert node.value == 3
    assert node.validators == {"required": True}
    assert get_path(node, "validators.required") is True


def test_format_paths_in_place_with_post():
    node = _Node(value="{{ devicename }}", validators={"required": "{{ _editing }}"})
    returned = format_paths(node, ["validators.required"], CONTEXT, post=to_boolean)
    format_paths(node, ["value", "not.there"], CONTEXT)

    assert returned is node
    assert node.validators["required"] is True
    assert node.value == "eth0"


def test_format_paths_skips_plain_values():
    node = _Node(value=7)
    format_paths(node, ["value"], CONTEXT, post=lambda v: "post-applied")
    assert node.value == 7
