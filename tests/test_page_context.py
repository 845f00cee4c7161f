"""Tests for the page-scoped context."""

import pytest

from pyqt_formpage.page import PageContext, PageStatus
from pyqt_formpage.protocols import RouteSnapshot

from conftest import creating_route, editing_route


def test_context_from_editing_route(qapp):
    context = PageContext(editing_route("abc", returnUrl="/network"))
    assert context.editing is True
    assert context["_editing"] is True
    assert context["_routeParams"] == {"uuid": "abc"}
    assert context["_routeQueryParams"] == {"returnUrl": "/network"}
    assert context["_routeConfig"]["data"]["editing"] is True
    assert context.status is PageStatus.INITIALIZING


def test_context_defaults_without_route(qapp):
    context = PageContext()
    assert context.editing is False
    assert context.as_dict() == {
        "_routeParams": {},
        "_routeQueryParams": {},
        "_routeConfig": {},
        "_editing": False,
    }


def test_context_copies_route_data(qapp):
    route = creating_route(devicename="eth1")
    context = PageContext(route)
    route.query_params["devicename"] = "changed"
    assert context["_routeQueryParams"] == {"devicename": "eth1"}


def test_set_merges_keys(qapp):
    context = PageContext(creating_route())
    context.set({"a": 1}, b=2)
    assert context["a"] == 1
    assert context.get("b") == 2
    assert context.get("missing", "dflt") == "dflt"
    assert "a" in context
    assert "_routeParams" in context


def test_editing_is_fixed(qapp):
    context = PageContext(editing_route())
    context.set(_editing=True)  # unchanged value is accepted
    with pytest.raises(ValueError):
        context.set({"_editing": False})
    assert context.editing is True


def test_as_dict_is_a_copy(qapp):
    context = PageContext(RouteSnapshot())
    snapshot = context.as_dict()
    snapshot["injected"] = True
    assert "injected" not in context


def test_status_changes_are_all_emitted(qapp):
    context = PageContext()
    seen = []
    context.status_changed.connect(seen.append)

    context.set_status(PageStatus.LOADING)
    context.set_status(PageStatus.READY)
    context.set_status(PageStatus.READY)

    assert seen == [PageStatus.LOADING, PageStatus.READY, PageStatus.READY]
    assert context.status is PageStatus.READY
