"""End-to-end tests for the form page engine."""

import pytest
from PyQt6.QtTest import QTest

from pyqt_formpage.exceptions import ConfigurationError, RemoteCallError
from pyqt_formpage.page import ClickState, PageStatus
from pyqt_formpage.protocols import EngineConfig, set_engine_config

from conftest import creating_route, editing_route


def not_static():
    return {"operator": "ne", "arg0": {"prop": "method"}, "arg1": "static"}


def ethernet_page(**overrides):
    config = {
        "icon": "ethernet",
        "fields": [
            {"type": "confObjUuid", "value": "{{ _routeParams.uuid }}"},
            {"type": "textInput", "name": "devicename", "disabled": "{{ _editing }}"},
            {"type": "container", "fields": [
                {"type": "select", "name": "method", "value": "dhcp"},
                {"type": "textInput", "name": "address",
                 "modifiers": [{"type": "disabled", "constraint": not_static()}]},
            ]},
        ],
        "buttons": [
            {"template": "submit", "execute": {"type": "url", "url": "/network/interfaces"}},
            {"template": "cancel", "execute": {"type": "url", "url": "/network/interfaces"}},
        ],
        "request": {
            "service": "Network",
            "get": {
                "method": '{{ "getEthernetIface" if _editing else "getEthernetIfaceCandidate" }}',
                "params": {"uuid": "{{ _routeParams.uuid }}"},
            },
            "post": {"method": "setEthernetIface"},
        },
    }
    config.update(overrides)
    return config


ETH0 = {"uuid": "abc", "devicename": "eth0", "method": "static", "address": "10.0.0.1"}


def test_editing_end_to_end(make_page, rpc):
    rpc.respond("getEthernetIface", dict(ETH0))
    rpc.respond("setEthernetIface", {"uuid": "abc"})
    page = make_page(ethernet_page(), editing_route("abc"))
    statuses = []
    page.engine.status_changed.connect(statuses.append)

    page.engine.init()

    # Loaded and pristine
    assert rpc.calls[0].method == "getEthernetIface"
    assert rpc.calls[0].params == {"uuid": "abc"}
    assert page.form.get_values() == ETH0
    assert not page.engine.is_dirty()
    assert page.engine.page_status is PageStatus.READY
    assert statuses == [PageStatus.LOADING, PageStatus.READY]
    assert page.form.field_state("devicename").disabled is True
    assert page.form.field_state("address").disabled is False

    # Switching to dhcp disables the address field
    page.form.set_value("method", "dhcp")
    assert page.form.field_state("address").disabled is True
    assert page.engine.is_dirty()

    click = page.engine.on_button_click(page.engine.config.submit_button)

    # Disabled fields still submit their value
    assert rpc.calls[-1].method == "setEthernetIface"
    assert rpc.calls[-1].params == {"uuid": "abc", "devicename": "eth0", "method": "dhcp", "address": "10.0.0.1"}
    assert click.state is ClickState.DONE
    assert not page.engine.is_dirty()
    assert page.navigator.urls == ["/network/interfaces"]


def test_submit_value_false_excluded(make_page, rpc):
    config = ethernet_page()
    config["fields"].append({"type": "passwordInput", "name": "confirm", "submitValue": False})
    rpc.respond("getEthernetIface", dict(ETH0, confirm="secret", undeclared=1))
    page = make_page(config, editing_route("abc"))
    page.engine.init()

    values = page.engine.get_form_values()

    assert "confirm" not in values
    assert values["undeclared"] == 1
    assert page.form.get_values()["confirm"] == "secret"


def test_sanitized_config(make_page):
    page = make_page(ethernet_page(), editing_route("abc"))
    config = page.engine.config

    assert config.icon == "mdi:ethernet"
    assert [b.text for b in config.buttons] == ["Cancel", "Save"]
    assert config.fields[0].name == "uuid"


def test_invalid_config_fails_construction(make_page):
    with pytest.raises(ConfigurationError):
        make_page(ethernet_page(buttons=[{"template": "submit"}, {"template": "submit"}]))


def test_init_formats_request_and_fields(make_page, rpc):
    raw = ethernet_page()
    page = make_page(raw, creating_route())
    page.engine.init()

    request = page.engine.config.request
    assert request.get.method == "getEthernetIfaceCandidate"
    # Rendered per load, not at init
    assert request.get.params == {"uuid": "{{ _routeParams.uuid }}"}
    assert page.engine.config.fields[1].disabled is False
    # The caller's configuration is left alone
    assert raw == ethernet_page()


def test_route_params_rendered_once(make_page, rpc):
    page = make_page(ethernet_page(), editing_route("{{ 6 * 7 }}"))
    page.engine.init()
    assert rpc.calls[0].params == {"uuid": "{{ 6 * 7 }}"}


def test_creating_mode_seeds_from_query_params(make_page, rpc):
    page = make_page(ethernet_page(), creating_route(devicename="eth1", method="static", unknown="x"))
    statuses = []
    page.engine.status_changed.connect(statuses.append)

    page.engine.init()

    assert rpc.calls == []
    values = page.form.get_values()
    assert values["devicename"] == "eth1"
    assert values["method"] == "static"
    assert "unknown" not in values
    assert statuses == [PageStatus.READY]
    assert not page.engine.is_dirty()


def test_load_failure(make_page, rpc):
    error = RemoteCallError("Network", "getEthernetIface", ConnectionError("down"))
    rpc.fail("getEthernetIface", error)
    page = make_page(ethernet_page(), editing_route("abc"))
    failures = []
    page.engine.load_failed.connect(failures.append)

    page.engine.init()

    assert failures == [error]
    assert page.engine.page_status is PageStatus.ERROR
    assert page.form.get_value("devicename") is None


def test_reload(make_page, rpc):
    page = make_page(ethernet_page(), editing_route("abc"))
    page.engine.init()
    assert len(rpc.calls) == 1

    # In flight: no second call
    page.engine.reload()
    assert len(rpc.calls) == 1

    rpc.calls[0].pending.resolve(dict(ETH0))
    rpc.respond("getEthernetIface", dict(ETH0, address="10.0.0.9"))
    page.engine.reload()
    assert len(rpc.calls) == 2
    assert page.form.get_value("address") == "10.0.0.9"


def test_auto_reload(make_page, rpc):
    rpc.respond("getEthernetIface", dict(ETH0))
    page = make_page(ethernet_page(autoReload=20), editing_route("abc"))

    page.engine.init()
    QTest.qWait(100)
    page.engine.destroy()
    count = len(rpc.calls)

    assert count >= 3
    QTest.qWait(50)
    assert len(rpc.calls) == count


def test_set_form_values_and_dirty_flags(make_page):
    page = make_page(ethernet_page(), creating_route())
    page.engine.init()

    page.engine.set_form_values({"devicename": "eth2"}, mark_pristine=False)
    assert page.form.get_value("devicename") == "eth2"
    page.engine.mark_as_dirty()
    assert page.engine.is_dirty()
    page.engine.mark_as_pristine()
    assert not page.engine.is_dirty()


# ========== BUTTON ENABLEMENT ==========

def address_required_page():
    return ethernet_page(buttons=[
        {"template": "submit",
         "enabledConstraint": {"operator": "n", "arg0": {"prop": "address"}}},
        {"template": "cancel"},
    ])


def test_button_enablement_evaluated_at_init(make_page):
    page = make_page(address_required_page(), creating_route())
    page.engine.init()

    assert page.engine.config.submit_button.disabled is True
    assert page.engine.button("Cancel").disabled is False


def test_button_enablement_debounced(make_page):
    page = make_page(address_required_page(), creating_route())
    changes = []
    page.engine.buttons_changed.connect(lambda: changes.append(page.engine.config.submit_button.disabled))
    page.engine.init()
    changes.clear()

    page.form.set_value("address", "10.0.0")
    page.form.set_value("address", "10.0.0.1")
    assert page.engine.config.submit_button.disabled is True

    QTest.qWait(50)
    assert page.engine.config.submit_button.disabled is False
    assert changes == [False]

    page.form.set_value("address", "")
    QTest.qWait(50)
    assert page.engine.config.submit_button.disabled is True


def test_debounce_window_configurable(make_page):
    set_engine_config(EngineConfig(constraint_debounce_ms=80))
    page = make_page(address_required_page(), creating_route())
    page.engine.init()

    page.form.set_value("address", "10.0.0.1")
    QTest.qWait(20)
    assert page.engine.config.submit_button.disabled is True
    QTest.qWait(150)
    assert page.engine.config.submit_button.disabled is False


def test_destroy_stops_button_updates(make_page):
    page = make_page(address_required_page(), creating_route())
    page.engine.init()

    page.form.set_value("address", "10.0.0.1")
    page.engine.destroy()
    QTest.qWait(30)

    assert page.engine.config.submit_button.disabled is True

    # Destroy twice is harmless
    page.engine.destroy()


def test_destroy_before_init(make_page):
    page = make_page(ethernet_page(), editing_route("abc"))
    page.engine.destroy()
