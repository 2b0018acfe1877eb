import sys
from unittest.mock import Mock

import pytest
from loguru import logger
from textual.widgets import Button, DataTable, Input, Label

from carabiner.models import DeviceKind, Modifier
from carabiner.senders import EcpSender
from carabiner.service import ControlHub
from carabiner.tui import AddDeviceScreen, CarabinerApp, textual_key_event


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)

@pytest.fixture
def session():
    return Mock()

@pytest.fixture
def hub(store, connection, worker, session, sample_settings):
    store.save(sample_settings)
    return ControlHub(store, connection=connection, ecp=EcpSender(worker=worker, session=session))


def test_textual_arrow_key():
    event = textual_key_event("up")
    assert event.code == "ArrowUp"
    assert event.phase is None
    assert event.modifiers == frozenset()

def test_textual_uppercase_letter_implies_shift():
    event = textual_key_event("A", "A")
    assert event.code == "KeyA"
    assert event.key == "A"
    assert event.modifiers == {Modifier.SHIFT}

def test_textual_ctrl_letter_has_no_typed_character():
    event = textual_key_event("ctrl+x", "\x18")
    assert event.code == "KeyX"
    assert event.key is None
    assert event.modifiers == {Modifier.CONTROL}

def test_textual_digit_and_punctuation():
    assert textual_key_event("5", "5").code == "Digit5"
    event = textual_key_event("question_mark", "?")
    assert event.key == "?"


@pytest.mark.asyncio
async def test_dashboard_lists_devices(hub):
    app = CarabinerApp(hub=hub)
    async with app.run_test() as pilot:
        await pilot.pause()
        table = app.query_one("#devices-table", DataTable)
        assert table.row_count == 2
        label = app.query_one("#selected-device", Label)
        assert "10.0.0.5|ecp-http" in str(label.render())

@pytest.mark.asyncio
async def test_remote_pad_sends_keys(hub, session):
    app = CarabinerApp(hub=hub)
    async with app.run_test() as pilot:
        app.query_one("#remote").focus()
        await pilot.pause()
        await pilot.press("up")
        await pilot.pause()
    session.post.assert_any_call("http://10.0.0.5:8060/keypress/up", timeout=2.0)

@pytest.mark.asyncio
async def test_add_device_screen_dismisses_with_values(hub):
    app = CarabinerApp(hub=hub)
    results = []
    async with app.run_test() as pilot:
        await app.push_screen(AddDeviceScreen(), results.append)
        await pilot.pause()

        app.screen.query_one("#input-address", Input).value = " 192.168.1.77 "
        app.screen.query_one("#input-alias", Input).value = "Attic"
        app.screen.query_one("#btn-submit", Button).press()
        await pilot.pause()

        assert not isinstance(app.screen, AddDeviceScreen)
    assert results == [("192.168.1.77", DeviceKind.ROKU, "Attic")]

@pytest.mark.asyncio
async def test_add_device_screen_requires_address(hub):
    app = CarabinerApp(hub=hub)
    async with app.run_test() as pilot:
        await app.push_screen(AddDeviceScreen())
        await pilot.pause()
        app.screen.query_one("#btn-submit", Button).press()
        await pilot.pause()
        assert isinstance(app.screen, AddDeviceScreen)

@pytest.mark.asyncio
async def test_dashboard_add_flow_persists(hub, store):
    app = CarabinerApp(hub=hub)
    async with app.run_test() as pilot:
        app.query_one("#devices-add", Button).press()
        await pilot.pause()
        assert isinstance(app.screen, AddDeviceScreen)

        app.screen.query_one("#input-address", Input).value = "10.0.0.20"
        app.screen.query_one("#btn-submit", Button).press()
        await pilot.pause()

        assert app.query_one("#devices-table", DataTable).row_count == 3
    assert "10.0.0.20|ecp-http" in {d.id for d in store.load().control.device_list}
