from unittest.mock import Mock

import pytest

from carabiner.models import DeviceFamily
from carabiner.selection import DeviceSelection


@pytest.fixture
def conn():
    conn = Mock()
    conn.is_connected = False

    def connect(address):
        conn.is_connected = True
        return True

    def disconnect():
        conn.is_connected = False
        return False

    conn.connect.side_effect = connect
    conn.disconnect.side_effect = disconnect
    return conn

@pytest.fixture
def persisted():
    return []

@pytest.fixture
def selection(conn, persisted):
    return DeviceSelection(conn, on_change=persisted.append)

def test_select_ecp(selection, conn, persisted):
    device = selection.select("10.0.0.5|ecp-http")
    assert device.address == "10.0.0.5"
    assert device.family is DeviceFamily.ECP_HTTP
    conn.connect.assert_not_called()
    assert persisted == ["10.0.0.5|ecp-http"]

def test_select_same_adb_twice_connects_once(selection, conn):
    selection.select("10.0.0.5|adb-shell")
    selection.select("10.0.0.5|adb-shell")
    conn.connect.assert_called_once_with("10.0.0.5")
    conn.disconnect.assert_not_called()

def test_switch_adb_devices(selection, conn):
    selection.select("10.0.0.5|adb-shell")
    selection.select("10.0.0.9|adb-shell")

    assert conn.disconnect.call_count == 1
    assert [c.args for c in conn.connect.call_args_list] == [("10.0.0.5",), ("10.0.0.9",)]
    names = [c[0] for c in conn.method_calls]
    assert names == ["connect", "disconnect", "connect"]

def test_adb_to_ecp_disconnects(selection, conn):
    selection.select("10.0.0.5|adb-shell")
    selection.select("10.0.0.5|ecp-http")
    conn.disconnect.assert_called_once()
    assert not conn.is_connected

def test_ecp_to_adb_connects(selection, conn):
    selection.select("10.0.0.5|ecp-http")
    selection.select("10.0.0.9|adb-shell")
    conn.disconnect.assert_not_called()
    conn.connect.assert_called_once_with("10.0.0.9")

def test_legacy_family_names(selection, conn, persisted):
    device = selection.select("10.0.0.9|adb")
    assert device.family is DeviceFamily.ADB_SHELL
    assert persisted == ["10.0.0.9|adb-shell"]

@pytest.mark.parametrize("device_id", ["10.0.0.5", "|adb-shell", "10.0.0.5|serial"])
def test_malformed_id_is_ignored(selection, conn, persisted, device_id):
    selection.select("10.0.0.5|ecp-http")
    persisted.clear()
    device = selection.select(device_id)
    assert device.id == "10.0.0.5|ecp-http"
    assert persisted == []

def test_select_empty_clears(selection, conn, persisted):
    selection.select("10.0.0.5|adb-shell")
    assert selection.select("") is None
    conn.disconnect.assert_called_once()
    assert persisted[-1] == ""

def test_delete_selected_adb_device(selection, conn, persisted):
    selection.select("10.0.0.5|adb-shell")
    assert selection.delete("10.0.0.5|adb-shell") is True
    assert selection.current is None
    conn.disconnect.assert_called_once()
    assert persisted[-1] == ""

def test_delete_selected_ecp_device(selection, conn):
    selection.select("10.0.0.5|ecp-http")
    assert selection.delete("10.0.0.5|ecp-http") is True
    assert selection.current is None
    conn.disconnect.assert_not_called()

def test_delete_other_device_keeps_selection(selection, conn):
    selection.select("10.0.0.5|adb-shell")
    assert selection.delete("10.0.0.9|adb-shell") is False
    assert selection.device_id == "10.0.0.5|adb-shell"
    conn.disconnect.assert_not_called()

def test_restore_does_not_persist(selection, conn, persisted):
    selection.restore("10.0.0.9|adb-shell")
    conn.connect.assert_called_once_with("10.0.0.9")
    assert persisted == []
    assert selection.device_id == "10.0.0.9|adb-shell"
