from unittest.mock import Mock

import pytest

from carabiner.channel import (
    SendAdbKey,
    SetBorderWidth,
    SetControlList,
    SetResolution,
    SetVideoStream,
    SetWebcams,
    WindowChannel,
    encode_message,
    parse_message,
)
from carabiner.models import DeviceFamily

def test_parse_border_width():
    message = parse_message({"type": "set-border-width", "payload": "thick"})
    assert isinstance(message, SetBorderWidth)
    assert message.payload == "thick"

def test_parse_webcams_from_json_string():
    raw = {
        "type": "set-webcams",
        "payload": '[{"deviceId": "cam-1", "kind": "videoinput", "label": "Capture Card", "groupId": "g"}]',
    }
    message = parse_message(raw)
    assert isinstance(message, SetWebcams)
    assert message.payload[0].device_id == "cam-1"
    assert message.payload[0].label == "Capture Card"

def test_parse_video_stream():
    raw = {
        "type": "set-video-stream",
        "payload": {"audio": False, "video": {"deviceId": {"exact": "cam-2"}, "width": {"ideal": 1920}}},
    }
    message = parse_message(raw)
    assert isinstance(message, SetVideoStream)
    assert message.payload.device_id == "cam-2"

def test_parse_control_list_accepts_legacy_records():
    raw = {
        "type": "set-control-list",
        "payload": [{"address": "10.0.0.9", "family": "adb", "alias": "Bedroom", "kind": "firetv"}],
    }
    message = parse_message(raw)
    assert isinstance(message, SetControlList)
    assert message.payload[0].family is DeviceFamily.ADB_SHELL
    assert message.payload[0].id == "10.0.0.9|adb-shell"

@pytest.mark.parametrize("raw", [
    {"type": "set-volume", "payload": 11},
    {"type": "set-resolution", "payload": {"width": "100px"}},
    {"type": "set-overlay-opacity", "payload": 2.5},
    {"type": "set-webcams", "payload": "not json"},
    {"payload": "thin"},
    "set-border-width",
    None,
])
def test_unrecognized_or_malformed_is_ignored(raw):
    assert parse_message(raw) is None

def test_encode_round_trips_envelope():
    message = SetResolution(payload={"width": "1280px", "height": "720px"})
    assert encode_message(message) == {
        "type": "set-resolution",
        "payload": {"width": "1280px", "height": "720px"},
    }

def test_channel_delivers_to_window():
    channel = WindowChannel()
    preview, control = Mock(), Mock()
    channel.subscribe("preview", preview)
    channel.subscribe("control", control)

    message = SendAdbKey(payload="up")
    channel.deliver("preview", message)

    preview.assert_called_once_with(message)
    control.assert_not_called()

def test_channel_handler_errors_do_not_propagate():
    channel = WindowChannel()
    failing = Mock(side_effect=RuntimeError("boom"))
    after = Mock()
    channel.subscribe("preview", failing)
    channel.subscribe("preview", after)

    channel.deliver("preview", SetBorderWidth(payload="thin"))
    after.assert_called_once()

def test_unsubscribe():
    channel = WindowChannel()
    handler = Mock()
    channel.subscribe("preview", handler)
    channel.unsubscribe("preview", handler)
    channel.deliver("preview", SetBorderWidth(payload="thin"))
    handler.assert_not_called()
