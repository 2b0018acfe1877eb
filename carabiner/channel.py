"""Messages exchanged between the settings window and the preview window.

On the wire a message is a ``{"type": ..., "payload": ...}`` envelope. Each
type is its own model with a typed payload; ``parse_message`` turns a raw
envelope into one of them and returns None for anything it does not know.
"""
import json
from typing import Annotated, Any, Callable, Literal, Mapping, Union

from loguru import logger
from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from .models import DeviceRecord, SettingsModel

CONTROL_WINDOW = "control"
PREVIEW_WINDOW = "preview"


class VideoSource(SettingsModel):
    device_id: str
    label: str = ""
    kind: str = "videoinput"
    group_id: str = ""


class ExactConstraint(SettingsModel):
    exact: str


class VideoConstraints(SettingsModel):
    device_id: ExactConstraint | None = None
    width: Any = None
    height: Any = None


class StreamConstraints(SettingsModel):
    video: VideoConstraints | None = None
    audio: Any = False

    @property
    def device_id(self) -> str | None:
        if self.video and self.video.device_id:
            return self.video.device_id.exact
        return None


class FilterStyle(BaseModel):
    filter: str


class Dimensions(BaseModel):
    width: str
    height: str


class SetWebcams(BaseModel):
    type: Literal["set-webcams"] = "set-webcams"
    payload: list[VideoSource]

    @field_validator("payload", mode="before")
    @classmethod
    def _decode_json(cls, value):
        # The preview window announces its cameras as a JSON string
        if isinstance(value, str):
            return json.loads(value)
        return value


class SetVideoStream(BaseModel):
    type: Literal["set-video-stream"] = "set-video-stream"
    payload: StreamConstraints


class SetTransparency(BaseModel):
    type: Literal["set-transparency"] = "set-transparency"
    payload: FilterStyle


class SetResolution(BaseModel):
    type: Literal["set-resolution"] = "set-resolution"
    payload: Dimensions


class SetBorderWidth(BaseModel):
    type: Literal["set-border-width"] = "set-border-width"
    payload: str


class SetBorderStyle(BaseModel):
    type: Literal["set-border-style"] = "set-border-style"
    payload: str


class SetBorderColor(BaseModel):
    type: Literal["set-border-color"] = "set-border-color"
    payload: str


class SetOverlayOpacity(BaseModel):
    type: Literal["set-overlay-opacity"] = "set-overlay-opacity"
    payload: float = Field(ge=0.0, le=1.0)


class SetControlList(BaseModel):
    type: Literal["set-control-list"] = "set-control-list"
    payload: list[DeviceRecord]


class SetControlSelected(BaseModel):
    type: Literal["set-control-selected"] = "set-control-selected"
    payload: str


class SetAdbPath(BaseModel):
    type: Literal["set-adb-path"] = "set-adb-path"
    payload: str


class SendAdbKey(BaseModel):
    type: Literal["send-adb-key"] = "send-adb-key"
    payload: str


ChannelMessage = Annotated[
    Union[
        SetWebcams,
        SetVideoStream,
        SetTransparency,
        SetResolution,
        SetBorderWidth,
        SetBorderStyle,
        SetBorderColor,
        SetOverlayOpacity,
        SetControlList,
        SetControlSelected,
        SetAdbPath,
        SendAdbKey,
    ],
    Field(discriminator="type"),
]

_message_adapter: TypeAdapter[ChannelMessage] = TypeAdapter(ChannelMessage)


def parse_message(raw: Mapping[str, Any]) -> ChannelMessage | None:
    if not isinstance(raw, Mapping):
        return None
    try:
        return _message_adapter.validate_python(raw)
    except (ValidationError, ValueError) as e:
        logger.debug(f"Ignoring channel message {raw.get('type')!r}: {e}")
        return None


def encode_message(message: ChannelMessage) -> dict[str, Any]:
    return message.model_dump(mode="json", by_alias=True, exclude_none=True)


Handler = Callable[[ChannelMessage], None]


class WindowChannel:
    """In-process bus delivering messages to the handlers of one window."""

    def __init__(self):
        self._handlers: dict[str, list[Handler]] = {}

    def subscribe(self, window: str, handler: Handler) -> None:
        self._handlers.setdefault(window, []).append(handler)

    def unsubscribe(self, window: str, handler: Handler) -> None:
        handlers = self._handlers.get(window, [])
        if handler in handlers:
            handlers.remove(handler)

    def deliver(self, window: str, message: ChannelMessage) -> None:
        for handler in list(self._handlers.get(window, [])):
            try:
                handler(message)
            except Exception:
                logger.exception(f"Error handling {message.type} in {window} window")
