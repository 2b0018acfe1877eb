from concurrent.futures import Future
from typing import Any, Callable, Mapping

from loguru import logger
from pydantic import ValidationError

from .channel import (
    CONTROL_WINDOW,
    PREVIEW_WINDOW,
    ChannelMessage,
    ExactConstraint,
    SendAdbKey,
    SetAdbPath,
    SetBorderColor,
    SetBorderStyle,
    SetBorderWidth,
    SetControlList,
    SetControlSelected,
    SetOverlayOpacity,
    SetResolution,
    SetTransparency,
    SetVideoStream,
    SetWebcams,
    StreamConstraints,
    VideoConstraints,
    WindowChannel,
    parse_message,
)
from .config import SettingsStore
from .connection import ConnectionManager
from .exceptions import ConfigurationError
from .models import (
    DeviceKind,
    DeviceRecord,
    DisplaySettings,
    LogicalCommand,
    SharedSettings,
    WindowBounds,
    parse_device_id,
)
from .preview import PreviewSurface
from .router import CommandRouter
from .selection import DeviceSelection
from .senders import AdbSender, EcpSender, is_valid_ip


class ControlHub:
    """Single writer of the shared settings.

    Every message from either window passes through ``post``: it is applied
    to a copy of the settings, persisted, and only then forwarded by value to
    the preview window. The hub also owns the device selection, the adb
    session and the command router.
    """

    def __init__(
        self,
        store: SettingsStore,
        channel: WindowChannel | None = None,
        connection: ConnectionManager | None = None,
        ecp: EcpSender | None = None,
    ):
        self.store = store
        self.settings = store.load()
        self.channel = channel or WindowChannel()
        self.connection = connection or ConnectionManager(self.settings.control.adb_path)
        self.selection = DeviceSelection(self.connection, on_change=self._on_selection_changed)
        self.router = CommandRouter(self.selection, ecp or EcpSender(), AdbSender(self.connection))
        self.preview = PreviewSurface(post=self.post)
        self.channel.subscribe(PREVIEW_WINDOW, self.preview.handle)

    def start(self) -> None:
        self.preview.restore(self.settings)
        device_id = self.settings.control.device_id
        if device_id:
            logger.info(f"Control loaded from settings: {device_id}")
            self.selection.restore(device_id)

    def close(self, disconnect: bool = True) -> None:
        if disconnect:
            self.connection.close()
        else:
            self.connection.worker.shutdown(wait=True)
        self.router.ecp.close()

    # --- Channel ---

    def post(self, message: ChannelMessage | Mapping[str, Any]) -> bool:
        if isinstance(message, Mapping):
            message = parse_message(message)
            if message is None:
                return False

        if not self._apply(message):
            return False
        self.channel.deliver(PREVIEW_WINDOW, message)
        return True

    def _apply(self, message: ChannelMessage) -> bool:
        """Apply a message to the hub; False when it was rejected."""
        match message:
            case SetWebcams():
                self.channel.deliver(CONTROL_WINDOW, message)
            case SetVideoStream(payload=constraints):
                if constraints.device_id:
                    self._commit(lambda s: setattr(s.display, "device_id", constraints.device_id))
            case SetTransparency(payload=style):
                self._commit(lambda s: setattr(s.display, "filter", style.filter))
            case SetResolution(payload=dims):
                self._commit(lambda s: setattr(s.display, "resolution", f"{dims.width}|{dims.height}"))
            case SetBorderWidth(payload=width):
                self._commit(lambda s: setattr(s.border, "width", width))
            case SetBorderStyle(payload=style):
                self._commit(lambda s: setattr(s.border, "style", style))
            case SetBorderColor(payload=color):
                self._commit(lambda s: setattr(s.border, "color", color))
            case SetOverlayOpacity(payload=opacity):
                self._commit(lambda s: setattr(s.display, "overlay_opacity", opacity))
            case SetControlList(payload=devices):
                self._commit(lambda s: setattr(s.control, "device_list", list(devices)))
                current = self.selection.device_id or self.settings.control.device_id
                if current and current not in {d.id for d in devices}:
                    if not self.selection.delete(current):
                        self._on_selection_changed("")
            case SetControlSelected(payload=device_id):
                if device_id:
                    try:
                        parse_device_id(device_id)
                    except ValueError as e:
                        logger.warning(str(e))
                        return False
                self.selection.select(device_id)
            case SetAdbPath(payload=path):
                self._commit(lambda s: setattr(s.control, "adb_path", path))
                self.connection.set_adb_path(path)
            case SendAdbKey(payload=key):
                # The settings window sends raw keycodes; named tokens are accepted too
                if key.isdigit():
                    self.router.adb.send_keycode(key)
                else:
                    self.router.adb.send(LogicalCommand(token=key))
        return True

    def _commit(self, mutate: Callable[[SharedSettings], None]) -> bool:
        updated = self.settings.model_copy(deep=True)
        mutate(updated)
        try:
            self.store.save(updated)
        except ConfigurationError as e:
            logger.error(str(e))
            return False
        self.settings = updated
        return True

    def _on_selection_changed(self, device_id: str) -> None:
        self._commit(lambda s: setattr(s.control, "device_id", device_id))

    # --- Devices ---

    def list_devices(self) -> list[DeviceRecord]:
        return list(self.settings.control.device_list)

    def get_device(self, device_id: str) -> DeviceRecord | None:
        return next((d for d in self.settings.control.device_list if d.id == device_id), None)

    def add_device(self, address: str, kind: DeviceKind = DeviceKind.ROKU, alias: str = "") -> DeviceRecord:
        address = address.strip()
        if not is_valid_ip(address):
            raise ConfigurationError(f"Invalid IP address '{address}'")

        device = DeviceRecord(address=address, family=kind.family, kind=kind, alias=alias.strip())
        if self.get_device(device.id):
            raise ConfigurationError(f"Device '{device.id}' already exists")

        self.post(SetControlList(payload=[*self.settings.control.device_list, device]))
        return device

    def remove_device(self, device_id: str) -> None:
        if not self.get_device(device_id):
            raise ConfigurationError(f"Device '{device_id}' not found")
        remaining = [d for d in self.settings.control.device_list if d.id != device_id]
        self.post(SetControlList(payload=remaining))

    def link_device(self, device_id: str, source_id: str) -> None:
        """Make ``device_id`` the device controlled while ``source_id`` is shown.

        A video source has at most one linked device; an empty ``device_id``
        unlinks the source.
        """
        if device_id and not self.get_device(device_id):
            raise ConfigurationError(f"Device '{device_id}' not found")

        devices = []
        for d in self.settings.control.device_list:
            if d.id == device_id:
                d = d.model_copy(update={"linked": source_id})
            elif d.linked == source_id:
                d = d.model_copy(update={"linked": ""})
            devices.append(d)
        self.post(SetControlList(payload=devices))
        if self.settings.display.device_id == source_id:
            self.post(SetControlSelected(payload=device_id))

    def select_source(self, source_id: str) -> None:
        """Show a video source and hand control to the device linked to it."""
        constraints = StreamConstraints(video=VideoConstraints(device_id=ExactConstraint(exact=source_id)))
        self.post(SetVideoStream(payload=constraints))
        linked = next((d for d in self.settings.control.device_list if d.linked == source_id), None)
        self.post(SetControlSelected(payload=linked.id if linked else ""))

    def select_device(self, device_id: str) -> None:
        self.post(SetControlSelected(payload=device_id))

    # --- Keys ---

    def send_key(self, name: str) -> Future | None:
        return self.router.send_named(name)

    # --- Window and display preferences ---

    def save_window_bounds(self, window: str, bounds: WindowBounds) -> None:
        self._commit(lambda s: s.windows.__setitem__(window, bounds))

    def update_display(self, **changes: Any) -> None:
        unknown = set(changes) - set(DisplaySettings.model_fields)
        if unknown:
            raise ConfigurationError(f"Unknown display settings: {', '.join(sorted(unknown))}")
        try:
            display = DisplaySettings.model_validate({**self.settings.display.model_dump(), **changes})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid display settings: {e}")
        self._commit(lambda s: setattr(s, "display", display))
