from concurrent.futures import Future
from typing import Mapping

from loguru import logger

from .keymap import literal_command, normalize
from .models import DeviceFamily, Key, KeyEvent, KeyPhase, LogicalCommand
from .selection import DeviceSelection
from .senders import AdbSender, EcpSender


class CommandRouter:
    """Routes logical commands to the selected device.

    Every send is fire-and-forget: the router never retries or queues, and
    an idle state (nothing selected, adb offline) simply drops the command.
    """

    def __init__(
        self,
        selection: DeviceSelection,
        ecp: EcpSender,
        adb: AdbSender,
        keymap: Mapping[str, LogicalCommand] | None = None,
    ):
        self.selection = selection
        self.ecp = ecp
        self.adb = adb
        self.keymap = keymap

    def dispatch(self, command: LogicalCommand, phase: KeyPhase | None = None) -> Future | None:
        device = self.selection.current
        if device is None or not device.address:
            logger.debug(f"No device selected, dropping {command}")
            return None

        match device.family:
            case DeviceFamily.ECP_HTTP:
                return self.ecp.send(device.address, command, phase)
            case DeviceFamily.ADB_SHELL:
                # adb has no key release; one keyevent per press
                if phase is KeyPhase.UP:
                    return None
                if not self.adb.connection.is_connected:
                    logger.debug(f"ADB device {device.address} offline, dropping {command}")
                    return None
                return self.adb.send(command)
        return None

    def handle_key(self, event: KeyEvent) -> Future | None:
        stroke = normalize(event, self.keymap)
        if stroke is None:
            return None
        logger.debug(f"Sending key: {stroke.command} {stroke.phase}")
        return self.dispatch(stroke.command, stroke.phase)

    def send_named(self, name: str) -> Future | None:
        """Tap a key given by token name (``home``) or as a single character."""
        try:
            command = LogicalCommand.named(Key(name.lower()))
        except ValueError:
            command = literal_command(name)
        if command is None:
            logger.warning(f"Unknown key: {name!r}")
            return None
        return self.dispatch(command)
