from typing import Callable

from loguru import logger

from .connection import ConnectionManager
from .models import DeviceFamily, DeviceRecord, parse_device_id


class DeviceSelection:
    """The one device currently receiving remote-control keys.

    Selection changes open and close the adb session as needed and report
    the new device id to ``on_change`` so it can be persisted.
    """

    def __init__(self, connection: ConnectionManager, on_change: Callable[[str], None] | None = None):
        self.connection = connection
        self.on_change = on_change
        self._current: DeviceRecord | None = None

    @property
    def current(self) -> DeviceRecord | None:
        return self._current

    @property
    def device_id(self) -> str:
        return self._current.id if self._current else ""

    def select(self, device_id: str) -> DeviceRecord | None:
        if self._apply(device_id):
            self._notify()
        return self._current

    def restore(self, device_id: str) -> DeviceRecord | None:
        """Apply a persisted selection at startup without writing it back."""
        self._apply(device_id)
        return self._current

    def clear(self) -> None:
        self._release()
        self._current = None

    def delete(self, device_id: str) -> bool:
        if self._current is None or not self._same_device(device_id):
            return False
        logger.info(f"Selected device {device_id} deleted, clearing selection")
        self.clear()
        self._notify()
        return True

    def _apply(self, device_id: str) -> bool:
        if not device_id:
            self.clear()
            return True

        try:
            address, family = parse_device_id(device_id)
        except ValueError as e:
            logger.warning(str(e))
            return False

        previous = self._current
        if previous is not None and previous.family is DeviceFamily.ADB_SHELL:
            if previous.address != address or family is not DeviceFamily.ADB_SHELL:
                self.connection.disconnect()

        if family is DeviceFamily.ADB_SHELL and not self.connection.is_connected:
            self.connection.connect(address)

        self._current = DeviceRecord(address=address, family=family)
        logger.info(f"Control selected: {address} ({family.value})")
        return True

    def _release(self) -> None:
        if (
            self._current is not None
            and self._current.family is DeviceFamily.ADB_SHELL
            and self.connection.is_connected
        ):
            self.connection.disconnect()

    def _same_device(self, device_id: str) -> bool:
        try:
            address, family = parse_device_id(device_id)
        except ValueError:
            return False
        return (address, family) == (self._current.address, self._current.family)

    def _notify(self) -> None:
        if self.on_change:
            self.on_change(self.device_id)
