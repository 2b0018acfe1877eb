import re
from concurrent.futures import Future
from types import MappingProxyType

import requests
from loguru import logger

from .connection import ConnectionManager
from .executor import BackgroundWorker
from .models import Key, KeyPhase, LogicalCommand

ECP_PORT = 8060
ECP_TIMEOUT = 2.0
# Posts in flight at once; an offline device ties up one slot per key for ECP_TIMEOUT
ECP_MAX_INFLIGHT = 16

_IPV4_FORMAT = re.compile(r"(\d{1,3}\.){3}\d{1,3}")

ADB_KEYCODES = MappingProxyType({
    Key.UP: 19,
    Key.DOWN: 20,
    Key.LEFT: 21,
    Key.RIGHT: 22,
    Key.SELECT: 66,
    Key.BACK: 4,
    Key.HOME: 3,
    Key.INFO: 1,
    Key.REWIND: 89,
    Key.PLAY: 85,
    Key.FORWARD: 90,
    Key.VOLUME_MUTE: 164,
})


def is_valid_ip(address: str | None) -> bool:
    if address and len(address) >= 7:
        return _IPV4_FORMAT.fullmatch(address) is not None
    return False


def ecp_subcommand(phase: KeyPhase | None) -> str:
    if phase is None:
        return "keypress"
    return "keydown" if phase is KeyPhase.DOWN else "keyup"


def ecp_url(address: str, command: LogicalCommand, phase: KeyPhase | None = None) -> str:
    return f"http://{address}:{ECP_PORT}/{ecp_subcommand(phase)}/{command.token}"


class EcpSender:
    """Sends keys to Roku devices over the External Control Protocol.

    Requests are posted from a pool of background threads so a slow or
    unreachable device never holds up keys sent after it. An unreachable
    device is an expected state and only shows up in the debug log.
    """

    def __init__(self, worker: BackgroundWorker | None = None, session: requests.Session | None = None):
        self.worker = worker or BackgroundWorker("ecp", max_workers=ECP_MAX_INFLIGHT)
        self.session = session or requests.Session()

    def send(self, address: str, command: LogicalCommand, phase: KeyPhase | None = None) -> Future | None:
        if not is_valid_ip(address):
            logger.warning(f"Invalid device address: {address!r}")
            return None
        url = ecp_url(address, command, phase)
        logger.debug(f"Sending ECP key: {url}")
        return self.worker.submit(self._post, url)

    def _post(self, url: str) -> bool:
        try:
            self.session.post(url, timeout=ECP_TIMEOUT)
        except requests.RequestException as e:
            logger.debug(f"Error sending ECP key: {e}")
            return False
        return True

    def close(self) -> None:
        # Keys still waiting on an offline device are dropped, not delivered late
        self.worker.shutdown(wait=False, cancel_futures=True)
        self.session.close()


class AdbSender:
    def __init__(self, connection: ConnectionManager):
        self.connection = connection

    def send(self, command: LogicalCommand) -> Future | None:
        code = ADB_KEYCODES.get(command.key) if command.key else None
        if code is None:
            logger.debug(f"No ADB key event for {command}")
            return None
        if not self.connection.is_connected:
            logger.debug(f"ADB not connected, dropping {command}")
            return None

        logger.debug(f"{command} pressed.")
        return self.connection.submit(["shell", "input", "keyevent", str(code)])

    def send_keycode(self, code: str) -> Future | None:
        """Send a raw Android keycode such as ``"3"`` (home)."""
        if not (code.isascii() and code.isdigit()):
            logger.warning(f"Invalid ADB keycode: {code!r}")
            return None
        if not self.connection.is_connected:
            logger.debug(f"ADB not connected, dropping keycode {code}")
            return None
        return self.connection.submit(["shell", "input", "keyevent", code])
