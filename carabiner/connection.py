import shutil
from concurrent.futures import Future

from loguru import logger

from .exceptions import ExecutionError
from .executor import BackgroundWorker, Executor, LocalExecutor


def resolve_adb_path(configured: str | None = None) -> str | None:
    if configured:
        return configured
    return shutil.which("adb")


class ConnectionManager:
    """Owns the single adb session used for shell-based remote control.

    ``connect`` and ``disconnect`` queue the adb call and return immediately.
    The connected flag tracks the requested state: a failed ``adb connect``
    is logged but still leaves the manager marked as connected, and the next
    selection change or ``disconnect`` resets it.
    """

    def __init__(
        self,
        adb_path: str | None = None,
        executor: Executor | None = None,
        worker: BackgroundWorker | None = None,
    ):
        self.adb_path = resolve_adb_path(adb_path)
        self.executor = executor or LocalExecutor()
        self.worker = worker or BackgroundWorker("adb")
        self._connected = False
        self._address: str | None = None

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def address(self) -> str | None:
        return self._address if self._connected else None

    def set_adb_path(self, path: str | None) -> None:
        self.adb_path = resolve_adb_path(path)
        logger.info(f"ADB tool path set to {self.adb_path}")

    def connect(self, address: str) -> bool:
        if not self.adb_path:
            logger.error("ADB path not set.")
            return self._connected

        if self._connected:
            if self._address == address:
                return True
            self.disconnect()

        self.submit(["connect", address], timeout=15)
        self._connected = True
        self._address = address
        logger.info(f"Connecting to ADB in {address}")
        return self._connected

    def disconnect(self) -> bool:
        if not self.adb_path:
            logger.error("ADB path not set.")
            return self._connected
        if not self._connected:
            return False

        self.submit(["disconnect"], timeout=8)
        logger.info(f"Disconnecting from ADB in {self._address}")
        self._connected = False
        self._address = None
        return self._connected

    def submit(self, args: list[str], timeout: int = 10) -> Future | None:
        if not self.adb_path:
            return None
        return self.worker.submit(self._run, [self.adb_path, *args], timeout)

    def _run(self, cmd: list[str], timeout: int) -> bool:
        try:
            output = self.executor.run(cmd, timeout=timeout)
        except ExecutionError as e:
            logger.error(f"ADB command failed: {e}")
            return False
        if output:
            logger.debug(output)
        return True

    def close(self) -> None:
        self.disconnect()
        self.worker.shutdown(wait=True)
