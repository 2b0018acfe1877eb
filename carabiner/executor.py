import abc
import os
import subprocess
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from loguru import logger

from .exceptions import ExecutionError


class Executor(abc.ABC):
    @abc.abstractmethod
    def run(self, cmd: list[str], timeout: int = 10) -> str:
        pass

class LocalExecutor(Executor):
    def run(self, cmd: list[str], timeout: int = 10) -> str:
        env = os.environ.copy()
        env["LC_ALL"] = "C"
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=timeout,
                env=env
            )
            return result.stdout.strip()
        except subprocess.TimeoutExpired:
            raise ExecutionError(cmd, f"Timed out after {timeout}s")
        except subprocess.CalledProcessError as e:
            raise ExecutionError(cmd, (e.stderr or "").strip())
        except OSError as e:
            raise ExecutionError(cmd, str(e))


class BackgroundWorker:
    """Runs best-effort work off the caller's thread.

    With the default single thread, submissions run in order, so a disconnect
    queued before a connect reaches the tool first. The returned future may be
    discarded; a task that raises resolves to ``False`` after being logged.
    """

    def __init__(self, name: str = "carabiner", max_workers: int = 1):
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        def guarded():
            try:
                return fn(*args)
            except Exception:
                logger.exception(f"Background task {getattr(fn, '__name__', fn)} failed")
                return False
        return self._pool.submit(guarded)

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        self._pool.shutdown(wait=wait, cancel_futures=cancel_futures)
