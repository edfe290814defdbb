import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from artsy_client.config import get_settings

logger = logging.getLogger(__name__)


class TaskRunner:
    """Fire-and-forget execution of network work.

    With ``sync_inline`` enabled every task runs on the caller's thread,
    which keeps tests deterministic.
    """

    def __init__(self, max_workers: Optional[int] = None, inline: Optional[bool] = None):
        self.settings = get_settings()
        self.inline = bool(inline) if inline is not None else bool(self.settings.sync_inline)
        self.executor = None
        if not self.inline:
            self.executor = ThreadPoolExecutor(
                max_workers=max_workers or self.settings.max_workers,
                thread_name_prefix="artsy-sync",
            )

    def submit(self, fn: Callable, *args) -> Optional[Future]:
        if self.executor is None:
            fn(*args)
            return None
        future = self.executor.submit(fn, *args)
        future.add_done_callback(self._log_failure)
        return future

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)

    def shutdown(self, wait: bool = True) -> None:
        if self.executor is not None:
            self.executor.shutdown(wait=wait)

    @staticmethod
    def _log_failure(future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Background task failed", exc_info=exc)
