"""Running persistence calls without blocking the UI thread.

Worker threads only perform the HTTP call. Their outcome is queued and the
callbacks run when the UI thread calls `drain()`, so the store is only ever
touched from one thread.
"""
import logging
import queue
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

logger = logging.getLogger(__name__)

OnSuccess = Callable[[Any], None]
OnFailure = Callable[[Exception], None]


class RequestDispatcher:
    def __init__(self, max_workers: int = 4):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="kanban-io")
        self._completed: "queue.Queue" = queue.Queue()

    def submit(self, call: Callable[[], Any], on_success: OnSuccess, on_failure: OnFailure) -> Future:
        future = self._executor.submit(call)
        future.add_done_callback(lambda f: self._completed.put((f, on_success, on_failure)))
        return future

    def drain(self) -> int:
        """Run callbacks of finished calls on the calling thread. Returns how many ran."""
        count = 0
        while True:
            try:
                future, on_success, on_failure = self._completed.get_nowait()
            except queue.Empty:
                return count
            count += 1
            error = future.exception()
            if error is None:
                on_success(future.result())
            elif isinstance(error, Exception):
                on_failure(error)
            else:
                raise error

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
        self.drain()


class ImmediateDispatcher:
    """Runs each call inline. For scripts and tests."""

    def submit(self, call: Callable[[], Any], on_success: OnSuccess, on_failure: OnFailure) -> None:
        try:
            result = call()
        except Exception as e:
            on_failure(e)
            return
        on_success(result)

    def drain(self) -> int:
        return 0

    def shutdown(self, wait: bool = True) -> None:
        pass
