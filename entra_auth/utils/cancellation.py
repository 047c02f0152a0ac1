"""Run a blocking call so that the waiting caller can cancel it cooperatively."""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TypeVar

from entra_auth import config
from entra_auth.errors import LoginCanceledError
from entra_auth.utils.logger import get_logger

T = TypeVar("T")

logger = get_logger("entra_auth.utils.cancellation")


def run_cancellable(
    fn: Callable[[], T],
    cancel_event: threading.Event | None = None,
    *,
    name: str = "entra-auth-call",
    poll_interval: float | None = None,
    on_cancel: Callable[[], None] | None = None,
) -> T:
    """Run fn and return its result, or raise LoginCanceledError once cancel_event is set.

    Without a cancel_event fn runs inline on the calling thread. Otherwise fn runs on
    a single daemon thread while the caller polls the event; on cancellation the
    worker's eventual result is discarded, so nothing downstream of fn is written.
    Exceptions raised by fn propagate unchanged.

    on_cancel must make fn return promptly (e.g. by closing the socket it waits on).
    When given, it runs on cancellation and the worker is joined before
    LoginCanceledError is raised, so whatever fn held is released by then.
    """
    if cancel_event is None:
        return fn()
    if cancel_event.is_set():
        raise LoginCanceledError()

    future: Future[T] = Future()

    def _worker() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(fn())
        except BaseException as e:  # handed to the waiting caller
            future.set_exception(e)

    worker = threading.Thread(target=_worker, name=name, daemon=True)
    worker.start()
    interval = poll_interval if poll_interval is not None else config.CANCEL_POLL_INTERVAL_SECONDS
    while True:
        if cancel_event.is_set():
            future.cancel()
            if on_cancel is not None:
                on_cancel()
                worker.join(config.CANCEL_JOIN_TIMEOUT_SECONDS)
                if worker.is_alive():
                    logger.warning("cancellable.worker_still_running", name=name)
            raise LoginCanceledError()
        try:
            return future.result(timeout=interval)
        except FutureTimeoutError:
            continue
