"""Background interactive login with cancellation and a completion callback."""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent import futures
from concurrent.futures import Future

from entra_auth.errors import LoginCanceledError
from entra_auth.models.login_status import LoginStatus
from entra_auth.utils.logger import get_logger

logger = get_logger("entra_auth.auth.login_task")

LoginFunction = Callable[[threading.Event], LoginStatus]
DoneCallback = Callable[["LoginTask"], None]


class LoginTask:
    """Runs one login function on a daemon thread.

    The function receives the task's cancel event and is expected to stop with
    LoginCanceledError once it is set. ``on_done`` is invoked on the worker thread
    after the outcome is available through result().
    """

    def __init__(self, login_fn: LoginFunction, on_done: DoneCallback | None = None):
        self._login_fn = login_fn
        self._on_done = on_done
        self.cancel_event = threading.Event()
        self._future: Future[LoginStatus] = Future()
        self._thread = threading.Thread(target=self._run, name="entra-auth-login-task", daemon=True)

    def start(self) -> LoginTask:
        self._thread.start()
        return self

    def _run(self) -> None:
        self._future.set_running_or_notify_cancel()
        try:
            status = self._login_fn(self.cancel_event)
        except LoginCanceledError as e:
            logger.info("login_task.canceled")
            self._future.set_exception(e)
        except Exception as e:
            logger.warning("login_task.failed", error=str(e))
            self._future.set_exception(e)
        else:
            self._future.set_result(status)
        if self._on_done is not None:
            try:
                self._on_done(self)
            except Exception:
                logger.exception("login_task.callback_failed")

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def canceled(self) -> bool:
        return self.cancel_event.is_set()

    def done(self) -> bool:
        return self._future.done()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the login function has returned; False if it is still running after timeout."""
        done, _ = futures.wait([self._future], timeout)
        return bool(done)

    def result(self, timeout: float | None = None) -> LoginStatus:
        """The LoginStatus, or the exception raised by the login function."""
        return self._future.result(timeout)

    def exception(self, timeout: float | None = None) -> BaseException | None:
        return self._future.exception(timeout)
