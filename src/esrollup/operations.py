"""Listener-based asynchronous operations.

Every ``*_async`` call on the client returns a :class:`PendingOperation`
and reports its outcome to an :class:`ActionListener`. Exactly one of
``on_response`` / ``on_failure`` runs, exactly once:

* success → ``on_response(result)``
* engine or validation error → ``on_failure(exc)``
* :meth:`PendingOperation.cancel` before completion →
  ``on_failure(OperationCancelledError)``

Cancelling only abandons the local wait. A request already handed to the
engine may still take effect there.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import OperationCancelledError

logger = logging.getLogger(__name__)


def _ignore(_: Any) -> None:
    return None


@dataclass(frozen=True)
class ActionListener:
    on_response: Callable[[Any], None] = _ignore
    on_failure: Callable[[BaseException], None] = _ignore


class PendingOperation:
    """Handle for an in-flight operation with single-fire completion."""

    def __init__(self, name: str, listener: Optional[ActionListener] = None) -> None:
        self.name = name
        self._listener = listener or ActionListener()
        self._lock = threading.Lock()
        self._settled = False
        self._finished = threading.Event()
        self._future: Optional[Future] = None
        self._response: Any = None
        self._error: Optional[BaseException] = None
        self._cancelled = False

    def _attach(self, future: Future) -> None:
        self._future = future

    def _settle(
        self, response: Any = None, error: Optional[BaseException] = None
    ) -> bool:
        with self._lock:
            if self._settled:
                return False
            self._settled = True
            self._response = response
            self._error = error
        try:
            if error is None:
                self._listener.on_response(response)
            else:
                self._listener.on_failure(error)
        except Exception:
            # A failing callback is not re-routed to the other callback.
            logger.exception("Listener for %s raised", self.name)
        finally:
            self._finished.set()
        return True

    def cancel(self) -> bool:
        """Fail the operation with :class:`OperationCancelledError`.

        Returns False when it had already completed.
        """
        with self._lock:
            if self._settled:
                return False
            self._cancelled = True
        if self._future is not None:
            self._future.cancel()
        settled = self._settle(error=OperationCancelledError(self.name))
        if settled:
            logger.info("%s cancelled; engine-side effects are not rolled back", self.name)
        return settled

    def cancelled(self) -> bool:
        return self._cancelled and isinstance(self._error, OperationCancelledError)

    def done(self) -> bool:
        return self._finished.is_set()

    def result(self, timeout: Optional[float] = None) -> Any:
        """Block until completion and return the response or raise its error."""
        if not self._finished.wait(timeout):
            raise TimeoutError(f"{self.name} did not complete within {timeout}s")
        if self._error is not None:
            raise self._error
        return self._response


class OperationRunner:
    """Runs blocking client calls on a thread pool behind listeners."""

    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="esrollup"
        )

    def submit(
        self,
        name: str,
        fn: Callable[..., Any],
        listener: Optional[ActionListener] = None,
        *args: Any,
        **kwargs: Any,
    ) -> PendingOperation:
        operation = PendingOperation(name, listener)

        def _run() -> None:
            if operation.done():
                return
            try:
                response = fn(*args, **kwargs)
            except Exception as exc:
                operation._settle(error=exc)
                return
            except BaseException as exc:
                # Still report it, then let it reach the worker thread.
                operation._settle(error=exc)
                raise
            operation._settle(response=response)

        try:
            operation._attach(self._executor.submit(_run))
        except RuntimeError as exc:
            # Executor already shut down.
            operation._settle(error=exc)
        return operation

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
