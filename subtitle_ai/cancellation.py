"""Cooperative cancellation shared by downloads, sampling and recognition."""

import threading

from .exceptions import OperationCancelled


class CancellationToken:
    """A one-shot cancellation signal.

    Work is never preempted: long-running loops poll ``cancelled`` or call
    ``raise_if_cancelled`` between units of work.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled()


# Shared token that is never cancelled, used when callers pass none
NEVER_CANCELLED = CancellationToken()
