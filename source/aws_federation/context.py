# ABOUTME: Cancellable context threaded through OAuth and role assumption calls
# ABOUTME: Checked between network round trips, never in the middle of one

"""Cancellation context for multi-step credential retrieval."""

import threading

from .errors import OperationCancelledError


class Context:
    """A cancellation flag shared between a caller and a credential retrieval."""

    def __init__(self):
        self._cancelled = threading.Event()
        self.reason = ""

    def cancel(self, reason: str = "operation cancelled") -> None:
        self.reason = reason
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def check(self) -> None:
        """Raise OperationCancelledError if the context was cancelled."""
        if self._cancelled.is_set():
            raise OperationCancelledError(self.reason)