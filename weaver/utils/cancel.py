"""Cancellation token threaded through the agent loop and model client."""

import threading
from typing import Optional

from weaver.errors import CancelledError


class CancelToken:
    """Thread-safe cancellation flag.

    The host cancels from any thread (for example a UI closing a session); the
    loop checks the token before each model call and before each file mutation.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancelledError(self.reason or "cancelled")
