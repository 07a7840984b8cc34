"""Cancellation context passed through every provider call."""

import threading
import time
from concurrent.futures import CancelledError


class Context:
    """Cancel signal with an optional deadline.

    The aggregation core never inspects the context itself. It only hands it
    to providers, which check it at each call boundary.
    """

    def __init__(self, timeout: float | None = None) -> None:
        """Create a context, optionally expiring ``timeout`` seconds from now."""
        self._cancel_event = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Cancel the context."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        """Whether the context was cancelled or its deadline passed."""
        if self._cancel_event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> float | None:
        """Seconds left until the deadline, None when there is no deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self) -> None:
        """Raise ``CancelledError`` if the context is done."""
        if self.cancelled:
            reason = "cancelled" if self._cancel_event.is_set() else "deadline exceeded"
            raise CancelledError(f"Context {reason}")


def background() -> Context:
    """Context that is never cancelled and has no deadline."""
    return Context()
