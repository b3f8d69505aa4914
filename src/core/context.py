"""
Cancellation and deadline handle passed down into capability calls.

A ScanContext is created by the caller, handed to the scan orchestrator and
forwarded unchanged to the identity resolver. Any thread may cancel it.
"""

import threading
import time
from typing import Optional

from core.exceptions import ScanCancelledError


class ScanContext:
    """Explicit cancellation/deadline handle for one scan."""

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize scan context.

        Args:
            timeout: Seconds until the deadline, None for no deadline
        """
        self._cancelled = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Cancel the context; pending and future checks will fail."""
        self._cancelled.set()

    @property
    def deadline_exceeded(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def cancelled(self) -> bool:
        """True once cancel() was called or the deadline has passed."""
        return self._cancelled.is_set() or self.deadline_exceeded

    def remaining(self) -> Optional[float]:
        """
        Seconds left until the deadline.

        Returns:
            Remaining seconds (never negative), None if there is no deadline
        """
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def bound(self, timeout: float) -> float:
        """Clamp a per-operation timeout to what is left of the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        return min(timeout, remaining)

    def check(self) -> None:
        """
        Raise if the context is no longer live.

        Raises:
            ScanCancelledError: If cancelled or past the deadline
        """
        if self._cancelled.is_set():
            raise ScanCancelledError("scan cancelled")
        if self.deadline_exceeded:
            raise ScanCancelledError("scan deadline exceeded")

    def wait(self, seconds: float) -> None:
        """
        Sleep for up to ``seconds``, waking early on cancellation.

        Raises:
            ScanCancelledError: If the context ends before or during the wait
        """
        self.check()
        self._cancelled.wait(self.bound(seconds))
        self.check()
