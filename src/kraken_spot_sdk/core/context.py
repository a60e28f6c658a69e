# src/kraken_spot_sdk/core/context.py

# --- Built Ins ---
import time
from typing import Optional


class RequestContext:
    """
    Cooperative cancellation handle for a single API call.

    A context is done once `cancel()` has been called or once its deadline has
    passed. The pipeline checks it before doing any work and hands the
    remaining time to the transport, which enforces it during the call.
    Nothing interrupts a caller that is reading a returned raw stream.
    """

    def __init__(self, timeout_s: Optional[float] = None):
        if timeout_s is not None and timeout_s < 0:
            raise ValueError("timeout_s must be positive or None")
        self._deadline = time.monotonic() + timeout_s if timeout_s is not None else None
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def has_deadline(self) -> bool:
        return self._deadline is not None

    def deadline_exceeded(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def done(self) -> bool:
        return self._cancelled or self.deadline_exceeded()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def reason(self) -> str:
        if self._cancelled:
            return "context cancelled"
        if self.deadline_exceeded():
            return "context deadline exceeded"
        return "context active"
