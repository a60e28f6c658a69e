# src/kraken_spot_sdk/auth/nonce.py

# --- Built Ins ---
import threading
import time
from abc import ABC, abstractmethod


class NonceSource(ABC):
    """
    Produces the nonces used to sign private requests.

    The API rejects replayed or out-of-order nonces for a given key, so an
    implementation must never return a value lower than one it already
    returned. Callers must not assume any numeric scale.
    """

    @abstractmethod
    def next(self) -> int:
        raise NotImplementedError


class ClockNonceSource(NonceSource):
    """
    Default nonce source, based on the nanosecond wall clock.

    Readings are taken under a lock and bumped past the last issued value, so
    nonces are unique and strictly increasing across every thread and task
    sharing the instance, even if the clock stalls or steps backwards.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._last = 0

    def next(self) -> int:
        with self._lock:
            nonce = max(time.time_ns(), self._last + 1)
            self._last = nonce
            return nonce


class CounterNonceSource(NonceSource):
    """
    High frequency nonce source: creation timestamp (ns) plus a counter.

    Never collides inside a single process. Several applications sharing an API
    key can still collide: use one key per application.
    """

    def __init__(self):
        self._base = time.time_ns()
        self._inc = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            nonce = self._base + self._inc
            self._inc += 1
            return nonce


class UnixMillisNonceSource(NonceSource):
    """
    Returns UNIX millisecond timestamps.

    Two calls in the same millisecond return the same value, which the API
    rejects. Only suitable for low frequency usage.
    """

    def next(self) -> int:
        return time.time_ns() // 1_000_000
