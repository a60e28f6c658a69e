# tests/kraken_spot_sdk/auth/test_nonce.py

import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from kraken_spot_sdk.auth.nonce import (
    ClockNonceSource,
    CounterNonceSource,
    NonceSource,
    UnixMillisNonceSource,
)


class TestClockNonceSource:
    """Tests for the default, clock based nonce source."""

    def test_is_a_nonce_source(self):
        assert isinstance(ClockNonceSource(), NonceSource)

    def test_nonce_is_a_nanosecond_timestamp(self):
        before = time.time_ns()
        nonce = ClockNonceSource().next()
        assert nonce >= before

    def test_sequential_calls_strictly_increase(self):
        source = ClockNonceSource()
        nonces = [source.next() for _ in range(1000)]
        assert all(b > a for a, b in zip(nonces, nonces[1:]))

    def test_stalled_clock_still_increases(self):
        source = ClockNonceSource()
        with patch("kraken_spot_sdk.auth.nonce.time.time_ns", return_value=1_000):
            assert [source.next() for _ in range(3)] == [1_000, 1_001, 1_002]

    def test_clock_stepping_backwards_never_decreases(self):
        source = ClockNonceSource()
        with patch("kraken_spot_sdk.auth.nonce.time.time_ns", side_effect=[5_000, 4_000, 6_000]):
            assert [source.next() for _ in range(3)] == [5_000, 5_001, 6_000]

    def test_concurrent_issuers_get_unique_increasing_nonces(self):
        source = ClockNonceSource()

        def issue(_):
            return [source.next() for _ in range(500)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            sequences = list(pool.map(issue, range(8)))

        for sequence in sequences:
            assert all(b > a for a, b in zip(sequence, sequence[1:]))
        all_nonces = [n for sequence in sequences for n in sequence]
        assert len(set(all_nonces)) == len(all_nonces)


class TestCounterNonceSource:
    """Tests for the base + counter nonce source."""

    def test_first_nonce_is_the_base(self):
        before = time.time_ns()
        source = CounterNonceSource()
        nonce = source.next()
        assert nonce >= before
        assert nonce == source._base
        assert source._inc == 1

    def test_increments_by_one(self):
        source = CounterNonceSource()
        first = source.next()
        assert [source.next() for _ in range(3)] == [first + 1, first + 2, first + 3]

    def test_concurrent_calls_never_collide(self):
        source = CounterNonceSource()
        with ThreadPoolExecutor(max_workers=4) as pool:
            nonces = list(pool.map(lambda _: source.next(), range(2000)))
        assert len(set(nonces)) == 2000


class TestUnixMillisNonceSource:
    """Tests for the millisecond timestamp nonce source."""

    def test_nonce_is_a_millisecond_timestamp(self):
        now_ms = time.time_ns() // 1_000_000
        nonce = UnixMillisNonceSource().next()
        assert nonce >= now_ms
        assert nonce < time.time_ns()

    def test_non_decreasing(self):
        source = UnixMillisNonceSource()
        nonces = [source.next() for _ in range(100)]
        assert nonces == sorted(nonces)


def test_nonce_source_is_abstract():
    with pytest.raises(TypeError):
        NonceSource()
