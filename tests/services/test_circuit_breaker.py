"""Circuit breaker: in-memory по умолчанию, Redis-хранилище состояния."""
import time
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pybreaker
import pytest

from filestore.services.circuit_breaker import RedisCircuitBreakerStorage, get_circuit_breaker


class DictRedis:
    """Минимальный Redis поверх dict (decode_responses=True)."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = str(value)

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key) or 0) + 1)
        return int(self.data[key])

    def expire(self, key, seconds):
        return True

    def delete(self, key):
        self.data.pop(key, None)


class TestGetCircuitBreaker:
    def test_cached_and_in_memory_without_redis(self):
        breaker = get_circuit_breaker("shortener-test")

        assert get_circuit_breaker("shortener-test") is breaker
        assert breaker.current_state == pybreaker.STATE_CLOSED
        assert breaker.fail_max == 5


class TestRedisStorage:
    def test_state_defaults_to_closed(self):
        client = MagicMock()
        client.get.return_value = None

        assert RedisCircuitBreakerStorage("shortener", client).state == pybreaker.STATE_CLOSED

    def test_state_and_counter_keys(self):
        client = MagicMock()
        storage = RedisCircuitBreakerStorage("shortener", client)

        storage.state = pybreaker.STATE_OPEN
        storage.increment_counter()

        client.set.assert_called_once_with("cb:shortener:state", pybreaker.STATE_OPEN, ex=60)
        client.incr.assert_called_once_with("cb:shortener:counter")

    def test_opened_at_roundtrip_as_isoformat(self):
        client = MagicMock()
        storage = RedisCircuitBreakerStorage("shortener", client)
        now = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        storage.opened_at = now
        client.get.return_value = client.set.call_args.args[1]

        assert storage.opened_at == now

    def test_success_counter_keys(self):
        client = DictRedis()
        storage = RedisCircuitBreakerStorage("shortener", client)

        storage.increment_success_counter()
        storage.increment_success_counter()
        assert storage.success_counter == 2
        assert client.data["cb:shortener:success"] == "2"

        storage.reset_success_counter()
        assert storage.success_counter == 0

    def test_half_open_breaker_closes_after_success(self):
        breaker = pybreaker.CircuitBreaker(
            fail_max=1,
            reset_timeout=0.05,
            state_storage=RedisCircuitBreakerStorage("shortener-recovery", DictRedis()),
            name="shortener-recovery",
        )

        def broken():
            raise RuntimeError("shortener down")

        with pytest.raises((RuntimeError, pybreaker.CircuitBreakerError)):
            breaker.call(broken)
        assert breaker.current_state == pybreaker.STATE_OPEN

        time.sleep(0.1)
        assert breaker.call(lambda: "https://sho.rt/x") == "https://sho.rt/x"

        assert breaker.current_state == pybreaker.STATE_CLOSED
