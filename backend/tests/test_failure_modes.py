"""
Failure Injection Tests.

Validates resilience against mapping provider and cache outages.
"""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from backend.app.core.reliability import CircuitBreaker, CircuitOpenError
from backend.app.services.cache import CacheService, DASHBOARD_NAMESPACE


async def failing_func():
    raise ValueError("Boom")


async def healthy_func():
    return "ok"


@pytest.mark.asyncio
async def test_circuit_breaker_activates():
    """Circuit opens after threshold failures and stops calling through."""
    cb = CircuitBreaker("test", failure_threshold=2, reset_timeout=60)
    calls = []

    async def tracked():
        calls.append(1)
        raise ValueError("Boom")

    for _ in range(2):
        with pytest.raises(ValueError):
            await cb.call(tracked)

    assert cb.state == "OPEN"
    with pytest.raises(CircuitOpenError):
        await cb.call(tracked)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_success_resets_failure_count():
    cb = CircuitBreaker("test", failure_threshold=2, reset_timeout=60)

    with pytest.raises(ValueError):
        await cb.call(failing_func)
    assert await cb.call(healthy_func) == "ok"
    with pytest.raises(ValueError):
        await cb.call(failing_func)

    assert cb.state == "CLOSED"
    assert cb.failures == 1


@pytest.mark.asyncio
async def test_half_open_trial_closes_circuit(mocker):
    clock = mocker.patch("backend.app.core.reliability.time.time", return_value=1000.0)
    cb = CircuitBreaker("test", failure_threshold=1, reset_timeout=30)

    with pytest.raises(ValueError):
        await cb.call(failing_func)
    assert cb.state == "OPEN"

    clock.return_value = 1031.0
    assert await cb.call(healthy_func) == "ok"
    assert cb.state == "CLOSED"
    assert cb.failures == 0


@pytest.mark.asyncio
async def test_half_open_trial_failure_reopens(mocker):
    clock = mocker.patch("backend.app.core.reliability.time.time", return_value=1000.0)
    cb = CircuitBreaker("test", failure_threshold=1, reset_timeout=30)

    with pytest.raises(ValueError):
        await cb.call(failing_func)

    clock.return_value = 1031.0
    with pytest.raises(ValueError):
        await cb.call(failing_func)

    assert cb.state == "OPEN"
    with pytest.raises(CircuitOpenError):
        await cb.call(healthy_func)


@pytest.mark.asyncio
async def test_cache_degrades_when_redis_down(mocker):
    broken = mocker.AsyncMock()
    broken.get.side_effect = RedisConnectionError("connection refused")
    broken.set.side_effect = RedisConnectionError("connection refused")
    broken.incr.side_effect = RedisConnectionError("connection refused")

    key = await CacheService.build_key(broken, DASHBOARD_NAMESPACE, "overview", "all")
    assert key is None
    assert await CacheService.get(broken, "cache:dashboard:v0:overview:all") is None

    await CacheService.set(broken, "cache:dashboard:v0:overview:all", {"total_trips": 1})
    await CacheService.invalidate(broken)
    broken.set.assert_awaited_once()


@pytest.mark.asyncio
async def test_invalidate_bumps_key_version(redis):
    before = await CacheService.build_key(redis, DASHBOARD_NAMESPACE, "overview", "all")
    await CacheService.set(redis, before, {"total_trips": 1})
    assert await CacheService.get(redis, before) == {"total_trips": 1}

    await CacheService.invalidate(redis)
    after = await CacheService.build_key(redis, DASHBOARD_NAMESPACE, "overview", "all")

    assert before == "cache:dashboard:v0:overview:all"
    assert after == "cache:dashboard:v1:overview:all"
    assert await CacheService.get(redis, after) is None
