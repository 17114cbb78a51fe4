"""Test fixtures and configuration."""

import pytest
from unittest.mock import AsyncMock

from credupi.analytics.tracker import LoggingAnalyticsSink
from credupi.gateway.sheets import SubmissionGateway
from credupi.schemas.waitlist import DeliveryOutcome
from credupi.storage.cache import JsonFileEntryCache, RedisEntryCache
from credupi.waitlist.controller import SignupFlowController


@pytest.fixture
def mock_redis():
    """Mock Redis client."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    return redis


@pytest.fixture
def redis_cache(mock_redis):
    return RedisEntryCache(mock_redis, "test_waitlist")


@pytest.fixture
def file_cache(tmp_path):
    return JsonFileEntryCache(tmp_path, "test_waitlist")


@pytest.fixture
def gateway():
    """Gateway stub that reports every entry delivered."""
    gateway = AsyncMock(spec=SubmissionGateway)
    gateway.submit = AsyncMock(return_value=DeliveryOutcome.DELIVERED)
    return gateway


@pytest.fixture
def analytics():
    return LoggingAnalyticsSink()


@pytest.fixture
def controller(gateway, file_cache, analytics):
    """Controller with instant reset and celebration timers."""
    return SignupFlowController(
        gateway=gateway,
        cache=file_cache,
        analytics=analytics,
        country_code="+91",
        reset_delay_ms=0,
        celebration_ms=0,
    )
