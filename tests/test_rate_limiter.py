import asyncio
import inspect

import fakeredis
import pytest

from shifo_api import rate_limiter
from shifo_api.rate_limiter import check_rate_limit


@pytest.fixture
def fake_redis(monkeypatch):
    client = fakeredis.FakeRedis(decode_responses=True)
    client.flushall()
    monkeypatch.setattr(rate_limiter, "redis_client", client)
    monkeypatch.setattr(rate_limiter, "RATE_LIMIT_ENABLED", True)
    return client


def test_check_rate_limit_counts_within_window(fake_redis):
    assert check_rate_limit("k", 2, 60, fake_redis)[:2] == (True, 1)
    assert check_rate_limit("k", 2, 60, fake_redis)[:2] == (True, 2)
    allowed, count, ttl = check_rate_limit("k", 2, 60, fake_redis)
    assert (allowed, count) == (False, 3)
    assert 0 < ttl <= 60


def test_login_is_limited_per_ip(client, fake_redis):
    body = {"username": "nobody", "password": "wrong"}
    for _ in range(10):
        assert client.post("/v1/clinics/login", json=body).status_code == 401

    response = client.post("/v1/clinics/login", json=body)
    assert response.status_code == 429
    assert response.json()["code"] == "RATE_LIMITED"
    assert "Retry-After" in response.headers

    other_ip = client.post("/v1/clinics/login", json=body, headers={"X-Forwarded-For": "10.0.0.9"})
    assert other_ip.status_code == 401


def test_limiter_fails_open_without_redis(client, monkeypatch):
    class Unreachable:
        def pipeline(self):
            raise rate_limiter.redis.ConnectionError("refused")

    monkeypatch.setattr(rate_limiter, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limiter, "redis_client", Unreachable())

    response = client.post("/v1/clinics/login", json={"username": "nobody", "password": "wrong"})
    assert response.status_code == 401


def test_limiter_runs_off_the_event_loop(client, monkeypatch):
    calls = []

    class RecordingPipeline:
        def incr(self, key):
            pass

        def ttl(self, key):
            pass

        def execute(self):
            # Inside the event loop thread a running loop exists; worker threads have none
            try:
                asyncio.get_running_loop()
                calls.append("event-loop")
            except RuntimeError:
                calls.append("worker-thread")
            return [1, 60]

    class RecordingRedis:
        def pipeline(self):
            return RecordingPipeline()

    monkeypatch.setattr(rate_limiter, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limiter, "redis_client", RecordingRedis())

    response = client.post("/v1/clinics/login", json={"username": "nobody", "password": "wrong"})
    assert response.status_code == 401
    assert calls == ["worker-thread"]
    assert not inspect.iscoroutinefunction(rate_limiter.login_rate_limit)
