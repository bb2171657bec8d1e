"""Tests for HTTP middleware — security headers, request IDs, rate limiting.

Learn: Redis is never initialised in tests, so the rate limiter passes
requests straight through. The limiter itself is exercised against a
fake counter installed as the cache's pool.
"""

import pytest

from myway import cache


@pytest.mark.asyncio
async def test_security_headers(client):
    r = await client.get("/api/v1/health")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_auth_responses_not_cached(client):
    r = await client.post("/api/v1/auth/logout", json={"refresh_token": "x"})
    assert r.headers["Cache-Control"] == "no-store"


@pytest.mark.asyncio
async def test_security_headers_on_error_responses(client):
    r = await client.get("/api/v1/auth/me")
    assert r.status_code == 401
    assert r.headers["X-Frame-Options"] == "DENY"


@pytest.mark.asyncio
async def test_request_id_generated_and_unique(client):
    r1 = await client.get("/api/v1/health")
    r2 = await client.get("/api/v1/health")
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    r = await client.get("/api/v1/health", headers={"X-Request-ID": "trace-12345"})
    assert r.headers["X-Request-ID"] == "trace-12345"


class FakeRedis:
    def __init__(self):
        self.counts = {}

    async def incr(self, key):
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    async def expire(self, key, seconds):
        return True

    async def ping(self):
        return True


@pytest.mark.asyncio
async def test_signin_rate_limited(client, monkeypatch):
    from myway.config import settings

    monkeypatch.setattr(cache, "_redis", FakeRedis())
    body = {"email": "nobody@myway.io", "password": "wrong"}
    statuses = [
        (await client.post("/api/v1/auth/signin", json=body)).status_code
        for _ in range(settings.rate_limit_auth_rpm + 1)
    ]
    assert statuses[:-1] == [401] * settings.rate_limit_auth_rpm
    assert statuses[-1] == 429


@pytest.mark.asyncio
async def test_rate_limit_headers(client, monkeypatch):
    monkeypatch.setattr(cache, "_redis", FakeRedis())
    r = await client.get("/api/v1/health")
    assert r.headers["X-RateLimit-Limit"] == "100"
    assert r.headers["X-RateLimit-Remaining"] == "99"
