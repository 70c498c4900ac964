"""Tests for middleware — security headers, request IDs, rate limiting.

Learn: Rate limiting is skipped in tests (no Redis available), so the
limiter itself is tested against a small in-memory stand-in for the two
Redis commands it uses.
"""

import pytest

from plannora import redis_client


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    """Health endpoint returns security headers."""
    r = await client.get("/api/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert "Cache-Control" not in r.headers


@pytest.mark.asyncio
async def test_request_id_generated(client):
    """Each request gets a unique X-Request-ID header."""
    r1 = await client.get("/api/health")
    r2 = await client.get("/api/health")
    assert "X-Request-ID" in r1.headers
    assert "X-Request-ID" in r2.headers
    # Each request gets a unique ID
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    """Incoming X-Request-ID is propagated through the response."""
    custom_id = "test-trace-12345"
    r = await client.get("/api/health", headers={"X-Request-ID": custom_id})
    assert r.headers["X-Request-ID"] == custom_id


@pytest.mark.asyncio
async def test_oversized_request_id_replaced(client):
    r = await client.get("/api/health", headers={"X-Request-ID": "x" * 500})
    assert r.headers["X-Request-ID"] != "x" * 500


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    """HSTS header is NOT set on HTTP connections (only HTTPS)."""
    r = await client.get("/api/health")
    assert "Strict-Transport-Security" not in r.headers


class _FakeRedis:
    """Counts per bucket, ignoring the minute suffix so a test never straddles windows."""

    def __init__(self):
        self.counts = {}

    async def incr(self, key):
        bucket = key.rsplit(":", 1)[0]
        self.counts[bucket] = self.counts.get(bucket, 0) + 1
        return self.counts[bucket]

    async def expire(self, key, seconds):
        return True


@pytest.mark.asyncio
async def test_credential_endpoints_are_rate_limited(client, monkeypatch):
    """Login attempts beyond the per-minute budget get a 429."""
    from plannora.config import settings

    monkeypatch.setattr(redis_client, "_redis", _FakeRedis())
    body = {"email": "nobody@example.com", "password": "guess"}

    for _ in range(settings.rate_limit_auth_rpm):
        r = await client.post("/api/auth/login", json=body)
        assert r.status_code == 401
        assert "X-RateLimit-Limit" in r.headers

    r = await client.post("/api/auth/login", json=body)
    assert r.status_code == 429
    assert "Retry-After" in r.headers

    # The general API bucket is separate
    r = await client.get("/api/health")
    assert r.status_code == 200
    assert r.headers["X-RateLimit-Limit"] == str(settings.rate_limit_rpm)


@pytest.mark.asyncio
async def test_hsts_behind_https_proxy(client):
    r = await client.get("/api/health", headers={"X-Forwarded-Proto": "https"})
    assert r.headers["Strict-Transport-Security"].startswith("max-age=")
