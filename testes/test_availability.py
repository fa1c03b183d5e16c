import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from tvcast.api.deps import get_availability_cache, get_http_client
from tvcast.main import app
from tvcast.services.availability import (
    AvailabilityCache,
    UpstreamError,
    fetch_upstream,
    outbound_headers,
)

STREAM_URL = "https://cdn.example.com/live/index.m3u8"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class CountingHandler:
    def __init__(self, status_code: int = 200, *, raise_exc: Exception | None = None):
        self.status_code = status_code
        self.raise_exc = raise_exc
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_exc is not None:
            raise self.raise_exc
        return httpx.Response(
            self.status_code,
            content=b"#EXTM3U\n",
            headers={"content-type": "application/vnd.apple.mpegurl"},
        )


def test_outbound_headers_identity():
    headers = outbound_headers(STREAM_URL)
    assert headers["Referer"] == "https://cdn.example.com"
    assert headers["Origin"] == "https://cdn.example.com"
    assert "Mozilla" in headers["User-Agent"]


@pytest.mark.asyncio
async def test_check_hits_network_once_within_ttl():
    handler = CountingHandler(200)
    clock = FakeClock()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        cache = AvailabilityCache(client, ttl_seconds=60, clock=clock)

        assert await cache.check(STREAM_URL) is True
        clock.now += 30
        assert cache.is_cached(STREAM_URL)
        assert await cache.check(STREAM_URL) is True
        assert len(handler.requests) == 1
        assert handler.requests[0].method == "HEAD"

        # 61s depois da primeira sonda: entrada vencida, nova sonda
        clock.now += 31
        assert not cache.is_cached(STREAM_URL)
        assert await cache.check(STREAM_URL) is True
        assert len(handler.requests) == 2


@pytest.mark.asyncio
async def test_entry_expires_exactly_at_ttl():
    handler = CountingHandler(200)
    clock = FakeClock()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        cache = AvailabilityCache(client, ttl_seconds=60, clock=clock)
        await cache.check(STREAM_URL)
        clock.now += 60
        assert not cache.is_cached(STREAM_URL)


@pytest.mark.asyncio
async def test_timeout_counts_as_unavailable_and_is_cached():
    handler = CountingHandler(raise_exc=httpx.ReadTimeout("lento demais"))
    clock = FakeClock()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        cache = AvailabilityCache(client, ttl_seconds=60, clock=clock)
        assert await cache.check(STREAM_URL) is False
        assert await cache.check(STREAM_URL) is False
        assert len(handler.requests) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [301, 403, 404, 500, 503])
async def test_non_2xx_is_unavailable(status_code):
    handler = CountingHandler(status_code)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        cache = AvailabilityCache(client, ttl_seconds=60, clock=FakeClock())
        assert await cache.check(STREAM_URL) is False


@pytest.mark.asyncio
async def test_network_error_is_unavailable():
    handler = CountingHandler(raise_exc=httpx.ConnectError("recusado"))
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        cache = AvailabilityCache(client, ttl_seconds=60, clock=FakeClock())
        assert await cache.check(STREAM_URL) is False


@pytest.mark.asyncio
async def test_fetch_upstream_passes_body_and_type():
    handler = CountingHandler(200)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        upstream = await fetch_upstream(client, STREAM_URL)
    assert upstream.content == b"#EXTM3U\n"
    assert upstream.content_type == "application/vnd.apple.mpegurl"
    assert handler.requests[0].headers["Referer"] == "https://cdn.example.com"


@pytest.mark.asyncio
async def test_fetch_upstream_errors():
    async with httpx.AsyncClient(transport=httpx.MockTransport(CountingHandler(404))) as client:
        with pytest.raises(UpstreamError) as excinfo:
            await fetch_upstream(client, STREAM_URL)
    assert excinfo.value.status_code == 404

    handler = CountingHandler(raise_exc=httpx.ConnectError("recusado"))
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(UpstreamError) as excinfo:
            await fetch_upstream(client, STREAM_URL)
    assert excinfo.value.status_code is None


# ----------------------------------------------------------------------
# Endpoint /proxy-stream
# ----------------------------------------------------------------------


@pytest.fixture
def upstream():
    handler = CountingHandler(200)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    cache = AvailabilityCache(client, ttl_seconds=60, clock=FakeClock())
    app.dependency_overrides[get_http_client] = lambda: client
    app.dependency_overrides[get_availability_cache] = lambda: cache
    yield handler
    app.dependency_overrides.pop(get_http_client, None)
    app.dependency_overrides.pop(get_availability_cache, None)


@pytest.mark.asyncio
async def test_proxy_stream_requires_url(upstream):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post("/proxy-stream", json={"action": "check"})
    assert r.status_code == 400
    assert r.json() == {"error": "URL required"}


@pytest.mark.asyncio
async def test_proxy_stream_check_reports_cache(upstream):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        first = await ac.post("/proxy-stream", json={"url": STREAM_URL, "action": "check"})
        second = await ac.post("/proxy-stream", json={"url": STREAM_URL, "action": "check"})

    assert first.json() == {"available": True, "url": STREAM_URL, "cached": False}
    assert second.json() == {"available": True, "url": STREAM_URL, "cached": True}
    assert len(upstream.requests) == 1


@pytest.mark.asyncio
async def test_proxy_stream_relays_content(upstream):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post("/proxy-stream", json={"url": STREAM_URL})

    assert r.status_code == 200
    assert r.content == b"#EXTM3U\n"
    assert r.headers["content-type"] == "application/vnd.apple.mpegurl"
    assert r.headers["cache-control"] == "public, max-age=300"
    assert r.headers["x-proxy-status"] == "direct"
    assert upstream.requests[0].method == "GET"


@pytest.mark.asyncio
async def test_proxy_stream_upstream_status_is_forwarded(upstream):
    upstream.status_code = 403
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post("/proxy-stream", json={"url": STREAM_URL})
    assert r.status_code == 403
    assert r.json() == {"error": "Upstream request failed"}


@pytest.mark.asyncio
async def test_proxy_stream_network_failure_is_502(upstream):
    upstream.raise_exc = httpx.ConnectError("recusado")
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post("/proxy-stream", json={"url": STREAM_URL})
    assert r.status_code == 502
