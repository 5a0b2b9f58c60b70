# File: tests/test_fetcher.py
"""HttpFetcher against a local aiohttp application."""
from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import web

from goal_scout.config import CrawlConfig
from goal_scout.crawler.fetcher import HttpFetcher

UA = "GoalScoutBot/1.0"


async def _serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


@pytest_asyncio.fixture
async def site(unused_tcp_port: int) -> AsyncIterator[str]:
    app = web.Application()
    hits = {"flaky": 0}

    async def handle_root(_):
        return web.Response(text="<h1>Home</h1>", content_type="text/html")

    async def handle_flaky(_):
        hits["flaky"] += 1
        if hits["flaky"] < 3:
            return web.Response(status=503, text="busy")
        return web.Response(text="<p>finally</p>", content_type="text/html")

    async def handle_down(_):
        return web.Response(status=500, text="down")

    async def handle_missing(_):
        return web.Response(status=404, text="nope")

    async def handle_private(_):
        return web.Response(status=401, text="<form><input type='password'></form>", content_type="text/html")

    async def handle_json(_):
        return web.json_response({"a": 1})

    async def handle_robots(_):
        return web.Response(text="User-agent: *\nDisallow: /private\nCrawl-delay: 2", content_type="text/plain")

    app.router.add_get("/", handle_root)
    app.router.add_get("/flaky", handle_flaky)
    app.router.add_get("/down", handle_down)
    app.router.add_get("/missing", handle_missing)
    app.router.add_get("/private", handle_private)
    app.router.add_get("/data.json", handle_json)
    app.router.add_get("/robots.txt", handle_robots)

    async for url in _serve_app(app, unused_tcp_port):
        yield url


def _config(base_url: str, **overrides) -> CrawlConfig:
    values = {
        "base_url": base_url,
        "scraping_goal": "test",
        "timeout": 2.0,
        "rate_limit": 100.0,
        "retry_times": 3,
        "user_agent": UA,
    }
    values.update(overrides)
    return CrawlConfig(**values)


@pytest.mark.asyncio()
async def test_fetch_html_and_robots(site):
    async with HttpFetcher(_config(site)) as fetcher:
        result = await fetcher.fetch(f"{site}/")

        assert result.ok
        assert result.status == 200
        assert "<h1>Home</h1>" in result.html
        assert fetcher.robots is not None
        assert fetcher.robots.can_fetch(UA, f"{site}/private") is False
        assert fetcher.robots.can_fetch(UA, f"{site}/") is True
        assert fetcher.robots.crawl_delay(UA) == 2.0


@pytest.mark.asyncio()
async def test_retryable_status_is_retried(site):
    async with HttpFetcher(_config(site), backoff=0.01) as fetcher:
        result = await fetcher.fetch(f"{site}/flaky")

    assert result.ok
    assert "finally" in result.html


@pytest.mark.asyncio()
async def test_retries_exhausted(site):
    async with HttpFetcher(_config(site, retry_times=1), backoff=0.01) as fetcher:
        result = await fetcher.fetch(f"{site}/down")

    assert not result.ok
    assert result.status == 500
    assert "500" in result.error


@pytest.mark.asyncio()
async def test_client_errors_are_in_band(site):
    async with HttpFetcher(_config(site)) as fetcher:
        missing = await fetcher.fetch(f"{site}/missing")
        data = await fetcher.fetch(f"{site}/data.json")

    assert missing.status == 404
    assert missing.error == "HTTP 404"
    assert data.error.startswith("Unsupported content type")


@pytest.mark.asyncio()
async def test_auth_status_returns_body(site):
    async with HttpFetcher(_config(site)) as fetcher:
        result = await fetcher.fetch(f"{site}/private", execute_javascript=True)

    assert result.ok
    assert result.status == 401
    assert "password" in result.html


@pytest.mark.asyncio()
async def test_unreachable_host_reports_error(unused_tcp_port):
    base = f"http://localhost:{unused_tcp_port}"
    async with HttpFetcher(_config(base, retry_times=0)) as fetcher:
        assert fetcher.robots is None
        result = await fetcher.fetch(f"{base}/")

    assert not result.ok
    assert result.html == ""


@pytest.mark.asyncio()
async def test_fetch_requires_session(site):
    fetcher = HttpFetcher(_config(site))
    with pytest.raises(RuntimeError):
        await fetcher.fetch(f"{site}/")
