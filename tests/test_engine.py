# File: tests/test_engine.py
"""End-to-end crawl with the bundled fetcher and heuristic intelligence."""
from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import web

from goal_scout.config import CrawlConfig
from goal_scout.crawler.models import TerminationReason
from goal_scout.engine import Engine, start_scan
from goal_scout.intelligence.base import CrawlHooks

from .fakes import EventLog
from .test_fetcher import _serve_app

HOME = """
<html><head><title>Home</title></head><body><main>
<h1>Python asyncio</h1>
<p>Welcome to the asyncio documentation.</p>
<a href="/docs/asyncio">Asyncio task groups guide</a>
<a href="/private/notes">Secret notes</a>
<a href="/files/manual.pdf">Manual</a>
</main></body></html>
"""

DOCS = """
<html><head><title>Task groups</title></head><body><main>
<h1>Task groups</h1>
<p>Task groups wait for every child task and cancel the rest on failure.</p>
<a href="/">Home</a>
</main></body></html>
"""


@pytest_asyncio.fixture
async def docs_site(unused_tcp_port: int) -> AsyncIterator[tuple]:
    app = web.Application()
    requested = []

    def page(body):
        async def handler(request):
            requested.append(request.path)
            return web.Response(text=body, content_type="text/html")

        return handler

    async def handle_robots(_):
        return web.Response(text="User-agent: *\nDisallow: /private", content_type="text/plain")

    app.router.add_get("/", page(HOME))
    app.router.add_get("/docs/asyncio", page(DOCS))
    app.router.add_get("/private/notes", page("<p>secret</p>"))
    app.router.add_get("/robots.txt", handle_robots)

    async for url in _serve_app(app, unused_tcp_port):
        yield url, requested


@pytest.mark.asyncio()
async def test_start_scan_crawls_allowed_pages(docs_site):
    base, requested = docs_site
    cfg = CrawlConfig(
        base_url=base,
        scraping_goal="asyncio task groups",
        max_pages=5,
        rate_limit=100.0,
        retry_times=0,
        config={"max_execution_time_ms": 10_000},
    )
    events = EventLog()

    output = await start_scan(cfg, CrawlHooks(on_event=events))

    assert [p.url for p in output.pages] == [f"{base}/", f"{base}/docs/asyncio"]
    assert output.pages[1].title == "Task groups"
    assert output.pages[1].content_type == "documentation"
    assert "/private/notes" not in requested
    assert output.termination_reason in (TerminationReason.COMPLETE, TerminationReason.FRONTIER_EXHAUSTED)
    assert output.summary.pages_scraped == 2
    assert events.types[-1] == "scraping-complete"


def test_engine_facade_with_unreachable_host(unused_tcp_port):
    cfg = CrawlConfig(
        base_url=f"http://localhost:{unused_tcp_port}",
        scraping_goal="anything",
        retry_times=0,
        config={"max_execution_time_ms": 5_000},
    )

    output = Engine(cfg).start_scan()

    assert output.pages == []
    assert output.summary.pages_scraped == 0
    assert output.termination_reason is TerminationReason.COMPLETE
