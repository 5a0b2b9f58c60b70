# goal_scout/crawler/fetcher.py
"""
Fetcher module: HTTP requests with rate limiting, retry/backoff and timeout.

Errors never escape :meth:`HttpFetcher.fetch`; they are reported in
``FetchResult.error``.
"""
from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Deque, Optional, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout

from goal_scout.config import CrawlConfig
from goal_scout.crawler.models import FetchResult
from goal_scout.crawler.robots import RobotsTxtRules, robots_url_for
from goal_scout.logger import logger

__all__ = ("HttpFetcher", "RETRY_STATUS")

RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)
_AUTH_STATUS = (401, 403)
_MAX_BACKOFF = 60.0


class HttpFetcher:
    """
    aiohttp-backed fetcher.

    Use as an async context manager: entering opens the session (unless one
    was passed in) and loads ``robots.txt`` for the seed host.
    """

    def __init__(
        self,
        config: CrawlConfig,
        session: Optional[ClientSession] = None,
        retry_status: Sequence[int] = RETRY_STATUS,
        backoff: float = 1.0,
    ) -> None:
        self.config = config
        self.session = session
        self.robots: Optional[RobotsTxtRules] = None
        self._owns_session = session is None
        self._retry_status = retry_status
        self._backoff = backoff
        self._req_times: Deque[float] = deque()
        self._js_warned = False

    async def __aenter__(self) -> HttpFetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        await self.load_robots()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session is not None and not self.session.closed:
            await self.session.close()

    async def load_robots(self) -> Optional[RobotsTxtRules]:
        """Fetch robots.txt for the seed; a missing or broken file allows everything."""
        if self.session is None:
            return None
        robots_url = robots_url_for(self.config.seed_url)
        try:
            async with self.session.get(robots_url) as resp:
                if resp.status == 200:
                    self.robots = RobotsTxtRules(await resp.text())
                else:
                    logger.debug("robots.txt %s -> HTTP %s", robots_url, resp.status)
        except (ClientError, asyncio.TimeoutError) as exc:
            logger.warning("Error loading robots.txt: %s", exc)
            self.robots = None
        return self.robots

    async def fetch(self, url: str, *, execute_javascript: bool = False) -> FetchResult:
        if self.session is None:
            raise RuntimeError("Session not initialized")
        if execute_javascript and not self._js_warned:
            logger.warning("JavaScript rendering is not available, fetching raw HTML")
            self._js_warned = True

        attempts = 0
        last_status = 0
        while True:
            await self._wait_for_rate_limit()
            try:
                async with self.session.get(url) as resp:
                    status = last_status = resp.status
                    if status in self._retry_status:
                        raise ClientError(f"Retryable status {status}")
                    headers = {k: v for k, v in resp.headers.items()}
                    final_url = str(resp.url)
                    if status in _AUTH_STATUS:
                        return FetchResult(await resp.text(errors="replace"), status, final_url, headers)
                    if status >= 400:
                        return FetchResult("", status, final_url, headers, error=f"HTTP {status}")
                    ctype = resp.headers.get("Content-Type", "").lower()
                    if ctype and "html" not in ctype:
                        return FetchResult("", status, final_url, headers, error=f"Unsupported content type {ctype}")
                    return FetchResult(await resp.text(errors="replace"), status, final_url, headers)
            except asyncio.TimeoutError:
                # no retry on timeout
                logger.warning("Timeout fetching %s", url)
                return FetchResult(status=0, final_url=url, error="timeout")
            except ClientError as exc:
                attempts += 1
                if attempts > self.config.retry_times:
                    logger.warning("Failed %s: %s", url, exc)
                    return FetchResult(status=last_status, final_url=url, error=str(exc) or type(exc).__name__)
                delay = min(self._backoff * 2**attempts, _MAX_BACKOFF)
                logger.debug("Retry %d/%d for %s after %.2f s", attempts, self.config.retry_times, url, delay)
                await asyncio.sleep(delay)

    async def _wait_for_rate_limit(self) -> None:
        now = time.monotonic()
        while self._req_times and now - self._req_times[0] > 1.0:
            self._req_times.popleft()
        if len(self._req_times) >= self.config.rate_limit:
            await asyncio.sleep(max(0.0, 1.0 - (now - self._req_times[0])))
        self._req_times.append(time.monotonic())
