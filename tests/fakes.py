# File: tests/fakes.py
"""Deterministic collaborators for orchestrator tests."""
from __future__ import annotations

import asyncio
import re
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from goal_scout.crawler.events import CrawlEvent
from goal_scout.crawler.models import (
    AuthDetection,
    AuthRequest,
    DiscoveredLink,
    ExtractionResult,
    FetchResult,
    NavigationDecision,
    PageMetrics,
    UrlAnalysis,
    ValueMetrics,
)

SEED = "https://x.test/"

_TITLE_RE = re.compile(r"<title>(.*?)</title>", re.IGNORECASE | re.DOTALL)

LinkTarget = Union[str, Tuple[str, float]]


def page(title: str, body: str = "", links: Iterable[str] = ()) -> str:
    """Tiny HTML document with a title, an ``<h1>`` and optional anchors."""
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return f"<html><head><title>{title}</title></head><body><h1>{title}</h1><p>{body}</p>{anchors}</body></html>"


def page_for(url: str) -> str:
    """Distinct page per URL so content signatures never collide."""
    return page(url, f"content of {url}")


class FakeFetcher:
    """Serves canned pages; unknown URLs get an in-band 404."""

    def __init__(
        self,
        pages: Optional[Dict[str, Union[str, FetchResult, Sequence[Union[str, FetchResult]]]]] = None,
        *,
        delay: float = 0.0,
        hang: bool = False,
        default: Union[str, Callable[[str], str], None] = None,
    ) -> None:
        self.pages = dict(pages or {})
        self.delay = delay
        self.hang = hang
        self.default = default
        self.calls: List[str] = []
        self.js_flags: List[bool] = []

    async def fetch(self, url: str, *, execute_javascript: bool = False) -> FetchResult:
        self.calls.append(url)
        self.js_flags.append(execute_javascript)
        if self.hang:
            await asyncio.Event().wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        entry = self.pages.get(url)
        if entry is None and self.default is not None:
            entry = self.default(url) if callable(self.default) else self.default
        if isinstance(entry, (list, tuple)):
            index = min(self.calls.count(url), len(entry)) - 1
            entry = entry[index]
        if entry is None:
            return FetchResult(status=404, final_url=url, error="HTTP 404")
        if isinstance(entry, FetchResult):
            return entry
        return FetchResult(html=entry, status=200, final_url=url)


class ScriptedIntelligence:
    """Deterministic collaborator; every decision is set up by the test."""

    def __init__(
        self,
        *,
        links: Optional[Dict[str, List[LinkTarget]]] = None,
        results: Optional[Dict[str, ExtractionResult]] = None,
        auth_urls: Iterable[str] = (),
        fail_extract: Iterable[str] = (),
        disallowed: Iterable[str] = (),
        completeness: float = 0.1,
        action: str = "continue",
    ) -> None:
        self.links = links or {}
        self.results = results or {}
        self.auth_urls = set(auth_urls)
        self.fail_extract = set(fail_extract)
        self.disallowed = set(disallowed)
        self.completeness = completeness
        self.action = action
        self.extracted: List[str] = []

    async def analyze_url(self, url, goal, state) -> UrlAnalysis:
        return UrlAnalysis(relevance_score=0.5, expected_value=0.5, is_allowed_by_robots=url not in self.disallowed)

    async def detect_authentication(self, html, url, status) -> AuthDetection:
        if url in self.auth_urls or "password" in html:
            return AuthDetection(True, AuthRequest(url=url, auth_type="form"))
        return AuthDetection(False)

    async def extract_content(self, html, url, state) -> ExtractionResult:
        if url in self.fail_extract:
            raise RuntimeError("extractor exploded")
        self.extracted.append(url)
        if url in self.results:
            return self.results[url]
        match = _TITLE_RE.search(html)
        return ExtractionResult(title=match.group(1) if match else "", content=html, metrics=PageMetrics(0.6, 0.6, 0.6))

    async def discover_links(self, html, url, state) -> List[DiscoveredLink]:
        found = []
        for item in self.links.get(url, []):
            target, value = (item, 0.5) if isinstance(item, str) else item
            found.append(DiscoveredLink(url=target, context="", predicted_value=value))
        return found

    async def evaluate_progress(self, state) -> ValueMetrics:
        return ValueMetrics(0.5, 0.5, 0.5, self.completeness)

    async def decide_next_action(self, state, metrics) -> NavigationDecision:
        return NavigationDecision(self.action, "scripted")


class EventLog:
    """on_event observer that keeps every event."""

    def __init__(self) -> None:
        self.events: List[CrawlEvent] = []

    def __call__(self, event: CrawlEvent) -> None:
        self.events.append(event)

    @property
    def types(self) -> List[str]:
        return [event.type.value for event in self.events]

    def of(self, type_: str) -> List[CrawlEvent]:
        return [event for event in self.events if event.type.value == type_]


