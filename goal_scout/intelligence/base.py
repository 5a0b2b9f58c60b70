# goal_scout/intelligence/base.py
"""
Interfaces of the orchestrator's collaborators.

Every method is ``async``. Implementations may raise; the orchestrator
replaces a failed call with a conservative fallback at the call site.
Hook callables may be plain functions or coroutines.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, List, Optional, Protocol, Union, runtime_checkable

from goal_scout.crawler.events import EventCallback
from goal_scout.crawler.models import (
    AuthDetection,
    AuthRequest,
    DiscoveredLink,
    ExtractionResult,
    FetchResult,
    NavigationDecision,
    PageContent,
    UrlAnalysis,
    ValueMetrics,
)

if TYPE_CHECKING:
    from goal_scout.crawler.state import CrawlState

__all__ = ("Fetcher", "Intelligence", "CrawlHooks", "AuthCallback", "PageCallback")


@runtime_checkable
class Fetcher(Protocol):
    async def fetch(self, url: str, *, execute_javascript: bool = False) -> FetchResult:
        """Return HTML and status for *url*; network errors go in ``FetchResult.error``."""
        ...


@runtime_checkable
class Intelligence(Protocol):
    async def analyze_url(self, url: str, goal: str, state: CrawlState) -> UrlAnalysis: ...

    async def detect_authentication(self, html: str, url: str, status: int) -> AuthDetection: ...

    async def extract_content(self, html: str, url: str, state: CrawlState) -> ExtractionResult: ...

    async def discover_links(self, html: str, url: str, state: CrawlState) -> List[DiscoveredLink]: ...

    async def evaluate_progress(self, state: CrawlState) -> ValueMetrics: ...

    async def decide_next_action(self, state: CrawlState, metrics: ValueMetrics) -> NavigationDecision: ...


AuthCallback = Callable[[AuthRequest], Union[bool, Awaitable[bool]]]
PageCallback = Callable[[PageContent], Union[Any, Awaitable[Any]]]


@dataclass(slots=True)
class CrawlHooks:
    """Optional callbacks a caller attaches to a run."""

    on_auth_required: Optional[AuthCallback] = None
    on_page_processed: Optional[PageCallback] = None
    on_event: Optional[EventCallback] = None
