# goal_scout/crawler/state.py
"""
CrawlState: the mutable record threaded through every orchestrator stage.

Only the orchestrator's worker writes to it. The watchdog reads
``len(extracted_content)`` and ``len(visited_urls)`` and nothing else.
"""
from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Optional, Set, Tuple

from goal_scout.crawler.frontier import Frontier
from goal_scout.crawler.models import (
    AuthRequest,
    FetchResult,
    PageContent,
    UrlAnalysis,
    ValueMetrics,
)

__all__ = ("CrawlState", "EXECUTION_PATH_LIMIT", "SNAPSHOT_LIMIT")

EXECUTION_PATH_LIMIT = 100
SNAPSHOT_LIMIT = 10


@dataclass
class CrawlState:
    base_url: str
    scraping_goal: str
    max_pages: int
    max_depth: int
    include_images: bool = False

    current_url: str = ""
    current_depth: int = 0
    url_started: float = 0.0  # monotonic time the current URL was selected

    visited_urls: Set[str] = field(default_factory=set)
    url_visit_counts: Counter[str] = field(default_factory=Counter)
    normalized_urls: Set[str] = field(default_factory=set)
    content_signatures: Set[str] = field(default_factory=set)
    page_queue: Frontier = field(default_factory=Frontier)
    extracted_content: Dict[str, PageContent] = field(default_factory=dict)
    auth_attempts: Counter[str] = field(default_factory=Counter)
    value_metrics: ValueMetrics = field(default_factory=ValueMetrics)

    # per-URL scratch, cleared by reset_page()
    page_html: str = ""
    page_status: int = 0
    requires_authentication: bool = False
    auth_request: Optional[AuthRequest] = None
    url_analysis: Optional[UrlAnalysis] = None
    last_error: Optional[str] = None

    # one-shot reuse of a page refetched after successful authentication
    auth_retry_url: Optional[str] = None
    prefetched: Optional[FetchResult] = None

    # guard bookkeeping
    iterations: int = 0
    steps: int = 0
    processed_count: int = 0
    node_visit_counts: Counter[str] = field(default_factory=Counter)
    current_url_counts: Counter[str] = field(default_factory=Counter)
    execution_path: Deque[str] = field(default_factory=lambda: deque(maxlen=EXECUTION_PATH_LIMIT))
    snapshots: Deque[Tuple[int, int]] = field(default_factory=lambda: deque(maxlen=SNAPSHOT_LIMIT))

    def mark_visited(self, url: str) -> None:
        self.visited_urls.add(url)
        self.url_visit_counts[url] += 1

    def reset_page(self) -> None:
        self.current_url = ""
        self.page_html = ""
        self.page_status = 0
        self.requires_authentication = False
        self.auth_request = None
        self.url_analysis = None

    def progress_counters(self) -> Tuple[int, int]:
        """``(len(extracted_content), len(visited_urls))`` for the stagnation timer."""
        return len(self.extracted_content), len(self.visited_urls)

    def is_visited(self, url: str, normalized: str) -> bool:
        return url in self.visited_urls or normalized in self.normalized_urls
