# goal_scout/crawler/models.py
"""
Data models for the GoalScout crawler.

Everything that flows between the orchestrator, its collaborators and the
output assembler is a plain dataclass; ``to_dict`` helpers exist only on the
records that end up in reports or in the event feed.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

__all__ = (
    "FrontierEntry",
    "PageMetrics",
    "ValueMetrics",
    "LinkRef",
    "EntityRef",
    "PageContent",
    "CrawlSummary",
    "ScraperOutput",
    "TerminationReason",
    "FetchResult",
    "UrlAnalysis",
    "AuthRequest",
    "AuthDetection",
    "ExtractionResult",
    "DiscoveredLink",
    "NavigationDecision",
    "utc_now",
)

NEUTRAL_SCORE = 0.5


def utc_now() -> str:
    """ISO-8601 timestamp used for ``extraction_time`` and events."""
    return datetime.now(timezone.utc).isoformat()


@dataclass(slots=True)
class FrontierEntry:
    """A discovered but not yet visited URL."""

    url: str
    expected_value: float
    depth: int


@dataclass(slots=True)
class PageMetrics:
    """Per-page scores reported by the content extractor."""

    information_density: float = NEUTRAL_SCORE
    relevance: float = NEUTRAL_SCORE
    uniqueness: float = NEUTRAL_SCORE
    content_quality_analysis: Optional[str] = None


@dataclass(slots=True)
class ValueMetrics:
    """Aggregate crawl progress, recomputed every cycle."""

    information_density: float = 0.0
    relevance: float = 0.0
    uniqueness: float = 0.0
    completeness: float = 0.0

    @classmethod
    def neutral(cls) -> ValueMetrics:
        return cls(NEUTRAL_SCORE, NEUTRAL_SCORE, NEUTRAL_SCORE, NEUTRAL_SCORE)


@dataclass(slots=True)
class LinkRef:
    """Outgoing link found on a page; ``visited`` is computed at discovery time."""

    url: str
    context: str = ""
    predicted_value: float = 0.0
    visited: bool = False


@dataclass(slots=True)
class EntityRef:
    name: str
    type: str
    relevance: Optional[float] = None
    mentions: Optional[int] = None


@dataclass(slots=True)
class PageContent:
    """Content extracted from one URL.

    ``links``, ``entities``, ``extraction_time`` and ``metrics`` may be left as
    ``None`` by partial producers; the output assembler fills them in.
    """

    url: str
    title: str = ""
    content: str = ""
    content_type: str = "webpage"
    extraction_time: Optional[str] = None
    metrics: Optional[PageMetrics] = None
    links: Optional[List[LinkRef]] = field(default_factory=list)
    entities: Optional[List[EntityRef]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class CrawlSummary:
    pages_scraped: int = 0
    total_content_size: int = 0
    execution_time: int = 0
    goal_completion: float = 0.0
    coverage_score: float = 0.0


class TerminationReason(str, Enum):
    """Which termination path won the race."""

    COMPLETE = "complete"
    MAX_PAGES = "max-pages"
    FRONTIER_EXHAUSTED = "frontier-exhausted"
    ITERATION_CAP = "iteration-cap"
    RECURSION_LIMIT = "recursion-limit"
    TIMEOUT = "timeout"
    DEADLOCK = "deadlock"
    STAGNATION = "stagnation"
    CYCLE = "cycle"
    SUFFICIENT = "sufficient"
    CANCELLED = "cancelled"
    ERROR = "error"


@dataclass(slots=True)
class ScraperOutput:
    """Terminal artifact of a run."""

    pages: List[PageContent] = field(default_factory=list)
    summary: CrawlSummary = field(default_factory=CrawlSummary)
    termination_reason: Optional[TerminationReason] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pages": [page.to_dict() for page in self.pages],
            "summary": asdict(self.summary),
            "termination_reason": self.termination_reason.value if self.termination_reason else None,
        }

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


# --------------------------------------------------------------------------- #
# Collaborator request/response records                                       #
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class FetchResult:
    """What the fetcher reports for one URL. Errors are in-band."""

    html: str = ""
    status: int = 0
    final_url: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class UrlAnalysis:
    relevance_score: float
    expected_value: float
    is_allowed_by_robots: bool = True
    domain_authority: float = NEUTRAL_SCORE
    was_visited_before: bool = False


@dataclass(slots=True)
class AuthRequest:
    url: str
    auth_type: str = "unknown"
    callback_url: str = ""
    session_token: str = ""
    auth_portal_url: str = ""
    form_fields: Optional[List[str]] = None
    instructions: Optional[str] = None


@dataclass(slots=True)
class AuthDetection:
    requires_authentication: bool = False
    auth_request: Optional[AuthRequest] = None


@dataclass(slots=True)
class ExtractionResult:
    title: str = ""
    content: str = ""
    content_type: str = "webpage"
    metrics: PageMetrics = field(default_factory=PageMetrics)
    entities: List[EntityRef] = field(default_factory=list)


@dataclass(slots=True)
class DiscoveredLink:
    url: str
    context: str = ""
    predicted_value: float = 0.0


@dataclass(slots=True)
class NavigationDecision:
    action: str = "continue"
    reason: str = ""

    @property
    def is_complete(self) -> bool:
        return self.action == "complete"
