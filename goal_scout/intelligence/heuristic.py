# goal_scout/intelligence/heuristic.py
"""
Rule-based implementation of the six intelligence functions.

Keyword overlap stands in for semantic relevance; everything here is
deterministic so runs can be reproduced and tested.
"""
from __future__ import annotations

import math
import re
import uuid
from typing import TYPE_CHECKING, FrozenSet, Iterable, List, Optional, Set
from urllib.parse import urlsplit

from goal_scout.crawler.link_extractor import extract_links, normalize_url
from goal_scout.crawler.models import (
    AuthDetection,
    AuthRequest,
    DiscoveredLink,
    EntityRef,
    ExtractionResult,
    NavigationDecision,
    PageMetrics,
    UrlAnalysis,
    ValueMetrics,
)
from goal_scout.crawler.robots import RobotsTxtRules
from goal_scout.logger import logger
from goal_scout.parser.html_parser import ParsedPage, parse_html

if TYPE_CHECKING:
    from goal_scout.crawler.state import CrawlState

__all__ = (
    "HeuristicIntelligence",
    "goal_keywords",
    "information_density",
    "keyword_relevance",
    "text_similarity",
)

_GOAL_STOPWORDS: FrozenSet[str] = frozenset(
    "the and for with that this from what where when which about into find information "
    "all any are how can get who why its our your their".split()
)
_DENSITY_STOPWORDS: FrozenSet[str] = frozenset(
    "a an the and or but in on at to for with about from by is was were be been".split()
)
_LOW_VALUE_PATH = re.compile(
    r"/(tag|tags|category|categories|archive|archives|author|page/\d+|feed|rss|comments?)(/|$)",
    re.IGNORECASE,
)
_HIGH_VALUE_PATH = re.compile(
    r"/(docs|documentation|guide|tutorial|product|api|specification|details)(/|$|[-_.])",
    re.IGNORECASE,
)
_AUTHORITATIVE_HOSTS = ("github.com", "stackoverflow.com", "wikipedia.org")
_AUTH_URL = re.compile(r"login|signin|sign-in|authenticate|auth/|\bsso\b", re.IGNORECASE)
_AUTH_TITLE = re.compile(r"\b(log ?in|sign ?in|authenticat\w*)\b", re.IGNORECASE)
_SKIP_EXTENSIONS = re.compile(
    r"\.(pdf|docx?|xlsx?|pptx?|zip|rar|gz|tar|7z|jpe?g|png|gif|svg|webp|ico|bmp|"
    r"mp3|mp4|avi|mov|wmv|flv|webm|wav|exe|dmg|iso|css|js)$",
    re.IGNORECASE,
)
_SKIP_PATHS = (
    "/login", "/logout", "/signup", "/register", "/cart", "/checkout",
    "/account", "/profile", "/search", "/sitemap", "/privacy", "/terms",
)
_AUTH_INSTRUCTIONS = {
    "basic": "Provide a username and password for basic authentication.",
    "form": "Log in using the form. Required fields: {fields}",
    "oauth": "Authorize access through the OAuth flow.",
    "unknown": "Authenticate with the website using your credentials.",
}
_ACTION_WORDS = re.compile(r"\b(learn|guide|tutorial|how|example|documentation)\b", re.IGNORECASE)

_CONTENT_PREVIEW_CHARS = 20_000
_MAX_IMAGE_ENTITIES = 20


# --------------------------------------------------------------------------- #
# Text scoring helpers                                                        #
# --------------------------------------------------------------------------- #


def _words(text: str) -> List[str]:
    return re.sub(r"[^\w\s]", " ", text.lower()).split()


def goal_keywords(goal: str, min_length: int = 3) -> List[str]:
    """Distinct goal words of at least *min_length* characters, stopwords removed."""
    seen: Set[str] = set()
    keywords: List[str] = []
    for word in _words(goal):
        if len(word) >= min_length and word not in _GOAL_STOPWORDS and word not in seen:
            seen.add(word)
            keywords.append(word)
    return keywords


def keyword_relevance(text: str, keywords: Iterable[str]) -> float:
    """Share of *keywords* that occur in *text*."""
    keywords = list(keywords)
    if not keywords:
        return 0.0
    haystack = text.lower()
    return sum(1 for kw in keywords if kw in haystack) / len(keywords)


def information_density(text: str) -> float:
    """Meaningful words (longer than 2 characters, not stopwords) over all words."""
    words = text.lower().split()
    if not words:
        return 0.0
    meaningful = [w for w in words if len(w) > 2 and w not in _DENSITY_STOPWORDS]
    return len(meaningful) / len(words)


def _significant_words(text: str) -> Set[str]:
    return {w for w in text.lower().split() if len(w) > 3}


def text_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the words longer than three characters."""
    first, second = _significant_words(a), _significant_words(b)
    union = first | second
    return len(first & second) / len(union) if union else 0.0


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


# --------------------------------------------------------------------------- #
# HeuristicIntelligence                                                       #
# --------------------------------------------------------------------------- #


class HeuristicIntelligence:
    """
    Deterministic collaborator for :class:`~goal_scout.crawler.orchestrator.Orchestrator`.

    Parameters
    ----------
    robots
        Parsed robots.txt of the seed host; ``None`` allows every URL.
    user_agent
        Agent name matched against robots.txt groups.
    """

    def __init__(self, robots: Optional[RobotsTxtRules] = None, user_agent: str = "GoalScoutBot/1.0") -> None:
        self.robots = robots
        self.user_agent = user_agent

    # ---- URL analysis ---- #

    async def analyze_url(self, url: str, goal: str, state: CrawlState) -> UrlAnalysis:
        parsed = urlsplit(url)
        segments = [s for s in parsed.path.split("/") if s]
        keywords = goal_keywords(goal)
        url_text = " ".join(_words(f"{parsed.path} {parsed.query}"))
        keyword_score = keyword_relevance(url_text, keywords)
        depth_score = 1.0 / (1 + len(segments))
        relevance = _clamp(0.7 * keyword_score + 0.3 * depth_score)

        value = relevance
        if _LOW_VALUE_PATH.search(parsed.path):
            value *= 0.5
        if _HIGH_VALUE_PATH.search(parsed.path):
            value *= 1.5

        host = (parsed.hostname or "").lower()
        authority = 0.9 if any(host == h or host.endswith("." + h) for h in _AUTHORITATIVE_HOSTS) else 0.5
        allowed = self.robots.can_fetch(self.user_agent, url) if self.robots else True
        normalized = normalize_url(url)

        return UrlAnalysis(
            relevance_score=relevance,
            expected_value=_clamp(value),
            is_allowed_by_robots=allowed,
            domain_authority=authority,
            was_visited_before=url in state.visited_urls or normalized in state.normalized_urls,
        )

    # ---- authentication ---- #

    async def detect_authentication(self, html: str, url: str, status: int) -> AuthDetection:
        page = parse_html(html, url)
        login_form = next((form for form in page.forms if form.has_password), None)
        url_hit = bool(_AUTH_URL.search(urlsplit(url).path))
        title_hit = bool(_AUTH_TITLE.search(page.title))
        status_hit = status in (401, 403)

        if not (status_hit or url_hit or title_hit or login_form is not None):
            return AuthDetection(requires_authentication=False)

        if status == 401:
            auth_type = "basic"
        elif login_form is not None:
            auth_type = "form"
        elif re.search(r"oauth|authorize|authentication", url, re.IGNORECASE):
            auth_type = "oauth"
        else:
            auth_type = "unknown"

        fields: Optional[List[str]] = None
        if login_form is not None:
            fields = [
                name
                for name, kind in login_form.inputs
                if name and kind not in ("hidden", "submit", "button")
                and "csrf" not in name.lower() and "token" not in name.lower()
            ]

        request = AuthRequest(
            url=url,
            auth_type=auth_type,
            callback_url=url,
            session_token=uuid.uuid4().hex,
            auth_portal_url=login_form.action if login_form is not None and login_form.action else url,
            form_fields=fields,
            instructions=_AUTH_INSTRUCTIONS[auth_type].format(fields=", ".join(fields or ["username", "password"])),
        )
        logger.info("Authentication required at %s (%s)", url, auth_type)
        return AuthDetection(requires_authentication=True, auth_request=request)

    # ---- content ---- #

    async def extract_content(self, html: str, url: str, state: CrawlState) -> ExtractionResult:
        page = parse_html(html, url)
        content = page.text[:_CONTENT_PREVIEW_CHARS]
        metrics = self._page_metrics(content, state)
        return ExtractionResult(
            title=page.title,
            content=content,
            content_type=self._content_type(page, url),
            metrics=metrics,
            entities=self._entities(page, state),
        )

    def _page_metrics(self, content: str, state: CrawlState) -> PageMetrics:
        keywords = goal_keywords(state.scraping_goal, min_length=4)
        density = information_density(content)
        relevance = keyword_relevance(content, keywords)
        others = [p.content for p in state.extracted_content.values()]
        if others:
            uniqueness = 1.0 - sum(text_similarity(content, o) for o in others) / len(others)
        else:
            uniqueness = 1.0
        if relevance > 0.6 and density > 0.5:
            quality = "high"
        elif relevance > 0.3:
            quality = "medium"
        else:
            quality = "low"
        return PageMetrics(
            information_density=density,
            relevance=relevance,
            uniqueness=_clamp(uniqueness),
            content_quality_analysis=quality,
        )

    @staticmethod
    def _content_type(page: ParsedPage, url: str) -> str:
        path = urlsplit(url).path.lower()
        if _HIGH_VALUE_PATH.search(path):
            return "documentation"
        if re.search(r"/(blog|news|articles?|posts?)(/|$)", path):
            return "article"
        if re.search(r"/(products?|shop|store)(/|$)", path):
            return "product"
        return "webpage"

    def _entities(self, page: ParsedPage, state: CrawlState) -> List[EntityRef]:
        keywords = goal_keywords(state.scraping_goal, min_length=4)
        entities = [
            EntityRef(name=heading, type="heading", relevance=keyword_relevance(heading, keywords))
            for heading in page.headings
        ]
        if state.include_images:
            for src, alt in page.images[:_MAX_IMAGE_ENTITIES]:
                entities.append(EntityRef(name=alt or src, type="image", relevance=keyword_relevance(alt, keywords)))
        return entities

    # ---- links ---- #

    async def discover_links(self, html: str, url: str, state: CrawlState) -> List[DiscoveredLink]:
        keywords = goal_keywords(state.scraping_goal, min_length=4)
        found: List[DiscoveredLink] = []
        for link in extract_links(html, url, same_host=True):
            if not self._is_crawlable(link.url):
                continue
            score = self._score_link(link.url, link.text, link.context, keywords)
            found.append(DiscoveredLink(url=link.url, context=link.context or link.text, predicted_value=score))
        found.sort(key=lambda item: item.predicted_value, reverse=True)
        return found

    @staticmethod
    def _is_crawlable(url: str) -> bool:
        path = urlsplit(url).path.lower()
        if _SKIP_EXTENSIONS.search(path):
            return False
        return not any(path == p or path.startswith(p + "/") for p in _SKIP_PATHS)

    @staticmethod
    def _score_link(url: str, text: str, context: str, keywords: List[str]) -> float:
        score = 0.5
        score += keyword_relevance(text, keywords) * 0.3
        score += keyword_relevance(context, keywords) * 0.3

        path = urlsplit(url).path
        depth = len([s for s in path.split("/") if s])
        structure = min(depth / 5, 1.0) * 0.5
        if _HIGH_VALUE_PATH.search(path):
            structure += 0.5
        score += structure * 0.2

        heuristic = 0.0
        if len(text) > 20:
            heuristic += 0.1
        if _ACTION_WORDS.search(text):
            heuristic += 0.2
        if re.search(r"\d", text):
            heuristic += 0.1
        if (text.isupper() and len(text) > 1) or len(text) < 4:
            heuristic -= 0.1
        score += heuristic * 0.2
        return _clamp(score)

    # ---- progress & navigation ---- #

    async def evaluate_progress(self, state: CrawlState) -> ValueMetrics:
        pages = list(state.extracted_content.values())
        if not pages:
            return ValueMetrics()
        metrics = [p.metrics or PageMetrics() for p in pages]
        density = sum(m.information_density for m in metrics) / len(metrics)
        relevance = sum(m.relevance for m in metrics) / len(metrics)
        uniqueness = 1.0 if len(metrics) <= 1 else sum(m.uniqueness for m in metrics) / len(metrics)
        coverage = math.log(len(pages) + 1) / math.log(max(state.max_pages, 1) + 1)
        completeness = _clamp(coverage * (relevance + density) / 2)
        return ValueMetrics(
            information_density=_clamp(density),
            relevance=_clamp(relevance),
            uniqueness=_clamp(uniqueness),
            completeness=completeness,
        )

    async def decide_next_action(self, state: CrawlState, metrics: ValueMetrics) -> NavigationDecision:
        if metrics.completeness > 0.85:
            return NavigationDecision("complete", f"goal completeness {metrics.completeness:.2f}")
        if metrics.uniqueness < 0.2 and len(state.visited_urls) > 10:
            return NavigationDecision("complete", "new pages add little unique content")
        if state.page_queue.is_empty():
            return NavigationDecision("complete", "no more links to follow")
        return NavigationDecision("continue", f"{len(state.page_queue)} URLs queued")
