# goal_scout/crawler/orchestrator.py
"""
Crawl orchestration engine.

The crawl is a state machine over :class:`Stage`. :meth:`Orchestrator.step`
runs one stage against the :class:`~goal_scout.crawler.state.CrawlState` and
returns the next one; :data:`TRANSITIONS` holds the default edges, handlers
override them where the flow branches.

:meth:`Orchestrator.run` supervises one run: the pipeline worker, the
wall-clock timeout and the stagnation timer race on a single
:class:`~goal_scout.crawler.guard.TerminationSignal`. Whoever triggers first
decides the termination reason; the supervisor cancels the rest and
assembles the output exactly once.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import asdict
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional

from goal_scout.aggregator import assemble_output
from goal_scout.config import CrawlConfig
from goal_scout.crawler.events import EventEmitter, EventType, maybe_await
from goal_scout.crawler.frontier import Frontier
from goal_scout.crawler.guard import ExecutionGuard, TerminationSignal, Watchdog
from goal_scout.crawler.link_extractor import normalize_url
from goal_scout.crawler.models import (
    NEUTRAL_SCORE,
    AuthDetection,
    AuthRequest,
    DiscoveredLink,
    FetchResult,
    FrontierEntry,
    LinkRef,
    NavigationDecision,
    PageContent,
    ScraperOutput,
    TerminationReason,
    UrlAnalysis,
    ValueMetrics,
    utc_now,
)
from goal_scout.crawler.signature import content_signature
from goal_scout.crawler.state import CrawlState
from goal_scout.intelligence.base import CrawlHooks, Fetcher, Intelligence
from goal_scout.logger import logger

__all__ = ("Stage", "TRANSITIONS", "Orchestrator")

_FALLBACK_RELEVANCE = 0.1
_MAX_URL_VISITS = 2
_MAX_AUTH_ATTEMPTS = 2
_ERROR_REASONS = (TerminationReason.ERROR, TerminationReason.TIMEOUT, TerminationReason.DEADLOCK)


class Stage(str, Enum):
    ANALYZE_URL = "analyze_url"
    FETCH_PAGE = "fetch_page"
    DETECT_AUTHENTICATION = "detect_authentication"
    HANDLE_AUTHENTICATION = "handle_authentication"
    EXTRACT_CONTENT = "extract_content"
    DISCOVER_LINKS = "discover_links"
    EVALUATE_PROGRESS = "evaluate_progress"
    DECIDE_NEXT_ACTION = "decide_next_action"
    COMPLETE = "complete"


TRANSITIONS: Dict[Stage, Stage] = {
    Stage.ANALYZE_URL: Stage.FETCH_PAGE,
    Stage.FETCH_PAGE: Stage.DETECT_AUTHENTICATION,
    Stage.DETECT_AUTHENTICATION: Stage.EXTRACT_CONTENT,
    Stage.HANDLE_AUTHENTICATION: Stage.ANALYZE_URL,
    Stage.EXTRACT_CONTENT: Stage.DISCOVER_LINKS,
    Stage.DISCOVER_LINKS: Stage.EVALUATE_PROGRESS,
    Stage.EVALUATE_PROGRESS: Stage.DECIDE_NEXT_ACTION,
    Stage.DECIDE_NEXT_ACTION: Stage.ANALYZE_URL,
}

_Handler = Callable[[], Awaitable[Optional[Stage]]]


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class Orchestrator:
    """
    Drives one goal-directed crawl.

    An instance is single-use: :meth:`run` returns the same
    :class:`ScraperOutput` if called again.
    """

    def __init__(
        self,
        config: CrawlConfig,
        fetcher: Fetcher,
        intelligence: Intelligence,
        hooks: Optional[CrawlHooks] = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.intelligence = intelligence
        self.hooks = hooks or CrawlHooks()
        self.events = EventEmitter(self.hooks.on_event)
        self.guard = ExecutionGuard(config.guard, config.max_pages)
        self.signal = TerminationSignal()

        seed = config.seed_url
        self.state = CrawlState(
            base_url=seed,
            scraping_goal=config.scraping_goal,
            max_pages=config.max_pages,
            max_depth=config.max_depth,
            include_images=config.include_images,
            page_queue=Frontier(max_depth=config.max_depth),
        )
        self.state.page_queue.enqueue(FrontierEntry(url=seed, expected_value=NEUTRAL_SCORE, depth=0))

        self._handlers: Dict[Stage, _Handler] = {
            Stage.ANALYZE_URL: self._analyze_url,
            Stage.FETCH_PAGE: self._fetch_page,
            Stage.DETECT_AUTHENTICATION: self._detect_authentication,
            Stage.HANDLE_AUTHENTICATION: self._handle_authentication,
            Stage.EXTRACT_CONTENT: self._extract_content,
            Stage.DISCOVER_LINKS: self._discover_links,
            Stage.EVALUATE_PROGRESS: self._evaluate_progress,
            Stage.DECIDE_NEXT_ACTION: self._decide_next_action,
        }
        self._output: Optional[ScraperOutput] = None

    # ------------------------------------------------------------------ #
    # Run supervision                                                     #
    # ------------------------------------------------------------------ #

    async def run(self) -> ScraperOutput:
        """Crawl until a termination path fires. Never raises except on caller cancellation."""
        if self._output is not None:
            return self._output

        started = time.monotonic()
        logger.info("Crawl started: %s (goal: %s)", self.state.base_url, self.state.scraping_goal)
        watchdog = Watchdog(self.config.guard, self.state, self.signal)
        tasks = [
            asyncio.create_task(self._drive(), name="goal-scout-worker"),
            asyncio.create_task(watchdog.timeout(), name="goal-scout-timeout"),
            asyncio.create_task(watchdog.stagnation(), name="goal-scout-stagnation"),
        ]
        try:
            reason = await self.signal.wait()
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        output = assemble_output(self.state.extracted_content, self.state.value_metrics, reason=reason)
        output.summary.execution_time = int((time.monotonic() - started) * 1000)
        self._output = output
        await self._emit_final(output, reason)
        logger.info(
            "Crawl finished (%s): %d pages in %d ms",
            reason.value,
            output.summary.pages_scraped,
            output.summary.execution_time,
        )
        return output

    def cancel(self) -> bool:
        """Ask a running crawl to stop; the partial output is still assembled."""
        return self.signal.trigger(TerminationReason.CANCELLED, "cancelled by caller")

    async def _drive(self) -> None:
        stage = Stage.ANALYZE_URL
        try:
            while stage is not Stage.COMPLETE and not self.signal.is_set:
                stage = await self.step(stage)
                await asyncio.sleep(0)
            self.signal.trigger(TerminationReason.COMPLETE)
        except Exception as exc:
            logger.exception("Crawl worker failed: %s", exc)
            self.state.last_error = str(exc) or type(exc).__name__
            self.signal.trigger(TerminationReason.ERROR, self.state.last_error)

    async def _emit_final(self, output: ScraperOutput, reason: TerminationReason) -> None:
        summary = asdict(output.summary)
        if reason in _ERROR_REASONS:
            await self.events.emit(
                EventType.ERROR,
                self.state.current_url or None,
                error=self.signal.detail or self.state.last_error or reason.value,
                reason=reason.value,
            )
        await self.events.emit(
            EventType.BATCH_COMPLETE,
            processed_in_batch=self.state.processed_count % self.config.batch_size,
            extracted_total=len(self.state.extracted_content),
            final=True,
        )
        await self.events.emit(EventType.SCRAPING_COMPLETE, termination_reason=reason.value, **summary)

    # ------------------------------------------------------------------ #
    # State machine                                                       #
    # ------------------------------------------------------------------ #

    async def step(self, stage: Stage) -> Stage:
        """Run *stage* once and return the stage to run next."""
        if stage is Stage.COMPLETE:
            return Stage.COMPLETE
        state = self.state
        state.steps += 1
        state.node_visit_counts[stage.value] += 1
        state.execution_path.append(stage.value)
        reason = self.guard.check_steps(state)
        if reason is not None:
            return self._finish(reason, f"{state.steps} stage steps")

        logger.debug("Stage %s enter (url=%s)", stage.value, state.current_url or "-")
        next_stage = await self._handlers[stage]()
        if next_stage is None:
            next_stage = TRANSITIONS[stage]
        logger.debug("Stage %s exit -> %s", stage.value, next_stage.value)
        return next_stage

    def _finish(self, reason: TerminationReason, detail: str = "") -> Stage:
        self.signal.trigger(reason, detail)
        return Stage.COMPLETE

    def _skip(self, url: str) -> Stage:
        self.state.mark_visited(url)
        self.state.reset_page()
        return Stage.ANALYZE_URL

    def _set_current(self, entry: FrontierEntry) -> Optional[Stage]:
        state = self.state
        state.current_url = entry.url
        state.current_depth = entry.depth
        state.url_started = time.monotonic()
        state.current_url_counts[entry.url] += 1
        reason = self.guard.check_current_url(state, entry.url)
        if reason is not None:
            return self._finish(reason, f"{entry.url} selected {state.current_url_counts[entry.url]} times")
        return None

    # ---- ANALYZE_URL ---- #

    async def _analyze_url(self) -> Optional[Stage]:
        state = self.state
        state.iterations += 1
        reason = self.guard.check_iterations(state)
        if reason is not None:
            return self._finish(reason, f"{state.iterations - 1} iterations")

        if not state.current_url:
            entry = state.page_queue.dequeue()
            if entry is None:
                return self._finish(TerminationReason.FRONTIER_EXHAUSTED, "frontier is empty")
            stop = self._set_current(entry)
            if stop is not None:
                return stop

        url = state.current_url
        if state.url_visit_counts[url] >= _MAX_URL_VISITS:
            logger.info("Skipping %s: already visited %d times", url, state.url_visit_counts[url])
            state.reset_page()
            return Stage.ANALYZE_URL

        await self.events.emit(EventType.URL_PROCESSING, url, depth=state.current_depth)
        try:
            analysis = await self.intelligence.analyze_url(url, state.scraping_goal, state)
        except Exception as exc:
            logger.warning("URL analysis failed for %s: %s", url, exc)
            analysis = UrlAnalysis(relevance_score=_FALLBACK_RELEVANCE, expected_value=_FALLBACK_RELEVANCE)
        state.url_analysis = analysis

        if not analysis.is_allowed_by_robots:
            logger.info("Skipping %s: disallowed by robots.txt", url)
            return self._skip(url)
        return None

    # ---- FETCH_PAGE ---- #

    async def _fetch_page(self) -> Optional[Stage]:
        state = self.state
        url = state.current_url
        key = normalize_url(url)
        dedup = self.config.prevent_duplicate_urls
        retry = state.auth_retry_url == url and state.prefetched is not None

        if retry:
            result = state.prefetched
            state.prefetched = None
            state.auth_retry_url = None
            logger.debug("Reusing page fetched after authentication: %s", url)
        else:
            if dedup and key in state.normalized_urls:
                logger.info("Skipping %s: normalized URL already fetched", url)
                return self._skip(url)
            await self.events.emit(
                EventType.URL_FETCH, url, status="fetching", use_javascript=self.config.execute_javascript
            )
            result = await self._fetch(url)
        assert result is not None

        state.page_status = result.status
        if not result.ok:
            state.page_html = ""
            state.last_error = f"{url}: {result.error}"
            logger.warning("Fetch failed for %s: %s", url, result.error)
            await self.events.emit(EventType.ERROR, url, error=result.error, stage=Stage.FETCH_PAGE.value)
            return None

        state.page_html = result.html
        await self.events.emit(
            EventType.URL_FETCH, url, status="complete", http_status=result.status, content_length=len(result.html)
        )
        state.normalized_urls.add(key)
        if dedup:
            signature = content_signature(result.html)
            if signature:
                if not retry and signature in state.content_signatures:
                    logger.info("Skipping %s: duplicate content", url)
                    return self._skip(url)
                state.content_signatures.add(signature)
        return None

    async def _fetch(self, url: str) -> FetchResult:
        try:
            return await self.fetcher.fetch(url, execute_javascript=self.config.execute_javascript)
        except Exception as exc:
            return FetchResult(final_url=url, error=str(exc) or type(exc).__name__)

    # ---- authentication ---- #

    async def _detect_authentication(self) -> Optional[Stage]:
        state = self.state
        detection = AuthDetection()
        if state.page_html:
            try:
                detection = await self.intelligence.detect_authentication(
                    state.page_html, state.current_url, state.page_status
                )
            except Exception as exc:
                logger.warning("Authentication detection failed for %s: %s", state.current_url, exc)
                detection = AuthDetection()
        state.requires_authentication = detection.requires_authentication
        state.auth_request = detection.auth_request
        if detection.requires_authentication:
            return Stage.HANDLE_AUTHENTICATION
        return None

    async def _handle_authentication(self) -> Optional[Stage]:
        state = self.state
        url = state.current_url
        if state.auth_attempts[url] >= _MAX_AUTH_ATTEMPTS:
            logger.warning("Skipping %s: authentication failed %d times", url, state.auth_attempts[url])
            return self._skip(url)

        state.auth_attempts[url] += 1
        request = state.auth_request or AuthRequest(url=url)
        await self.events.emit(
            EventType.AUTH_REQUIRED, url, auth_type=request.auth_type, attempt=state.auth_attempts[url]
        )

        callback = self.hooks.on_auth_required
        if callback is None:
            logger.info("Skipping %s: authentication required and no handler attached", url)
            return self._skip(url)
        try:
            authenticated = bool(await maybe_await(callback(request)))
        except Exception as exc:
            logger.warning("Authentication handler failed for %s: %s", url, exc)
            authenticated = False
        if not authenticated:
            logger.info("Skipping %s: authentication not completed", url)
            return self._skip(url)

        state.prefetched = await self._fetch(url)
        state.auth_retry_url = url
        state.requires_authentication = False
        state.auth_request = None
        return Stage.ANALYZE_URL

    # ---- EXTRACT_CONTENT ---- #

    async def _extract_content(self) -> Optional[Stage]:
        state = self.state
        url = state.current_url
        if not state.page_html or state.requires_authentication:
            return None
        if len(state.extracted_content) >= state.max_pages:
            return None

        try:
            result = await self.intelligence.extract_content(state.page_html, url, state)
        except Exception as exc:
            logger.error("Content extraction failed for %s: %s", url, exc)
            state.last_error = f"{url}: {exc}"
            await self.events.emit(EventType.ERROR, url, error=str(exc), stage=Stage.EXTRACT_CONTENT.value)
            return None

        page = PageContent(
            url=url,
            title=result.title,
            content=result.content,
            content_type=result.content_type,
            extraction_time=utc_now(),
            metrics=result.metrics,
            links=[],
            entities=list(result.entities),
        )
        state.extracted_content[url] = page
        logger.info("Extracted %s (%d chars)", url, len(page.content))
        await self.events.emit(EventType.URL_EXTRACT, url, title=page.title, content_length=len(page.content))

        if self.hooks.on_page_processed is not None:
            try:
                await maybe_await(self.hooks.on_page_processed(page))
            except Exception as exc:
                logger.warning("on_page_processed failed for %s: %s", url, exc)
        return None

    # ---- DISCOVER_LINKS ---- #

    async def _discover_links(self) -> Optional[Stage]:
        state = self.state
        url = state.current_url
        if not state.page_html or state.requires_authentication:
            return None

        try:
            links = await self.intelligence.discover_links(state.page_html, url, state)
        except Exception as exc:
            logger.warning("Link discovery failed for %s: %s", url, exc)
            links = []

        can_enqueue = len(state.extracted_content) < state.max_pages
        depth = state.current_depth + 1
        refs = []
        queued = 0
        for link in links:
            visited = state.is_visited(link.url, normalize_url(link.url))
            refs.append(LinkRef(link.url, link.context, _clamp(link.predicted_value), visited))
            if visited or not can_enqueue or link.url == url or link.url in state.page_queue:
                continue
            if not self._passes_filters(link):
                continue
            entry = FrontierEntry(url=link.url, expected_value=_clamp(link.predicted_value), depth=depth)
            if state.page_queue.enqueue(entry):
                queued += 1

        page = state.extracted_content.get(url)
        if page is not None:
            page.links = refs
        logger.debug("%s: %d links, %d queued", url, len(links), queued)
        await self.events.emit(EventType.URL_LINKS, url, link_count=len(links), queued=queued)
        return None

    def _passes_filters(self, link: DiscoveredLink) -> bool:
        filters = self.config.filters
        if filters.must_include_patterns and not any(
            p in link.url or p in link.context for p in filters.must_include_patterns
        ):
            return False
        return not any(p in link.url for p in filters.exclude_patterns)

    # ---- EVALUATE_PROGRESS ---- #

    async def _evaluate_progress(self) -> Optional[Stage]:
        state = self.state
        try:
            metrics = await self.intelligence.evaluate_progress(state)
        except Exception as exc:
            logger.warning("Progress evaluation failed: %s", exc)
            metrics = ValueMetrics.neutral()
        state.value_metrics = metrics
        await self.events.emit(
            EventType.PROGRESS,
            pages_scraped=len(state.extracted_content),
            queue_size=len(state.page_queue),
            goal_completion=metrics.completeness,
            metrics=asdict(metrics),
        )
        return None

    # ---- DECIDE_NEXT_ACTION ---- #

    async def _decide_next_action(self) -> Optional[Stage]:
        state = self.state
        url = state.current_url
        state.mark_visited(url)
        state.processed_count += 1

        page = state.extracted_content.get(url)
        await self.events.emit(
            EventType.URL_COMPLETE,
            url,
            title=page.title if page else "",
            metrics=asdict(page.metrics) if page and page.metrics else None,
            link_count=len(page.links or []) if page else 0,
            content_length=len(page.content) if page else 0,
            processing_time=int((time.monotonic() - state.url_started) * 1000),
        )
        if state.processed_count % self.config.batch_size == 0:
            await self.events.emit(
                EventType.BATCH_COMPLETE,
                processed_in_batch=self.config.batch_size,
                extracted_total=len(state.extracted_content),
            )
        state.reset_page()

        if len(state.extracted_content) >= state.max_pages:
            return self._finish(TerminationReason.MAX_PAGES, f"{state.max_pages} pages extracted")

        reason = self.guard.end_of_cycle(state)
        if reason is not None:
            return self._finish(reason)

        try:
            decision = await self.intelligence.decide_next_action(state, state.value_metrics)
        except Exception as exc:
            logger.warning("Navigation decision failed: %s", exc)
            decision = NavigationDecision("continue", "decision failed")
        if decision.is_complete:
            return self._finish(TerminationReason.COMPLETE, decision.reason)

        entry = state.page_queue.dequeue()
        if entry is None:
            return self._finish(TerminationReason.FRONTIER_EXHAUSTED, "frontier is empty")
        return self._set_current(entry) or Stage.ANALYZE_URL
