# File: goal_scout/aggregator.py
"""goal_scout.aggregator: turns the extracted-content map into a ScraperOutput."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Union

from goal_scout.crawler.models import (
    CrawlSummary,
    EntityRef,
    LinkRef,
    PageContent,
    PageMetrics,
    ScraperOutput,
    TerminationReason,
    ValueMetrics,
    utc_now,
)

__all__ = ["assemble_output"]

_PageLike = Union[PageContent, Mapping[str, Any]]


def _get(entry: Any, name: str, default: Any = None) -> Any:
    if isinstance(entry, Mapping):
        return entry.get(name, default)
    return getattr(entry, name, default)


def _metrics(raw: Any) -> PageMetrics:
    """Missing or partial metrics default to the neutral 0.5."""
    if raw is None:
        return PageMetrics()
    if isinstance(raw, PageMetrics):
        return raw
    return PageMetrics(
        information_density=_get(raw, "information_density", 0.5),
        relevance=_get(raw, "relevance", 0.5),
        uniqueness=_get(raw, "uniqueness", 0.5),
        content_quality_analysis=_get(raw, "content_quality_analysis"),
    )


def _links(raw: Optional[Iterable[Any]]) -> List[LinkRef]:
    links: List[LinkRef] = []
    for link in raw or []:
        if isinstance(link, LinkRef):
            links.append(link)
        else:
            links.append(
                LinkRef(
                    url=_get(link, "url", ""),
                    context=_get(link, "context", ""),
                    predicted_value=_get(link, "predicted_value", 0.0),
                    visited=_get(link, "visited", False),
                )
            )
    return links


def _entities(raw: Optional[Iterable[Any]]) -> List[EntityRef]:
    entities: List[EntityRef] = []
    for entity in raw or []:
        if isinstance(entity, EntityRef):
            entities.append(entity)
        else:
            entities.append(
                EntityRef(
                    name=_get(entity, "name", ""),
                    type=_get(entity, "type", ""),
                    relevance=_get(entity, "relevance"),
                    mentions=_get(entity, "mentions"),
                )
            )
    return entities


def _page(url: str, entry: _PageLike) -> PageContent:
    return PageContent(
        url=_get(entry, "url") or url,
        title=_get(entry, "title") or "",
        content=_get(entry, "content") or "",
        content_type=_get(entry, "content_type") or "webpage",
        extraction_time=_get(entry, "extraction_time") or utc_now(),
        metrics=_metrics(_get(entry, "metrics")),
        links=_links(_get(entry, "links")),
        entities=_entities(_get(entry, "entities")),
    )


def assemble_output(
    extracted: Mapping[str, _PageLike],
    metrics: Optional[ValueMetrics] = None,
    *,
    reason: Optional[TerminationReason] = None,
) -> ScraperOutput:
    """
    Build the terminal :class:`ScraperOutput`.

    Pages keep insertion order; partially populated pages get defaults.
    ``summary.execution_time`` is left at 0 for the caller to fill in.
    """
    pages = [_page(url, entry) for url, entry in extracted.items()]
    metrics = metrics or ValueMetrics()
    summary = CrawlSummary(
        pages_scraped=len(pages),
        total_content_size=sum(len(p.content) for p in pages),
        execution_time=0,
        goal_completion=metrics.completeness,
        coverage_score=metrics.relevance,
    )
    return ScraperOutput(pages=pages, summary=summary, termination_reason=reason)
