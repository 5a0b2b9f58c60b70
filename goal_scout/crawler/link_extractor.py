# goal_scout/crawler/link_extractor.py
"""
Link extraction and URL normalization utilities for GoalScout.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List
from urllib.parse import parse_qsl, urldefrag, urlencode, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

__all__ = ("TRACKING_PARAMS", "LinkInfo", "normalize_url", "extract_links")

TRACKING_PARAMS: FrozenSet[str] = frozenset(
    {"utm_source", "utm_medium", "utm_campaign", "fbclid", "gclid"}
)
_DEFAULT_PORTS: Dict[str, int] = {"http": 80, "https": 443}
_TRAILING_INDEX_RE = re.compile(r"/(?:index\.(?:html?|php|aspx?))?/*$", re.IGNORECASE)
_CONTEXT_CHARS = 100


@dataclass(slots=True)
class LinkInfo:
    """An ``<a href>`` resolved against the page URL."""

    url: str
    text: str
    context: str


def normalize_url(url: str) -> str:
    """
    Canonical dedup key for *url*.

    Lowercases scheme and host, drops the default port, strips trailing
    ``/index.*`` segments and slashes (empty path becomes ``/``), removes tracking
    parameters and sorts the rest by name. Returns *url* unchanged when it
    cannot be parsed.
    """
    try:
        parsed = urlsplit(url.strip())
        if not parsed.scheme or not parsed.hostname:
            return url
        scheme = parsed.scheme.lower()
        host = parsed.hostname.lower()
        if ":" in host:
            host = f"[{host}]"
        port = parsed.port
    except (ValueError, AttributeError):
        return url

    netloc = host
    if port is not None and _DEFAULT_PORTS.get(scheme) != port:
        netloc = f"{host}:{port}"

    path = parsed.path
    while True:
        stripped = _TRAILING_INDEX_RE.sub("", path, count=1)
        if stripped == path:
            break
        path = stripped
    path = path or "/"

    params = [
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if key not in TRACKING_PARAMS
    ]
    params.sort(key=lambda item: item[0])
    query = urlencode(params)

    return urlunsplit((scheme, netloc, path, query, ""))


def _link_context(tag: Tag) -> str:
    parent = tag.parent if isinstance(tag.parent, Tag) else tag
    text = " ".join(parent.get_text(" ", strip=True).split())
    return text[:_CONTEXT_CHARS]


def extract_links(html: str, page_url: str, *, same_host: bool = True) -> List[LinkInfo]:
    """
    Extract HTTP(S) links with their anchor text and surrounding context.

    Ignores mailto:, javascript:, bare fragments and (by default) other hosts.
    Each absolute URL is reported once, in document order.
    """
    soup = BeautifulSoup(html, "html.parser")
    base_host = (urlsplit(page_url).hostname or "").lower()
    seen: set[str] = set()
    links: List[LinkInfo] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if not raw or raw.startswith(("mailto:", "javascript:", "tel:", "#")):
            continue
        absolute, _ = urldefrag(urljoin(page_url, raw))
        parsed = urlsplit(absolute)
        if parsed.scheme not in ("http", "https"):
            continue
        if same_host and (parsed.hostname or "").lower() != base_host:
            continue
        if absolute in seen:
            continue
        seen.add(absolute)
        links.append(
            LinkInfo(
                url=absolute,
                text=" ".join(tag.get_text(" ", strip=True).split()),
                context=_link_context(tag),
            )
        )
    return links
