# === FILE: goal_scout/parser/html_parser.py ===
"""HTML parsing utilities for GoalScout.

:func:`parse_html` turns markup into a :class:`ParsedPage` carrying what the
heuristic collaborators look at:

* title - document ``<title>`` (falls back to the first ``<h1>``).
* text - main visible text, taken from ``<main>``/``<article>`` when present.
* headings / paragraphs - in document order.
* images - absolute ``src`` with ``alt`` text.
* forms - input names and types, for login-form detection.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

__all__: Sequence[str] = ("FormInfo", "ParsedPage", "parse_html")

_NOISE_TAGS = ["script", "style", "noscript", "template", "nav", "header", "footer", "aside"]
_MAIN_SELECTORS = ("main", "article", "[role=main]", "#content", ".content")


@dataclass(slots=True)
class FormInfo:
    action: str
    inputs: List[Tuple[str, str]] = field(default_factory=list)  # (name, type)

    @property
    def has_password(self) -> bool:
        return any(kind == "password" for _, kind in self.inputs)


@dataclass(slots=True)
class ParsedPage:
    """Lightweight representation of an HTML page."""

    url: str
    title: str
    text: str
    headings: List[str] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)
    images: List[Tuple[str, str]] = field(default_factory=list)  # (src, alt)
    forms: List[FormInfo] = field(default_factory=list)

    # Convenience helpers ---------------------------------------------------
    def has_login_form(self) -> bool:
        return any(form.has_password for form in self.forms)


# ---------------------------------------------------------------------------
# Public function
# ---------------------------------------------------------------------------


def _clean(text: str) -> str:
    return " ".join(text.split())


def _main_node(soup: BeautifulSoup) -> Tag:
    for selector in _MAIN_SELECTORS:
        node = soup.select_one(selector)
        if isinstance(node, Tag) and node.get_text(strip=True):
            return node
    return soup.body if isinstance(soup.body, Tag) else soup


def _forms(soup: BeautifulSoup, base_url: str) -> List[FormInfo]:
    forms: List[FormInfo] = []
    for form in soup.find_all("form"):
        action = form.get("action") or ""
        info = FormInfo(action=urljoin(base_url, action) if base_url else action)
        for field_tag in form.find_all(["input", "select", "textarea"]):
            name = field_tag.get("name") or ""
            kind = (field_tag.get("type") or field_tag.name or "text").lower()
            info.inputs.append((name, kind))
        forms.append(info)
    return forms


def parse_html(html: str, url: str = "") -> ParsedPage:
    """Parse raw HTML markup; *url* resolves relative image and form URLs."""
    soup = BeautifulSoup(html or "", "html.parser")

    title_tag = soup.find("title")
    title = _clean(title_tag.get_text()) if title_tag else ""

    headings = [t for t in (_clean(h.get_text()) for h in soup.find_all(["h1", "h2", "h3"])) if t]
    if not title and headings:
        title = headings[0]

    images: List[Tuple[str, str]] = []
    for img in soup.find_all("img", src=True):
        src = str(img.get("src")).strip()
        if src and not src.startswith("data:"):
            images.append((urljoin(url, src) if url else src, _clean(str(img.get("alt") or ""))))

    forms = _forms(soup, url)

    # visible text only
    for element in soup(_NOISE_TAGS):
        element.decompose()
    main: Optional[Tag] = _main_node(soup)
    paragraphs = [t for t in (_clean(p.get_text()) for p in main.find_all("p")) if t]
    text = _clean(main.get_text(" "))

    return ParsedPage(
        url=url,
        title=title,
        text=text,
        headings=headings,
        paragraphs=paragraphs,
        images=images,
        forms=forms,
    )
