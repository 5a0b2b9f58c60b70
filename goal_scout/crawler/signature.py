# goal_scout/crawler/signature.py
"""
Coarse content fingerprints for spotting the same page under different URLs.
"""
from __future__ import annotations

from bs4 import BeautifulSoup

from goal_scout.logger import logger

__all__ = ("content_signature",)

_MAX_HEADINGS = 3
_PARAGRAPH_CHARS = 100


def content_signature(html: str) -> str:
    """
    ``"h1|h2|h3|first paragraph[:100]"`` built from the first three headings
    (``h1``-``h3`` in document order) and the opening paragraph.

    Returns ``""`` when the markup cannot be parsed or carries neither
    headings nor paragraph text, so such pages never collide.
    """
    try:
        soup = BeautifulSoup(html, "html.parser")
        headings = [
            text
            for text in (tag.get_text().strip() for tag in soup.find_all(["h1", "h2", "h3"]))
            if text
        ][:_MAX_HEADINGS]
        paragraph = soup.find("p")
        first_para = paragraph.get_text().strip()[:_PARAGRAPH_CHARS] if paragraph else ""
    except Exception as exc:  # bs4 raises assorted errors on hostile markup
        logger.warning("Content signature failed: %s", exc)
        return ""

    if not headings and not first_para:
        return ""
    return f"{'|'.join(headings)}|{first_para}"
