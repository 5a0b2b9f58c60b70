# goal_scout/parser/__init__.py
"""goal_scout.parser: HTML parsing helpers."""

from .html_parser import FormInfo, ParsedPage, parse_html

__all__ = ["FormInfo", "ParsedPage", "parse_html"]
