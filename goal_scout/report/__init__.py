# File: goal_scout/report/__init__.py
"""goal_scout.report: JSON and HTML reports of a ScraperOutput, used by the CLI."""

from goal_scout.report.html_report import render_html
from goal_scout.report.json_report import render_json

__all__ = ["render_json", "render_html"]
