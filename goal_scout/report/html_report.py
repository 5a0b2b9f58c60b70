# File: goal_scout/report/html_report.py
"""goal_scout.report.html_report: HTML report rendered with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from goal_scout.crawler.models import ScraperOutput

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "report.html.j2"


def render_html(
    output: ScraperOutput,
    template_dir: Optional[Union[Path, str]],
    output_path: Union[Path, str],
) -> Path:
    """Render ``report.html.j2`` from *template_dir* (the bundled one when ``None``).

    Args:
        output: result of a crawl.
        template_dir: directory holding the Jinja2 template.
        output_path: where to write the HTML file.

    Returns:
        Path of the written file.
    """
    template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "pages": output.pages,
        "summary": output.summary,
        "termination_reason": output.termination_reason.value if output.termination_reason else "",
    }

    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
