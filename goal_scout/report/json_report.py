# goal_scout/report/json_report.py

"""
JSON report for GoalScout.

Serializes a ScraperOutput to a file.
"""
import json
from pathlib import Path

from goal_scout.crawler.models import ScraperOutput


def render_json(output: ScraperOutput, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Save *output* as JSON at *output_path* and return the path.

    Example:
    ```python
    from goal_scout.report.json_report import render_json
    report_path = render_json(output, 'reports/report.json')
    ```
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open('w', encoding='utf-8') as f:
        json.dump(output.to_dict(), f, ensure_ascii=False, indent=2 if pretty else None)

    return path
