# File: tests/test_cli.py
"""CLI tests (`goal_scout.cli`) with click.testing.CliRunner.
Cover `crawl`, `config`, `--version`, option overrides and error handling.
"""
import importlib
import json

import pytest
from click.testing import CliRunner

from goal_scout.cli import cli
from goal_scout.crawler.models import CrawlSummary, PageContent, ScraperOutput, TerminationReason

# the package re-exports the click group under the same name as the module
cli_module = importlib.import_module("goal_scout.cli")

QUIET = ["--log-level", "WARNING"]


@pytest.fixture(autouse=True)
def patch_start_scan(monkeypatch):
    """Patch start_scan to return a canned result without crawling."""
    seen = []

    async def fake_scan(cfg):
        seen.append(cfg)
        page = PageContent(url="https://example.com/", title="Example", content="hello")
        return ScraperOutput(
            pages=[page],
            summary=CrawlSummary(pages_scraped=1, total_content_size=5, execution_time=12),
            termination_reason=TerminationReason.FRONTIER_EXHAUSTED,
        )

    monkeypatch.setattr(cli_module, "start_scan", fake_scan)
    return seen


@pytest.fixture()
def cfg_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "base_url": "https://example.com",
                "scraping_goal": "example pages",
                "max_depth": 1,
                "timeout": 1.0,
                "user_agent": "Agent/1.0",
                "rate_limit": 1.0,
                "retry_times": 0,
            }
        ),
        encoding="utf-8",
    )
    return path


def invoke(*args):
    return CliRunner().invoke(cli, [*QUIET, *args])


def test_version_option():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "GoalScout" in result.output


def test_show_config(cfg_file):
    result = invoke("--config", str(cfg_file), "config")
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["base_url"] == "https://example.com/"
    assert data["scraping_goal"] == "example pages"
    assert data["config"]["max_iterations"] == 20


def test_overrides(cfg_file, patch_start_scan):
    result = invoke("--config", str(cfg_file), "--limit", "3", "--goal", " pricing ", "crawl")
    assert result.exit_code == 0
    (cfg,) = patch_start_scan
    assert cfg.max_pages == 3
    assert cfg.scraping_goal == "pricing"


def test_crawl_timeout_sets_execution_budget(cfg_file, patch_start_scan):
    result = invoke("--config", str(cfg_file), "crawl", "--crawl-timeout", "1.5")
    assert result.exit_code == 0
    assert patch_start_scan[0].guard.max_execution_time_ms == 1500


def test_crawl_stdout(cfg_file):
    result = invoke("--config", str(cfg_file), "crawl")
    assert result.exit_code == 0
    output = json.loads(result.output)
    assert output["pages"][0]["url"] == "https://example.com/"
    assert output["summary"]["pages_scraped"] == 1
    assert output["termination_reason"] == "frontier-exhausted"


def test_crawl_json_file(cfg_file, tmp_path):
    out = tmp_path / "out.json"
    result = invoke("--config", str(cfg_file), "crawl", "--json", str(out))
    assert result.exit_code == 0
    assert out.exists()
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["pages"][0]["title"] == "Example"


def test_crawl_html_file(cfg_file, tmp_path):
    out = tmp_path / "report.html"
    result = invoke("--config", str(cfg_file), "crawl", "--html", str(out))
    assert result.exit_code == 0
    html = out.read_text(encoding="utf-8")
    assert "Example" in html
    assert "frontier-exhausted" in html


def test_report_failure_exits_nonzero(cfg_file, tmp_path, monkeypatch):
    def broken(output, path, *, pretty=True):
        raise OSError("disk full")

    monkeypatch.setattr(cli_module, "render_json", broken)
    result = invoke("--config", str(cfg_file), "crawl", "--json", str(tmp_path / "o.json"))
    assert result.exit_code == 1
    assert "disk full" in result.output


def test_crawl_failure_exits_nonzero(cfg_file, monkeypatch):
    async def boom(cfg):
        raise RuntimeError("network gone")

    monkeypatch.setattr(cli_module, "start_scan", boom)
    result = invoke("--config", str(cfg_file), "crawl")
    assert result.exit_code == 1
    assert "network gone" in result.output


def test_bad_config_exits_nonzero(tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("base_url: http://example.com\n", encoding="utf-8")
    result = invoke("--config", str(bad), "config")
    assert result.exit_code == 1
    assert "Failed to load configuration" in result.output
