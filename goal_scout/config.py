# === FILE: goal_scout/config.py ===
"""
Loading and validation of GoalScout run configuration.
Pydantic describes the schema and checks the data.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

__all__ = ("LinkFilters", "GuardConfig", "CrawlConfig", "load_config")


class LinkFilters(BaseModel):
    """Substring filters applied to discovered links."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    must_include_patterns: List[str] = Field(
        default_factory=list, description="Enqueue only if the URL or link context contains one of these."
    )
    exclude_patterns: List[str] = Field(
        default_factory=list, description="Never enqueue a URL containing one of these."
    )

    @field_validator("must_include_patterns", "exclude_patterns", mode="before")
    def _drop_blank(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return [p for p in v if not (isinstance(p, str) and not p.strip())]
        return v


class GuardConfig(BaseModel):
    """Limits that guarantee a run terminates."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_iterations: int = Field(20, ge=1, description="Upper bound on ANALYZE_URL entries.")
    recursion_limit: int = Field(200, ge=1, description="Upper bound on total stage steps.")
    max_execution_time_ms: int = Field(180_000, gt=0, description="Wall-clock budget of a run.")
    deadlock_detection_ms: int = Field(20_000, gt=0, description="Allowed time without progress.")
    deadlock_check_interval_ms: int = Field(2_000, gt=0, description="Stagnation polling period.")
    max_current_url_repeats: int = Field(3, ge=1, description="How often one URL may become current.")
    sufficiency_threshold: float = Field(0.8, ge=0, le=1, description="Completeness that ends the run early.")
    sufficiency_page_fraction: float = Field(0.5, ge=0, le=1, description="Share of max_pages needed as well.")
    stagnation_window: int = Field(5, ge=2, description="Unchanged snapshots that count as stagnation.")

    @model_validator(mode="before")
    @classmethod
    def _default_recursion_limit(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("recursion_limit") is None:
            data = dict(data)
            data["recursion_limit"] = 10 * int(data.get("max_iterations", 20))
        return data


class CrawlConfig(BaseModel):
    """Configuration of one goal-directed crawl."""
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    base_url: HttpUrl = Field(..., description="Seed URL.")
    scraping_goal: str = Field(..., min_length=1, description="What the crawl is looking for.")
    max_pages: int = Field(20, ge=1, description="Hard limit on extracted pages.")
    max_depth: int = Field(3, ge=0, description="Maximum link depth from the seed.")
    include_images: bool = Field(False, description="Report images as entities.")
    execute_javascript: bool = Field(False, description="Ask the fetcher to render JavaScript.")
    prevent_duplicate_urls: bool = Field(True, description="Skip known normalized URLs and signatures.")
    batch_size: int = Field(5, ge=1, description="Processed URLs per batch-complete event.")
    filters: LinkFilters = Field(default_factory=LinkFilters)
    guard: GuardConfig = Field(default_factory=GuardConfig, alias="config")

    timeout: float = Field(10.0, gt=0, description="Per-request timeout (seconds).")
    user_agent: str = Field("GoalScoutBot/1.0", min_length=1, description="User-Agent header.")
    retry_times: int = Field(3, ge=0, description="Retries on 429/5xx.")
    rate_limit: float = Field(1.0, gt=0, description="Requests per second.")

    @field_validator("scraping_goal", mode="before")
    def _strip_goal(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @property
    def seed_url(self) -> str:
        return str(self.base_url)


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> CrawlConfig:
    """
    Read YAML or JSON and return a validated :class:`CrawlConfig`.
    Raises FileNotFoundError when the file is missing.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return CrawlConfig(**data)
