# File: goal_scout/engine.py
"""goal_scout.engine: wires the HTTP fetcher and heuristic intelligence into an Orchestrator."""

from __future__ import annotations

import asyncio
from typing import Optional

from goal_scout.config import CrawlConfig, load_config
from goal_scout.crawler.fetcher import HttpFetcher
from goal_scout.crawler.models import ScraperOutput
from goal_scout.crawler.orchestrator import Orchestrator
from goal_scout.intelligence.base import CrawlHooks
from goal_scout.intelligence.heuristic import HeuristicIntelligence
from goal_scout.logger import logger

__all__ = ["Engine", "start_scan"]


async def start_scan(config: CrawlConfig, hooks: Optional[CrawlHooks] = None) -> ScraperOutput:
    """Run one crawl with the bundled collaborators."""
    async with HttpFetcher(config) as fetcher:
        intelligence = HeuristicIntelligence(robots=fetcher.robots, user_agent=config.user_agent)
        orchestrator = Orchestrator(config, fetcher, intelligence, hooks)
        return await orchestrator.run()


class Engine:
    """Facade for scripts and tests: load a config, run the crawl synchronously."""

    @staticmethod
    def load_config(path: Optional[str]) -> CrawlConfig:
        return load_config(path)

    def __init__(self, config: CrawlConfig, hooks: Optional[CrawlHooks] = None) -> None:
        self.config = config
        self.hooks = hooks

    def start_scan(self) -> ScraperOutput:
        logger.info("Starting crawl of %s", self.config.seed_url)
        try:
            return asyncio.run(start_scan(self.config, self.hooks))
        except Exception as exc:
            logger.error("Crawl failed: %s", exc)
            raise
