# goal_scout/intelligence/__init__.py
"""goal_scout.intelligence: collaborator interfaces and the heuristic implementation."""

from .base import CrawlHooks, Fetcher, Intelligence
from .heuristic import HeuristicIntelligence

__all__ = ["CrawlHooks", "Fetcher", "Intelligence", "HeuristicIntelligence"]
