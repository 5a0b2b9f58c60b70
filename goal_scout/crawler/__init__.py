# goal_scout/crawler/__init__.py
"""goal_scout.crawler: crawl orchestration engine and its building blocks."""
