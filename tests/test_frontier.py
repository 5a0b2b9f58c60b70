# File: tests/test_frontier.py
from goal_scout.crawler.frontier import Frontier
from goal_scout.crawler.models import FrontierEntry


def entry(url: str, value: float = 0.5, depth: int = 1) -> FrontierEntry:
    return FrontierEntry(url=url, expected_value=value, depth=depth)


def drain(frontier: Frontier) -> list:
    urls = []
    while not frontier.is_empty():
        urls.append(frontier.dequeue().url)
    return urls


def test_highest_value_first():
    frontier = Frontier()
    for url, value in (("low", 0.1), ("high", 0.9), ("mid", 0.5)):
        frontier.enqueue(entry(url, value))

    assert frontier.peek().url == "high"
    assert drain(frontier) == ["high", "mid", "low"]


def test_ties_come_out_in_insertion_order():
    frontier = Frontier()
    for url in ("a", "b", "c"):
        frontier.enqueue(entry(url))
    frontier.enqueue(entry("d", 0.7))

    assert drain(frontier) == ["d", "a", "b", "c"]


def test_explicit_priority_overrides_expected_value():
    frontier = Frontier()
    frontier.enqueue(entry("a", 0.9), priority=0.1)
    frontier.enqueue(entry("b", 0.2))

    assert drain(frontier) == ["b", "a"]


def test_depth_limit_refuses_deep_entries():
    frontier = Frontier(max_depth=2)

    assert frontier.enqueue(entry("ok", depth=2)) is True
    assert frontier.enqueue(entry("deep", depth=3)) is False
    assert len(frontier) == 1
    assert "deep" not in frontier


def test_membership_tracks_queued_urls():
    frontier = Frontier()
    frontier.enqueue(entry("a"))
    frontier.enqueue(entry("a", 0.9))

    assert "a" in frontier
    frontier.dequeue()
    assert "a" in frontier
    frontier.dequeue()
    assert "a" not in frontier


def test_items_is_a_snapshot_in_dequeue_order():
    frontier = Frontier()
    frontier.enqueue(entry("a", 0.2))
    frontier.enqueue(entry("b", 0.8))

    assert [e.url for e in frontier.items()] == ["b", "a"]
    assert [e.url for e in frontier] == ["b", "a"]
    assert frontier.size() == 2


def test_empty_frontier():
    frontier = Frontier()

    assert frontier.dequeue() is None
    assert frontier.peek() is None
    assert frontier.is_empty()
