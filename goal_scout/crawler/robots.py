# goal_scout/crawler/robots.py
"""
robots.txt parsing and lookup (RFC 9309 longest-match semantics).
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

__all__ = ("RobotsTxtRules", "robots_url_for")

_WILDCARD_RE = re.compile(r"[*$]")


@dataclass(slots=True)
class _Group:
    agents: List[str] = field(default_factory=list)
    directives: List[Tuple[str, str]] = field(default_factory=list)
    crawl_delay: Optional[float] = None


def robots_url_for(url: str) -> str:
    parsed = urlsplit(url)
    return urlunsplit((parsed.scheme, parsed.netloc, "/robots.txt", "", ""))


class RobotsTxtRules:
    """
    Parsed robots.txt. An empty ``Disallow`` allows everything; on equal
    rule length ``Allow`` wins.
    """

    def __init__(self, text: str) -> None:
        self._groups: List[_Group] = []
        self._regex_cache: Dict[str, re.Pattern[str]] = {}
        self._parse(text)

    def can_fetch(self, user_agent: str, url_or_path: str) -> bool:
        group = self._match_group(user_agent)
        if group is None:
            return True
        path = self._path_of(url_or_path)
        best_len = -1
        allow: Optional[bool] = None
        for directive, pattern in group.directives:
            if not self._match_path(path, pattern):
                continue
            length = len(_WILDCARD_RE.sub("", pattern))
            if length > best_len or (length == best_len and directive == "allow"):
                best_len = length
                allow = directive == "allow"
        return True if allow is None else allow

    def crawl_delay(self, user_agent: str) -> Optional[float]:
        group = self._match_group(user_agent)
        return None if group is None else group.crawl_delay

    # ---- parsing ---- #

    def _parse(self, text: str) -> None:
        current: Optional[_Group] = None
        for raw in text.splitlines():
            line = raw.split("#", 1)[0].strip()
            if not line:
                continue
            key, _, val = line.partition(":")
            key = key.strip().lower()
            val = val.strip()
            if key == "user-agent":
                if current is None or current.directives or current.crawl_delay is not None:
                    current = _Group()
                    self._groups.append(current)
                current.agents.append(val.lower())
                continue
            if key not in ("allow", "disallow", "crawl-delay"):
                continue
            if current is None:
                current = _Group(agents=["*"])
                self._groups.append(current)
            if key == "crawl-delay":
                try:
                    current.crawl_delay = float(val)
                except ValueError:
                    pass
            elif val:
                current.directives.append((key, val))

    def _match_group(self, user_agent: str) -> Optional[_Group]:
        ua = user_agent.lower()
        for group in self._groups:
            if any(agent != "*" and ua.startswith(agent) for agent in group.agents):
                return group
        for group in self._groups:
            if "*" in group.agents:
                return group
        return None

    def _match_path(self, path: str, pattern: str) -> bool:
        regex = self._regex_cache.get(pattern)
        if regex is None:
            body = re.escape(pattern.rstrip("$")).replace(r"\*", ".*")
            regex = re.compile(f"^{body}$" if pattern.endswith("$") else f"^{body}")
            self._regex_cache[pattern] = regex
        return bool(regex.match(path))

    @staticmethod
    def _path_of(url_or_path: str) -> str:
        if url_or_path.startswith("/"):
            return url_or_path
        parsed = urlsplit(url_or_path)
        path = parsed.path or "/"
        return f"{path}?{parsed.query}" if parsed.query else path
