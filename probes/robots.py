"""
Fetches and parses robots.txt, and resolves per-bot access decisions.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

import requests

from config import PROBE_TIMEOUT
from models import RobotsData, SiteContext
from probes.fetcher import fetch

logger = logging.getLogger(__name__)

_CACHE_KEY = "robots"


def fetch_and_parse_robots(
    origin: str,
    session: requests.Session,
    timeout: float = PROBE_TIMEOUT,
) -> RobotsData:
    """Fetch /robots.txt under `origin` and return a populated RobotsData object."""
    robots_url = f"{origin.rstrip('/')}/robots.txt"
    data = RobotsData(url=robots_url, exists=False)

    resp = fetch(robots_url, session, timeout)
    if resp is None:
        return data

    data.status_code = resp.status_code
    content_type = (resp.headers.get("content-type") or "").lower()
    body = resp.text or ""
    if "text/html" in content_type or body.lstrip()[:15].lower().startswith(("<!doctype", "<html")):
        data.parse_errors.append("robots.txt served an HTML document")
        return data

    data.exists = True
    data.raw_text = body
    parse_robots(data)
    return data


def robots_for_site(
    ctx: SiteContext,
    session: requests.Session,
    timeout: float = PROBE_TIMEOUT,
) -> RobotsData:
    """robots.txt for the site, fetched at most once per site run."""
    cached = ctx.probe_cache.get(_CACHE_KEY)
    if cached is None:
        cached = fetch_and_parse_robots(ctx.origin, session, timeout)
        ctx.probe_cache[_CACHE_KEY] = cached
    return cached


def parse_robots(data: RobotsData) -> None:
    """Parse robots.txt raw text into structured rules."""
    current_agents: list[str] = []
    last_was_agent = False

    for raw_line in data.raw_text.splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue

        if ":" not in line:
            data.parse_errors.append(f"Invalid line (no colon): {line!r}")
            continue

        directive, _, value = line.partition(":")
        directive = directive.strip().lower()
        value = value.strip()

        if directive == "user-agent":
            # Consecutive User-agent lines share one group.
            if not last_was_agent:
                current_agents = []
            current_agents.append(value.lower())
            last_was_agent = True
            continue

        last_was_agent = False

        if directive == "disallow":
            for agent in current_agents:
                data.disallow_rules.append({"agent": agent, "path": value})

        elif directive == "allow":
            for agent in current_agents:
                data.allow_rules.append({"agent": agent, "path": value})

        elif directive == "sitemap":
            if value:
                data.sitemap_urls.append(value)


def resolve_access(robots_data: RobotsData, bot: str, path: str = "/") -> dict:
    """
    Decide whether `bot` may fetch `path`.

    The bot-specific group is consulted first; when none of its rules match,
    the wildcard group decides; with no matching rule at all the path is
    allowed. Within a group the longest matching rule wins and Allow wins ties,
    so an explicit bot Allow overrides a wildcard Disallow.

    A bot group that exists but has no rule matching `path` does not shadow
    the wildcard group: `*` is still consulted for that path.
    """
    if not robots_data.exists:
        return {"allowed": True, "rule": "no-robots", "source": "default"}

    for agent, source in ((bot.lower(), "bot"), ("*", "wildcard")):
        allows = [r["path"] for r in robots_data.allow_rules if r["agent"] == agent]
        disallows = [r["path"] for r in robots_data.disallow_rules if r["agent"] == agent]
        decision, rule = _decide(path, allows, disallows)
        if decision is not None:
            return {"allowed": decision, "rule": rule, "source": source}

    return {"allowed": True, "rule": "no-rule", "source": "default"}


def _decide(path: str, allows: list[str], disallows: list[str]) -> tuple[Optional[bool], str]:
    best_allow, allow_rule = -1, ""
    best_disallow, disallow_rule = -1, ""

    for rule_path in allows:
        n = _match_length(path, rule_path)
        if n > best_allow:
            best_allow, allow_rule = n, rule_path

    for rule_path in disallows:
        # Empty Disallow: means "nothing is disallowed"
        if not rule_path:
            continue
        n = _match_length(path, rule_path)
        if n > best_disallow:
            best_disallow, disallow_rule = n, rule_path

    if best_allow < 0 and best_disallow < 0:
        return None, "no-rule"
    if best_allow >= best_disallow:
        return True, f"allow: {allow_rule}"
    return False, f"disallow: {disallow_rule}"


def _match_length(path: str, rule_path: str) -> int:
    """Length of `rule_path` when it matches `path` (supports * and $), else -1."""
    if not rule_path:
        return -1
    if "*" not in rule_path and not rule_path.endswith("$"):
        return len(rule_path) if path.startswith(rule_path) else -1

    anchored = rule_path.endswith("$")
    body = rule_path[:-1] if anchored else rule_path
    pattern = ".*".join(re.escape(part) for part in body.split("*"))
    if anchored:
        pattern += "$"
    return len(rule_path) if re.match(pattern, path) else -1
