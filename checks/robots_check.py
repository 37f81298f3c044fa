"""
AI crawler access policy from robots.txt (site scope, network probe).
"""
from __future__ import annotations

from checks.base import SiteExecutor
from config import AI_BOTS, BOT_ACCESS_NEUTRAL_SCORE
from models import CheckType
from probes.fetcher import make_session
from probes.robots import resolve_access, robots_for_site


class AIBotAccessCheck(SiteExecutor):
    """
    Share of known AI crawlers allowed to fetch "/". When robots.txt is absent
    or unreachable the result is the neutral BOT_ACCESS_NEUTRAL_SCORE.
    """

    id = "T6_ai_bot_access"
    check_type = CheckType.HTTP

    def evaluate_site(self, ctx, session=None):
        if session is None:
            with make_session() as own_session:
                return self._evaluate(ctx, own_session)
        return self._evaluate(ctx, session)

    def _evaluate(self, ctx, session):
        robots = robots_for_site(ctx, session)

        if not robots.exists:
            return self._result(BOT_ACCESS_NEUTRAL_SCORE, {
                "robotsPresent": False,
                "rules": {bot: None for bot in AI_BOTS},
                "allowedCount": len(AI_BOTS),
            })

        decisions = {bot: resolve_access(robots, bot, "/") for bot in AI_BOTS}
        allowed = [bot for bot, d in decisions.items() if d["allowed"]]
        blocked = [bot for bot, d in decisions.items() if not d["allowed"]]

        return self._result(
            round(len(allowed) / len(AI_BOTS) * 100),
            {
                "robotsPresent": True,
                "rules": {bot: d["allowed"] for bot, d in decisions.items()},
                "matched": {bot: f'{d["source"]} {d["rule"]}' for bot, d in decisions.items()},
                "allowedCount": len(allowed),
            },
            evidence=[f"{bot}: blocked" for bot in blocked],
        )
