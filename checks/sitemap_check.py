"""
Sitemap discoverability (site scope, network probe).
"""
from __future__ import annotations

from checks.base import SiteExecutor
from config import SITEMAP_FULL_ENTRIES, SITEMAP_PARTIAL_ENTRIES
from models import CheckType, SitemapData
from probes.fetcher import make_session
from probes.robots import robots_for_site
from probes.sitemap import discover_sitemap


def sitemap_score(sitemap: SitemapData) -> int:
    if not sitemap.exists:
        return 0
    if sitemap.has_lastmod and sitemap.entry_count >= SITEMAP_FULL_ENTRIES:
        return 100
    if sitemap.has_lastmod:
        return 80
    if sitemap.entry_count >= SITEMAP_PARTIAL_ENTRIES:
        return 60
    return 40


class SitemapDiscoverabilityCheck(SiteExecutor):
    """
    Probes robots.txt-declared sitemaps and the usual fallback paths. A missing
    or unreachable sitemap scores 0; it is never an error.
    """

    id = "A8_sitemap_discoverability"
    check_type = CheckType.HTTP

    def evaluate_site(self, ctx, session=None):
        if session is None:
            with make_session() as own_session:
                return self._evaluate(ctx, own_session)
        return self._evaluate(ctx, session)

    def _evaluate(self, ctx, session):
        robots = robots_for_site(ctx, session)
        sitemap = discover_sitemap(ctx.origin, session, robots)

        return self._result(sitemap_score(sitemap), {
            "found": sitemap.exists,
            "foundUrl": sitemap.url,
            "isIndex": sitemap.is_index,
            "hasLastmod": sitemap.has_lastmod,
            "urlCount": sitemap.entry_count,
            "declaredInRobots": list(robots.sitemap_urls),
            "errors": sitemap.parse_errors[:5],
        })
