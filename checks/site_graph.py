"""
Entity-graph connectivity across the audited pages.

Builds a link graph from each page's raw HTML and scores how well entity
pages are tied together:

    raw = 0.4 × (1 − orphan rate) + 0.3 × hub score + 0.3 × schema coverage

An orphan is a page (other than the homepage) no other audited page links to.
A hub is an about/company/contact style page, or a page carrying
Organization markup, that links out to at least HUB_MIN_LINKS pages; the hub
score is 1 when any hub exists and 0.5 otherwise.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from urllib.parse import urlparse

from checks.base import SiteExecutor
from checks.links import internal_links
from content.document import PageDocument, cap_html
from content.structured_data import is_organization, node_types
from models import CheckType, SiteContext, SiteDescriptor

logger = logging.getLogger(__name__)

HUB_MIN_LINKS = 5
ORPHAN_SAMPLE_LIMIT = 10

_HUB_PATH_RE = re.compile(r"/(about|company|organization|org|who-we-are|team|contact)($|/)")


@dataclass
class GraphNode:
    url: str
    types: list[str] = field(default_factory=list)
    links: set[str] = field(default_factory=set)
    links_in: int = 0
    has_org: bool = False
    is_hub: bool = False


def graph_key(url: str) -> str:
    """scheme://host/path, lower-cased path, trailing slash dropped."""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return url
    path = parsed.path.lower() or "/"
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return f"{parsed.scheme}://{parsed.netloc.lower()}{path}"


def build_graph(ctx: SiteContext) -> dict[str, GraphNode]:
    site = SiteDescriptor(domain=ctx.domain, homepage_url=ctx.homepage_url)
    graph: dict[str, GraphNode] = {}

    for page in ctx.pages:
        if not page.html:
            continue
        html, _ = cap_html(page.html)
        doc = PageDocument(url=page.url, site=site, html=html)
        nodes, _ = doc.json_ld
        key = graph_key(page.url)
        graph[key] = GraphNode(
            url=page.url,
            types=sorted({t for n in nodes for t in node_types(n)}),
            links={graph_key(target) for _, target in internal_links(doc)} - {key},
            has_org=any(is_organization(n) for n in nodes),
        )

    for node in graph.values():
        for target in node.links:
            if target in graph:
                graph[target].links_in += 1

    for node in graph.values():
        hub_url = bool(_HUB_PATH_RE.search(urlparse(node.url).path.lower()))
        node.is_hub = (hub_url or node.has_org) and len(node.links) >= HUB_MIN_LINKS

    return graph


class EntityGraphConnectivity(SiteExecutor):
    id = "S17_entity_graph_connectivity"
    check_type = CheckType.HTML_DOM

    def evaluate_site(self, ctx, session=None):
        graph = build_graph(ctx)
        if not graph:
            return None

        total = len(graph)
        orphans = [
            n.url for n in graph.values()
            if n.links_in == 0 and urlparse(n.url).path not in ("", "/")
        ]
        hubs = [n.url for n in graph.values() if n.is_hub]
        with_schema = sum(1 for n in graph.values() if n.types)

        orphan_rate = len(orphans) / total
        schema_coverage = with_schema / total
        hub_score = 1.0 if hubs else 0.5
        raw = 0.4 * min(1.0, 1 - orphan_rate) + 0.3 * hub_score + 0.3 * schema_coverage

        type_counts: dict[str, int] = {}
        for node in graph.values():
            for t in node.types:
                type_counts[t] = type_counts.get(t, 0) + 1

        logger.debug("Entity graph for %s: %d pages, %d orphans, %d hubs",
                     ctx.domain, total, len(orphans), len(hubs))
        return self._result(raw * 100, {
            "totalPages": total,
            "orphanCount": len(orphans),
            "orphanRate": round(orphan_rate, 3),
            "hubPages": len(hubs),
            "schemaCoverage": round(schema_coverage, 3),
            "avgLinksPerPage": round(sum(len(n.links) for n in graph.values()) / total, 2),
            "orphanUrls": orphans[:ORPHAN_SAMPLE_LIMIT],
            "hubUrls": hubs,
            "schemaTypes": dict(sorted(type_counts.items())),
        })
