"""
Ordered table of criterion id → executor.

Built once at import time; order is evaluation order and display order.
"""
from __future__ import annotations

from typing import Iterable

from checks.aggregate import AGGREGATES
from checks.base import BaseExecutor
from checks.content import (
    AnswerFirstCheck,
    ContactCtaCheck,
    FaqPresenceCheck,
    H1PresenceCheck,
    H2CoverageCheck,
    HeadingHierarchyCheck,
    RelatedQuestionsCheck,
    TopicDepthCheck,
)
from checks.links import InternalLinkingCheck
from checks.meta import (
    LangRegionCheck,
    MetaDescriptionCheck,
    MobileViewportCheck,
    NoindexRobotsCheck,
    OpenGraphCheck,
    TitleQualityCheck,
)
from checks.robots_check import AIBotAccessCheck
from checks.schema import EntityCoverageCheck, EntityGraphCheck, FaqSchemaCheck, QnaScaffoldCheck
from checks.site_graph import EntityGraphConnectivity
from checks.sitemap_check import SitemapDiscoverabilityCheck
from checks.technical import CanonicalCheck, FactAnchorCheck, PageSpeedProxyCheck, WebVitalsHintsCheck


def _build(executors: Iterable[BaseExecutor]) -> dict[str, BaseExecutor]:
    table: dict[str, BaseExecutor] = {}
    for executor in executors:
        if not executor.id:
            raise ValueError(f"Executor {type(executor).__name__} has no id")
        if executor.id in table:
            raise ValueError(f"Duplicate executor id: {executor.id}")
        table[executor.id] = executor
    return table


EXECUTORS: dict[str, BaseExecutor] = _build([
    # Technical foundations
    TitleQualityCheck(),
    MetaDescriptionCheck(),
    FaqSchemaCheck(),
    CanonicalCheck(),
    LangRegionCheck(),
    OpenGraphCheck(),

    # Structure & organisation
    H1PresenceCheck(),
    HeadingHierarchyCheck(),
    InternalLinkingCheck(),
    H2CoverageCheck(),
    EntityCoverageCheck(),
    FactAnchorCheck(),

    # Content & clarity
    AnswerFirstCheck(),
    FaqPresenceCheck(),
    ContactCtaCheck(),
    RelatedQuestionsCheck(),
    TopicDepthCheck(),
    QnaScaffoldCheck(),

    # Authority & trust
    EntityGraphCheck(),

    # Crawl & discoverability
    NoindexRobotsCheck(),

    # Experience & performance
    MobileViewportCheck(),
    WebVitalsHintsCheck(),
    PageSpeedProxyCheck(),

    # Site aggregates
    *AGGREGATES,
    EntityGraphConnectivity(),

    # Site network probes
    SitemapDiscoverabilityCheck(),
    AIBotAccessCheck(),
])
