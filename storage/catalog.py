"""
Criterion catalog: the externally edited table of checks, weights, thresholds
and enabled/preview flags. Read fresh at the start of every run.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Union

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from models import CatalogLoadError, CheckType, Criterion, Impact, PersistenceError, Scope
from storage.db import scoring_criteria

logger = logging.getLogger(__name__)

_H, _M, _L = Impact.HIGH, Impact.MEDIUM, Impact.LOW
_DOM, _HTTP, _AGG = CheckType.HTML_DOM, CheckType.HTTP, CheckType.AGGREGATE

# (id, label, scope, check_type, category, impact, weight, preview)
_DEFAULTS = [
    ("C1_title_quality", "Title quality", Scope.PAGE, _DOM, "Technical Foundations", _H, 3, False),
    ("C2_meta_description", "Meta description", Scope.PAGE, _DOM, "Technical Foundations", _M, 2, False),
    ("A4_schema_faqpage", "FAQ schema", Scope.PAGE, _DOM, "Technical Foundations", _H, 3, False),
    ("G10_canonical", "Canonical URL", Scope.PAGE, _DOM, "Technical Foundations", _M, 2, False),
    ("T2_lang_region", "Language / region", Scope.PAGE, _DOM, "Technical Foundations", _L, 1, False),
    ("G2_og_tags_completeness", "Open Graph tags", Scope.PAGE, _DOM, "Technical Foundations", _M, 2, False),
    ("C3_h1_presence", "Single H1", Scope.PAGE, _DOM, "Structure & Organization", _H, 3, False),
    ("A2_headings_semantic", "Heading hierarchy", Scope.PAGE, _DOM, "Structure & Organization", _H, 3, False),
    ("A9_internal_linking", "Internal linking", Scope.PAGE, _DOM, "Structure & Organization", _M, 2, False),
    ("C5_h2_coverage_ratio", "H2 coverage", Scope.PAGE, _DOM, "Structure & Organization", _M, 2, False),
    ("G11_entity_graph_completeness", "Entity coverage", Scope.PAGE, _DOM, "Structure & Organization", _M, 2, True),
    ("G6_fact_url_stability", "Fact anchors", Scope.PAGE, _DOM, "Structure & Organization", _M, 2, True),
    ("A1_answer_first", "Answer-first content", Scope.PAGE, _DOM, "Content & Clarity", _H, 3, False),
    ("A3_faq_presence", "FAQ block", Scope.PAGE, _DOM, "Content & Clarity", _M, 2, False),
    ("A6_contact_cta_presence", "Contact / CTA", Scope.PAGE, _DOM, "Content & Clarity", _M, 2, False),
    ("A5_related_questions_block", "Related questions", Scope.PAGE, _DOM, "Content & Clarity", _M, 2, False),
    ("G12_topic_depth_semantic", "Topic depth", Scope.PAGE, _DOM, "Content & Clarity", _M, 2, True),
    ("A14_qna_scaffold", "Q&A scaffold", Scope.PAGE, _DOM, "Content & Clarity", _H, 3, True),
    ("A12_entity_graph", "Organization entity", Scope.PAGE, _DOM, "Authority & Trust", _H, 3, False),
    ("T3_noindex_robots", "Indexable", Scope.PAGE, _DOM, "Crawl & Discoverability", _H, 3, False),
    ("T1_mobile_viewport", "Mobile viewport", Scope.PAGE, _DOM, "Experience & Performance", _M, 2, False),
    ("T4_core_web_vitals_hints", "Performance hints", Scope.PAGE, _DOM, "Experience & Performance", _M, 2, False),
    ("T5_page_speed_lcp", "Page speed (LCP proxy)", Scope.PAGE, _DOM, "Experience & Performance", _M, 2, True),
    ("S1_faq_coverage_pct", "FAQ coverage", Scope.SITE, _AGG, "Site", _M, 2, False),
    ("S2_faq_schema_adoption_pct", "FAQ schema adoption", Scope.SITE, _AGG, "Site", _M, 2, False),
    ("S3_canonical_correct_pct", "Canonical correctness", Scope.SITE, _AGG, "Site", _H, 3, False),
    ("S4_mobile_ready_pct", "Mobile readiness", Scope.SITE, _AGG, "Site", _H, 3, False),
    ("S5_lang_correct_pct", "Language correctness", Scope.SITE, _AGG, "Site", _M, 2, False),
    ("S6_entity_graph_adoption_pct", "Entity graph adoption", Scope.SITE, _AGG, "Site", _H, 3, False),
    ("S7_dup_title_pct", "Unique titles", Scope.SITE, _AGG, "Site", _M, 2, False),
    ("S8_avg_h2_coverage", "Site H2 coverage", Scope.SITE, _AGG, "Site", _M, 2, False),
    ("S9_og_tags_coverage_pct", "Open Graph coverage", Scope.SITE, _AGG, "Site", _M, 2, False),
    ("S10_cta_above_fold_pct", "CTA coverage", Scope.SITE, _AGG, "Site", _M, 2, False),
    ("S11_internal_link_health_pct", "Internal link health", Scope.SITE, _AGG, "Site", _M, 2, False),
    ("S12_title_quality_avg", "Average title quality", Scope.SITE, _AGG, "Site", _M, 2, False),
    ("S13_indexable_pct", "Indexable pages", Scope.SITE, _AGG, "Site", _H, 3, False),
    ("S14_single_h1_pct", "Single-H1 pages", Scope.SITE, _AGG, "Site", _M, 2, False),
    ("S15_semantic_headings_pct", "Semantic heading pages", Scope.SITE, _AGG, "Site", _M, 2, False),
    ("S16_meta_description_pct", "Meta description coverage", Scope.SITE, _AGG, "Site", _M, 2, False),
    ("S17_entity_graph_connectivity", "Entity graph connectivity", Scope.SITE, _DOM, "Site", _M, 2, True),
    ("A8_sitemap_discoverability", "Sitemap discoverability", Scope.SITE, _HTTP, "Crawl & Discoverability", _M, 2, False),
    ("T6_ai_bot_access", "AI bot access", Scope.SITE, _HTTP, "Crawl & Discoverability", _H, 3, True),
]

DEFAULT_CRITERIA: list[Criterion] = [
    Criterion(
        id=cid,
        label=label,
        scope=scope,
        check_type=check_type,
        category=category,
        impact=impact,
        weight=float(weight),
        preview=preview,
        display_order=(idx + 1) * 10,
    )
    for idx, (cid, label, scope, check_type, category, impact, weight, preview) in enumerate(_DEFAULTS)
]


class CriterionCatalog:
    """Read/write access to the scoring_criteria table."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def load(self) -> dict[str, Criterion]:
        """Enabled criteria keyed by id, in display order. Never partial."""
        return self._select(enabled_only=True)

    def load_all(self) -> dict[str, Criterion]:
        return self._select(enabled_only=False)

    def _select(self, enabled_only: bool) -> dict[str, Criterion]:
        t = scoring_criteria
        stmt = select(t).order_by(t.c.display_order.is_(None), t.c.display_order, t.c.id)
        if enabled_only:
            stmt = stmt.where(t.c.enabled.is_(True))
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
            criteria = [Criterion.from_dict(dict(row)) for row in rows]
        except (SQLAlchemyError, KeyError, TypeError, ValueError) as exc:
            raise CatalogLoadError(f"Could not load criterion catalog: {exc}") from exc

        logger.debug("Loaded %d criteria (enabled_only=%s)", len(criteria), enabled_only)
        return {c.id: c for c in criteria}

    def seed(self, criteria: Iterable[Criterion]) -> int:
        """Insert or update the given criteria in one transaction."""
        t = scoring_criteria
        count = 0
        try:
            with self.engine.begin() as conn:
                existing = set(conn.execute(select(t.c.id)).scalars().all())
                for criterion in criteria:
                    values = criterion.to_dict()
                    if criterion.id in existing:
                        conn.execute(t.update().where(t.c.id == criterion.id).values(**values))
                    else:
                        conn.execute(t.insert().values(**values))
                        existing.add(criterion.id)
                    count += 1
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not seed criterion catalog: {exc}") from exc
        return count

    def set_enabled(self, check_id: str, enabled: bool) -> None:
        t = scoring_criteria
        try:
            with self.engine.begin() as conn:
                conn.execute(t.update().where(t.c.id == check_id).values(enabled=enabled))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not update criterion {check_id}: {exc}") from exc


def seed_default_catalog(engine: Engine) -> int:
    return CriterionCatalog(engine).seed(DEFAULT_CRITERIA)


def load_criteria_file(path: Union[str, Path]) -> list[Criterion]:
    """
    Read a JSON array of criterion records (the admin export format).
    `impact_level` is accepted as an alias of `impact`.
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise CatalogLoadError(f"Could not read criteria file {path}: {exc}") from exc
    if not isinstance(raw, list):
        raise CatalogLoadError(f"Criteria file {path} must contain a JSON array")

    try:
        return [Criterion.from_dict(item) for item in raw]
    except (KeyError, TypeError, ValueError) as exc:
        raise CatalogLoadError(f"Invalid criterion record in {path}: {exc}") from exc
