"""
Site-level aggregate executors. Each reads the page-level results already
persisted for the audit; none of them touch HTML or the network.

Every aggregate tolerates an audit with no contributing pages by emitting a
not_applicable result (score 0, details.pageCount = 0).
"""
from __future__ import annotations

import math
from collections import Counter
from typing import Any, Iterator, Optional

from checks.base import SiteExecutor
from config import (
    DEFAULT_PASS_CUTOFF,
    FAILING_SAMPLE_LIMIT,
    PASS_CUTOFFS,
    SITE_H2_LENIENT_WORD_COUNT,
    WORDS_PER_H2,
)
from content.text import normalize_title
from models import CheckResult, PageSummary, SiteContext


# ── Aggregate primitives ──────────────────────────────────────────────────────

def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def pct_pass(scores: list[float], cutoff: float = DEFAULT_PASS_CUTOFF) -> int:
    """Percentage (0–100) of scores at or above `cutoff`; 0 for no scores."""
    if not scores:
        return 0
    passing = sum(1 for s in scores if s >= cutoff)
    return round_half_up(100 * passing / len(scores))


def mean(values: list[float]) -> int:
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def duplicate_pct(values: list[str]) -> int:
    """
    Percentage of (non-empty) values that belong to a group occurring more
    than once. ["a", "a", "b"] → 67.
    """
    filtered = [v for v in values if v]
    if not filtered:
        return 0
    counts = Counter(filtered)
    duplicated = sum(n for n in counts.values() if n > 1)
    return round_half_up(100 * duplicated / len(filtered))


def unique_pages(ctx: SiteContext) -> Iterator[PageSummary]:
    """Pages of the audit, at most one per URL."""
    seen: set[str] = set()
    for page in ctx.pages:
        if page.url in seen:
            continue
        seen.add(page.url)
        yield page


def collect_scores(ctx: SiteContext, check_id: str) -> list[float]:
    scores = []
    for page in unique_pages(ctx):
        result = page.check(check_id)
        if result is not None:
            scores.append(result.score)
    return scores


def collect_details(ctx: SiteContext, check_id: str, key: str) -> list[Any]:
    values = []
    for page in unique_pages(ctx):
        result = page.check(check_id)
        if result is not None and key in result.details:
            values.append(result.details[key])
    return values


def sum_details(ctx: SiteContext, check_id: str, keys: list[str]) -> tuple[dict[str, float], int]:
    sums = {k: 0.0 for k in keys}
    pages = 0
    for page in unique_pages(ctx):
        result = page.check(check_id)
        if result is None or not result.details:
            continue
        pages += 1
        for k in keys:
            try:
                sums[k] += float(result.details.get(k) or 0)
            except (TypeError, ValueError):
                continue
    return sums, pages


def sample_failing_pages(
    ctx: SiteContext,
    check_id: str,
    cutoff: float = DEFAULT_PASS_CUTOFF,
    limit: int = FAILING_SAMPLE_LIMIT,
) -> list[dict[str, Any]]:
    sample = []
    for page in unique_pages(ctx):
        result = page.check(check_id)
        if result is not None and result.score < cutoff:
            sample.append({"url": page.url, "score": result.score})
            if len(sample) >= limit:
                break
    return sample


# ── Executors ─────────────────────────────────────────────────────────────────

class AggregateExecutor(SiteExecutor):

    def _emit_safe(self, score: float, page_count: int, details: Optional[dict] = None) -> CheckResult:
        details = dict(details or {})
        details["pageCount"] = page_count
        if not page_count:
            return self.not_applicable(details)
        return self._result(score, details)


class PercentPassingAggregate(AggregateExecutor):
    """Share of pages whose `source_id` score reaches its pass cutoff."""

    def __init__(self, check_id: str, source_id: str) -> None:
        self.id = check_id
        self.source_id = source_id

    @property
    def cutoff(self) -> int:
        return PASS_CUTOFFS.get(self.source_id, DEFAULT_PASS_CUTOFF)

    def evaluate_site(self, ctx, session=None):
        scores = collect_scores(ctx, self.source_id)
        return self._emit_safe(pct_pass(scores, self.cutoff), len(scores), {
            "source": self.source_id,
            "cutoff": self.cutoff,
            "passing": sum(1 for s in scores if s >= self.cutoff),
            "sample": sample_failing_pages(ctx, self.source_id, self.cutoff),
        })


class MeanScoreAggregate(AggregateExecutor):
    """Rounded mean of the per-page `source_id` scores."""

    def __init__(self, check_id: str, source_id: str) -> None:
        self.id = check_id
        self.source_id = source_id

    def evaluate_site(self, ctx, session=None):
        scores = collect_scores(ctx, self.source_id)
        return self._emit_safe(mean(scores), len(scores), {
            "source": self.source_id,
            "sample": sample_failing_pages(ctx, self.source_id),
        })


class DuplicateTitleAggregate(AggregateExecutor):
    """100 − duplicate-title rate, so less duplication scores higher."""

    id = "S7_dup_title_pct"

    def evaluate_site(self, ctx, session=None):
        raw = [t for t in collect_details(ctx, "C1_title_quality", "title") if isinstance(t, str) and t]
        titles = [t for t in (normalize_title(r) for r in raw) if t]
        dup_rate = duplicate_pct(titles)
        repeated = sorted(t for t, n in Counter(titles).items() if n > 1)
        return self._emit_safe(max(0, 100 - dup_rate), len(titles), {
            "dupRate": dup_rate,
            "totalTitles": len(titles),
            "duplicates": repeated[:FAILING_SAMPLE_LIMIT],
            "sample": titles[:FAILING_SAMPLE_LIMIT],
        })


class H2CoverageAggregate(AggregateExecutor):
    """
    Site-wide h2 density from summed h2 and word counts rather than an average
    of page scores. Small sites (under SITE_H2_LENIENT_WORD_COUNT words) pass.
    """

    id = "S8_avg_h2_coverage"

    def evaluate_site(self, ctx, session=None):
        sums, pages = sum_details(ctx, "C5_h2_coverage_ratio", ["h2Count", "wordCount"])
        h2_count = int(sums["h2Count"])
        words = int(sums["wordCount"])
        ratio = h2_count / (words / WORDS_PER_H2) if words > 0 else 0.0

        if words < SITE_H2_LENIENT_WORD_COUNT:
            score = 100
        elif 0.8 <= ratio <= 1.5:
            score = 100
        elif ratio >= 0.5:
            score = 75
        else:
            score = 40
        return self._emit_safe(score, pages, {
            "h2Count": h2_count,
            "wordCount": words,
            "ratio": round(ratio, 2),
        })


AGGREGATES = [
    PercentPassingAggregate("S1_faq_coverage_pct", "A3_faq_presence"),
    PercentPassingAggregate("S2_faq_schema_adoption_pct", "A4_schema_faqpage"),
    PercentPassingAggregate("S3_canonical_correct_pct", "G10_canonical"),
    PercentPassingAggregate("S4_mobile_ready_pct", "T1_mobile_viewport"),
    PercentPassingAggregate("S5_lang_correct_pct", "T2_lang_region"),
    PercentPassingAggregate("S6_entity_graph_adoption_pct", "A12_entity_graph"),
    DuplicateTitleAggregate(),
    H2CoverageAggregate(),
    PercentPassingAggregate("S9_og_tags_coverage_pct", "G2_og_tags_completeness"),
    PercentPassingAggregate("S10_cta_above_fold_pct", "A6_contact_cta_presence"),
    PercentPassingAggregate("S11_internal_link_health_pct", "A9_internal_linking"),
    MeanScoreAggregate("S12_title_quality_avg", "C1_title_quality"),
    PercentPassingAggregate("S13_indexable_pct", "T3_noindex_robots"),
    PercentPassingAggregate("S14_single_h1_pct", "C3_h1_presence"),
    PercentPassingAggregate("S15_semantic_headings_pct", "A2_headings_semantic"),
    PercentPassingAggregate("S16_meta_description_pct", "C2_meta_description"),
]
