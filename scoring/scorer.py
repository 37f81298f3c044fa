"""
Composite scorer.

Scoring model:
- Only results whose criterion is enabled and not preview count. A result the
  executor marked not_applicable or error carries no score signal and is left
  out as well.
- Each grouping (page, site, total, and every catalog category) is a weighted
  mean: score = Σ(score × weight) / Σ(weight), 0 when no weight is present.
- A category with no scored result is reported as not_applicable.
- Every exposed score is rounded to one decimal place.
"""
from __future__ import annotations

from typing import Iterable, Optional

from config import DEFAULT_PASS_THRESHOLD, DEFAULT_WARN_THRESHOLD
from models import CategoryScore, CheckResult, CompositeOutput, Criterion, Scope, ScopeBreakdown, Status


def status_from_score(
    score: float,
    pass_threshold: float = DEFAULT_PASS_THRESHOLD,
    warn_threshold: float = DEFAULT_WARN_THRESHOLD,
) -> str:
    if score >= pass_threshold:
        return Status.OK
    elif score >= warn_threshold:
        return Status.WARN
    else:
        return Status.FAIL


def included_results(
    results: Iterable[CheckResult],
    catalog: dict[str, Criterion],
) -> list[CheckResult]:
    """Results that take part in the composite."""
    kept = []
    for result in results:
        criterion = catalog.get(result.id)
        if criterion is None or not criterion.enabled or criterion.preview:
            continue
        if result.status in Status.EXPLICIT:
            continue
        kept.append(result)
    return kept


def compute_composite(
    results: Iterable[CheckResult],
    catalog: dict[str, Criterion],
    full_catalog: Optional[dict[str, Criterion]] = None,
) -> CompositeOutput:
    """
    Combine page and site results for one audit.

    `catalog` is the enabled catalog the run was evaluated with; `full_catalog`
    (every row, enabled or not) only feeds the `disabled` count and falls back
    to `catalog` when omitted.
    """
    results = list(results)
    every_row = full_catalog if full_catalog is not None else catalog
    kept = included_results(results, catalog)

    breakdown = {
        Scope.PAGE: _breakdown([r for r in kept if r.scope == Scope.PAGE], catalog),
        Scope.SITE: _breakdown([r for r in kept if r.scope == Scope.SITE], catalog),
        "total": _breakdown(kept, catalog),
    }

    preview_ids = set()
    for result in results:
        criterion = every_row.get(result.id) or catalog.get(result.id)
        if criterion is not None and criterion.preview:
            preview_ids.add(result.id)

    counts = {
        "included": len(kept),
        "checks_run": sum(1 for r in results if r.status not in Status.EXPLICIT),
        "preview": len(preview_ids),
        "disabled": sum(1 for c in every_row.values() if not c.enabled),
    }

    total = breakdown["total"].score
    return CompositeOutput(
        total=total,
        page_score=breakdown[Scope.PAGE].score,
        site_score=breakdown[Scope.SITE].score,
        counts=counts,
        breakdown=breakdown,
        categories=category_scores(kept, catalog),
        status=status_from_score(total),
        label=score_label(total),
    )


def category_scores(kept: list[CheckResult], catalog: dict[str, Criterion]) -> list[CategoryScore]:
    """
    Weighted score per catalog category over the included results, best first.
    Every category with an enabled, non-preview criterion is listed.
    """
    members: dict[str, list[Criterion]] = {}
    for criterion in catalog.values():
        if criterion.enabled and not criterion.preview:
            members.setdefault(category_name(criterion), []).append(criterion)

    out = []
    for name, criteria in members.items():
        ids = {c.id for c in criteria}
        in_category = [r for r in kept if r.id in ids]
        part = _breakdown(in_category, catalog)
        present = len({r.id for r in in_category})
        out.append(CategoryScore(
            category=name,
            score=part.score,
            status=status_from_score(part.score) if present else Status.NOT_APPLICABLE,
            checks_present=present,
            checks_total=len(criteria),
            check_count=part.check_count,
            total_weight=part.total_weight,
            weighted_sum=part.weighted_sum,
        ))
    out.sort(key=lambda c: c.score, reverse=True)
    return out


def category_name(criterion: Criterion) -> str:
    return criterion.category or "Uncategorized"


def _breakdown(results: list[CheckResult], catalog: dict[str, Criterion]) -> ScopeBreakdown:
    total_weight = 0.0
    weighted_sum = 0.0
    for result in results:
        weight = catalog[result.id].weight
        total_weight += weight
        weighted_sum += float(result.score) * weight

    score = weighted_sum / total_weight if total_weight > 0 else 0.0
    return ScopeBreakdown(
        total_weight=round(total_weight, 4),
        weighted_sum=round(weighted_sum, 4),
        check_count=len(results),
        score=round(score, 1),
    )


def score_label(score: float) -> str:
    if score >= 90:
        return "Excellent"
    elif score >= 75:
        return "Good"
    elif score >= 50:
        return "Needs Work"
    else:
        return "Poor"
