"""
Runs check executors for one page, for one site, and for a whole audit.

Page runs are independent and may execute concurrently. The site run is a
join point: run_audit waits for every page run and verifies that every page
has a persisted result array before any site executor starts.
"""
from __future__ import annotations

import dataclasses
import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Iterable, Optional

import requests

from checks.base import BaseExecutor
from checks.registry import EXECUTORS
from config import DEFAULT_MAX_WORKERS
from content.document import prepare_document
from content.text import clamp
from models import (
    AuditIncompleteError,
    CheckResult,
    CompositeOutput,
    Criterion,
    PageContext,
    Scope,
    SiteContext,
    SiteDescriptor,
    Status,
)
from probes.fetcher import make_session
from scoring.scorer import compute_composite, status_from_score

logger = logging.getLogger(__name__)


# ── Result finalisation ───────────────────────────────────────────────────────

def finalize_result(result: CheckResult, criterion: Criterion) -> CheckResult:
    """
    Clamp the score, derive the status from the criterion's own thresholds
    (unless the executor set not_applicable or error) and stamp preview/impact.
    """
    score = round(clamp(float(result.score)), 1)
    if result.status in Status.EXPLICIT:
        status = result.status
    else:
        status = status_from_score(score, criterion.pass_threshold, criterion.warn_threshold)
    return dataclasses.replace(
        result,
        scope=criterion.scope,
        score=score,
        status=status,
        preview=criterion.preview,
        impact=criterion.impact,
    )


def error_result(criterion: Criterion, exc: BaseException) -> CheckResult:
    message = str(exc) or type(exc).__name__
    return CheckResult(
        id=criterion.id,
        scope=criterion.scope,
        score=0,
        status=Status.ERROR,
        details={"error": message, "exception": type(exc).__name__},
    )


def drop_orphans(
    results: Iterable[CheckResult],
    criteria: dict[str, Criterion],
    entity: str,
) -> list[CheckResult]:
    """Keep only results whose id matches an enabled criterion."""
    kept = []
    for result in results:
        criterion = criteria.get(result.id)
        if criterion is None or not criterion.enabled:
            logger.warning("Dropping orphaned result %s for %s (no enabled criterion)", result.id, entity)
            continue
        kept.append(result)
    return kept


def _criteria_for_scope(criteria: dict[str, Criterion], scope: str) -> list[Criterion]:
    return [c for c in criteria.values() if c.scope == scope and c.enabled]


# ── Page scope ────────────────────────────────────────────────────────────────

def evaluate_page(
    ctx: PageContext,
    criteria: dict[str, Criterion],
    executors: Optional[dict[str, BaseExecutor]] = None,
) -> list[CheckResult]:
    """
    Run every enabled page-scope criterion that has an executor. One failing
    executor yields an error result for that criterion; the loop carries on.
    """
    table = executors if executors is not None else EXECUTORS
    prepare_document(ctx)

    results: list[CheckResult] = []
    for criterion in _criteria_for_scope(criteria, Scope.PAGE):
        executor = table.get(criterion.id)
        if executor is None:
            continue
        try:
            result = executor.evaluate_page(ctx)
        except Exception as exc:
            logger.warning("Check %s failed on %s: %s", criterion.id, ctx.url, exc, exc_info=True)
            result = error_result(criterion, exc)
        if result is None:
            continue
        target = criteria.get(result.id, criterion)
        results.append(finalize_result(result, target))

    return drop_orphans(results, criteria, ctx.url)


def run_page_diagnostics(
    store,
    catalog,
    ctx: PageContext,
    executors: Optional[dict[str, BaseExecutor]] = None,
) -> list[CheckResult]:
    """Load the catalog, evaluate one page and overwrite its stored results."""
    criteria = catalog.load()
    results = evaluate_page(ctx, criteria, executors)
    store.save_for_page(ctx.page_id, results)
    logger.info("Page %s: %d checks evaluated", ctx.url, len(results))
    return results


# ── Site scope ────────────────────────────────────────────────────────────────

def evaluate_site(
    ctx: SiteContext,
    criteria: dict[str, Criterion],
    session: requests.Session,
    executors: Optional[dict[str, BaseExecutor]] = None,
) -> list[CheckResult]:
    table = executors if executors is not None else EXECUTORS

    results: list[CheckResult] = []
    for criterion in _criteria_for_scope(criteria, Scope.SITE):
        executor = table.get(criterion.id)
        if executor is None:
            continue
        try:
            result = executor.evaluate_site(ctx, session=session)
        except Exception as exc:
            logger.warning("Site check %s failed for %s: %s", criterion.id, ctx.domain, exc, exc_info=True)
            result = error_result(criterion, exc)
        if result is None:
            continue
        target = criteria.get(result.id, criterion)
        results.append(finalize_result(result, target))

    return drop_orphans(results, criteria, ctx.audit_id)


def run_site_diagnostics(
    store,
    catalog,
    ctx: SiteContext,
    session: Optional[requests.Session] = None,
    executors: Optional[dict[str, BaseExecutor]] = None,
) -> list[CheckResult]:
    """
    Load the catalog, evaluate the site and overwrite the audit's stored
    results. Callers must only invoke this once every page run has persisted.
    """
    criteria = catalog.load()
    own_session = session is None
    if own_session:
        session = make_session()
    try:
        results = evaluate_site(ctx, criteria, session, executors)
    finally:
        if own_session:
            session.close()

    store.save_for_audit(ctx.audit_id, results)
    logger.info("Site %s: %d checks evaluated", ctx.domain, len(results))
    return results


# ── Whole audit ───────────────────────────────────────────────────────────────

def run_audit(
    store,
    catalog,
    audit_id: str,
    site: SiteDescriptor,
    pages: list[PageContext],
    max_workers: int = DEFAULT_MAX_WORKERS,
    session: Optional[requests.Session] = None,
    executors: Optional[dict[str, BaseExecutor]] = None,
) -> CompositeOutput:
    """
    Evaluate every page concurrently, wait for all of them, then run the site
    checks over the persisted page results and store the composite score.
    Re-running an audit id replaces its page set and clears earlier results.

    Raises AuditIncompleteError when any page run failed or any page is left
    without a stored result array.
    """
    store.register_audit(audit_id, site)
    store.prune_pages(audit_id, [page.page_id for page in pages])
    for page in pages:
        store.register_page(audit_id, page)

    logger.info("Audit %s: evaluating %d pages with %d workers", audit_id, len(pages), max_workers)
    failures: list[tuple[PageContext, BaseException]] = []
    if pages:
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
            futures = {
                pool.submit(run_page_diagnostics, store, catalog, page, executors): page
                for page in pages
            }
            wait(futures)
            for future, page in futures.items():
                exc = future.exception()
                if exc is not None:
                    failures.append((page, exc))

    if failures:
        page, exc = failures[0]
        raise AuditIncompleteError(
            f"{len(failures)} page run(s) failed for audit {audit_id}; first: {page.url}: {exc}"
        ) from exc

    missing = store.pages_missing_results(audit_id)
    if missing:
        raise AuditIncompleteError(
            f"Audit {audit_id} has {len(missing)} page(s) without results: {', '.join(missing[:5])}"
        )

    ctx = SiteContext(
        audit_id=audit_id,
        domain=site.domain,
        pages=store.load_page_summaries(audit_id),
        homepage_url=site.homepage_url,
    )
    site_results = run_site_diagnostics(store, catalog, ctx, session=session, executors=executors)

    all_results = [r for page in ctx.pages for r in page.checks] + site_results
    composite = compute_composite(all_results, catalog.load(), catalog.load_all())
    store.save_composite(audit_id, composite)
    logger.info("Audit %s: composite %.1f (%s)", audit_id, composite.total, composite.label)
    return composite
