"""
Converts stored check results and composite output to Pandas DataFrames and
CSV bytes for export.
"""
from __future__ import annotations

import io
import json
from typing import Optional

import pandas as pd

from models import CheckResult, CompositeOutput, Criterion, PageSummary, Status

_RESULT_COLUMNS = ["URL", "Scope", "Check", "Label", "Category", "Score", "Status",
                   "Impact", "Preview", "Details"]


# ── Results DataFrame ──────────────────────────────────────────────────────────

def results_to_df(
    pages: list[PageSummary],
    site_results: list[CheckResult],
    catalog: Optional[dict[str, Criterion]] = None,
    site_label: str = "(site)",
) -> pd.DataFrame:
    """One row per result; page rows carry their URL, site rows `site_label`."""
    catalog = catalog or {}
    rows = []
    for page in pages:
        for result in page.checks:
            rows.append(_result_row(page.url, result, catalog))
    for result in site_results:
        rows.append(_result_row(site_label, result, catalog))

    if not rows:
        return pd.DataFrame(columns=_RESULT_COLUMNS)

    df = pd.DataFrame(rows, columns=_RESULT_COLUMNS)

    status_order = {s: i for i, s in enumerate([Status.FAIL, Status.ERROR, Status.WARN,
                                                Status.OK, Status.NOT_APPLICABLE])}
    df["_status_order"] = df["Status"].map(status_order)
    df = df.sort_values(["Scope", "_status_order", "Check", "URL"]).drop(columns=["_status_order"])
    return df.reset_index(drop=True)


def check_summary_df(pages: list[PageSummary]) -> pd.DataFrame:
    """Per page-level check: pages evaluated, mean score and status counts."""
    rows = [
        {"Check": r.id, "Score": float(r.score), "Status": r.status}
        for page in pages for r in page.checks
    ]
    if not rows:
        return pd.DataFrame()

    df = pd.DataFrame(rows)
    summary = df.groupby("Check").agg(Pages=("Score", "size"), MeanScore=("Score", "mean"))
    summary["MeanScore"] = summary["MeanScore"].round(1)
    counts = pd.crosstab(df["Check"], df["Status"])
    summary = summary.join(counts).fillna(0)
    return summary.reset_index().sort_values("MeanScore").reset_index(drop=True)


BREAKDOWN_COLUMNS = ["Scope", "Category", "Score", "Status", "Checks",
                     "Criteria Present", "Criteria Total", "Total Weight", "Weighted Sum"]


def composite_breakdown_df(composite: CompositeOutput) -> pd.DataFrame:
    """Scope rows (page, site, total) followed by one row per category."""
    rows = []
    for scope, part in composite.breakdown.items():
        rows.append({
            "Scope":        scope,
            "Category":     "",
            "Score":        part.score,
            "Status":       composite.status if scope == "total" else "",
            "Checks":       part.check_count,
            "Total Weight": part.total_weight,
            "Weighted Sum": part.weighted_sum,
        })
    for cat in composite.categories:
        rows.append({
            "Scope":            "category",
            "Category":         cat.category,
            "Score":            cat.score,
            "Status":           cat.status,
            "Checks":           cat.check_count,
            "Criteria Present": cat.checks_present,
            "Criteria Total":   cat.checks_total,
            "Total Weight":     cat.total_weight,
            "Weighted Sum":     cat.weighted_sum,
        })
    return pd.DataFrame(rows, columns=BREAKDOWN_COLUMNS)


# ── CSV export ─────────────────────────────────────────────────────────────────

def to_csv_bytes(df: pd.DataFrame) -> bytes:
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    return buf.getvalue().encode("utf-8")


# ── Helpers ────────────────────────────────────────────────────────────────────

def _result_row(url: str, result: CheckResult, catalog: dict[str, Criterion]) -> dict:
    criterion = catalog.get(result.id)
    return {
        "URL":      url,
        "Scope":    result.scope,
        "Check":    result.id,
        "Label":    criterion.label if criterion else _humanize(result.id),
        "Category": criterion.category if criterion else "",
        "Score":    result.score,
        "Status":   result.status,
        "Impact":   result.impact or "",
        "Preview":  result.preview,
        "Details":  json.dumps(result.details, sort_keys=True, ensure_ascii=False),
    }


def _humanize(check_id: str) -> str:
    """`C1_title_quality` → `Title Quality`."""
    _, _, rest = check_id.partition("_")
    return (rest or check_id).replace("_", " ").title()
