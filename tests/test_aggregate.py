from conftest import html_page

from checks.aggregate import (
    AGGREGATES,
    DuplicateTitleAggregate,
    H2CoverageAggregate,
    MeanScoreAggregate,
    PercentPassingAggregate,
    duplicate_pct,
    mean,
    pct_pass,
    round_half_up,
)
from checks.site_graph import EntityGraphConnectivity, graph_key
from models import CheckResult, PageSummary, Scope, SiteContext, Status


def _page(url: str, *results: CheckResult, html=None) -> PageSummary:
    return PageSummary(page_id=url, url=url, checks=list(results), html=html)


def _r(check_id: str, score: float, **details) -> CheckResult:
    return CheckResult(id=check_id, scope=Scope.PAGE, score=score, status=Status.OK, details=details)


def _site(*pages: PageSummary) -> SiteContext:
    return SiteContext(audit_id="a1", domain="acme.com", pages=list(pages), homepage_url="https://acme.com/")


def test_round_half_up_matches_away_from_banker():
    assert round_half_up(2.5) == 3
    assert round_half_up(66.666) == 67
    assert round_half_up(0.49) == 0


def test_primitives():
    assert pct_pass([90, 50, 70], 60) == 67
    assert pct_pass([], 60) == 0
    assert mean([10, 20, 25]) == 18
    assert mean([]) == 0
    assert duplicate_pct(["a", "a", "b"]) == 67
    assert duplicate_pct(["", None, "x"]) == 0
    assert duplicate_pct([]) == 0


def test_every_aggregate_is_not_applicable_for_empty_audit():
    ctx = _site()
    for executor in AGGREGATES:
        result = executor.evaluate_site(ctx)
        assert result.status == Status.NOT_APPLICABLE, executor.id
        assert result.details["pageCount"] == 0


def test_percent_passing_uses_source_cutoff():
    ctx = _site(
        _page("https://acme.com/", _r("G10_canonical", 100)),
        _page("https://acme.com/a", _r("G10_canonical", 50)),
        _page("https://acme.com/b"),
    )
    result = PercentPassingAggregate("S3_canonical_correct_pct", "G10_canonical").evaluate_site(ctx)
    assert result.score == 50
    assert result.details["pageCount"] == 2
    assert result.details["cutoff"] == 85
    assert result.details["sample"] == [{"url": "https://acme.com/a", "score": 50}]


def test_duplicate_urls_count_once():
    ctx = _site(
        _page("https://acme.com/", _r("T1_mobile_viewport", 100)),
        _page("https://acme.com/", _r("T1_mobile_viewport", 0)),
    )
    result = PercentPassingAggregate("S4_mobile_ready_pct", "T1_mobile_viewport").evaluate_site(ctx)
    assert result.score == 100
    assert result.details["pageCount"] == 1


def test_mean_score_aggregate():
    ctx = _site(
        _page("https://acme.com/", _r("C1_title_quality", 100)),
        _page("https://acme.com/a", _r("C1_title_quality", 61)),
    )
    assert MeanScoreAggregate("S12_title_quality_avg", "C1_title_quality").evaluate_site(ctx).score == 81


def test_duplicate_titles_ignore_brand_suffix():
    ctx = _site(
        _page("https://acme.com/", _r("C1_title_quality", 60, title="Pricing | Acme")),
        _page("https://acme.com/a", _r("C1_title_quality", 60, title="Pricing - Acme")),
        _page("https://acme.com/b", _r("C1_title_quality", 60, title="About us")),
    )
    result = DuplicateTitleAggregate().evaluate_site(ctx)
    assert result.details["dupRate"] == 67
    assert result.score == 33
    assert result.details["duplicates"] == ["pricing"]


def test_h2_coverage_aggregate_sums_counts():
    ctx = _site(
        _page("https://acme.com/", _r("C5_h2_coverage_ratio", 100, h2Count=0, wordCount=200)),
        _page("https://acme.com/a", _r("C5_h2_coverage_ratio", 40, h2Count=1, wordCount=1800)),
    )
    result = H2CoverageAggregate().evaluate_site(ctx)
    assert result.details["wordCount"] == 2000
    assert result.details["h2Count"] == 1
    assert result.score == 40


def test_h2_coverage_aggregate_small_site_passes():
    ctx = _site(_page("https://acme.com/", _r("C5_h2_coverage_ratio", 100, h2Count=0, wordCount=400)))
    assert H2CoverageAggregate().evaluate_site(ctx).score == 100


# ── Entity graph connectivity ─────────────────────────────────────────────────

def test_graph_key_normalises_paths():
    assert graph_key("https://Acme.com/About/") == "https://acme.com/about"
    assert graph_key("https://acme.com") == "https://acme.com/"


def test_connectivity_absent_without_html():
    ctx = _site(_page("https://acme.com/", _r("C1_title_quality", 100)))
    assert EntityGraphConnectivity().evaluate_site(ctx) is None


def test_connectivity_scores_orphans_and_schema():
    home = html_page(body='<a href="/about">About</a>')
    about = html_page(body='<a href="/">Home</a>')
    orphan = html_page(body="<p>alone</p>")
    ctx = _site(
        _page("https://acme.com/", html=home),
        _page("https://acme.com/about", html=about),
        _page("https://acme.com/lost", html=orphan),
    )
    result = EntityGraphConnectivity().evaluate_site(ctx)
    assert result.details["totalPages"] == 3
    assert result.details["orphanUrls"] == ["https://acme.com/lost"]
    assert result.details["hubPages"] == 0
    # 0.4 * (2/3) + 0.3 * 0.5 + 0.3 * 0
    assert result.score == 41.7
