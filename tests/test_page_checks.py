import json

from conftest import html_page, make_doc

from checks.content import (
    ContactCtaCheck,
    FaqPresenceCheck,
    H1PresenceCheck,
    H2CoverageCheck,
    HeadingHierarchyCheck,
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
from checks.schema import EntityGraphCheck, FaqSchemaCheck, QnaScaffoldCheck
from checks.technical import CanonicalCheck, PageSpeedProxyCheck
from models import SiteDescriptor, Status


def _ld(data) -> str:
    return f'<script type="application/ld+json">{json.dumps(data)}</script>'


def _faq_ld(pairs: int) -> str:
    return _ld({
        "@type": "FAQPage",
        "mainEntity": [
            {"@type": "Question", "name": f"Question {i}?",
             "acceptedAnswer": {"@type": "Answer", "text": f"Answer {i}."}}
            for i in range(pairs)
        ],
    })


# ── Title ─────────────────────────────────────────────────────────────────────

def test_title_with_brand_gets_bonus():
    head = '<title>Acme Widgets for Modern Teams</title><meta property="og:site_name" content="Acme">'
    result = TitleQualityCheck().check(make_doc(html_page(head=head)))
    assert result.details["brand"] == "acme"
    assert result.details["hasBrand"] is True
    assert result.score == 100


def test_title_brand_from_organization_block():
    head = "<title>Acme Widgets — Official Site</title>" + _ld({"@type": "Organization", "name": "Acme"})
    result = TitleQualityCheck().check(make_doc(html_page(head=head)))
    assert result.details["brand"] == "acme"
    assert result.details["brandSource"] == "structured_data"
    assert result.score > result.details["lengthScore"] * 0.6
    assert result.score == 100


def test_title_without_brand_scores_length_only():
    head = '<title>Widgets for Modern Teams</title><meta property="og:site_name" content="Acme">'
    result = TitleQualityCheck().check(make_doc(html_page(head=head)))
    assert result.details["hasBrand"] is False
    assert result.score == 60


def test_missing_title_scores_zero():
    result = TitleQualityCheck().check(make_doc(html_page()))
    assert result.score == 0
    assert result.details["reason"] == "missing"
    assert result.status == Status.FAIL


def test_meta_description_length():
    good = "A" * 120
    assert MetaDescriptionCheck().check(make_doc(html_page(head=f'<meta name="description" content="{good}">'))).score == 100
    assert MetaDescriptionCheck().check(make_doc(html_page())).score == 0


# ── H1 / headings ─────────────────────────────────────────────────────────────

def test_h1_counts():
    check = H1PresenceCheck()
    assert check.check(make_doc(html_page(body="<h1>One</h1>"))).score == 100
    assert check.check(make_doc(html_page(body="<p>none</p>"))).score == 0
    several = check.check(make_doc(html_page(body="<h1>One</h1><h1>Two</h1>")))
    assert several.score == 30
    assert several.details["count"] == 2


def test_heading_hierarchy_penalises_skipped_levels():
    check = HeadingHierarchyCheck()
    assert check.check(make_doc(html_page(body="<h1>A</h1><h2>B</h2><h3>C</h3>"))).score == 100
    skipped = check.check(make_doc(html_page(body="<h1>A</h1><h2>B</h2><h4>C</h4>")))
    assert skipped.score == 80
    assert skipped.details["jumps"] == ["h2->h4"]
    assert check.check(make_doc(html_page(body="<p>text</p>"))).score == 20


def test_h2_coverage_short_page_exempt():
    result = H2CoverageCheck().check(make_doc(html_page(body="<p>" + "word " * 50 + "</p>")))
    assert result.score == 100
    assert result.details["note"] == "short_page_exempt"


def test_h2_coverage_long_page_without_h2():
    result = H2CoverageCheck().check(make_doc(html_page(body="<p>" + "word " * 1000 + "</p>")))
    assert result.score == 40
    assert result.details["wordCount"] == 1000


def test_h2_coverage_ignores_script_text():
    body = "<p>" + "word " * 100 + "</p><script>" + "var x = 1; " * 500 + "</script>"
    result = H2CoverageCheck().check(make_doc(html_page(body=body)))
    assert result.details["wordCount"] == 100


# ── Meta tags ─────────────────────────────────────────────────────────────────

def test_open_graph_completeness():
    head = ('<meta property="og:title" content="T"><meta property="og:description" content="D">'
            '<meta property="og:image" content="/i.png">')
    result = OpenGraphCheck().check(make_doc(html_page(head=head)))
    assert result.score == 60
    assert result.details["present"] == 3


def test_viewport_and_noindex():
    viewport = '<meta name="viewport" content="width=device-width, initial-scale=1">'
    assert MobileViewportCheck().check(make_doc(html_page(head=viewport))).score == 100
    assert MobileViewportCheck().check(make_doc(html_page())).score == 0

    noindex = '<meta name="robots" content="noindex, follow">'
    assert NoindexRobotsCheck().check(make_doc(html_page(head=noindex))).score == 0
    assert NoindexRobotsCheck().check(make_doc(html_page())).score == 100


def test_lang_region():
    check = LangRegionCheck()
    assert check.check(make_doc(html_page(lang="en-GB"))).score == 100
    assert check.check(make_doc(html_page(lang="fr"))).score == 30
    assert check.check(make_doc(html_page(lang=""))).score == 0

    uk = SiteDescriptor(domain="acme.co.uk", target_locale="en-GB")
    assert check.check(make_doc(html_page(lang="en_gb"), url="https://acme.co.uk/", site=uk)).score == 100
    assert check.check(make_doc(html_page(lang="en-US"), url="https://acme.co.uk/", site=uk)).score == 30


# ── Canonical ─────────────────────────────────────────────────────────────────

def test_canonical_same_site():
    head = '<link rel="canonical" href="https://www.acme.com/pricing">'
    result = CanonicalCheck().check(make_doc(html_page(head=head), url="https://acme.com/pricing"))
    assert result.score == 100
    assert result.details["sameHost"] is True


def test_canonical_relative_href_resolves_against_page():
    head = '<link rel="canonical" href="/pricing">'
    result = CanonicalCheck().check(make_doc(html_page(head=head), url="https://acme.com/pricing?x=1"))
    assert result.score == 100
    assert result.details["resolved"] == "https://acme.com/pricing"


def test_canonical_host_mismatch_scores_lower():
    head = '<link rel="canonical" href="https://othersite.com/pricing">'
    mismatch = CanonicalCheck().check(make_doc(html_page(head=head), url="https://acme.com/pricing"))
    assert mismatch.score == 50
    assert mismatch.details["sameHost"] is False
    assert CanonicalCheck().check(make_doc(html_page())).score == 0


# ── Structured data ──────────────────────────────────────────────────────────

def test_faq_schema_thresholds():
    check = FaqSchemaCheck()
    full = check.check(make_doc(html_page(head=_faq_ld(3))))
    assert full.score == 100
    assert full.details["validPairs"] == 3
    assert check.check(make_doc(html_page(head=_faq_ld(2)))).score == 70
    assert check.check(make_doc(html_page(head=_faq_ld(0)))).score == 0
    assert check.check(make_doc(html_page())).score == 0


def test_entity_graph_full_marks():
    org = _ld({
        "@type": "Organization",
        "name": "Acme",
        "logo": "https://acme.com/logo.png",
        "sameAs": ["https://x.com/acme", "https://linkedin.com/company/acme"],
    })
    result = EntityGraphCheck().check(make_doc(html_page(head=f"<title>Acme | Widgets</title>{org}")))
    assert result.score == 100


def test_entity_graph_without_org():
    assert EntityGraphCheck().check(make_doc(html_page(head=_ld({"@type": "WebPage"})))).score == 0


def test_qna_scaffold_takes_best_signal():
    result = QnaScaffoldCheck().check(make_doc(html_page(head=_faq_ld(3))))
    assert result.score == 100
    assert result.details["a4_score"] == 100


def test_faq_presence_block():
    body = "<h2>Frequently asked questions</h2><details><summary>What is it?</summary>It is.</details>"
    assert FaqPresenceCheck().check(make_doc(html_page(body=body))).score == 100
    assert FaqPresenceCheck().check(make_doc(html_page(body="<h2>How it works</h2>"))).score == 60
    assert FaqPresenceCheck().check(make_doc(html_page(body="<p>nothing</p>"))).score == 0


# ── Links and CTA ─────────────────────────────────────────────────────────────

def test_internal_linking_needs_diverse_links():
    varied = "".join(f'<a href="/page-{i}">Topic {i}</a>' for i in range(10))
    result = InternalLinkingCheck().check(make_doc(html_page(body=varied)))
    assert result.score == 100
    assert result.details["count"] == 10

    repeated = '<a href="/same">click here</a>' * 10
    assert InternalLinkingCheck().check(make_doc(html_page(body=repeated))).score == 60


def test_internal_linking_ignores_external_links():
    body = '<a href="https://elsewhere.org/">Out</a><a href="/about">About</a>'
    result = InternalLinkingCheck().check(make_doc(html_page(body=body)))
    assert result.details["count"] == 1
    assert result.score == 20
    assert InternalLinkingCheck().check(make_doc(html_page())).score == 0


def test_contact_cta_duplicate_labels_count_once():
    body = '<a href="/about">Contact</a><a href="/about">Contact</a>'
    result = ContactCtaCheck().check(make_doc(html_page(body=body)))
    assert result.details["ctaCount"] == 1
    assert result.score == 70

    rich = '<a href="/contact">Contact</a><a href="mailto:hi@acme.com">Email</a><a href="/pricing">Pricing</a>'
    assert ContactCtaCheck().check(make_doc(html_page(body=rich))).score == 100


# ── Misc ──────────────────────────────────────────────────────────────────────

def test_topic_depth_bounds():
    assert TopicDepthCheck().check(make_doc(html_page())).score == 20
    body = "<h2>a</h2>" * 10 + "<p>" + "word " * 2000 + "</p>"
    assert TopicDepthCheck().check(make_doc(html_page(body=body))).score == 95


def test_page_speed_floor():
    body = '<img src="a.jpg" width="1200">' * 20
    assert PageSpeedProxyCheck().check(make_doc(html_page(body=body))).score == 30
    assert PageSpeedProxyCheck().check(make_doc(html_page())).score == 100
