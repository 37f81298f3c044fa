"""
Technical page checks: canonical URL, performance hints, an LCP proxy and
fact-anchor stability.
"""
from __future__ import annotations

import re
from typing import Optional

from checks.base import PageExecutor
from content.document import PageDocument
from content.domains import registrable_domain, resolve_http_url
from models import CheckResult

_FRAMEWORK_ID_RE = re.compile(r"^(root|app|main|page|__)", re.IGNORECASE)
_HERO_CLASS_RE = re.compile(r"hero", re.IGNORECASE)
_LEADING_INT_RE = re.compile(r"^\s*(\d+)")

LARGE_IMAGE_WIDTH = 500
LARGE_IMAGE_HEIGHT = 400
INLINE_STYLE_LIMIT = 100_000
HTML_BYTES_PER_POINT = 50_000


class CanonicalCheck(PageExecutor):
    """
    100 when the canonical resolves to an http(s) URL on the page's own
    registrable domain, 50 when it resolves elsewhere, 0 when missing or
    unresolvable. Relative hrefs resolve against the page URL.
    """

    id = "G10_canonical"

    def check(self, doc: PageDocument) -> CheckResult:
        link = doc.link_rel("canonical")
        if link is None:
            return self._result(0, {"reason": "missing"})

        href = (link.get("href") or "").strip()
        resolved = resolve_http_url(href, doc.url) if href else None
        if resolved is None:
            return self._result(0, {"href": href, "ok": False, "reason": "unresolvable"})

        canonical_domain = registrable_domain(resolved)
        page_domain = registrable_domain(doc.url) or registrable_domain(doc.site.domain)
        same_site = bool(page_domain) and canonical_domain == page_domain

        return self._result(
            100 if same_site else 50,
            {
                "href": href,
                "resolved": resolved,
                "ok": True,
                "sameHost": same_site,
                "canonicalDomain": canonical_domain,
                "pageDomain": page_domain,
            },
            evidence=[resolved],
        )


class WebVitalsHintsCheck(PageExecutor):
    id = "T4_core_web_vitals_hints"

    def check(self, doc: PageDocument) -> CheckResult:
        soup = doc.soup
        images = soup.find_all("img")
        lazy_images = sum(1 for img in images if (img.get("loading") or "").lower() == "lazy")

        signals = {
            "hasPreconnect": doc.link_rel("preconnect") is not None,
            "hasPrefetch": doc.link_rel("prefetch") is not None,
            "hasPreload": doc.link_rel("preload") is not None,
            "hasFetchPriority": soup.find(attrs={"fetchpriority": "high"}) is not None,
            "hasAsyncDecoding": any((img.get("decoding") or "").lower() == "async" for img in images),
        }
        hints = sum(signals.values()) + (1 if lazy_images else 0)
        lazy_ratio = lazy_images / len(images) if images else 0.0

        if hints >= 4 and lazy_ratio > 0.3:
            score = 100
        elif hints >= 3:
            score = 75
        elif hints >= 2:
            score = 60
        elif hints >= 1:
            score = 40
        else:
            score = 20

        details = dict(signals)
        details.update({
            "lazyImages": lazy_images,
            "totalImages": len(images),
            "lazyRatio": round(lazy_ratio, 2),
        })
        return self._result(score, details)


class PageSpeedProxyCheck(PageExecutor):
    """
    Static proxy for largest-contentful-paint cost: document size, oversized
    images and very large inline style blocks pull the score down (floor 30).
    """

    id = "T5_page_speed_lcp"

    def check(self, doc: PageDocument) -> CheckResult:
        soup = doc.soup
        large_images = sum(1 for img in soup.find_all("img") if _is_large_image(img))
        hero_sections = len(soup.find_all(["section", "div", "header"], class_=_HERO_CLASS_RE))
        html_size = len(doc.html)
        inline_style_size = sum(len(str(tag)) for tag in soup.find_all("style"))
        style_penalty = 10 if inline_style_size > INLINE_STYLE_LIMIT else 0

        raw = 100 - style_penalty - html_size // HTML_BYTES_PER_POINT - large_images * 10
        score = max(30, min(100, raw))
        return self._result(score, {
            "htmlSize": html_size,
            "largeImages": large_images,
            "heroSections": hero_sections,
            "inlineStyleSize": inline_style_size,
            "stylePenalty": style_penalty,
        })


class FactAnchorCheck(PageExecutor):
    """Stable, linkable fact anchors: semantic element ids and definition lists."""

    id = "G6_fact_url_stability"

    def check(self, doc: PageDocument) -> CheckResult:
        soup = doc.soup
        ids = [el.get("id") for el in soup.find_all(id=True)]
        semantic = [i for i in ids if isinstance(i, str) and i and not _FRAMEWORK_ID_RE.match(i)]
        dl_terms = sum(len(dl.find_all("dt")) for dl in soup.find_all("dl"))

        if len(semantic) >= 10 or dl_terms >= 5:
            score = 100
        elif len(semantic) >= 3 or dl_terms >= 2:
            score = 60
        else:
            score = 20
        return self._result(
            score,
            {"semanticAnchors": len(semantic), "dlDt": dl_terms},
            evidence=semantic[:5],
        )


def _int_attr(value) -> Optional[int]:
    if not isinstance(value, str):
        return None
    match = _LEADING_INT_RE.match(value)
    return int(match.group(1)) if match else None


def _is_large_image(img) -> bool:
    width = _int_attr(img.get("width"))
    height = _int_attr(img.get("height"))
    return (width is not None and width > LARGE_IMAGE_WIDTH) or (
        height is not None and height > LARGE_IMAGE_HEIGHT
    )
