"""
Head-level page checks: title, meta description, Open Graph tags, viewport,
document language and meta robots.
"""
from __future__ import annotations

import re

from checks.base import PageExecutor
from config import (
    DESCRIPTION_IDEAL_RANGE,
    TITLE_BRAND_BONUS,
    TITLE_IDEAL_RANGE,
    TITLE_LENGTH_WEIGHT,
)
from content.brand import resolve_brand
from content.document import PageDocument
from content.text import contains_token, length_score, normalize_text
from models import CheckResult

OG_TAGS = ["og:title", "og:description", "og:image", "og:url", "og:type"]

_DEVICE_WIDTH_RE = re.compile(r"width\s*=\s*device-width", re.IGNORECASE)


class TitleQualityCheck(PageExecutor):
    id = "C1_title_quality"

    def check(self, doc: PageDocument) -> CheckResult:
        title = doc.title
        if not title:
            return self._result(0, {"reason": "missing", "title": ""})

        length = len(title)
        base = length_score(length, *TITLE_IDEAL_RANGE)

        brand = resolve_brand(doc)
        has_brand = brand is not None and contains_token(normalize_text(title), brand.value)

        score = base * TITLE_LENGTH_WEIGHT + (TITLE_BRAND_BONUS if has_brand else 0)
        return self._result(
            score,
            {
                "title": title,
                "length": length,
                "lengthScore": round(base, 1),
                "brand": brand.value if brand else None,
                "brandSource": brand.source if brand else None,
                "hasBrand": has_brand,
            },
            evidence=[title],
        )


class MetaDescriptionCheck(PageExecutor):
    id = "C2_meta_description"

    def check(self, doc: PageDocument) -> CheckResult:
        content = doc.meta("description") or ""
        if not content:
            return self._result(0, {"reason": "missing"})

        length = len(content)
        score = length_score(length, *DESCRIPTION_IDEAL_RANGE)
        return self._result(score, {"length": length}, evidence=[content])


class OpenGraphCheck(PageExecutor):
    """Share of the five core Open Graph properties that carry content."""

    id = "G2_og_tags_completeness"

    def check(self, doc: PageDocument) -> CheckResult:
        filled = [tag for tag in OG_TAGS if doc.meta_property(tag)]
        score = round(len(filled) / len(OG_TAGS) * 100)
        return self._result(score, {
            "filled": filled,
            "total": len(OG_TAGS),
            "present": len(filled),
        })


class MobileViewportCheck(PageExecutor):
    id = "T1_mobile_viewport"

    def check(self, doc: PageDocument) -> CheckResult:
        content = doc.meta("viewport") or ""
        ok = bool(_DEVICE_WIDTH_RE.search(content))
        return self._result(100 if ok else 0, {"content": content})


class LangRegionCheck(PageExecutor):
    """
    <html lang> against the site's target locale (default "en"). A bare
    language target accepts any region of that language, so "en" matches
    "en-GB"; a region-qualified target must match exactly.
    """

    id = "T2_lang_region"

    def check(self, doc: PageDocument) -> CheckResult:
        html_tag = doc.soup.find("html")
        lang = _normalize_locale(html_tag.get("lang") if html_tag else "")
        target = _normalize_locale(doc.site.target_locale or "en")

        ok = bool(lang) and (
            lang == target or ("-" not in target and lang.split("-")[0] == target)
        )
        score = 100 if ok else 30 if lang else 0
        return self._result(score, {"lang": lang, "target": target})


class NoindexRobotsCheck(PageExecutor):
    id = "T3_noindex_robots"

    def check(self, doc: PageDocument) -> CheckResult:
        content = doc.meta("robots") or ""
        noindex = "noindex" in content.lower()
        return self._result(0 if noindex else 100, {"robots": content, "noindex": noindex})


def _normalize_locale(value) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower().replace("_", "-")
