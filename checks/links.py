"""
Internal-linking page check.
"""
from __future__ import annotations

from urllib.parse import urldefrag

from checks.base import PageExecutor
from config import INTERNAL_LINKS_FULL, INTERNAL_LINKS_PARTIAL, LINK_DIVERSITY_MIN
from content.document import PageDocument
from content.domains import resolve_http_url, same_site
from models import CheckResult


def internal_links(doc: PageDocument) -> list[tuple[str, str]]:
    """(anchor text, target without fragment) for every same-site <a href>."""
    site = doc.site.domain or doc.url
    out = []
    for a_tag in doc.soup.find_all("a", href=True):
        resolved = resolve_http_url(a_tag.get("href"), doc.url)
        if resolved is None or not same_site(resolved, site):
            continue
        target, _ = urldefrag(resolved)
        out.append((a_tag.get_text(" ", strip=True), target))
    return out


class InternalLinkingCheck(PageExecutor):
    """
    Rewards a healthy count of same-site links whose anchor texts and targets
    are both varied; ten identical "click here" links to one URL do not pass.
    """

    id = "A9_internal_linking"

    def check(self, doc: PageDocument) -> CheckResult:
        links = internal_links(doc)
        count = len(links)
        if count == 0:
            return self._result(0, {"count": 0, "unique": 0, "diversity": 0, "targetDiversity": 0})

        anchors = [text for text, _ in links if text]
        unique_texts = len({text.lower() for text in anchors})
        unique_targets = len({target for _, target in links})
        text_diversity = unique_texts / count
        target_diversity = unique_targets / count

        if (
            count >= INTERNAL_LINKS_FULL
            and text_diversity >= LINK_DIVERSITY_MIN
            and target_diversity >= LINK_DIVERSITY_MIN
        ):
            score = 100
        elif count >= INTERNAL_LINKS_PARTIAL:
            score = 60
        else:
            score = 20

        return self._result(
            score,
            {
                "count": count,
                "unique": unique_texts,
                "uniqueTargets": unique_targets,
                "diversity": round(text_diversity, 2),
                "targetDiversity": round(target_diversity, 2),
            },
            evidence=anchors[:10],
        )
