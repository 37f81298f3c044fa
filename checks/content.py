"""
Body-content page checks: heading structure, answerability, FAQ blocks,
calls to action and topic depth.
"""
from __future__ import annotations

import re

from checks.base import PageExecutor
from config import SHORT_PAGE_WORD_COUNT, WORDS_PER_H2
from content.document import PageDocument, visible_text
from models import CheckResult

_QUESTION_START_RE = re.compile(r"^(what|how|why|when|where|who)\b", re.IGNORECASE)
_QUESTION_HEADING_RE = re.compile(
    r"^(what|how|why|when|where|who|can|should|is|are|do|does)\b", re.IGNORECASE
)
_FAQ_WORD_RE = re.compile(r"faq|frequently asked", re.IGNORECASE)
_RELATED_RE = re.compile(
    r"related questions?|people also ask|common questions?|more questions?|faq",
    re.IGNORECASE,
)

_ANSWER_CTA_RE = re.compile(r"get started|book|contact|pricing|try|schedule", re.IGNORECASE)
_CONCISE_CLAIM_RE = re.compile(
    r"what|how|why|we\s(help|provide|offer)|\b(best|top|simple|fast)\b", re.IGNORECASE
)
ANSWER_SNIPPET_CHARS = 1200
ANSWER_MIN_CHARS = 80

_CTA_TEXT_RE = re.compile(
    r"\b(contact|get\s*started|book|schedule|sign\s*up|try\s*free|demo|pricing)\b",
    re.IGNORECASE,
)
_CTA_HREF_CONTAINS = ("contact", "get-started", "pricing")
_CTA_HREF_PREFIXES = ("mailto:", "tel:")


def _text(tag) -> str:
    return tag.get_text(" ", strip=True)


class H1PresenceCheck(PageExecutor):
    """Exactly one <h1> scores full marks; none scores 0, several score 30."""

    id = "C3_h1_presence"

    def check(self, doc: PageDocument) -> CheckResult:
        h1s = doc.soup.find_all("h1")
        count = len(h1s)
        first = _text(h1s[0]) if h1s else ""
        score = 100 if count == 1 else 0 if count == 0 else 30
        return self._result(score, {"count": count, "text": first}, evidence=[first])


class HeadingHierarchyCheck(PageExecutor):
    """
    Walks h1–h6 in document order. Each downward jump of more than one level
    (h2 → h4) costs 20; an h1 count other than one costs 30.
    """

    id = "A2_headings_semantic"

    def check(self, doc: PageDocument) -> CheckResult:
        headings = doc.headings()
        if not headings:
            return self._result(20, {"reason": "no headings"})

        h1_count = sum(1 for h in headings if h.name == "h1")
        penalties = 0
        jumps = []
        last = 0
        for heading in headings:
            level = int(heading.name[1])
            if last and level - last > 1:
                penalties += 20
                jumps.append(f"h{last}->h{level}")
            last = level
        if h1_count != 1:
            penalties += 30

        return self._result(
            100 - penalties,
            {"h1Count": h1_count, "penalties": penalties, "jumps": jumps},
            evidence=[f"{h.name}:{_text(h)}" for h in headings[:5]],
        )


class H2CoverageCheck(PageExecutor):
    """Roughly one <h2> per 200 words; short pages are exempt."""

    id = "C5_h2_coverage_ratio"

    def check(self, doc: PageDocument) -> CheckResult:
        h2_count = len(doc.soup.find_all("h2"))
        words = doc.word_count

        if words < SHORT_PAGE_WORD_COUNT:
            return self._result(100, {
                "h2Count": h2_count,
                "wordCount": words,
                "ratio": 0,
                "note": "short_page_exempt",
            })

        ratio = h2_count / (words / WORDS_PER_H2)
        if 0.8 <= ratio <= 1.5:
            score = 100
        elif ratio >= 0.5:
            score = 70
        else:
            score = 40
        return self._result(score, {
            "h2Count": h2_count,
            "wordCount": words,
            "ratio": round(ratio, 2),
        })


class AnswerFirstCheck(PageExecutor):
    id = "A1_answer_first"

    def check(self, doc: PageDocument) -> CheckResult:
        root = doc.soup.find("main") or doc.soup.body or doc.soup
        snippet = visible_text(root)[:ANSWER_SNIPPET_CHARS]

        cta_like = any(_ANSWER_CTA_RE.search(_text(el)) for el in doc.soup.find_all(["a", "button"]))
        concise_claim = bool(_CONCISE_CLAIM_RE.search(snippet)) and len(snippet) > ANSWER_MIN_CHARS

        if cta_like and concise_claim:
            score = 100
        elif cta_like or concise_claim:
            score = 60
        else:
            score = 20
        return self._result(
            score,
            {"ctaLike": cta_like, "conciseClaim": concise_claim},
            evidence=[snippet],
        )


class FaqPresenceCheck(PageExecutor):
    id = "A3_faq_presence"

    def check(self, doc: PageDocument) -> CheckResult:
        soup = doc.soup
        faq_word = any(
            _FAQ_WORD_RE.search(_text(el)) for el in soup.find_all(["h2", "h3", "summary", "details"])
        )
        qa_pattern = any(
            _QUESTION_START_RE.search(_text(el)) for el in soup.find_all(["h2", "h3", "dt", "summary"])
        )
        details_count = len(soup.find_all("details"))

        if details_count and faq_word:
            score = 100
        elif qa_pattern:
            score = 60
        else:
            score = 0
        return self._result(score, {
            "faqWord": faq_word,
            "qaPattern": qa_pattern,
            "detailsCount": details_count,
        })


class RelatedQuestionsCheck(PageExecutor):
    id = "A5_related_questions_block"

    def check(self, doc: PageDocument) -> CheckResult:
        headings = [_text(h) for h in doc.soup.find_all(["h2", "h3", "h4", "summary"])]
        has_related = any(_RELATED_RE.search(h) for h in headings)
        questions = [h for h in headings if _QUESTION_HEADING_RE.search(h)]

        if has_related and len(questions) >= 3:
            score = 100
        elif len(questions) >= 5:
            score = 70
        else:
            score = 30
        return self._result(
            score,
            {"hasRelatedSection": has_related, "questionCount": len(questions)},
            evidence=questions[:5],
        )


class ContactCtaCheck(PageExecutor):
    """
    Counts contact-style link targets plus distinct call-to-action labels.
    Repeated nav labels ("Contact" in header and footer) count once.
    """

    id = "A6_contact_cta_presence"

    def check(self, doc: PageDocument) -> CheckResult:
        href_count = 0
        for a_tag in doc.soup.find_all("a", href=True):
            href = a_tag.get("href") or ""
            href_count += sum(1 for needle in _CTA_HREF_CONTAINS if needle in href)
            href_count += sum(1 for prefix in _CTA_HREF_PREFIXES if href.startswith(prefix))

        labels = [_text(el) for el in doc.soup.find_all(["a", "button"])]
        matches = [label for label in labels if _CTA_TEXT_RE.search(label)]
        unique_labels = {label.lower() for label in matches}
        unique_matches = min(len(matches), len(unique_labels))

        total = href_count + unique_matches
        score = 100 if total >= 3 else 70 if total >= 1 else 20
        return self._result(
            score,
            {"ctaCount": total, "uniqueCount": len(unique_labels), "above_fold": total > 0},
            evidence=sorted(unique_labels)[:5],
        )


class TopicDepthCheck(PageExecutor):
    """Headings, word volume and lists as a proxy for topical depth (20–95)."""

    id = "G12_topic_depth_semantic"

    def check(self, doc: PageDocument) -> CheckResult:
        soup = doc.soup
        h2s = len(soup.find_all("h2"))
        h3s = len(soup.find_all("h3"))
        lists = len(soup.find_all(["ul", "ol"]))
        words = doc.word_count

        if words > 1500:
            word_score = 40
        elif words > 800:
            word_score = 25
        elif words > 400:
            word_score = 15
        else:
            word_score = 5

        depth = min(100, h2s * 12 + h3s * 8 + word_score + lists * 3)
        score = max(20, min(depth, 95))
        return self._result(score, {
            "h2s": h2s,
            "h3s": h3s,
            "words": words,
            "lists": lists,
            "wordScore": word_score,
        })
