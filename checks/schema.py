"""
Structured-data page checks (JSON-LD): FAQ schema, organisation entity graph,
entity coverage and the combined Q&A scaffold.
"""
from __future__ import annotations

from checks.base import PageExecutor
from checks.content import FaqPresenceCheck
from config import FAQ_SCHEMA_FULL_PAIRS
from content.document import PageDocument
from content.structured_data import (
    all_types,
    entity_name,
    entity_presence,
    faq_pairs,
    find_organization,
    has_logo,
    same_as_links,
)
from content.text import contains_token, normalize_text
from models import CheckResult


class FaqSchemaCheck(PageExecutor):
    """
    Counts well-formed Question/acceptedAnswer pairs in the best FAQPage
    block: none scores 0, one or two score 70, FAQ_SCHEMA_FULL_PAIRS or more 100.
    """

    id = "A4_schema_faqpage"

    def check(self, doc: PageDocument) -> CheckResult:
        nodes, errors = doc.json_ld
        found, valid, declared = faq_pairs(nodes)

        if valid == 0:
            score = 0
        elif valid >= FAQ_SCHEMA_FULL_PAIRS:
            score = 100
        else:
            score = 70
        return self._result(score, {
            "found": found,
            "validPairs": valid,
            "declared": declared,
            "errors": errors,
        })


class EntityGraphCheck(PageExecutor):
    """
    Requires an Organization-like node. Then:
      logo            +30
      sameAs ≥ 2      +40   (exactly 1 → +20)
      name in title   +30   (otherwise +10)
    """

    id = "A12_entity_graph"

    def check(self, doc: PageDocument) -> CheckResult:
        nodes, _ = doc.json_ld
        org = find_organization(nodes)
        if org is None:
            return self._result(0, {"org": False, "types": all_types(nodes)})

        name = entity_name([org]) or ""
        logo = has_logo(org)
        same_as = len(same_as_links(org))
        name_match = bool(name) and contains_token(normalize_text(doc.title), normalize_text(name))

        score = (30 if logo else 0)
        score += 40 if same_as >= 2 else 20 if same_as else 0
        score += 30 if name_match else 10
        return self._result(score, {
            "org": True,
            "name": name,
            "logo": logo,
            "sameAs": same_as,
            "nameMatch": name_match,
        })


class EntityCoverageCheck(PageExecutor):
    id = "G11_entity_graph_completeness"

    def check(self, doc: PageDocument) -> CheckResult:
        nodes, _ = doc.json_ld
        presence = entity_presence(nodes)
        entity_count = sum(presence.values())
        score = 100 if entity_count >= 2 else 60 if entity_count == 1 else 20

        details = dict(presence)
        details["entityCount"] = entity_count
        return self._result(score, details)


class QnaScaffoldCheck(PageExecutor):
    """Best of the visible FAQ block and the FAQ schema for the same page."""

    id = "A14_qna_scaffold"

    def check(self, doc: PageDocument) -> CheckResult:
        faq = FaqPresenceCheck().check(doc)
        faq_schema = FaqSchemaCheck().check(doc)
        return self._result(max(faq.score, faq_schema.score), {
            "a3_score": faq.score,
            "a4_score": faq_schema.score,
        })
