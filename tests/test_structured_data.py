import json

from bs4 import BeautifulSoup

from content.structured_data import (
    entity_name,
    entity_presence,
    extract_json_ld,
    faq_pairs,
    flatten_nodes,
    has_logo,
    node_types,
)


def _soup(*blocks: str) -> BeautifulSoup:
    scripts = "".join(f'<script type="application/ld+json">{b}</script>' for b in blocks)
    return BeautifulSoup(f"<html><head>{scripts}</head><body></body></html>", "lxml")


def test_invalid_block_is_recorded_and_skipped():
    good = json.dumps({"@type": "Organization", "name": "Acme"})
    nodes, errors = extract_json_ld(_soup("{not json", good))
    assert len(nodes) == 1
    assert len(errors) == 1


def test_graph_and_arrays_are_flattened():
    data = {"@context": "https://schema.org", "@graph": [{"@type": "WebSite"}, [{"@type": "Person"}]]}
    assert [node_types(n) for n in flatten_nodes(data)] == [["WebSite"], ["Person"]]


def test_node_types_strips_schema_prefix():
    assert node_types({"@type": ["https://schema.org/Product", "Thing"]}) == ["Product", "Thing"]
    assert node_types({"@type": 3}) == []


def test_entity_name_priority():
    nodes = [{"@type": "WebSite", "name": "Site"}, {"@type": "Corporation", "name": "Acme Corp"}]
    assert entity_name(nodes) == "Acme Corp"


def test_has_logo_variants():
    assert has_logo({"logo": "https://acme.com/logo.png"})
    assert has_logo({"logo": {"@type": "ImageObject", "url": "https://acme.com/l.png"}})
    assert not has_logo({"logo": ""})


def _faq(n_valid: int, n_broken: int = 0) -> dict:
    entities = [
        {"@type": "Question", "name": f"Q{i}?", "acceptedAnswer": {"@type": "Answer", "text": f"A{i}"}}
        for i in range(n_valid)
    ]
    entities += [{"@type": "Question", "name": "Broken?"} for _ in range(n_broken)]
    return {"@type": "FAQPage", "mainEntity": entities}


def test_faq_pairs_counts_valid_questions_only():
    assert faq_pairs([_faq(2, n_broken=2)]) == (True, 2, 4)
    assert faq_pairs([{"@type": "WebPage"}]) == (False, 0, 0)


def test_entity_presence():
    nodes = [{"@type": "LocalBusiness"}, {"@type": "Product"}]
    assert entity_presence(nodes) == {"hasOrg": True, "hasProduct": True, "hasPerson": False}
