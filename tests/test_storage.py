import json

import pytest
from sqlalchemy import select

from conftest import SITE, make_page

from models import CatalogLoadError, CheckResult, PersistenceError, Scope, Status
from storage.catalog import DEFAULT_CRITERIA, CriterionCatalog, load_criteria_file
from storage.db import audit_pages
from storage.results import dump_results, load_results


def _result(cid, score):
    return CheckResult(id=cid, scope=Scope.PAGE, score=score, status=Status.OK, details={"b": 1, "a": [1, 2]})


def test_dump_results_is_deterministic():
    results = [_result("C1_title_quality", 90.5)]
    assert dump_results(results) == dump_results(load_results(dump_results(results)))
    assert load_results(None) == []


def test_page_results_overwrite(store):
    store.register_audit("a1", SITE)
    store.register_page("a1", make_page("p1", "https://acme.com/", "<html></html>"))

    store.save_for_page("p1", [_result("C1_title_quality", 50), _result("C3_h1_presence", 100)])
    store.save_for_page("p1", [_result("C1_title_quality", 70)])

    loaded = store.load_for_page("p1")
    assert [(r.id, r.score) for r in loaded] == [("C1_title_quality", 70)]
    assert loaded[0].details == {"a": [1, 2], "b": 1}


def test_save_for_unknown_row_raises(store):
    with pytest.raises(PersistenceError):
        store.save_for_page("missing", [])
    with pytest.raises(PersistenceError):
        store.save_for_audit("missing", [])


def test_pages_missing_results(store):
    store.register_audit("a1", SITE)
    store.register_page("a1", make_page("p1", "https://acme.com/", "<html></html>"))
    store.register_page("a1", make_page("p2", "https://acme.com/b", "<html></html>"))
    store.save_for_page("p1", [])

    assert store.pages_missing_results("a1") == ["https://acme.com/b"]


def test_register_page_is_idempotent(store, engine):
    store.register_audit("a1", SITE)
    page = make_page("p1", "https://acme.com/", "<html>v1</html>")
    store.register_page("a1", page)
    page.html_rendered = "<html>v2</html>"
    store.register_page("a1", page)

    with engine.connect() as conn:
        rows = conn.execute(select(audit_pages.c.html_rendered)).scalars().all()
    assert rows == ["<html>v2</html>"]


def test_load_page_summaries_without_html(store):
    store.register_audit("a1", SITE)
    store.register_page("a1", make_page("p1", "https://acme.com/", "<html></html>"))
    store.save_for_page("p1", [_result("C1_title_quality", 80)])

    summaries = store.load_page_summaries("a1", include_html=False)
    assert summaries[0].html is None
    assert summaries[0].check("C1_title_quality").score == 80
    assert store.load_audit("a1").domain == "acme.com"
    assert store.load_audit("nope") is None


def test_reregistering_page_clears_stale_results(store):
    store.register_audit("a1", SITE)
    page = make_page("p1", "https://acme.com/", "<html></html>")
    store.register_page("a1", page)
    store.save_for_page("p1", [_result("C1_title_quality", 80)])

    store.register_page("a1", page)
    assert store.load_for_page("p1") == []
    assert store.pages_missing_results("a1") == ["https://acme.com/"]


def test_prune_pages_keeps_only_listed_ids(store):
    store.register_audit("a1", SITE)
    store.register_audit("a2", SITE)
    store.register_page("a1", make_page("p1", "https://acme.com/", "<html></html>"))
    store.register_page("a1", make_page("p2", "https://acme.com/b", "<html></html>"))
    store.register_page("a2", make_page("p3", "https://acme.com/c", "<html></html>"))

    assert store.prune_pages("a1", ["p2"]) == 1
    assert [p.page_id for p in store.load_page_summaries("a1")] == ["p2"]
    assert [p.page_id for p in store.load_page_summaries("a2")] == ["p3"]
    assert store.prune_pages("a1", []) == 1
    assert store.load_page_summaries("a1") == []


def test_reregistering_audit_clears_site_results(store):
    store.register_audit("a1", SITE)
    store.save_for_audit("a1", [_result("S4_mobile_ready_pct", 50)])
    store.register_audit("a1", SITE)
    assert store.load_for_audit("a1") == []
    assert store.load_composite("a1") is None


def test_page_summary_html_skips_failed_render(store):
    static = "<html><body>" + "<p>static copy</p>" * 100 + "</body></html>"
    page = make_page("p1", "https://acme.com/", "<html></html>")
    page.html_static = static
    store.register_audit("a1", SITE)
    store.register_page("a1", page)

    [summary] = store.load_page_summaries("a1")
    assert summary.html == static

# ── Catalog ───────────────────────────────────────────────────────────────────

def test_catalog_load_order_and_enabled(catalog):
    loaded = catalog.load()
    assert list(loaded) == [c.id for c in DEFAULT_CRITERIA]

    catalog.set_enabled("C1_title_quality", False)
    assert "C1_title_quality" not in catalog.load()
    assert catalog.load_all()["C1_title_quality"].enabled is False


def test_catalog_reseed_updates_in_place(catalog):
    changed = [c for c in DEFAULT_CRITERIA if c.id == "C1_title_quality"][0]
    changed = type(changed)(**{**changed.to_dict(), "weight": 7.0})
    assert catalog.seed([changed]) == 1
    assert catalog.load()["C1_title_quality"].weight == 7.0
    assert len(catalog.load_all()) == len(DEFAULT_CRITERIA)


def test_catalog_without_table_raises(tmp_path):
    from storage.db import make_engine

    bare = make_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    with pytest.raises(CatalogLoadError):
        CriterionCatalog(bare).load()


def test_load_criteria_file(tmp_path):
    path = tmp_path / "criteria.json"
    path.write_text(json.dumps([
        {"id": "X1", "label": "X", "scope": "page", "impact_level": "High", "weight": 2},
    ]))
    [criterion] = load_criteria_file(path)
    assert criterion.impact == "High"
    assert criterion.weight == 2.0

    path.write_text(json.dumps({"id": "X1"}))
    with pytest.raises(CatalogLoadError):
        load_criteria_file(path)

    path.write_text(json.dumps([{"label": "no id"}]))
    with pytest.raises(CatalogLoadError):
        load_criteria_file(path)
