import json

import pytest

from conftest import SITE

from cli import load_manifest, main
from models import CheckResult, Scope, Status
from scoring.scorer import compute_composite
from storage.catalog import DEFAULT_CRITERIA, CriterionCatalog
from storage.db import make_engine
from storage.results import ResultStore


def test_manifest_reads_html_relative_to_file(tmp_path):
    (tmp_path / "home.html").write_text("<html><title>Home</title></html>", encoding="utf-8")
    manifest = tmp_path / "audit.json"
    manifest.write_text(json.dumps({
        "audit_id": "a1",
        "domain": "acme.com",
        "pages": [{"id": "p1", "url": "https://acme.com/", "html": "home.html"},
                  {"url": "https://acme.com/b"}],
    }))

    audit_id, site, pages = load_manifest(manifest)
    assert audit_id == "a1"
    assert site.homepage_url == "https://acme.com/"
    assert "Home" in pages[0].html_rendered
    assert pages[1].page_id == "a1-1"
    assert pages[1].html_rendered is None


def test_manifest_requires_domain(tmp_path):
    manifest = tmp_path / "audit.json"
    manifest.write_text(json.dumps({"pages": []}))
    with pytest.raises(SystemExit):
        load_manifest(manifest)


def test_seed_catalog_command(tmp_path):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    assert main(["--database-url", url, "seed-catalog"]) == 0
    assert len(CriterionCatalog(make_engine(url)).load()) == len(DEFAULT_CRITERIA)


def test_missing_composite_exits(tmp_path):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    main(["--database-url", url, "init-db"])
    with pytest.raises(SystemExit):
        main(["--database-url", url, "composite", "nope"])


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_export_breakdown_includes_categories(tmp_path):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    main(["--database-url", url, "seed-catalog"])
    engine = make_engine(url)
    catalog = CriterionCatalog(engine).load()
    store = ResultStore(engine)
    store.register_audit("a1", SITE)
    result = CheckResult(id="C1_title_quality", scope=Scope.PAGE, score=90, status=Status.OK)
    store.save_composite("a1", compute_composite([result], catalog))

    out = tmp_path / "breakdown.csv"
    assert main(["--database-url", url, "export", "a1", "--out", str(out), "--breakdown"]) == 0
    rows = out.read_text(encoding="utf-8").splitlines()
    category = catalog["C1_title_quality"].category
    assert any(row.startswith(f"category,{category},90.0,ok") for row in rows)
