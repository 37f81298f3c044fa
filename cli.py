import argparse
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Any

from checks.orchestrator import run_audit
from config import DATABASE_URL, DEFAULT_MAX_WORKERS
from logging_config import configure_logging
from models import CategoryScore, CompositeOutput, PageContext, ScopeBreakdown, SiteDescriptor
from reporting.exporter import composite_breakdown_df, results_to_df, to_csv_bytes
from storage.catalog import CriterionCatalog, load_criteria_file, seed_default_catalog
from storage.db import init_db, make_engine
from storage.results import ResultStore

logger = logging.getLogger(__name__)


def _read_text(base: Path, raw: Any) -> Any:
    if not raw:
        return None
    path = (base / raw).resolve()
    if not path.is_file():
        raise SystemExit(f"HTML file not found: {path}")
    return path.read_text(encoding="utf-8", errors="replace")


def load_manifest(path: Path) -> tuple[str, SiteDescriptor, list[PageContext]]:
    """
    Read an audit manifest:

        {
          "audit_id": "optional",
          "domain": "acme.com",
          "homepage_url": "https://acme.com/",
          "target_locale": "en",
          "pages": [
            {"id": "p1", "url": "https://acme.com/", "html": "home.html",
             "html_static": "home.static.html"}
          ]
        }

    HTML paths are relative to the manifest file.
    """
    if not path.is_file():
        raise SystemExit(f"Manifest not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise SystemExit(f"Manifest is not valid JSON: {exc}")
    if not data.get("domain"):
        raise SystemExit("Manifest must name a domain")

    site = SiteDescriptor(
        domain=data["domain"],
        homepage_url=data.get("homepage_url") or f"https://{data['domain']}/",
        target_locale=data.get("target_locale"),
    )
    audit_id = str(data.get("audit_id") or uuid.uuid4().hex)

    base = path.parent
    pages = []
    for idx, item in enumerate(data.get("pages") or []):
        pages.append(PageContext(
            page_id=str(item.get("id") or f"{audit_id}-{idx}"),
            url=item["url"],
            site=site,
            html_rendered=_read_text(base, item.get("html") or item.get("html_rendered")),
            html_static=_read_text(base, item.get("html_static")),
        ))
    return audit_id, site, pages


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Content diagnostics & composite scoring")
    parser.add_argument("--database-url", default=DATABASE_URL, help="SQLAlchemy database URL")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init-db", help="Create database tables")

    seed = subparsers.add_parser("seed-catalog", help="Seed the criterion catalog")
    seed.add_argument("--file", help="JSON array of criterion records (defaults to built-in catalog)")

    evaluate = subparsers.add_parser("evaluate", help="Run a full audit from a manifest")
    evaluate.add_argument("manifest", help="Path to the audit manifest JSON")
    evaluate.add_argument("--workers", type=int, default=DEFAULT_MAX_WORKERS, help="Parallel page runs")

    composite = subparsers.add_parser("composite", help="Print the stored composite for an audit")
    composite.add_argument("audit_id")

    export = subparsers.add_parser("export", help="Export an audit's results to CSV")
    export.add_argument("audit_id")
    export.add_argument("--out", required=True, help="Output CSV path")
    export.add_argument("--breakdown", action="store_true", help="Export the composite breakdown instead")
    return parser


def _run_cli_command(args: argparse.Namespace) -> bool:
    if not args.command:
        return False

    engine = make_engine(args.database_url)

    if args.command == "init-db":
        init_db(engine)
        logger.info("Database ready at %s", args.database_url)
        return True

    if args.command == "seed-catalog":
        init_db(engine)
        if args.file:
            count = CriterionCatalog(engine).seed(load_criteria_file(args.file))
        else:
            count = seed_default_catalog(engine)
        logger.info("Seeded %d criteria", count)
        return True

    store = ResultStore(engine)
    catalog = CriterionCatalog(engine)

    if args.command == "evaluate":
        init_db(engine)
        audit_id, site, pages = load_manifest(Path(args.manifest))
        composite = run_audit(store, catalog, audit_id, site, pages, max_workers=args.workers)
        print(json.dumps({"audit_id": audit_id, **composite.to_dict()}, indent=2))
        return True

    if args.command == "composite":
        stored = store.load_composite(args.audit_id)
        if stored is None:
            raise SystemExit(f"No composite stored for audit {args.audit_id}")
        print(json.dumps(stored, indent=2))
        return True

    if args.command == "export":
        if args.breakdown:
            stored = store.load_composite(args.audit_id)
            if stored is None:
                raise SystemExit(f"No composite stored for audit {args.audit_id}")
            composite = CompositeOutput(
                total=stored["total"],
                page_score=stored["page_score"],
                site_score=stored["site_score"],
                counts=stored.get("counts", {}),
                breakdown={k: ScopeBreakdown(**v) for k, v in stored.get("breakdown", {}).items()},
                categories=[CategoryScore(**c) for c in stored.get("categories", [])],
                status=stored.get("status", ""),
                label=stored.get("label", ""),
            )
            df = composite_breakdown_df(composite)
        else:
            pages = store.load_page_summaries(args.audit_id, include_html=False)
            df = results_to_df(pages, store.load_for_audit(args.audit_id), catalog.load_all())
        Path(args.out).write_bytes(to_csv_bytes(df))
        logger.info("Wrote %d rows to %s", len(df), args.out)
        return True

    return False


def main(argv=None):
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(json_logs=args.json_logs, level=logging.DEBUG if args.verbose else logging.INFO)
    if not _run_cli_command(args):
        parser.print_help()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
