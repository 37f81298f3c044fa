"""
Durable storage of serialized result arrays.

Each save is a single transaction that overwrites the JSON column on the
owning row; there is no incremental merge. Any database failure surfaces as
PersistenceError so the run fails instead of leaving a partial audit.
"""
from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from content.document import select_payload
from models import (
    CheckResult,
    CompositeOutput,
    PageContext,
    PageSummary,
    PersistenceError,
    SiteDescriptor,
)
from storage.db import audit_pages, audits

logger = logging.getLogger(__name__)


def dump_results(results: list[CheckResult]) -> str:
    """Deterministic JSON for a result array."""
    return json.dumps([r.to_dict() for r in results], sort_keys=True, ensure_ascii=False,
                      separators=(",", ":"))


def load_results(raw: Optional[str]) -> list[CheckResult]:
    if not raw:
        return []
    return [CheckResult.from_dict(item) for item in json.loads(raw)]


class ResultStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # ── Registration ──────────────────────────────────────────────────────────

    def register_audit(self, audit_id: str, site: SiteDescriptor) -> None:
        values = {
            "domain": site.domain,
            "homepage_url": site.homepage_url or "",
            "target_locale": site.target_locale,
        }
        with self._transaction("register audit", audit_id) as conn:
            exists = conn.execute(select(audits.c.id).where(audits.c.id == audit_id)).first()
            if exists:
                conn.execute(
                    audits.update()
                    .where(audits.c.id == audit_id)
                    .values(site_checks_json=None, composite_json=None, **values)
                )
            else:
                conn.execute(audits.insert().values(id=audit_id, **values))

    def register_page(self, audit_id: str, page: PageContext) -> None:
        values = {
            "audit_id": audit_id,
            "url": page.url,
            "html_static": page.html_static,
            "html_rendered": page.html_rendered,
            "checks_json": None,
        }
        with self._transaction("register page", page.page_id) as conn:
            exists = conn.execute(
                select(audit_pages.c.id).where(audit_pages.c.id == page.page_id)
            ).first()
            if exists:
                conn.execute(audit_pages.update().where(audit_pages.c.id == page.page_id).values(**values))
            else:
                conn.execute(audit_pages.insert().values(id=page.page_id, **values))

    def prune_pages(self, audit_id: str, keep_ids: list[str]) -> int:
        """Delete the audit's pages whose id is not in `keep_ids`; returns the count removed."""
        stmt = audit_pages.delete().where(audit_pages.c.audit_id == audit_id)
        if keep_ids:
            stmt = stmt.where(audit_pages.c.id.not_in(keep_ids))
        with self._transaction("prune pages", audit_id) as conn:
            removed = conn.execute(stmt).rowcount
        if removed:
            logger.info("Audit %s: removed %d page(s) no longer in the run", audit_id, removed)
        return removed

    # ── Writes ────────────────────────────────────────────────────────────────

    def save_for_page(self, page_id: str, results: list[CheckResult]) -> None:
        self._overwrite(audit_pages, page_id, "checks_json", dump_results(results))

    def save_for_audit(self, audit_id: str, results: list[CheckResult]) -> None:
        self._overwrite(audits, audit_id, "site_checks_json", dump_results(results))

    def save_composite(self, audit_id: str, composite: CompositeOutput) -> None:
        payload = json.dumps(composite.to_dict(), sort_keys=True, separators=(",", ":"))
        self._overwrite(audits, audit_id, "composite_json", payload)

    def _overwrite(self, table, row_id: str, column: str, payload: str) -> None:
        with self._transaction(f"save {column}", row_id) as conn:
            updated = conn.execute(
                table.update().where(table.c.id == row_id).values({column: payload})
            ).rowcount
            if updated != 1:
                raise PersistenceError(f"No {table.name} row with id {row_id!r}")
        logger.debug("Saved %s for %s (%d bytes)", column, row_id, len(payload))

    # ── Reads ─────────────────────────────────────────────────────────────────

    def load_for_page(self, page_id: str) -> list[CheckResult]:
        raw = self._scalar(select(audit_pages.c.checks_json).where(audit_pages.c.id == page_id))
        return load_results(raw)

    def load_for_audit(self, audit_id: str) -> list[CheckResult]:
        raw = self._scalar(select(audits.c.site_checks_json).where(audits.c.id == audit_id))
        return load_results(raw)

    def load_composite(self, audit_id: str) -> Optional[dict[str, Any]]:
        raw = self._scalar(select(audits.c.composite_json).where(audits.c.id == audit_id))
        return json.loads(raw) if raw else None

    def load_audit(self, audit_id: str) -> Optional[SiteDescriptor]:
        stmt = select(audits.c.domain, audits.c.homepage_url, audits.c.target_locale).where(
            audits.c.id == audit_id
        )
        row = self._first(stmt)
        if row is None:
            return None
        return SiteDescriptor(domain=row.domain, homepage_url=row.homepage_url or "",
                              target_locale=row.target_locale)

    def load_page_summaries(self, audit_id: str, include_html: bool = True) -> list[PageSummary]:
        """Pages of an audit with their stored results (and raw HTML when asked)."""
        t = audit_pages
        stmt = (
            select(t.c.id, t.c.url, t.c.checks_json, t.c.html_rendered, t.c.html_static)
            .where(t.c.audit_id == audit_id)
            .order_by(t.c.url, t.c.id)
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).all()
            return [
                PageSummary(
                    page_id=row.id,
                    url=row.url,
                    checks=load_results(row.checks_json),
                    html=self._summary_html(row) if include_html else None,
                )
                for row in rows
            ]
        except (SQLAlchemyError, ValueError, KeyError) as exc:
            raise PersistenceError(f"Could not load pages for audit {audit_id}: {exc}") from exc

    def pages_missing_results(self, audit_id: str) -> list[str]:
        """URLs of pages in the audit that have no stored result array yet."""
        t = audit_pages
        stmt = (
            select(t.c.url)
            .where(t.c.audit_id == audit_id, t.c.checks_json.is_(None))
            .order_by(t.c.url)
        )
        try:
            with self.engine.connect() as conn:
                return list(conn.execute(stmt).scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not check page results for audit {audit_id}: {exc}") from exc

    # ── Helpers ───────────────────────────────────────────────────────────────

    @staticmethod
    def _summary_html(row) -> Optional[str]:
        # same rendered/static choice the page run made
        html, _ = select_payload(row.html_rendered, row.html_static)
        return html

    def _scalar(self, stmt):
        try:
            with self.engine.connect() as conn:
                return conn.execute(stmt).scalar()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Read failed: {exc}") from exc

    def _first(self, stmt):
        try:
            with self.engine.connect() as conn:
                return conn.execute(stmt).first()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Read failed: {exc}") from exc

    @contextmanager
    def _transaction(self, action: str, row_id: str) -> Iterator[Connection]:
        """engine.begin() with database errors reported as PersistenceError."""
        try:
            with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not {action} for {row_id}: {exc}") from exc
