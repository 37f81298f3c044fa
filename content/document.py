"""
Turns a PageContext's HTML payloads into a single parsed PageDocument.

The payload choice (rendered vs static) and the size cap are applied once per
page, before any executor runs; every executor then shares the same parse.
"""
from __future__ import annotations

import logging
from functools import cached_property
from typing import Any, Optional

from bs4 import BeautifulSoup, Tag
from bs4.element import Comment, Doctype

from config import MAX_HTML_BYTES, MIN_RENDERED_HTML_BYTES
from content.structured_data import extract_json_ld
from content.text import word_count
from models import PageContext, SiteDescriptor

logger = logging.getLogger(__name__)

_INVISIBLE_PARENTS = {"script", "style", "noscript", "template", "head", "title"}


def prepare_document(ctx: PageContext) -> Optional["PageDocument"]:
    """
    Select, cap and parse the page HTML, storing the result on `ctx.document`.
    Returns None when the page carries no HTML at all.
    """
    html, source = select_payload(ctx.html_rendered, ctx.html_static)
    if html is None:
        ctx.document = None
        return None

    capped, truncated = cap_html(html)
    if truncated:
        logger.info("Truncated %s HTML for %s to %d bytes", source, ctx.url, MAX_HTML_BYTES)

    ctx.document = PageDocument(
        url=ctx.url,
        site=ctx.site,
        html=capped,
        source=source,
        truncated=truncated,
    )
    return ctx.document


def select_payload(
    rendered: Optional[str],
    static: Optional[str],
) -> tuple[Optional[str], Optional[str]]:
    """
    Prefer the rendered payload unless it is implausibly small (a failed
    render) and a static payload exists. Returns (html, source).
    """
    rendered_size = _byte_len(rendered)
    static_size = _byte_len(static)

    if rendered_size and (rendered_size >= MIN_RENDERED_HTML_BYTES or not static_size):
        return rendered, "rendered"
    if static_size:
        return static, "static"
    return None, None


def cap_html(html: str, limit: int = MAX_HTML_BYTES) -> tuple[str, bool]:
    raw = html.encode("utf-8", errors="ignore")
    if len(raw) <= limit:
        return html, False
    return raw[:limit].decode("utf-8", errors="ignore"), True


def parse_html(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, "lxml")
    except Exception:
        return BeautifulSoup(html, "html.parser")


def visible_text(root: Tag) -> str:
    """Text a reader would see under `root`: scripts, styles and comments skipped."""
    parts: list[str] = []
    for node in root.find_all(string=True):
        if isinstance(node, (Comment, Doctype)):
            continue
        if node.parent is not None and node.parent.name in _INVISIBLE_PARENTS:
            continue
        chunk = node.strip()
        if chunk:
            parts.append(chunk)
    return " ".join(" ".join(parts).split())


def _byte_len(value: Optional[str]) -> int:
    if not value or not value.strip():
        return 0
    return len(value.encode("utf-8", errors="ignore"))


class PageDocument:
    """Parsed, read-only view of one page shared by all page executors."""

    def __init__(
        self,
        url: str,
        site: SiteDescriptor,
        html: str,
        source: Optional[str] = None,
        truncated: bool = False,
    ) -> None:
        self.url = url
        self.site = site
        self.html = html
        self.source = source
        self.truncated = truncated
        self.soup = parse_html(html)

    # ── Lazily computed views ─────────────────────────────────────────────────

    @cached_property
    def title(self) -> str:
        tag = self.soup.find("title")
        return tag.get_text(" ", strip=True) if tag else ""

    @cached_property
    def text(self) -> str:
        """Visible text of the body, whitespace-collapsed."""
        return visible_text(self.soup.body or self.soup)

    @cached_property
    def word_count(self) -> int:
        return word_count(self.text)

    @cached_property
    def json_ld(self) -> tuple[list[dict[str, Any]], list[str]]:
        return extract_json_ld(self.soup)

    # ── Tag helpers ───────────────────────────────────────────────────────────

    def meta(self, name: str) -> Optional[str]:
        """Content of <meta name=...>, matched case-insensitively."""
        wanted = name.lower()
        for tag in self.soup.find_all("meta"):
            if (tag.get("name") or "").strip().lower() == wanted:
                return (tag.get("content") or "").strip()
        return None

    def meta_property(self, prop: str) -> Optional[str]:
        """Content of <meta property=...> (falls back to name=...)."""
        wanted = prop.lower()
        for tag in self.soup.find_all("meta"):
            key = (tag.get("property") or tag.get("name") or "").strip().lower()
            if key == wanted:
                return (tag.get("content") or "").strip()
        return None

    def link_rel(self, rel: str) -> Optional[Tag]:
        wanted = rel.lower()
        for tag in self.soup.find_all("link"):
            rels = tag.get("rel") or []
            if isinstance(rels, str):
                rels = rels.split()
            if wanted in (r.lower() for r in rels):
                return tag
        return None

    def headings(self, levels: range = range(1, 7)) -> list[Tag]:
        names = [f"h{lvl}" for lvl in levels]
        return self.soup.find_all(names)
