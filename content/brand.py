"""
Brand-candidate resolution.

Signals are tried in priority order and the first whose normalised form has
at least BRAND_MIN_CHARS characters wins:

  1. structured-data Organization / WebSite / LocalBusiness `name`
  2. Open Graph `og:site_name`
  3. `twitter:site` handle
  4. an <img> alt text mentioning "logo"
  5. the visible text of a link to the homepage
  6. the registrable-domain label of the site host
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional
from urllib.parse import urlparse

from config import BRAND_MIN_CHARS
from content.domains import domain_label, resolve_http_url, same_site
from content.structured_data import entity_name
from content.text import first_match, normalize_brand

if TYPE_CHECKING:
    from content.document import PageDocument

_LOGO_WORD_RE = re.compile(r"\blogo(type)?\b", re.IGNORECASE)


@dataclass
class BrandCandidate:
    value: str          # normalised
    source: str


def resolve_brand(doc: "PageDocument") -> Optional[BrandCandidate]:
    suppliers: list[tuple[str, Callable[[], Optional[str]]]] = [
        ("structured_data", lambda: _norm(entity_name(doc.json_ld[0]))),
        ("og_site_name",    lambda: _norm(doc.meta_property("og:site_name"))),
        ("twitter_site",    lambda: _norm(_twitter_handle(doc))),
        ("logo_alt",        lambda: _norm(_logo_alt(doc))),
        ("home_link",       lambda: _norm(_home_link_text(doc))),
        ("domain",          lambda: _norm(domain_label(doc.site.domain or doc.url))),
    ]
    value, source = first_match(suppliers, lambda v: len(v) >= BRAND_MIN_CHARS)
    if value is None:
        return None
    return BrandCandidate(value=value, source=source or "")


def _norm(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    value = normalize_brand(raw)
    return value or None


def _twitter_handle(doc: "PageDocument") -> Optional[str]:
    handle = doc.meta("twitter:site") or doc.meta_property("twitter:site")
    if not handle:
        return None
    return handle.strip().lstrip("@")


def _logo_alt(doc: "PageDocument") -> Optional[str]:
    for img in doc.soup.find_all("img"):
        alt = (img.get("alt") or "").strip()
        if alt and "logo" in alt.lower():
            stripped = _LOGO_WORD_RE.sub(" ", alt).strip()
            if stripped:
                return stripped
    return None


def _home_link_text(doc: "PageDocument") -> Optional[str]:
    for a_tag in doc.soup.find_all("a", href=True):
        resolved = resolve_http_url(a_tag.get("href"), doc.url)
        if not resolved or not same_site(resolved, doc.url):
            continue
        parsed = urlparse(resolved)
        if parsed.path not in ("", "/") or parsed.query:
            continue
        text = a_tag.get_text(" ", strip=True)
        if text:
            return text
    return None
