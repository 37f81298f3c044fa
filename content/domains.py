"""
Effective-domain (eTLD+1) helpers built on tldextract.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urljoin, urlparse

import tldextract

# Bundled public-suffix snapshot only: evaluation never reaches out for the list.
_EXTRACT = tldextract.TLDExtract(suffix_list_urls=(), cache_dir=None)


def hostname_of(url_or_host: Optional[str]) -> str:
    """Return the lower-cased hostname of a URL, or the input when it is a bare host."""
    if not url_or_host:
        return ""
    value = url_or_host.strip()
    if "://" in value or value.startswith("//"):
        host = urlparse(value).hostname or ""
    else:
        host = value.split("/", 1)[0].split(":", 1)[0]
    return host.lower().rstrip(".")


def registrable_domain(url_or_host: Optional[str]) -> str:
    """
    Registrable domain (eTLD+1) for a hostname or URL.

    Multi-label public suffixes are honoured, so `shop.example.co.uk` yields
    `example.co.uk`. Hosts without a known suffix (localhost, IPs) are
    returned unchanged.
    """
    host = hostname_of(url_or_host)
    if not host:
        return ""
    ext = _EXTRACT(host)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return host


def domain_label(url_or_host: Optional[str]) -> str:
    """The registrable label without its suffix: `shop.acme.co.uk` → `acme`."""
    host = hostname_of(url_or_host)
    if not host:
        return ""
    ext = _EXTRACT(host)
    return ext.domain or host.split(".")[0]


def same_site(a: Optional[str], b: Optional[str]) -> bool:
    """True when both hosts/URLs share the same registrable domain."""
    da, db = registrable_domain(a), registrable_domain(b)
    return bool(da) and da == db


def resolve_http_url(href: Optional[str], base_url: str) -> Optional[str]:
    """Resolve `href` against `base_url`; None unless the result is absolute http(s)."""
    if not href:
        return None
    href = href.strip()
    if href.startswith(("mailto:", "tel:", "javascript:", "data:")):
        return None
    try:
        resolved = urljoin(base_url, href)
        parsed = urlparse(resolved)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    return resolved
