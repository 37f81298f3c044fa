"""
Sitemap discovery: probes robots.txt-declared sitemaps and common fallback
paths concurrently and keeps the first well-formed, non-HTML XML sitemap.
"""
from __future__ import annotations

import gzip
import logging
import zlib
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

import requests
from lxml import etree

from config import PROBE_MAX_WORKERS, PROBE_TIMEOUT, SITEMAP_FALLBACK_PATHS
from models import RobotsData, SitemapData
from probes.fetcher import fetch

logger = logging.getLogger(__name__)

_SITEMAP_ROOTS = {"urlset", "sitemapindex"}


def candidate_urls(origin: str, robots_data: Optional[RobotsData] = None) -> list[str]:
    """robots.txt-declared sitemaps first, then the common fallback paths."""
    base = origin.rstrip("/")
    urls: list[str] = []
    if robots_data is not None:
        urls.extend(robots_data.sitemap_urls)
    urls.extend(f"{base}{path}" for path in SITEMAP_FALLBACK_PATHS)

    seen: set[str] = set()
    unique = []
    for url in urls:
        if url not in seen:
            seen.add(url)
            unique.append(url)
    return unique


def discover_sitemap(
    origin: str,
    session: requests.Session,
    robots_data: Optional[RobotsData] = None,
    timeout: float = PROBE_TIMEOUT,
) -> SitemapData:
    """
    Probe every candidate in parallel and return the first sitemap that
    parses. When none does, the returned SitemapData has exists=False.
    """
    candidates = candidate_urls(origin, robots_data)
    missing = SitemapData(url="", exists=False)

    pool = ThreadPoolExecutor(max_workers=min(PROBE_MAX_WORKERS, len(candidates)) or 1)
    try:
        futures = {pool.submit(probe_sitemap, url, session, timeout): url for url in candidates}
        for future in as_completed(futures):
            try:
                data = future.result()
            except Exception as exc:
                logger.debug("Sitemap probe failed: %s (%s)", futures[future], exc)
                missing.parse_errors.append(f"Sitemap {futures[future]!r} could not be read: {exc}")
                continue
            if data.exists:
                return data
            missing.parse_errors.extend(data.parse_errors)
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    return missing


def probe_sitemap(url: str, session: requests.Session, timeout: float = PROBE_TIMEOUT) -> SitemapData:
    """Fetch a single candidate; exists=True only for a well-formed XML sitemap."""
    data = SitemapData(url=url, exists=False)

    resp = fetch(url, session, timeout)
    if resp is None:
        return data
    data.status_code = resp.status_code

    raw = _decompress_if_gzip(resp)
    if _looks_like_html(resp, raw):
        data.parse_errors.append(f"Sitemap {url!r} returned an HTML page")
        return data

    root = _parse_xml(raw, data)
    if root is None:
        return data

    tag = _local_tag(root.tag)
    if tag not in _SITEMAP_ROOTS:
        data.parse_errors.append(f"Unexpected root element <{tag}> in sitemap {url!r}")
        return data

    data.exists = True
    data.is_index = tag == "sitemapindex"
    entry_tag = "sitemap" if data.is_index else "url"

    for elem in root.iter():
        if not isinstance(elem.tag, str):
            continue
        name = _local_tag(elem.tag)
        if name == entry_tag:
            data.entry_count += 1
        elif name == "lastmod" and (elem.text or "").strip():
            data.has_lastmod = True

    return data


def _decompress_if_gzip(resp: requests.Response) -> bytes:
    """Return the response body as bytes, decompressing gzip if needed."""
    content_type = resp.headers.get("content-type", "")
    body = resp.content or b""

    if resp.url.endswith(".gz") or "gzip" in content_type or body[:2] == b"\x1f\x8b":
        try:
            return gzip.decompress(body)
        except (OSError, EOFError, zlib.error):
            # already decoded by the server, or a truncated archive the XML parse will reject
            pass

    return body


def _looks_like_html(resp: requests.Response, raw: bytes) -> bool:
    content_type = (resp.headers.get("content-type") or "").lower()
    if "text/html" in content_type:
        return True
    head = raw[:256].lstrip().lower()
    return head.startswith((b"<!doctype html", b"<html"))


def _parse_xml(raw: bytes, data: SitemapData):
    """Parse XML bytes, recording any parse errors."""
    if not raw.strip():
        data.parse_errors.append(f"Sitemap {data.url!r} is empty")
        return None
    try:
        return etree.fromstring(raw, parser=_xml_parser())
    except etree.XMLSyntaxError as exc:
        data.parse_errors.append(f"XML parse error: {exc}")
        return None


def _xml_parser() -> etree.XMLParser:
    # lxml parsers must not be shared between probe threads
    return etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)


def _local_tag(tag: str) -> str:
    """Strip namespace from tag name."""
    if "}" in tag:
        return tag.split("}")[1]
    return tag
