"""
JSON-LD extraction and matching helpers.

Every `application/ld+json` block is parsed independently; a block that fails
to parse is recorded and skipped. `@graph` wrappers and top-level arrays are
flattened into a single list of nodes.
"""
from __future__ import annotations

import json
import re
from typing import Any, Iterable, Optional

from bs4 import BeautifulSoup

from config import ORGANIZATION_TYPES

_JSONLD_TYPE_RE = re.compile(r"application/ld\+json", re.IGNORECASE)
_SCHEMA_PREFIX_RE = re.compile(r"^https?://schema\.org/", re.IGNORECASE)

ORG_LIKE_TYPES = {"Organization", "Corporation", "LocalBusiness"}
ENTITY_TYPES = ("Organization", "Product", "Person")


def extract_json_ld(soup: BeautifulSoup) -> tuple[list[dict[str, Any]], list[str]]:
    """Return (nodes, errors) for every JSON-LD block in the document."""
    nodes: list[dict[str, Any]] = []
    errors: list[str] = []

    for script in soup.find_all("script", attrs={"type": _JSONLD_TYPE_RE}):
        raw = (script.string or script.get_text() or "").strip()
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except ValueError as exc:
            errors.append(f"Invalid JSON-LD: {exc}")
            continue
        nodes.extend(flatten_nodes(data))

    return nodes, errors


def flatten_nodes(data: Any) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    if isinstance(data, list):
        for item in data:
            out.extend(flatten_nodes(item))
    elif isinstance(data, dict):
        graph = data.get("@graph")
        if isinstance(graph, list):
            out.extend(flatten_nodes(graph))
            if "@type" in data:
                out.append(data)
        else:
            out.append(data)
    return out


def node_types(node: Any) -> list[str]:
    """Normalised `@type` values of a node (string or array, schema.org prefix stripped)."""
    if not isinstance(node, dict):
        return []
    raw = node.get("@type")
    if isinstance(raw, str):
        values = [raw]
    elif isinstance(raw, list):
        values = [v for v in raw if isinstance(v, str)]
    else:
        return []
    return [_SCHEMA_PREFIX_RE.sub("", v.strip()) for v in values if v.strip()]


def has_type(node: Any, names: Iterable[str]) -> bool:
    wanted = set(names)
    return any(t in wanted for t in node_types(node))


def is_organization(node: Any) -> bool:
    return any(t in ORG_LIKE_TYPES or t.endswith("Organization") for t in node_types(node))


def find_organization(nodes: list[dict[str, Any]]) -> Optional[dict[str, Any]]:
    for node in nodes:
        if is_organization(node):
            return node
    return None


def entity_name(nodes: list[dict[str, Any]], types: Iterable[str] = ORGANIZATION_TYPES) -> Optional[str]:
    """`name` of the first node matching one of `types` (in priority order)."""
    for type_name in types:
        for node in nodes:
            if type_name in node_types(node) or (type_name == "Organization" and is_organization(node)):
                name = _text_value(node.get("name"))
                if name:
                    return name
    return None


def same_as_links(node: dict[str, Any]) -> list[str]:
    raw = node.get("sameAs")
    if isinstance(raw, str):
        return [raw] if raw.strip() else []
    if isinstance(raw, list):
        return [v for v in raw if isinstance(v, str) and v.strip()]
    return []


def has_logo(node: dict[str, Any]) -> bool:
    logo = node.get("logo")
    if isinstance(logo, str):
        return bool(logo.strip())
    if isinstance(logo, dict):
        return bool(_text_value(logo.get("url")) or _text_value(logo.get("contentUrl")) or logo.get("@id"))
    if isinstance(logo, list):
        return len(logo) > 0
    return False


# ── FAQ ───────────────────────────────────────────────────────────────────────

def faq_pairs(nodes: list[dict[str, Any]]) -> tuple[bool, int, int]:
    """
    Inspect FAQPage nodes. Returns (faqpage_found, valid_pairs, declared_items),
    taking the FAQPage with the most valid Question/acceptedAnswer pairs.
    """
    found = False
    best_valid = 0
    best_declared = 0

    for node in nodes:
        if "FAQPage" not in node_types(node):
            continue
        found = True
        entities = node.get("mainEntity")
        if isinstance(entities, dict):
            entities = [entities]
        if not isinstance(entities, list):
            continue
        valid = sum(1 for item in entities if is_valid_question(item))
        if valid > best_valid or (valid == best_valid and len(entities) > best_declared):
            best_valid = valid
            best_declared = len(entities)

    return found, best_valid, best_declared


def is_valid_question(item: Any) -> bool:
    if not isinstance(item, dict) or "Question" not in node_types(item):
        return False
    if not (_text_value(item.get("name")) or _text_value(item.get("text"))):
        return False
    answer = item.get("acceptedAnswer")
    if isinstance(answer, list):
        answer = answer[0] if answer else None
    if not isinstance(answer, dict):
        return False
    return bool(_text_value(answer.get("text")))


# ── Entity presence ───────────────────────────────────────────────────────────

def entity_presence(nodes: list[dict[str, Any]]) -> dict[str, bool]:
    return {
        "hasOrg": any(is_organization(n) for n in nodes),
        "hasProduct": any(has_type(n, ("Product",)) for n in nodes),
        "hasPerson": any(has_type(n, ("Person",)) for n in nodes),
    }


def all_types(nodes: list[dict[str, Any]]) -> list[str]:
    seen: set[str] = set()
    for node in nodes:
        seen.update(node_types(node))
    return sorted(seen)


def _text_value(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""
