"""
Core data models for the diagnostics engine.
All modules import from here; nothing else is cross-imported at this level.
"""

from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urlparse


# ── Enumerations ──────────────────────────────────────────────────────────────
class Scope:
    PAGE = "page"
    SITE = "site"

    ALL = [PAGE, SITE]


class Status:
    OK             = "ok"
    WARN           = "warn"
    FAIL           = "fail"
    NOT_APPLICABLE = "not_applicable"
    ERROR          = "error"

    ALL = [OK, WARN, FAIL, NOT_APPLICABLE, ERROR]

    # Statuses an executor sets explicitly; never recomputed from the score.
    EXPLICIT = {NOT_APPLICABLE, ERROR}


class CheckType:
    HTML_DOM  = "html_dom"
    HTTP      = "http"
    AGGREGATE = "aggregate"
    LLM       = "llm"

    ALL = [HTML_DOM, HTTP, AGGREGATE, LLM]


class Impact:
    HIGH   = "High"
    MEDIUM = "Medium"
    LOW    = "Low"

    ALL = [HIGH, MEDIUM, LOW]


# ── Errors ─────────────────────────────────────────────────────────────────────
class CatalogLoadError(RuntimeError):
    """The criterion catalog could not be read; the run must not proceed."""


class PersistenceError(RuntimeError):
    """A result array could not be written or read back."""


class AuditIncompleteError(RuntimeError):
    """Site evaluation was requested before every page had persisted results."""


# ── Catalog ───────────────────────────────────────────────────────────────────
@dataclass
class Criterion:
    id: str
    label: str
    scope: str                      # Scope.PAGE / Scope.SITE
    check_type: str = CheckType.HTML_DOM
    enabled: bool = True
    preview: bool = False
    weight: float = 1.0
    pass_threshold: float = 85.0
    warn_threshold: float = 60.0
    display_order: Optional[int] = None
    category: str = ""
    description: str = ""
    impact: str = Impact.MEDIUM
    version: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "scope": self.scope,
            "check_type": self.check_type,
            "enabled": self.enabled,
            "preview": self.preview,
            "weight": self.weight,
            "pass_threshold": self.pass_threshold,
            "warn_threshold": self.warn_threshold,
            "display_order": self.display_order,
            "category": self.category,
            "description": self.description,
            "impact": self.impact,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Criterion":
        return cls(
            id=data["id"],
            label=data.get("label") or data["id"],
            scope=data["scope"],
            check_type=data.get("check_type") or CheckType.HTML_DOM,
            enabled=bool(data.get("enabled", True)),
            preview=bool(data.get("preview", False)),
            weight=float(data.get("weight", 1.0)),
            pass_threshold=float(data.get("pass_threshold", 85.0)),
            warn_threshold=float(data.get("warn_threshold", 60.0)),
            display_order=data.get("display_order"),
            category=data.get("category") or "",
            description=data.get("description") or "",
            impact=data.get("impact") or data.get("impact_level") or Impact.MEDIUM,
            version=int(data.get("version") or 1),
        )


# ── Results ───────────────────────────────────────────────────────────────────
@dataclass
class CheckResult:
    id: str
    scope: str
    score: float
    status: str
    details: dict[str, Any] = field(default_factory=dict)
    evidence: Optional[list[str]] = None
    preview: bool = False
    impact: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "scope": self.scope,
            "score": self.score,
            "status": self.status,
            "details": self.details,
            "evidence": self.evidence,
            "preview": self.preview,
            "impact": self.impact,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CheckResult":
        return cls(
            id=data["id"],
            scope=data.get("scope", Scope.PAGE),
            score=data.get("score", 0),
            status=data.get("status", Status.FAIL),
            details=data.get("details") or {},
            evidence=data.get("evidence"),
            preview=bool(data.get("preview", False)),
            impact=data.get("impact"),
        )


# ── Evaluation contexts ───────────────────────────────────────────────────────
@dataclass
class SiteDescriptor:
    domain: str
    homepage_url: str = ""
    target_locale: Optional[str] = None


@dataclass
class PageContext:
    page_id: str
    url: str
    site: SiteDescriptor
    html_rendered: Optional[str] = None
    html_static: Optional[str] = None

    # Set once per page by content.document.prepare_document() before any
    # executor runs. Executors treat it as read-only.
    document: Any = field(default=None, repr=False, compare=False)


@dataclass
class PageSummary:
    page_id: str
    url: str
    checks: list[CheckResult] = field(default_factory=list)
    html: Optional[str] = None

    def check(self, check_id: str) -> Optional[CheckResult]:
        for result in self.checks:
            if result.id == check_id:
                return result
        return None


@dataclass
class SiteContext:
    audit_id: str
    domain: str
    pages: list[PageSummary] = field(default_factory=list)
    homepage_url: str = ""

    # Per-run memo for network probes shared by several executors (robots.txt).
    probe_cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def origin(self) -> str:
        if self.homepage_url:
            parsed = urlparse(self.homepage_url)
            if parsed.scheme and parsed.netloc:
                return f"{parsed.scheme}://{parsed.netloc}"
        return f"https://{self.domain}"


# ── Composite output ──────────────────────────────────────────────────────────
@dataclass
class ScopeBreakdown:
    total_weight: float = 0.0
    weighted_sum: float = 0.0
    check_count: int = 0
    score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_weight": self.total_weight,
            "weighted_sum": self.weighted_sum,
            "check_count": self.check_count,
            "score": self.score,
        }


@dataclass
class CategoryScore:
    category: str
    score: float = 0.0
    status: str = Status.NOT_APPLICABLE
    checks_present: int = 0         # criteria in the category with a scored result
    checks_total: int = 0           # enabled, non-preview criteria in the category
    check_count: int = 0
    total_weight: float = 0.0
    weighted_sum: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "score": self.score,
            "status": self.status,
            "checks_present": self.checks_present,
            "checks_total": self.checks_total,
            "check_count": self.check_count,
            "total_weight": self.total_weight,
            "weighted_sum": self.weighted_sum,
        }


@dataclass
class CompositeOutput:
    total: float
    page_score: float
    site_score: float
    counts: dict[str, int] = field(default_factory=dict)
    breakdown: dict[str, ScopeBreakdown] = field(default_factory=dict)
    categories: list[CategoryScore] = field(default_factory=list)
    status: str = Status.FAIL
    label: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "page_score": self.page_score,
            "site_score": self.site_score,
            "counts": dict(self.counts),
            "breakdown": {k: v.to_dict() for k, v in self.breakdown.items()},
            "categories": [c.to_dict() for c in self.categories],
            "status": self.status,
            "label": self.label,
        }


# ── Probe data ────────────────────────────────────────────────────────────────
@dataclass
class RobotsData:
    url: str
    exists: bool
    status_code: int = 0
    raw_text: str = ""
    sitemap_urls: list[str] = field(default_factory=list)
    disallow_rules: list[dict] = field(default_factory=list)  # [{agent, path}]
    allow_rules: list[dict] = field(default_factory=list)
    parse_errors: list[str] = field(default_factory=list)


@dataclass
class SitemapData:
    url: str
    exists: bool
    status_code: int = 0
    is_index: bool = False
    entry_count: int = 0
    has_lastmod: bool = False
    parse_errors: list[str] = field(default_factory=list)
