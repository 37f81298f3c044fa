"""
Base classes for all check executors.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from content.text import clamp
from models import CheckResult, CheckType, PageContext, Scope, SiteContext, Status
from scoring.scorer import status_from_score

if TYPE_CHECKING:
    import requests

    from content.document import PageDocument


class BaseExecutor(ABC):
    """
    A named unit of check logic. An executor implements a page evaluation, a
    site evaluation, or both; the default for either is "absent" (None).
    """

    id: str = ""
    check_type: str = CheckType.HTML_DOM
    scope: str = Scope.PAGE

    def evaluate_page(self, ctx: PageContext) -> Optional[CheckResult]:
        return None

    def evaluate_site(
        self,
        ctx: SiteContext,
        session: Optional["requests.Session"] = None,
    ) -> Optional[CheckResult]:
        return None

    # ── Convenience factory ───────────────────────────────────────────────────

    def _result(
        self,
        score: float,
        details: Optional[dict[str, Any]] = None,
        evidence: Optional[list[str]] = None,
        status: Optional[str] = None,
    ) -> CheckResult:
        score = round(clamp(float(score)), 1)
        return CheckResult(
            id=self.id,
            scope=self.scope,
            score=score,
            status=status or status_from_score(score),
            details=details or {},
            evidence=evidence,
        )

    def not_applicable(self, details: Optional[dict[str, Any]] = None) -> CheckResult:
        return self._result(0, details, status=Status.NOT_APPLICABLE)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"


class PageExecutor(BaseExecutor):
    """Page-scoped executor over the shared, already-parsed PageDocument."""

    scope = Scope.PAGE

    def evaluate_page(self, ctx: PageContext) -> Optional[CheckResult]:
        if ctx.document is None:
            return None
        return self.check(ctx.document)

    @abstractmethod
    def check(self, doc: "PageDocument") -> CheckResult:
        """Score one parsed page."""
        ...


class SiteExecutor(BaseExecutor):
    scope = Scope.SITE
    check_type = CheckType.AGGREGATE
