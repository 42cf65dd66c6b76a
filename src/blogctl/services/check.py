"""CheckService: content linter, fixer, and index rebuild.

Single command following the linter pattern.  Seven rule categories:
front matter, layout, filename, dates, permalinks, assets, and links.
Every issue names the file, the category, a severity, and whether
``check --fix`` can repair it.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from blogctl.domain.content import order_frontmatter, set_frontmatter_key
from blogctl.domain.frontmatter import (
    label_warnings,
    normalize_labels,
    to_date,
    validate_frontmatter,
)
from blogctl.domain.links import (
    KIND_IMAGE,
    KIND_LINK,
    KIND_LIQUID_LINK,
    KIND_POST_URL,
    extract_references,
)
from blogctl.domain.types import DocumentKind, IssueCategory, Severity
from blogctl.services._helpers import today
from blogctl.services.base import BaseService
from blogctl.services.index import IndexService
from blogctl.services.result import ServiceResult
from blogctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from blogctl.domain.documents import Document
    from blogctl.infrastructure.site import SiteTransaction

logger = logging.getLogger(__name__)

FIX_LEVELS = ("safe", "aggressive")


def _issue(
    doc: Document,
    category: IssueCategory,
    severity: Severity,
    message: str,
    *,
    line: int | None = None,
    fixable: bool = False,
) -> dict[str, Any]:
    return {
        "path": doc.rel_path,
        "category": str(category),
        "severity": str(severity),
        "message": message,
        "line": line,
        "fixable": fixable,
    }


# ---------------------------------------------------------------------------
# CheckService
# ---------------------------------------------------------------------------


class CheckService(BaseService):
    """Lints site content and repairs what can be repaired safely."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def check(self, *, min_severity: str = "warning") -> ServiceResult:
        """Report issues without modifying anything."""
        threshold = Severity(min_severity).rank
        with trace_span("load"):
            docs = self._site.load_documents()

        issues: list[dict[str, Any]] = []
        with trace_span("documents"):
            known_layouts = self._site.known_layouts()
            post_names = self._site.post_names()
            for doc in docs:
                issues.extend(self._check_frontmatter(doc))
                issues.extend(self._check_layout(doc, known_layouts))
                issues.extend(self._check_filename(doc))
                issues.extend(self._check_dates(doc))
                issues.extend(self._check_references(doc, post_names))
        with trace_span("permalinks"):
            issues.extend(self._check_permalinks(docs))

        issues = [i for i in issues if Severity(i["severity"]).rank >= threshold]
        issues.sort(key=lambda i: (i["path"], i["line"] or 0, i["category"]))
        error_count = sum(1 for i in issues if i["severity"] == Severity.ERROR)
        warning_count = len(issues) - error_count

        return ServiceResult(
            ok=True,
            op="check",
            data={
                "issues": issues,
                "count": len(issues),
                "error_count": error_count,
                "warning_count": warning_count,
                "healthy": error_count == 0,
                "files_checked": len(docs),
            },
        )

    @traced
    def fix(self, *, level: str = "safe") -> ServiceResult:
        """Repair fixable issues in place.  Level: ``safe`` or ``aggressive``.

        Files whose front matter cannot be parsed are never touched.
        """
        if level not in FIX_LEVELS:
            return ServiceResult.failure(
                "fix",
                "INVALID_LEVEL",
                f"Unknown fix level '{level}' (expected one of: {', '.join(FIX_LEVELS)})",
            )

        fixes: list[str] = []
        files_changed: list[str] = []
        with self._site.transaction() as txn:
            for doc in self._site.load_documents():
                if not doc.ok or not doc.has_block:
                    continue
                changes = self._fix_document(doc, txn, aggressive=level == "aggressive")
                if changes:
                    files_changed.append(doc.rel_path)
                    fixes.extend(f"{doc.rel_path}: {change}" for change in changes)

        if files_changed:
            logger.info("Fixed %d file(s)", len(files_changed))
        return ServiceResult(
            ok=True,
            op="fix",
            data={
                "level": level,
                "fixes": fixes,
                "count": len(fixes),
                "files_changed": files_changed,
            },
        )

    @traced
    def rebuild(self) -> ServiceResult:
        """Recreate the index from the files (files are truth)."""
        result = IndexService(self._site).rebuild()
        return result.model_copy(update={"op": "rebuild"})

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _check_frontmatter(self, doc: Document) -> list[dict[str, Any]]:
        cat = IssueCategory.FRONTMATTER
        if doc.parse_error is not None:
            return [
                _issue(doc, cat, Severity.ERROR, str(doc.parse_error), line=doc.parse_error.line)
            ]
        if not doc.has_block:
            return [_issue(doc, cat, Severity.ERROR, "missing front matter block", line=1)]

        result = validate_frontmatter(doc.frontmatter, required=self._site.required_fields(doc))
        issues: list[dict[str, Any]] = []
        for error in result.errors:
            fixable = (error == "missing required field 'layout'" and self._fills_layout(doc)) or (
                error == "missing required field 'modified'" and doc.filename is not None
            )
            issues.append(_issue(doc, cat, Severity.ERROR, error, fixable=fixable))
        issues.extend(
            _issue(doc, cat, Severity.WARNING, warning, fixable=True)
            for warning in result.warnings
        )
        return issues

    def _check_layout(self, doc: Document, known: set[str]) -> list[dict[str, Any]]:
        layout = doc.get("layout")
        if not doc.ok or not isinstance(layout, str) or not layout or layout in known:
            return []
        return [
            _issue(
                doc,
                IssueCategory.LAYOUT,
                Severity.WARNING,
                f"unknown layout '{layout}'",
            )
        ]

    def _check_filename(self, doc: Document) -> list[dict[str, Any]]:
        if doc.kind is not DocumentKind.POST or doc.filename_error is None:
            return []
        return [
            _issue(doc, IssueCategory.FILENAME, Severity.ERROR, str(doc.filename_error))
        ]

    def _check_dates(self, doc: Document) -> list[dict[str, Any]]:
        modified = doc.modified
        if not doc.ok or modified is None or doc.kind is DocumentKind.PAGE:
            return []

        issues: list[dict[str, Any]] = []
        tolerance = dt.timedelta(days=self._settings.check.future_tolerance_days)
        if doc.published and modified > today() + tolerance:
            issues.append(
                _issue(
                    doc,
                    IssueCategory.DATES,
                    Severity.ERROR,
                    f"published post has a future modified date ({modified.isoformat()})",
                )
            )
        if doc.filename is not None and modified < doc.filename.date:
            issues.append(
                _issue(
                    doc,
                    IssueCategory.DATES,
                    Severity.WARNING,
                    f"modified ({modified.isoformat()}) is earlier than the filename date "
                    f"({doc.filename.date.isoformat()})",
                )
            )
        return issues

    def _check_references(self, doc: Document, post_names: set[str]) -> list[dict[str, Any]]:
        if not doc.ok:
            return []
        check_assets = self._settings.check.check_assets
        issues: list[dict[str, Any]] = []
        for ref in extract_references(doc.body, line_offset=doc.body_line):
            if ref.kind in (KIND_IMAGE, KIND_LINK):
                if check_assets and self._site.resolve_asset(ref.target, doc) is None:
                    issues.append(
                        _issue(
                            doc,
                            IssueCategory.ASSETS,
                            Severity.ERROR,
                            f"missing asset '{ref.target}'",
                            line=ref.line,
                        )
                    )
            elif ref.kind == KIND_POST_URL:
                if ref.target.lstrip("/") not in post_names:
                    issues.append(
                        _issue(
                            doc,
                            IssueCategory.LINKS,
                            Severity.ERROR,
                            f"post_url target '{ref.target}' does not exist",
                            line=ref.line,
                        )
                    )
            elif ref.kind == KIND_LIQUID_LINK:
                if "{{" in ref.target:
                    continue
                if not (self._site.root / ref.target.lstrip("/")).is_file():
                    issues.append(
                        _issue(
                            doc,
                            IssueCategory.LINKS,
                            Severity.ERROR,
                            f"link target '{ref.target}' does not exist",
                            line=ref.line,
                        )
                    )
        return issues

    def _check_permalinks(self, docs: list[Document]) -> list[dict[str, Any]]:
        by_url: dict[str, list[Document]] = defaultdict(list)
        for doc in docs:
            url = self._site.permalink_for(doc)
            if url is not None:
                by_url[url].append(doc)

        issues: list[dict[str, Any]] = []
        for url, owners in sorted(by_url.items()):
            if len(owners) < 2:
                continue
            for doc in owners:
                others = ", ".join(o.rel_path for o in owners if o is not doc)
                issues.append(
                    _issue(
                        doc,
                        IssueCategory.PERMALINKS,
                        Severity.ERROR,
                        f"permalink '{url}' is also used by {others}",
                    )
                )
        return issues

    # ------------------------------------------------------------------
    # Repairs
    # ------------------------------------------------------------------

    def _fills_layout(self, doc: Document) -> bool:
        return doc.kind is not DocumentKind.PAGE and bool(self._settings.posts.default_layout)

    def _fix_document(
        self,
        doc: Document,
        txn: SiteTransaction,
        *,
        aggressive: bool,
    ) -> list[str]:
        fm = doc.frontmatter
        changes: list[str] = []

        if label_warnings(fm):
            for key in ("tags", "categories"):
                if key not in fm or fm[key] is None:
                    continue
                cleaned = normalize_labels(fm[key])
                if not isinstance(fm[key], list) or list(fm[key]) != cleaned:
                    fm[key] = cleaned
                    changes.append(f"normalized {key}")

        if fm.get("modified") in (None, "") and doc.filename is not None:
            set_frontmatter_key(fm, "modified", doc.filename.date)
            changes.append("set modified from filename date")

        if fm.get("layout") in (None, "") and self._fills_layout(doc):
            set_frontmatter_key(fm, "layout", self._settings.posts.default_layout)
            changes.append(f"set layout to '{self._settings.posts.default_layout}'")

        reorder = False
        if aggressive:
            for key in ("modified", "date"):
                reduced = to_date(fm.get(key))
                if isinstance(reduced, dt.date) and reduced != fm.get(key):
                    fm[key] = reduced
                    changes.append(f"reduced {key} to a date")
            if list(fm) != list(order_frontmatter(fm)):
                reorder = True
                changes.append("reordered front matter keys")

        if changes:
            txn.write_content(doc.path, fm, doc.body, reorder=reorder)
        return changes
