"""IndexService: keeps the SQLite post index in step with the files.

INVARIANT: Files are truth.  ``sync`` only reindexes what changed on disk
(by mtime); ``rebuild`` clears everything and reindexes every document.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from blogctl.infrastructure.repositories.post_index import PostIndexRepository
from blogctl.services._helpers import now_iso
from blogctl.services.base import BaseService
from blogctl.services.result import ServiceResult
from blogctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy import Connection

    from blogctl.domain.types import DocumentKind

logger = logging.getLogger(__name__)


class IndexService(BaseService):
    """Sync and rebuild the derived index."""

    @traced
    def sync(self) -> ServiceResult:
        """Incrementally reindex new and changed files, drop deleted ones."""
        repo = PostIndexRepository(self._site.engine)
        warnings: list[str] = []
        added = updated = removed = 0

        with self._site.engine.begin() as conn:
            known = repo.indexed_mtimes(conn)
            seen: set[str] = set()

            with trace_span("scan"):
                found = self._site.find_documents()

            with trace_span("reindex") as span:
                for path, kind in found:
                    rel = self._site.relative(path)
                    seen.add(rel)
                    mtime = path.stat().st_mtime
                    previous = known.get(rel)
                    if previous is not None and previous == mtime:
                        continue
                    if self._index_one(repo, conn, path, kind, mtime, warnings):
                        if previous is None:
                            added += 1
                        else:
                            updated += 1
                    elif previous is not None:
                        repo.remove(conn, rel)
                        removed += 1
                if span:
                    span.annotate("files", len(found))

            for rel in sorted(set(known) - seen):
                repo.remove(conn, rel)
                removed += 1

        if added or updated or removed:
            logger.debug("Index sync: +%d ~%d -%d", added, updated, removed)
        return ServiceResult(
            ok=True,
            op="sync",
            data={"added": added, "updated": updated, "removed": removed},
            warnings=warnings,
        )

    @traced
    def rebuild(self) -> ServiceResult:
        """Clear the index and reindex every document."""
        repo = PostIndexRepository(self._site.engine)
        warnings: list[str] = []
        indexed = 0

        with self._site.engine.begin() as conn:
            repo.clear(conn)
            for path, kind in self._site.find_documents():
                mtime = path.stat().st_mtime
                if self._index_one(repo, conn, path, kind, mtime, warnings):
                    indexed += 1

        return ServiceResult(
            ok=True,
            op="rebuild",
            data={"indexed": indexed, "skipped": len(warnings)},
            warnings=warnings,
        )

    def _index_one(
        self,
        repo: PostIndexRepository,
        conn: Connection,
        path: Path,
        kind: DocumentKind,
        mtime: float,
        warnings: list[str],
    ) -> bool:
        try:
            doc = self._site.load_document(path, kind)
        except OSError as exc:
            warnings.append(f"Skipped {self._site.relative(path)}: {exc}")
            return False
        if not doc.ok:
            warnings.append(f"Skipped {doc.rel_path}: {doc.parse_error}")
            return False
        repo.upsert(
            conn,
            doc,
            permalink=self._site.permalink_for(doc),
            mtime=mtime,
            indexed_at=now_iso(),
        )
        return True
