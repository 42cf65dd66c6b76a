"""Tests for PostIndexRepository."""

from __future__ import annotations

from datetime import date
from pathlib import Path

from blogctl.infrastructure.repositories.post_index import PostIndexRepository
from blogctl.infrastructure.site import Site
from tests.conftest import write_post


def _index(site: Site, *rel_paths: str) -> PostIndexRepository:
    repo = PostIndexRepository(site.engine)
    with site.engine.begin() as conn:
        for rel in rel_paths:
            doc = site.load_document(site.root / rel)
            repo.upsert(
                conn, doc, permalink=site.permalink_for(doc), mtime=1.0, indexed_at="now"
            )
    return repo


def _seed(site_root: Path) -> None:
    write_post(
        site_root,
        "_posts/2019-03-01-room.md",
        "Room persistence and migrations.\n",
        layout="post",
        title="Room migrations",
        author="Jane",
        modified=date(2019, 3, 5),
        tags=["android", "room"],
        categories=["android"],
    )
    write_post(
        site_root,
        "_posts/2020-01-10-flows.md",
        "Kotlin flows replace LiveData.\n",
        layout="post",
        title="Kotlin flows",
        modified=date(2020, 1, 12),
        published=False,
        tags=["kotlin", "android"],
    )
    write_post(site_root, "about.md", "About room.\n", layout="page", title="About room")


class TestWriteSide:
    def test_upsert(self, site: Site, site_root: Path) -> None:
        _seed(site_root)
        repo = _index(site, "_posts/2019-03-01-room.md", "_posts/2020-01-10-flows.md")
        rows = {r["path"]: r for r in repo.list_rows()}
        assert len(rows) == 2
        row = rows["_posts/2019-03-01-room.md"]
        assert row["slug"] == "room"
        assert row["post_date"] == "2019-03-01"
        assert row["published"] == 1
        assert repo.labels_for("_posts/2019-03-01-room.md") == (["android", "room"], ["android"])

    def test_upsert_replaces(self, site: Site, site_root: Path) -> None:
        _seed(site_root)
        repo = _index(site, "_posts/2019-03-01-room.md", "_posts/2019-03-01-room.md")
        assert len(repo.list_rows()) == 1

    def test_remove(self, site: Site, site_root: Path) -> None:
        _seed(site_root)
        repo = _index(site, "_posts/2019-03-01-room.md")
        with site.engine.begin() as conn:
            repo.remove(conn, "_posts/2019-03-01-room.md")
            assert repo.indexed_mtimes(conn) == {}
        assert repo.search_fts_rows('"room"') == []


class TestReadSide:
    def test_list_filters(self, site: Site, site_root: Path) -> None:
        _seed(site_root)
        repo = _index(site, "_posts/2019-03-01-room.md", "_posts/2020-01-10-flows.md")
        assert [r["slug"] for r in repo.list_rows()] == ["flows", "room"]
        assert [r["slug"] for r in repo.list_rows(published=True)] == ["room"]
        assert [r["slug"] for r in repo.list_rows(tag="kotlin")] == ["flows"]
        assert [r["slug"] for r in repo.list_rows(category="android")] == ["room"]
        assert [r["slug"] for r in repo.list_rows(author="Jane")] == ["room"]
        assert [r["slug"] for r in repo.list_rows(since="2020-01-01")] == ["flows"]
        assert len(repo.list_rows(limit=1)) == 1

    def test_list_sort_title_ascending(self, site: Site, site_root: Path) -> None:
        _seed(site_root)
        repo = _index(site, "_posts/2019-03-01-room.md", "_posts/2020-01-10-flows.md")
        rows = repo.list_rows(sort="title", descending=False)
        assert [r["title"] for r in rows] == ["Kotlin flows", "Room migrations"]

    def test_search_excludes_pages(self, site: Site, site_root: Path) -> None:
        _seed(site_root)
        repo = _index(site, "_posts/2019-03-01-room.md", "about.md")
        rows = repo.search_fts_rows('"room"')
        assert [r["path"] for r in rows] == ["_posts/2019-03-01-room.md"]

    def test_search_published_filter(self, site: Site, site_root: Path) -> None:
        _seed(site_root)
        repo = _index(site, "_posts/2019-03-01-room.md", "_posts/2020-01-10-flows.md")
        assert repo.search_fts_rows('"kotlin"', published=True) == []
        assert len(repo.search_fts_rows('"kotlin"')) == 1

    def test_label_counts(self, site: Site, site_root: Path) -> None:
        _seed(site_root)
        repo = _index(site, "_posts/2019-03-01-room.md", "_posts/2020-01-10-flows.md")
        assert repo.label_counts("tag") == [
            {"name": "android", "count": 2},
            {"name": "kotlin", "count": 1},
            {"name": "room", "count": 1},
        ]
        assert repo.label_counts("tag", published_only=True)[0] == {"name": "android", "count": 1}
        assert repo.label_counts("category") == [{"name": "android", "count": 1}]
