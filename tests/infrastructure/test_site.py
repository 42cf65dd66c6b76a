"""Tests for the Site repository: discovery, lookup, permalinks, transactions."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from blogctl.config.settings import BlogSettings
from blogctl.domain.types import DocumentKind
from blogctl.infrastructure.site import PostLookupError, Site
from tests.conftest import write_post, write_raw


class TestDiscovery:
    def test_find_documents_order(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "about.md")
        write_post(site_root, "_drafts/idea.md")
        write_post(site_root, "_posts/2019-03-01-room.md")
        found = [(site.relative(p), kind) for p, kind in site.find_documents()]
        assert found == [
            ("_posts/2019-03-01-room.md", DocumentKind.POST),
            ("_drafts/idea.md", DocumentKind.DRAFT),
            ("about.md", DocumentKind.PAGE),
        ]

    def test_kind_for(self, site: Site, site_root: Path) -> None:
        assert site.kind_for(site_root / "_posts" / "x.md") is DocumentKind.POST
        assert site.kind_for(site_root / "_drafts" / "x.md") is DocumentKind.DRAFT
        assert site.kind_for(site_root / "x.md") is DocumentKind.PAGE

    def test_load_document(self, site: Site, site_root: Path) -> None:
        path = write_post(site_root, "_posts/2019-03-01-room.md")
        doc = site.load_document(path)
        assert doc.rel_path == "_posts/2019-03-01-room.md"
        assert doc.kind is DocumentKind.POST

    def test_load_document_invalid_utf8(self, site: Site, site_root: Path) -> None:
        path = site_root / "_posts" / "2019-03-01-latin.md"
        path.write_bytes(b"---\ntitle: Caf\xe9\n---\n")
        doc = site.load_document(path)
        assert doc.kind is DocumentKind.POST
        assert not doc.ok
        assert "not valid UTF-8" in str(doc.parse_error)

    def test_required_fields(self, site: Site, site_root: Path) -> None:
        page = site.load_document(write_post(site_root, "about.md"))
        post = site.load_document(write_post(site_root, "_posts/2019-03-01-a.md"))
        assert site.required_fields(page) == ["layout", "title"]
        assert site.required_fields(post) == ["layout", "title", "modified"]

    def test_known_layouts_include_layout_files(self, site: Site, site_root: Path) -> None:
        (site_root / "_layouts" / "talk.html").write_text("")
        layouts = site.known_layouts()
        assert {"default", "page", "post", "talk"} <= layouts

    def test_post_names(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/android/2019-03-01-room.md")
        names = site.post_names()
        assert "2019-03-01-room" in names
        assert "android/2019-03-01-room" in names


class TestResolvePost:
    def test_by_path_name_stem_slug(self, site: Site, site_root: Path) -> None:
        path = write_post(site_root, "_posts/2019-03-01-room.md")
        assert site.resolve_post("_posts/2019-03-01-room.md") == path
        assert site.resolve_post("2019-03-01-room.md") == path
        assert site.resolve_post("2019-03-01-room") == path
        assert site.resolve_post("room") == path

    def test_draft_by_slug(self, site: Site, site_root: Path) -> None:
        path = write_post(site_root, "_drafts/idea.md")
        assert site.resolve_post("idea") == path

    def test_pages_not_matched_by_slug(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "about.md")
        with pytest.raises(PostLookupError) as exc_info:
            site.resolve_post("about")
        assert exc_info.value.code == "NOT_FOUND"

    def test_ambiguous(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/2019-03-01-room.md")
        write_post(site_root, "_drafts/room.md")
        with pytest.raises(PostLookupError) as exc_info:
            site.resolve_post("room")
        assert exc_info.value.code == "AMBIGUOUS"
        assert sorted(exc_info.value.matches) == ["_drafts/room.md", "_posts/2019-03-01-room.md"]


class TestPermalinks:
    def test_post(self, site: Site, site_root: Path) -> None:
        path = write_post(
            site_root, "_posts/2019-03-01-room.md", title="Room", categories=["Android"]
        )
        assert site.permalink_for(site.load_document(path)) == "/android/2019/03/01/room.html"

    def test_front_matter_override(self, site: Site, site_root: Path) -> None:
        path = write_post(site_root, "_posts/2019-03-01-room.md", permalink="/room/")
        assert site.permalink_for(site.load_document(path)) == "/room/"

    def test_page(self, site: Site, site_root: Path) -> None:
        path = write_post(site_root, "about.md")
        assert site.permalink_for(site.load_document(path)) == "/about.html"

    def test_post_without_date(self, site: Site, site_root: Path) -> None:
        path = write_post(site_root, "_posts/room.md")
        assert site.permalink_for(site.load_document(path)) is None

    def test_draft_uses_today(self, site: Site, site_root: Path) -> None:
        path = write_post(site_root, "_drafts/idea.md")
        day = date.today()
        expected = f"/{day:%Y}/{day:%m}/{day:%d}/idea.html"
        assert site.permalink_for(site.load_document(path)) == expected

    def test_unparseable(self, site: Site, site_root: Path) -> None:
        path = write_raw(site_root, "_posts/2019-03-01-x.md", "---\ntitle: [\n---\n")
        assert site.permalink_for(site.load_document(path)) is None

    def test_pretty_style_from_config(self, site_root: Path) -> None:
        (site_root / "blogctl.toml").write_text('[posts]\npermalink = "pretty"\n')
        s = Site(BlogSettings.from_cli(site_root=site_root))
        path = write_post(site_root, "_posts/2019-03-01-room.md")
        assert s.permalink_for(s.load_document(path)) == "/2019/03/01/room/"


class TestResolveAsset:
    def test_root_relative(self, site: Site, site_root: Path) -> None:
        (site_root / "images" / "a.png").write_bytes(b"png")
        doc = site.load_document(write_post(site_root, "_posts/2019-03-01-x.md"))
        assert site.resolve_asset("/images/a.png", doc) is not None
        assert site.resolve_asset("/images/missing.png", doc) is None

    def test_document_relative(self, site: Site, site_root: Path) -> None:
        (site_root / "_posts" / "diagram.svg").write_text("<svg/>")
        doc = site.load_document(write_post(site_root, "_posts/2019-03-01-x.md"))
        assert site.resolve_asset("diagram.svg", doc) is not None

    def test_baseurl_stripped(self, site_root: Path) -> None:
        (site_root / "blogctl.toml").write_text('[site]\nbaseurl = "/blog"\n')
        s = Site(BlogSettings.from_cli(site_root=site_root))
        (site_root / "images" / "a.png").write_bytes(b"png")
        doc = s.load_document(write_post(site_root, "_posts/2019-03-01-x.md"))
        assert s.resolve_asset("/blog/images/a.png", doc) is not None

    def test_escape_rejected(self, site: Site, site_root: Path) -> None:
        outside = site_root.parent / "outside.png"
        outside.write_bytes(b"png")
        doc = site.load_document(write_post(site_root, "_posts/2019-03-01-x.md"))
        assert site.resolve_asset("../outside.png", doc) is None

    def test_directory_with_index(self, site: Site, site_root: Path) -> None:
        (site_root / "demo").mkdir()
        (site_root / "demo" / "index.html").write_text("")
        doc = site.load_document(write_post(site_root, "about.md"))
        assert site.resolve_asset("/demo", doc) is not None


class TestTransaction:
    def test_commit(self, site: Site, site_root: Path) -> None:
        target = site_root / "_posts" / "2019-03-01-a.md"
        with site.transaction() as txn:
            txn.write_content(target, {"title": "A"}, "body\n")
        assert target.exists()
        assert txn.files_written == [target]

    def test_rollback_restores_files(self, site: Site, site_root: Path) -> None:
        existing = write_post(site_root, "_posts/2019-03-01-a.md")
        original = existing.read_text()
        created = site_root / "_posts" / "2019-03-02-b.md"
        doomed = write_post(site_root, "_drafts/doomed.md")

        with pytest.raises(RuntimeError), site.transaction() as txn:
            txn.write_file(existing, "changed")
            txn.write_file(created, "new")
            txn.delete_file(doomed)
            raise RuntimeError("boom")

        assert existing.read_text() == original
        assert not created.exists()
        assert doomed.exists()

    def test_write_outside_root_rejected(self, site: Site, site_root: Path) -> None:
        with pytest.raises(ValueError), site.transaction() as txn:
            txn.write_file(site_root.parent / "evil.md", "x")

    def test_rollback_restores_original_bytes(self, site: Site, site_root: Path) -> None:
        existing = site_root / "_posts" / "2019-03-01-a.md"
        existing.write_bytes(b"---\r\ntitle: A\r\n---\r\nbody\r\n")

        with pytest.raises(RuntimeError), site.transaction() as txn:
            txn.write_file(existing, "changed")
            raise RuntimeError("boom")

        assert existing.read_bytes() == b"---\r\ntitle: A\r\n---\r\nbody\r\n"

    def test_unconfined_write_outside_root(self, site: Site, site_root: Path) -> None:
        outside = site_root.parent / f"{site_root.name}-export" / "room.md"
        with pytest.raises(RuntimeError), site.transaction() as txn:
            txn.write_file(outside, "x", confined=False)
            assert outside.read_text() == "x"
            raise RuntimeError("boom")
        assert not outside.exists()


class TestEngine:
    def test_lazy_engine(self, site: Site, site_root: Path) -> None:
        assert not (site_root / ".blogctl" / "index.db").exists()
        _ = site.engine
        assert (site_root / ".blogctl" / "index.db").exists()

    def test_close_is_idempotent(self, site: Site) -> None:
        _ = site.engine
        site.close()
        site.close()
