"""Tests for CheckService: linting, fix, rebuild."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any

from blogctl.config.settings import BlogSettings
from blogctl.domain.content import parse_frontmatter
from blogctl.infrastructure.site import Site
from blogctl.services.check import CheckService
from tests.conftest import write_post, write_raw

GOOD = {"layout": "post", "title": "Good", "modified": date(2020, 1, 1)}


def _issues(site: Site, **kwargs: Any) -> list[dict[str, Any]]:
    result = CheckService(site).check(**kwargs)
    assert result.ok
    return result.data["issues"]


def _messages(site: Site, category: str) -> list[str]:
    return [i["message"] for i in _issues(site) if i["category"] == category]


# ---------------------------------------------------------------------------
# check(): read-only reporting
# ---------------------------------------------------------------------------


class TestCheckCleanSite:
    def test_empty_site(self, site: Site) -> None:
        result = CheckService(site).check()
        assert result.data["count"] == 0
        assert result.data["healthy"] is True
        assert result.data["files_checked"] == 0

    def test_clean_post_and_page(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/2020-01-01-good.md", **GOOD)
        write_post(site_root, "about.md", layout="page", title="About")
        result = CheckService(site).check()
        assert result.data["issues"] == []
        assert result.data["files_checked"] == 2
        assert result.data["error_count"] == 0
        assert result.data["warning_count"] == 0


class TestFrontmatterRules:
    def test_missing_block(self, site: Site, site_root: Path) -> None:
        write_raw(site_root, "_posts/2020-01-01-bare.md", "Just text.\n")
        issues = _issues(site)
        assert len(issues) == 1
        assert issues[0]["message"] == "missing front matter block"
        assert issues[0]["line"] == 1
        assert issues[0]["severity"] == "error"

    def test_parse_error_has_line(self, site: Site, site_root: Path) -> None:
        write_raw(site_root, "_posts/2020-01-01-bad.md", "---\ntitle: ok\ntags: [a\n---\n")
        issues = _issues(site)
        assert issues[0]["category"] == "frontmatter"
        assert issues[0]["message"].startswith("Invalid YAML")
        assert issues[0]["line"] is not None

    def test_invalid_utf8_reported_per_file(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/2020-01-01-good.md", **GOOD)
        (site_root / "_posts" / "2019-03-01-latin.md").write_bytes(b"---\ntitle: Caf\xe9\n---\n")
        result = CheckService(site).check()
        assert result.ok
        assert result.data["files_checked"] == 2
        issues = [
            i
            for i in result.data["issues"]
            if i["path"] == "_posts/2019-03-01-latin.md" and i["category"] == "frontmatter"
        ]
        assert len(issues) == 1
        assert issues[0]["severity"] == "error"
        assert issues[0]["message"].startswith("File is not valid UTF-8")
        assert issues[0]["line"] == 2

    def test_missing_required_fields(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/2020-01-01-x.md", title="No layout")
        issues = {i["message"]: i for i in _issues(site)}
        assert issues["missing required field 'layout'"]["fixable"] is True
        assert issues["missing required field 'modified'"]["fixable"] is True

    def test_page_requirements(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "about.md", title="About")
        issues = _issues(site)
        assert [i["message"] for i in issues] == ["missing required field 'layout'"]
        assert issues[0]["fixable"] is False

    def test_type_error(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/2020-01-01-x.md", **{**GOOD, "published": "sometimes"})
        assert any(m.startswith("published:") for m in _messages(site, "frontmatter"))

    def test_label_warnings_fixable(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/2020-01-01-x.md", **{**GOOD, "tags": "android kotlin"})
        issues = _issues(site)
        assert issues == [
            {
                "path": "_posts/2020-01-01-x.md",
                "category": "frontmatter",
                "severity": "warning",
                "message": "tags is a string; use a YAML list",
                "line": None,
                "fixable": True,
            }
        ]


class TestLayoutAndFilenameRules:
    def test_unknown_layout(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/2020-01-01-x.md", **{**GOOD, "layout": "slides"})
        issues = _issues(site)
        assert [(i["category"], i["severity"]) for i in issues] == [("layout", "warning")]

    def test_layout_file_counts_as_known(self, site: Site, site_root: Path) -> None:
        (site_root / "_layouts" / "slides.html").write_text("")
        write_post(site_root, "_posts/2020-01-01-x.md", **{**GOOD, "layout": "slides"})
        assert _issues(site) == []

    def test_bad_post_filename(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/room.md", **GOOD)
        assert len(_messages(site, "filename")) == 1

    def test_drafts_need_no_date_in_name(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_drafts/room.md", **GOOD)
        assert _issues(site) == []


class TestDateRules:
    def test_future_modified_on_published_post(self, site: Site, site_root: Path) -> None:
        future = date.today() + timedelta(days=3)
        write_post(site_root, "_posts/2020-01-01-x.md", **{**GOOD, "modified": future})
        issues = _issues(site)
        assert [(i["category"], i["severity"]) for i in issues] == [("dates", "error")]

    def test_future_modified_on_draft_allowed(self, site: Site, site_root: Path) -> None:
        future = date.today() + timedelta(days=3)
        write_post(
            site_root,
            "_posts/2020-01-01-x.md",
            **{**GOOD, "modified": future, "published": False},
        )
        assert _issues(site) == []

    def test_future_tolerance(self, site_root: Path) -> None:
        (site_root / "blogctl.toml").write_text("[check]\nfuture_tolerance_days = 5\n")
        s = Site(BlogSettings.from_cli(site_root=site_root))
        future = date.today() + timedelta(days=3)
        write_post(site_root, "_posts/2020-01-01-x.md", **{**GOOD, "modified": future})
        assert _issues(s) == []

    def test_modified_before_filename_date(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/2020-02-01-x.md", **GOOD)
        issues = _issues(site)
        assert [(i["category"], i["severity"]) for i in issues] == [("dates", "warning")]


class TestReferenceRules:
    def test_missing_and_present_assets(self, site: Site, site_root: Path) -> None:
        (site_root / "images" / "ok.png").write_bytes(b"png")
        body = "![ok](/images/ok.png)\n![gone](/images/gone.png)\n"
        write_post(site_root, "_posts/2020-01-01-x.md", body, **GOOD)
        issues = _issues(site)
        assert len(issues) == 1
        assert issues[0]["category"] == "assets"
        assert issues[0]["message"] == "missing asset '/images/gone.png'"
        assert issues[0]["line"] == 7

    def test_assets_in_code_ignored(self, site: Site, site_root: Path) -> None:
        body = "```xml\n<img src=\"/images/gone.png\"/>\n```\n"
        write_post(site_root, "_posts/2020-01-01-x.md", body, **GOOD)
        assert _issues(site) == []

    def test_asset_check_disabled(self, site_root: Path) -> None:
        (site_root / "blogctl.toml").write_text("[check]\ncheck_assets = false\n")
        s = Site(BlogSettings.from_cli(site_root=site_root))
        write_post(site_root, "_posts/2020-01-01-x.md", "![x](/images/gone.png)\n", **GOOD)
        assert _issues(s) == []

    def test_post_url(self, site: Site, site_root: Path) -> None:
        body = "{% post_url 2020-01-01-good %} and {% post_url 2020-01-01-ghost %}\n"
        write_post(site_root, "_posts/2020-01-01-good.md", body, **GOOD)
        assert _messages(site, "links") == ["post_url target '2020-01-01-ghost' does not exist"]

    def test_liquid_link(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "about.md", layout="page", title="About")
        body = "{% link about.md %} {% link _posts/ghost.md %} {% link {{ page.x }} %}\n"
        write_post(site_root, "_posts/2020-01-01-good.md", body, **GOOD)
        assert _messages(site, "links") == ["link target '_posts/ghost.md' does not exist"]


class TestPermalinkRules:
    def test_duplicate_permalinks(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/2020-01-01-a.md", **{**GOOD, "permalink": "/same/"})
        write_post(site_root, "_posts/2020-01-01-b.md", **{**GOOD, "permalink": "/same/"})
        issues = _issues(site)
        assert [i["path"] for i in issues] == [
            "_posts/2020-01-01-a.md",
            "_posts/2020-01-01-b.md",
        ]
        assert all(i["category"] == "permalinks" for i in issues)
        assert "_posts/2020-01-01-b.md" in issues[0]["message"]

    def test_page_and_post_collide(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/2020-01-01-a.md", **{**GOOD, "permalink": "/about.html"})
        write_post(site_root, "about.md", layout="page", title="About")
        assert len(_messages(site, "permalinks")) == 2


class TestSeverityFilter:
    def test_errors_only(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/2020-01-01-x.md", **{**GOOD, "layout": "slides"})
        write_post(site_root, "_posts/room.md", **GOOD)
        result = CheckService(site).check(min_severity="error")
        assert result.data["warning_count"] == 0
        assert result.data["error_count"] == 1
        assert result.data["healthy"] is False

    def test_warnings_only_site_is_healthy(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/2020-01-01-x.md", **{**GOOD, "layout": "slides"})
        result = CheckService(site).check()
        assert result.data["count"] == 1
        assert result.data["healthy"] is True

    def test_sorted_by_path(self, site: Site, site_root: Path) -> None:
        write_raw(site_root, "_posts/2020-01-02-b.md", "x\n")
        write_raw(site_root, "_posts/2020-01-01-a.md", "x\n")
        paths = [i["path"] for i in _issues(site)]
        assert paths == sorted(paths)


# ---------------------------------------------------------------------------
# fix()
# ---------------------------------------------------------------------------


class TestFix:
    def test_safe_fixes(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/2020-01-01-x.md", title="X", tags="android android kotlin")
        result = CheckService(site).fix()
        assert result.ok
        assert result.data["level"] == "safe"
        assert result.data["files_changed"] == ["_posts/2020-01-01-x.md"]
        assert result.data["count"] == 3

        fm, _ = parse_frontmatter((site_root / "_posts/2020-01-01-x.md").read_text())
        assert fm["layout"] == "post"
        assert fm["modified"] == date(2020, 1, 1)
        assert list(fm["tags"]) == ["android", "kotlin"]
        assert CheckService(site).check().data["issues"] == []

    def test_nothing_to_fix(self, site: Site, site_root: Path) -> None:
        path = write_post(site_root, "_posts/2020-01-01-x.md", **GOOD)
        before = path.read_text()
        result = CheckService(site).fix()
        assert result.data["count"] == 0
        assert result.data["files_changed"] == []
        assert path.read_text() == before

    def test_unparseable_untouched(self, site: Site, site_root: Path) -> None:
        path = write_raw(site_root, "_posts/2020-01-01-x.md", "---\ntitle: [\n---\n")
        CheckService(site).fix()
        assert path.read_text() == "---\ntitle: [\n---\n"

    def test_pages_do_not_get_default_layout(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "about.md", title="About")
        assert CheckService(site).fix().data["count"] == 0

    def test_aggressive(self, site: Site, site_root: Path) -> None:
        write_post(
            site_root,
            "_posts/2020-01-01-x.md",
            tags=["a"],
            title="X",
            layout="post",
            modified=datetime(2020, 1, 2, 9, 30),
        )
        result = CheckService(site).fix(level="aggressive")
        assert result.data["level"] == "aggressive"
        fixes = result.data["fixes"]
        assert "_posts/2020-01-01-x.md: reduced modified to a date" in fixes
        assert "_posts/2020-01-01-x.md: reordered front matter keys" in fixes

        fm, _ = parse_frontmatter((site_root / "_posts/2020-01-01-x.md").read_text())
        assert list(fm) == ["layout", "title", "modified", "tags"]
        assert fm["modified"] == date(2020, 1, 2)

    def test_aggressive_reduces_jekyll_datetime_string(self, site: Site, site_root: Path) -> None:
        write_raw(
            site_root,
            "_posts/2019-03-01-x.md",
            "---\nlayout: post\ntitle: X\nmodified: 2019-03-01 10:00:00 +0100\n---\nBody.\n",
        )
        result = CheckService(site).fix(level="aggressive")
        assert result.data["fixes"] == ["_posts/2019-03-01-x.md: reduced modified to a date"]
        assert result.data["files_changed"] == ["_posts/2019-03-01-x.md"]

        fm, _ = parse_frontmatter((site_root / "_posts/2019-03-01-x.md").read_text())
        assert fm["modified"] == date(2019, 3, 1)

    def test_invalid_level(self, site: Site) -> None:
        result = CheckService(site).fix(level="nuclear")
        assert not result.ok
        assert result.error.code == "INVALID_LEVEL"


class TestRebuild:
    def test_rebuild(self, site: Site, site_root: Path) -> None:
        write_post(site_root, "_posts/2020-01-01-x.md", **GOOD)
        write_raw(site_root, "_posts/2020-01-02-bad.md", "---\ntitle: [\n---\n")
        result = CheckService(site).rebuild()
        assert result.ok
        assert result.op == "rebuild"
        assert result.data == {"indexed": 1, "skipped": 1}
        assert len(result.warnings) == 1
