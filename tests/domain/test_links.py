"""Tests for reference extraction."""

from blogctl.domain.links import (
    KIND_IMAGE,
    KIND_LINK,
    KIND_LIQUID_LINK,
    KIND_POST_URL,
    clean_target,
    extract_references,
)


def _targets(body: str) -> list[tuple[str, str]]:
    return [(ref.kind, ref.target) for ref in extract_references(body)]


class TestCleanTarget:
    def test_external_ignored(self) -> None:
        assert clean_target("https://example.com/a.png") is None
        assert clean_target("mailto:me@example.com") is None
        assert clean_target("//cdn.example.com/x.js") is None

    def test_anchor_ignored(self) -> None:
        assert clean_target("#section") is None

    def test_baseurl_prefix_stripped(self) -> None:
        assert clean_target("{{ site.baseurl }}/images/a.png") == "/images/a.png"
        assert clean_target("{{site.url}}/images/a.png") == "/images/a.png"

    def test_other_liquid_ignored(self) -> None:
        assert clean_target("{{ page.image }}") is None

    def test_query_fragment_and_escapes(self) -> None:
        assert clean_target("/a%20b.png?x=1#y") == "/a b.png"

    def test_angle_brackets(self) -> None:
        assert clean_target("</images/a b.png>") == "/images/a b.png"


class TestExtractReferences:
    def test_images_and_asset_links(self) -> None:
        body = "![diagram](/images/room.png)\n[slides](/files/talk.pdf)\n[about](/about/)\n"
        assert _targets(body) == [
            (KIND_IMAGE, "/images/room.png"),
            (KIND_LINK, "/files/talk.pdf"),
        ]

    def test_html_links_pages_ignored(self) -> None:
        assert _targets("[next](/2019/03/02/next.html)\n") == []

    def test_html_tags(self) -> None:
        body = '<img src="/images/a.png" alt="a">\n<a href="/files/b.zip">b</a>\n'
        assert _targets(body) == [(KIND_IMAGE, "/images/a.png"), (KIND_LINK, "/files/b.zip")]

    def test_reference_definition(self) -> None:
        assert _targets("[logo]: /images/logo.svg \"Logo\"\n") == [
            (KIND_LINK, "/images/logo.svg")
        ]

    def test_liquid_tags(self) -> None:
        body = "See {% post_url 2019-03-01-room %} and {% link _posts/2019-03-01-room.md %}.\n"
        assert _targets(body) == [
            (KIND_POST_URL, "2019-03-01-room"),
            (KIND_LIQUID_LINK, "_posts/2019-03-01-room.md"),
        ]

    def test_code_is_ignored(self) -> None:
        body = (
            "```kotlin\n"
            "val x = \"![no](/images/no.png)\"\n"
            "```\n"
            "{% highlight java %}\n"
            "![no](/images/no2.png)\n"
            "{% endhighlight %}\n"
            "Inline `![no](/images/no3.png)` code.\n"
            "![yes](/images/yes.png)\n"
        )
        assert _targets(body) == [(KIND_IMAGE, "/images/yes.png")]

    def test_tilde_fence(self) -> None:
        body = "~~~\n![no](/no.png)\n~~~\n![yes](/yes.png)\n"
        assert _targets(body) == [(KIND_IMAGE, "/yes.png")]

    def test_raw_block(self) -> None:
        body = "{% raw %}\n![no](/no.png)\n{% endraw %}\n![yes](/yes.png)\n"
        assert _targets(body) == [(KIND_IMAGE, "/yes.png")]

    def test_line_numbers_with_offset(self) -> None:
        refs = extract_references("text\n\n![a](/a.png)\n", line_offset=5)
        assert refs[0].line == 8

    def test_image_with_title(self) -> None:
        assert _targets('![a](/a.png "A title")\n') == [(KIND_IMAGE, "/a.png")]
