"""Tests for the format_result dispatcher and OutputSettings."""

import json

from blogctl.output.formatters import OutputSettings, format_result
from blogctl.services.result import ServiceError, ServiceResult


def _ok(op: str = "test", **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str = "test", msg: str = "fail") -> ServiceResult:
    return ServiceResult(ok=False, op=op, error=ServiceError(code="ERR", message=msg))


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert (s.json_output, s.quiet, s.verbose) == (False, False, False)


class TestFormatResult:
    def test_json_mode(self) -> None:
        output = format_result(_ok("new_post", path="_posts/x.md"), json_output=True)
        data = json.loads(output)
        assert data["ok"] is True
        assert data["op"] == "new_post"
        assert data["data"] == {"path": "_posts/x.md"}
        assert data["error"] is None
        assert data["warnings"] == []

    def test_json_error(self) -> None:
        data = json.loads(format_result(_err(msg="nope"), json_output=True))
        assert data["ok"] is False
        assert data["error"] == {"code": "ERR", "message": "nope", "detail": {}}

    def test_json_beats_quiet(self) -> None:
        settings = OutputSettings(json_output=True, quiet=True)
        assert json.loads(format_result(_ok(), settings=settings))["op"] == "test"

    def test_quiet_mode(self) -> None:
        settings = OutputSettings(quiet=True)
        assert format_result(_ok("new_post", path="_posts/x.md"), settings=settings) == (
            "_posts/x.md"
        )

    def test_rich_mode_default(self) -> None:
        output = format_result(_ok("touch", path="_posts/x.md"))
        assert "OK" in output
        assert "_posts/x.md" in output

    def test_verbose_shows_meta(self) -> None:
        result = ServiceResult(
            ok=True,
            op="touch",
            data={"path": "p.md"},
            meta={"telemetry": {"name": "touch", "duration_ms": 1.5, "children": []}},
        )
        output = format_result(result, settings=OutputSettings(verbose=True))
        assert "meta:" in output
        assert "1.50ms" in output
