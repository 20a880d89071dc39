"""Tests for relcore.output.console module."""

from __future__ import annotations

import pytest

from relcore.output.console import (
    ConsoleProtocol,
    MockConsole,
    PreviewConsole,
    RichConsole,
    Style,
)


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.STEP) == "step"
        assert str(Style.DEFAULT) == "default"


class TestMockConsole:
    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello")
        assert console.outputs[0].message == "hello"
        assert console.outputs[0].style == Style.DEFAULT

    def test_prefixes(self) -> None:
        console = MockConsole()
        console.success("built")
        console.error("failed")
        console.warning("careful")
        console.info("fyi")
        console.step("building")
        assert console.messages == [
            "OK built",
            "error: failed",
            "warning: careful",
            "info: fyi",
            "==> building",
        ]

    def test_helpers(self) -> None:
        console = MockConsole()
        console.warning("dirty tree")
        console.error("stop")
        assert console.has_error()
        assert console.has_warning()
        assert len(console.find("dirty")) == 1
        assert console.count(Style.ERROR) == 1
        console.clear()
        assert console.text == ""

    def test_implements_protocol(self) -> None:
        console: ConsoleProtocol = MockConsole()
        console.newline()


class TestPreviewConsole:
    def test_labels_every_line(self) -> None:
        inner = MockConsole()
        preview = PreviewConsole(inner)
        preview.print("would run: git add -A")
        preview.step("building")
        preview.success("done")
        assert inner.messages == [
            "[dry-run] would run: git add -A",
            "==> [dry-run] building",
            "OK [dry-run] done",
        ]

    def test_blank_lines_stay_blank(self) -> None:
        inner = MockConsole()
        PreviewConsole(inner).newline()
        PreviewConsole(inner).print("")
        assert inner.messages == ["", ""]


class TestRichConsole:
    def test_markup_in_messages_is_not_interpreted(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.info("[dry-run] would push [bold]tag[/bold]")
        out = capsys.readouterr().out
        assert "[dry-run] would push [bold]tag[/bold]" in out
