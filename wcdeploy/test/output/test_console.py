from __future__ import annotations

from wcdeploy.output.console import MockConsole, Style


def test_mock_console_records_styles() -> None:
    console = MockConsole()
    console.print("plain")
    console.success("done")
    console.error("boom")
    console.warning("careful")
    console.info("note")
    console.header("Section")
    console.newline()

    assert console.messages == [
        "plain",
        "OK done",
        "error: boom",
        "warning: careful",
        "info: note",
        "Section",
        "",
    ]
    assert console.outputs[3].style == Style.WARNING
    assert console.has_error()
    assert console.has_warning()


def test_mock_console_find_and_text() -> None:
    console = MockConsole()
    console.print("git tag 1.2.0", Style.BOLD)
    console.print("git push")

    assert [o.style for o in console.find("git tag")] == [Style.BOLD]
    assert console.text == "git tag 1.2.0\ngit push"


def test_rich_console_escapes_markup(capsys) -> None:
    from wcdeploy.output.console import RichConsole

    RichConsole().print("API error: 500 - [bold]oops[/bold]")

    out = capsys.readouterr().out
    assert "[bold]oops[/bold]" in out
