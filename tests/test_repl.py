from __future__ import annotations

import random

import pytest
from prompt_toolkit.document import Document

from rollexpr.repl import _SlashCompleter, handle_line, new_frame
from rollexpr.repl_highlight import GROUP_STYLE, _highlight_line
from rollexpr.runtime import Frame


@pytest.fixture
def frame_box() -> list[Frame]:
    return [new_frame(seed=1)]


def test_line_echoes_every_stage(frame_box, capsys: pytest.CaptureFixture[str]) -> None:
    assert handle_line("1d1 + 2", frame_box) is True
    out = capsys.readouterr().out.splitlines()

    assert out == [
        "TKN: NUMBER(1) IDENT(d) NUMBER(1) PLUS(+) NUMBER(2) EOF",
        "AST: (+ (d 1 1) 2)",
        "RES: 3",
        "ROLLED: (1) + 2",
    ]


@pytest.mark.parametrize("word", ["quit", "exit", "QUIT", "  Exit  "])
def test_quit_words(frame_box, word: str) -> None:
    assert handle_line(word, frame_box) is False


def test_blank_line_is_ignored(frame_box, capsys: pytest.CaptureFixture[str]) -> None:
    assert handle_line("   ", frame_box) is True
    assert capsys.readouterr().out == ""


def test_invisible_characters_are_stripped(frame_box, capsys: pytest.CaptureFixture[str]) -> None:
    handle_line("1\u200b+\u00a01", frame_box)
    assert "RES: 2" in capsys.readouterr().out


def test_error_keeps_shell_running(frame_box, capsys: pytest.CaptureFixture[str]) -> None:
    assert handle_line("1d6d6", frame_box) is True
    captured = capsys.readouterr()

    assert captured.out == ""
    assert captured.err.startswith("Error: Expected dice modifier")


def test_set_and_unset_context(frame_box, capsys: pytest.CaptureFixture[str]) -> None:
    handle_line("/set hp=3", frame_box)
    handle_line("@hp + 1", frame_box)
    out = capsys.readouterr().out

    assert "@hp = 3.0" in out
    assert "AST: (+ (@ hp 3) 1)" in out
    assert "RES: 4" in out

    handle_line("/unset hp", frame_box)
    handle_line("@hp", frame_box)
    assert "Context does not contain key 'hp'" in capsys.readouterr().err


def test_set_usage(frame_box, capsys: pytest.CaptureFixture[str]) -> None:
    handle_line("/set nope", frame_box)
    assert "Usage: /set key=value" in capsys.readouterr().err


def test_unset_missing_key(frame_box, capsys: pytest.CaptureFixture[str]) -> None:
    handle_line("/unset ghost", frame_box)
    assert "No context entry 'ghost'" in capsys.readouterr().err


def test_context_listing(frame_box, capsys: pytest.CaptureFixture[str]) -> None:
    handle_line("/context", frame_box)
    assert capsys.readouterr().out == "(empty)\n"

    handle_line("/set name=orc", frame_box)
    handle_line("/set brave=true", frame_box)
    capsys.readouterr()
    handle_line("/context", frame_box)
    assert capsys.readouterr().out.splitlines() == ["@name = 'orc'", "@brave = True"]


def test_seed_command(frame_box, capsys: pytest.CaptureFixture[str]) -> None:
    expected = random.Random(5).randint(1, 20)

    handle_line("/seed 5", frame_box)
    handle_line("1d20", frame_box)
    out = capsys.readouterr().out

    assert "Seeded with 5." in out
    assert f"RES: {expected}" in out


def test_seed_usage(frame_box, capsys: pytest.CaptureFixture[str]) -> None:
    handle_line("/seed five", frame_box)
    assert "Usage: /seed N" in capsys.readouterr().err


def test_reset_swaps_frame(frame_box, capsys: pytest.CaptureFixture[str]) -> None:
    original = frame_box[0]
    handle_line("/set a=1", frame_box)
    handle_line("/reset", frame_box)

    assert frame_box[0] is not original
    assert frame_box[0].context == {}
    assert "Environment reset." in capsys.readouterr().out


def test_py_traceback_toggle(frame_box, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.delenv("ROLLEXPR_DEBUG_PY_TRACE", raising=False)

    handle_line("/py-traceback on", frame_box)
    handle_line("/py-traceback", frame_box)
    handle_line("/py-traceback maybe", frame_box)
    captured = capsys.readouterr()

    assert captured.out.splitlines() == ["Python traceback: on", "Python traceback: off"]
    assert "Usage: /py-traceback [on|off]" in captured.err


def test_unknown_command(frame_box, capsys: pytest.CaptureFixture[str]) -> None:
    assert handle_line("/roll", frame_box) is True
    assert "Unknown command: /roll" in capsys.readouterr().err


def test_slash_completer() -> None:
    completions = list(_SlashCompleter().get_completions(Document("/se"), None))
    assert [c.text for c in completions] == ["/set", "/seed"]


def test_slash_completer_ignores_expressions() -> None:
    assert list(_SlashCompleter().get_completions(Document("1d6"), None)) == []


def test_highlight_covers_whole_line() -> None:
    text = "4d6kh3 + floor(@str / 2)[bonus]"
    fragments = _highlight_line(text)

    assert "".join(fragment for _, fragment in fragments) == text
    styles = dict((fragment, style) for style, fragment in fragments)
    assert styles["d"] == GROUP_STYLE["dice"]
    assert styles["kh"] == GROUP_STYLE["modifier"]
    assert styles["floor"] == GROUP_STYLE["function"]
    assert styles["@str"] == GROUP_STYLE["substitution"]
    assert styles["bonus"] == GROUP_STYLE["label"]


def test_highlight_bad_input_is_plain() -> None:
    assert _highlight_line("1 # 2") == [("", "1 # 2")]
