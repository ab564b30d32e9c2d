from __future__ import annotations

import io
import json
import random

import pytest

from rollexpr.lexer_rd import tokenize
from rollexpr.runner import evaluate, format_tokens, main, make_rng, parse_context_arg, run


def test_run_is_evaluate() -> None:
    assert run is evaluate


def test_main_prints_result(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["1 + 2"]) == 0
    assert capsys.readouterr().out == "3\n"


def test_main_prints_bool(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["2 > 1"]) == 0
    assert capsys.readouterr().out == "true\n"


def test_main_seed_is_deterministic(capsys: pytest.CaptureFixture[str]) -> None:
    expected = random.Random(7).randint(1, 20)

    assert main(["--seed", "7", "1d20"]) == 0
    assert capsys.readouterr().out == f"{expected}\n"


def test_main_seed_from_env(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("ROLLEXPR_SEED", "11")
    expected = random.Random(11).randint(1, 100)

    assert main(["1d100"]) == 0
    assert capsys.readouterr().out == f"{expected}\n"


def test_invalid_env_seed_exits(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROLLEXPR_SEED", "abc")
    with pytest.raises(SystemExit):
        make_rng()


def test_main_context(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--ctx", "hp=4", "--ctx", "name=orc", "@hp * 2"]) == 0
    assert capsys.readouterr().out == "8\n"


def test_main_bad_context_exits() -> None:
    with pytest.raises(SystemExit):
        main(["--ctx", "novalue", "1"])


def test_main_echoes_tokens_and_ast(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--tokens", "--ast", "1d1 + 2"]) == 0
    out = capsys.readouterr().out.splitlines()

    assert out == [
        "TKN: NUMBER(1) IDENT(d) NUMBER(1) PLUS(+) NUMBER(2) EOF",
        "AST: (+ (d 1 1) 2)",
        "3",
    ]


def test_main_reads_stdin(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("2 * 3\n"))

    assert main(["-"]) == 0
    assert capsys.readouterr().out == "6\n"


def test_main_empty_stdin_exits(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    with pytest.raises(SystemExit):
        main([])


def test_main_reports_errors(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["1 +"]) == 1
    captured = capsys.readouterr()

    assert captured.out == ""
    assert captured.err.startswith("Error: Expected expression")


def test_main_py_trace(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("ROLLEXPR_DEBUG_PY_TRACE", "1")

    assert main(["@missing"]) == 1
    err = capsys.readouterr().err
    assert "Error: Context does not contain key 'missing'" in err
    assert "Python traceback:" in err


def test_main_json(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--json", "--seed", "3", "2 + 2"]) == 0
    payload = json.loads(capsys.readouterr().out)

    assert payload == {"result": "4", "ast": "(+ 2 2)", "pretty": "2 + 2", "error": None}


@pytest.mark.parametrize(
    "text, expected",
    [
        pytest.param("a=true", ("a", True), id="bool-true"),
        pytest.param("a=FALSE", ("a", False), id="bool-false"),
        pytest.param("str.mod=3", ("str.mod", 3.0), id="number"),
        pytest.param(" b = 1.5 ", ("b", 1.5), id="whitespace"),
        pytest.param("name=goblin", ("name", "goblin"), id="string"),
        pytest.param("eq=a=b", ("eq", "a=b"), id="value-with-equals"),
    ],
)
def test_parse_context_arg(text: str, expected) -> None:
    assert parse_context_arg(text) == expected


@pytest.mark.parametrize("text", ["novalue", "=3"], ids=["no-equals", "no-key"])
def test_parse_context_arg_rejects(text: str) -> None:
    with pytest.raises(ValueError):
        parse_context_arg(text)


def test_format_tokens() -> None:
    assert format_tokens(tokenize("@a >= 2")) == "SUBSTITUTION(@a) GTE(>=) NUMBER(2) EOF"
