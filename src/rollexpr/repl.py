"""Interactive REPL for rollexpr, powered by prompt_toolkit."""

from __future__ import annotations

import logging
import os
import re
import sys
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .repl_highlight import RollLexerHighlighter
from .runner import ROLL_ERRORS, format_tokens, make_rng, parse_context_arg, repl_eval, report_error
from .runtime import Frame, init_stdlib
from .utils import debug_py_trace_enabled

log = logging.getLogger(__name__)

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
    "/set": ("Set a substitution context entry", "key=value"),
    "/unset": ("Remove a substitution context entry", "key"),
    "/context": ("Show the substitution context", ""),
    "/seed": ("Reseed the random source", "N"),
    "/reset": ("Clear the context and reseed", ""),
}

_QUIT_WORDS = ("quit", "exit")


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=f"{desc} {hint}".strip(),
                )


def new_frame(seed: Optional[int] = None) -> Frame:
    return Frame(context={}, rng=make_rng(seed))


def _handle_slash(line: str, frame_box: list[Frame]) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1].strip() if len(parts) > 1 else ""
    frame = frame_box[0]
    context = frame.context if isinstance(frame.context, dict) else {}

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/py-traceback":
        if arg.lower() in ("on", "1", "true", "yes"):
            os.environ["ROLLEXPR_DEBUG_PY_TRACE"] = "1"
        elif arg.lower() in ("off", "0", "false", "no"):
            os.environ.pop("ROLLEXPR_DEBUG_PY_TRACE", None)
        elif arg == "":
            if debug_py_trace_enabled():
                os.environ.pop("ROLLEXPR_DEBUG_PY_TRACE", None)
            else:
                os.environ["ROLLEXPR_DEBUG_PY_TRACE"] = "1"
        else:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True

        state = "on" if debug_py_trace_enabled() else "off"
        print(f"Python traceback: {state}")
        return True

    if cmd == "/set":
        try:
            key, value = parse_context_arg(arg)
        except ValueError:
            print("Usage: /set key=value", file=sys.stderr)
            return True
        context[key] = value
        frame.context = context
        print(f"@{key} = {value!r}")
        return True

    if cmd == "/unset":
        if not arg:
            print("Usage: /unset key", file=sys.stderr)
        elif arg not in context:
            print(f"No context entry '{arg}'", file=sys.stderr)
        else:
            del context[arg]
        return True

    if cmd == "/context":
        if not context:
            print("(empty)")
        for key, value in context.items():
            print(f"@{key} = {value!r}")
        return True

    if cmd == "/seed":
        try:
            seed = int(arg)
        except ValueError:
            print("Usage: /seed N", file=sys.stderr)
            return True
        frame.rng = make_rng(seed)
        print(f"Seeded with {seed}.")
        return True

    if cmd == "/reset":
        init_stdlib()
        frame_box[0] = new_frame()
        print("Environment reset.")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def handle_line(text: str, frame_box: list[Frame]) -> bool:
    """Process one input line. Returns False when the shell should exit."""
    text = _normalize(text).strip()
    if not text:
        return True

    if text.lower() in _QUIT_WORDS:
        return False

    if _handle_slash(text, frame_box):
        return True

    try:
        echo = repl_eval(text, frame_box[0])
    except ROLL_ERRORS as exc:
        log.debug("line failed: %r", text)
        report_error(exc)
        return True

    print(f"TKN: {format_tokens(echo.tokens)}")
    print(f"AST: {echo.ast}")
    print(f"RES: {echo.value}")
    print(f"ROLLED: {echo.rolled}")
    return True


def repl() -> None:
    """Interactive read-eval-print loop with prompt_toolkit."""
    init_stdlib()
    # Use a mutable box so /reset can swap the frame.
    frame_box: list[Frame] = [new_frame()]

    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    session: PromptSession[str] = PromptSession(
        history=InMemoryHistory(),
        lexer=RollLexerHighlighter(),
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
    )

    print("rollexpr repl - let's roll! Ctrl-D or 'quit' to exit, / for commands")

    while True:
        try:
            text = session.prompt("> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        if not handle_line(text, frame_box):
            break


if __name__ == "__main__":
    repl()
