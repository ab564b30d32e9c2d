"""prompt_toolkit lexer for live rollexpr syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as RollLexer, LexError
from .token_types import TT, Tok
from .tree import MOD_LEXEMES

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "dice": "bold ansicyan",
    "modifier": "ansicyan",
    "boolean": "ansicyan",
    "number": "ansimagenta",
    "substitution": "ansigreen",
    "identifier": "",
    "function": "bold ansiyellow",
    "label": "italic ansigray",
    "operator": "",
    "punctuation": "",
    "error": "bold ansired",
}

# Token type → highlight group.
_TT_GROUP = {
    TT.TRUE: "boolean",
    TT.FALSE: "boolean",
    TT.NUMBER: "number",
    TT.SUBSTITUTION: "substitution",
    TT.IDENT: "identifier",
    TT.PLUS: "operator",
    TT.MINUS: "operator",
    TT.STAR: "operator",
    TT.SLASH: "operator",
    TT.MOD: "operator",
    TT.EQ: "operator",
    TT.NEQ: "operator",
    TT.LT: "operator",
    TT.LTE: "operator",
    TT.GT: "operator",
    TT.GTE: "operator",
    TT.ASSIGN: "operator",
    TT.NEG: "operator",
    TT.BANGBANG: "modifier",
    TT.QMARK: "operator",
    TT.COLON: "operator",
    TT.LPAR: "punctuation",
    TT.RPAR: "punctuation",
    TT.LSQB: "punctuation",
    TT.RSQB: "punctuation",
    TT.LBRACE: "punctuation",
    TT.RBRACE: "punctuation",
    TT.DOT: "punctuation",
    TT.COMMA: "punctuation",
}


def _ident_group(tokens: list[Tok], idx: int, in_label: bool) -> str:
    tok = tokens[idx]
    if in_label:
        return "label"
    if tok.lexeme in ("d", "D"):
        return "dice"

    nxt = tokens[idx + 1] if idx + 1 < len(tokens) else None
    if nxt is not None and nxt.type == TT.LPAR:
        return "function"

    if tok.lexeme in MOD_LEXEMES:
        return "modifier"
    return "identifier"


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    try:
        tokens = RollLexer(text).tokenize()
    except LexError:
        return [("", text)]

    result: StyleAndTextTuples = []
    pos = 0
    in_label = False

    for i, tok in enumerate(tokens):
        if tok.type == TT.EOF or not tok.lexeme:
            continue

        # Columns are 1-based offsets into the line.
        start = tok.column - 1
        if start < pos:
            continue

        # Unstyled gap before token.
        if start > pos:
            result.append(("", text[pos:start]))

        if tok.type == TT.LSQB:
            in_label = True
        elif tok.type == TT.RSQB:
            in_label = False

        if tok.type == TT.IDENT:
            group = _ident_group(tokens, i, in_label)
        elif tok.type == TT.NEG and i > 0 and tokens[i - 1].type in (TT.NUMBER, TT.RPAR):
            # `1d6!` explodes; a leading `!` is logical not
            group = "modifier"
        else:
            group = _TT_GROUP.get(tok.type, "")

        result.append((GROUP_STYLE.get(group, ""), tok.lexeme))
        pos = start + len(tok.lexeme)

    # Trailing unstyled text.
    if pos < len(text):
        result.append(("", text[pos:]))

    return result if result else [("", text)]


class RollLexerHighlighter(Lexer):
    """prompt_toolkit Lexer that highlights dice expressions using the RD lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
