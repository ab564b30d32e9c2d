"""
Lexer for rollexpr - Recursive Descent Parser

Tokenizes dice expressions into a flat stream of tokens.

Features:
- Single-pass tokenization, one character of lookahead
- Column tracking for diagnostics
- Substitution keys (@name.with.dots) and invariant-culture numbers
"""

from typing import List

from .token_types import TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    rollexpr lexer.

    The dice operator `d` is not a keyword here: it scans as an ordinary
    IDENT and the parser decides what it means.
    """

    # Keyword mapping
    KEYWORDS = {
        'true': TT.TRUE,
        'false': TT.FALSE,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        ('!!', TT.BANGBANG),
        ('!=', TT.NEQ),
        ('==', TT.EQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('%', TT.MOD),
        ('<', TT.LT),
        ('>', TT.GT),
        ('!', TT.NEG),
        ('=', TT.ASSIGN),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        ('.', TT.DOT),
        (',', TT.COMMA),
        (':', TT.COLON),
        ('?', TT.QMARK),
    ]

    WHITESPACE = (' ', '\t', '\r')

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.column = 1
        self.tokens: List[Tok] = []

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.scan_token()

        self.emit(TT.EOF, '', column=self.column)
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        if self.skip_whitespace():
            return

        ch = self.peek()

        if ch == '@':
            self.scan_substitution()
            return

        if _is_digit(ch):
            self.scan_number()
            return

        if _is_alpha(ch):
            self.scan_identifier()
            return

        self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_substitution(self):
        """Scan @key; the key keeps embedded dots and excludes the '@'"""
        start_col = self.column
        lexeme = self.advance()  # @

        while _is_alnum(self.peek()) or self.peek() == '.':
            lexeme += self.advance()

        self.emit(TT.SUBSTITUTION, lexeme, lexeme[1:], column=start_col)

    def scan_number(self):
        """Scan number literal"""
        start_col = self.column
        value = ''

        # Integer part
        while _is_digit(self.peek()):
            value += self.advance()

        # Decimal part; a bare trailing '.' is left for the DOT token
        if self.peek() == '.' and _is_digit(self.peek(1)):
            value += self.advance()  # .
            while _is_digit(self.peek()):
                value += self.advance()

        self.emit(TT.NUMBER, value, float(value), column=start_col)

    def scan_identifier(self):
        """Scan identifier or keyword"""
        start_col = self.column
        value = ''

        # Digits end an identifier so `1d6` splits into NUMBER IDENT NUMBER
        while _is_alpha(self.peek()):
            value += self.advance()

        token_type = self.KEYWORDS.get(value, TT.IDENT)
        self.emit(token_type, value, column=start_col)

    def scan_operator(self):
        """Scan operators and punctuation"""
        start_col = self.column
        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                self.emit(op_type, op_str, column=start_col)
                return

        ch = self.peek()
        raise LexError(f"Unexpected character '{ch}'", ch, self.column)

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = ''
        for _ in range(n):
            ch = self.source[self.pos] if self.pos < len(self.source) else '\0'
            result += ch
            self.pos += 1
            self.column += 1
        return result

    def skip_whitespace(self) -> bool:
        """Skip spaces, tabs and carriage returns, return True if any skipped"""
        skipped = False
        while self.pos < len(self.source) and self.peek() in self.WHITESPACE:
            self.advance()
            skipped = True
        return skipped

    def emit(self, token_type: TT, lexeme: str, literal=None, column: int = 0):
        """Emit a token"""
        self.tokens.append(Tok(type=token_type, lexeme=lexeme, literal=literal, column=column))


def _is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'

def _is_alpha(ch: str) -> bool:
    return ('a' <= ch <= 'z') or ('A' <= ch <= 'Z') or ch == '_'

def _is_alnum(ch: str) -> bool:
    return _is_alpha(ch) or _is_digit(ch)


class LexError(Exception):
    """Lexical analysis error"""

    def __init__(self, message: str, char: str, column: int):
        self.message = message
        self.char = char
        self.column = column
        super().__init__(f"{message} at col {column}")

# ============================================================================
# Convenience
# ============================================================================

def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    lexer = Lexer(source)
    return lexer.tokenize()


if __name__ == '__main__':
    import sys

    for tok in tokenize(' '.join(sys.argv[1:]) or '2d20kh1 + @str.mod'):
        print(tok)
