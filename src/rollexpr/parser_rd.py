"""
Recursive Descent Parser for rollexpr

Builds the node tree from rollexpr.tree out of the flat token stream produced
by the lexer. One method per precedence level, lowest precedence outermost.

Structure:
- Parser: token navigation (peek/advance/check/match/expect) plus one
  parse_* method per grammar rule
- ParseError: grammar violations, carrying the offending token
- parse_source: tokenize + parse convenience entry point
"""

from typing import List, Optional, Tuple

from .token_types import TT, Tok
from .tree import (
    Binary, Call, Dice, DiceMod, DicePool, Grouping, KEEP_DROP_MODS, Literal,
    MOD_LEXEMES, ModOp, Node, POOL_MOD_LEXEMES, Tertiary, Unary,
)
from .types import RollBool, RollNumber, RollString

# ============================================================================
# Parser
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None):
        self.message = message
        self.token = token
        self.column = token.column if token else None
        super().__init__(
            f"{message} at col {token.column}" if token else message
        )

# Token types that may follow the faces expression to start a dice modifier
_DICE_MOD_TOKENS = (TT.IDENT, TT.NEG, TT.BANGBANG)

_MOD_OPERATORS = {
    TT.ASSIGN: ModOp.EQUAL,
    TT.LT: ModOp.LESS,
    TT.LTE: ModOp.LESS_EQUAL,
    TT.GT: ModOp.GREATER,
    TT.GTE: ModOp.GREATER_EQUAL,
}

class Parser:
    """
    Recursive descent parser for rollexpr.

    Expression precedence (lowest to highest):
    1. ternary (? :), right-nesting
    2. equality (==, !=)
    3. comparison (<, <=, >, >=)
    4. term (+, -)
    5. factor (*, /, %)
    6. dice (d, D) with optional modifier and label
    7. unary (-, !)
    8. call (callee(args))
    9. primary (literals, substitutions, pools, parens, raw lexemes)
    """

    def __init__(self, tokens: List[Tok]):
        self.tokens = tokens
        self.pos = 0
        self.current = tokens[0] if tokens else Tok(TT.EOF, '')

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token"""
        idx = self.pos + offset
        if 0 <= idx < len(self.tokens):
            return self.tokens[idx]
        return Tok(TT.EOF, '')

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        if prev.type != TT.EOF:
            self.pos += 1
        self.current = self.peek()
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            msg = message or f"Expected {token_type.name}, got {self.current.type.name}"
            raise ParseError(msg, self.current)
        return self.advance()

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Node:
        """Parse a single complete expression"""
        expr = self.parse_expr()

        if not self.check(TT.EOF):
            raise ParseError("Unexpected tokens after expression", self.current)

        return expr

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expr(self) -> Node:
        """Ternary: equality ('?' expr ':' expr)?"""
        expr = self.parse_equality()

        if self.match(TT.QMARK):
            then_branch = self.parse_expr()
            self.expect(TT.COLON, "Expected ':' after then-branch of '?'")
            else_branch = self.parse_expr()
            return Tertiary(expr, then_branch, else_branch)

        return expr

    def parse_equality(self) -> Node:
        expr = self.parse_comparison()

        while self.check(TT.EQ, TT.NEQ):
            op = self.advance()
            right = self.parse_comparison()
            expr = Binary(op, expr, right)

        return expr

    def parse_comparison(self) -> Node:
        expr = self.parse_term()

        while self.check(TT.GT, TT.GTE, TT.LT, TT.LTE):
            op = self.advance()
            right = self.parse_term()
            expr = Binary(op, expr, right)

        return expr

    def parse_term(self) -> Node:
        expr = self.parse_factor()

        while self.check(TT.PLUS, TT.MINUS):
            op = self.advance()
            right = self.parse_factor()
            expr = Binary(op, expr, right)

        return expr

    def parse_factor(self) -> Node:
        expr = self.parse_dice()

        while self.check(TT.STAR, TT.SLASH, TT.MOD):
            op = self.advance()
            right = self.parse_dice()
            expr = Binary(op, expr, right)

        return expr

    # ========================================================================
    # Dice
    # ========================================================================

    def parse_dice(self) -> Node:
        """
        Dice: unary (('d'|'D') call modifier? label?)*

        `d` is an ordinary identifier to the lexer; only the exact lexemes
        "d" and "D" in this position make a dice operator.
        """
        expr = self.parse_unary()

        while self._at_dice_operator():
            self.advance()
            # a trailing label belongs to the dice, not its faces
            faces = self.parse_call(label=False)
            dice = Dice(count=expr, faces=faces)

            if self.check(*_DICE_MOD_TOKENS):
                self.parse_dice_modifier(dice)

            dice.label = self.parse_label()
            expr = dice

        return expr

    def _at_dice_operator(self) -> bool:
        return self.check(TT.IDENT) and self.current.lexeme in ('d', 'D')

    def parse_dice_modifier(self, dice: Dice) -> None:
        mod_tok = self.advance()
        modifier = MOD_LEXEMES.get(mod_tok.lexeme)

        if modifier is None:
            raise ParseError(f"Expected dice modifier, got '{mod_tok.lexeme}'", mod_tok)

        op_tok = self.current
        mod_op, mod_value = self._parse_mod_operator()

        if modifier in KEEP_DROP_MODS and mod_op is not ModOp.EQUAL:
            raise ParseError(
                f"Keep/drop modifier '{mod_tok.lexeme}' only accepts '=', got '{op_tok.lexeme}'",
                op_tok,
            )

        if mod_value is None:
            # success defaults to rolling the highest face
            if modifier is DiceMod.COUNT_SUCCESSES:
                mod_value = dice.faces
            else:
                mod_value = Literal(RollNumber(1.0))

        dice.modifier = modifier
        dice.mod_op = mod_op
        dice.mod_value = mod_value

    def _parse_mod_operator(self) -> Tuple[ModOp, Optional[Node]]:
        """
        Resolve the comparison after a modifier keyword.

        `kh>=2` consumes an operator and a call-level value, `kh2` takes the
        number as an implicit `=` value, and a bare `kh` leaves the value to
        the caller's default.
        """
        op = _MOD_OPERATORS.get(self.current.type)
        if op is not None:
            self.advance()
            return op, self.parse_call()

        if self.check(TT.NUMBER):
            tok = self.advance()
            return ModOp.EQUAL, Literal(RollNumber(tok.literal))

        return ModOp.EQUAL, None

    def parse_pool_modifier(self) -> Tuple[DiceMod, ModOp, Node]:
        mod_tok = self.current
        modifier = POOL_MOD_LEXEMES.get(mod_tok.lexeme) if mod_tok.type == TT.IDENT else None

        if modifier is None:
            raise ParseError(
                f"Expected dice pool modifier (kh, kl, dh, dl, cs), got '{mod_tok.lexeme}'",
                mod_tok,
            )
        self.advance()

        mod_op, mod_value = self._parse_mod_operator()
        if mod_value is None:
            mod_value = Literal(RollNumber(1.0))

        return modifier, mod_op, mod_value

    def parse_label(self) -> Optional[str]:
        """Optional `[word word ...]` annotation; None when absent"""
        if not self.match(TT.LSQB):
            return None

        words = []
        while self.check(TT.IDENT):
            words.append(self.advance().lexeme)

        self.expect(TT.RSQB, "Expected ']' after label")
        return ' '.join(words)

    # ========================================================================
    # Unary / Call / Primary
    # ========================================================================

    def parse_unary(self) -> Node:
        if self.check(TT.NEG, TT.MINUS):
            op = self.advance()
            operand = self.parse_unary()
            return Unary(op, operand)

        return self.parse_call()

    def parse_call(self, label: bool = True) -> Node:
        expr = self.parse_primary(label)

        while self.check(TT.LPAR):
            function_token = self.peek(-1)
            self.advance()  # (
            args = self.parse_arg_list(TT.RPAR)
            self.expect(TT.RPAR, "Expected ')' after arguments")
            expr = Call(expr, function_token, args)

        return expr

    def parse_arg_list(self, closer: TT) -> List[Node]:
        """Comma-separated expressions up to (not including) ``closer``"""
        if self.check(closer):
            return []

        args = [self.parse_expr()]
        while self.match(TT.COMMA):
            args.append(self.parse_expr())

        return args

    def parse_primary(self, label: bool = True) -> Node:
        """
        Parse primary expressions:
        - true, false
        - numbers and @substitutions, each with an optional label unless
          ``label`` is False (dice faces leave it to the dice)
        - dice pools: '{' args '}' pool-modifier
        - parenthesized expressions
        - any other single token, as its raw lexeme (function names)
        """
        if self.match(TT.FALSE):
            return Literal(RollBool(False))
        if self.match(TT.TRUE):
            return Literal(RollBool(True))

        if self.check(TT.NUMBER):
            tok = self.advance()
            return Literal(RollNumber(tok.literal), label=self.parse_label() if label else None)

        if self.check(TT.SUBSTITUTION):
            tok = self.advance()
            return Literal(
                RollString(tok.literal),
                is_substitution=True,
                label=self.parse_label() if label else None,
            )

        if self.match(TT.LBRACE):
            args = self.parse_arg_list(TT.RBRACE)
            self.expect(TT.RBRACE, "Expected '}' after dice pool")
            modifier, mod_op, mod_value = self.parse_pool_modifier()
            return DicePool(args, modifier, mod_op, mod_value)

        if self.match(TT.LPAR):
            expr = self.parse_expr()
            self.expect(TT.RPAR, "Expected ')' after expression")
            return Grouping(expr)

        if self.check(TT.EOF):
            raise ParseError("Expected expression", self.current)

        tok = self.advance()
        return Literal(RollString(tok.lexeme))

# ============================================================================
# Convenience
# ============================================================================

def parse_source(source: str) -> Node:
    """
    Parse rollexpr source to a node tree.

    Raises LexError for unrecognized characters and ParseError for grammar
    violations; nothing is evaluated.
    """
    from .lexer_rd import tokenize

    tokens = tokenize(source)
    parser = Parser(tokens)
    return parser.parse()


if __name__ == '__main__':
    import sys

    print(repr(parse_source(' '.join(sys.argv[1:]) or '4d6kh3 + @str.mod')))
