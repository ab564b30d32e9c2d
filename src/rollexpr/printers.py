"""Read-only renderings of a node tree.

``ast_print`` gives the fully parenthesized prefix form used in debugging
(``(+ (d 1 6) 1)``). ``pretty_print`` shows an evaluated tree the way a
player reads a roll (``(3 + 5 + 1)x>4 + 2``). Neither walk rolls dice nor
resolves substitutions.
"""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional

from .runtime import RollTypeError, from_python
from .tree import (
    Binary, Call, Dice, DiceMod, DicePool, Grouping, KEEP_DROP_MODS, Literal,
    MOD_SUFFIX, ModOp, Node, Tertiary, Unary,
)
from .utils import format_number


def _with_label(text: str, label: Optional[str]) -> str:
    if label is None:
        return text
    return f"{text}[{label}]"


def _context_value(value: object) -> str:
    try:
        return repr(from_python(value))
    except RollTypeError:
        return repr(value)

# ---------------- Debug (prefix) printer ----------------

def ast_print(node: Node, context: Optional[Mapping[str, object]] = None) -> str:
    """Prefix S-expression for ``node``; pending substitutions show their context value."""
    return _AstPrinter(context).visit(node)


class _AstPrinter:
    def __init__(self, context: Optional[Mapping[str, object]]):
        self.context = context

    def visit(self, node: Node) -> str:
        match node:
            case Literal(is_substitution=True):
                key = node.key
                if self.context is not None and key in self.context:
                    text = f"(@ {key} {_context_value(self.context[key])})"
                else:
                    text = f"(@ {key})"
                return _with_label(text, node.label)
            case Literal(value=value, label=label):
                return _with_label(repr(value), label)
            case Grouping(inner=inner):
                return self.parenthesize("group", [inner])
            case Unary(op=op, operand=operand):
                return self.parenthesize(op.lexeme, [operand])
            case Binary(op=op, left=left, right=right):
                return self.parenthesize(op.lexeme, [left, right])
            case Tertiary(condition=c, then_branch=t, else_branch=e):
                return self.parenthesize("?:", [c, t, e])
            case Call(callee=callee, arguments=args):
                name = node.callee_name or self.visit(callee)
                return self.parenthesize(name, args)
            case Dice():
                return _with_label(self.visit_dice(node), node.label)
            case DicePool(arguments=args):
                parts = ["pool", *(self.visit(a) for a in args)]
                parts += self.modifier_parts(node.modifier, node.mod_op, node.mod_value)
                return f"({' '.join(parts)})"
        raise TypeError(f"Not an expression node: {node!r}")

    def visit_dice(self, node: Dice) -> str:
        parts = ["d", self.visit(node.count), self.visit(node.faces)]
        if node.modifier is not DiceMod.NONE:
            parts += self.modifier_parts(node.modifier, node.mod_op, node.mod_value)
        return f"({' '.join(parts)})"

    def modifier_parts(self, modifier: DiceMod, op: ModOp, value: Optional[Node]) -> List[str]:
        parts = [modifier.value, op.value]
        if value is not None:
            parts.append(self.visit(value))
        return parts

    def parenthesize(self, name: str, nodes: Iterable[Node]) -> str:
        s = f"({name}"
        for n in nodes:
            s += f" {self.visit(n)}"
        return s + ")"

# ---------------- Rolled printer ----------------

def pretty_print(node: Node) -> str:
    """Infix rendering with each rolled Dice node shown as the sum of its rolls.

    Dice that have not been rolled (e.g. in a ternary branch that was not
    taken) keep their ``NdF`` notation.
    """
    match node:
        case Literal(is_substitution=True):
            return _with_label(f"@{node.key}", node.label)
        case Literal(value=value, label=label):
            return _with_label(repr(value), label)
        case Grouping(inner=inner):
            return f"({pretty_print(inner)})"
        case Unary(op=op, operand=operand):
            return f"{op.lexeme}{pretty_print(operand)}"
        case Binary(op=op, left=left, right=right):
            return f"{pretty_print(left)} {op.lexeme} {pretty_print(right)}"
        case Tertiary(condition=c, then_branch=t, else_branch=e):
            return f"{pretty_print(c)} ? {pretty_print(t)} : {pretty_print(e)}"
        case Call(callee=callee, arguments=args):
            name = node.callee_name or pretty_print(callee)
            return f"{name}({', '.join(pretty_print(a) for a in args)})"
        case Dice():
            if node.rolled:
                body = f"({' + '.join(format_number(r) for r in node.rolls)})"
            else:
                body = f"{pretty_print(node.count)}d{pretty_print(node.faces)}"
            return _with_label(body + _modifier_suffix(node.modifier, node.mod_op, node.mod_value), node.label)
        case DicePool(arguments=args):
            body = f"{{{', '.join(pretty_print(a) for a in args)}}}"
            return body + _modifier_suffix(node.modifier, node.mod_op, node.mod_value)
    raise TypeError(f"Not an expression node: {node!r}")


def _modifier_suffix(modifier: DiceMod, op: ModOp, value: Optional[Node]) -> str:
    if modifier is DiceMod.NONE:
        return ""

    # keep/drop only ever compare with '=', so it is left implicit: kh3
    symbol = "" if modifier in KEEP_DROP_MODS else op.symbol
    rendered = pretty_print(value) if value is not None else ""
    return f"{MOD_SUFFIX[modifier]}{symbol}{rendered}"
