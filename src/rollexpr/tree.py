"""AST node classes for dice expressions plus shared traversal helpers.

The node set is closed: the parser only ever builds the classes listed in
``Node``, and every consumer (evaluator, printers) matches on them. Nodes are
structurally fixed after parsing. Only two in-place writes happen during
evaluation: substitution literals get resolved, and Dice nodes record their
rolls. Evaluating one tree from two threads at once is therefore unsafe.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Union
from typing_extensions import TypeAlias, TypeGuard

from .token_types import Tok
from .types import RollValue


class DiceMod(Enum):
    NONE = "None"
    REROLL = "ReRoll"
    EXPLODE = "Explode"
    COMPOUND_EXPLODE = "CompoundExplode"
    COUNT_SUCCESSES = "CountSuccesses"
    MARGIN_OF_SUCCESS = "MarginOfSuccess"
    KEEP_HIGHEST = "KeepHighest"
    KEEP_LOWEST = "KeepLowest"
    DROP_HIGHEST = "DropHighest"
    DROP_LOWEST = "DropLowest"


KEEP_DROP_MODS = frozenset({
    DiceMod.KEEP_HIGHEST,
    DiceMod.KEEP_LOWEST,
    DiceMod.DROP_HIGHEST,
    DiceMod.DROP_LOWEST,
})

# Source spelling of each modifier; `!`/`!!` are accepted as aliases of x/cx.
MOD_LEXEMES = {
    'r': DiceMod.REROLL,
    'x': DiceMod.EXPLODE,
    '!': DiceMod.EXPLODE,
    'cx': DiceMod.COMPOUND_EXPLODE,
    '!!': DiceMod.COMPOUND_EXPLODE,
    'cs': DiceMod.COUNT_SUCCESSES,
    'ms': DiceMod.MARGIN_OF_SUCCESS,
    'kh': DiceMod.KEEP_HIGHEST,
    'kl': DiceMod.KEEP_LOWEST,
    'dh': DiceMod.DROP_HIGHEST,
    'dl': DiceMod.DROP_LOWEST,
}

POOL_MOD_LEXEMES = {
    'kh': DiceMod.KEEP_HIGHEST,
    'kl': DiceMod.KEEP_LOWEST,
    'dh': DiceMod.DROP_HIGHEST,
    'dl': DiceMod.DROP_LOWEST,
    'cs': DiceMod.COUNT_SUCCESSES,
}

MOD_SUFFIX = {
    DiceMod.REROLL: 'r',
    DiceMod.EXPLODE: 'x',
    DiceMod.COMPOUND_EXPLODE: 'cx',
    DiceMod.COUNT_SUCCESSES: 'cs',
    DiceMod.MARGIN_OF_SUCCESS: 'ms',
    DiceMod.KEEP_HIGHEST: 'kh',
    DiceMod.KEEP_LOWEST: 'kl',
    DiceMod.DROP_HIGHEST: 'dh',
    DiceMod.DROP_LOWEST: 'dl',
}


class ModOp(Enum):
    EQUAL = "Equal"
    LESS = "Less"
    LESS_EQUAL = "LessEqual"
    GREATER = "Greater"
    GREATER_EQUAL = "GreaterEqual"

    @property
    def symbol(self) -> str:
        return _MOD_OP_SYMBOLS[self]


_MOD_OP_SYMBOLS = {
    ModOp.EQUAL: '=',
    ModOp.LESS: '<',
    ModOp.LESS_EQUAL: '<=',
    ModOp.GREATER: '>',
    ModOp.GREATER_EQUAL: '>=',
}


@dataclass(eq=False)
class Literal:
    """A constant, a bare name, or a pending `@key` substitution.

    While ``is_substitution`` is set, ``value`` holds the key as a RollString.
    """
    value: RollValue
    is_substitution: bool = False
    label: Optional[str] = None

    @property
    def key(self) -> Optional[str]:
        if not self.is_substitution:
            return None
        return str(self.value.to_python())


@dataclass(eq=False)
class Grouping:
    inner: 'Node'


@dataclass(eq=False)
class Unary:
    op: Tok
    operand: 'Node'


@dataclass(eq=False)
class Binary:
    op: Tok
    left: 'Node'
    right: 'Node'


@dataclass(eq=False)
class Tertiary:
    condition: 'Node'
    then_branch: 'Node'
    else_branch: 'Node'


@dataclass(eq=False)
class Call:
    callee: 'Node'
    function_token: Tok
    arguments: List['Node'] = field(default_factory=list)

    @property
    def callee_name(self) -> Optional[str]:
        """The function name, when the callee is a plain name literal."""
        callee = self.callee
        if isinstance(callee, Literal) and not callee.is_substitution:
            raw = callee.value.to_python()
            if isinstance(raw, str):
                return raw
        return None


@dataclass(eq=False)
class Dice:
    """One roll event: `count`d`faces`, optionally modified.

    ``rolls``/``result`` stay empty/None until the first evaluation and are
    reused by every later evaluation of the same node.
    """
    count: 'Node'
    faces: 'Node'
    label: Optional[str] = None
    modifier: DiceMod = DiceMod.NONE
    mod_op: ModOp = ModOp.EQUAL
    mod_value: Optional['Node'] = None
    rolls: List[float] = field(default_factory=list)
    result: Optional[float] = None

    @property
    def rolled(self) -> bool:
        return self.result is not None


@dataclass(eq=False)
class DicePool:
    arguments: List['Node']
    modifier: DiceMod
    mod_op: ModOp = ModOp.EQUAL
    mod_value: Optional['Node'] = None


Node: TypeAlias = Union[Literal, Grouping, Unary, Binary, Tertiary, Call, Dice, DicePool]

def is_dice(node: object) -> TypeGuard[Dice]:
    return isinstance(node, Dice)


def node_children(node: Node) -> List[Node]:
    """Direct sub-expressions in source order."""
    match node:
        case Literal():
            return []
        case Grouping(inner=inner):
            return [inner]
        case Unary(operand=operand):
            return [operand]
        case Binary(left=left, right=right):
            return [left, right]
        case Tertiary(condition=c, then_branch=t, else_branch=e):
            return [c, t, e]
        case Call(callee=callee, arguments=args):
            return [callee, *args]
        case Dice(count=count, faces=faces, mod_value=mod_value):
            children = [count, faces]
            # CountSuccesses may default its value to the faces node itself
            if mod_value is not None and mod_value is not faces:
                children.append(mod_value)
            return children
        case DicePool(arguments=args, mod_value=mod_value):
            return [*args] + ([mod_value] if mod_value is not None else [])
    raise TypeError(f"Not an expression node: {node!r}")


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal of every node reachable from ``node``."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(node_children(current)))


def dice_nodes(node: Node) -> List[Dice]:
    return [n for n in walk(node) if is_dice(n)]
