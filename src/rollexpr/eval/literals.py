from __future__ import annotations

from ..runtime import from_python
from ..tree import Literal
from ..types import Frame, RollValue

def eval_literal(node: Literal, frame: Frame) -> RollValue:
    """Return a literal's value, resolving an `@key` substitution on first use.

    Resolution writes the context value into the node, so later evaluations
    of the same tree never consult the context again.
    """
    if node.is_substitution:
        key = node.key or ""
        resolved = from_python(frame.lookup(key))
        node.value = resolved
        node.is_substitution = False

    return node.value
