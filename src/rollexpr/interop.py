"""JSON adapter for hosts that want one string in and one JSON object out.

Errors from any stage come back in the ``error`` field rather than being
raised, so a host (a web page, another process) never needs to know the
exception types.
"""

from __future__ import annotations

import json
import logging
from typing import Dict, Mapping, Optional

from .parser_rd import parse_source
from .printers import ast_print, pretty_print
from .runner import ROLL_ERRORS, evaluate_tree
from .runtime import RandomSource, init_stdlib

log = logging.getLogger(__name__)

def interpret_result(
    term: str,
    context: Optional[Mapping[str, object]] = None,
    rng: Optional[RandomSource] = None,
) -> Dict[str, Optional[str]]:
    payload: Dict[str, Optional[str]] = {"result": None, "ast": None, "pretty": None, "error": None}
    init_stdlib()

    try:
        tree = parse_source(term)
        value = evaluate_tree(tree, context=context, rng=rng)
    except ROLL_ERRORS as exc:
        log.debug("interpret failed for %r: %s", term, exc)
        payload["error"] = str(exc)
        return payload

    payload["result"] = repr(value)
    # after evaluation substitutions are resolved, so both printers show values
    payload["ast"] = ast_print(tree, context)
    payload["pretty"] = pretty_print(tree)
    return payload

def interpret_json(
    term: str,
    context: Optional[Mapping[str, object]] = None,
    rng: Optional[RandomSource] = None,
) -> str:
    """Evaluate ``term`` and serialize {result, ast, pretty, error} as a JSON object."""
    return json.dumps(interpret_result(term, context, rng))
