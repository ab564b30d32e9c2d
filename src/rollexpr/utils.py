from __future__ import annotations

import os as _os
from typing import Optional

# Absolute tolerance for Number equality, in `==`/`!=` and the `=` modifier operator.
EPSILON = 1e-5

_TRUTHY_ENV = {"1", "true", "yes", "on"}


def numbers_equal(a: float, b: float) -> bool:
    return abs(a - b) < EPSILON


def format_number(value: float) -> str:
    """Shortest invariant rendering: 42, 1.5, -3, inf."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


def debug_py_trace_enabled() -> bool:
    return _os.environ.get("ROLLEXPR_DEBUG_PY_TRACE", "").strip().lower() in _TRUTHY_ENV


def seed_from_env() -> Optional[int]:
    """Integer seed from ROLLEXPR_SEED, or None when unset."""
    raw = _os.environ.get("ROLLEXPR_SEED")
    if raw is None or not raw.strip():
        return None

    try:
        return int(raw.strip())
    except ValueError:
        raise SystemExit(f"ROLLEXPR_SEED must be an integer, got {raw!r}") from None
