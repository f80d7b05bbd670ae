from __future__ import annotations

import math
import re
from typing import Any

from lark import Token

from ..runtime import EvalTypeError

_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    'b': '\b',
    'f': '\f',
    'v': '\v',
    '0': '\0',
}

_ESCAPE_RE = re.compile(r'\\(u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|.)', re.DOTALL)

def token_number(token: Token) -> int | float:
    raw = str(token.value)

    if any(ch in raw for ch in '.eE'):
        return float(raw)

    return int(raw)

def _unescape(match: re.Match) -> str:
    seq = match.group(1)

    if len(seq) > 1 and seq[0] in 'ux':
        return chr(int(seq[1:], 16))

    return _ESCAPES.get(seq, seq)

def token_string(token: Token) -> str:
    raw = str(token.value)

    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ('"', "'"):
        raw = raw[1:-1]

    return _ESCAPE_RE.sub(_unescape, raw)

def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)

def require_number(value: Any, op: str) -> None:
    if not is_number(value):
        raise EvalTypeError(f"Operator '{op}' expects numbers; got {type(value).__name__}")

def stringify(value: Any) -> str:
    """Render a value the way string concatenation sees it."""
    if isinstance(value, str):
        return value

    if value is None:
        return "null"

    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)

    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None else stringify(item) for item in value)

    return str(value)
