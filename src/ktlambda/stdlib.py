"""JS-flavoured member set for plain Python values, registered via ktlambda.runtime.

Loaded lazily by runtime.init_stdlib(). Callback arguments (map, filter, ...)
are callable specs and run through the invoker, so a function, a member
name or a string lambda all work.
"""

from __future__ import annotations

import math
import re
import sys
from types import SimpleNamespace
from typing import Any, List, Optional

from .eval.common import is_number, stringify
from .eval.helpers import is_truthy
from .invoker import invoke
from .runtime import EvalTypeError, current_scope, register_global, register_member, register_property

_MISSING = object()

def _int_arg(method: str, value: Any) -> int:
    if not is_number(value):
        raise EvalTypeError(f"{method} expects a numeric argument")

    if isinstance(value, float):
        if math.isnan(value):
            return 0
        if math.isinf(value):
            return sys.maxsize if value > 0 else -sys.maxsize

    return int(value)

def _opt_int(method: str, value: Any) -> Optional[int]:
    return None if value is None else _int_arg(method, value)

def _string_arg(method: str, value: Any) -> str:
    if isinstance(value, str):
        return value

    raise EvalTypeError(f"string.{method} expects a string argument")

# ---------------- str ----------------

@register_property(str, "length")
def _string_length(recv: str) -> int:
    return len(recv)

@register_member(str, "toUpperCase")
def _string_upper(recv: str) -> str:
    return recv.upper()

@register_member(str, "toLowerCase")
def _string_lower(recv: str) -> str:
    return recv.lower()

@register_member(str, "trim")
def _string_trim(recv: str) -> str:
    return recv.strip()

@register_member(str, "charAt")
def _string_char_at(recv: str, index: Any = 0) -> str:
    idx = _int_arg("charAt", index)

    if 0 <= idx < len(recv):
        return recv[idx]
    return ""

@register_member(str, "indexOf")
def _string_index_of(recv: str, needle: Any, start: Any = 0) -> int:
    return recv.find(_string_arg("indexOf", needle), max(0, _int_arg("indexOf", start)))

@register_member(str, "includes")
def _string_includes(recv: str, needle: Any) -> bool:
    return _string_arg("includes", needle) in recv

@register_member(str, "startsWith")
def _string_starts_with(recv: str, prefix: Any) -> bool:
    return recv.startswith(_string_arg("startsWith", prefix))

@register_member(str, "endsWith")
def _string_ends_with(recv: str, suffix: Any) -> bool:
    return recv.endswith(_string_arg("endsWith", suffix))

@register_member(str, "split")
def _string_split(recv: str, sep: Any = None, limit: Any = None) -> List[str]:
    if sep is None:
        parts = [recv]
    elif sep == "":
        parts = list(recv)
    else:
        parts = recv.split(_string_arg("split", sep))

    if limit is not None:
        parts = parts[:max(0, _int_arg("split", limit))]

    return parts

@register_member(str, "slice")
def _string_slice(recv: str, start: Any = 0, end: Any = None) -> str:
    return recv[_int_arg("slice", start):_opt_int("slice", end)]

@register_member(str, "concat")
def _string_concat(recv: str, *parts: Any) -> str:
    return recv + "".join(stringify(part) for part in parts)

@register_member(str, "repeat")
def _string_repeat(recv: str, count: Any) -> str:
    if isinstance(count, float) and math.isinf(count):
        raise EvalTypeError("string.repeat count must be finite")

    n = _int_arg("repeat", count)

    if n < 0:
        raise EvalTypeError("string.repeat count must be non-negative")

    return recv * n

@register_member(str, "replace")
def _string_replace(recv: str, old: Any, new: Any) -> str:
    # first occurrence only
    return recv.replace(_string_arg("replace", old), stringify(new), 1)

@register_member(str, "toString")
def _string_to_string(recv: str) -> str:
    return recv

# ---------------- list / tuple ----------------

@register_property(list, "length")
@register_property(tuple, "length")
@register_property(dict, "length")
def _container_length(recv: Any) -> int:
    return len(recv)

@register_member(list, "push")
def _list_push(recv: list, *items: Any) -> int:
    recv.extend(items)
    return len(recv)

@register_member(list, "pop")
def _list_pop(recv: list) -> Any:
    return recv.pop() if recv else None

@register_member(list, "shift")
def _list_shift(recv: list) -> Any:
    return recv.pop(0) if recv else None

@register_member(list, "unshift")
def _list_unshift(recv: list, *items: Any) -> int:
    recv[0:0] = items
    return len(recv)

@register_member(list, "concat")
def _list_concat(recv: list, *others: Any) -> list:
    result = list(recv)

    for other in others:
        if isinstance(other, (list, tuple)):
            result.extend(other)
        else:
            result.append(other)

    return result

@register_member(list, "join")
@register_member(tuple, "join")
def _seq_join(recv: Any, sep: Any = ",") -> str:
    sep = _string_arg("join", sep)
    return sep.join("" if item is None else stringify(item) for item in recv)

@register_member(list, "reverse")
def _list_reverse(recv: list) -> list:
    recv.reverse()
    return recv

@register_member(list, "slice")
def _list_slice(recv: list, start: Any = 0, end: Any = None) -> list:
    return recv[_int_arg("slice", start):_opt_int("slice", end)]

@register_member(list, "indexOf")
@register_member(tuple, "indexOf")
def _seq_index_of(recv: Any, item: Any) -> int:
    for idx, candidate in enumerate(recv):
        if candidate == item:
            return idx

    return -1

@register_member(list, "includes")
@register_member(tuple, "includes")
def _seq_includes(recv: Any, item: Any) -> bool:
    return item in recv

def _run_callback(item: Any, callback: Any, *args: Any) -> Any:
    """Callbacks see the scope of the T/K call (or lambda) that reached this member."""
    return invoke(item, callback, args, scope=current_scope())

@register_member(list, "map")
def _list_map(recv: list, callback: Any) -> list:
    return [_run_callback(item, callback) for item in recv]

@register_member(list, "filter")
def _list_filter(recv: list, callback: Any) -> list:
    return [item for item in recv if is_truthy(_run_callback(item, callback))]

@register_member(list, "reduce")
def _list_reduce(recv: list, callback: Any, initial: Any = _MISSING) -> Any:
    items = iter(recv)

    if initial is _MISSING:
        try:
            acc = next(items)
        except StopIteration:
            raise EvalTypeError("reduce of empty list with no initial value") from None
    else:
        acc = initial

    for item in items:
        acc = _run_callback(acc, callback, item)

    return acc

@register_member(list, "forEach")
def _list_for_each(recv: list, callback: Any) -> None:
    for item in recv:
        _run_callback(item, callback)

@register_member(list, "some")
def _list_some(recv: list, callback: Any) -> bool:
    return any(is_truthy(_run_callback(item, callback)) for item in recv)

@register_member(list, "every")
def _list_every(recv: list, callback: Any) -> bool:
    return all(is_truthy(_run_callback(item, callback)) for item in recv)

@register_member(list, "find")
def _list_find(recv: list, callback: Any) -> Any:
    for item in recv:
        if is_truthy(_run_callback(item, callback)):
            return item

    return None

# ---------------- numbers ----------------

@register_member(int, "toFixed")
@register_member(float, "toFixed")
def _number_to_fixed(recv: Any, digits: Any = 0) -> str:
    places = _int_arg("toFixed", digits)

    if not 0 <= places <= 100:
        raise EvalTypeError("toFixed digits must be between 0 and 100")

    return f"{recv:.{places}f}"

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"

@register_member(int, "toString")
@register_member(float, "toString")
def _number_to_string(recv: Any, radix: Any = 10) -> str:
    base = _int_arg("toString", radix)

    if base == 10 or not isinstance(recv, int) or isinstance(recv, bool):
        return stringify(recv)

    if not 2 <= base <= 36:
        raise EvalTypeError("toString radix must be between 2 and 36")

    n = abs(recv)
    out = []

    while True:
        n, rem = divmod(n, base)
        out.append(_DIGITS[rem])
        if n == 0:
            break

    return ("-" if recv < 0 else "") + "".join(reversed(out))

# ---------------- globals ----------------

def _math_arg(fn: str, value: Any) -> Any:
    if not is_number(value):
        raise EvalTypeError(f"Math.{fn} expects a number")

    return value

def _is_finite(value: Any) -> bool:
    return not isinstance(value, float) or math.isfinite(value)

# NaN and the infinities pass through rounding unchanged, as in JS
def _js_floor(value: Any) -> Any:
    value = _math_arg("floor", value)
    return math.floor(value) if _is_finite(value) else value

def _js_ceil(value: Any) -> Any:
    value = _math_arg("ceil", value)
    return math.ceil(value) if _is_finite(value) else value

def _js_round(value: Any) -> Any:
    value = _math_arg("round", value)
    return math.floor(value + 0.5) if _is_finite(value) else value

def _js_sqrt(value: Any) -> Any:
    value = _math_arg("sqrt", value)
    return math.sqrt(value) if value >= 0 else math.nan

def _js_pow(base: Any, exp: Any) -> Any:
    base, exp = _math_arg("pow", base), _math_arg("pow", exp)

    if base == 0 and exp < 0:
        return math.inf

    try:
        return math.pow(base, exp)
    except OverflowError:
        return math.inf
    except ValueError:
        # negative base with a fractional exponent
        return math.nan

register_global("Math", SimpleNamespace(
    abs=abs,
    ceil=_js_ceil,
    floor=_js_floor,
    max=max,
    min=min,
    pow=_js_pow,
    round=_js_round,
    sqrt=_js_sqrt,
    PI=math.pi,
    E=math.e,
))

register_global("String", stringify)

_INT_PREFIX = re.compile(r'\s*([+-]?[0-9a-zA-Z]+)')
_FLOAT_PREFIX = re.compile(r'\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')

@register_global("Number")
def _number(value: Any) -> Any:
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if is_number(value):
        return value

    text = str(value).strip()
    if text == "":
        return 0

    try:
        return int(text)
    except ValueError:
        pass

    try:
        return float(text)
    except ValueError:
        return math.nan

@register_global("parseInt")
def _parse_int(value: Any, radix: Any = 10) -> Any:
    base = _int_arg("parseInt", radix)
    m = _INT_PREFIX.match(stringify(value))

    if m is None:
        return math.nan

    digits = m.group(1)
    # longest prefix valid in the radix
    for end in range(len(digits), 0, -1):
        try:
            return int(digits[:end], base)
        except ValueError:
            continue

    return math.nan

@register_global("parseFloat")
def _parse_float(value: Any) -> Any:
    m = _FLOAT_PREFIX.match(stringify(value))

    if m is None:
        return math.nan

    return float(m.group(1))

register_global("len", len)
register_global("abs", abs)
register_global("min", min)
register_global("max", max)
register_global("round", round)
register_global("sum", sum)
register_global("sorted", sorted)
