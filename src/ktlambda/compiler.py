"""String-lambda compiler.

A lambda source is resolved into one of four forms, tried in order:

    arrow        'x, y -> x + y'     parameters written out before '->'
    placeholder  '_ + suffix'         '_' is the only parameter
    section      '+ 1', '.length'    leading/trailing operator, synthetic params
    implicit     'str + " World"'    free identifiers become parameters

Compiled lambdas are cached per source string for the life of the process.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Hashable, Iterable, List, Mapping, Optional, Tuple

from lark import Token, Tree

from .evaluator import eval_expr
from .lexer_rd import tokenize
from .parser_rd import ParseError, parse_body, parse_params
from .runtime import Builtins, CompileError, Frame, active_scope, init_stdlib
from .token_types import LEFT_SECTION_TYPES, RIGHT_SECTION_TYPES, TT, Tok
from .tree import Node, is_tree, iter_free_idents

logger = logging.getLogger(__name__)

PLACEHOLDER = '_'
SECTION_LEFT = '$0'
SECTION_RIGHT = '$1'


@dataclass(frozen=True)
class CompiledLambda:
    source: str
    params: Tuple[str, ...]
    body: Node = field(repr=False)
    form: str = "implicit"

    @property
    def arity(self) -> int:
        return len(self.params)

    def __call__(self, *args: Any, scope: Optional[Mapping[str, Any]] = None, host: Any = None) -> Any:
        """Bind params positionally to args; extra args are ignored, missing ones are None."""
        init_stdlib()
        frame = Frame(scope=scope, host=host, source=self.source)

        for idx, name in enumerate(self.params):
            frame.define(name, args[idx] if idx < len(args) else None)

        # members called from the body (map, filter, ...) pass scope on to their callbacks
        with active_scope(scope):
            return eval_expr(self.body, frame)

    def pretty(self) -> str:
        if is_tree(self.body):
            return self.body.pretty()
        return f"{self.body.type}\t{self.body.value!r}\n"

    def __repr__(self) -> str:
        return f"<lambda ({', '.join(self.params)}) {self.form} {self.source!r}>"


class LambdaCache:
    """Source -> CompiledLambda map.

    The lock guards the dict only; two threads missing on the same source
    both compile and the last insert wins.
    """

    def __init__(self) -> None:
        self._entries: Dict[Hashable, CompiledLambda] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[CompiledLambda]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: Hashable, compiled: CompiledLambda) -> None:
        with self._lock:
            self._entries[key] = compiled

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries


_CACHE = LambdaCache()

def lambda_cache() -> LambdaCache:
    return _CACHE

def clear_cache() -> None:
    _CACHE.clear()

def cache_key(source: str, scope_names: FrozenSet[str]) -> Hashable:
    return source if not scope_names else (source, scope_names)

# ---------------- Public API ----------------

def compile_lambda(source: str, scope_names: Iterable[str] = ()) -> CompiledLambda:
    """Compile (or fetch from cache) the lambda for source.

    scope_names are outer bindings the caller will supply at call time; the
    implicit form does not turn them into parameters.
    """
    if not isinstance(source, str):
        raise CompileError(f"Lambda source must be a string, got {type(source).__name__}")

    init_stdlib()
    names = frozenset(scope_names)
    key = cache_key(source, names)

    cached = _CACHE.get(key)
    if cached is not None and not _stale_globals(cached):
        logger.debug("lambda cache hit for %r", source)
        return cached

    compiled = _compile(source, names)
    _CACHE.put(key, compiled)
    logger.debug("compiled %r as %s lambda with params %s", source, compiled.form, compiled.params)
    return compiled

def _stale_globals(compiled: CompiledLambda) -> bool:
    """An implicit parameter that has since been registered as a global."""
    return compiled.form == "implicit" and any(p in Builtins.globals for p in compiled.params)

def to_function(spec: Any) -> Callable[..., Any]:
    """Coerce a callback argument (callable or lambda source) into a callable."""
    if callable(spec):
        return spec

    if isinstance(spec, str):
        return compile_lambda(spec)

    raise CompileError(f"Expected a function or lambda source, got {type(spec).__name__}")

# ---------------- Form resolution ----------------

def _compile(source: str, scope_names: FrozenSet[str]) -> CompiledLambda:
    tokens = tokenize(source)

    if tokens[0].type == TT.EOF:
        raise ParseError("Empty lambda source", tokens[0])

    arrow_idx = _find_arrow(tokens)
    if arrow_idx is not None:
        params, body = _parse_arrow(tokens, arrow_idx)
        return CompiledLambda(source, tuple(str(p) for p in params), body, "arrow")

    if _uses_placeholder(tokens):
        return CompiledLambda(source, (PLACEHOLDER,), parse_body(tokens), "placeholder")

    sectioned = _section_tokens(tokens)
    if sectioned is not None:
        params, section_tokens = sectioned
        return CompiledLambda(source, params, parse_body(section_tokens), "section")

    body = parse_body(tokens)
    return CompiledLambda(source, _infer_params(body, scope_names), body, "implicit")

def _find_arrow(tokens: List[Tok]) -> Optional[int]:
    for idx, tok in enumerate(tokens):
        if tok.type == TT.ARROW:
            return idx

    return None

def _parse_arrow(tokens: List[Tok], arrow_idx: int) -> Tuple[List[Token], Node]:
    eof = tokens[-1]
    params = parse_params(tokens[:arrow_idx] + [eof])
    body_tokens = tokens[arrow_idx + 1:]

    if body_tokens[0].type == TT.EOF:
        raise ParseError("Arrow lambda has an empty body", body_tokens[0])

    inner_idx = _find_arrow(body_tokens)
    if inner_idx is None:
        return params, parse_body(body_tokens)

    # curried: 'x -> y -> x + y'
    inner_params, inner_body = _parse_arrow(body_tokens, inner_idx)
    return params, Tree('arrow', [Tree('paramlist', inner_params), inner_body])

def _uses_placeholder(tokens: List[Tok]) -> bool:
    for idx, tok in enumerate(tokens):
        if tok.type != TT.IDENT or tok.value != PLACEHOLDER:
            continue

        if idx > 0 and tokens[idx - 1].type == TT.DOT:
            continue

        return True

    return False

def _section_tokens(tokens: List[Tok]) -> Optional[Tuple[Tuple[str, ...], List[Tok]]]:
    first = tokens[0]
    last = tokens[-2] if len(tokens) > 1 else first
    left = first.type in LEFT_SECTION_TYPES
    right = last.type in RIGHT_SECTION_TYPES

    if not left and not right:
        return None

    body = list(tokens[:-1])
    params: Tuple[str, ...]

    if left and right:
        params = (SECTION_LEFT, SECTION_RIGHT)
        body.insert(0, Tok(TT.IDENT, SECTION_LEFT, first.line, first.column))
        body.append(Tok(TT.IDENT, SECTION_RIGHT, last.line, last.column))
    elif left:
        params = (SECTION_LEFT,)
        body.insert(0, Tok(TT.IDENT, SECTION_LEFT, first.line, first.column))
    else:
        params = (SECTION_LEFT,)
        body.append(Tok(TT.IDENT, SECTION_LEFT, last.line, last.column))

    body.append(tokens[-1])
    return params, body

def _infer_params(body: Node, scope_names: FrozenSet[str]) -> Tuple[str, ...]:
    names: List[str] = []

    for tok in iter_free_idents(body):
        name = str(tok.value)

        if name in names or name in scope_names or name in Builtins.globals:
            continue
        names.append(name)

    return tuple(names)
