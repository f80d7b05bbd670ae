from __future__ import annotations

import importlib
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Mapping, Optional

_STDLIB_INITIALIZED = False

def init_stdlib() -> None:
    """Load the stdlib member set (idempotent) so its register_* hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module("ktlambda.stdlib")
    _STDLIB_INITIALIZED = True

# ---------- Exceptions ----------

class LambdaError(Exception):
    """Root of every error raised by ktlambda itself."""

class CompileError(LambdaError):
    pass

class InvocationError(LambdaError):
    def __init__(self, message: str, receiver: Any = None, spec: Any = None):
        super().__init__(message)
        self.receiver = receiver
        self.spec = spec

class EvaluationError(LambdaError):
    kt_meta: Optional[object]

    def __init__(self, message: str):
        super().__init__(message)
        self.kt_meta = None

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        msg = super().__str__()

        meta = getattr(self, "kt_meta", None)
        if meta is None:
            return msg

        line = getattr(meta, "line", None)
        col = getattr(meta, "column", None)

        if line is None:
            return msg

        if col is None:
            return f"{msg} (line {line})"

        return f"{msg} (line {line}, col {col})"

class UnresolvedName(EvaluationError):
    def __init__(self, name: str):
        super().__init__(f"Name '{name}' not found")
        self.name = name

class MemberNotFound(EvaluationError):
    def __init__(self, recv: Any, name: str):
        super().__init__(f"{type(recv).__name__} has no member '{name}'")
        self.receiver = recv
        self.name = name

class EvalTypeError(EvaluationError):
    pass

# ---------- Registries ----------

@dataclass(frozen=True)
class ExtMember:
    """Member grafted onto a host type: fn(recv, *args), or fn(recv) for properties."""
    fn: Callable[..., Any]
    is_property: bool = False

MemberRegistry = Dict[str, ExtMember]

class Builtins:
    members: Dict[type, MemberRegistry] = {}
    globals: Dict[str, Any] = {}

def register_member(owner: type, name: str):
    def dec(fn: Callable[..., Any]):
        Builtins.members.setdefault(owner, {})[name] = ExtMember(fn=fn)
        return fn

    return dec

def register_property(owner: type, name: str):
    def dec(fn: Callable[[Any], Any]):
        Builtins.members.setdefault(owner, {})[name] = ExtMember(fn=fn, is_property=True)
        return fn

    return dec

_UNSET = object()

def register_global(name: str, value: Any = _UNSET):
    """Bind a host global. Usable directly or as a decorator."""
    if value is not _UNSET:
        Builtins.globals[name] = value
        return value

    def dec(fn: Any):
        Builtins.globals[name] = fn
        return fn

    return dec

def lookup_ext_member(recv: Any, name: str) -> Optional[ExtMember]:
    for klass in type(recv).__mro__:
        registry = Builtins.members.get(klass)
        if registry and name in registry:
            return registry[name]

    return None

# ---------- Binding environment ----------

class Frame:
    """Name bindings for one lambda activation.

    The root frame resolves names that are not bound locally against the
    caller-supplied scope mapping, then against host globals.
    """

    def __init__(self, parent: Optional['Frame'] = None, scope: Optional[Mapping[str, Any]] = None,
                 host: Any = None, source: Optional[str] = None):
        self.parent = parent
        self.vars: Dict[str, Any] = {}
        if scope is None:
            scope = parent.scope if parent is not None else {}
        self.scope: Mapping[str, Any] = scope
        self.source: Optional[str]

        if host is None and parent is not None:
            host = parent.host
        self.host = host

        if source is not None:
            self.source = source
        elif parent is not None:
            self.source = parent.source
        else:
            self.source = None

    def define(self, name: str, val: Any) -> None:
        self.vars[name] = val

    def get(self, name: str) -> Any:
        if name in self.vars:
            return self.vars[name]

        if self.parent is not None:
            return self.parent.get(name)

        if name in self.scope:
            return self.scope[name]

        if name in Builtins.globals:
            return Builtins.globals[name]

        raise UnresolvedName(name)

# ---------- Caller scope ----------

# Scope of the innermost invocation, so stdlib callbacks see the same outer names.
_ACTIVE_SCOPE: ContextVar[Optional[Mapping[str, Any]]] = ContextVar("ktlambda_active_scope", default=None)

def current_scope() -> Optional[Mapping[str, Any]]:
    return _ACTIVE_SCOPE.get()

@contextmanager
def active_scope(scope: Optional[Mapping[str, Any]]) -> Iterator[None]:
    token = _ACTIVE_SCOPE.set(scope)

    try:
        yield
    finally:
        _ACTIVE_SCOPE.reset(token)
