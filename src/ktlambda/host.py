"""Host member capability: "does this receiver have a member with this name,
is it callable, and call it".

The invoker and the evaluator never introspect receivers themselves; they
go through a MemberHost. PythonHost is the default and understands plain
Python objects, mappings, and the extension members registered in
ktlambda.stdlib (or by the embedding program).
"""

from __future__ import annotations

import functools
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from typing_extensions import Protocol

from .runtime import init_stdlib, lookup_ext_member


@dataclass(frozen=True)
class Member:
    name: str
    value: Any
    is_callable: bool

    def read(self) -> Any:
        return self.value

    def invoke(self, args: Sequence[Any]) -> Any:
        return self.value(*args)


class MemberHost(Protocol):
    def find_member(self, receiver: Any, name: str) -> Optional[Member]: ...


def _is_dunder(name: str) -> bool:
    return name.startswith('__') and name.endswith('__')


class PythonHost:
    """Resolve members as registered extensions, then mapping keys, then attributes."""

    def find_member(self, receiver: Any, name: str) -> Optional[Member]:
        # registered members must be in place before the first lookup
        init_stdlib()

        ext = lookup_ext_member(receiver, name)
        if ext is not None:
            if ext.is_property:
                return Member(name, ext.fn(receiver), False)
            return Member(name, functools.partial(ext.fn, receiver), True)

        if isinstance(receiver, Mapping) and name in receiver:
            value = receiver[name]
            return Member(name, value, callable(value))

        if not name.isidentifier() or _is_dunder(name):
            return None

        try:
            value = getattr(receiver, name)
        except AttributeError:
            return None

        return Member(name, value, callable(value))


_default_host: MemberHost = PythonHost()

def get_default_host() -> MemberHost:
    return _default_host

def set_default_host(host: MemberHost) -> MemberHost:
    """Swap the process-wide host; returns the previous one."""
    global _default_host

    previous = _default_host
    _default_host = host
    return previous
