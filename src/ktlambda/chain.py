from __future__ import annotations

from typing import Any, Mapping, Optional

from .combinators import K, T


class Wrapper:
    """Fluent holder for one value.

    Outside chaining mode T hands back the raw result. After chain() every
    K/T returns the wrapper, and value() unwraps and leaves chaining mode.
    """

    __slots__ = ("_value", "_chaining", "_scope")

    def __init__(self, value: Any, chaining: bool = False, scope: Optional[Mapping[str, Any]] = None):
        self._value = value
        self._chaining = chaining
        self._scope = scope

    @property
    def chaining(self) -> bool:
        return self._chaining

    def chain(self) -> 'Wrapper':
        self._chaining = True
        return self

    def K(self, spec: Any, *args: Any) -> 'Wrapper':
        self._value = K(self._value, spec, *args, scope=self._scope)
        return self

    def T(self, spec: Any, *args: Any) -> Any:
        result = T(self._value, spec, *args, scope=self._scope)

        if not self._chaining:
            return result

        self._value = result
        return self

    def value(self) -> Any:
        self._chaining = False
        return self._value

    def __repr__(self) -> str:
        mode = "chaining" if self._chaining else "single"
        return f"Wrapper({self._value!r}, {mode})"


def wrap(value: Any, *, scope: Optional[Mapping[str, Any]] = None) -> Wrapper:
    return Wrapper(value, scope=scope)
