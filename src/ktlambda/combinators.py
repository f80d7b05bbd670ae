"""The two combinators, as plain functions over an explicit receiver.

An installer that wants ``obj.K(...)`` style calls binds these itself.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .invoker import invoke


def K(receiver: Any, spec: Any, *args: Any, scope: Optional[Mapping[str, Any]] = None) -> Any:
    """Kestrel: run spec for its effect, return receiver itself."""
    invoke(receiver, spec, args, scope=scope)
    return receiver


def T(receiver: Any, spec: Any, *args: Any, scope: Optional[Mapping[str, Any]] = None) -> Any:
    """Thrush: run spec, return what it returned."""
    return invoke(receiver, spec, args, scope=scope)


kestrel = K
thrush = T
