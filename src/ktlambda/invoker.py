from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from .compiler import compile_lambda
from .host import MemberHost, get_default_host
from .runtime import CompileError, InvocationError, active_scope

logger = logging.getLogger(__name__)


def invoke(receiver: Any, spec: Any, args: Sequence[Any] = (), *,
           scope: Optional[Mapping[str, Any]] = None, host: Optional[MemberHost] = None) -> Any:
    """Run spec against receiver exactly once.

    Callables are called as spec(receiver, *args). A string is first looked
    up as a member of the receiver; only when no such member exists is it
    compiled as a string lambda.
    """
    args = tuple(args)

    if callable(spec):
        logger.debug("invoking callable %r", spec)
        return spec(receiver, *args)

    if not isinstance(spec, str):
        raise InvocationError(f"Cannot invoke spec of type {type(spec).__name__}", receiver, spec)

    if host is None:
        host = get_default_host()

    member = host.find_member(receiver, spec)

    if member is not None:
        if member.is_callable:
            logger.debug("invoking member %r as method", spec)
            with active_scope(scope):
                return member.invoke(args)

        if args:
            raise InvocationError(
                f"Member '{spec}' is not callable and takes no arguments (got {len(args)})",
                receiver,
                spec,
            )

        logger.debug("reading member %r", spec)
        return member.read()

    try:
        lam = compile_lambda(spec, scope.keys() if scope else ())
    except CompileError as exc:
        raise InvocationError(
            f"'{spec}' is neither a member of {type(receiver).__name__} nor a valid lambda: {exc}",
            receiver,
            spec,
        ) from exc

    logger.debug("invoking %s lambda %r", lam.form, spec)
    return lam(receiver, *args, scope=scope, host=host)
