from __future__ import annotations

import logging
import sys
import traceback
from typing import Any, List, Optional

from .combinators import K, T
from .evaluator import eval_expr
from .parser_rd import parse_expr_fragment
from .runtime import CompileError, EvaluationError, Frame, LambdaError, init_stdlib
from .utils import configure_logging, debug_py_trace_enabled

logger = logging.getLogger(__name__)

USAGE = "usage: ktlambda [--k] [--log-level LEVEL] SPEC [RECEIVER] [ARG ...]"


def parse_literal(text: str) -> Any:
    """
    Read a CLI/REPL value.
    - Anything the expression parser accepts and evaluates without free names.
    - Otherwise the raw text, as a string.
    """
    try:
        ast = parse_expr_fragment(text)
        return eval_expr(ast, Frame(source=text), source=text)
    except (CompileError, EvaluationError):
        return text


def run(spec: str, receiver: Any = None, args: Optional[List[Any]] = None, keep: bool = False) -> Any:
    init_stdlib()
    apply = K if keep else T
    return apply(receiver, spec, *(args or []))


def render(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return repr(value)


def report_error(exc: LambdaError) -> None:
    print(f"Error: {exc}", file=sys.stderr)

    if debug_py_trace_enabled():
        print("\nPython traceback:", file=sys.stderr)
        print("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), file=sys.stderr, end="")


def main(argv: Optional[List[str]] = None) -> int:
    keep = False
    log_level: Optional[str] = None
    positional: List[str] = []
    it = iter(sys.argv[1:] if argv is None else argv)

    for token in it:
        if positional:
            # everything after SPEC is a value, even if it looks like a flag
            positional.append(token)
            continue

        if token == "--k":
            keep = True
            continue

        if token.startswith("--log-level="):
            log_level = token.split("=", 1)[1]
            continue

        if token == "--log-level":
            try:
                log_level = next(it)
            except StopIteration:
                raise SystemExit("--log-level flag requires a level") from None
            continue

        if token in ("-h", "--help"):
            print(USAGE)
            return 0

        positional.append(token)

    try:
        configure_logging(log_level)
    except ValueError as exc:
        raise SystemExit(str(exc)) from None

    if not positional:
        from .repl import repl  # prompt_toolkit is only needed interactively

        repl()
        return 0

    spec, *rest = positional
    receiver = parse_literal(rest[0]) if rest else None
    args = [parse_literal(arg) for arg in rest[1:]]
    logger.debug("cli spec=%r receiver=%r args=%r keep=%s", spec, receiver, args, keep)

    try:
        result = run(spec, receiver, args, keep=keep)
    except LambdaError as exc:
        report_error(exc)
        return 1

    print(render(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
