from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from lark import Token

from .runtime import EvaluationError, Frame, active_scope
from .tree import Node, Tree, is_token, node_meta, tree_children

from .eval.chains import eval_chain
from .eval.common import token_number, token_string
from .eval.expr import (
    eval_array,
    eval_binary,
    eval_logical,
    eval_nullish,
    eval_ternary,
    eval_unary,
)

EvalFunc = Callable[[Node, Frame], Any]


def _maybe_attach_location(exc: EvaluationError, node: Node) -> None:
    if getattr(exc, "_augmented", False):
        return

    meta = node_meta(node)

    if meta is not None:
        exc.kt_meta = meta
        exc._augmented = True  # type: ignore[attr-defined]

# ---------------- Public API ----------------

def eval_expr(ast: Node, frame: Optional[Frame]=None, source: Optional[str]=None) -> Any:
    if frame is None:
        frame = Frame(source=source)
    elif source is not None:
        frame.source = source

    return eval_node(ast, frame)

# ---------------- Core evaluator ----------------

def eval_node(n: Node, frame: Frame) -> Any:
    try:
        return _eval_node_inner(n, frame)
    except EvaluationError as e:
        _maybe_attach_location(e, n)
        raise


def _eval_node_inner(n: Node, frame: Frame) -> Any:
    if is_token(n):
        return _eval_token(n, frame)

    handler = _NODE_DISPATCH.get(n.data)
    if handler is not None:
        return handler(n, frame)

    raise EvaluationError(f"Unsupported node type: {n.data}")


def _eval_token(t: Token, frame: Frame) -> Any:
    match t.type:
        case 'NUMBER':
            return token_number(t)
        case 'STRING':
            return token_string(t)
        case 'TRUE':
            return True
        case 'FALSE':
            return False
        case 'NULL' | 'UNDEFINED':
            return None
        case 'IDENT':
            return frame.get(str(t.value))
        case _:
            raise EvaluationError(f"Unhandled token {t.type}:{t.value}")


def make_closure(params: List[str], body: Node, frame: Frame) -> Callable[..., Any]:
    """Python callable for a nested arrow; binds positionally, missing args are None."""

    def closure(*args: Any) -> Any:
        callee_frame = Frame(parent=frame)

        for idx, name in enumerate(params):
            callee_frame.define(name, args[idx] if idx < len(args) else None)

        with active_scope(callee_frame.scope):
            return eval_node(body, callee_frame)

    closure.__name__ = "arrow"
    closure.__qualname__ = f"arrow({', '.join(params)})"
    return closure


def _eval_arrow(n: Tree, frame: Frame) -> Any:
    paramlist, body = n.children
    params = [str(tok.value) for tok in tree_children(paramlist)]
    return make_closure(params, body, frame)


_NODE_DISPATCH: Dict[str, Callable[[Tree, Frame], Any]] = {
    'ternary': lambda n, frame: eval_ternary(n, frame, eval_node),
    'nullish': lambda n, frame: eval_nullish(n, frame, eval_node),
    'or': lambda n, frame: eval_logical(n, frame, eval_node),
    'and': lambda n, frame: eval_logical(n, frame, eval_node),
    'compare': lambda n, frame: eval_binary(n, frame, eval_node),
    'add': lambda n, frame: eval_binary(n, frame, eval_node),
    'mul': lambda n, frame: eval_binary(n, frame, eval_node),
    'pow': lambda n, frame: eval_binary(n, frame, eval_node),
    'unary': lambda n, frame: eval_unary(n, frame, eval_node),
    'chain': lambda n, frame: eval_chain(n, frame, eval_node),
    'array': lambda n, frame: eval_array(n.children, frame, eval_node),
    'arrow': _eval_arrow,
}
