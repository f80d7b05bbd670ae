from __future__ import annotations

from typing import Any, Callable, List

from lark import Tree

from ..host import get_default_host
from ..runtime import EvalTypeError, EvaluationError, Frame, MemberNotFound
from ..tree import tree_children
from .common import is_number
from .helpers import type_name

EvalFunc = Callable[[Any, Frame], Any]

def eval_args_node(args_node: Tree, frame: Frame, eval_func: EvalFunc) -> List[Any]:
    return [eval_func(arg, frame) for arg in tree_children(args_node)]

def eval_chain(n: Tree, frame: Frame, eval_func: EvalFunc) -> Any:
    head, *ops = n.children
    current = eval_func(head, frame)

    for op in ops:
        current = apply_op(current, op, frame, eval_func)

    return current

def apply_op(recv: Any, op: Tree, frame: Frame, eval_func: EvalFunc) -> Any:
    d = op.data

    if d == 'field':
        return get_field_value(recv, str(op.children[0]), frame)
    if d == 'method':
        name_tok, args_node = op.children
        args = eval_args_node(args_node, frame, eval_func)
        return call_method(recv, str(name_tok), args, frame)
    if d == 'index':
        idx_val = eval_func(op.children[0], frame)
        return index_value(recv, idx_val)
    if d == 'call':
        args = eval_args_node(op.children[0], frame, eval_func)
        return call_value(recv, args)

    raise EvaluationError(f"Unknown chain op: {d}")

def _host(frame: Frame):
    return frame.host if frame.host is not None else get_default_host()

def get_field_value(recv: Any, name: str, frame: Frame) -> Any:
    member = _host(frame).find_member(recv, name)

    if member is None:
        raise MemberNotFound(recv, name)

    return member.read()

def call_method(recv: Any, name: str, args: List[Any], frame: Frame) -> Any:
    member = _host(frame).find_member(recv, name)

    if member is None:
        raise MemberNotFound(recv, name)

    if not member.is_callable:
        raise EvalTypeError(f"Member '{name}' of {type_name(recv)} is not callable")

    return member.invoke(args)

def index_value(recv: Any, idx: Any) -> Any:
    if is_number(idx) and isinstance(idx, float) and idx.is_integer():
        idx = int(idx)

    try:
        return recv[idx]
    except (IndexError, KeyError):
        # out-of-range reads are undefined, not errors
        return None
    except TypeError as exc:
        raise EvalTypeError(f"Cannot index {type_name(recv)} with {type_name(idx)}") from exc

def call_value(cal: Any, args: List[Any]) -> Any:
    if not callable(cal):
        raise EvalTypeError(f"Cannot call value of type {type_name(cal)}")

    return cal(*args)
