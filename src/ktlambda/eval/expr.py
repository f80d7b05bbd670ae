from __future__ import annotations

import math
from typing import Any, Callable, List

from lark import Token

from ..runtime import EvalTypeError, EvaluationError, Frame
from ..tree import Node, Tree
from .common import is_number, require_number, stringify
from .helpers import is_truthy, type_name

EvalFunc = Callable[[Node, Frame], Any]

def as_op(x: Node) -> str:
    if isinstance(x, Token) and x.type == 'OP':
        return str(x.value)

    raise EvaluationError(f"Expected operator token, got {x!r}")

def eval_binary(n: Tree, frame: Frame, eval_func: EvalFunc) -> Any:
    lhs_node, op_node, rhs_node = n.children
    op = as_op(op_node)
    lhs = eval_func(lhs_node, frame)
    rhs = eval_func(rhs_node, frame)

    if n.data == 'compare':
        return compare_values(op, lhs, rhs)

    return apply_binary_operator(op, lhs, rhs)

def eval_unary(n: Tree, frame: Frame, eval_func: EvalFunc) -> Any:
    op_node, rhs_node = n.children
    op = as_op(op_node)
    rhs = eval_func(rhs_node, frame)

    match op:
        case '!':
            return not is_truthy(rhs)
        case '-':
            require_number(rhs, '-')
            return -rhs
        case '+':
            require_number(rhs, '+')
            return rhs
        case _:
            raise EvaluationError(f"Unsupported unary op {op}")

def eval_logical(n: Tree, frame: Frame, eval_func: EvalFunc) -> Any:
    lhs_node, rhs_node = n.children
    lhs = eval_func(lhs_node, frame)

    if n.data == 'and':
        return eval_func(rhs_node, frame) if is_truthy(lhs) else lhs

    return lhs if is_truthy(lhs) else eval_func(rhs_node, frame)

def eval_nullish(n: Tree, frame: Frame, eval_func: EvalFunc) -> Any:
    lhs_node, rhs_node = n.children
    lhs = eval_func(lhs_node, frame)

    if lhs is not None:
        return lhs

    return eval_func(rhs_node, frame)

def eval_ternary(n: Tree, frame: Frame, eval_func: EvalFunc) -> Any:
    if len(n.children) != 3:
        raise EvaluationError("Malformed ternary expression")

    cond_node, true_node, false_node = n.children
    cond_val = eval_func(cond_node, frame)

    if is_truthy(cond_val):
        return eval_func(true_node, frame)

    return eval_func(false_node, frame)

def eval_array(children: List[Node], frame: Frame, eval_func: EvalFunc) -> List[Any]:
    return [eval_func(child, frame) for child in children]

def apply_binary_operator(op: str, lhs: Any, rhs: Any) -> Any:
    match op:
        case '+':
            if isinstance(lhs, str) or isinstance(rhs, str):
                return stringify(lhs) + stringify(rhs)
            if isinstance(lhs, list) and isinstance(rhs, list):
                return lhs + rhs
            require_number(lhs, op); require_number(rhs, op)
            return lhs + rhs
        case '-':
            require_number(lhs, op); require_number(rhs, op)
            return lhs - rhs
        case '*':
            require_number(lhs, op); require_number(rhs, op)
            return lhs * rhs
        case '/':
            require_number(lhs, op); require_number(rhs, op)
            if rhs == 0:
                raise EvaluationError("Division by zero")
            return lhs / rhs
        case '%':
            require_number(lhs, op); require_number(rhs, op)
            if rhs == 0:
                raise EvaluationError("Modulo by zero")
            # remainder takes the sign of the dividend
            result = math.fmod(lhs, rhs)
            return int(result) if isinstance(lhs, int) and isinstance(rhs, int) else result
        case '**':
            require_number(lhs, op); require_number(rhs, op)
            return lhs ** rhs
    raise EvaluationError(f"Unknown operator {op}")

def compare_values(op: str, lhs: Any, rhs: Any) -> bool:
    match op:
        case '==':
            return lhs == rhs
        case '!=':
            return lhs != rhs
        case '===':
            return strict_equals(lhs, rhs)
        case '!==':
            return not strict_equals(lhs, rhs)
        case '<' | '<=' | '>' | '>=':
            return _ordered(op, lhs, rhs)
        case 'in':
            try:
                return lhs in rhs
            except TypeError as exc:
                raise EvalTypeError(f"Unsupported container type for 'in': {type_name(rhs)}") from exc
        case _:
            raise EvaluationError(f"Unknown comparator {op}")

def strict_equals(lhs: Any, rhs: Any) -> bool:
    if is_number(lhs) and is_number(rhs):
        return lhs == rhs

    return type(lhs) is type(rhs) and lhs == rhs

def _ordered(op: str, lhs: Any, rhs: Any) -> bool:
    comparable = (is_number(lhs) and is_number(rhs)) or (isinstance(lhs, str) and isinstance(rhs, str))
    if not comparable:
        raise EvalTypeError(f"Cannot compare {type_name(lhs)} {op} {type_name(rhs)}")

    match op:
        case '<':
            return lhs < rhs
        case '<=':
            return lhs <= rhs
        case '>':
            return lhs > rhs
        case _:
            return lhs >= rhs
