from __future__ import annotations

import math
from typing import Callable, List, Optional

from ..errors import DivisionByZero, IntegerOverflow, Pos, TypeMismatch
from ..nodes import (
    Array, BinOp, Bool, Cast, Expr, Field, Float, Int, NamedTuple, Object, Option, Struct, Tuple,
    kind_name,
)
from ..scope import Scope
from ..utils import I32_MAX, I32_MIN, float_div, int_div, to_f32, to_i32

EvalFunc = Callable[[Expr, Scope], Expr]

_ACTIONS = {
    "+": "add",
    "-": "subtract",
    "*": "multiply",
    "/": "divide",
    "<": "compare",
    ">": "compare",
}


def eval_binop(node: BinOp, scope: Scope, eval_func: EvalFunc) -> Expr:
    lhs = eval_func(node.lhs, scope)
    rhs = eval_func(node.rhs, scope)

    return apply_binary_operator(node.op, lhs, rhs, pos=node.pos)


def apply_binary_operator(op: str, lhs: Expr, rhs: Expr, pos: Optional[Pos] = None) -> Expr:
    if op == "==":
        return Bool(values_equal(lhs, rhs), pos=pos)
    if op == "!=":
        return Bool(not values_equal(lhs, rhs), pos=pos)

    match lhs, rhs:
        case Int(a), Int(b):
            return _int_op(op, a, b, pos)
        case Float(a), Float(b):
            return _float_op(op, a, b, pos)

    raise TypeMismatch(_ACTIONS[op], kind_name(lhs), kind_name(rhs))


def values_equal(lhs: Expr, rhs: Expr) -> bool:
    """Structural equality of reduced values; floats compare by IEEE rules."""
    match lhs, rhs:
        case Float(a), Float(b):
            return a == b
        case (Array(xs), Array(ys)) | (Tuple(xs), Tuple(ys)):
            return _all_equal(xs, ys)
        case NamedTuple(n, xs), NamedTuple(m, ys):
            return n == m and _all_equal(xs, ys)
        case Object(fs), Object(gs):
            return _fields_equal(fs, gs)
        case Struct(n, fs), Struct(m, gs):
            return n == m and _fields_equal(fs, gs)
        case Option(None), Option(None):
            return True
        case Option(x), Option(y) if x is not None and y is not None:
            return values_equal(x, y)

    return type(lhs) is type(rhs) and lhs == rhs


def _all_equal(xs: List[Expr], ys: List[Expr]) -> bool:
    return len(xs) == len(ys) and all(values_equal(x, y) for x, y in zip(xs, ys))


def _fields_equal(fs: List[Field], gs: List[Field]) -> bool:
    if len(fs) != len(gs):
        return False

    return all(f.name == g.name and values_equal(f.value, g.value) for f, g in zip(fs, gs))


def _checked(value: int, op: str, pos: Optional[Pos]) -> Int:
    if not I32_MIN <= value <= I32_MAX:
        raise IntegerOverflow(_ACTIONS[op], value)

    return Int(value, pos=pos)


def _int_op(op: str, a: int, b: int, pos: Optional[Pos] = None) -> Expr:
    match op:
        case "+":
            return _checked(a + b, op, pos)
        case "-":
            return _checked(a - b, op, pos)
        case "*":
            return _checked(a * b, op, pos)
        case "/":
            if b == 0:
                raise DivisionByZero()
            return _checked(int_div(a, b), op, pos)
        case "<":
            return Bool(a < b, pos=pos)
        case ">":
            return Bool(a > b, pos=pos)

    raise ValueError(f"Unknown operator {op}")


def _float_op(op: str, a: float, b: float, pos: Optional[Pos] = None) -> Expr:
    match op:
        case "+":
            return Float(a + b, pos=pos)
        case "-":
            return Float(a - b, pos=pos)
        case "*":
            return Float(a * b, pos=pos)
        case "/":
            return Float(float_div(a, b), pos=pos)
        case "<":
            return Bool(a < b, pos=pos)
        case ">":
            return Bool(a > b, pos=pos)

    raise ValueError(f"Unknown operator {op}")


def eval_cast(node: Cast, scope: Scope, eval_func: EvalFunc) -> Expr:
    return apply_cast(eval_func(node.value, scope), node.target, pos=node.pos)


def apply_cast(value: Expr, target: str, pos: Optional[Pos] = None) -> Expr:
    match value, target:
        case Int(v), "i32":
            return Int(v, pos=pos)
        case Int(v), "f32":
            return Float(to_f32(float(v)), pos=pos)
        case Float(v), "i32":
            return Int(to_i32(v), pos=pos)
        case Float(v), "f32":
            return Float(to_f32(v), pos=pos)

    raise TypeMismatch("cast", kind_name(value), target)


# ---------- Builtin numeric methods ----------

FLOAT_METHODS: dict[str, Callable[[float, Optional[Pos]], Expr]] = {
    "sin": lambda v, pos: Float(math.sin(v), pos=pos),
    "cos": lambda v, pos: Float(math.cos(v), pos=pos),
    "tan": lambda v, pos: Float(math.tan(v), pos=pos),
    "abs": lambda v, pos: Float(abs(v), pos=pos),
    "to_int": lambda v, pos: Int(to_i32(v), pos=pos),
}

INT_METHODS: dict[str, Callable[[int, Optional[Pos]], Expr]] = {
    "to_float": lambda v, pos: Float(to_f32(float(v)), pos=pos),
}
