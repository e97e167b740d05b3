from __future__ import annotations

from typing import Callable, List, Optional

from ..errors import (
    ArityMismatch,
    IndexOutOfRange,
    MissingMember,
    NotFieldAccessible,
    NotIndexable,
    Pos,
    UnknownMethod,
)
from ..nodes import Array, Expr, Float, Int, MemberAccess, NamedTuple, Object, Struct, Tuple, kind_name
from ..scope import Scope
from .ops import FLOAT_METHODS, INT_METHODS

EvalFunc = Callable[[Expr, Scope], Expr]


def eval_member_access(node: MemberAccess, scope: Scope, eval_func: EvalFunc) -> Expr:
    value = eval_func(node.subject, scope)

    for acc in node.accessors:
        if acc.is_call:
            args = [eval_func(arg, scope) for arg in acc.args or []]
            value = call_method(value, acc.name, args, pos=node.pos)
        else:
            value = get_member(value, acc.name)

    return value


def get_member(value: Expr, name: str) -> Expr:
    if name.isdigit():
        return _get_index(value, int(name))

    match value:
        case Struct(_, fields) | Object(fields):
            for f in fields:
                if f.name == name:
                    return f.value
            raise MissingMember(name)
        case _:
            raise NotFieldAccessible(kind_name(value), name)


def _get_index(value: Expr, index: int) -> Expr:
    match value:
        case Array(items) | Tuple(items) | NamedTuple(_, items):
            if index >= len(items):
                raise IndexOutOfRange(index, len(items))
            return items[index]
        case _:
            raise NotIndexable(kind_name(value))


def call_method(value: Expr, name: str, args: List[Expr], pos: Optional[Pos] = None) -> Expr:
    match value:
        case Float(v) if name in FLOAT_METHODS:
            method = FLOAT_METHODS[name]
        case Int(v) if name in INT_METHODS:
            method = INT_METHODS[name]
        case _:
            raise UnknownMethod(kind_name(value), name)

    if args:
        raise ArityMismatch(0, len(args), name)

    return method(v, pos)
