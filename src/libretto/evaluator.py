from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Type

from .errors import EvalError, UnboundName
from .eval.access import eval_member_access
from .eval.control import eval_block, eval_if_chain, eval_match, exec_statements
from .eval.ops import eval_binop, eval_cast
from .nodes import (
    Array, BinOp, Block, Bool, Cast, Char, Expr, Field, Float, FnCall, Ident, IfChain, Int,
    Match, MemberAccess, NamedTuple, Object, Option, Statement, String, Struct, Tuple, Unit,
)
from .scope import Scope


def evaluate(expr: Expr, scope: Scope) -> Expr:
    """Reduce *expr* under *scope*.

    Errors are annotated with the position of the innermost node that has one.
    """
    try:
        return _evaluate_inner(expr, scope)
    except EvalError as exc:
        exc.attach(expr.pos)
        raise


def execute(statements: Iterable[Statement], scope: Scope) -> Scope:
    """Run *statements* for effect directly in *scope*."""
    return exec_statements(statements, scope, evaluate)


def _eval_ident(node: Ident, scope: Scope) -> Expr:
    found = scope.lookup_variable(node.name)
    if found is None:
        raise UnboundName(node.name)

    return evaluate(found, scope)


def _eval_fn_call(node: FnCall, scope: Scope) -> Expr:
    return scope.call_function(node.name, node.args)


_NODE_DISPATCH: Dict[Type[Any], Callable[[Any, Scope], Expr]] = {
    Ident: _eval_ident,
    BinOp: lambda n, s: eval_binop(n, s, evaluate),
    Cast: lambda n, s: eval_cast(n, s, evaluate),
    MemberAccess: lambda n, s: eval_member_access(n, s, evaluate),
    Block: lambda n, s: eval_block(n, s, evaluate),
    FnCall: _eval_fn_call,
    IfChain: lambda n, s: eval_if_chain(n, s, evaluate),
    Match: lambda n, s: eval_match(n, s, evaluate),
}


def _evaluate_inner(expr: Expr, scope: Scope) -> Expr:
    handler = _NODE_DISPATCH.get(type(expr))
    if handler is not None:
        return handler(expr, scope)

    pos = expr.pos

    match expr:
        case Float() | Int() | Bool() | Char() | String() | Unit():
            return expr
        case Array(items):
            return Array([evaluate(item, scope) for item in items], pos=pos)
        case Tuple(items):
            return Tuple([evaluate(item, scope) for item in items], pos=pos)
        case NamedTuple(name, items):
            return NamedTuple(name, [evaluate(item, scope) for item in items], pos=pos)
        case Object(fields):
            return Object(_eval_fields(fields, scope), pos=pos)
        case Struct(name, fields):
            return Struct(name, _eval_fields(fields, scope), pos=pos)
        case Option(None):
            return expr
        case Option(value):
            return Option(evaluate(value, scope), pos=pos)
        case _:
            raise TypeError(f"Cannot evaluate {type(expr).__name__}")


def _eval_fields(fields: list[Field], scope: Scope) -> list[Field]:
    return [Field(f.name, evaluate(f.value, scope)) for f in fields]
