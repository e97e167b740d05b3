from __future__ import annotations

from typing import Callable, Iterable

from ..errors import TypeMismatch, Unmatched
from ..nodes import (
    Block, Bool, CondLet, Expr, ExprStmt, FnDef, IfChain, Let, Match, Statement, Unit,
    kind_name, render,
)
from ..scope import Scope
from .patterns import bind_captures, match_pattern

EvalFunc = Callable[[Expr, Scope], Expr]


def exec_statement(stmt: Statement, scope: Scope, eval_func: EvalFunc) -> None:
    match stmt:
        case Let(name, value):
            scope.bind_variable(name, eval_func(value, scope))
        case ExprStmt(value):
            eval_func(value, scope)
        case FnDef(name, params, body):
            scope.define_function(name, params, body)
        case _:
            raise TypeError(f"Not a statement: {stmt!r}")


def exec_statements(statements: Iterable[Statement], scope: Scope, eval_func: EvalFunc) -> Scope:
    for stmt in statements:
        exec_statement(stmt, scope, eval_func)

    return scope


def eval_block(node: Block, scope: Scope, eval_func: EvalFunc) -> Expr:
    frame = scope.child()
    exec_statements(node.statements, frame, eval_func)

    return eval_func(node.result, frame)


def eval_if_chain(node: IfChain, scope: Scope, eval_func: EvalFunc) -> Expr:
    for branch in node.branches:
        cond = branch.cond

        if isinstance(cond, CondLet):
            value = eval_func(cond.value, scope)
            bindings = match_pattern(cond.pattern, value)
            if bindings is None:
                continue
            return eval_func(branch.body, bind_captures(scope, bindings))

        value = eval_func(cond.value, scope)
        if not isinstance(value, Bool):
            raise TypeMismatch("branch on", kind_name(value))
        if value.value:
            return eval_func(branch.body, scope)

    if node.otherwise is not None:
        return eval_func(node.otherwise, scope)

    return Unit(pos=node.pos)


def eval_match(node: Match, scope: Scope, eval_func: EvalFunc) -> Expr:
    value = eval_func(node.scrutinee, scope)

    for arm in node.arms:
        bindings = match_pattern(arm.pattern, value)
        if bindings is not None:
            return eval_func(arm.body, bind_captures(scope, bindings))

    raise Unmatched(render(value))
