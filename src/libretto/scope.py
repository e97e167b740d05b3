from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .errors import ArityMismatch, UndefinedFunction
from .nodes import Expr, Float

logger: logging.Logger = logging.getLogger(__name__)

PRELUDE: Dict[str, float] = {
    "pi": math.pi,
    "tau": math.tau,
    "e": math.e,
    "half_pi": math.pi / 2,
}


@dataclass
class Function:
    name: str
    params: List[str]
    body: Expr
    scope: 'Scope'  # defining scope, held by reference

    def __repr__(self) -> str:
        return f"<fn {self.name}({', '.join(self.params)})>"


class Scope:
    """A lexical frame of variable bindings and function definitions.

    Lookups walk the parent chain; writes only touch the local frame.
    """

    def __init__(self, parent: Optional[Scope] = None, *, prelude: bool = True):
        self.parent = parent
        self.vars: Dict[str, Expr] = {}
        self.functions: Dict[str, Function] = {}

        if parent is None and prelude:
            for name, value in PRELUDE.items():
                self.vars[name] = Float(value)

    @classmethod
    def empty(cls) -> Scope:
        return cls(prelude=False)

    def child(self) -> Scope:
        return Scope(parent=self)

    def bind_variable(self, name: str, expr: Expr) -> None:
        self.vars[name] = expr

    def lookup_variable(self, name: str) -> Optional[Expr]:
        scope: Optional[Scope] = self

        while scope is not None:
            if name in scope.vars:
                return scope.vars[name]
            scope = scope.parent

        return None

    def define_function(self, name: str, params: Sequence[str], body: Expr) -> Function:
        fn = Function(name, list(params), body, self)
        self.functions[name] = fn
        return fn

    def lookup_function(self, name: str) -> Optional[Function]:
        scope: Optional[Scope] = self

        while scope is not None:
            if name in scope.functions:
                return scope.functions[name]
            scope = scope.parent

        return None

    def call_function(self, name: str, args: Sequence[Expr]) -> Expr:
        """Call *name* with *args*, evaluating each argument in this scope first."""
        from .evaluator import evaluate

        fn = self.lookup_function(name)
        if fn is None:
            raise UndefinedFunction(name)

        if len(args) != len(fn.params):
            raise ArityMismatch(len(fn.params), len(args), name)

        values = [evaluate(arg, self) for arg in args]
        logger.debug("call %s with %d argument(s)", name, len(values))

        frame = fn.scope.child()
        for param, value in zip(fn.params, values):
            frame.bind_variable(param, value)

        return evaluate(fn.body, frame)

    def items(self) -> Iterator[Tuple[str, Expr]]:
        """Local variable bindings in definition order."""
        return iter(self.vars.items())

    def __contains__(self, name: str) -> bool:
        return self.lookup_variable(name) is not None

    def __repr__(self) -> str:
        depth = 0
        scope = self.parent

        while scope is not None:
            depth += 1
            scope = scope.parent

        return f"<Scope depth={depth} vars={len(self.vars)} fns={len(self.functions)}>"
