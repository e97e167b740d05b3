"""Structural pattern matching for `match` arms and `if let` conditions.

A successful match yields the identifiers the pattern captured, mapped to the
matched sub-values. `_` matches anything and captures nothing; `None` and
`Some(p)` also match optional values.
"""

from __future__ import annotations

from typing import Dict, Optional

from ..nodes import (
    AnyPattern,
    ConstPattern,
    Expr,
    IdentPattern,
    NamedTuple,
    Option,
    Pattern,
    Struct,
    StructPattern,
    Tuple,
    TuplePattern,
    TupleStructPattern,
)
from ..scope import Scope
from .ops import values_equal

Bindings = Dict[str, Expr]


def match_pattern(pattern: Pattern, value: Expr) -> Optional[Bindings]:
    bindings: Bindings = {}
    if _match(pattern, value, bindings):
        return bindings

    return None


def _match(pattern: Pattern, value: Expr, bindings: Bindings) -> bool:
    match pattern:
        case AnyPattern():
            return True
        case IdentPattern(name):
            bindings[name] = value
            return True
        case ConstPattern(const):
            return values_equal(const, value)
        case TuplePattern(items):
            if not isinstance(value, Tuple) or len(value.items) != len(items):
                return False
            return all(_match(p, v, bindings) for p, v in zip(items, value.items))
        case TupleStructPattern("None", []) if isinstance(value, Option):
            return value.value is None
        case TupleStructPattern("Some", [inner]) if isinstance(value, Option):
            return value.value is not None and _match(inner, value.value, bindings)
        case TupleStructPattern(name, items):
            if not isinstance(value, NamedTuple) or value.name != name:
                return False
            if len(value.items) != len(items):
                return False
            return all(_match(p, v, bindings) for p, v in zip(items, value.items))
        case StructPattern(name, fields):
            if not isinstance(value, Struct) or value.name != name:
                return False
            stored = {f.name: f.value for f in value.fields}
            for fp in fields:
                if fp.name not in stored or not _match(fp.pattern, stored[fp.name], bindings):
                    return False
            return True

    return False


def bind_captures(scope: Scope, bindings: Bindings) -> Scope:
    """Child scope holding the captured names, or *scope* itself if none."""
    if not bindings:
        return scope

    frame = scope.child()
    for name, value in bindings.items():
        frame.bind_variable(name, value)

    return frame
