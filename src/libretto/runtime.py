"""Host-facing entry points: load scripts, inject values, pull typed results."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional, Union

from .builder import build_program, process_expr
from .decode import decode
from .encode import encode
from .errors import LoadError, ParseError, Pos
from .evaluator import evaluate, execute
from .nodes import Accessor, Expr, Ident, MemberAccess
from .scope import Scope

logger: logging.Logger = logging.getLogger(__name__)


def load(text: str, scope: Optional[Scope] = None) -> Scope:
    """Run the statements of *text* in a fresh top-level scope and return it.

    Pass *scope* to run them somewhere else, for example a scope the host
    has already populated with ``bind``.
    """
    statements = build_program(text)
    if scope is None:
        scope = Scope()

    logger.debug("loading %d statement(s)", len(statements))
    return execute(statements, scope)


def read_script(path: Union[str, Path]) -> str:
    """UTF-8 text of *path*; I/O and encoding failures become library errors."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise LoadError(path, exc.strerror or str(exc)) from exc

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        line = data.count(b"\n", 0, exc.start) + 1
        column = exc.start - (data.rfind(b"\n", 0, exc.start) + 1) + 1
        raise ParseError(
            f"Invalid UTF-8 in {path} at byte {exc.start}",
            Pos(line, column),
        ) from exc


def load_file(path: Union[str, Path], scope: Optional[Scope] = None) -> Scope:
    logger.debug("loading script %s", path)

    return load(read_script(path), scope)


def eval_expr(text: str, scope: Optional[Scope] = None) -> Expr:
    """Evaluate *text* (statements followed by a result value)."""
    block = process_expr(text)
    if scope is None:
        scope = Scope()

    return evaluate(block, scope)


def bind(scope: Scope, name: str, value: Any) -> None:
    """Expose a Python value to scripts evaluated in *scope*."""
    scope.bind_variable(name, encode(value))


def parse_path(path: str) -> Expr:
    """Turn ``name.field.0`` into the expression that reads it."""
    head, *rest = path.split(".")
    if not head.isidentifier() or not all(part.isidentifier() or part.isdigit() for part in rest):
        raise ParseError(f"Invalid binding path {path!r}")

    if not rest:
        return Ident(head)

    return MemberAccess(Ident(head), [Accessor(part) for part in rest])


def decode_binding(scope: Scope, path: str, target: Any = Any) -> Any:
    """Evaluate the binding at *path* in *scope* and decode it into *target*."""
    return decode(evaluate(parse_path(path), scope), target)


def call_function(scope: Scope, name: str, *args: Any, returns: Any = Any) -> Any:
    """Call the script function *name* with encoded *args*; decode the result."""
    encoded: List[Expr] = [encode(arg) for arg in args]

    return decode(scope.call_function(name, encoded), returns)
