from __future__ import annotations

import argparse
import logging
import sys
import traceback
from pathlib import Path
from typing import List, Optional, Sequence, Tuple as Pair

from .builder import process_repl
from .errors import LibrettoError
from .evaluator import evaluate, execute
from .nodes import Expr, Float, render
from .parser import parse_source
from .runtime import eval_expr, load, parse_path, read_script
from .scope import PRELUDE, Scope
from .utils import debug_py_trace_enabled, env_log_level


def run(src: str, scope: Optional[Scope] = None) -> Expr:
    """Evaluate *src* as statements followed by a result value."""
    return eval_expr(src, scope)


def repl_eval(text: str, scope: Scope) -> Pair[Optional[Expr], bool]:
    """Run one REPL entry in *scope*; the flag is True when it held no result value."""
    statements, tail = process_repl(text)
    execute(statements, scope)

    if tail is None:
        return None, True

    return evaluate(tail, scope), False


def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    try:
        is_file = candidate.is_file()
    except OSError:
        # literal source too long to be a path
        is_file = False

    if is_file:
        return read_script(candidate)

    return arg


def _is_prelude(name: str, value: Expr) -> bool:
    return name in PRELUDE and value == Float(PRELUDE[name])


def format_bindings(scope: Scope) -> List[str]:
    """Local bindings and functions of *scope*, prelude constants left out."""
    lines = [f"{name} = {render(value)}" for name, value in scope.items() if not _is_prelude(name, value)]
    lines.extend(repr(fn) for fn in scope.functions.values())

    return lines


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="libretto", description="Evaluate libretto scripts")
    ap.add_argument("source", nargs="?", help="Script path or literal source (defaults to stdin)")
    ap.add_argument("--file", action="store_true", help="Treat the source as a statement file and print its bindings")
    ap.add_argument("--binding", metavar="PATH", help="Print one evaluated binding of a statement file")
    ap.add_argument("--call", nargs="+", metavar=("NAME", "ARG"), help="Call a function of a statement file with literal arguments")
    ap.add_argument("--tree", action="store_true", help="Print the parse tree instead of evaluating")
    ap.add_argument("--repl", action="store_true", help="Start the interactive REPL")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return ap


def _run_args(args: argparse.Namespace) -> List[str]:
    source = _load_source(args.source)
    statement_mode = args.file or args.binding or args.call

    if args.tree:
        start = "file" if statement_mode else "expr"
        return [parse_source(source, start).pretty().rstrip()]

    if not statement_mode:
        return [render(run(source))]

    scope = load(source)

    if args.binding:
        return [render(evaluate(parse_path(args.binding), scope))]

    if args.call:
        name, *raw_args = args.call
        values = [eval_expr(raw) for raw in raw_args]
        return [render(scope.call_function(name, values))]

    return format_bindings(scope)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    level = logging.DEBUG if args.verbose else env_log_level()
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.repl:
        from .repl import repl

        repl()
        return 0

    try:
        lines = _run_args(args)
    except LibrettoError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if debug_py_trace_enabled():
            traceback.print_exception(exc, file=sys.stderr)
        return 1

    for line in lines:
        print(line)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
