from __future__ import annotations

import logging
from typing import Dict

from lark import Lark, Token, Tree, UnexpectedInput

from .errors import ParseError, Pos
from .utils import grammar_path

logger: logging.Logger = logging.getLogger(__name__)

START_RULES = ("file", "expr", "repl")

KEYWORDS = {
    "let": "LET",
    "const": "CONST",
    "fn": "FN",
    "if": "IF",
    "else": "ELSE",
    "match": "MATCH",
    "as": "AS",
    "true": "TRUE",
    "false": "FALSE",
}

_parsers: Dict[str, Lark] = {}


def _remap_ident(t: Token) -> Token:
    # Only remap exact word matches, never prefixes
    t.type = KEYWORDS.get(t.value, t.type)
    return t


def build_parser(start: str) -> Lark:
    path = grammar_path()
    logger.debug("building %s parser from %s", start, path)

    return Lark(
        path.read_text(encoding="utf-8"),
        parser="earley",
        lexer="basic",
        start=start,
        maybe_placeholders=False,
        propagate_positions=True,
        lexer_callbacks={"IDENT": _remap_ident},
    )


def get_parser(start: str) -> Lark:
    if start not in START_RULES:
        raise ValueError(f"Unknown start rule {start!r}; expected one of {', '.join(START_RULES)}")

    parser = _parsers.get(start)
    if parser is None:
        parser = build_parser(start)
        _parsers[start] = parser

    return parser


def parse_source(code: str, start: str = "file") -> Tree:
    """Parse *code* and return the raw Lark tree for the *start* rule."""
    parser = get_parser(start)

    try:
        return parser.parse(code)
    except UnexpectedInput as err:
        ctx = err.get_context(code, span=80)
        token = getattr(err, "token", None)
        char = getattr(err, "char", None)
        if token is not None:
            saw = f"{token.type} {str(token)!r}"
        elif char is not None:
            saw = f"character {char!r}"
        else:
            saw = "EOF"
        expected = getattr(err, "expected", None) or getattr(err, "allowed", None) or ()
        expected = sorted(expected)
        line = getattr(err, "line", None)
        column = getattr(err, "column", None)
        if not isinstance(line, int) or line < 1:
            # UnexpectedEOF carries no position; point past the last character
            lines = code.split("\n")
            line, column = len(lines), len(lines[-1]) + 1
        message = f"Unexpected input\n{ctx}\nSaw: {saw}"
        if expected:
            message += f"\nExpected: {', '.join(expected)}"

        raise ParseError(
            message,
            Pos(line, column),
            context=ctx,
            expected=expected,
        ) from err
