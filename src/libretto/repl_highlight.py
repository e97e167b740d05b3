"""prompt_toolkit lexer for live libretto syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable, Iterator, List

from lark import Token, UnexpectedInput
from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .parser import KEYWORDS, get_parser

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "boolean": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "identifier": "",
    "tag": "bold ansiblue",
    "operator": "",
    "punctuation": "",
    "comment": "italic ansigray",
    "error": "bold ansired",
}

# Token type → highlight group.
_TT_GROUP = {kw: "keyword" for kw in KEYWORDS.values()}
_TT_GROUP.update({
    "TRUE": "boolean",
    "FALSE": "boolean",
    "INT": "number",
    "FLOAT": "number",
    "STRING": "string",
    "RAW_STRING": "string",
    "CHAR": "string",
    "IDENT": "identifier",
    "UIDENT": "tag",
    "EQ": "operator",
    "NE": "operator",
    "LT": "operator",
    "GT": "operator",
    "PLUS": "operator",
    "MINUS": "operator",
    "STAR": "operator",
    "SLASH": "operator",
    "LINE_COMMENT": "comment",
    "BLOCK_COMMENT": "comment",
})

_OPENERS = {"LPAR", "LSQB", "LBRACE"}
_CLOSERS = {"RPAR", "RSQB", "RBRACE"}


def lex_tokens(text: str) -> Iterator[Token]:
    """Tokens of *text*, comments and whitespace included."""
    return get_parser("repl").lex(text, dont_ignore=True)


def open_depth(text: str) -> int:
    """Net count of unclosed brackets; lexing errors count as closed."""
    depth = 0

    try:
        for tok in lex_tokens(text):
            if tok.type in _OPENERS:
                depth += 1
            elif tok.type in _CLOSERS:
                depth -= 1
    except UnexpectedInput:
        return 0

    return depth


def highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    result: StyleAndTextTuples = []
    pos = 0

    try:
        for tok in lex_tokens(text):
            start = tok.start_pos if tok.start_pos is not None else pos
            if start > pos:
                result.append(("", text[pos:start]))
            style = GROUP_STYLE.get(_TT_GROUP.get(tok.type, ""), "")
            result.append((style, str(tok)))
            pos = start + len(tok)
    except UnexpectedInput:
        result.append((GROUP_STYLE["error"], text[pos:]))
        pos = len(text)

    # Trailing unstyled text.
    if pos < len(text):
        result.append(("", text[pos:]))

    return result if result else [("", text)]


class LibrettoLexer(Lexer):
    """prompt_toolkit Lexer that highlights libretto source using the grammar's lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines: List[str] = document.lines

        # Pre-compute highlights for all lines.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
