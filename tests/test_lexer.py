from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import pytest
from lark import UnexpectedInput

from libretto.repl_highlight import lex_tokens


@dataclass(frozen=True)
class Case:
    """Unified lexer case payload."""

    name: str
    source: str
    expected: Optional[Tuple[Tuple[str, str], ...]] = None
    expected_types: Optional[Tuple[str, ...]] = None
    exc: Optional[type[Exception]] = None
    err_col: Optional[int] = None


BASIC_TOKEN_CASES: List[Case] = [
    Case("number-int", "123", expected=(("INT", "123"),)),
    Case("number-float", "3.14", expected=(("FLOAT", "3.14"),)),
    Case("number-exponent", "1e5", expected=(("FLOAT", "1e5"),)),
    Case("ident-single", "x", expected=(("IDENT", "x"),)),
    Case("ident-snake", "foo_bar", expected=(("IDENT", "foo_bar"),)),
    Case("ident-underscore", "_", expected=(("IDENT", "_"),)),
    Case("tag", "Point", expected=(("UIDENT", "Point"),)),
    Case("string-double", '"hello"', expected=(("STRING", '"hello"'),)),
    Case("string-raw", 'r"a\\b"', expected=(("RAW_STRING", 'r"a\\b"'),)),
    Case("string-raw-hash", 'r#"a"b"#', expected=(("RAW_STRING", 'r#"a"b"#'),)),
    Case("char", "'c'", expected=(("CHAR", "'c'"),)),
    Case("char-unicode", "'\\u{263A}'", expected=(("CHAR", "'\\u{263A}'"),)),
    Case("bool-true", "true", expected=(("TRUE", "true"),)),
    Case("bool-false", "false", expected=(("FALSE", "false"),)),
    Case("ident-starting-with-r", "radius", expected=(("IDENT", "radius"),)),
]

OPERATOR_CASES: List[Case] = [
    Case("plus", "+", expected_types=("PLUS",)),
    Case("minus", "-", expected_types=("MINUS",)),
    Case("star", "*", expected_types=("STAR",)),
    Case("slash", "/", expected_types=("SLASH",)),
    Case("eq", "==", expected_types=("EQ",)),
    Case("neq", "!=", expected_types=("NE",)),
    Case("lt", "<", expected_types=("LT",)),
    Case("gt", ">", expected_types=("GT",)),
    Case("assign-not-eq", "= =", expected_types=("EQUAL", "EQUAL")),
    Case("vec-macro", "vec![", expected_types=("_VEC", "LSQB")),
]

CONSTRUCT_CASES: List[Case] = [
    Case(
        "tuple-index-float",
        "t.0.1",
        expected=(("IDENT", "t"), ("DOT", "."), ("FLOAT", "0.1")),
    ),
    Case(
        "method-on-int",
        "3.to_float()",
        expected_types=("INT", "DOT", "IDENT", "LPAR", "RPAR"),
    ),
    Case(
        "cast",
        "x as f32",
        expected_types=("IDENT", "AS", "IDENT"),
    ),
    Case(
        "let",
        "let x: i32 = 1;",
        expected_types=("LET", "IDENT", "COLON", "IDENT", "EQUAL", "INT", "SEMICOLON"),
    ),
    Case(
        "comment-skipped",
        "1 // two\n/* three */ 4",
        expected=(("INT", "1"), ("INT", "4")),
    ),
]

ERROR_CASES: List[Case] = [
    Case("stray-char", "1 § 2", exc=UnexpectedInput, err_col=3),
    Case("unterminated-string", '"abc', exc=UnexpectedInput, err_col=1),
    Case("empty-char", "''", exc=UnexpectedInput, err_col=1),
]

SKIPPED = {"WS", "LINE_COMMENT", "BLOCK_COMMENT"}


def _tokens(source: str) -> List[object]:
    return [tok for tok in lex_tokens(source) if tok.type not in SKIPPED]


def _check(case: Case) -> None:
    tokens = _tokens(case.source)
    if case.expected is not None:
        assert [(tok.type, str(tok)) for tok in tokens] == list(case.expected)
    if case.expected_types is not None:
        assert [tok.type for tok in tokens] == list(case.expected_types)


@pytest.mark.parametrize("case", BASIC_TOKEN_CASES, ids=lambda case: case.name)
def test_basic_tokens(case: Case) -> None:
    _check(case)


@pytest.mark.parametrize("case", OPERATOR_CASES, ids=lambda case: case.name)
def test_operators(case: Case) -> None:
    _check(case)


@pytest.mark.parametrize("case", CONSTRUCT_CASES, ids=lambda case: case.name)
def test_constructs(case: Case) -> None:
    _check(case)


@pytest.mark.parametrize("case", ERROR_CASES, ids=lambda case: case.name)
def test_lex_errors(case: Case) -> None:
    assert case.exc is not None
    with pytest.raises(case.exc) as exc_info:
        _tokens(case.source)

    assert exc_info.value.column == case.err_col
