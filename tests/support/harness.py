from __future__ import annotations

import math
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from libretto.builder import build_program, process_expr
from libretto.errors import (
    ArityMismatch,
    DecodeError,
    DivisionByZero,
    EvalError,
    IndexOutOfRange,
    IntegerOverflow,
    LibrettoError,
    LoadError,
    MalformedTree,
    MissingMember,
    NotFieldAccessible,
    NotIndexable,
    ParseError,
    TypeMismatch,
    UnboundName,
    UndefinedFunction,
    UnknownMethod,
    Unmatched,
)
from libretto.nodes import Bool, Char, Float, Int, String, Unit, render
from libretto.parser import KEYWORDS
from libretto.runner import run as run_program

RuntimeExpectation = Optional[Tuple[str, object]]
ParserCase = Tuple[str, str, str]

# Identifiers that merely start or end with a keyword must stay identifiers.
KEYWORD_SNIPPET_TEMPLATES = [
    ("let {ident} = 1;", "file"),
    ("a.{ident}", "expr"),
    ("{ident}(1, 2, 3)", "expr"),
    ("let x = {ident} + 2;", "file"),
]
KEYWORD_SUFFIXES = ["ing", "ful", "_x", "Then", "able"]
KEYWORD_PREFIXES = ["my", "pre", "x"]


def parse_pipeline(code: str, start: str) -> object:
    """Parse and build *code*: statements for `file`, a result block for `expr`."""
    match start:
        case "file":
            return build_program(code)
        case "expr":
            return process_expr(code)
        case _:
            raise AssertionError(f"unknown parser start mode {start!r}")


def _identifier_variants(keyword: str) -> List[str]:
    ids = [f"{keyword}{suffix}" for suffix in KEYWORD_SUFFIXES]
    ids += [f"{prefix}{keyword}" for prefix in KEYWORD_PREFIXES]
    return ids


def build_keyword_cases() -> List[ParserCase]:
    cases: List[ParserCase] = []
    for kw in sorted(KEYWORDS):
        for ident in _identifier_variants(kw):
            for idx, (template, start) in enumerate(KEYWORD_SNIPPET_TEMPLATES):
                cases.append((f"ident-{ident}-{idx}", template.format(ident=ident), start))
    return cases


def verify_result(value: object, kind: str, expected: object) -> None:
    """Assert the reduced expression has the expected kind and payload."""
    match kind:
        case "int":
            assert isinstance(value, Int), f"expected Int, got {type(value).__name__}"
            assert value.value == expected, f"expected {expected!r}, got {value.value!r}"
            return
        case "float":
            assert isinstance(value, Float), f"expected Float, got {type(value).__name__}"
            if isinstance(expected, float) and math.isnan(expected):
                assert math.isnan(value.value), f"expected nan, got {value.value}"
                return
            assert value.value == pytest.approx(expected), f"expected {expected}, got {value.value}"
            return
        case "bool":
            assert isinstance(value, Bool), f"expected Bool, got {type(value).__name__}"
            assert value.value is expected, f"expected {expected}, got {value.value}"
            return
        case "string":
            assert isinstance(value, String), f"expected String, got {type(value).__name__}"
            assert value.value == expected, f"expected {expected!r}, got {value.value!r}"
            return
        case "char":
            assert isinstance(value, Char), f"expected Char, got {type(value).__name__}"
            assert value.value == expected, f"expected {expected!r}, got {value.value!r}"
            return
        case "unit":
            assert isinstance(value, Unit), f"expected Unit, got {type(value).__name__}"
            return
        case "render":
            rendered = render(value)
            assert rendered == expected, f"expected {expected!r}, got {rendered!r}"
            return
        case _:
            raise AssertionError(f"unknown expectation kind {kind}")


def run_runtime_case(
    source: str,
    expectation: RuntimeExpectation,
    expected_exc: Optional[type],
) -> None:
    """Execute one runtime scenario with optional expected exception."""
    if expected_exc is not None:
        with pytest.raises(expected_exc):
            run_program(source)
        return

    result = run_program(source)
    if expectation is not None:
        verify_result(result, expectation[0], expectation[1])


__all__ = [
    "ArityMismatch",
    "DecodeError",
    "DivisionByZero",
    "EvalError",
    "IndexOutOfRange",
    "IntegerOverflow",
    "LibrettoError",
    "LoadError",
    "MalformedTree",
    "MissingMember",
    "NotFieldAccessible",
    "NotIndexable",
    "ParseError",
    "TypeMismatch",
    "UnboundName",
    "UndefinedFunction",
    "UnknownMethod",
    "Unmatched",
    "build_keyword_cases",
    "parse_pipeline",
    "run_program",
    "run_runtime_case",
    "verify_result",
]
