from __future__ import annotations

from textwrap import dedent

import pytest

from libretto.builder import unescape
from libretto.nodes import Char, String, render
from tests.support.harness import ParseError, run_runtime_case

SCENARIOS = [
    pytest.param('"hello"', ("string", "hello"), None, id="plain"),
    pytest.param('""', ("string", ""), None, id="empty"),
    pytest.param('"tab\\tend"', ("string", "tab\tend"), None, id="escape-tab"),
    pytest.param('"say \\"hi\\""', ("string", 'say "hi"'), None, id="escape-quote"),
    pytest.param('"back\\\\slash"', ("string", "back\\slash"), None, id="escape-backslash"),
    pytest.param('"nul\\0"', ("string", "nul\0"), None, id="escape-nul"),
    pytest.param('"\\u{48}\\u{49}"', ("string", "HI"), None, id="escape-unicode"),
    pytest.param('"caf\u00e9"', ("string", "caf\u00e9"), None, id="utf8-literal"),
    pytest.param('"\\q"', None, ParseError, id="unknown-escape"),
    pytest.param('"\\u{110000}"', None, ParseError, id="unicode-out-of-range"),
    pytest.param('r"C:\\temp\\n"', ("string", "C:\\temp\\n"), None, id="raw-no-escapes"),
    pytest.param('r#"a "quoted" word"#', ("string", 'a "quoted" word'), None, id="raw-hash"),
    pytest.param(
        dedent(
            '''\
            r#"line one
            line two"#
        '''
        ),
        ("string", "line one\nline two"),
        None,
        id="raw-multiline",
    ),
    pytest.param("'x'", ("char", "x"), None, id="char"),
    pytest.param("'\\''", ("char", "'"), None, id="char-escaped-quote"),
    pytest.param("'\\n'", ("char", "\n"), None, id="char-newline"),
    pytest.param("'\\u{41}'", ("char", "A"), None, id="char-unicode"),
    pytest.param("''", None, ParseError, id="char-empty"),
    pytest.param("'ab'", None, ParseError, id="char-too-long"),
    pytest.param('{ "key": "v" }.key', ("string", "v"), None, id="string-key-access"),
    pytest.param('let s = "abc"; s', ("string", "abc"), None, id="string-binding"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_strings(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_unescape_leaves_plain_text() -> None:
    assert unescape("plain text") == "plain text"


@pytest.mark.parametrize(
    "node, text",
    [
        (String("a\"b"), '"a\\"b"'),
        (String("line\nbreak"), '"line\\nbreak"'),
        (String("it's"), '"it\'s"'),
        (Char("'"), "'\\''"),
        (Char("\t"), "'\\t'"),
        (Char('"'), "'\"'"),
    ],
)
def test_render_quotes_and_escapes(node, text: str) -> None:
    assert render(node) == text
