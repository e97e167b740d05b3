from __future__ import annotations

import pytest

from libretto.parser import KEYWORDS
from libretto.repl_highlight import lex_tokens
from tests.support.harness import ParseError, build_keyword_cases, parse_pipeline

KEYWORD_CASES = build_keyword_cases()


@pytest.mark.parametrize(
    "code, start",
    [pytest.param(code, start, id=name) for name, code, start in KEYWORD_CASES],
)
def test_keyword_prefixed_identifiers(code: str, start: str) -> None:
    parse_pipeline(code, start)


@pytest.mark.parametrize("word", sorted(KEYWORDS))
def test_keywords_are_remapped(word: str) -> None:
    (tok,) = list(lex_tokens(word))

    assert tok.type == KEYWORDS[word]


@pytest.mark.parametrize("word", ["let", "fn", "match", "if", "else", "as", "const"])
def test_keywords_are_not_binding_names(word: str) -> None:
    with pytest.raises(ParseError):
        parse_pipeline(f"let {word} = 1;", "file")


def test_uppercase_names_are_tags() -> None:
    tokens = [tok.type for tok in lex_tokens("Let let")]

    assert tokens == ["UIDENT", "WS", "LET"]
