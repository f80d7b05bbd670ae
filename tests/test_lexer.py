from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import pytest

from ktlambda.lexer_rd import LexError, tokenize
from ktlambda.runtime import CompileError
from ktlambda.token_types import TT


@dataclass(frozen=True)
class Case:
    """Unified lexer case payload."""

    name: str
    source: str
    expected: Optional[Tuple[Tuple[TT, object], ...]] = None
    expected_types: Optional[Tuple[TT, ...]] = None
    msg: Optional[str] = None
    err_line: Optional[int] = None
    err_col: Optional[int] = None


BASIC_TOKEN_CASES: List[Case] = [
    Case("number-int", "123", expected=((TT.NUMBER, "123"),)),
    Case("number-float", "3.14", expected=((TT.NUMBER, "3.14"),)),
    Case("number-exponent", "1e3", expected=((TT.NUMBER, "1e3"),)),
    Case("number-signed-exponent", "2.5E-2", expected=((TT.NUMBER, "2.5E-2"),)),
    Case("ident-single", "x", expected=((TT.IDENT, "x"),)),
    Case("ident-snake", "foo_bar", expected=((TT.IDENT, "foo_bar"),)),
    Case("ident-placeholder", "_", expected=((TT.IDENT, "_"),)),
    Case("string-double", '"hello"', expected=((TT.STRING, '"hello"'),)),
    Case("string-single", "'world'", expected=((TT.STRING, "'world'"),)),
    Case("bool-true", "true", expected=((TT.TRUE, "true"),)),
    Case("bool-false", "false", expected=((TT.FALSE, "false"),)),
    Case("null-literal", "null", expected=((TT.NULL, "null"),)),
    Case("undefined-literal", "undefined", expected=((TT.UNDEFINED, "undefined"),)),
]

OPERATOR_CASES: List[Case] = [
    Case("plus", "+", expected_types=(TT.PLUS,)),
    Case("minus", "-", expected_types=(TT.MINUS,)),
    Case("star", "*", expected_types=(TT.STAR,)),
    Case("slash", "/", expected_types=(TT.SLASH,)),
    Case("mod", "%", expected_types=(TT.MOD,)),
    Case("pow", "**", expected_types=(TT.POW,)),
    Case("strict-eq", "===", expected_types=(TT.SEQ,)),
    Case("strict-neq", "!==", expected_types=(TT.SNEQ,)),
    Case("eq", "==", expected_types=(TT.EQ,)),
    Case("neq", "!=", expected_types=(TT.NEQ,)),
    Case("lte", "<=", expected_types=(TT.LTE,)),
    Case("gte", ">=", expected_types=(TT.GTE,)),
    Case("and", "&&", expected_types=(TT.AND,)),
    Case("or", "||", expected_types=(TT.OR,)),
    Case("nullish", "??", expected_types=(TT.NULLISH,)),
    Case("bang", "!", expected_types=(TT.NOT,)),
    Case("arrow", "->", expected_types=(TT.ARROW,)),
    Case("minus-gt-spaced", "- >", expected_types=(TT.MINUS, TT.GT)),
    Case("ternary-punct", "? :", expected_types=(TT.QMARK, TT.COLON)),
]

KEYWORD_CASES: List[Case] = [
    Case("kw-in", "x in xs", expected_types=(TT.IDENT, TT.IN, TT.IDENT)),
    Case("kw-and", "a and b", expected_types=(TT.IDENT, TT.AND, TT.IDENT)),
    Case("kw-or", "a or b", expected_types=(TT.IDENT, TT.OR, TT.IDENT)),
    Case("kw-not", "not a", expected_types=(TT.NOT, TT.IDENT)),
    Case("kw-prefix-is-ident", "index", expected_types=(TT.IDENT,)),
    Case("kw-suffix-is-ident", "nullable", expected_types=(TT.IDENT,)),
]

LAMBDA_CONSTRUCT_CASES: List[Case] = [
    Case(
        "arrow-two-params",
        "x, y -> x + y",
        expected_types=(TT.IDENT, TT.COMMA, TT.IDENT, TT.ARROW, TT.IDENT, TT.PLUS, TT.IDENT),
    ),
    Case(
        "section-method",
        ".toUpperCase()",
        expected_types=(TT.DOT, TT.IDENT, TT.LPAR, TT.RPAR),
    ),
    Case(
        "index-access",
        "xs[0]",
        expected_types=(TT.IDENT, TT.LSQB, TT.NUMBER, TT.RSQB),
    ),
    Case(
        "arrow-inside-string",
        "'a -> b'",
        expected_types=(TT.STRING,),
    ),
    Case(
        "dollar-free-idents",
        "x0 + _y",
        expected_types=(TT.IDENT, TT.PLUS, TT.IDENT),
    ),
]

STRING_ESCAPE_CASES: List[Case] = [
    Case("escape-quote", r"'it\'s'", expected=((TT.STRING, r"'it\'s'"),)),
    Case("escape-newline", r'"a\nb"', expected=((TT.STRING, r'"a\nb"'),)),
    Case("other-quote-inside", "\"say 'hi'\"", expected=((TT.STRING, "\"say 'hi'\""),)),
]

LEX_ERROR_CASES: List[Case] = [
    Case("unterminated-string", '"abc', msg="Unterminated string", err_line=1, err_col=1),
    Case("unterminated-string-offset", "x + 'abc", msg="Unterminated string", err_line=1, err_col=5),
    Case("unterminated-string-line2", "x +\n'abc", msg="Unterminated string", err_line=2, err_col=1),
    Case("unexpected-char", "x @ y", msg="Unexpected character", err_line=1, err_col=3),
    Case("dollar-rejected", "$0 + 1", msg="Unexpected character", err_line=1, err_col=1),
    Case("invalid-suffix", "123abc", msg="Invalid number literal", err_line=1, err_col=1),
    Case("lone-ampersand", "a & b", msg="Unexpected character", err_line=1, err_col=3),
    Case("superscript-digit", "x -> x + \u00b2", msg="Unexpected character", err_line=1, err_col=10),
    Case("arabic-indic-digit", "\u0663", msg="Unexpected character", err_line=1, err_col=1),
]


def _non_eof_tokens(source: str) -> List[object]:
    return [token for token in tokenize(source) if token.type != TT.EOF]


@pytest.mark.parametrize("case", BASIC_TOKEN_CASES, ids=lambda case: case.name)
def test_basic_tokens(case: Case) -> None:
    tokens = _non_eof_tokens(case.source)

    assert case.expected is not None
    assert len(tokens) == len(case.expected)
    for token, (expected_type, expected_value) in zip(tokens, case.expected):
        assert token.type == expected_type
        assert token.value == expected_value


@pytest.mark.parametrize("case", OPERATOR_CASES, ids=lambda case: case.name)
def test_operators(case: Case) -> None:
    tokens = _non_eof_tokens(case.source)
    assert case.expected_types is not None
    assert [token.type for token in tokens] == list(case.expected_types)


@pytest.mark.parametrize("case", KEYWORD_CASES, ids=lambda case: case.name)
def test_keywords(case: Case) -> None:
    tokens = _non_eof_tokens(case.source)
    assert case.expected_types is not None
    assert [token.type for token in tokens] == list(case.expected_types)


@pytest.mark.parametrize("case", LAMBDA_CONSTRUCT_CASES, ids=lambda case: case.name)
def test_lambda_constructs(case: Case) -> None:
    tokens = _non_eof_tokens(case.source)
    assert case.expected_types is not None
    assert [token.type for token in tokens] == list(case.expected_types)


@pytest.mark.parametrize("case", STRING_ESCAPE_CASES, ids=lambda case: case.name)
def test_string_escapes(case: Case) -> None:
    tokens = [token for token in tokenize(case.source) if token.type == TT.STRING]
    assert case.expected is not None
    assert len(tokens) == 1
    assert tokens[0].value == case.expected[0][1]


def test_whitespace_and_newlines_are_skipped() -> None:
    tokens = tokenize("  x\n\t+\r\n  1  ")

    assert [token.type for token in tokens] == [TT.IDENT, TT.PLUS, TT.NUMBER, TT.EOF]
    assert (tokens[0].line, tokens[0].column) == (1, 3)
    assert (tokens[1].line, tokens[1].column) == (2, 2)
    assert (tokens[2].line, tokens[2].column) == (3, 3)


def test_empty_source_is_only_eof() -> None:
    tokens = tokenize("")

    assert len(tokens) == 1
    assert tokens[0].type == TT.EOF


@pytest.mark.parametrize("case", LEX_ERROR_CASES, ids=lambda case: case.name)
def test_lex_errors(case: Case) -> None:
    assert case.msg is not None
    with pytest.raises(LexError) as exc_info:
        tokenize(case.source)

    err = exc_info.value
    assert isinstance(err, CompileError)
    assert case.msg in str(err)

    if case.err_line is not None:
        assert (
            err.line == case.err_line
        ), f"expected line {case.err_line}, got {err.line}"
    if case.err_col is not None:
        assert (
            err.column == case.err_col
        ), f"expected col {case.err_col}, got {err.column}"
