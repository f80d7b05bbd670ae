"""prompt_toolkit lexer for live string-lambda highlighting in the REPL."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as LambdaTokenizer, LexError
from .token_types import TT

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "boolean": "ansicyan",
    "constant": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "identifier": "",
    "placeholder": "bold ansiyellow",
    "arrow": "bold ansiblue",
    "operator": "",
    "punctuation": "",
    "command": "bold ansiblue",
}

_TT_GROUP = {
    TT.IN: "keyword",
    TT.TRUE: "boolean",
    TT.FALSE: "boolean",
    TT.NULL: "constant",
    TT.UNDEFINED: "constant",
    TT.NUMBER: "number",
    TT.STRING: "string",
    TT.IDENT: "identifier",
    TT.ARROW: "arrow",
    TT.LPAR: "punctuation",
    TT.RPAR: "punctuation",
    TT.LSQB: "punctuation",
    TT.RSQB: "punctuation",
    TT.DOT: "punctuation",
    TT.COMMA: "punctuation",
    TT.COLON: "punctuation",
    TT.QMARK: "punctuation",
}

_WORD_OPS = {"and", "or", "not"}


def _group_for(tok_type: TT, value: object) -> str:
    if tok_type == TT.IDENT and value == "_":
        return "placeholder"

    # and/or/not share token types with && || !
    if tok_type in (TT.AND, TT.OR, TT.NOT) and value in _WORD_OPS:
        return "keyword"

    return _TT_GROUP.get(tok_type, "operator")


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    body = text
    result: StyleAndTextTuples = []

    # slash command name, then highlight the rest as a spec
    if text.startswith("/"):
        head, sep, body = text.partition(" ")
        result.append((GROUP_STYLE["command"], head))
        if sep:
            result.append(("", sep))
        if not body:
            return result

    try:
        tokens = LambdaTokenizer(body).tokenize()
    except LexError:
        result.append(("", body))
        return result

    pos = 0

    for tok in tokens:
        if tok.type == TT.EOF:
            continue
        tok_text = str(tok.value)
        if not tok_text:
            continue

        # Find actual position of this token value in the line from pos onwards.
        idx = body.find(tok_text, pos)
        if idx < 0:
            continue

        # Unstyled gap before token.
        if idx > pos:
            result.append(("", body[pos:idx]))

        style = GROUP_STYLE.get(_group_for(tok.type, tok.value), "")
        result.append((style, tok_text))
        pos = idx + len(tok_text)

    # Trailing unstyled text.
    if pos < len(body):
        result.append(("", body[pos:]))

    return result if result else [("", text)]


class LambdaLexer(Lexer):
    """prompt_toolkit Lexer that highlights string lambdas using the RD lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        # Pre-compute highlights for all lines.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
