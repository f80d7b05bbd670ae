"""
Lexer for string lambdas - Recursive Descent Parser front end

Tokenizes a lambda source string into a stream of tokens.

Features:
- Single-pass tokenization
- Position tracking (line, column)
- Quoted string literals with backslash escapes kept verbatim
- Newlines are plain whitespace; a lambda is a single expression
"""

from typing import List

from .runtime import CompileError
from .token_types import TT, Tok

def is_digit(ch: str) -> bool:
    """ASCII digits only; str.isdigit also accepts '²' and other numerics."""
    return '0' <= ch <= '9'

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    String-lambda lexer.

    Identifiers are ASCII/Unicode letters, digits and underscores. The '$'
    character is never part of an identifier, which keeps the compiler's
    synthetic section parameters ('$0', '$1') out of reach of user source.
    """

    # Keyword mapping
    KEYWORDS = {
        'true': TT.TRUE,
        'false': TT.FALSE,
        'null': TT.NULL,
        'undefined': TT.UNDEFINED,
        'in': TT.IN,
        'and': TT.AND,
        'or': TT.OR,
        'not': TT.NOT,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Three-character operators
        ('===', TT.SEQ),
        ('!==', TT.SNEQ),

        # Two-character operators
        ('->', TT.ARROW),
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),
        ('&&', TT.AND),
        ('||', TT.OR),
        ('??', TT.NULLISH),
        ('**', TT.POW),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('%', TT.MOD),
        ('<', TT.LT),
        ('>', TT.GT),
        ('!', TT.NOT),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('.', TT.DOT),
        (',', TT.COMMA),
        (':', TT.COLON),
        ('?', TT.QMARK),
    ]

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.scan_token()

        self.emit(TT.EOF, None, self.line, self.column)
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        # Skip whitespace, newlines included
        if self.skip_whitespace():
            return

        # String literals
        if self.peek() in ('"', "'"):
            self.scan_string()
            return

        # Numbers
        if is_digit(self.peek()):
            self.scan_number()
            return

        # Identifiers and keywords
        if self.peek().isalpha() or self.peek() == '_':
            self.scan_identifier()
            return

        # Operators and punctuation
        self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_string(self):
        """Scan string literal: "..." or '...'"""
        line, column = self.line, self.column
        quote = self.advance()
        value = quote  # Keep opening quote

        while self.pos < len(self.source) and self.peek() != quote:
            if self.peek() == '\\':
                # Keep escape sequence as-is
                value += self.advance()
                if self.pos < len(self.source):
                    value += self.advance()
            else:
                value += self.advance()

        if self.pos >= len(self.source):
            raise LexError("Unterminated string", line, column)

        value += self.advance()  # Closing quote
        self.emit(TT.STRING, value, line, column)

    def scan_number(self):
        """Scan number literal"""
        line, column = self.line, self.column
        value = ''

        # Integer part
        while is_digit(self.peek()):
            value += self.advance()

        # Decimal part
        if self.peek() == '.' and is_digit(self.peek(1)):
            value += self.advance()  # .
            while is_digit(self.peek()):
                value += self.advance()

        # Scientific notation
        if self.peek() in ('e', 'E') and (
            is_digit(self.peek(1)) or (self.peek(1) in ('+', '-') and is_digit(self.peek(2)))
        ):
            value += self.advance()
            if self.peek() in ('+', '-'):
                value += self.advance()
            while is_digit(self.peek()):
                value += self.advance()

        if self.peek().isalpha() or self.peek() == '_':
            raise LexError(f"Invalid number literal '{value}{self.peek()}'", line, column)

        # Keep as string; the evaluator decides int vs float
        self.emit(TT.NUMBER, value, line, column)

    def scan_identifier(self):
        """Scan identifier or keyword"""
        line, column = self.line, self.column
        value = ''

        while self.peek().isalnum() or self.peek() == '_':
            value += self.advance()

        # Check if keyword
        token_type = self.KEYWORDS.get(value, TT.IDENT)
        self.emit(token_type, value, line, column)

    def scan_operator(self):
        """Scan operators and punctuation"""
        line, column = self.line, self.column

        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                self.emit(op_type, op_str, line, column)
                return

        ch = self.peek()
        raise LexError(f"Unexpected character '{ch}'", line, column)

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = ''
        for _ in range(n):
            ch = self.source[self.pos] if self.pos < len(self.source) else '\0'
            result += ch
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return result

    def skip_whitespace(self) -> bool:
        """Skip whitespace, return True if any skipped"""
        skipped = False
        while self.peek() in (' ', '\t', '\n', '\r'):
            self.advance()
            skipped = True
        return skipped

    def emit(self, token_type: TT, value, line: int, column: int):
        """Emit a token"""
        tok = Tok(
            type=token_type,
            value=value,
            line=line,
            column=column
        )
        self.tokens.append(tok)

class LexError(CompileError):
    """Lexical analysis error"""

    def __init__(self, message: str, line: int, column: int):
        super().__init__(f"{message} at line {line}, col {column}")
        self.line = line
        self.column = column


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    lexer = Lexer(source)
    return lexer.tokenize()
