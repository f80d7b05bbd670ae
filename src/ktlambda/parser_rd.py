"""
Recursive Descent Parser for string-lambda bodies

Structure:
- Lexer: Token stream from source (lexer_rd)
- Parser: Recursive descent, one method per precedence level
- AST: lark Tree/Token nodes (see tree.py for the leaf token types)

Parameter inference and arrow splitting live in the compiler; this module
only turns a body token stream into an expression tree.
"""

from typing import List, Optional

from lark import Token, Tree
from lark.tree import Meta

from .runtime import CompileError
from .token_types import TT, Tok

# ============================================================================
# Parser
# ============================================================================

class ParseError(CompileError):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None):
        self.message = message
        self.token = token
        self.line = token.line if token else None
        self.column = token.column if token else None
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )

# Token types that produce literal leaves unchanged
_LITERAL_TYPES = (TT.NUMBER, TT.STRING, TT.TRUE, TT.FALSE, TT.NULL, TT.UNDEFINED)

class Parser:
    """
    Recursive descent parser for lambda bodies.

    Expression precedence (lowest to highest):
    1. ternary (? :)
    2. nullish (??)
    3. or (||, or)
    4. and (&&, and)
    5. equality (==, !=, ===, !==)
    6. relational (<, <=, >, >=, in)
    7. add (+, -)
    8. mul (*, /, %)
    9. pow (**)
    10. unary (-, !, not)
    11. postfix (.field, .method(args), [index], (call))
    12. primary (literals, identifiers, parens, arrays)
    """

    def __init__(self, tokens: List[Tok]):
        self.tokens = tokens
        self.pos = 0
        self.current = tokens[0] if tokens else Tok(TT.EOF, None, 0, 0)

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token"""
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return Tok(TT.EOF, None, 0, 0)

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        self.pos += 1
        if self.pos < len(self.tokens):
            self.current = self.tokens[self.pos]
        else:
            self.current = Tok(TT.EOF, None, 0, 0)
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            msg = message or f"Expected {token_type.name}, got {self.current.type.name}"
            raise ParseError(msg, self.current)
        return self.advance()

    def node(self, data: str, children: list, at: Tok) -> Tree:
        """Build a tree carrying the position of its leading token"""
        meta = Meta()
        meta.empty = False
        meta.line = at.line
        meta.column = at.column
        return Tree(data, children, meta)

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Tree | Token:
        """Parse a whole body: exactly one expression, then EOF"""
        if self.check(TT.EOF):
            raise ParseError("Empty expression", self.current)

        expr = self.parse_expr()

        if not self.check(TT.EOF):
            raise ParseError(f"Unexpected token after expression: {self.current.type.name}", self.current)
        return expr

    def parse_params(self) -> List[Token]:
        """Parse an arrow parameter list: [IDENT (, IDENT)*] then EOF"""
        params: List[Token] = []

        while not self.check(TT.EOF):
            tok = self.expect(TT.IDENT, "Expected parameter name")
            if any(p.value == tok.value for p in params):
                raise ParseError(f"Duplicate parameter '{tok.value}'", tok)
            params.append(Token('IDENT', tok.value))

            if not self.match(TT.COMMA):
                break

        if not self.check(TT.EOF):
            raise ParseError("Malformed parameter list", self.current)
        return params

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expr(self) -> Tree | Token:
        return self.parse_ternary_expr()

    def parse_ternary_expr(self) -> Tree | Token:
        """Parse ternary: expr ? then : else"""
        start = self.current
        expr = self.parse_nullish_expr()

        if self.match(TT.QMARK):
            then_expr = self.parse_expr()
            self.expect(TT.COLON)
            else_expr = self.parse_ternary_expr()  # Right associative
            return self.node('ternary', [expr, then_expr, else_expr], start)

        return expr

    def parse_nullish_expr(self) -> Tree | Token:
        """Parse nullish coalescing: expr ?? expr"""
        start = self.current
        left = self.parse_or_expr()

        while self.match(TT.NULLISH):
            right = self.parse_or_expr()
            left = self.node('nullish', [left, right], start)

        return left

    def parse_or_expr(self) -> Tree | Token:
        """Parse logical OR: expr || expr"""
        start = self.current
        left = self.parse_and_expr()

        while self.match(TT.OR):
            right = self.parse_and_expr()
            left = self.node('or', [left, right], start)

        return left

    def parse_and_expr(self) -> Tree | Token:
        """Parse logical AND: expr && expr"""
        start = self.current
        left = self.parse_equality_expr()

        while self.match(TT.AND):
            right = self.parse_equality_expr()
            left = self.node('and', [left, right], start)

        return left

    def parse_equality_expr(self) -> Tree | Token:
        return self._parse_binary('compare', self.parse_relational_expr,
                                  (TT.EQ, TT.NEQ, TT.SEQ, TT.SNEQ))

    def parse_relational_expr(self) -> Tree | Token:
        return self._parse_binary('compare', self.parse_add_expr,
                                  (TT.LT, TT.LTE, TT.GT, TT.GTE, TT.IN))

    def parse_add_expr(self) -> Tree | Token:
        return self._parse_binary('add', self.parse_mul_expr, (TT.PLUS, TT.MINUS))

    def parse_mul_expr(self) -> Tree | Token:
        return self._parse_binary('mul', self.parse_pow_expr, (TT.STAR, TT.SLASH, TT.MOD))

    def _parse_binary(self, label: str, operand, op_types) -> Tree | Token:
        """Left-associative binary level: operand (op operand)*"""
        start = self.current
        left = operand()

        while self.check(*op_types):
            op = self.advance()
            right = operand()
            left = self.node(label, [left, Token('OP', op.value), right], start)

        return left

    def parse_pow_expr(self) -> Tree | Token:
        """Parse exponentiation: expr ** expr (right associative)"""
        start = self.current
        base = self.parse_unary_expr()

        if self.match(TT.POW):
            exp = self.parse_pow_expr()  # Right associative
            return self.node('pow', [base, Token('OP', '**'), exp], start)

        return base

    def parse_unary_expr(self) -> Tree | Token:
        """Parse unary operators: -expr, !expr, not expr"""
        if self.check(TT.MINUS, TT.NOT, TT.PLUS):
            op = self.advance()
            operand = self.parse_unary_expr()
            spelling = '!' if op.type == TT.NOT else op.value
            return self.node('unary', [Token('OP', spelling), operand], op)

        return self.parse_postfix_expr()

    def parse_postfix_expr(self) -> Tree | Token:
        """
        Parse postfix expressions:
        - field access: expr.field
        - method calls: expr.name(args)
        - indexing: expr[index]
        - calls: expr(args)

        Output as chain when at least one postfix op follows the primary
        """
        start = self.current
        primary = self.parse_primary_expr()

        postfix_ops = []

        while True:
            # Field access or method call
            if self.check(TT.DOT):
                dot = self.advance()
                name_tok = self.current
                if not self._is_member_name():
                    raise ParseError("Expected member name after '.'", self.current)
                self.advance()
                name = Token('NAME', name_tok.value)

                if self.match(TT.LPAR):
                    args = self.parse_arg_list()
                    self.expect(TT.RPAR, "Expected ')' after arguments")
                    postfix_ops.append(self.node('method', [name, self.node('args', args, dot)], dot))
                else:
                    postfix_ops.append(self.node('field', [name], dot))

            # Indexing
            elif self.check(TT.LSQB):
                lsqb = self.advance()
                index = self.parse_expr()
                self.expect(TT.RSQB, "Expected ']' after index")
                postfix_ops.append(self.node('index', [index], lsqb))

            # Plain call
            elif self.check(TT.LPAR):
                lpar = self.advance()
                args = self.parse_arg_list()
                self.expect(TT.RPAR, "Expected ')' after arguments")
                postfix_ops.append(self.node('call', [self.node('args', args, lpar)], lpar))

            else:
                break

        if not postfix_ops:
            return primary

        return self.node('chain', [primary] + postfix_ops, start)

    def _is_member_name(self) -> bool:
        # Keywords are valid member names after '.', e.g. obj.in or obj.null
        if self.check(TT.IDENT):
            return True
        return isinstance(self.current.value, str) and self.current.value.isidentifier()

    def parse_primary_expr(self) -> Tree | Token:
        """
        Parse primary expressions:
        - Literals (numbers, strings, true, false, null, undefined)
        - Identifiers
        - Parenthesized expressions
        - Array literals
        """
        if self.check(*_LITERAL_TYPES):
            tok = self.advance()
            return Token(tok.type.name, tok.value)

        # Identifiers
        if self.check(TT.IDENT):
            tok = self.advance()
            return Token('IDENT', tok.value)

        # Parenthesized expression
        if self.match(TT.LPAR):
            expr = self.parse_expr()
            self.expect(TT.RPAR, "Expected ')'")
            return expr

        # Array literal
        if self.check(TT.LSQB):
            lsqb = self.advance()
            elements = []

            while not self.check(TT.RSQB, TT.EOF):
                elements.append(self.parse_expr())
                if not self.match(TT.COMMA):
                    break

            self.expect(TT.RSQB, "Expected ']' to close array")
            return self.node('array', elements, lsqb)

        if self.check(TT.EOF):
            raise ParseError("Unexpected end of expression", self.current)

        raise ParseError(f"Unexpected token in expression: {self.current.type.name}", self.current)

    # ========================================================================
    # Helper Parsers
    # ========================================================================

    def parse_arg_list(self) -> List[Tree | Token]:
        """Parse call arguments up to (not including) ')'"""
        args: List[Tree | Token] = []

        while not self.check(TT.RPAR, TT.EOF):
            args.append(self.parse_expr())

            if not self.match(TT.COMMA):
                break

        return args


def parse_body(tokens: List[Tok]) -> Tree | Token:
    """Parse a body token stream (must end with EOF)."""
    return Parser(tokens).parse()


def parse_params(tokens: List[Tok]) -> List[Token]:
    """Parse an arrow parameter token stream (must end with EOF)."""
    return Parser(tokens).parse_params()


def parse_expr_fragment(source: str) -> Tree | Token:
    """
    Parse a standalone expression fragment.
    Used by the CLI and REPL to read literal receivers.
    """
    from .lexer_rd import tokenize

    return parse_body(tokenize(source))
