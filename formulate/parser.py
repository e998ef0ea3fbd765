"""
Recursive descent parser for formulate expressions.

Grammar (precedence low to high, all operators left-associative):
    expression → term (("+" | "-") term)*
    term       → factor ("*" factor)*
    factor     → NUMBER | IDENTIFIER | "(" expression ")" | "-" factor

A run of two or more terms becomes a single n-ary Sum in source order, and
a run of two or more factors a single Product. A lone term or factor is
returned as-is. Subtraction and negation are sugar:

    a - b   →  Sum((a, Product((Number(-1), b))))
    -f      →  Product((Number(-1), f))

Parentheses and prefix minus signs may nest at most MAX_DEPTH levels; deeper
input raises NestingTooDeep. That also bounds the depth of every tree the
parser builds.

The result is the raw tree. It may contain nested Sums or Products (from
parentheses) and unfolded constants; simplify() canonicalizes it.
"""

import logging
from typing import List, Optional, Sequence

from .errors import (
    NestingTooDeep,
    UnexpectedEndOfInput,
    UnexpectedToken,
    UnmatchedParenthesis,
)
from .expression import Expr, Number, Product, Sum, Variable, node_count
from .lexer import Token, TokenKind, tokenize

logger = logging.getLogger(__name__)

_OPERAND = "a number, variable or '('"

# Nesting limit for parentheses and prefix minus
MAX_DEPTH = 64


def negate(expr: Expr) -> Product:
    """Wrap an expression in a multiplication by -1."""
    return Product([Number(-1), expr])


class _Parser:
    """Recursive descent parser over a token list, one token of lookahead."""

    def __init__(self, tokens: Sequence[Token]) -> None:
        self.tokens = list(tokens)
        if not self.tokens or self.tokens[-1].kind is not TokenKind.EOF:
            end = self.tokens[-1].position + len(self.tokens[-1].text) if self.tokens else 0
            self.tokens.append(Token(TokenKind.EOF, "", end))
        self.pos = 0
        self.depth = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def match(self, *kinds: TokenKind) -> Optional[Token]:
        if self.current.kind in kinds:
            return self.advance()
        return None

    def descend(self, tok: Token) -> None:
        self.depth += 1
        if self.depth > MAX_DEPTH:
            raise NestingTooDeep(tok.position, MAX_DEPTH)

    # -- Grammar rules --

    def parse_expression(self) -> Expr:
        """term (('+' | '-') term)*"""
        terms: List[Expr] = [self.parse_term()]
        while True:
            op = self.match(TokenKind.PLUS, TokenKind.MINUS)
            if op is None:
                break
            term = self.parse_term()
            terms.append(negate(term) if op.kind is TokenKind.MINUS else term)
        return terms[0] if len(terms) == 1 else Sum(terms)

    def parse_term(self) -> Expr:
        """factor ('*' factor)*"""
        factors: List[Expr] = [self.parse_factor()]
        while self.match(TokenKind.STAR):
            factors.append(self.parse_factor())
        return factors[0] if len(factors) == 1 else Product(factors)

    def parse_factor(self) -> Expr:
        """NUMBER | IDENTIFIER | '(' expression ')' | '-' factor"""
        tok = self.current

        if tok.kind is TokenKind.NUMBER:
            self.advance()
            return Number(tok.value)

        if tok.kind is TokenKind.IDENTIFIER:
            self.advance()
            return Variable(tok.text)

        if tok.kind is TokenKind.MINUS:
            self.advance()
            self.descend(tok)
            operand = self.parse_factor()
            self.depth -= 1
            return negate(operand)

        if tok.kind is TokenKind.LPAREN:
            self.advance()
            self.descend(tok)
            inner = self.parse_expression()
            if self.match(TokenKind.RPAREN):
                self.depth -= 1
                return inner
            if self.current.kind is TokenKind.EOF:
                raise UnmatchedParenthesis(tok.position)
            raise UnexpectedToken(self.current, "'+', '-', '*' or ')'")

        if tok.kind is TokenKind.EOF:
            raise UnexpectedEndOfInput(tok.position, _OPERAND)

        raise UnexpectedToken(tok, _OPERAND)


def parse(tokens: Sequence[Token]) -> Expr:
    """
    Parse a token sequence into a raw expression tree.

    Args:
        tokens: Tokens as produced by tokenize(); a missing trailing EOF
            is supplied.

    Returns:
        The raw (unsimplified) expression tree.

    Raises:
        UnexpectedEndOfInput: Empty input or a trailing operator.
        UnmatchedParenthesis: An unclosed '(' or a stray ')'.
        UnexpectedToken: Any other misplaced token.
        NestingTooDeep: Nesting beyond MAX_DEPTH.
    """
    parser = _Parser(tokens)
    expr = parser.parse_expression()

    leftover = parser.current
    if leftover.kind is TokenKind.RPAREN:
        raise UnmatchedParenthesis(leftover.position, opening=False)
    if leftover.kind is not TokenKind.EOF:
        raise UnexpectedToken(leftover, "'+', '-', '*' or end of input")

    logger.debug("parsed %d tokens into %d nodes", len(parser.tokens), node_count(expr))
    return expr


def parse_expression(source: str) -> Expr:
    """
    Tokenize and parse an expression string.

    Examples:
        parse_expression("3 + x") -> Sum((Number(3), Variable("x")))

    Raises:
        LexError: If tokenization fails.
        ParseError: If the tokens do not form an expression.
    """
    return parse(tokenize(source))
