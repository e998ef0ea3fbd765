"""
Tokenizer for formulate expressions.

Converts an expression string into a list of typed tokens, always
terminated by an EOF token positioned at the end of the input.
"""

import logging
import math
import re
from decimal import MAX_PREC, Decimal, localcontext
from enum import Enum
from typing import List, NamedTuple, Union

from .errors import LexError, NumberOutOfRange

logger = logging.getLogger(__name__)


class TokenKind(str, Enum):
    """Token types for the expression language."""

    NUMBER = "number"
    IDENTIFIER = "identifier"
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    LPAREN = "("
    RPAREN = ")"
    EOF = "end of input"


class Token(NamedTuple):
    """A single token: its kind, the source text it covers, and where it starts."""

    kind: TokenKind
    text: str
    position: int

    @property
    def value(self) -> Union[int, float, str]:
        """Parsed value: int or float for numbers, the text otherwise."""
        if self.kind is TokenKind.NUMBER:
            return parse_number(self.text)
        return self.text

    def describe(self) -> str:
        """Human-readable description for error messages."""
        if self.kind is TokenKind.EOF:
            return "end of input"
        if self.kind is TokenKind.NUMBER:
            return f"number {self.text}"
        if self.kind is TokenKind.IDENTIFIER:
            return f"identifier {self.text!r}"
        return f"{self.text!r}"


# Digits with an optional fractional part
_NUMBER_RE = re.compile(r"\d+(\.\d+)?")


def parse_number(text: str) -> Union[int, float]:
    """
    Convert a numeric literal to int or float.

    Digit runs go through Decimal so literals of any length convert exactly.
    """
    if "." in text:
        return float(text)
    with localcontext() as ctx:
        ctx.prec = MAX_PREC
        return int(Decimal(text))


_SINGLE_CHAR: dict = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
}


def tokenize(source: str) -> List[Token]:
    """
    Tokenize an expression string.

    Examples:
        tokenize("3 + x") -> [NUMBER '3', PLUS '+', IDENTIFIER 'x', EOF]

    Raises:
        LexError: On any character that starts no token.
        NumberOutOfRange: On a decimal literal beyond the float range.
    """
    tokens: List[Token] = []
    i = 0
    n = len(source)

    while i < n:
        c = source[i]

        if c.isspace():
            i += 1
            continue

        if c.isdigit():
            m = _NUMBER_RE.match(source, i)
            if m is None:
                # Superscripts like '²' pass isdigit() but are not decimal
                raise LexError(i, c)
            text = m.group(0)
            if "." in text and not math.isfinite(float(text)):
                raise NumberOutOfRange(i, text)
            tokens.append(Token(TokenKind.NUMBER, text, i))
            i = m.end()
            continue

        if c.isalpha():
            start = i
            while i < n and source[i].isalpha():
                i += 1
            tokens.append(Token(TokenKind.IDENTIFIER, source[start:i], start))
            continue

        kind = _SINGLE_CHAR.get(c)
        if kind is not None:
            tokens.append(Token(kind, c, i))
            i += 1
            continue

        raise LexError(i, c)

    tokens.append(Token(TokenKind.EOF, "", n))
    logger.debug("tokenized %r into %d tokens", source, len(tokens))
    return tokens
