"""
Exception types for formulate.

Every failure the library can report derives from FormulateError and
carries the character position it refers to (None when the error is not
tied to a place in the source text).

Lexing and parsing reject the whole input; there is no recovery and no
partial result. Simplification raises only when numeric folding leaves the
float range; serialization never raises.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .lexer import Token


class FormulateError(Exception):
    """Base class for all formulate errors."""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} (at position {self.position})"


class LexError(FormulateError):
    """An unrecognized character in the input."""

    def __init__(self, position: int, char: str, message: Optional[str] = None):
        super().__init__(message or f"Unexpected character {char!r}", position)
        self.char = char


class NumberOutOfRange(LexError):
    """A decimal literal too large to represent as a float."""

    def __init__(self, position: int, text: str):
        super().__init__(
            position, text[0],
            f"Number literal out of range ({len(text)} characters)",
        )
        self.text = text


class ParseError(FormulateError):
    """The token sequence does not form an expression."""


class UnexpectedToken(ParseError):
    """A token appeared where the grammar expected something else."""

    def __init__(self, found: "Token", expected: str):
        super().__init__(
            f"Unexpected {found.describe()}, expected {expected}",
            found.position,
        )
        self.found = found
        self.expected = expected


class UnmatchedParenthesis(ParseError):
    """An opening parenthesis was never closed, or a closing one has no partner."""

    def __init__(self, position: int, opening: bool = True):
        if opening:
            message = "Unmatched '(': missing closing ')'"
        else:
            message = "Unmatched ')'"
        super().__init__(message, position)
        self.opening = opening


class UnexpectedEndOfInput(ParseError):
    """The input ended where an operand was required."""

    def __init__(self, position: int, expected: str = "an operand"):
        super().__init__(f"Unexpected end of input, expected {expected}", position)
        self.expected = expected


class UnboundVariableError(FormulateError):
    """Evaluation reached a variable with no value bound to it."""

    def __init__(self, name: str):
        super().__init__(f"No value bound for variable '{name}'")
        self.name = name


class NestingTooDeep(ParseError):
    """Parentheses or prefix minus signs nested past the parser's limit."""

    def __init__(self, position: int, limit: int):
        super().__init__(f"Expression nested deeper than {limit} levels", position)
        self.limit = limit


class NumericOverflowError(FormulateError):
    """Folding numbers produced a value outside the float range."""

    def __init__(self, operation: str):
        super().__init__(f"Numeric overflow while folding {operation}")
        self.operation = operation
