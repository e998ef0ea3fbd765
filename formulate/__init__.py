"""
formulate - canonical simplification of arithmetic expressions

Turns infix text into an expression tree, rewrites the tree into a
canonical form (flattened, constants folded, like terms merged, operands
ordered), and renders it as text or Typst markup.

Quick Start:
    from formulate import E, simplify, serialize

    expr = simplify(E("3 + 1*2*3*4 + 5*x"))
    serialize(expr)           # => "27 + 5*x"
    serialize(expr, "typst")  # => "$ 27 + 5 x $"

    from formulate import render
    render("x + x + 2*x")     # => Rendering(original='x + x + 2*x', simplified='4*x')

Expression Syntax:
    42, 2.5          numbers
    x, rate          variables (alphabetic runs)
    a + b, a - b     addition, subtraction
    a * b            multiplication (binds tighter)
    -a, (a + b)      negation, grouping

Notations:
    text   infix, re-readable by the parser
    typst  Typst math markup
    sexpr  prefix s-expression
    tree   indented node dump
"""

__version__ = "0.1.0"

# Expression model
from .expression import (
    Expr,
    Number,
    Variable,
    Sum,
    Product,
    NumericType,
    E,
    is_number,
    is_variable,
    is_compound,
    is_expression,
    node_count,
    variables,
    to_expr,
)

# Errors
from .errors import (
    FormulateError,
    LexError,
    NumberOutOfRange,
    ParseError,
    UnexpectedToken,
    UnmatchedParenthesis,
    UnexpectedEndOfInput,
    NestingTooDeep,
    NumericOverflowError,
    UnboundVariableError,
)

# Pipeline stages
from .lexer import Token, TokenKind, tokenize
from .parser import MAX_DEPTH, parse, parse_expression
from .simplifier import (
    simplify,
    signature,
    term_key,
    factor_key,
    SimplifyStep,
    SimplifyTrace,
)
from .serializer import NOTATIONS, serialize, format_number
from .evaluator import evaluate
from .pipeline import Rendering, render

# Public API
__all__ = [
    # Version
    "__version__",
    # Expressions
    "Expr",
    "Number",
    "Variable",
    "Sum",
    "Product",
    "NumericType",
    "E",
    "is_number",
    "is_variable",
    "is_compound",
    "is_expression",
    "node_count",
    "variables",
    "to_expr",
    # Errors
    "FormulateError",
    "LexError",
    "NumberOutOfRange",
    "ParseError",
    "UnexpectedToken",
    "UnmatchedParenthesis",
    "UnexpectedEndOfInput",
    "NestingTooDeep",
    "NumericOverflowError",
    "UnboundVariableError",
    # Lexer and parser
    "Token",
    "TokenKind",
    "tokenize",
    "parse",
    "parse_expression",
    "MAX_DEPTH",
    # Simplifier
    "simplify",
    "signature",
    "term_key",
    "factor_key",
    "SimplifyStep",
    "SimplifyTrace",
    # Serializer
    "NOTATIONS",
    "serialize",
    "format_number",
    # Evaluation and pipeline
    "evaluate",
    "Rendering",
    "render",
]
