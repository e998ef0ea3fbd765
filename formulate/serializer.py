"""
Rendering of expression trees to text.

serialize(expr, notation) renders a tree in one of the registered
notations:

    text    infix text the parser reads back:     27 + 5*x
    typst   Typst math markup for typesetting:     $ 27 + 5 x $
    sexpr   prefix s-expression:                   (+ 27 (* 5 x))
    tree    indented node dump for debugging

Rendering never fails for a valid tree. Parentheses are inserted only
around a Sum that is a factor of a Product (or is negated inside a Sum);
canonical trees have no other ambiguous nesting.
"""

from decimal import MAX_PREC, Decimal, localcontext
from typing import Callable, Dict, List, Optional

from .expression import Expr, Number, Product, Sum, Variable

Renderer = Callable[[Expr], str]


def format_number(value) -> str:
    """
    Render a numeric value in its literal form.

    Integers print as digits (through Decimal, so any length works);
    floats print in positional notation, never exponent form, so the lexer
    can read them back.
    """
    if isinstance(value, int):
        with localcontext() as ctx:
            ctx.prec = MAX_PREC
            return format(Decimal(value), "f")
    text = repr(value)
    if "e" in text or "E" in text:
        return format(Decimal(text), "f")
    return text


def negation(expr: Expr) -> Optional[Expr]:
    """
    Return -expr if expr carries a negative leading coefficient, else None.

    Used to print "a - b" instead of "a + -b".
    """
    if isinstance(expr, Number) and expr.value < 0:
        return Number(-expr.value)
    if isinstance(expr, Product):
        first = expr.operands[0]
        if isinstance(first, Number) and first.value < 0:
            rest = list(expr.operands[1:])
            if first.value != -1:
                rest.insert(0, Number(-first.value))
            return rest[0] if len(rest) == 1 else Product(rest)
    return None


# ============================================================
# Text notation
# ============================================================

def to_text(expr: Expr) -> str:
    """Render as infix text accepted by parse_expression()."""
    if isinstance(expr, Number):
        return format_number(expr.value)
    if isinstance(expr, Variable):
        return expr.name
    if isinstance(expr, Sum):
        return _join_sum(expr, to_text)
    if isinstance(expr, Product):
        operands = list(expr.operands)
        prefix = ""
        first = operands[0]
        if isinstance(first, Number) and first.value == -1:
            prefix = "-"
            operands = operands[1:]
        return prefix + "*".join(_text_factor(op) for op in operands)
    raise TypeError(f"Not an expression: {expr!r}")


def _text_factor(expr: Expr) -> str:
    if isinstance(expr, Sum):
        return f"({to_text(expr)})"
    return to_text(expr)


def _join_sum(expr: Sum, render: Renderer) -> str:
    parts: List[str] = [render(expr.operands[0])]
    for op in expr.operands[1:]:
        negated = negation(op)
        if negated is None:
            parts.append(f" + {render(op)}")
        elif isinstance(negated, Sum):
            parts.append(f" - ({render(negated)})")
        else:
            parts.append(f" - {render(negated)}")
    return "".join(parts)


# ============================================================
# Typst notation
# ============================================================

def typst_name(name: str) -> str:
    """Single letters are math variables; longer names are quoted text."""
    return name if len(name) == 1 else f'"{name}"'


def _typst_body(expr: Expr) -> str:
    if isinstance(expr, Number):
        return format_number(expr.value)
    if isinstance(expr, Variable):
        return typst_name(expr.name)
    if isinstance(expr, Sum):
        return _join_sum(expr, _typst_body)
    if isinstance(expr, Product):
        operands = list(expr.operands)
        prefix = ""
        first = operands[0]
        if isinstance(first, Number) and first.value == -1:
            prefix = "-"
            operands = operands[1:]
        parts = [_typst_factor(operands[0], leading=True)]
        for op in operands[1:]:
            # Juxtaposed numbers would read as one number
            separator = " dot " if isinstance(op, Number) else " "
            parts.append(separator + _typst_factor(op, leading=False))
        return prefix + "".join(parts)
    raise TypeError(f"Not an expression: {expr!r}")


def _typst_factor(expr: Expr, leading: bool) -> str:
    if isinstance(expr, Sum):
        return f"({_typst_body(expr)})"
    if isinstance(expr, Number) and expr.value < 0 and not leading:
        return f"({_typst_body(expr)})"
    return _typst_body(expr)


def to_typst(expr: Expr) -> str:
    """Render as a Typst display-math block."""
    return f"$ {_typst_body(expr)} $"


# ============================================================
# S-expression and tree notations
# ============================================================

def to_sexpr(expr: Expr) -> str:
    """
    Render as a prefix s-expression.

    Examples:
        Sum((Number(27), Product((Number(5), Variable("x"))))) -> "(+ 27 (* 5 x))"
    """
    if isinstance(expr, Number):
        return format_number(expr.value)
    if isinstance(expr, Variable):
        return expr.name
    if isinstance(expr, Sum):
        return "(+ " + " ".join(to_sexpr(op) for op in expr.operands) + ")"
    if isinstance(expr, Product):
        return "(* " + " ".join(to_sexpr(op) for op in expr.operands) + ")"
    raise TypeError(f"Not an expression: {expr!r}")


def to_tree(expr: Expr, indent: int = 0) -> str:
    """Render an indented dump of the node structure, one node per line."""
    pad = " " * indent
    if isinstance(expr, Number):
        return f"{pad}Number {format_number(expr.value)}"
    if isinstance(expr, Variable):
        return f"{pad}Variable {expr.name}"
    if isinstance(expr, (Sum, Product)):
        lines = [f"{pad}{type(expr).__name__}"]
        lines.extend(to_tree(op, indent + 2) for op in expr.operands)
        return "\n".join(lines)
    raise TypeError(f"Not an expression: {expr!r}")


# Built-in notations
NOTATIONS: Dict[str, Renderer] = {
    "text": to_text,
    "typst": to_typst,
    "sexpr": to_sexpr,
    "tree": to_tree,
}


def serialize(expr: Expr, notation: str = "text") -> str:
    """
    Render an expression tree in the named notation.

    Args:
        expr: The tree to render
        notation: A key of NOTATIONS ("text", "typst", "sexpr", "tree")

    Raises:
        ValueError: If the notation is not registered.
    """
    try:
        renderer = NOTATIONS[notation]
    except KeyError:
        available = ", ".join(NOTATIONS)
        raise ValueError(f"Unknown notation: {notation!r} (available: {available})") from None
    return renderer(expr)
