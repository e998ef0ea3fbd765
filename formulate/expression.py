"""
Expression tree types for formulate.

An expression is one of four node kinds, a closed union:

    Number(3)                          a numeric literal (int or float)
    Variable("x")                      a symbolic identifier
    Sum((Number(3), Variable("x")))    addition of two or more operands
    Product((Number(5), Variable("x")))
                                       multiplication of two or more operands

Nodes are frozen pydantic models: immutable, hashable, and compared by
value. Each node owns its operands; trees are never shared or mutated.
Transformations build new trees.

Quick construction:
    from formulate import E

    E("3 + 5*x")                          # parse infix text
    E.sum(3, E.product(5, "x"))           # same tree, built directly
    x, y = E.vars("x", "y")
"""

from typing import Any, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

NumericType = Union[int, float]


class Number(BaseModel):
    """A numeric literal."""

    value: Union[int, float] = Field(description="The numeric value")

    model_config = ConfigDict(frozen=True)

    def __init__(self, value: NumericType, **data: Any) -> None:
        super().__init__(value=value, **data)

    def __str__(self) -> str:
        from .serializer import serialize
        return serialize(self)


class Variable(BaseModel):
    """A symbolic identifier."""

    name: str = Field(min_length=1, description="Identifier text")

    model_config = ConfigDict(frozen=True)

    def __init__(self, name: str, **data: Any) -> None:
        super().__init__(name=name, **data)

    def __str__(self) -> str:
        return self.name


class Sum(BaseModel):
    """Addition of two or more operands, in order."""

    operands: Tuple["Expr", ...] = Field(min_length=2, description="Summands")

    model_config = ConfigDict(frozen=True)

    def __init__(self, operands, **data: Any) -> None:
        super().__init__(operands=tuple(operands), **data)

    def __str__(self) -> str:
        from .serializer import serialize
        return serialize(self)


class Product(BaseModel):
    """Multiplication of two or more operands, in order."""

    operands: Tuple["Expr", ...] = Field(min_length=2, description="Factors")

    model_config = ConfigDict(frozen=True)

    def __init__(self, operands, **data: Any) -> None:
        super().__init__(operands=tuple(operands), **data)

    def __str__(self) -> str:
        from .serializer import serialize
        return serialize(self)


Expr = Union[Number, Variable, Sum, Product]

Sum.model_rebuild()
Product.model_rebuild()


# ============================================================
# Predicates
# ============================================================

def is_number(expr: Any) -> bool:
    """Check if an expression is a numeric literal."""
    return isinstance(expr, Number)


def is_variable(expr: Any) -> bool:
    """Check if an expression is a variable."""
    return isinstance(expr, Variable)


def is_compound(expr: Any) -> bool:
    """Check if an expression is a Sum or Product."""
    return isinstance(expr, (Sum, Product))


def is_expression(expr: Any) -> bool:
    """Check if a value is any expression node."""
    return isinstance(expr, (Number, Variable, Sum, Product))


def node_count(expr: Expr) -> int:
    """Count the nodes in a tree."""
    if isinstance(expr, (Sum, Product)):
        return 1 + sum(node_count(op) for op in expr.operands)
    return 1


def variables(expr: Expr) -> Tuple[str, ...]:
    """Return the distinct variable names in a tree, sorted."""
    found = set()

    def walk(e):
        if isinstance(e, Variable):
            found.add(e.name)
        elif isinstance(e, (Sum, Product)):
            for op in e.operands:
                walk(op)

    walk(expr)
    return tuple(sorted(found))


def to_expr(value: Union[Expr, NumericType, str]) -> Expr:
    """
    Coerce a Python value into an expression node.

    Numbers become Number, strings become Variable, nodes pass through.
    """
    if is_expression(value):
        return value
    if isinstance(value, bool):
        raise TypeError(f"Cannot convert {value!r} to an expression")
    if isinstance(value, (int, float)):
        return Number(value)
    if isinstance(value, str):
        return Variable(value)
    raise TypeError(f"Cannot convert {value!r} to an expression")


# ============================================================
# Expression Builder
# ============================================================

class _ExprBuilder:
    """
    Expression builder for formulate.

    Examples:
        from formulate import E

        # Parse infix text
        expr = E("x + 2*y")

        # Build programmatically
        expr = E.sum("x", E.product(2, "y"))

        # Create variables
        x, y = E.vars("x", "y")
        expr = E.sum(x, E.product(2, y))
    """

    def __call__(self, source: str) -> Expr:
        """
        Parse an infix expression string.

        Examples:
            E("x + 1") -> Sum((Variable("x"), Number(1)))
            E("2*(a+b)") -> Product((Number(2), Sum((Variable("a"), Variable("b")))))
        """
        from .parser import parse_expression
        return parse_expression(source)

    def sum(self, *operands) -> Sum:
        """Build a Sum from two or more operands (numbers and names are coerced)."""
        return Sum([to_expr(op) for op in operands])

    def product(self, *operands) -> Product:
        """Build a Product from two or more operands (numbers and names are coerced)."""
        return Product([to_expr(op) for op in operands])

    def num(self, value: NumericType) -> Number:
        """Create a numeric literal."""
        return Number(value)

    def var(self, name: str) -> Variable:
        """Create a variable."""
        return Variable(name)

    def vars(self, *names: str) -> Tuple[Variable, ...]:
        """
        Create multiple variables for unpacking.

        Example:
            x, y, z = E.vars("x", "y", "z")
        """
        return tuple(Variable(name) for name in names)

    def __repr__(self) -> str:
        return "E (expression builder)"


# Singleton instance
E = _ExprBuilder()
