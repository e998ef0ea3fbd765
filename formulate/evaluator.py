"""
Numeric evaluation of expression trees.

    evaluate(E("2*x + 1"), {"x": 3})  # => 7
"""

from typing import Mapping, Optional

from .errors import UnboundVariableError
from .expression import Expr, Number, NumericType, Product, Sum, Variable
from .simplifier import ADD, MUL, normalize_number


def evaluate(expr: Expr, bindings: Optional[Mapping[str, NumericType]] = None) -> NumericType:
    """
    Compute the numeric value of an expression.

    Args:
        expr: The tree to evaluate
        bindings: Values for the variables that appear in the tree

    Returns:
        The value; integral float results are returned as int

    Raises:
        UnboundVariableError: If a variable has no value in bindings.
        NumericOverflowError: If a float result leaves the float range.
    """
    env = bindings or {}

    def loop(e: Expr) -> NumericType:
        if isinstance(e, Number):
            return e.value
        if isinstance(e, Variable):
            if e.name not in env:
                raise UnboundVariableError(e.name)
            return env[e.name]
        if isinstance(e, Sum):
            return ADD([loop(op) for op in e.operands])
        if isinstance(e, Product):
            return MUL([loop(op) for op in e.operands])
        raise TypeError(f"Not an expression: {e!r}")

    return normalize_number(loop(expr))
