"""
End-to-end pipeline: text → tokens → raw tree → canonical tree → markup.

    original, simplified = render("3 + 1*2*3*4 + 5*x")
    # original   == "3 + 1*2*3*4 + 5*x"
    # simplified == "27 + 5*x"

    render("x + x", notation="typst").simplified  # "$ 2 x $"
"""

from typing import NamedTuple, Tuple, Union

from .parser import parse_expression
from .serializer import serialize
from .simplifier import SimplifyTrace, simplify


class Rendering(NamedTuple):
    """The markup of an expression before and after simplification."""

    original: str
    simplified: str


def render(
    source: str,
    notation: str = "text",
    trace: bool = False,
) -> Union[Rendering, Tuple[Rendering, SimplifyTrace]]:
    """
    Parse, simplify, and serialize an expression string.

    Args:
        source: One expression in infix text
        notation: Serializer notation for both renderings
        trace: If True, also return the SimplifyTrace

    Returns:
        Rendering(original, simplified), or (rendering, trace) when trace=True

    Raises:
        LexError, ParseError: If the source is not a valid expression.
        NumericOverflowError: If constant folding leaves the float range.
        ValueError: If the notation is not registered.
    """
    raw = parse_expression(source)
    if trace:
        result, recorder = simplify(raw, trace=True)
    else:
        result, recorder = simplify(raw), None

    rendering = Rendering(serialize(raw, notation), serialize(result, notation))
    if recorder is None:
        return rendering
    return rendering, recorder
