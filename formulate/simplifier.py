"""
Canonical simplification for formulate expression trees.

simplify() rewrites a tree bottom-up into its canonical form. Each Sum and
Product is handled after its operands, in stages:

    flatten   splice nested Sum-in-Sum / Product-in-Product operands
    fold      combine numeric operands (0 drops from sums, 1 from products,
              a zero coefficient collapses a product to 0)
    merge     combine like terms of a Sum by adding their coefficients
    order     sort operands by a deterministic total key

A node left with a single operand is replaced by it, one left with none
becomes the operator's identity. Two inputs that are equal under
associativity, commutativity and constant folding yield identical trees,
and simplify(simplify(e)) == simplify(e).

Tracing:
    result, trace = simplify(expr, trace=True)
    print(trace.format("chain"))
"""

import logging
import math
from collections import OrderedDict
from typing import Callable, Dict, List, Optional, Tuple, Union

from .errors import NumericOverflowError
from .expression import Expr, Number, NumericType, Product, Sum, Variable, node_count

logger = logging.getLogger(__name__)

FoldHandler = Callable[[List[NumericType]], NumericType]

STAGES = ("flatten", "fold", "merge", "order")


# ============================================================
# Numeric folding
# ============================================================

def nary_fold(
    name: str,
    identity: NumericType,
    binary_op: Callable[[NumericType, NumericType], NumericType],
) -> FoldHandler:
    """Create an n-ary folder with identity element.

    Integer arithmetic is exact. A float result that overflows (or an int
    too large to mix with a float) raises NumericOverflowError rather than
    producing inf or nan, which have no literal form.

    Examples:
        nary_fold("sum", 0, lambda a, b: a + b)      # [] -> 0, [x, y, z] -> x+y+z
        nary_fold("product", 1, lambda a, b: a * b)  # [] -> 1, [x, y, z] -> x*y*z
    """
    def handler(args: List[NumericType]) -> NumericType:
        result = identity
        try:
            for a in args:
                result = binary_op(result, a)
        except OverflowError:
            raise NumericOverflowError(name) from None
        if isinstance(result, float) and not math.isfinite(result):
            raise NumericOverflowError(name)
        return normalize_number(result)
    return handler


def normalize_number(value: NumericType) -> NumericType:
    """Preserve integer type when a float result is integral."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


ADD = nary_fold("sum", 0, lambda a, b: a + b)
MUL = nary_fold("product", 1, lambda a, b: a * b)


# ============================================================
# Canonical keys
# ============================================================

def split_term(term: Expr) -> Tuple[NumericType, Tuple[Expr, ...]]:
    """
    Split a Sum operand into (coefficient, non-numeric factors).

    A Number is all coefficient, a Product gives up its numeric operands,
    and anything else is its own single factor with coefficient 1.
    """
    if isinstance(term, Number):
        return term.value, ()
    if isinstance(term, Product):
        numbers = [op.value for op in term.operands if isinstance(op, Number)]
        factors = tuple(op for op in term.operands if not isinstance(op, Number))
        return MUL(numbers), factors
    return 1, (term,)


def factor_key(factor: Expr) -> Tuple:
    """Total ordering key for a Product operand."""
    if isinstance(factor, Number):
        return (-1, factor.value)
    if isinstance(factor, Variable):
        return (0, factor.name)
    if isinstance(factor, Sum):
        return (1, tuple(term_key(op) for op in factor.operands))
    if isinstance(factor, Product):
        return (2, term_key(factor))
    raise TypeError(f"Not an expression: {factor!r}")


def signature(term: Expr) -> Tuple:
    """
    The like-term signature of a Sum operand.

    The sorted tuple of its non-numeric factors' keys: order independent,
    and a multiset, so x*x and x have different signatures. A Number has
    the empty signature.
    """
    _, factors = split_term(term)
    return tuple(sorted(factor_key(f) for f in factors))


def term_key(term: Expr) -> Tuple:
    """Total ordering key for a Sum operand: (signature, coefficient)."""
    coefficient, _ = split_term(term)
    return (signature(term), coefficient)


# ============================================================
# Trace
# ============================================================

class SimplifyStep:
    """One stage that changed one Sum or Product node."""

    def __init__(self, stage: str, before: Expr, after: Expr):
        self.stage = stage
        self.before = before
        self.after = after

    def __repr__(self) -> str:
        from .serializer import serialize
        return f"{self.stage}: {serialize(self.before)} → {serialize(self.after)}"

    def to_dict(self) -> Dict:
        from .serializer import serialize
        return {
            "stage": self.stage,
            "before": serialize(self.before),
            "after": serialize(self.after),
        }


class SimplifyTrace:
    """
    The stages that changed nodes during one simplify() call.

    Steps are local: each one shows a single Sum or Product before and after
    one stage, not the whole tree. They are appended in the order nodes
    finish, so operands come before the node holding them, and one node's
    steps follow STAGES order. A stage that leaves its node unchanged is not
    recorded, so an already canonical input gives an empty trace.

    format() styles:
        verbose   numbered steps with each node before and after (the repr)
        compact   initial and final tree with the stage names between
        stages    stage names only, "(already canonical)" when empty
        chain     the node produced by each step, one per line
    """

    def __init__(self):
        self.steps: List[SimplifyStep] = []
        self.initial: Optional[Expr] = None
        self.final: Optional[Expr] = None

    def add_step(self, step: SimplifyStep):
        self.steps.append(step)

    def format(self, style: str = "verbose") -> str:
        """
        Render the trace in one of the styles listed on the class.

        Raises:
            ValueError: If the style is not known.
        """
        renderers = {
            "verbose": self._verbose,
            "compact": self._compact,
            "stages": self._stages,
            "chain": self._chain,
        }
        if style not in renderers:
            raise ValueError(f"Unknown trace style: {style!r} (available: {', '.join(renderers)})")
        return renderers[style]()

    def _verbose(self) -> str:
        from .serializer import serialize
        width = max((len(s.stage) for s in self.steps), default=0)
        lines = [f"Initial: {serialize(self.initial)}"]
        for i, step in enumerate(self.steps, 1):
            lines.append(
                f"  {i}. {step.stage:<{width}}  "
                f"{serialize(step.before)} → {serialize(step.after)}"
            )
        lines.append(f"Final: {serialize(self.final)}")
        return "\n".join(lines)

    def _compact(self) -> str:
        from .serializer import serialize
        return f"{serialize(self.initial)} --[{', '.join(self.stage_names())}]--> {serialize(self.final)}"

    def _stages(self) -> str:
        return " -> ".join(self.stage_names()) or "(already canonical)"

    def _chain(self) -> str:
        from .serializer import serialize
        parts = [serialize(self.initial)]
        for step in self.steps:
            parts.append(f"  --({step.stage})-->")
            parts.append(serialize(step.after))
        return "\n".join(parts)

    def __repr__(self) -> str:
        return self._verbose()

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    def __bool__(self) -> bool:
        """True if any stage changed a node."""
        return bool(self.steps)

    def stage_names(self) -> List[str]:
        return [step.stage for step in self.steps]

    def by_stage(self) -> Dict[str, List[SimplifyStep]]:
        """Group steps by stage, in STAGES order, omitting unused stages."""
        groups: Dict[str, List[SimplifyStep]] = {}
        for stage in STAGES:
            matching = [step for step in self.steps if step.stage == stage]
            if matching:
                groups[stage] = matching
        return groups

    def stage_counts(self) -> Dict[str, int]:
        """Number of nodes each stage changed."""
        return {stage: len(steps) for stage, steps in self.by_stage().items()}

    def to_dict(self) -> Dict:
        """JSON-ready form of the trace."""
        from .serializer import serialize
        return {
            "initial": serialize(self.initial),
            "final": serialize(self.final),
            "steps": [step.to_dict() for step in self.steps],
            "step_count": len(self.steps),
        }

    def summary(self) -> str:
        """One line: the step total and the per-stage counts."""
        if not self.steps:
            return "No simplification performed"
        counts = ", ".join(f"{stage} x{n}" for stage, n in self.stage_counts().items())
        return f"{len(self.steps)} steps: {counts}"


# ============================================================
# Simplification
# ============================================================

def simplify(expr: Expr, trace: bool = False) -> Union[Expr, Tuple[Expr, SimplifyTrace]]:
    """
    Rewrite an expression tree into canonical form.

    Args:
        expr: Any expression tree (raw parser output or already simplified)
        trace: If True, also return a SimplifyTrace of the changes made

    Returns:
        The canonical tree, or (tree, trace) when trace=True

    Raises:
        NumericOverflowError: If folding a float leaves the float range.

    Examples:
        simplify(E("3 + 1*2*3*4 + 5*x"))  # 27 + 5*x
        simplify(E("x + x + 2*x"))         # 4*x
        simplify(E("0*x"))                 # 0
    """
    recorder = SimplifyTrace() if trace else None
    result = _simplify(expr, recorder)
    logger.debug("simplified %d nodes to %d", node_count(expr), node_count(result))

    if recorder is None:
        return result
    recorder.initial = expr
    recorder.final = result
    return result, recorder


def _simplify(expr: Expr, trace: Optional[SimplifyTrace]) -> Expr:
    if isinstance(expr, Number):
        value = normalize_number(expr.value)
        return expr if value is expr.value else Number(value)
    if isinstance(expr, Variable):
        return expr
    if isinstance(expr, Sum):
        operands = [_simplify(op, trace) for op in expr.operands]
        return _simplify_sum(operands, trace)
    if isinstance(expr, Product):
        operands = [_simplify(op, trace) for op in expr.operands]
        return _simplify_product(operands, trace)
    raise TypeError(f"Not an expression: {expr!r}")


def build(kind, operands: List[Expr]) -> Expr:
    """
    Assemble a Sum or Product, collapsing degenerate operand lists.

    No operands gives the identity (0 for Sum, 1 for Product); one operand
    is returned unwrapped.
    """
    if not operands:
        return Number(0) if kind is Sum else Number(1)
    if len(operands) == 1:
        return operands[0]
    return kind(operands)


def _record(trace, stage: str, kind, before: Expr, operands: List[Expr]) -> Expr:
    if trace is None:
        return before
    after = build(kind, operands)
    if after != before:
        trace.add_step(SimplifyStep(stage, before, after))
    return after


def flatten(kind, operands: List[Expr]) -> List[Expr]:
    """Splice operands of the same kind into the parent, recursively."""
    flat: List[Expr] = []
    for op in operands:
        if isinstance(op, kind):
            flat.extend(flatten(kind, list(op.operands)))
        else:
            flat.append(op)
    return flat


def scale(coefficient: NumericType, factors: Tuple[Expr, ...]) -> Expr:
    """Rebuild a term from its coefficient and (sorted) non-numeric factors."""
    if not factors:
        return Number(coefficient)
    if coefficient == 1:
        return factors[0] if len(factors) == 1 else Product(factors)
    return Product((Number(coefficient),) + tuple(factors))


def merge_like_terms(terms: List[Expr]) -> List[Expr]:
    """
    Merge Sum operands that share a signature.

    The merged term's coefficient is the sum of the individual
    coefficients; terms whose coefficients cancel to 0 are dropped.
    First-seen order is kept.
    """
    groups: "OrderedDict[Tuple, List]" = OrderedDict()
    for term in terms:
        coefficient, factors = split_term(term)
        key = signature(term)
        if key in groups:
            groups[key][0].append(coefficient)
        else:
            ordered = tuple(sorted(factors, key=factor_key))
            groups[key] = [[coefficient], ordered]

    merged: List[Expr] = []
    for coefficients, factors in groups.values():
        total = ADD(coefficients)
        if total == 0:
            continue
        merged.append(scale(total, factors))
    return merged


def _simplify_sum(operands: List[Expr], trace: Optional[SimplifyTrace]) -> Expr:
    current = build(Sum, operands) if trace is not None else None

    flat = flatten(Sum, operands)
    current = _record(trace, "flatten", Sum, current, flat)

    numbers = [op.value for op in flat if isinstance(op, Number)]
    terms = [op for op in flat if not isinstance(op, Number)]
    constant = ADD(numbers)
    folded = ([Number(constant)] if constant != 0 else []) + terms
    current = _record(trace, "fold", Sum, current, folded)

    merged = merge_like_terms(terms)
    if constant != 0:
        merged.insert(0, Number(constant))
    current = _record(trace, "merge", Sum, current, merged)

    if any(isinstance(op, Sum) for op in merged):
        # A merged coefficient of 1 can expose a bare Sum factor
        return _simplify_sum(merged, trace)

    ordered = sorted(merged, key=term_key)
    _record(trace, "order", Sum, current, ordered)
    return build(Sum, ordered)


def _simplify_product(operands: List[Expr], trace: Optional[SimplifyTrace]) -> Expr:
    current = build(Product, operands) if trace is not None else None

    flat = flatten(Product, operands)
    current = _record(trace, "flatten", Product, current, flat)

    coefficient = MUL([op.value for op in flat if isinstance(op, Number)])
    factors = [op for op in flat if not isinstance(op, Number)]
    if coefficient == 0:
        folded: List[Expr] = [Number(0)]
    else:
        folded = ([Number(coefficient)] if coefficient != 1 else []) + factors
    current = _record(trace, "fold", Product, current, folded)
    if coefficient == 0:
        return Number(0)

    ordered = sorted(factors, key=factor_key)
    if coefficient != 1:
        ordered.insert(0, Number(coefficient))
    _record(trace, "order", Product, current, ordered)
    return build(Product, ordered)
