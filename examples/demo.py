#!/usr/bin/env python3
"""
formulate Feature Demonstration

Walks through parsing, canonical simplification, the output notations,
tracing and numeric evaluation.
"""

import json

from formulate import (
    E, FormulateError,
    simplify, serialize, render, evaluate,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def demo_basic_usage():
    """Demonstrate the text-in, text-out pipeline."""
    section("Basic Usage")

    examples = [
        "3 + 1*2*3*4 + 5*x",
        "x + x + 2*x",
        "0 + x*1",
        "0*x",
    ]

    for source in examples:
        original, simplified = render(source)
        print(f"  {original}  =>  {simplified}")


def demo_canonical_form():
    """Equivalent inputs share one canonical tree."""
    section("Canonical Form")

    groups = [
        ("a*b + x + 2", "2 + x + b*a", "(x + 2) + a*b"),
        ("x*(a+b)", "(b+a)*x"),
    ]

    for sources in groups:
        results = {serialize(simplify(E(s))) for s in sources}
        print(f"  {' | '.join(sources)}")
        print(f"    => {results.pop() if len(results) == 1 else results}")


def demo_subtraction():
    """Subtraction and negation are sugar for -1 coefficients."""
    section("Subtraction")

    examples = [
        "x - x",
        "2*x - 5*x",
        "x - (a + b)",
        "2*(a+b) - (a+b)",
    ]

    for source in examples:
        print(f"  {source}  =>  {render(source).simplified}")


def demo_notations():
    """Demonstrate the output notations."""
    section("Notations")

    expr = simplify(E("3 + 1*2*3*4 + 5*rate*x"))
    for notation in ["text", "typst", "sexpr"]:
        print(f"  {notation:6} {serialize(expr, notation)}")

    print("\n  tree:")
    for line in serialize(expr, "tree").splitlines():
        print(f"    {line}")


def demo_tracing():
    """Demonstrate simplification tracing."""
    section("Tracing")

    result, trace = simplify(E("(x + x) + 1 + 2"), trace=True)
    print(f"  Result: {serialize(result)}")
    print(f"  {trace.summary()}")
    print("\n  Verbose:")
    for line in trace.format("verbose").splitlines():
        print(f"    {line}")
    print("\n  As JSON:")
    print(f"    {json.dumps(trace.to_dict())}")


def demo_evaluation():
    """Demonstrate numeric evaluation."""
    section("Evaluation")

    expr = E("3 + 1*2*3*4 + 5*x")
    for x in [0, 1, 2.5]:
        print(f"  x = {x}: {evaluate(expr, {'x': x})}")


def demo_errors():
    """Demonstrate error reporting."""
    section("Errors")

    for source in ["1 +", "(x + 1", "x + 1)", "2 ^ 3"]:
        try:
            render(source)
        except FormulateError as e:
            print(f"  {source!r:10} {type(e).__name__}: {e}")


def main():
    """Run all demonstrations."""
    print("formulate - canonical simplification of arithmetic expressions")
    print("Feature Demonstration")

    demo_basic_usage()
    demo_canonical_form()
    demo_subtraction()
    demo_notations()
    demo_tracing()
    demo_evaluation()
    demo_errors()

    print("\n" + "="*60)
    print(" Demo complete!")
    print("="*60)


if __name__ == "__main__":
    main()
