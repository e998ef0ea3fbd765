"""Tests for simplification tracing."""

import json

import pytest

from formulate import E, Number, Product, SimplifyStep, SimplifyTrace, Sum, simplify

x, a, b, c = E.vars("x", "a", "b", "c")


def traced(source):
    return simplify(E(source), trace=True)


class TestTraceBasics:
    """Tests for trace=True."""

    def test_returns_tuple(self):
        result, trace = traced("x + 0")
        assert result == x
        assert isinstance(trace, SimplifyTrace)

    def test_initial_and_final(self):
        expr = E("x + 0")
        result, trace = simplify(expr, trace=True)
        assert trace.initial == expr
        assert trace.final == result

    def test_traced_result_matches_untraced(self):
        for source in ["3+1*2*3*4+5*x", "x+x+2*x", "2*(a+b) - (a+b)", "(x+x)+1+2"]:
            result, _ = traced(source)
            assert result == simplify(E(source))

    def test_canonical_input_has_no_steps(self):
        _, trace = traced("x")
        assert len(trace) == 0
        assert not trace


class TestStages:
    """Each stage is recorded under its own name."""

    def test_fold(self):
        _, trace = traced("x + 0")
        assert [s.stage for s in trace] == ["fold"]
        step = trace.steps[0]
        assert step.before == Sum([x, Number(0)])
        assert step.after == x

    def test_fold_product(self):
        _, trace = traced("2*3*x")
        assert trace.format("stages") == "fold"

    def test_flatten(self):
        _, trace = traced("(a+b)+c")
        assert trace.format("stages") == "flatten"
        assert trace.steps[0].after == Sum([a, b, c])

    def test_merge(self):
        _, trace = traced("x + x")
        assert trace.format("stages") == "merge"
        assert trace.steps[0].after == Product([Number(2), x])

    def test_order(self):
        _, trace = traced("b + a")
        assert trace.format("stages") == "order"

    def test_children_recorded_first(self):
        """Steps on operands come before steps on their parent."""
        _, trace = traced("(x+x)+1+2")
        assert [s.stage for s in trace] == ["merge", "fold"]


class TestTraceFormat:
    """Tests for trace formatting."""

    def test_verbose(self):
        _, trace = traced("x + 0")
        expected = "Initial: x + 0\n  1. fold  x + 0 → x\nFinal: x"
        assert trace.format("verbose") == expected
        assert trace.format() == expected
        assert repr(trace) == expected

    def test_compact(self):
        _, trace = traced("x + 0")
        assert trace.format("compact") == "x + 0 --[fold]--> x"

    def test_stages_when_canonical(self):
        _, trace = traced("x")
        assert trace.format("stages") == "(already canonical)"

    def test_chain(self):
        _, trace = traced("x + 0")
        assert trace.format("chain") == "x + 0\n  --(fold)-->\nx"

    def test_chain_when_canonical(self):
        _, trace = traced("x")
        assert trace.format("chain") == "x"

    def test_step_repr(self):
        step = SimplifyStep("merge", E("x + x"), E("2*x"))
        assert repr(step) == "merge: x + x → 2*x"


class TestTraceSummary:
    """Tests for counts, summaries and dict export."""

    def test_to_dict(self):
        _, trace = traced("x + 0")
        assert trace.to_dict() == {
            "initial": "x + 0",
            "final": "x",
            "steps": [{"stage": "fold", "before": "x + 0", "after": "x"}],
            "step_count": 1,
        }

    def test_to_dict_is_json(self):
        _, trace = traced("3+1*2*3*4+5*x")
        data = json.loads(json.dumps(trace.to_dict()))
        assert data["final"] == "27 + 5*x"

    def test_stage_counts(self):
        _, trace = traced("(x+x)+1+2")
        assert trace.stage_counts() == {"merge": 1, "fold": 1}

    def test_summary(self):
        """Summary lists stages in pipeline order."""
        _, trace = traced("(x+x)+1+2")
        assert trace.summary() == "2 steps: fold x1, merge x1"

    def test_summary_when_canonical(self):
        _, trace = traced("x")
        assert trace.summary() == "No simplification performed"

    def test_verbose_aligns_stage_names(self):
        _, trace = traced("(x+x)+1+2")
        lines = trace.format("verbose").splitlines()
        assert lines[1] == "  1. merge  x + x → 2*x"
        assert lines[2] == "  2. fold   2*x + 1 + 2 → 3 + 2*x"

    def test_unknown_style(self):
        _, trace = traced("x + 0")
        with pytest.raises(ValueError) as exc:
            trace.format("table")
        assert "chain" in str(exc.value)

    def test_by_stage(self):
        """Steps grouped in pipeline order regardless of record order."""
        _, trace = traced("(x+x)+1+2")
        groups = trace.by_stage()
        assert list(groups) == ["fold", "merge"]
        assert groups["merge"][0].after == Product([Number(2), x])

    def test_stage_names(self):
        _, trace = traced("(x+x)+1+2")
        assert trace.stage_names() == ["merge", "fold"]
