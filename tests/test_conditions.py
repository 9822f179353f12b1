# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for edge condition evaluation
"""

import pytest

from tool_orchestration.engine.conditions import (
    MISSING,
    ConditionEvaluator,
    ConditionSyntaxError,
    evaluate_condition,
    extract_value,
    parse_condition,
)
from tool_orchestration.engine.context import ExecutionContext
from tests.factories import edge, tool, workflow


class TestComparisons:
    """Numeric comparisons against upstream results"""

    @pytest.mark.parametrize("coverage,expected", [(85, True), (80, True), (79.9, False)])
    def test_at_least(self, coverage, expected):
        assert evaluate_condition("coverage >= 80", {"coverage": coverage}) is expected

    def test_less_than(self):
        assert evaluate_condition("coverage < 80", {"coverage": 70}) is True
        assert evaluate_condition("coverage < 80", {"coverage": 85}) is False

    @pytest.mark.parametrize("expression,expected", [
        ("count > 2", True),
        ("count <= 3", True),
        ("count == 3", True),
        ("count != 3", False),
        ("count > 3", False),
    ])
    def test_other_operators(self, expression, expected):
        assert evaluate_condition(expression, {"count": 3}) is expected

    def test_negative_and_decimal_operands(self):
        assert evaluate_condition("delta >= -1.5", {"delta": -1}) is True
        assert evaluate_condition("ratio < .5", {"ratio": 0.25}) is True

    def test_nested_path(self):
        assert evaluate_condition("stats.coverage >= 80", {"stats": {"coverage": 90}}) is True

    def test_non_numeric_value_is_false(self):
        assert evaluate_condition("coverage >= 80", {"coverage": "high"}) is False

    def test_boolean_value_is_not_numeric(self):
        assert evaluate_condition("flag >= 1", {"flag": True}) is False

    def test_missing_value_is_false(self):
        assert evaluate_condition("coverage >= 80", {}) is False
        assert evaluate_condition("coverage < 80", {}) is False


class TestTruthiness:
    """Bare and negated path conditions"""

    def test_true_value(self):
        assert evaluate_condition("tests.passed", {"tests": {"passed": True}}) is True

    def test_false_value_and_negation(self):
        result = {"tests": {"passed": False}}
        assert evaluate_condition("tests.passed", result) is False
        assert evaluate_condition("!tests.passed", result) is True

    def test_negation_of_true(self):
        assert evaluate_condition("!tests.passed", {"tests": {"passed": True}}) is False

    def test_missing_path(self):
        """A missing field is falsy, so its negation holds"""
        assert evaluate_condition("tests.passed", {"tests": {}}) is False
        assert evaluate_condition("!tests.passed", {"tests": {}}) is True

    def test_upstream_result_not_a_mapping(self):
        assert evaluate_condition("tests.passed", None) is False
        assert evaluate_condition("tests.passed", ["tests"]) is False

    def test_truthy_non_boolean(self):
        assert evaluate_condition("items", {"items": [1]}) is True
        assert evaluate_condition("items", {"items": []}) is False


class TestParsing:
    """Anything outside the grammar fails closed"""

    @pytest.mark.parametrize("expression", [
        "",
        "coverage >=",
        ">= 80",
        "coverage >= eighty",
        "__import__('os').system('ls')",
        "a and b",
        "coverage >= 80 or True",
        "!!passed",
    ])
    def test_unsupported_expressions_raise_on_parse(self, expression):
        with pytest.raises(ConditionSyntaxError):
            parse_condition(expression)

    @pytest.mark.parametrize("expression", [
        "",
        "coverage >= eighty",
        "__import__('os').system('ls')",
        "a and b",
    ])
    def test_unsupported_expressions_evaluate_false(self, expression):
        assert evaluate_condition(expression, {"coverage": 100, "a": True, "b": True}) is False

    def test_parse_is_cached(self):
        assert parse_condition("coverage >= 80") is parse_condition("coverage >= 80")

    def test_parsed_shape(self):
        condition = parse_condition("  !tests.passed ")
        assert condition.path == "tests.passed"
        assert condition.negate is True
        assert condition.op is None

        comparison = parse_condition("coverage>=80")
        assert comparison.op == ">="
        assert comparison.operand == 80.0


def test_extract_value():
    data = {"a": {"b": {"c": 1}}}

    assert extract_value("a.b.c", data) == 1
    assert extract_value("a.x", data) is MISSING


class TestConditionEvaluator:
    """should_run decisions for ready nodes"""

    def _context(self, edges, results):
        wf = workflow([tool("A"), tool("B"), tool("C")], edges)
        context = ExecutionContext(wf)
        context.results.update(results)
        return wf, context

    def test_no_conditional_edges_always_runs(self):
        wf, context = self._context([edge("A", "C"), edge("B", "C")], {})
        assert ConditionEvaluator().should_run(wf.get_tool("C"), wf, context) is True

    def test_any_true_condition_runs_node(self):
        wf, context = self._context(
            [edge("A", "C", "ok"), edge("B", "C", "ok")],
            {"A": {"ok": False}, "B": {"ok": True}},
        )
        assert ConditionEvaluator().should_run(wf.get_tool("C"), wf, context) is True

    def test_all_false_conditions_skip_node(self):
        wf, context = self._context(
            [edge("A", "C", "ok"), edge("B", "C", "ok")],
            {"A": {"ok": False}, "B": {}},
        )
        assert ConditionEvaluator().should_run(wf.get_tool("C"), wf, context) is False

    def test_unconditional_edge_does_not_force_run(self):
        """Only conditional edges take part in the decision"""
        wf, context = self._context(
            [edge("A", "C"), edge("B", "C", "ok")],
            {"A": {"ok": True}, "B": {"ok": False}},
        )
        assert ConditionEvaluator().should_run(wf.get_tool("C"), wf, context) is False

    def test_condition_against_skipped_upstream(self):
        """A skipped upstream has no result, so only negations hold"""
        wf, context = self._context([edge("A", "C", "!ok")], {})
        assert ConditionEvaluator().should_run(wf.get_tool("C"), wf, context) is True
