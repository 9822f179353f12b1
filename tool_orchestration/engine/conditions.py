# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Edge Condition Evaluator

A deliberately tiny interpreter for conditional edges. Supported forms:

    coverage                  truthiness of a dotted path
    !tests.passed             negated truthiness
    coverage >= 80            numeric comparison (>=, <, >, <=, ==, !=)

Conditions are written by workflow authors, so nothing here ever reaches
eval() or ast evaluation. Anything that fails to parse or evaluate makes the
edge not fire.
"""

import logging
import operator
import re
from dataclasses import dataclass
from functools import lru_cache
from numbers import Real
from typing import Any, Callable, Mapping, Optional

from .models import WorkflowDefinition, ToolNode

logger = logging.getLogger(__name__)


# Sentinel for a path that does not resolve
MISSING = object()

COMPARISON_OPERATORS = {
    ">=": operator.ge,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    "<": operator.lt,
}

_PATH = r"[A-Za-z_][A-Za-z0-9_\-]*(?:\.[A-Za-z_0-9][A-Za-z0-9_\-]*)*"
_NUMBER = r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)"

# Longest operators first so ">=" is never read as ">"
_COMPARISON_RE = re.compile(
    rf"^\s*(?P<path>{_PATH})\s*(?P<op>>=|<=|==|!=|>|<)\s*(?P<number>{_NUMBER})\s*$"
)
_PATH_RE = re.compile(rf"^\s*(?P<negate>!?)\s*(?P<path>{_PATH})\s*$")


@dataclass(frozen=True)
class Condition:
    """Parsed form of a condition expression"""
    path: str
    negate: bool = False
    op: Optional[str] = None
    operand: Optional[float] = None

    def evaluate(self, data: Any) -> bool:
        value = extract_value(self.path, data)

        if self.op is not None:
            if value is MISSING or isinstance(value, bool) or not isinstance(value, Real):
                return False
            compare: Callable[[Any, Any], bool] = COMPARISON_OPERATORS[self.op]
            return bool(compare(value, self.operand))

        if value is MISSING:
            return self.negate
        return not value if self.negate else bool(value)


class ConditionSyntaxError(ValueError):
    """Expression does not match the condition grammar"""
    pass


@lru_cache(maxsize=1024)
def parse_condition(expression: str) -> Condition:
    """Compile an expression. Raises ConditionSyntaxError for anything outside the grammar."""
    match = _COMPARISON_RE.match(expression)
    if match:
        return Condition(
            path=match.group("path"),
            op=match.group("op"),
            operand=float(match.group("number")),
        )

    match = _PATH_RE.match(expression)
    if match:
        return Condition(path=match.group("path"), negate=bool(match.group("negate")))

    raise ConditionSyntaxError(f"Unsupported condition: {expression!r}")


def extract_value(path: str, data: Any) -> Any:
    """Walk nested mapping keys; returns MISSING when any segment is absent"""
    current = data
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return MISSING
    return current


def evaluate_condition(expression: str, data: Any) -> bool:
    """Evaluate expression against an upstream result. Never raises."""
    try:
        return parse_condition(expression).evaluate(data)
    except Exception as e:
        logger.debug(f"Condition {expression!r} treated as false: {e}")
        return False


class ConditionEvaluator:
    """Decides whether a ready node runs or is skipped"""

    def should_run(self, node: ToolNode, workflow: WorkflowDefinition, context) -> bool:
        """
        A node with no conditional incoming edges always runs. Otherwise it
        runs if any of its conditions holds against the corresponding
        upstream result.
        """
        conditional_edges = workflow.conditional_edges(node.id)
        if not conditional_edges:
            return True

        for edge in conditional_edges:
            upstream_result = context.get_result(edge.from_)
            if evaluate_condition(edge.condition, upstream_result):
                return True
        return False
