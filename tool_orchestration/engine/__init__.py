# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""Tool orchestration engine: DAG scheduling of tool invocations."""

from .conditions import ConditionEvaluator, evaluate_condition
from .context import ExecutionContext
from .events import EventBus, LoggingEventSubscriber
from .exceptions import (
    CycleError,
    DeadlockError,
    DuplicateEdgeError,
    ExecutionTimeoutError,
    UnknownReferenceError,
    WorkflowValidationError,
)
from .invokers import FunctionToolInvoker, HttpToolInvoker, InMemoryToolRegistry, ToolInvoker, ToolRegistry
from .models import (
    ErrorHandling,
    ExecutionConfig,
    ExecutionStatus,
    NodeStatus,
    OrchestrationMetrics,
    RetryPolicy,
    ToolNode,
    WorkflowDefinition,
    WorkflowEdge,
)
from .registry import ExecutionRegistry, WorkflowRegistry
from .retry import RetryPolicyExecutor
from .scheduler import Scheduler
from .validation import validate_workflow

__all__ = [
    "ConditionEvaluator",
    "evaluate_condition",
    "ExecutionContext",
    "EventBus",
    "LoggingEventSubscriber",
    "CycleError",
    "DeadlockError",
    "DuplicateEdgeError",
    "ExecutionTimeoutError",
    "UnknownReferenceError",
    "WorkflowValidationError",
    "FunctionToolInvoker",
    "HttpToolInvoker",
    "InMemoryToolRegistry",
    "ToolInvoker",
    "ToolRegistry",
    "ErrorHandling",
    "ExecutionConfig",
    "ExecutionStatus",
    "NodeStatus",
    "OrchestrationMetrics",
    "RetryPolicy",
    "ToolNode",
    "WorkflowDefinition",
    "WorkflowEdge",
    "ExecutionRegistry",
    "WorkflowRegistry",
    "RetryPolicyExecutor",
    "Scheduler",
    "validate_workflow",
]
