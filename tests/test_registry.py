# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for workflow and execution registries
"""

import pytest

from tool_orchestration.engine.context import ExecutionContext
from tool_orchestration.engine.exceptions import ExecutionNotFoundError, WorkflowNotFoundError
from tool_orchestration.engine.models import ExecutionStatus
from tool_orchestration.engine.registry import ExecutionRegistry, WorkflowRegistry
from tests.factories import tool, workflow


def finished(status, completed=0, failed=0, workflow_id="wf"):
    context = ExecutionContext(workflow([tool("A")], workflow_id=workflow_id))
    context.metrics.completed_tools = completed
    context.metrics.failed_tools = failed
    context.finalize(status)
    return context


class TestWorkflowRegistry:

    def test_add_get_remove(self):
        registry = WorkflowRegistry()
        wf = workflow([tool("A")], workflow_id="wf")

        registry.add(wf)

        assert registry.get("wf") is wf
        assert registry.contains("wf")
        assert registry.list() == [wf]
        assert registry.remove("wf") is wf
        assert not registry.contains("wf")

    def test_missing_workflow(self):
        registry = WorkflowRegistry()

        with pytest.raises(WorkflowNotFoundError) as exc_info:
            registry.get("nope")
        assert exc_info.value.status_code == 404
        with pytest.raises(WorkflowNotFoundError):
            registry.remove("nope")

    def test_reloading_replaces_definition(self):
        registry = WorkflowRegistry()
        registry.add(workflow([tool("A")], workflow_id="wf"))
        replacement = workflow([tool("B")], workflow_id="wf")

        registry.add(replacement)

        assert registry.get("wf") is replacement
        assert len(registry.list()) == 1


class TestExecutionRegistry:

    def test_lookup(self):
        registry = ExecutionRegistry()
        context = finished(ExecutionStatus.COMPLETED)
        other = finished(ExecutionStatus.COMPLETED, workflow_id="other")
        registry.add(context)
        registry.add(other)

        assert registry.get(context.execution_id) is context
        assert registry.find("missing") is None
        assert registry.list("other") == [other]
        assert len(registry.list()) == 2
        with pytest.raises(ExecutionNotFoundError):
            registry.get("missing")

    def test_record_counts_outcomes(self):
        registry = ExecutionRegistry()

        registry.record(finished(ExecutionStatus.COMPLETED, completed=3))
        registry.record(finished(ExecutionStatus.FAILED, completed=1, failed=1))
        registry.record(finished(ExecutionStatus.CANCELLED))

        metrics = registry.snapshot()
        assert metrics.total_executions == 3
        assert metrics.successful_executions == 1
        assert metrics.failed_executions == 1
        assert metrics.cancelled_executions == 1
        assert metrics.tool_success_rate == pytest.approx(4 / 5)

    def test_record_is_idempotent(self):
        registry = ExecutionRegistry()
        context = finished(ExecutionStatus.COMPLETED, completed=1)

        registry.record(context)
        registry.record(context)

        assert registry.snapshot().total_executions == 1

    def test_record_rejects_running_context(self):
        registry = ExecutionRegistry()
        context = ExecutionContext(workflow([tool("A")]))
        context.start()

        with pytest.raises(ValueError, match="not terminal"):
            registry.record(context)

    def test_average_execution_time_uses_completed_runs_only(self):
        registry = ExecutionRegistry()
        done = finished(ExecutionStatus.COMPLETED)
        registry.record(done)
        registry.record(finished(ExecutionStatus.FAILED))

        assert registry.snapshot().average_execution_time_ms == pytest.approx(done.duration_ms)

    def test_parallel_execution_rate(self):
        registry = ExecutionRegistry()

        for dispatched in (1, 3, 2, 0):
            registry.record_batch(dispatched)

        metrics = registry.snapshot()
        assert metrics.total_batches == 3
        assert metrics.parallel_batches == 2
        assert metrics.parallel_execution_rate == pytest.approx(2 / 3)
