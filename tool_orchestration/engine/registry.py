# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow and execution registries.

Definitions and execution contexts are stored by id and only reached
through these accessors. The execution registry also aggregates the
process-wide OrchestrationMetrics.
"""

import threading
from typing import Dict, List, Optional

from .context import ExecutionContext
from .exceptions import ExecutionNotFoundError, WorkflowNotFoundError
from .models import ExecutionStatus, OrchestrationMetrics, WorkflowDefinition


class WorkflowRegistry:
    """Loaded workflow definitions keyed by workflow id"""

    def __init__(self):
        self._workflows: Dict[str, WorkflowDefinition] = {}

    def add(self, workflow: WorkflowDefinition) -> None:
        self._workflows[workflow.id] = workflow

    def get(self, workflow_id: str) -> WorkflowDefinition:
        workflow = self._workflows.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        return workflow

    def remove(self, workflow_id: str) -> WorkflowDefinition:
        if workflow_id not in self._workflows:
            raise WorkflowNotFoundError(workflow_id)
        return self._workflows.pop(workflow_id)

    def contains(self, workflow_id: str) -> bool:
        return workflow_id in self._workflows

    def list(self) -> List[WorkflowDefinition]:
        return list(self._workflows.values())


class ExecutionRegistry:
    """
    Execution contexts keyed by execution id, plus cross-run statistics.

    record() is called once per context when it reaches a terminal state;
    record_batch() once per scheduling round.
    """

    def __init__(self):
        self._executions: Dict[str, ExecutionContext] = {}
        self._recorded: set = set()
        self._lock = threading.Lock()

        self._total = 0
        self._successful = 0
        self._failed = 0
        self._cancelled = 0
        self._completed_duration_ms = 0.0
        self._tool_successes = 0
        self._tool_attempts = 0
        self._total_batches = 0
        self._parallel_batches = 0

    # -- Context storage --

    def add(self, context: ExecutionContext) -> None:
        self._executions[context.execution_id] = context

    def get(self, execution_id: str) -> ExecutionContext:
        context = self._executions.get(execution_id)
        if context is None:
            raise ExecutionNotFoundError(execution_id)
        return context

    def find(self, execution_id: str) -> Optional[ExecutionContext]:
        return self._executions.get(execution_id)

    def list(self, workflow_id: Optional[str] = None) -> List[ExecutionContext]:
        contexts = list(self._executions.values())
        if workflow_id is not None:
            contexts = [c for c in contexts if c.workflow_id == workflow_id]
        return contexts

    # -- Metrics --

    def record(self, context: ExecutionContext) -> None:
        """Fold a terminal context into the running totals (idempotent)"""
        if not context.is_terminal:
            raise ValueError(f"Execution {context.execution_id} is not terminal: {context.status.value}")

        with self._lock:
            if context.execution_id in self._recorded:
                return
            self._recorded.add(context.execution_id)

            self._total += 1
            if context.status == ExecutionStatus.COMPLETED:
                self._successful += 1
                if context.duration_ms is not None:
                    self._completed_duration_ms += context.duration_ms
            elif context.status == ExecutionStatus.FAILED:
                self._failed += 1
            else:
                self._cancelled += 1

            self._tool_successes += context.metrics.completed_tools
            self._tool_attempts += context.metrics.completed_tools + context.metrics.failed_tools

    def record_batch(self, dispatched: int) -> None:
        """Count one scheduling round that dispatched `dispatched` nodes"""
        if dispatched <= 0:
            return
        with self._lock:
            self._total_batches += 1
            if dispatched > 1:
                self._parallel_batches += 1

    def snapshot(self) -> OrchestrationMetrics:
        with self._lock:
            return OrchestrationMetrics(
                total_executions=self._total,
                successful_executions=self._successful,
                failed_executions=self._failed,
                cancelled_executions=self._cancelled,
                average_execution_time_ms=(
                    self._completed_duration_ms / self._successful if self._successful else 0.0
                ),
                tool_success_rate=(
                    self._tool_successes / self._tool_attempts if self._tool_attempts else 0.0
                ),
                parallel_execution_rate=(
                    self._parallel_batches / self._total_batches if self._total_batches else 0.0
                ),
                total_batches=self._total_batches,
                parallel_batches=self._parallel_batches,
            )
