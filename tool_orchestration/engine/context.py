# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Execution Context

Tracks execution state for one workflow run. Node state is cloned per run
so concurrent executions of the same workflow never share mutable state.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .models import (
    ExecutionMetrics,
    ExecutionStatus,
    NodeState,
    NodeStatus,
    TERMINAL_EXECUTION_STATUSES,
    TERMINAL_NODE_STATUSES,
    WorkflowDefinition,
)


def generate_execution_id() -> str:
    return f"exec_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"


class ExecutionContext:
    """
    Execution context for a workflow run.

    Tracks:
    - Per-node state (status, result, error, duration, retries)
    - Results and errors keyed by node id
    - Execution metrics and lifecycle timestamps
    - A cancellation token readable by tool invokers
    """

    def __init__(
        self,
        workflow: WorkflowDefinition,
        params: Optional[Dict[str, Any]] = None,
        execution_id: Optional[str] = None,
    ):
        self.execution_id = execution_id or generate_execution_id()
        self.workflow = workflow  # Definition this run was started from
        self.workflow_id = workflow.id
        self.params: Dict[str, Any] = dict(params or {})
        self.start_time = datetime.now(timezone.utc)
        self.end_time: Optional[datetime] = None
        self.status = ExecutionStatus.PENDING

        self.nodes: Dict[str, NodeState] = {
            tool.id: NodeState(node_id=tool.id) for tool in workflow.tools
        }
        self.results: Dict[str, Any] = {}
        self.errors: Dict[str, str] = {}
        self.metrics = ExecutionMetrics(total_tools=len(workflow.tools))

        # Node ids in the order they reached `completed`, used for compensation
        self.completion_order: List[str] = []

        self._cancel_event = asyncio.Event()

    # -- Cancellation token --

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def request_cancel(self) -> None:
        self._cancel_event.set()

    async def wait_cancelled(self) -> None:
        """Resolve once cancellation has been requested"""
        await self._cancel_event.wait()

    # -- Node queries --

    def node(self, node_id: str) -> NodeState:
        return self.nodes[node_id]

    def get_result(self, node_id: str) -> Any:
        return self.results.get(node_id)

    def nodes_with_status(self, status: NodeStatus) -> List[str]:
        return [node_id for node_id, state in self.nodes.items() if state.status == status]

    def all_nodes_terminal(self) -> bool:
        return all(state.status in TERMINAL_NODE_STATUSES for state in self.nodes.values())

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_EXECUTION_STATUSES

    # -- Node transitions --

    def mark_running(self, node_id: str) -> None:
        state = self.nodes[node_id]
        state.status = NodeStatus.RUNNING
        state.started_at = datetime.now(timezone.utc)

    def mark_completed(self, node_id: str, result: Any, duration_ms: float) -> None:
        state = self.nodes[node_id]
        state.status = NodeStatus.COMPLETED
        state.result = result
        state.duration_ms = duration_ms
        state.completed_at = datetime.now(timezone.utc)
        self.results[node_id] = result
        self.completion_order.append(node_id)
        self.metrics.completed_tools += 1

    def mark_failed(self, node_id: str, error: str, duration_ms: Optional[float] = None) -> None:
        state = self.nodes[node_id]
        state.status = NodeStatus.FAILED
        state.error = error
        state.duration_ms = duration_ms
        state.completed_at = datetime.now(timezone.utc)
        self.errors[node_id] = error
        self.metrics.failed_tools += 1

    def mark_skipped(self, node_id: str) -> None:
        state = self.nodes[node_id]
        state.status = NodeStatus.SKIPPED
        state.completed_at = datetime.now(timezone.utc)
        self.metrics.skipped_tools += 1

    # -- Execution lifecycle --

    def start(self) -> None:
        self.status = ExecutionStatus.RUNNING

    def finalize(self, status: ExecutionStatus) -> None:
        """Set the terminal status, end time and average tool duration"""
        durations = [
            state.duration_ms for state in self.nodes.values()
            if state.duration_ms is not None
        ]
        self.metrics.average_duration_ms = sum(durations) / len(durations) if durations else 0.0
        self.status = status
        self.end_time = datetime.now(timezone.utc)

    @property
    def duration_ms(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds() * 1000

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready snapshot for API responses"""
        return {
            "execution_id": self.execution_id,
            "workflow_id": self.workflow_id,
            "status": self.status.value,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "params": self.params,
            "results": dict(self.results),
            "errors": dict(self.errors),
            "metrics": self.metrics.model_dump(),
            "nodes": {
                node_id: state.model_dump(mode="json")
                for node_id, state in self.nodes.items()
            },
        }
