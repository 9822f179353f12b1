# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Orchestration Models

Pydantic models for workflow definitions, per-execution node state,
metrics and events.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field


class NodeStatus(str, Enum):
    """Lifecycle of a tool node within one execution"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


TERMINAL_NODE_STATUSES = frozenset({NodeStatus.COMPLETED, NodeStatus.FAILED, NodeStatus.SKIPPED})


class ExecutionStatus(str, Enum):
    """Lifecycle of an execution context"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_EXECUTION_STATUSES = frozenset({
    ExecutionStatus.COMPLETED,
    ExecutionStatus.FAILED,
    ExecutionStatus.CANCELLED,
})


class ErrorHandling(str, Enum):
    """How a single tool failure affects the rest of the DAG"""
    FAIL_FAST = "fail-fast"
    CONTINUE = "continue"
    ROLLBACK = "rollback"


# ============================================================================
# Workflow Definition Models
# ============================================================================

class ToolNode(BaseModel):
    """A unit of work in a workflow. Immutable once the workflow is loaded."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: Optional[str] = None
    dependencies: Set[str] = Field(default_factory=set)
    params: Dict[str, Any] = Field(default_factory=dict)
    timeout_ms: Optional[int] = Field(default=None, gt=0)  # Per-attempt bound


class WorkflowEdge(BaseModel):
    """Directed edge; the optional condition is checked against the `from` tool's result"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)  # Allow both 'from' and 'from_'

    from_: str = Field(alias="from")
    to: str
    condition: Optional[str] = None


class RetryPolicy(BaseModel):
    max_retries: int = Field(default=3, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)
    max_backoff_ms: int = Field(default=10000, gt=0)


class ExecutionConfig(BaseModel):
    max_parallel: int = Field(default=4, gt=0)
    timeout_ms: int = Field(default=300000, gt=0)
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    error_handling: ErrorHandling = ErrorHandling.FAIL_FAST


class WorkflowDefinition(BaseModel):
    """A named DAG of tool nodes and edges plus execution configuration"""
    id: str
    name: str
    version: str = "1.0.0"
    description: Optional[str] = None
    tools: List[ToolNode]
    edges: List[WorkflowEdge] = Field(default_factory=list)
    config: ExecutionConfig = Field(default_factory=ExecutionConfig)

    def get_tool(self, node_id: str) -> Optional[ToolNode]:
        return next((tool for tool in self.tools if tool.id == node_id), None)

    def incoming_edges(self, node_id: str) -> List[WorkflowEdge]:
        return [edge for edge in self.edges if edge.to == node_id]

    def conditional_edges(self, node_id: str) -> List[WorkflowEdge]:
        """Edges ending at node_id that carry a condition"""
        return [edge for edge in self.incoming_edges(node_id) if edge.condition]

    def effective_dependencies(self, node_id: str) -> Set[str]:
        """Declared dependencies plus the source of every edge ending at the node"""
        tool = self.get_tool(node_id)
        deps = set(tool.dependencies) if tool else set()
        deps.update(edge.from_ for edge in self.incoming_edges(node_id))
        return deps

    def dependency_map(self) -> Dict[str, Set[str]]:
        """node_id -> effective dependencies, for every tool"""
        return {tool.id: self.effective_dependencies(tool.id) for tool in self.tools}


# ============================================================================
# Execution Models
# ============================================================================

class NodeState(BaseModel):
    """State of one tool node during one execution"""
    node_id: str
    status: NodeStatus = NodeStatus.PENDING
    result: Optional[Any] = None
    error: Optional[str] = None
    duration_ms: Optional[float] = None
    retry_count: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    compensated: bool = False


class ExecutionMetrics(BaseModel):
    total_tools: int = 0
    completed_tools: int = 0
    failed_tools: int = 0
    skipped_tools: int = 0
    average_duration_ms: float = 0.0


class OrchestrationMetrics(BaseModel):
    """Process-wide statistics across all recorded executions"""
    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    cancelled_executions: int = 0
    average_execution_time_ms: float = 0.0
    tool_success_rate: float = 0.0
    parallel_execution_rate: float = 0.0
    total_batches: int = 0
    parallel_batches: int = 0


class ExecutionEvent(BaseModel):
    """Observability event emitted by the scheduler"""
    type: str
    execution_id: str
    workflow_id: str
    node_id: Optional[str] = None
    timestamp: datetime
    data: Dict[str, Any] = Field(default_factory=dict)


class WorkflowRunRequest(BaseModel):
    """Request to run a loaded workflow"""
    params: Optional[Dict[str, Any]] = None
