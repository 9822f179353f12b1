# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Orchestration engine exceptions.

Validation errors are raised synchronously from load_workflow. Execution
errors are recorded on the ExecutionContext rather than thrown across the
asynchronous boundary.
"""

from typing import List, Optional

from tool_orchestration.core.errors import ExecutionError, NotFoundError, ValidationError


class WorkflowValidationError(ValidationError):
    """Workflow validation failed"""

    def __init__(self, message: str, field: str = None, details: Optional[dict] = None):
        super().__init__(message, field=field, details=details)


class EmptyWorkflowError(WorkflowValidationError):
    """Workflow has no tool nodes"""

    def __init__(self, workflow_id: str):
        super().__init__(
            f"Workflow '{workflow_id}' must have at least one tool",
            field="tools"
        )


class DuplicateNodeError(WorkflowValidationError):
    """Two tool nodes share an id"""

    def __init__(self, node_ids: List[str]):
        self.node_ids = sorted(set(node_ids))
        super().__init__(
            f"Duplicate tool IDs found: {self.node_ids}",
            field="tools",
            details={"node_ids": self.node_ids}
        )


class CycleError(WorkflowValidationError):
    """Workflow graph contains a cycle"""

    def __init__(self, path: List[str]):
        self.path = list(path)
        super().__init__(
            f"Workflow contains a cycle: {' -> '.join(self.path)}",
            field="edges",
            details={"path": self.path}
        )


class UnknownReferenceError(WorkflowValidationError):
    """A dependency or edge endpoint names a tool that does not exist"""

    def __init__(self, node_id: str, reference: str, field: str = "dependencies"):
        self.node_id = node_id
        self.reference = reference
        super().__init__(
            f"'{node_id}' references non-existent tool '{reference}'",
            field=field,
            details={"node_id": node_id, "reference": reference}
        )


class DuplicateEdgeError(WorkflowValidationError):
    """Two edges connect the same ordered pair of tools"""

    def __init__(self, from_: str, to: str):
        self.from_ = from_
        self.to = to
        super().__init__(
            f"Duplicate edge: {from_} -> {to}",
            field="edges",
            details={"from": from_, "to": to}
        )


class WorkflowNotFoundError(NotFoundError):
    """No workflow loaded under that id"""

    def __init__(self, workflow_id: str):
        super().__init__("Workflow", workflow_id)
        self.workflow_id = workflow_id


class ExecutionNotFoundError(NotFoundError):
    """No execution recorded under that id"""

    def __init__(self, execution_id: str):
        super().__init__("Execution", execution_id)
        self.execution_id = execution_id


class WorkflowExecutionError(ExecutionError):
    """Workflow execution failed"""
    pass


class DeadlockError(WorkflowExecutionError):
    """Unterminated tools remain but none are ready and none are running"""

    def __init__(self, execution_id: str, blocked_nodes: List[str]):
        self.blocked_nodes = list(blocked_nodes)
        super().__init__(
            f"Workflow execution deadlock: {len(self.blocked_nodes)} tools can never "
            f"become ready: {self.blocked_nodes}",
            execution_id=execution_id,
            details={"blocked_nodes": self.blocked_nodes}
        )


class ExecutionTimeoutError(WorkflowExecutionError):
    """Whole execution exceeded ExecutionConfig.timeout_ms"""

    def __init__(self, execution_id: str, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Execution exceeded timeout ({timeout_ms}ms)",
            execution_id=execution_id,
            details={"timeout_ms": timeout_ms}
        )


class ToolInvocationError(WorkflowExecutionError):
    """A single tool invocation failed"""

    def __init__(self, node_id: str, message: str, execution_id: Optional[str] = None):
        super().__init__(
            f"Tool '{node_id}' failed: {message}",
            execution_id=execution_id,
            node_id=node_id
        )


class ToolTimeoutError(ToolInvocationError):
    """A single attempt exceeded the tool's timeout_ms"""

    def __init__(self, node_id: str, timeout_ms: int, execution_id: Optional[str] = None):
        self.timeout_ms = timeout_ms
        super().__init__(node_id, f"Attempt exceeded timeout ({timeout_ms}ms)", execution_id)
