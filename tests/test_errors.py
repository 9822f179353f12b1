# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for the error hierarchy and its API rendering
"""

from tool_orchestration.core.errors import ConfigurationError, ExecutionError, ValidationError
from tool_orchestration.engine.exceptions import (
    DeadlockError,
    ExecutionTimeoutError,
    ToolInvocationError,
    ToolTimeoutError,
    WorkflowNotFoundError,
)


def test_not_found_carries_resource_and_identifier():
    error = WorkflowNotFoundError("deploy")

    assert error.status_code == 404
    assert error.to_dict() == {
        "error": "WorkflowNotFoundError",
        "message": "Workflow not found: deploy",
        "status_code": 404,
        "details": {"resource": "Workflow", "identifier": "deploy"},
    }


def test_validation_error_records_field():
    error = ValidationError("bad retries", field="config.retry_policy")

    assert error.status_code == 400
    assert error.details == {"field": "config.retry_policy"}


def test_configuration_error_records_file():
    error = ConfigurationError("unreadable", config_file="/etc/orchestration.yaml")

    assert error.details["config_file"] == "/etc/orchestration.yaml"


def test_execution_error_locates_failure():
    error = ExecutionError("boom", execution_id="exec_1", node_id="A", details={"attempts": 3})

    assert error.execution_id == "exec_1"
    assert error.node_id == "A"
    assert error.details == {"attempts": 3, "execution_id": "exec_1", "node_id": "A"}


def test_execution_error_omits_unknown_ids():
    assert ExecutionError("boom").details == {}


def test_caller_details_win_over_ids():
    error = ExecutionError("boom", execution_id="exec_1", details={"execution_id": "parent"})

    assert error.details["execution_id"] == "parent"
    assert error.execution_id == "exec_1"


def test_tool_invocation_error_names_node():
    error = ToolInvocationError("A", "connection refused", "exec_1")

    assert error.message == "Tool 'A' failed: connection refused"
    assert error.node_id == "A"
    assert error.details == {"execution_id": "exec_1", "node_id": "A"}


def test_tool_timeout_is_a_tool_invocation_error():
    error = ToolTimeoutError("slow", 20, "exec_1")

    assert isinstance(error, ToolInvocationError)
    assert error.node_id == "slow"
    assert "timeout (20ms)" in error.message


def test_execution_level_errors_have_no_node():
    deadlock = DeadlockError("exec_1", ["B"])
    timeout = ExecutionTimeoutError("exec_1", 50)

    assert deadlock.details == {"blocked_nodes": ["B"], "execution_id": "exec_1"}
    assert timeout.details == {"timeout_ms": 50, "execution_id": "exec_1"}
    assert deadlock.node_id is None
