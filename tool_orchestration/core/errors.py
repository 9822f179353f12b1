# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Error hierarchy for the tool orchestration engine.

Every error carries an HTTP status and a `details` mapping, so the API can
render any of them with one handler. The identifiers an error is about
(resource id, failing field, execution and node ids) are copied into
`details` as well as kept as attributes.
"""

from typing import Any, Dict, Optional


def _with_ids(details: Optional[dict], **ids: Any) -> Dict[str, Any]:
    """Merge non-None identifiers into details without overwriting caller keys"""
    merged = dict(details or {})
    for key, value in ids.items():
        if value is not None:
            merged.setdefault(key, value)
    return merged


class OrchestrationError(Exception):
    """Base exception for all orchestration errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[dict] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """API error body: {error, message, status_code, details}"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details
        }


class NotFoundError(OrchestrationError):
    """A workflow or execution id that is not registered."""

    def __init__(self, resource: str, identifier: str, details: Optional[dict] = None):
        super().__init__(
            f"{resource} not found: {identifier}",
            status_code=404,
            details=_with_ids(details, resource=resource, identifier=identifier)
        )
        self.resource = resource
        self.identifier = identifier


class ValidationError(OrchestrationError):
    """
    Rejected input: a workflow definition or a request body.

    Raised before anything is stored, so a caller can fix and resubmit.
    """

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, status_code=400, details=_with_ids(details, field=field))
        self.field = field


class ConfigurationError(OrchestrationError):
    """Unreadable or out-of-range engine configuration."""

    def __init__(self, message: str, config_file: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, status_code=500, details=_with_ids(details, config_file=config_file))
        self.config_file = config_file


class ExecutionError(OrchestrationError):
    """
    A workflow execution, or one tool inside it, failed.

    These are recorded on the execution context rather than returned to
    the submitter; `execution_id` and `node_id` say where it happened.
    """

    def __init__(
        self,
        message: str,
        execution_id: Optional[str] = None,
        node_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(
            message,
            status_code=500,
            details=_with_ids(details, execution_id=execution_id, node_id=node_id)
        )
        self.execution_id = execution_id
        self.node_id = node_id
