# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Core utilities and shared modules for the tool orchestration engine.

This package contains:
- config: Configuration management
- errors: Custom exceptions
- logging: Structured logging
"""

from tool_orchestration.core.config import get_config, Config
from tool_orchestration.core.errors import (
    OrchestrationError,
    NotFoundError,
    ValidationError,
    ExecutionError,
)
from tool_orchestration.core.logging import get_logger

__all__ = [
    "get_config",
    "Config",
    "OrchestrationError",
    "NotFoundError",
    "ValidationError",
    "ExecutionError",
    "get_logger",
]
