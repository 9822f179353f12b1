# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tool Orchestration Engine

Validates workflow DAGs of tool invocations and executes them with
dependency resolution, bounded parallelism, conditional branching and
retry-with-backoff.
"""

__version__ = "1.0.0"
