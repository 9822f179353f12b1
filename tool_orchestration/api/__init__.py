# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""HTTP API for workflow submission, execution tracking and metrics."""

from tool_orchestration.api.app import create_app

__all__ = ["create_app"]
