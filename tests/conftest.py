# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test Fixtures

Provides pytest fixtures for the scheduler and its collaborators. Retry
sleeps are recorded instead of awaited so the suite never waits on backoff.
"""

import pytest

from tool_orchestration.core.config import Config
from tool_orchestration.engine.retry import RetryPolicyExecutor
from tool_orchestration.engine.scheduler import Scheduler
from tests.factories import RecordingSleep, ScriptedInvoker


# ============================================================================
# Configuration
# ============================================================================

@pytest.fixture
def config():
    """Quiet, text-formatted config for tests"""
    return Config(log_level="WARNING", log_format="text", max_concurrent_executions=4)


# ============================================================================
# Retry Fixtures
# ============================================================================

@pytest.fixture
def recorded_sleep():
    return RecordingSleep()


@pytest.fixture
def retry_executor(recorded_sleep):
    """Retry executor with the default 1000ms base and a non-blocking sleep"""
    return RetryPolicyExecutor(base_backoff_ms=1000, sleep=recorded_sleep)


# ============================================================================
# Scheduler Fixtures
# ============================================================================

@pytest.fixture
def invoker():
    return ScriptedInvoker()


@pytest.fixture
def make_scheduler(config, retry_executor):
    """Factory: scheduler around a given invoker"""
    def _make(invoker, **kwargs):
        return Scheduler(invoker, config=config, retry_executor=retry_executor, **kwargs)
    return _make


@pytest.fixture
def scheduler(make_scheduler, invoker):
    return make_scheduler(invoker)
