# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Retry policy executor with bounded exponential backoff.

Backoff: base * multiplier^(retry-1), capped at max_backoff_ms. The wait
happens before each retry, never before the first attempt.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional

from .context import ExecutionContext
from .exceptions import ToolTimeoutError
from .models import RetryPolicy, ToolNode

logger = logging.getLogger(__name__)

DEFAULT_BASE_BACKOFF_MS = 1000

Invoke = Callable[[ToolNode, ExecutionContext], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]


class RetryPolicyExecutor:
    """Wraps a single tool invocation with retries"""

    def __init__(self, base_backoff_ms: int = DEFAULT_BASE_BACKOFF_MS, sleep: Optional[Sleep] = None):
        self.base_backoff_ms = base_backoff_ms
        self._sleep = sleep or asyncio.sleep

    def calculate_backoff(self, retry_number: int, policy: RetryPolicy) -> float:
        """
        Backoff in ms before retry number `retry_number` (1-based).

        Formula: base * multiplier^(retry_number-1), capped at max_backoff_ms
        """
        backoff = self.base_backoff_ms * (policy.backoff_multiplier ** (retry_number - 1))
        return min(backoff, policy.max_backoff_ms)

    def backoff_schedule(self, policy: RetryPolicy) -> List[float]:
        """All waits a persistently failing tool would see"""
        return [self.calculate_backoff(n, policy) for n in range(1, policy.max_retries + 1)]

    async def execute(
        self,
        node: ToolNode,
        context: ExecutionContext,
        policy: RetryPolicy,
        invoke: Invoke,
    ) -> Any:
        """
        Attempt invoke(node, context) up to max_retries + 1 times.

        Records the retry count on the node's execution state. Re-raises the
        last error once attempts are exhausted.
        """
        state = context.node(node.id)
        last_error: Optional[BaseException] = None

        for attempt in range(policy.max_retries + 1):
            if attempt > 0:
                if context.cancelled:
                    logger.info(f"Execution {context.execution_id} cancelled; not retrying '{node.id}'")
                    break
                state.retry_count = attempt
                backoff_ms = self.calculate_backoff(attempt, policy)
                logger.debug(f"Retrying '{node.id}' in {backoff_ms:.0f}ms (retry {attempt}/{policy.max_retries})")
                await self._sleep(backoff_ms / 1000)

            try:
                return await self._attempt(node, context, invoke)
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Tool '{node.id}' attempt {attempt + 1}/{policy.max_retries + 1} failed: {e}"
                )

        raise last_error

    async def _attempt(self, node: ToolNode, context: ExecutionContext, invoke: Invoke) -> Any:
        if node.timeout_ms is None:
            return await invoke(node, context)

        try:
            return await asyncio.wait_for(invoke(node, context), timeout=node.timeout_ms / 1000)
        except asyncio.TimeoutError:
            raise ToolTimeoutError(node.id, node.timeout_ms, context.execution_id)
