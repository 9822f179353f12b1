# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Execution events.

Subscribers are called synchronously from the scheduler's round loop, so
there is no event queue to grow without bound. A failing subscriber is
logged and never affects scheduling.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from tool_orchestration.core.logging import log_event
from .models import ExecutionEvent

logger = logging.getLogger(__name__)


EXECUTION_STARTED = "execution:started"
EXECUTION_COMPLETED = "execution:completed"
EXECUTION_FAILED = "execution:failed"
EXECUTION_CANCELLED = "execution:cancelled"
TOOL_STARTED = "tool:started"
TOOL_COMPLETED = "tool:completed"
TOOL_FAILED = "tool:failed"
TOOL_SKIPPED = "tool:skipped"
TOOL_COMPENSATED = "tool:compensated"

Subscriber = Callable[[ExecutionEvent], Any]


class EventBus:
    """Observer list with explicit subscribe/unsubscribe"""

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register callback. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: Subscriber) -> bool:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            return False
        return True

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def emit(
        self,
        event_type: str,
        execution_id: str,
        workflow_id: str,
        node_id: Optional[str] = None,
        **data: Any
    ) -> ExecutionEvent:
        event = ExecutionEvent(
            type=event_type,
            execution_id=execution_id,
            workflow_id=workflow_id,
            node_id=node_id,
            timestamp=datetime.now(timezone.utc),
            data=data,
        )
        # Copy so a subscriber may unsubscribe itself while being called
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Event subscriber failed on {event_type}")
        return event


class LoggingEventSubscriber:
    """Writes every event through the structured logger"""

    def __init__(self, event_logger: Optional[logging.Logger] = None):
        self.logger = event_logger or logger

    def __call__(self, event: ExecutionEvent) -> None:
        level = "WARNING" if event.type in (TOOL_FAILED, EXECUTION_FAILED) else "INFO"
        log_event(
            self.logger,
            event.type,
            level=level,
            execution_id=event.execution_id,
            workflow_id=event.workflow_id,
            node_id=event.node_id,
            event_data=event.data,
        )
