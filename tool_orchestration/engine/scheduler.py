# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Scheduler (DAG Executor)

Round-based, bounded-parallel execution of workflow DAGs. Each round
computes the ready set, dispatches up to max_parallel nodes concurrently
and waits for the whole batch before looking again.

Executions are queued FIFO and drained by a small pool of worker tasks.
The queue and the active set are only touched under one asyncio.Lock.
"""

import asyncio
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Set, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from tool_orchestration.core.config import Config, get_config
from tool_orchestration.core.logging import get_logger
from .conditions import ConditionEvaluator
from .context import ExecutionContext
from .events import (
    EventBus,
    EXECUTION_CANCELLED,
    EXECUTION_COMPLETED,
    EXECUTION_FAILED,
    EXECUTION_STARTED,
    TOOL_COMPENSATED,
    TOOL_COMPLETED,
    TOOL_FAILED,
    TOOL_SKIPPED,
    TOOL_STARTED,
)
from .exceptions import (
    DeadlockError,
    ExecutionTimeoutError,
    ToolInvocationError,
    WorkflowExecutionError,
    WorkflowValidationError,
)
from .invokers import ToolInvoker, ToolRegistry
from .models import (
    ErrorHandling,
    ExecutionStatus,
    NodeStatus,
    OrchestrationMetrics,
    ToolNode,
    WorkflowDefinition,
)
from .registry import ExecutionRegistry, WorkflowRegistry
from .retry import RetryPolicyExecutor
from .templates import builtin_workflows
from .validation import validate_workflow


# A dependency in one of these states no longer blocks its dependents
SATISFIED_STATUSES = frozenset({NodeStatus.COMPLETED, NodeStatus.SKIPPED})


class Scheduler:
    """
    Loads, validates and executes workflows.

    Collaborators are injected: the ToolInvoker performs each attempt, the
    optional ToolRegistry is told about every tool at load time.
    """

    def __init__(
        self,
        invoker: ToolInvoker,
        tool_registry: Optional[ToolRegistry] = None,
        config: Optional[Config] = None,
        events: Optional[EventBus] = None,
        retry_executor: Optional[RetryPolicyExecutor] = None,
        condition_evaluator: Optional[ConditionEvaluator] = None,
    ):
        self.config = config or get_config()
        self.invoker = invoker
        self.tool_registry = tool_registry
        self.events = events or EventBus()
        self.retry_executor = retry_executor or RetryPolicyExecutor(
            base_backoff_ms=self.config.base_backoff_ms
        )
        self.conditions = condition_evaluator or ConditionEvaluator()
        self.logger = get_logger(__name__, self.config.log_level, self.config.log_format)

        self.workflows = WorkflowRegistry()
        self.executions = ExecutionRegistry()

        self._queue: Deque[str] = deque()
        self._active: Set[str] = set()
        self._queue_lock = asyncio.Lock()
        self._workers: Set[asyncio.Task] = set()
        self._finished: Dict[str, asyncio.Event] = {}

    # ------------------------------------------------------------------
    # Workflow submission API
    # ------------------------------------------------------------------

    async def load_workflow(self, definition: Union[WorkflowDefinition, Dict[str, Any]]) -> WorkflowDefinition:
        """
        Validate a workflow, register its tools and store it.

        Raises WorkflowValidationError (or a subclass) without storing
        anything if the definition is invalid.
        """
        if not isinstance(definition, WorkflowDefinition):
            try:
                definition = WorkflowDefinition.model_validate(definition)
            except PydanticValidationError as e:
                raise WorkflowValidationError(
                    f"Invalid workflow definition: {e.error_count()} error(s)",
                    details={"errors": e.errors(include_url=False, include_context=False)}
                )

        validate_workflow(definition)

        if self.tool_registry is not None:
            for tool in definition.tools:
                await self.tool_registry.register_tool(
                    definition.id,
                    tool.id,
                    {
                        "name": tool.name,
                        "description": tool.description or f"Tool {tool.name} in workflow {definition.name}",
                        "category": "workflow",
                        "version": definition.version,
                    },
                )

        self.workflows.add(definition)
        self.logger.info(
            f"Loaded workflow '{definition.id}' ({len(definition.tools)} tools, {len(definition.edges)} edges)"
        )
        return definition

    async def load_builtin_workflows(self) -> List[str]:
        """Load the bundled demo workflows; returns their ids"""
        loaded = []
        for workflow in builtin_workflows():
            await self.load_workflow(workflow)
            loaded.append(workflow.id)
        return loaded

    def unload_workflow(self, workflow_id: str) -> WorkflowDefinition:
        """Forget a workflow. Executions already created keep their own copy."""
        return self.workflows.remove(workflow_id)

    def get_workflow(self, workflow_id: str) -> WorkflowDefinition:
        return self.workflows.get(workflow_id)

    def list_workflows(self) -> List[WorkflowDefinition]:
        return self.workflows.list()

    async def execute_workflow(self, workflow_id: str, params: Optional[Dict[str, Any]] = None) -> ExecutionContext:
        """
        Queue a run of a loaded workflow.

        Returns immediately with a `pending` context that fills in as the
        execution proceeds; poll it, await wait_for_execution, or subscribe
        to events.
        """
        workflow = self.workflows.get(workflow_id)
        context = ExecutionContext(workflow, params)
        self.executions.add(context)
        self._finished[context.execution_id] = asyncio.Event()

        async with self._queue_lock:
            self._queue.append(context.execution_id)
        self._ensure_workers()

        self.logger.info(f"Queued execution {context.execution_id} of workflow '{workflow_id}'")
        return context

    def get_execution(self, execution_id: str) -> ExecutionContext:
        return self.executions.get(execution_id)

    def list_executions(self, workflow_id: Optional[str] = None) -> List[ExecutionContext]:
        return self.executions.list(workflow_id)

    async def wait_for_execution(self, execution_id: str, timeout: Optional[float] = None) -> ExecutionContext:
        """Block until the execution reaches a terminal state"""
        context = self.executions.get(execution_id)
        finished = self._finished.get(execution_id)
        if finished is not None and not context.is_terminal:
            await asyncio.wait_for(finished.wait(), timeout=timeout)
        return context

    async def cancel_execution(self, execution_id: str) -> bool:
        """
        Request cancellation. Queued executions are cancelled at once;
        running ones stop dispatching before their next round. Returns
        False if the execution had already finished.
        """
        context = self.executions.get(execution_id)
        if context.is_terminal:
            return False

        context.request_cancel()
        self.logger.info(f"Cancellation requested for execution {execution_id}")

        async with self._queue_lock:
            queued = execution_id in self._queue
            if queued:
                self._queue.remove(execution_id)
        if queued:
            self._finish(context, ExecutionStatus.CANCELLED)
        return True

    def get_metrics(self) -> OrchestrationMetrics:
        return self.executions.snapshot()

    def subscribe(self, callback: Callable) -> Callable[[], None]:
        return self.events.subscribe(callback)

    async def shutdown(self) -> None:
        """Cancel every unfinished execution and wait for the workers to drain"""
        for context in self.executions.list():
            if not context.is_terminal:
                await self.cancel_execution(context.execution_id)
        if self._workers:
            await asyncio.gather(*list(self._workers), return_exceptions=True)

    # ------------------------------------------------------------------
    # Queue draining
    # ------------------------------------------------------------------

    def _ensure_workers(self) -> None:
        # A worker that found the queue empty may still await its done callback
        live = sum(1 for worker in self._workers if not worker.done())
        wanted = min(self.config.max_concurrent_executions, len(self._queue))
        for _ in range(wanted - live):
            worker = asyncio.create_task(self._drain_queue())
            self._workers.add(worker)
            worker.add_done_callback(self._workers.discard)

    async def _next_execution_id(self) -> Optional[str]:
        async with self._queue_lock:
            while self._queue:
                execution_id = self._queue.popleft()
                if execution_id in self._active:
                    continue
                self._active.add(execution_id)
                return execution_id
        return None

    async def _drain_queue(self) -> None:
        while True:
            execution_id = await self._next_execution_id()
            if execution_id is None:
                return
            context = self.executions.get(execution_id)
            try:
                await self._run_execution(context)
            except Exception:
                # _run_execution records its own failures; this is a scheduler bug
                self.logger.exception(f"Execution {execution_id} crashed")
            finally:
                if not context.is_terminal:
                    context.errors.setdefault("workflow", "Execution aborted before it finished")
                    self._finish(context, ExecutionStatus.FAILED)
                async with self._queue_lock:
                    self._active.discard(execution_id)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _run_execution(self, context: ExecutionContext) -> None:
        workflow = context.workflow

        if context.cancelled:
            self._finish(context, ExecutionStatus.CANCELLED)
            return

        context.start()
        self._emit(EXECUTION_STARTED, context, total_tools=context.metrics.total_tools)
        self.logger.info(f"Starting execution {context.execution_id} of workflow '{workflow.id}'")

        failure: Optional[str] = None
        timed_out = False
        timeout_ms = workflow.config.timeout_ms
        deadline = asyncio.timeout(timeout_ms / 1000)
        try:
            async with deadline:
                await self._execute_graph(workflow, context)
        except TimeoutError as e:
            if not deadline.expired():
                # Not our deadline: something below leaked a bare TimeoutError
                self.logger.exception(f"Execution {context.execution_id} failed unexpectedly")
                failure = str(e) or e.__class__.__name__
            else:
                timed_out = True
                failure = ExecutionTimeoutError(context.execution_id, timeout_ms).message
                for node_id in context.nodes_with_status(NodeStatus.RUNNING):
                    context.mark_failed(node_id, "Interrupted by execution timeout")
        except WorkflowExecutionError as e:
            failure = e.message
        except Exception as e:
            self.logger.exception(f"Execution {context.execution_id} failed unexpectedly")
            failure = str(e) or e.__class__.__name__

        succeeded = (
            failure is None
            and context.metrics.failed_tools == 0
            and context.all_nodes_terminal()
        )
        if succeeded:
            status = ExecutionStatus.COMPLETED
        elif context.cancelled and not timed_out:
            # Tool failures after a cancel request are the cancel showing through
            status = ExecutionStatus.CANCELLED
        else:
            status = ExecutionStatus.FAILED
            if failure is not None:
                context.errors["workflow"] = failure

        if status == ExecutionStatus.FAILED and workflow.config.error_handling == ErrorHandling.ROLLBACK:
            await self._compensate(workflow, context)

        self._finish(context, status)

    async def _execute_graph(self, workflow: WorkflowDefinition, context: ExecutionContext) -> None:
        dependencies = workflow.dependency_map()

        while not context.all_nodes_terminal():
            if context.cancelled:
                return

            running = context.nodes_with_status(NodeStatus.RUNNING)
            ready = self._get_ready_nodes(workflow, dependencies, context)

            if not ready and not running:
                raise DeadlockError(context.execution_id, context.nodes_with_status(NodeStatus.PENDING))

            batch = ready[:workflow.config.max_parallel - len(running)]
            self.executions.record_batch(len(batch))

            outcomes = await asyncio.gather(
                *[self._execute_node(tool, workflow, context) for tool in batch],
                return_exceptions=True
            )

            failures = []
            for tool, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    # _execute_node only raises on real cancellation or a scheduler bug
                    raise outcome
                status, error = outcome
                if status == NodeStatus.FAILED:
                    failures.append((tool, error))

            if failures and workflow.config.error_handling != ErrorHandling.CONTINUE:
                tool, error = failures[0]
                raise ToolInvocationError(
                    tool.id,
                    f"aborting execution ({workflow.config.error_handling.value}): {error}",
                    context.execution_id
                ) from error

    def _get_ready_nodes(
        self,
        workflow: WorkflowDefinition,
        dependencies: Dict[str, Set[str]],
        context: ExecutionContext
    ) -> List[ToolNode]:
        """Pending nodes whose every dependency is completed or skipped, in declaration order"""
        ready = []
        for tool in workflow.tools:
            if context.node(tool.id).status != NodeStatus.PENDING:
                continue
            if all(context.node(dep).status in SATISFIED_STATUSES for dep in dependencies[tool.id]):
                ready.append(tool)
        return ready

    async def _execute_node(
        self,
        tool: ToolNode,
        workflow: WorkflowDefinition,
        context: ExecutionContext
    ) -> Tuple[NodeStatus, Optional[Exception]]:
        """Run one node to a terminal state. Returns its status and failure, if any."""
        if not self.conditions.should_run(tool, workflow, context):
            context.mark_skipped(tool.id)
            self._emit(TOOL_SKIPPED, context, tool.id)
            return NodeStatus.SKIPPED, None

        context.mark_running(tool.id)
        self._emit(TOOL_STARTED, context, tool.id, name=tool.name)
        started = time.monotonic()

        try:
            result = await self.retry_executor.execute(
                tool, context, workflow.config.retry_policy, self.invoker.invoke
            )
        except asyncio.CancelledError:
            if asyncio.current_task().cancelling():
                raise
            # The invoker raised CancelledError itself; nobody cancelled this task
            error = ToolInvocationError(tool.id, "Invocation was cancelled", context.execution_id)
            return self._node_failed(tool, context, error, started)
        except Exception as e:
            return self._node_failed(tool, context, e, started)

        duration_ms = (time.monotonic() - started) * 1000
        context.mark_completed(tool.id, result, duration_ms)
        state = context.node(tool.id)
        self._emit(TOOL_COMPLETED, context, tool.id, duration_ms=duration_ms, retry_count=state.retry_count)
        return NodeStatus.COMPLETED, None

    def _node_failed(
        self,
        tool: ToolNode,
        context: ExecutionContext,
        error: Exception,
        started: float
    ) -> Tuple[NodeStatus, Exception]:
        duration_ms = (time.monotonic() - started) * 1000
        message = str(error) or error.__class__.__name__
        context.mark_failed(tool.id, message, duration_ms)
        state = context.node(tool.id)
        self._emit(TOOL_FAILED, context, tool.id, error=message, retry_count=state.retry_count)
        self.logger.warning(f"Tool '{tool.id}' failed in execution {context.execution_id}: {message}")
        return NodeStatus.FAILED, error

    async def _compensate(self, workflow: WorkflowDefinition, context: ExecutionContext) -> None:
        """Undo completed nodes in reverse completion order"""
        compensate = getattr(self.invoker, "compensate", None)
        if compensate is None:
            self.logger.warning(
                f"Rollback requested for execution {context.execution_id} but the invoker "
                f"cannot compensate; leaving completed tools in place"
            )
            return

        for node_id in reversed(context.completion_order):
            tool = workflow.get_tool(node_id)
            try:
                await compensate(tool, context)
            except Exception as e:
                context.errors[f"{node_id}:compensation"] = str(e) or e.__class__.__name__
                self.logger.warning(f"Compensation for '{node_id}' failed: {e}")
                continue
            context.node(node_id).compensated = True
            self._emit(TOOL_COMPENSATED, context, node_id)

    def _finish(self, context: ExecutionContext, status: ExecutionStatus) -> None:
        context.finalize(status)
        self.executions.record(context)

        if status == ExecutionStatus.COMPLETED:
            self._emit(EXECUTION_COMPLETED, context, duration_ms=context.duration_ms)
            self.logger.info(f"Execution {context.execution_id} completed")
        elif status == ExecutionStatus.CANCELLED:
            self._emit(EXECUTION_CANCELLED, context)
            self.logger.info(f"Execution {context.execution_id} cancelled")
        else:
            self._emit(EXECUTION_FAILED, context, errors=dict(context.errors))
            self.logger.warning(f"Execution {context.execution_id} failed: {context.errors}")

        finished = self._finished.get(context.execution_id)
        if finished is not None:
            finished.set()

    def _emit(self, event_type: str, context: ExecutionContext, node_id: Optional[str] = None, **data: Any) -> None:
        self.events.emit(event_type, context.execution_id, context.workflow_id, node_id, **data)
