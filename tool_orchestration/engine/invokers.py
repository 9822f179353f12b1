# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tool invocation and registration interfaces.

The scheduler only depends on the ToolInvoker / ToolRegistry protocols.
Two invokers ship with the engine: FunctionToolInvoker for in-process
handlers and HttpToolInvoker, which calls a JSON-RPC 2.0 endpoint.
"""

import asyncio
import inspect
import itertools
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

import httpx

from .context import ExecutionContext
from .exceptions import ToolInvocationError
from .models import ToolNode

logger = logging.getLogger(__name__)


@runtime_checkable
class ToolInvoker(Protocol):
    """Performs one attempt of one tool. Must be safe to retry."""

    async def invoke(self, node: ToolNode, context: ExecutionContext) -> Any:
        ...


@runtime_checkable
class ToolRegistry(Protocol):
    """External catalog / authorization layer notified once per load"""

    async def register_tool(self, workflow_id: str, node_id: str, metadata: Dict[str, Any]) -> None:
        ...


class InMemoryToolRegistry:
    """Keeps registrations in a list; useful for tests and local runs"""

    def __init__(self):
        self.registrations: List[Tuple[str, str, Dict[str, Any]]] = []

    async def register_tool(self, workflow_id: str, node_id: str, metadata: Dict[str, Any]) -> None:
        self.registrations.append((workflow_id, node_id, metadata))

    def tools_for(self, workflow_id: str) -> List[str]:
        return [node_id for wf_id, node_id, _ in self.registrations if wf_id == workflow_id]


Handler = Callable[[ToolNode, ExecutionContext], Any]


async def _call_handler(handler: Handler, node: ToolNode, context: ExecutionContext) -> Any:
    result = handler(node, context)
    if inspect.isawaitable(result):
        result = await result
    return result


class FunctionToolInvoker:
    """
    Dispatches to in-process handlers keyed by tool name.

    Handlers take (node, context) and may be sync or async. Optional
    compensation handlers, keyed the same way, back the rollback mode.
    """

    def __init__(
        self,
        handlers: Optional[Dict[str, Handler]] = None,
        compensations: Optional[Dict[str, Handler]] = None,
    ):
        self.handlers: Dict[str, Handler] = dict(handlers or {})
        self.compensations: Dict[str, Handler] = dict(compensations or {})

    def register(self, tool_name: str, handler: Handler, compensation: Optional[Handler] = None) -> None:
        self.handlers[tool_name] = handler
        if compensation is not None:
            self.compensations[tool_name] = compensation

    async def invoke(self, node: ToolNode, context: ExecutionContext) -> Any:
        handler = self.handlers.get(node.name)
        if handler is None:
            raise ToolInvocationError(node.id, f"No handler registered for tool '{node.name}'", context.execution_id)
        return await _call_handler(handler, node, context)

    async def compensate(self, node: ToolNode, context: ExecutionContext) -> Any:
        compensation = self.compensations.get(node.name)
        if compensation is None:
            return None
        return await _call_handler(compensation, node, context)


def build_tool_request(request_id: int, method: str, node: ToolNode, context: ExecutionContext) -> Dict[str, Any]:
    """Build JSON-RPC request for one tool call"""
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": method,
        "params": {
            "toolId": node.id,
            "name": node.name,
            "params": node.params,
            "context": {
                "workflowId": context.workflow_id,
                "executionId": context.execution_id,
                "executionParams": context.params,
                "previousResults": dict(context.results),
            },
        },
    }


class HttpToolInvoker:
    """
    Invokes tools over JSON-RPC 2.0 (`tool.execute` / `tool.compensate`).

    In-flight requests are abandoned when the execution is cancelled.
    """

    def __init__(self, rpc_url: str, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        self.rpc_url = rpc_url
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    async def invoke(self, node: ToolNode, context: ExecutionContext) -> Any:
        return await self._call("tool.execute", node, context)

    async def compensate(self, node: ToolNode, context: ExecutionContext) -> Any:
        return await self._call("tool.compensate", node, context)

    async def _call(self, method: str, node: ToolNode, context: ExecutionContext) -> Any:
        request = build_tool_request(next(self._ids), method, node, context)

        post = asyncio.ensure_future(self.client.post(self.rpc_url, json=request))
        cancelled = asyncio.ensure_future(context.wait_cancelled())
        try:
            done, _ = await asyncio.wait({post, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancelled.cancel()
            if not post.done():
                post.cancel()
        if post not in done:
            raise ToolInvocationError(node.id, "Execution cancelled", context.execution_id)

        try:
            response = post.result()
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise ToolInvocationError(node.id, f"RPC transport error: {e}", context.execution_id) from e
        except ValueError as e:
            raise ToolInvocationError(node.id, f"Invalid RPC response: {e}", context.execution_id) from e

        if body.get("error"):
            error = body["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise ToolInvocationError(node.id, message, context.execution_id)

        return body.get("result")

    async def close(self) -> None:
        """Close HTTP client"""
        await self.client.aclose()

    async def __aenter__(self) -> "HttpToolInvoker":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
