# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tool Invoker Tests

In-process function handlers and the JSON-RPC HTTP invoker, the latter
against httpx.MockTransport.
"""

import asyncio
import json

import httpx
import pytest

from tool_orchestration.engine.context import ExecutionContext
from tool_orchestration.engine.exceptions import ToolInvocationError
from tool_orchestration.engine.invokers import (
    FunctionToolInvoker,
    HttpToolInvoker,
    InMemoryToolRegistry,
    ToolInvoker,
    ToolRegistry,
    build_tool_request,
)
from tool_orchestration.engine.models import ErrorHandling, ExecutionStatus
from tests.factories import tool, workflow

RPC_URL = "http://tools.test/orchestration"


@pytest.fixture
def node():
    return tool("fetch", name="Fetch Data", params={"source": "api/data"})


@pytest.fixture
def context(node):
    context = ExecutionContext(workflow([node], workflow_id="wf"), params={"env": "test"})
    context.results["earlier"] = {"rows": 3}
    return context


def rpc_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_protocol_conformance():
    assert isinstance(FunctionToolInvoker(), ToolInvoker)
    assert isinstance(HttpToolInvoker(RPC_URL, client=rpc_client(lambda r: httpx.Response(200))), ToolInvoker)
    assert isinstance(InMemoryToolRegistry(), ToolRegistry)


# ============================================================================
# FunctionToolInvoker
# ============================================================================

class TestFunctionToolInvoker:
    """Handlers keyed by tool name"""

    @pytest.mark.asyncio
    async def test_sync_handler(self, node, context):
        invoker = FunctionToolInvoker({"Fetch Data": lambda n, c: {"source": n.params["source"]}})

        assert await invoker.invoke(node, context) == {"source": "api/data"}

    @pytest.mark.asyncio
    async def test_async_handler(self, node, context):
        async def handler(n, c):
            await asyncio.sleep(0)
            return c.params["env"]

        invoker = FunctionToolInvoker()
        invoker.register("Fetch Data", handler)

        assert await invoker.invoke(node, context) == "test"

    @pytest.mark.asyncio
    async def test_missing_handler(self, node, context):
        with pytest.raises(ToolInvocationError, match="No handler registered for tool 'Fetch Data'"):
            await FunctionToolInvoker().invoke(node, context)

    @pytest.mark.asyncio
    async def test_compensation(self, node, context):
        undone = []
        invoker = FunctionToolInvoker()
        invoker.register("Fetch Data", lambda n, c: "ok", compensation=lambda n, c: undone.append(n.id))

        await invoker.compensate(node, context)

        assert undone == ["fetch"]

    @pytest.mark.asyncio
    async def test_compensation_not_registered(self, node, context):
        assert await FunctionToolInvoker().compensate(node, context) is None

    @pytest.mark.asyncio
    async def test_drives_a_scheduler(self, make_scheduler):
        """Rollback through registered compensations"""
        undone = []

        def fail(n, c):
            raise RuntimeError("disk full")

        invoker = FunctionToolInvoker(
            handlers={"reserve": lambda n, c: "reserved", "charge": fail},
            compensations={"reserve": lambda n, c: undone.append(n.id)},
        )
        scheduler = make_scheduler(invoker)
        wf = workflow(
            [tool("r", name="reserve"), tool("c", name="charge", deps=["r"])],
            error_handling=ErrorHandling.ROLLBACK,
        )
        await scheduler.load_workflow(wf)

        context = await scheduler.execute_workflow(wf.id)
        await scheduler.wait_for_execution(context.execution_id, timeout=5)

        assert context.status == ExecutionStatus.FAILED
        assert context.errors["c"] == "disk full"
        assert undone == ["r"]


# ============================================================================
# HttpToolInvoker
# ============================================================================

def test_build_tool_request(node, context):
    request = build_tool_request(7, "tool.execute", node, context)

    assert request["jsonrpc"] == "2.0"
    assert request["id"] == 7
    assert request["method"] == "tool.execute"
    assert request["params"]["toolId"] == "fetch"
    assert request["params"]["params"] == {"source": "api/data"}
    assert request["params"]["context"] == {
        "workflowId": "wf",
        "executionId": context.execution_id,
        "executionParams": {"env": "test"},
        "previousResults": {"earlier": {"rows": 3}},
    }


class TestHttpToolInvoker:
    """JSON-RPC calls over httpx"""

    @pytest.mark.asyncio
    async def test_successful_call(self, node, context):
        seen = []

        def handler(request):
            body = json.loads(request.content)
            seen.append(body)
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": {"rows": 10}})

        invoker = HttpToolInvoker(RPC_URL, client=rpc_client(handler))

        result = await invoker.invoke(node, context)

        assert result == {"rows": 10}
        assert seen[0]["method"] == "tool.execute"
        assert seen[0]["params"]["name"] == "Fetch Data"
        await invoker.close()

    @pytest.mark.asyncio
    async def test_request_ids_increase(self, node, context):
        ids = []

        def handler(request):
            body = json.loads(request.content)
            ids.append(body["id"])
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": None})

        async with HttpToolInvoker(RPC_URL, client=rpc_client(handler)) as invoker:
            await invoker.invoke(node, context)
            await invoker.compensate(node, context)

        assert ids == [1, 2]

    @pytest.mark.asyncio
    async def test_compensate_method(self, node, context):
        methods = []

        def handler(request):
            methods.append(json.loads(request.content)["method"])
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None})

        async with HttpToolInvoker(RPC_URL, client=rpc_client(handler)) as invoker:
            await invoker.compensate(node, context)

        assert methods == ["tool.compensate"]

    @pytest.mark.asyncio
    async def test_rpc_error(self, node, context):
        def handler(request):
            return httpx.Response(200, json={
                "jsonrpc": "2.0", "id": 1,
                "error": {"code": -32000, "message": "upstream unavailable"},
            })

        async with HttpToolInvoker(RPC_URL, client=rpc_client(handler)) as invoker:
            with pytest.raises(ToolInvocationError, match="upstream unavailable") as exc_info:
                await invoker.invoke(node, context)

        assert exc_info.value.node_id == "fetch"

    @pytest.mark.asyncio
    async def test_http_error_status(self, node, context):
        async with HttpToolInvoker(RPC_URL, client=rpc_client(lambda r: httpx.Response(503))) as invoker:
            with pytest.raises(ToolInvocationError, match="RPC transport error"):
                await invoker.invoke(node, context)

    @pytest.mark.asyncio
    async def test_connection_error(self, node, context):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with HttpToolInvoker(RPC_URL, client=rpc_client(handler)) as invoker:
            with pytest.raises(ToolInvocationError, match="connection refused"):
                await invoker.invoke(node, context)

    @pytest.mark.asyncio
    async def test_invalid_json_body(self, node, context):
        async with HttpToolInvoker(RPC_URL, client=rpc_client(lambda r: httpx.Response(200, text="<html>"))) as invoker:
            with pytest.raises(ToolInvocationError, match="Invalid RPC response"):
                await invoker.invoke(node, context)

    @pytest.mark.asyncio
    async def test_cancellation_abandons_request(self, node, context):
        async def handler(request):
            await asyncio.sleep(10)
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "late"})

        asyncio.get_running_loop().call_later(0.01, context.request_cancel)

        async with HttpToolInvoker(RPC_URL, client=rpc_client(handler)) as invoker:
            with pytest.raises(ToolInvocationError, match="Execution cancelled"):
                await asyncio.wait_for(invoker.invoke(node, context), timeout=5)
