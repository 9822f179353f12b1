# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
FastAPI application factory for the orchestration engine.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from tool_orchestration.api.routes import router
from tool_orchestration.core.config import Config, get_config
from tool_orchestration.core.errors import OrchestrationError, ValidationError
from tool_orchestration.core.logging import get_logger
from tool_orchestration.engine.events import LoggingEventSubscriber
from tool_orchestration.engine.invokers import HttpToolInvoker
from tool_orchestration.engine.scheduler import Scheduler


def create_app(scheduler: Optional[Scheduler] = None, config: Optional[Config] = None) -> FastAPI:
    """
    Build the API app.

    Without an injected scheduler one is created at start-up, invoking
    tools over JSON-RPC at `config.rpc_url`.
    """
    config = config or get_config()
    logger = get_logger("tool_orchestration.api", config.log_level, config.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned_invoker = None
        if getattr(app.state, "scheduler", None) is None:
            owned_invoker = HttpToolInvoker(config.rpc_url, timeout=config.http_timeout)
            app.state.scheduler = Scheduler(owned_invoker, config=config)
            app.state.scheduler.subscribe(LoggingEventSubscriber())

        if config.load_builtin_workflows:
            loaded = await app.state.scheduler.load_builtin_workflows()
            logger.info(f"Loaded built-in workflows: {loaded}")

        yield

        await app.state.scheduler.shutdown()
        if owned_invoker is not None:
            await owned_invoker.close()

    app = FastAPI(
        title="Tool Orchestration Engine",
        description="DAG scheduling of tool invocations",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.scheduler = scheduler

    @app.exception_handler(OrchestrationError)
    async def orchestration_error_handler(request: Request, exc: OrchestrationError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = ValidationError("Invalid request", details={"errors": jsonable_encoder(exc.errors())})
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    app.include_router(router)
    return app
