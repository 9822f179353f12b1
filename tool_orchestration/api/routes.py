# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Orchestration API Routes

Workflow loading, execution submission/tracking and metrics.
Engine errors are turned into JSON responses by the handler in app.py.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request, status

from tool_orchestration.engine.models import (
    OrchestrationMetrics,
    WorkflowDefinition,
    WorkflowRunRequest,
)
from tool_orchestration.engine.scheduler import Scheduler

router = APIRouter()


def get_scheduler(request: Request) -> Scheduler:
    """Scheduler instance created at app start-up"""
    return request.app.state.scheduler


def _workflow_to_dict(workflow: WorkflowDefinition) -> Dict[str, Any]:
    return workflow.model_dump(mode="json", by_alias=True)


@router.get("/health", tags=["system"])
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@router.get("/workflows", tags=["workflows"])
async def list_workflows(
    scheduler: Scheduler = Depends(get_scheduler)
) -> List[Dict[str, Any]]:
    """List all loaded workflows"""
    return [_workflow_to_dict(workflow) for workflow in scheduler.list_workflows()]


@router.post("/workflows", status_code=status.HTTP_201_CREATED, tags=["workflows"])
async def load_workflow(
    definition: WorkflowDefinition,
    scheduler: Scheduler = Depends(get_scheduler)
) -> Dict[str, Any]:
    """Validate and load a workflow definition"""
    workflow = await scheduler.load_workflow(definition)
    return _workflow_to_dict(workflow)


@router.get("/workflows/{workflow_id}", tags=["workflows"])
async def get_workflow(
    workflow_id: str,
    scheduler: Scheduler = Depends(get_scheduler)
) -> Dict[str, Any]:
    """Get a specific workflow definition"""
    return _workflow_to_dict(scheduler.get_workflow(workflow_id))


@router.delete("/workflows/{workflow_id}", tags=["workflows"])
async def unload_workflow(
    workflow_id: str,
    scheduler: Scheduler = Depends(get_scheduler)
) -> Dict[str, str]:
    """Unload a workflow definition"""
    scheduler.unload_workflow(workflow_id)
    return {"status": "deleted", "workflow_id": workflow_id}


@router.post(
    "/workflows/{workflow_id}/executions",
    status_code=status.HTTP_202_ACCEPTED,
    tags=["executions"],
)
async def execute_workflow(
    workflow_id: str,
    run_request: Optional[WorkflowRunRequest] = None,
    scheduler: Scheduler = Depends(get_scheduler)
) -> Dict[str, Any]:
    """Queue an execution; returns the pending context"""
    params = run_request.params if run_request else None
    context = await scheduler.execute_workflow(workflow_id, params)
    return context.to_dict()


@router.get("/executions", tags=["executions"])
async def list_executions(
    workflow_id: Optional[str] = None,
    scheduler: Scheduler = Depends(get_scheduler)
) -> List[Dict[str, Any]]:
    return [context.to_dict() for context in scheduler.list_executions(workflow_id)]


@router.get("/executions/{execution_id}", tags=["executions"])
async def get_execution(
    execution_id: str,
    scheduler: Scheduler = Depends(get_scheduler)
) -> Dict[str, Any]:
    return scheduler.get_execution(execution_id).to_dict()


@router.post("/executions/{execution_id}/cancel", tags=["executions"])
async def cancel_execution(
    execution_id: str,
    scheduler: Scheduler = Depends(get_scheduler)
) -> Dict[str, Any]:
    cancelled = await scheduler.cancel_execution(execution_id)
    return {"execution_id": execution_id, "cancelled": cancelled}


@router.get("/metrics", response_model=OrchestrationMetrics, tags=["system"])
async def get_metrics(
    scheduler: Scheduler = Depends(get_scheduler)
) -> OrchestrationMetrics:
    """Read-only snapshot of cross-run statistics"""
    return scheduler.get_metrics()
