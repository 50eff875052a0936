"""Execution history endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request

from aiworks.workflow.models import WorkflowExecution

router = APIRouter(prefix="/api/executions", tags=["executions"])


@router.get("", response_model=list[WorkflowExecution])
async def list_executions(
    request: Request,
    workflow_id: str | None = Query(None, alias="workflowId"),
    limit: int = Query(50, ge=1, le=1000),
):
    """Most recent executions first."""
    history = request.app.state.engine.history
    if workflow_id:
        history = [e for e in history if e.workflow_id == workflow_id]
    return list(reversed(history))[:limit]


@router.get("/{execution_id}", response_model=WorkflowExecution)
async def get_execution(execution_id: str, request: Request):
    """Fetch one execution from the history."""
    for execution in request.app.state.engine.history:
        if execution.id == execution_id:
            return execution
    raise HTTPException(status_code=404, detail=f"Execution '{execution_id}' not found")
