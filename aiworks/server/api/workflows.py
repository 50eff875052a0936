"""Workflow CRUD and execution endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from aiworks.server.dtos import AdHocRunRequest, WorkflowCreate, WorkflowRunRequest
from aiworks.workflow.engine import WorkflowEngine
from aiworks.workflow.models import Workflow, WorkflowExecution, create_workflow
from aiworks.workflow.store import JSONWorkflowStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/workflows", tags=["workflows"])


def _engine(request: Request) -> WorkflowEngine:
    return request.app.state.engine


def _store(request: Request) -> JSONWorkflowStore | None:
    return request.app.state.store


def _not_found(workflow_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")


async def _find(request: Request, workflow_id: str) -> Workflow:
    engine = _engine(request)
    workflow = engine.get_workflow(workflow_id)
    if workflow is None and _store(request) is not None:
        try:
            workflow = await _store(request).load(workflow_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        if workflow is not None:
            engine.save_workflow(workflow)
    if workflow is None:
        raise _not_found(workflow_id)
    return workflow


@router.post("", response_model=Workflow, status_code=201)
async def create_workflow_endpoint(body: WorkflowCreate, request: Request):
    """Save a workflow definition.

    Returns:
        The stored workflow with its id and timestamps.
    """
    workflow = create_workflow(
        name=body.name,
        description=body.description,
        nodes=body.nodes,
        edges=body.edges,
    )
    if body.id:
        workflow = workflow.model_copy(update={"id": body.id})

    store = _store(request)
    if store is not None:
        try:
            workflow = await store.save(workflow)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
    workflow = _engine(request).save_workflow(workflow)
    logger.info("Saved workflow %s (%d nodes)", workflow.id, len(workflow.nodes))
    return workflow


@router.get("", response_model=list[Workflow])
async def list_workflows(request: Request):
    """List saved workflows."""
    store = _store(request)
    if store is not None:
        return await store.list()
    return _engine(request).list_workflows()


@router.post("/execute", response_model=WorkflowExecution)
async def execute_adhoc(body: AdHocRunRequest, request: Request):
    """Run an unsaved ``{nodes, edges}`` graph."""
    if body.nodes is None or body.edges is None:
        raise HTTPException(status_code=400, detail="Both 'nodes' and 'edges' are required")

    workflow = create_workflow(name=body.name, nodes=body.nodes, edges=body.edges)
    return await _engine(request).execute(workflow, variables=body.variables, mode=body.mode)


@router.get("/{workflow_id}", response_model=Workflow)
async def get_workflow(workflow_id: str, request: Request):
    """Fetch one workflow."""
    return await _find(request, workflow_id)


@router.delete("/{workflow_id}", status_code=204)
async def delete_workflow(workflow_id: str, request: Request):
    """Delete a workflow."""
    removed = _engine(request).delete_workflow(workflow_id)
    store = _store(request)
    if store is not None:
        try:
            removed = await store.delete(workflow_id) or removed
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
    if not removed:
        raise _not_found(workflow_id)


@router.post("/{workflow_id}/execute", response_model=WorkflowExecution)
async def execute_workflow(workflow_id: str, request: Request, body: WorkflowRunRequest | None = None):
    """Run a saved workflow."""
    body = body or WorkflowRunRequest()
    workflow = await _find(request, workflow_id)
    return await _engine(request).execute(workflow, variables=body.variables, mode=body.mode)
