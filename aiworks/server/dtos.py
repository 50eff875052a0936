"""Request and response schemas for the HTTP API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from aiworks.workflow.models import ExecutionMode, WorkflowEdge, WorkflowNode


class WorkflowCreate(BaseModel):
    """Workflow creation request."""

    id: str | None = Field(None, description="Keep an existing id when re-saving")
    name: str = Field(..., min_length=1, max_length=200, description="Workflow name")
    description: str = Field("", max_length=1000, description="Workflow description")
    nodes: list[WorkflowNode] = Field(default_factory=list, description="Workflow nodes")
    edges: list[WorkflowEdge] = Field(default_factory=list, description="Workflow edges")


class WorkflowRunRequest(BaseModel):
    """Run a saved workflow."""

    variables: dict[str, Any] = Field(default_factory=dict, description="Initial variables")
    mode: ExecutionMode = Field(ExecutionMode.FULL, description="full or mock")


class AdHocRunRequest(BaseModel):
    """Run a graph that was never saved."""

    name: str = Field("Ad hoc workflow", min_length=1, max_length=200)
    nodes: list[WorkflowNode] | None = None
    edges: list[WorkflowEdge] | None = None
    variables: dict[str, Any] = Field(default_factory=dict)
    mode: ExecutionMode = ExecutionMode.FULL


class GenerateWorkflowRequest(BaseModel):
    """Prompt for workflow generation."""

    prompt: str = Field("", max_length=10000)


class GenerateCodeRequest(BaseModel):
    """Workflow graph to render as code."""

    name: str = Field("Workflow", max_length=200)
    nodes: list[WorkflowNode] | None = None
    edges: list[WorkflowEdge] | None = None
    language: str | None = Field(None, description="Only render this language")


class ValidateApiKeyRequest(BaseModel):
    """API key to check."""

    api_key: str = Field("", alias="apiKey")

    model_config = ConfigDict(populate_by_name=True)


class ValidateApiKeyResponse(BaseModel):
    """API key check outcome."""

    valid: bool
    message: str
