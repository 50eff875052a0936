"""LLM-backed generation and API key endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from aiworks.generators.code import generate_all, generate_code
from aiworks.generators.workflow import WorkflowGenerator
from aiworks.llm.keys import ApiKeyValidator
from aiworks.server.dtos import (
    GenerateCodeRequest,
    GenerateWorkflowRequest,
    ValidateApiKeyRequest,
    ValidateApiKeyResponse,
)
from aiworks.workflow.models import Workflow, create_workflow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ai"])


@router.post("/ai/generate-workflow", response_model=Workflow)
async def generate_workflow(body: GenerateWorkflowRequest, request: Request):
    """Turn a plain-language description into a workflow."""
    if not body.prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt is required")

    generator: WorkflowGenerator = request.app.state.generator
    return await generator.generate(body.prompt)


@router.post("/ai/generate-code")
async def generate_workflow_code(body: GenerateCodeRequest) -> dict[str, str]:
    """Render the workflow as JavaScript, TypeScript and Python scaffolds."""
    if body.nodes is None or body.edges is None:
        raise HTTPException(status_code=400, detail="Both 'nodes' and 'edges' are required")

    workflow = create_workflow(name=body.name, nodes=body.nodes, edges=body.edges)
    if body.language:
        try:
            return {body.language.lower(): generate_code(workflow, body.language)}
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
    return generate_all(workflow)


@router.post("/validate-api-key", response_model=ValidateApiKeyResponse)
async def validate_api_key(body: ValidateApiKeyRequest, request: Request):
    """Check a Gemini API key against the models endpoint."""
    if not body.api_key.strip():
        return JSONResponse(
            status_code=400,
            content={"valid": False, "message": "API key is required"},
        )

    validator: ApiKeyValidator = request.app.state.key_validator
    if not await validator.validate(body.api_key):
        logger.info("Rejected API key validation request")
        return JSONResponse(
            status_code=401,
            content={"valid": False, "message": "Invalid API key"},
        )
    return ValidateApiKeyResponse(valid=True, message="API key is valid")
