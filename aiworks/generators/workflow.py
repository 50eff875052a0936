"""Natural-language prompt to workflow generation."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from aiworks.errors.exceptions import WorkflowGenerationError
from aiworks.llm.base import BaseLLMProvider
from aiworks.workflow.models import NodeType, Workflow, create_edge, create_node, create_workflow

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You design automation workflows. Reply with a single JSON object and nothing else:
{
  "name": "short workflow name",
  "description": "one sentence",
  "nodes": [
    {"id": "node1", "type": "<node type>", "label": "Node name", "config": {}, "position": {"x": 100, "y": 100}}
  ],
  "edges": [
    {"source": "node1", "target": "node2", "condition": null}
  ]
}
Node types: start, end, api-call (url, method, headers, body), transform (operation, source),
condition (expression; label outgoing edges with condition "true" or "false"), delay (duration_ms),
log (message, level), ai-generate (prompt). Reference earlier results with {{node_id.field}}.
Begin with a start node and finish with an end node."""

_TRAILING_COMMA = re.compile(r",\s*([}\]])")

# Ordered so the mock pipeline reads like a typical fetch/process/report flow.
KEYWORD_NODES: list[tuple[NodeType, tuple[str, ...]]] = [
    (NodeType.API_CALL, ("api", "fetch", "http", "request", "download", "webhook")),
    (NodeType.TRANSFORM, ("transform", "convert", "format", "filter", "clean", "parse")),
    (NodeType.CONDITION, ("if ", "condition", "check", "when", "branch")),
    (NodeType.AI_GENERATE, (" ai ", "summar", "generate", "write", "translate", "llm")),
    (NodeType.DELAY, ("wait", "delay", "pause", "sleep")),
    (NodeType.LOG, ("log", "notify", "report", "print")),
]

_DEFAULT_CONFIG: dict[NodeType, dict[str, Any]] = {
    NodeType.API_CALL: {"url": "https://api.example.com/data", "method": "GET"},
    NodeType.TRANSFORM: {"operation": "passthrough"},
    NodeType.CONDITION: {"condition": "not_empty"},
    NodeType.AI_GENERATE: {"prompt": "Process the following data: {input}"},
    NodeType.DELAY: {"duration_ms": 1000},
    NodeType.LOG: {"message": "Workflow step finished", "level": "info"},
}


def extract_json(text: str) -> Any:
    """Parse the JSON object embedded in an LLM reply.

    Handles markdown code fences, prose around the object and trailing
    commas.

    Raises:
        ValueError: If no JSON object can be recovered.
    """
    text = text.strip()
    fence = re.search(r"```(?:json)?\s*(.*?)```", text, re.DOTALL)
    if fence:
        text = fence.group(1).strip()

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("No JSON object found in text")
    candidate = text[start : end + 1]

    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass

    try:
        return json.loads(_TRAILING_COMMA.sub(r"\1", candidate))
    except json.JSONDecodeError as e:
        raise ValueError(f"Could not parse JSON: {e}") from e


class WorkflowGenerator:
    """Builds workflows from a plain-language description.

    With a provider the LLM designs the graph. Without one a linear mock
    workflow is assembled from keywords in the prompt.

    Example:
        >>> generator = WorkflowGenerator(provider=GeminiProvider())
        >>> workflow = await generator.generate("Fetch the weather and summarize it")
    """

    def __init__(
        self,
        provider: BaseLLMProvider | None = None,
        temperature: float = 0.2,
        max_tokens: int = 4096,
    ) -> None:
        self._provider = provider
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def provider(self) -> BaseLLMProvider | None:
        return self._provider

    async def generate(self, prompt: str) -> Workflow:
        """Generate a workflow for the prompt.

        Raises:
            ValueError: If the prompt is empty.
            WorkflowGenerationError: If the LLM reply is not a valid workflow.
        """
        if not prompt or not prompt.strip():
            raise ValueError("Prompt is required")

        if self._provider is None:
            return self.mock_workflow(prompt)

        response = await self._provider.generate(
            prompt,
            system_prompt=SYSTEM_PROMPT,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        return self.parse(response.content)

    def parse(self, text: str) -> Workflow:
        """Turn an LLM reply into a Workflow."""
        try:
            data = extract_json(text)
        except ValueError as e:
            raise WorkflowGenerationError(str(e), raw_output=text) from e
        if not isinstance(data, dict):
            raise WorkflowGenerationError("Expected a JSON object", raw_output=text)

        data.pop("id", None)
        try:
            workflow = Workflow.model_validate(data)
        except ValidationError as e:
            raise WorkflowGenerationError(
                f"Generated workflow is invalid: {e.error_count()} error(s)",
                raw_output=text,
            ) from e

        if not workflow.nodes:
            raise WorkflowGenerationError("Generated workflow has no nodes", raw_output=text)
        logger.info(f"Generated workflow '{workflow.name}' with {len(workflow.nodes)} nodes")
        return workflow

    @staticmethod
    def mock_workflow(prompt: str) -> Workflow:
        """Linear start -> matched steps -> end workflow."""
        text = f" {prompt.lower()} "
        steps = [node_type for node_type, words in KEYWORD_NODES if any(w in text for w in words)]
        if not steps:
            steps = [NodeType.AI_GENERATE]

        nodes = [create_node(NodeType.START, label="Start", node_id="start", position=(100, 100))]
        for index, node_type in enumerate(steps, 1):
            nodes.append(
                create_node(
                    node_type,
                    config=dict(_DEFAULT_CONFIG[node_type]),
                    label=node_type.value.replace("-", " ").title(),
                    node_id=f"node{index}",
                    position=(100 + 200 * index, 100),
                )
            )
        nodes.append(
            create_node(
                NodeType.END,
                label="End",
                node_id="end",
                position=(100 + 200 * (len(steps) + 1), 100),
            )
        )

        edges = []
        for source, target in zip(nodes, nodes[1:]):
            edges.append(
                create_edge(
                    source.id,
                    target.id,
                    condition="true" if source.type == NodeType.CONDITION.value else None,
                )
            )

        name = prompt.strip()
        if len(name) > 50:
            name = name[:47] + "..."
        return create_workflow(name=name, description=prompt.strip(), nodes=nodes, edges=edges)
