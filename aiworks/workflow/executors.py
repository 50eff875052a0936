"""Per-type node executors.

Each node type maps to one executor. The engine looks the executor up by
``node.type`` and calls ``execute`` (or ``mock`` in mock mode) with the
node, the running context and the node input.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
from abc import ABC, abstractmethod
from typing import Any

import httpx
from simpleeval import EvalWithCompoundTypes, InvalidExpression

from aiworks.config import Settings, get_settings
from aiworks.errors.exceptions import ExecutorNotFoundError, NodeExecutionError
from aiworks.llm.base import BaseLLMProvider
from aiworks.logging import AIWorksLogger, LogLevel, get_logger
from aiworks.resilience import RetryPolicy
from aiworks.workflow.models import ExecutionContext, NodeResult, NodeType, WorkflowNode
from aiworks.workflow.templates import render_text, resolve_path, resolve_value

logger = logging.getLogger(__name__)

SAFE_FUNCTIONS = {
    "len": len,
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "abs": abs,
    "min": min,
    "max": max,
}


def _dump(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


class BaseNodeExecutor(ABC):
    """Abstract base class for node executors."""

    @abstractmethod
    async def execute(
        self,
        node: WorkflowNode,
        context: ExecutionContext,
        node_input: Any,
    ) -> NodeResult:
        """Run the node and return its result.

        Args:
            node: The node being executed.
            context: Variables and earlier results of this run.
            node_input: Data handed over by the predecessor node(s).

        Returns:
            NodeResult with ``success`` and either ``data`` or ``error``.
        """
        ...

    async def mock(
        self,
        node: WorkflowNode,
        context: ExecutionContext,
        node_input: Any,
    ) -> NodeResult:
        """Run without external side effects. Defaults to ``execute``."""
        return await self.execute(node, context, node_input)


class StartExecutor(BaseNodeExecutor):
    """Emits the run variables."""

    async def execute(self, node, context, node_input):
        return NodeResult.ok(dict(context.variables))


class EndExecutor(BaseNodeExecutor):
    """Sets the workflow output."""

    async def execute(self, node, context, node_input):
        if "output" in node.config:
            data = resolve_value(node.config["output"], context.namespace())
        else:
            data = node_input
        context.output = data
        return NodeResult.ok(data)


class ApiCallExecutor(BaseNodeExecutor):
    """Sends an HTTP request with httpx.

    Config:
        url: Request URL (required, templated).
        method: HTTP method, default GET.
        headers / params: Optional mappings.
        body: JSON body; non-GET requests fall back to the node input.
        request_timeout: Seconds per attempt, default ``Settings.http_timeout``.
            The node ``timeout`` bounds the whole call, retries included.
        retries: Extra attempts on transport errors and 429/502/503/504.
        retry_strategy: fixed, linear or exponential (default).
        retry_delay: Base wait in seconds between attempts, default 0.5.
    """

    def __init__(self, timeout: float = 30.0) -> None:
        self._timeout = timeout

    async def execute(self, node, context, node_input):
        config = resolve_value(node.config, context.namespace())
        url = config.get("url")
        if not url:
            return NodeResult.fail("api-call node requires a 'url'")

        method = str(config.get("method") or "GET").upper()
        body = None
        if method not in ("GET", "HEAD"):
            body = config.get("body", node_input)

        try:
            policy = RetryPolicy.from_config(config)
        except ValueError as e:
            return NodeResult.fail(str(e))

        async def send() -> httpx.Response:
            async with httpx.AsyncClient(timeout=float(config.get("request_timeout", self._timeout))) as client:
                return await client.request(
                    method,
                    str(url),
                    headers=config.get("headers") or None,
                    params=config.get("params") or None,
                    json=body,
                )

        try:
            response = await policy.send(send)
        except httpx.HTTPError as e:
            return NodeResult.fail(f"HTTP request failed: {e}")

        if not 200 <= response.status_code < 300:
            return NodeResult.fail(f"HTTP error: {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            data = response.text

        return NodeResult.ok({
            "status_code": response.status_code,
            "data": data,
            "headers": dict(response.headers),
        })

    async def mock(self, node, context, node_input):
        namespace = context.namespace()
        if "mock_response" in node.config:
            return NodeResult.ok(resolve_value(node.config["mock_response"], namespace))
        return NodeResult.ok({
            "status_code": 200,
            "data": {
                "mock": True,
                "url": resolve_value(node.config.get("url"), namespace),
                "method": str(node.config.get("method") or "GET").upper(),
            },
            "headers": {},
        })


class TransformExecutor(BaseNodeExecutor):
    """Reshapes data without side effects.

    Operations: uppercase, lowercase, trim, filter, pick, map, template,
    json_parse, json_stringify, passthrough. A value of the wrong type for
    an operation is passed through unchanged.
    """

    OPERATIONS = (
        "passthrough",
        "uppercase",
        "lowercase",
        "trim",
        "filter",
        "pick",
        "map",
        "template",
        "json_parse",
        "json_stringify",
    )

    async def execute(self, node, context, node_input):
        config = node.config
        namespace = context.namespace()
        operation = config.get("operation") or config.get("transformation") or "passthrough"
        if operation not in self.OPERATIONS:
            return NodeResult.fail(f"Unknown transform operation '{operation}'")

        value = resolve_path(namespace, config["source"]) if config.get("source") else node_input

        try:
            data = self._apply(operation, value, config, namespace)
        except (ValueError, InvalidExpression) as e:
            return NodeResult.fail(f"Transform '{operation}' failed: {e}")
        return NodeResult.ok(data)

    def _apply(self, operation: str, value: Any, config: dict, namespace: dict) -> Any:
        if operation == "uppercase":
            return value.upper() if isinstance(value, str) else value
        if operation == "lowercase":
            return value.lower() if isinstance(value, str) else value
        if operation == "trim":
            return value.strip() if isinstance(value, str) else value
        if operation == "filter":
            return self._filter(value, config.get("expression"), namespace)
        if operation == "pick":
            fields = config.get("fields") or []
            if isinstance(value, dict):
                return {k: value[k] for k in fields if k in value}
            if isinstance(value, list):
                return [
                    {k: item[k] for k in fields if k in item} if isinstance(item, dict) else item
                    for item in value
                ]
            return value
        if operation == "map":
            mapping = config.get("mapping") or {}
            if isinstance(value, list):
                return [resolve_value(mapping, {**namespace, "item": item}) for item in value]
            return resolve_value(mapping, {**namespace, "item": value})
        if operation == "template":
            return render_text(str(config.get("template", "")), {**namespace, "value": value})
        if operation == "json_parse":
            return json.loads(value) if isinstance(value, str) else value
        if operation == "json_stringify":
            return json.dumps(value, ensure_ascii=False, default=str)
        return value

    def _filter(self, value: Any, expression: str | None, namespace: dict) -> Any:
        if not isinstance(value, list):
            return value
        if not expression:
            return [item for item in value if item is not None]

        kept = []
        for item in value:
            evaluator = EvalWithCompoundTypes(
                names={**namespace, "item": item, "true": True, "false": False, "none": None},
                functions=SAFE_FUNCTIONS,
            )
            if evaluator.eval(expression):
                kept.append(item)
        return kept


class ConditionExecutor(BaseNodeExecutor):
    """Evaluates a boolean and picks the ``true`` or ``false`` branch.

    ``expression`` is evaluated with simpleeval over ``input``,
    ``variables`` and ``results``. ``condition`` may name a built-in check
    (``exists``, ``not_empty``) or hold an expression itself.
    """

    NAMED_CHECKS = ("exists", "not_empty")

    async def execute(self, node, context, node_input):
        config = node.config
        namespace = context.namespace()
        value = resolve_path(namespace, config["source"]) if config.get("source") else node_input

        expression = config.get("expression")
        check = config.get("condition")
        if not expression and check not in self.NAMED_CHECKS:
            expression = check
        if not expression and not check:
            return NodeResult.fail("condition node requires an 'expression' or 'condition'")

        if expression:
            evaluator = EvalWithCompoundTypes(
                names={
                    "input": value,
                    "variables": context.variables,
                    "results": {k: r.data for k, r in context.results.items() if r.success},
                    "true": True,
                    "false": False,
                    "none": None,
                },
                functions=SAFE_FUNCTIONS,
            )
            try:
                result = bool(evaluator.eval(expression))
            except Exception as e:
                return NodeResult.fail(f"Condition '{expression}' failed: {e}")
        elif check == "exists":
            result = value is not None
        else:
            result = bool(value)

        data: dict[str, Any] = {"result": result, "branch": "true" if result else "false"}
        key = "true_value" if result else "false_value"
        if key in config:
            data["value"] = resolve_value(config[key], namespace)
        return NodeResult.ok(data)


def _delay_ms(node: WorkflowNode, limit: float) -> float:
    raw = node.config.get("duration_ms", node.config.get("duration", 1000))
    if isinstance(raw, bool):
        raise NodeExecutionError(f"Invalid delay duration: {raw!r}", node_id=node.id)
    try:
        duration = float(raw)
    except (TypeError, ValueError):
        raise NodeExecutionError(f"Invalid delay duration: {raw!r}", node_id=node.id) from None
    if not math.isfinite(duration):
        raise NodeExecutionError(f"Invalid delay duration: {raw!r}", node_id=node.id)
    if duration < 0:
        raise NodeExecutionError(f"Delay duration must not be negative: {raw!r}", node_id=node.id)
    return min(duration, limit)


class DelayExecutor(BaseNodeExecutor):
    """Pauses the run, capped at ``max_delay_ms``."""

    def __init__(self, max_delay_ms: float = 60000) -> None:
        self._max_delay_ms = max_delay_ms

    async def execute(self, node, context, node_input):
        try:
            duration = _delay_ms(node, self._max_delay_ms)
        except NodeExecutionError as e:
            return NodeResult.fail(str(e))
        await asyncio.sleep(duration / 1000)
        return NodeResult.ok({"delayed_ms": int(duration)})

    async def mock(self, node, context, node_input):
        try:
            duration = _delay_ms(node, self._max_delay_ms)
        except NodeExecutionError as e:
            return NodeResult.fail(str(e))
        return NodeResult.ok({"delayed_ms": int(duration), "skipped": True})


class LogExecutor(BaseNodeExecutor):
    """Writes a templated message to the workflow logger."""

    def __init__(self, workflow_logger: AIWorksLogger | None = None) -> None:
        self._logger = workflow_logger

    async def execute(self, node, context, node_input):
        level_name = str(node.config.get("level", "info"))
        try:
            level = LogLevel.parse(level_name)
        except ValueError:
            return NodeResult.fail(f"Unknown log level '{level_name.lower()}'")

        if "message" in node.config:
            message = render_text(str(node.config["message"]), context.namespace())
        else:
            message = _dump(node_input)

        (self._logger or get_logger()).log(level, message, node=node.id)
        return NodeResult.ok({"message": message, "level": level.value})


class AIGenerateExecutor(BaseNodeExecutor):
    """Calls an LLM provider with a templated prompt.

    Without a provider the node answers with a simulated response so
    workflows stay runnable offline.
    """

    def __init__(
        self,
        provider: BaseLLMProvider | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._provider = provider
        self._settings = settings or get_settings()

    def _prompt(self, node: WorkflowNode, context: ExecutionContext, node_input: Any) -> str:
        template = node.config.get("prompt")
        if not template:
            return _dump(node_input) if node_input is not None else ""
        return render_text(str(template), context.namespace()).replace("{input}", _dump(node_input))

    def _simulated(self, prompt: str, model: str, node_input: Any) -> NodeResult:
        return NodeResult.ok({
            "text": f"AI response to: {prompt} with input: {json.dumps(node_input, default=str)}",
            "model": model,
            "usage": None,
            "simulated": True,
        })

    async def execute(self, node, context, node_input):
        prompt = self._prompt(node, context, node_input)
        if not prompt.strip():
            return NodeResult.fail("ai-generate node requires a prompt")

        config = node.config
        model = config.get("model") or self._settings.default_model
        if self._provider is None:
            logger.debug(f"No LLM provider configured, simulating node '{node.id}'")
            return self._simulated(prompt, model, node_input)

        system_prompt = config.get("system_prompt")
        response = await self._provider.generate(
            prompt,
            system_prompt=str(system_prompt) if system_prompt else None,
            temperature=float(config.get("temperature", self._settings.llm_temperature)),
            max_tokens=int(config.get("max_tokens", self._settings.llm_max_tokens)),
            model=model,
        )
        return NodeResult.ok({
            "text": response.content,
            "model": response.model,
            "usage": response.usage.model_dump(),
        })

    async def mock(self, node, context, node_input):
        prompt = self._prompt(node, context, node_input)
        model = node.config.get("model") or self._settings.default_model
        return self._simulated(prompt, model, node_input)


class ExecutorRegistry:
    """Maps node types to executors."""

    def __init__(self, executors: dict[str, BaseNodeExecutor] | None = None) -> None:
        self._executors: dict[str, BaseNodeExecutor] = dict(executors or {})

    def register(self, node_type: str | NodeType, executor: BaseNodeExecutor) -> None:
        key = node_type.value if isinstance(node_type, NodeType) else node_type
        self._executors[key] = executor

    def get(self, node_type: str) -> BaseNodeExecutor:
        try:
            return self._executors[node_type]
        except KeyError:
            raise ExecutorNotFoundError(node_type, self.types) from None

    def has(self, node_type: str) -> bool:
        return node_type in self._executors

    def __contains__(self, node_type: object) -> bool:
        return node_type in self._executors

    @property
    def types(self) -> list[str]:
        return sorted(self._executors)


def default_registry(
    provider: BaseLLMProvider | None = None,
    settings: Settings | None = None,
    workflow_logger: AIWorksLogger | None = None,
) -> ExecutorRegistry:
    """Registry with every built-in node type."""
    settings = settings or get_settings()
    return ExecutorRegistry({
        NodeType.START.value: StartExecutor(),
        NodeType.END.value: EndExecutor(),
        NodeType.API_CALL.value: ApiCallExecutor(timeout=settings.http_timeout),
        NodeType.TRANSFORM.value: TransformExecutor(),
        NodeType.CONDITION.value: ConditionExecutor(),
        NodeType.DELAY.value: DelayExecutor(max_delay_ms=settings.max_delay_ms),
        NodeType.LOG.value: LogExecutor(workflow_logger),
        NodeType.AI_GENERATE.value: AIGenerateExecutor(provider, settings),
    })
