"""Workflow execution engine.

Walks the workflow graph breadth-first from its start node(s), runs each
node through the executor registered for its type and records the results
on an ``ExecutionContext``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter, deque
from typing import Any

from aiworks.config import Settings, get_settings
from aiworks.errors.exceptions import (
    NoStartNodeError,
    WorkflowNotFoundError,
    WorkflowValidationError,
)
from aiworks.llm.base import BaseLLMProvider
from aiworks.logging import AIWorksLogger, get_logger
from aiworks.workflow.executors import BaseNodeExecutor, ExecutorRegistry, default_registry
from aiworks.workflow.models import (
    ExecutionContext,
    ExecutionMode,
    ExecutionStatus,
    NodeResult,
    NodeType,
    ValidationResult,
    Workflow,
    WorkflowEdge,
    WorkflowExecution,
    WorkflowNode,
    utcnow,
)

logger = logging.getLogger(__name__)


class WorkflowEngine:
    """Runs workflows and keeps a registry of saved definitions.

    Example:
        >>> engine = WorkflowEngine()
        >>> execution = await engine.execute(workflow, variables={"city": "Seoul"})
        >>> execution.status
        <ExecutionStatus.COMPLETED: 'completed'>
    """

    def __init__(
        self,
        registry: ExecutorRegistry | None = None,
        provider: BaseLLMProvider | None = None,
        settings: Settings | None = None,
        logger: AIWorksLogger | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._logger = logger or get_logger()
        self._registry = registry or default_registry(provider, self._settings, self._logger)
        self._workflows: dict[str, Workflow] = {}
        self._history: deque[WorkflowExecution] = deque(maxlen=self._settings.history_limit)

    @property
    def registry(self) -> ExecutorRegistry:
        return self._registry

    @property
    def history(self) -> list[WorkflowExecution]:
        """Past executions, oldest first."""
        return list(self._history)

    def register_executor(self, node_type: str | NodeType, executor: BaseNodeExecutor) -> None:
        """Add or replace the executor for a node type."""
        self._registry.register(node_type, executor)

    # Workflow registry

    def save_workflow(self, workflow: Workflow) -> Workflow:
        if workflow.id in self._workflows:
            workflow = workflow.model_copy(update={"updated_at": utcnow()})
        self._workflows[workflow.id] = workflow
        return workflow

    def get_workflow(self, workflow_id: str) -> Workflow | None:
        return self._workflows.get(workflow_id)

    def list_workflows(self) -> list[Workflow]:
        return list(self._workflows.values())

    def delete_workflow(self, workflow_id: str) -> bool:
        return self._workflows.pop(workflow_id, None) is not None

    async def execute_workflow(
        self,
        workflow_id: str,
        variables: dict[str, Any] | None = None,
        mode: ExecutionMode | str = ExecutionMode.FULL,
    ) -> WorkflowExecution:
        """Run a saved workflow by id."""
        workflow = self._workflows.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        return await self.execute(workflow, variables=variables, mode=mode)

    # Validation

    def validate_workflow(self, workflow: Workflow) -> ValidationResult:
        """Check a workflow definition without running it."""
        errors: list[str] = []

        if not workflow.name.strip():
            errors.append("Workflow name is required")
        if not workflow.nodes:
            errors.append("Workflow must contain at least one node")
        if len(workflow.nodes) > self._settings.max_nodes:
            errors.append(
                f"Workflow has {len(workflow.nodes)} nodes, maximum is {self._settings.max_nodes}"
            )

        counts = Counter(n.id for n in workflow.nodes)
        for node_id, count in counts.items():
            if count > 1:
                errors.append(f"Duplicate node id '{node_id}'")

        edge_counts = Counter(e.id for e in workflow.edges)
        for edge_id, count in edge_counts.items():
            if count > 1:
                errors.append(f"Duplicate edge id '{edge_id}'")

        for node in workflow.nodes:
            if not self._registry.has(node.type):
                errors.append(f"Node '{node.id}' has unknown type '{node.type}'")

        dangling = False
        for edge in workflow.edges:
            for end in (edge.source, edge.target):
                if end not in counts:
                    errors.append(f"Edge '{edge.id}' references unknown node '{end}'")
                    dangling = True

        if not dangling and self._has_cycle(workflow):
            errors.append("Workflow contains a cycle")
        elif workflow.nodes and not workflow.start_nodes():
            errors.append("Workflow has no start node")

        return ValidationResult(valid=not errors, errors=errors)

    def _has_cycle(self, workflow: Workflow) -> bool:
        adjacency: dict[str, list[str]] = {n.id: [] for n in workflow.nodes}
        for edge in workflow.edges:
            adjacency[edge.source].append(edge.target)

        visited: set[str] = set()
        rec_stack: set[str] = set()

        def dfs(node_id: str) -> bool:
            visited.add(node_id)
            rec_stack.add(node_id)

            for neighbor in adjacency[node_id]:
                if neighbor not in visited:
                    if dfs(neighbor):
                        return True
                elif neighbor in rec_stack:
                    return True

            rec_stack.remove(node_id)
            return False

        return any(dfs(n.id) for n in workflow.nodes if n.id not in visited)

    # Execution

    def execute_sync(
        self,
        workflow: Workflow,
        variables: dict[str, Any] | None = None,
        mode: ExecutionMode | str = ExecutionMode.FULL,
    ) -> WorkflowExecution:
        """Blocking wrapper around ``execute`` for scripts."""
        return asyncio.run(self.execute(workflow, variables=variables, mode=mode))

    async def execute(
        self,
        workflow: Workflow,
        variables: dict[str, Any] | None = None,
        mode: ExecutionMode | str = ExecutionMode.FULL,
    ) -> WorkflowExecution:
        """Run a workflow.

        Node failures do not raise; the first failing node stops the run
        and is reported on the returned execution.

        Raises:
            WorkflowValidationError: If the definition is invalid.
            NoStartNodeError: If no entry node can be determined.
        """
        mode = ExecutionMode(mode)
        validation = self.validate_workflow(workflow)
        if not validation.valid:
            raise WorkflowValidationError(validation.errors)

        starts = [n.id for n in workflow.start_nodes()]
        if not starts:
            raise NoStartNodeError(workflow.id)

        context = ExecutionContext(workflow_id=workflow.id, variables=dict(variables or {}))
        execution = WorkflowExecution(
            workflow_id=workflow.id,
            status=ExecutionStatus.RUNNING,
            mode=mode,
            context=context,
        )
        name = workflow.name or workflow.id
        self._logger.workflow_start(name, len(workflow.nodes))
        started = time.perf_counter()

        reachable = self._reachable(workflow, starts)
        # A start node fed by another start node waits for it like any other node.
        seeds = [
            s for s in starts
            if not any(e.source in reachable for e in workflow.incoming_edges(s))
        ]
        edge_active: dict[str, bool] = {}
        done: set[str] = set()
        queue = deque(seeds)
        failure: tuple[WorkflowNode, NodeResult] | None = None

        while queue:
            node_id = queue.popleft()
            if node_id in done:
                continue
            node = workflow.get_node(node_id)
            incoming = [e for e in workflow.incoming_edges(node_id) if e.source in reachable]
            outgoing = workflow.outgoing_edges(node_id)

            if node_id not in starts and not any(edge_active[e.id] for e in incoming):
                context.skipped.append(node_id)
                context.log(node_id, "skipped", "No active incoming branch")
                self._logger.node_skipped(node.display_name)
                for edge in outgoing:
                    edge_active[edge.id] = False
            else:
                node_input = self._node_input(incoming, edge_active, context)
                result = await self._run_node(node, context, node_input, mode)
                if not result.success:
                    failure = (node, result)
                    break
                for edge in outgoing:
                    edge_active[edge.id] = self._edge_active(node, result, edge)

            done.add(node_id)
            for edge in outgoing:
                target = edge.target
                if target in done or target in queue:
                    continue
                upstream = [e for e in workflow.incoming_edges(target) if e.source in reachable]
                if all(e.id in edge_active for e in upstream):
                    queue.append(target)

        duration_ms = int((time.perf_counter() - started) * 1000)
        execution.completed_at = utcnow()
        execution.duration_ms = duration_ms

        if failure:
            node, result = failure
            execution.status = ExecutionStatus.FAILED
            execution.failed_node = node.id
            execution.error = f"Node '{node.id}' failed: {result.error}"
            logger.info(
                f"Workflow {workflow.id} failed at node {node.id}",
                extra={"workflow_id": workflow.id, "node_id": node.id, "execution_id": execution.id},
            )
            self._logger.workflow_failed(name, node.display_name, duration_ms)
        else:
            execution.status = ExecutionStatus.COMPLETED
            execution.output = self._collect_output(workflow, context)
            self._logger.workflow_end(name, duration_ms, len(context.order))

        self._history.append(execution)
        return execution

    async def _run_node(
        self,
        node: WorkflowNode,
        context: ExecutionContext,
        node_input: Any,
        mode: ExecutionMode,
    ) -> NodeResult:
        executor = self._registry.get(node.type)
        run = executor.mock if mode == ExecutionMode.MOCK else executor.execute

        context.log(node.id, "start", f"Executing {node.display_name}")
        self._logger.node_start(node.display_name, node.type)
        started = time.perf_counter()

        timeout = self._get_node_timeout(node)
        try:
            result = await asyncio.wait_for(run(node, context, node_input), timeout=timeout)
        except asyncio.TimeoutError:
            result = NodeResult.fail(f"Timed out after {timeout}s")
        except Exception as e:
            logger.debug(f"Executor for node {node.id} raised", exc_info=True)
            result = NodeResult.fail(str(e) or type(e).__name__)

        duration_ms = int((time.perf_counter() - started) * 1000)
        result = result.model_copy(update={"duration_ms": duration_ms})
        context.record(node.id, result)

        if result.success:
            output_variable = node.config.get("output_variable")
            if output_variable:
                context.variables[output_variable] = result.data
            context.log(node.id, "success", f"Completed in {duration_ms}ms")
            self._logger.node_end(node.display_name, duration_ms)
        else:
            context.log(node.id, "error", result.error or "Unknown error")
            self._logger.node_error(node.display_name, result.error or "Unknown error")
        return result

    def _get_node_timeout(self, node: WorkflowNode) -> float:
        raw = node.config.get("timeout")
        try:
            timeout = float(raw) if raw is not None else 0.0
        except (TypeError, ValueError):
            timeout = 0.0
        if timeout > 0:
            return timeout
        # Without an explicit budget every api-call attempt gets the default.
        return self._settings.node_timeout * self._attempts(node)

    @staticmethod
    def _attempts(node: WorkflowNode) -> int:
        if node.type != NodeType.API_CALL.value:
            return 1
        try:
            return max(int(node.config.get("retries", 0)), 0) + 1
        except (TypeError, ValueError):
            return 1

    @staticmethod
    def _reachable(workflow: Workflow, starts: list[str]) -> set[str]:
        seen = set(starts)
        stack = list(starts)
        while stack:
            for target in workflow.successors(stack.pop()):
                if target not in seen:
                    seen.add(target)
                    stack.append(target)
        return seen

    @staticmethod
    def _node_input(
        incoming: list[WorkflowEdge],
        edge_active: dict[str, bool],
        context: ExecutionContext,
    ) -> Any:
        sources = list(dict.fromkeys(e.source for e in incoming if edge_active.get(e.id)))
        if not sources:
            return dict(context.variables)
        if len(sources) == 1:
            return context.data_of(sources[0])
        return {source: context.data_of(source) for source in sources}

    @staticmethod
    def _edge_active(node: WorkflowNode, result: NodeResult, edge: WorkflowEdge) -> bool:
        if node.type != NodeType.CONDITION.value or edge.branch is None:
            return True
        branch = result.data.get("branch") if isinstance(result.data, dict) else None
        return edge.branch == branch

    @staticmethod
    def _collect_output(workflow: Workflow, context: ExecutionContext) -> Any:
        ran_end = any(
            node.type == NodeType.END.value and node.id in context.results
            for node in workflow.nodes
        )
        if ran_end:
            return context.output

        sinks = [n.id for n in workflow.sink_nodes() if n.id in context.results]
        if not sinks:
            return None
        if len(sinks) == 1:
            return context.data_of(sinks[0])
        return {node_id: context.data_of(node_id) for node_id in sinks}


_engine: WorkflowEngine | None = None


def get_workflow_engine() -> WorkflowEngine:
    """Get the process-wide engine, creating it on first use."""
    global _engine
    if _engine is None:
        _engine = WorkflowEngine()
    return _engine
