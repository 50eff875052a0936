"""Workflow graph and execution record types.

A workflow is a list of typed nodes connected by directed edges. The
execution types record what happened while the engine walked that graph.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


def generate_id() -> str:
    """Generate unique ID."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class NodeType(str, Enum):
    """Built-in node types."""

    START = "start"
    END = "end"
    API_CALL = "api-call"
    TRANSFORM = "transform"
    CONDITION = "condition"
    DELAY = "delay"
    LOG = "log"
    AI_GENERATE = "ai-generate"


class Position(BaseModel):
    """Canvas coordinates of a node."""

    x: float = 0.0
    y: float = 0.0


class WorkflowNode(BaseModel):
    """A step in the workflow graph."""

    id: str = Field(..., min_length=1, description="Unique node id")
    type: str = Field(..., description="Executor type, e.g. 'api-call'")
    label: str | None = Field(None, description="Human readable name")
    config: dict[str, Any] = Field(default_factory=dict, description="Node configuration")
    position: Position = Field(default_factory=Position)

    @model_validator(mode="before")
    @classmethod
    def _lift_canvas_data(cls, value: Any) -> Any:
        """Accept the canvas shape ``{"data": {"label", "parameters"}}``."""
        if not isinstance(value, dict) or "data" not in value:
            return value
        value = dict(value)
        data = value.pop("data") or {}
        value.setdefault("label", data.get("label"))
        if "config" not in value:
            value["config"] = data.get("config") or data.get("parameters") or {}
        return value

    @property
    def display_name(self) -> str:
        return self.label or self.type


class WorkflowEdge(BaseModel):
    """A directed connection between two nodes."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: f"edge-{generate_id()}")
    source: str
    target: str
    source_handle: str | None = Field(None, alias="sourceHandle")
    target_handle: str | None = Field(None, alias="targetHandle")
    condition: str | None = Field(None, description="Branch label for condition routing")

    @property
    def branch(self) -> str | None:
        """Branch label this edge is bound to, if any."""
        label = self.condition or self.source_handle
        return label.lower() if label else None


class Workflow(BaseModel):
    """Workflow definition."""

    id: str = Field(default_factory=generate_id)
    name: str = ""
    description: str = ""
    nodes: list[WorkflowNode] = Field(default_factory=list)
    edges: list[WorkflowEdge] = Field(default_factory=list)
    version: str = "1.0"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def get_node(self, node_id: str) -> WorkflowNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def incoming_edges(self, node_id: str) -> list[WorkflowEdge]:
        return [e for e in self.edges if e.target == node_id]

    def outgoing_edges(self, node_id: str) -> list[WorkflowEdge]:
        return [e for e in self.edges if e.source == node_id]

    def predecessors(self, node_id: str) -> list[str]:
        return [e.source for e in self.incoming_edges(node_id)]

    def successors(self, node_id: str) -> list[str]:
        return [e.target for e in self.outgoing_edges(node_id)]

    def start_nodes(self) -> list[WorkflowNode]:
        """Entry points: explicit start nodes, else nodes without inputs."""
        explicit = [n for n in self.nodes if n.type == NodeType.START.value]
        if explicit:
            return explicit
        targets = {e.target for e in self.edges}
        return [n for n in self.nodes if n.id not in targets]

    def sink_nodes(self) -> list[WorkflowNode]:
        """Nodes without outgoing edges."""
        sources = {e.source for e in self.edges}
        return [n for n in self.nodes if n.id not in sources]


class NodeResult(BaseModel):
    """Outcome of running one node."""

    success: bool
    data: Any = None
    error: str | None = None
    duration_ms: int | None = None

    @classmethod
    def ok(cls, data: Any = None) -> NodeResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> NodeResult:
        return cls(success=False, error=error)


class ExecutionLogEntry(BaseModel):
    """One line of the execution log."""

    timestamp: datetime = Field(default_factory=utcnow)
    node_id: str
    status: str  # "start", "success", "error", "skipped"
    message: str


class ExecutionContext(BaseModel):
    """Mutable record of variables and per-node results for one run."""

    workflow_id: str
    variables: dict[str, Any] = Field(default_factory=dict)
    results: dict[str, NodeResult] = Field(default_factory=dict)
    logs: list[ExecutionLogEntry] = Field(default_factory=list)
    order: list[str] = Field(default_factory=list, description="Node ids in execution order")
    skipped: list[str] = Field(default_factory=list)
    output: Any = None

    def record(self, node_id: str, result: NodeResult) -> None:
        self.results[node_id] = result
        self.order.append(node_id)

    def log(self, node_id: str, status: str, message: str) -> None:
        self.logs.append(ExecutionLogEntry(node_id=node_id, status=status, message=message))

    def data_of(self, node_id: str) -> Any:
        result = self.results.get(node_id)
        return result.data if result and result.success else None

    def namespace(self) -> dict[str, Any]:
        """Names visible to templates: variables, then node outputs by id."""
        ns: dict[str, Any] = dict(self.variables)
        ns["variables"] = self.variables
        for node_id, result in self.results.items():
            if result.success:
                ns[node_id] = result.data
        return ns


class ExecutionStatus(str, Enum):
    """Workflow execution status."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ExecutionMode(str, Enum):
    """Whether network and LLM side effects really happen."""

    FULL = "full"
    MOCK = "mock"


class WorkflowExecution(BaseModel):
    """Result of one workflow run."""

    id: str = Field(default_factory=generate_id)
    workflow_id: str
    status: ExecutionStatus = ExecutionStatus.PENDING
    mode: ExecutionMode = ExecutionMode.FULL
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None
    duration_ms: int | None = None
    output: Any = None
    error: str | None = None
    failed_node: str | None = None
    context: ExecutionContext

    @property
    def is_success(self) -> bool:
        return self.status == ExecutionStatus.COMPLETED

    @property
    def node_results(self) -> dict[str, NodeResult]:
        return self.context.results


class ValidationResult(BaseModel):
    """Outcome of validating a workflow definition."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


def create_workflow(
    name: str,
    description: str = "",
    nodes: list[WorkflowNode] | None = None,
    edges: list[WorkflowEdge] | None = None,
) -> Workflow:
    """Create a workflow with a fresh id and timestamps."""
    return Workflow(
        name=name,
        description=description,
        nodes=nodes or [],
        edges=edges or [],
    )


def create_node(
    type: str | NodeType,
    config: dict[str, Any] | None = None,
    label: str | None = None,
    position: tuple[float, float] = (0.0, 0.0),
    node_id: str | None = None,
) -> WorkflowNode:
    """Create a node with a generated id."""
    return WorkflowNode(
        id=node_id or generate_id(),
        type=type.value if isinstance(type, NodeType) else type,
        label=label,
        config=config or {},
        position=Position(x=position[0], y=position[1]),
    )


def create_edge(
    source: str,
    target: str,
    source_handle: str | None = None,
    target_handle: str | None = None,
    condition: str | None = None,
) -> WorkflowEdge:
    """Create an edge with a generated ``edge-`` id."""
    return WorkflowEdge(
        source=source,
        target=target,
        source_handle=source_handle,
        target_handle=target_handle,
        condition=condition,
    )
