"""Workflow graph model, executors and engine."""

from aiworks.workflow.engine import WorkflowEngine, get_workflow_engine
from aiworks.workflow.executors import (
    BaseNodeExecutor,
    ExecutorRegistry,
    default_registry,
)
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
    create_edge,
    create_node,
    create_workflow,
)
from aiworks.workflow.store import JSONWorkflowStore
from aiworks.workflow.templates import resolve_path, resolve_template, resolve_value

__all__ = [
    "BaseNodeExecutor",
    "ExecutionContext",
    "ExecutionMode",
    "ExecutionStatus",
    "ExecutorRegistry",
    "JSONWorkflowStore",
    "NodeResult",
    "NodeType",
    "ValidationResult",
    "Workflow",
    "WorkflowEdge",
    "WorkflowEngine",
    "WorkflowExecution",
    "WorkflowNode",
    "create_edge",
    "create_node",
    "create_workflow",
    "default_registry",
    "get_workflow_engine",
    "resolve_path",
    "resolve_template",
    "resolve_value",
]
