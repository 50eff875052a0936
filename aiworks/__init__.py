"""AIWorks - Workflow automation with LLM nodes.

AIWorks runs workflow graphs of typed nodes (HTTP calls, transforms,
conditions, delays, logging and LLM generation) and can design those
graphs from a plain-language prompt.

Example:
    >>> from aiworks import WorkflowEngine, create_workflow, create_node, create_edge
    >>> start = create_node("start", node_id="start")
    >>> shout = create_node("transform", {"operation": "uppercase", "source": "text"}, node_id="shout")
    >>> workflow = create_workflow("Shout", nodes=[start, shout], edges=[create_edge("start", "shout")])
    >>> execution = WorkflowEngine().execute_sync(workflow, variables={"text": "hi"})
    >>> execution.output
    'HI'
"""

__version__ = "0.1.0"

from aiworks.chat import ChatSession
from aiworks.config import Settings, get_settings
from aiworks.core.types import LLMResponse, Message, MessageRole, StreamChunk, Usage

from aiworks.errors.exceptions import (
    AIWorksError,
    APIError,
    AuthenticationError,
    ConfigurationError,
    ExecutorNotFoundError,
    LLMError,
    MissingAPIKeyError,
    NodeExecutionError,
    NoStartNodeError,
    RateLimitError,
    TimeoutError,
    WorkflowError,
    WorkflowGenerationError,
    WorkflowNotFoundError,
    WorkflowValidationError,
)

from aiworks.generators import WorkflowGenerator, generate_all, generate_code
from aiworks.llm import ApiKeyValidator, BaseLLMProvider, GeminiProvider
from aiworks.resilience import RetryPolicy, RetryStrategy

from aiworks.workflow import (
    BaseNodeExecutor,
    ExecutionContext,
    ExecutionMode,
    ExecutionStatus,
    ExecutorRegistry,
    JSONWorkflowStore,
    NodeResult,
    NodeType,
    Workflow,
    WorkflowEdge,
    WorkflowEngine,
    WorkflowExecution,
    WorkflowNode,
    create_edge,
    create_node,
    create_workflow,
    get_workflow_engine,
)

__all__ = [
    "__version__",
    # Workflow
    "BaseNodeExecutor",
    "ExecutionContext",
    "ExecutionMode",
    "ExecutionStatus",
    "ExecutorRegistry",
    "JSONWorkflowStore",
    "NodeResult",
    "NodeType",
    "Workflow",
    "WorkflowEdge",
    "WorkflowEngine",
    "WorkflowExecution",
    "WorkflowNode",
    "create_edge",
    "create_node",
    "create_workflow",
    "get_workflow_engine",
    # Generators
    "WorkflowGenerator",
    "generate_all",
    "generate_code",
    # LLM
    "ApiKeyValidator",
    "BaseLLMProvider",
    "ChatSession",
    "GeminiProvider",
    "LLMResponse",
    "Message",
    "MessageRole",
    "StreamChunk",
    "Usage",
    # Config
    "Settings",
    "get_settings",
    "RetryPolicy",
    "RetryStrategy",
    # Errors
    "AIWorksError",
    "APIError",
    "AuthenticationError",
    "ConfigurationError",
    "ExecutorNotFoundError",
    "LLMError",
    "MissingAPIKeyError",
    "NodeExecutionError",
    "NoStartNodeError",
    "RateLimitError",
    "TimeoutError",
    "WorkflowError",
    "WorkflowGenerationError",
    "WorkflowNotFoundError",
    "WorkflowValidationError",
]
