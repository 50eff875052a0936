"""AIWorks exception hierarchy.

All exceptions inherit from AIWorksError for easy catching.
Each exception includes a `retryable` flag to indicate if the operation can be retried.
"""

from __future__ import annotations


class AIWorksError(Exception):
    """Base exception for all AIWorks errors."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


# Configuration Errors
class ConfigurationError(AIWorksError):
    """Configuration-related errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=False)


class MissingAPIKeyError(ConfigurationError):
    """API key is missing or not configured."""

    def __init__(self, provider: str) -> None:
        super().__init__(
            f"API key for '{provider}' is not configured. "
            f"Set the AIWORKS_GEMINI_API_KEY or GOOGLE_API_KEY environment variable."
        )
        self.provider = provider


# LLM Errors
class LLMError(AIWorksError):
    """Base class for LLM-related errors."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        model: str | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message, retryable=retryable)
        self.provider = provider
        self.model = model


class RateLimitError(LLMError):
    """Rate limit exceeded. Can be retried after backoff."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        model: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, provider=provider, model=model, retryable=True)
        self.retry_after = retry_after


class AuthenticationError(LLMError):
    """Authentication failed. Cannot be retried without fixing credentials."""

    def __init__(self, message: str, *, provider: str) -> None:
        super().__init__(message, provider=provider, retryable=False)


class APIError(LLMError):
    """General API error. May be retried."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        model: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, provider=provider, model=model, retryable=True)
        self.status_code = status_code


class TimeoutError(LLMError):
    """Request timed out. Can be retried."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        model: str | None = None,
        timeout_seconds: float,
    ) -> None:
        super().__init__(message, provider=provider, model=model, retryable=True)
        self.timeout_seconds = timeout_seconds


# Workflow Errors
class WorkflowError(AIWorksError):
    """Base class for Workflow-related errors."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message, retryable=retryable)


class WorkflowNotFoundError(WorkflowError):
    """Workflow id is not registered with the engine."""

    def __init__(self, workflow_id: str) -> None:
        super().__init__(f"Workflow {workflow_id} not found", retryable=False)
        self.workflow_id = workflow_id


class WorkflowValidationError(WorkflowError):
    """Workflow definition failed validation."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__(
            "Invalid workflow: " + "; ".join(errors),
            retryable=False,
        )
        self.errors = errors


class NoStartNodeError(WorkflowError):
    """No node qualifies as the entry point of the graph."""

    def __init__(self, workflow_id: str) -> None:
        super().__init__(
            f"Workflow {workflow_id} has no start node",
            retryable=False,
        )
        self.workflow_id = workflow_id


class ExecutorNotFoundError(WorkflowError):
    """No executor is registered for a node type."""

    def __init__(self, node_type: str, available: list[str]) -> None:
        super().__init__(
            f"No executor registered for node type '{node_type}'. "
            f"Available types: {', '.join(available)}",
            retryable=False,
        )
        self.node_type = node_type
        self.available = available


class NodeExecutionError(WorkflowError):
    """Error raised by an executor while running a node."""

    def __init__(self, message: str, *, node_id: str | None = None) -> None:
        super().__init__(message, retryable=False)
        self.node_id = node_id


class WorkflowGenerationError(WorkflowError):
    """LLM output could not be turned into a workflow."""

    def __init__(self, message: str, *, raw_output: str | None = None) -> None:
        super().__init__(message, retryable=True)
        self.raw_output = raw_output
