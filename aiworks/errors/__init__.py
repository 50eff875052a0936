"""AIWorks error types."""

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

__all__ = [
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
