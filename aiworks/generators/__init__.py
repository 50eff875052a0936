"""Code scaffolds and workflow generation."""

from aiworks.generators.code import LANGUAGES, generate_all, generate_code, topological_order
from aiworks.generators.workflow import WorkflowGenerator, extract_json

__all__ = [
    "LANGUAGES",
    "WorkflowGenerator",
    "extract_json",
    "generate_all",
    "generate_code",
    "topological_order",
]
