#!/usr/bin/env python3
"""Run a workflow saved as JSON.

Loads a workflow from a directory of ``<id>.json`` files and executes it
for real: API calls hit the network and ``ai-generate`` nodes call
Gemini when a key is configured.

Setup:
    export AIWORKS_GEMINI_API_KEY="your-key"   # optional

Run:
    python examples/01_run_workflow.py ./workflows my-workflow-id
"""

from __future__ import annotations

import asyncio
import sys

from rich.console import Console

from aiworks import GeminiProvider, JSONWorkflowStore, WorkflowEngine, get_settings
from aiworks.logging import configure_logging

console = Console()


async def main(directory: str, workflow_id: str) -> int:
    settings = get_settings()
    configure_logging(level="debug")

    workflow = await JSONWorkflowStore(directory).load(workflow_id)
    if workflow is None:
        console.print(f"[red]No workflow '{workflow_id}' in {directory}[/]")
        return 1

    provider = GeminiProvider.from_settings(settings)
    engine = WorkflowEngine(provider=provider, settings=settings)
    execution = await engine.execute(workflow)

    if not execution.is_success:
        console.print(f"[red]{execution.error}[/]")
        return 1
    console.print_json(data=execution.output)
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 3:
        console.print("usage: 01_run_workflow.py <directory> <workflow-id>")
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1], sys.argv[2])))
