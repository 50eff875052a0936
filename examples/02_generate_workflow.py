#!/usr/bin/env python3
"""Design a workflow from a prompt and print code scaffolds for it.

Uses Gemini when a key is configured, otherwise the keyword-based mock
designer.

Run:
    python examples/02_generate_workflow.py "Fetch the weather and summarize it"
"""

from __future__ import annotations

import asyncio
import sys

from rich.console import Console
from rich.syntax import Syntax

from aiworks import GeminiProvider, WorkflowGenerator, generate_code, get_settings

console = Console()


async def main(prompt: str) -> None:
    settings = get_settings()
    provider = GeminiProvider.from_settings(settings)
    workflow = await WorkflowGenerator(provider).generate(prompt)

    console.rule(workflow.name)
    for node in workflow.nodes:
        console.print(f"  {node.id:<8} [cyan]{node.type}[/] {node.config}")

    console.rule("python")
    console.print(Syntax(generate_code(workflow, "python"), "python"))


if __name__ == "__main__":
    asyncio.run(main(" ".join(sys.argv[1:]) or "Fetch the weather and summarize it"))
