#!/usr/bin/env python3
"""AIWorks Demo - API Key Free Example

Builds a small workflow in code, runs it in mock mode and prints the
per-node results. No network access or API key is needed.

Run:
    python examples/00_demo.py
"""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from aiworks import (
    ExecutionMode,
    WorkflowEngine,
    create_edge,
    create_node,
    create_workflow,
)

console = Console()


def build_workflow():
    nodes = [
        create_node("start", node_id="start", label="Start"),
        create_node(
            "api-call",
            {
                "url": "https://api.example.com/orders",
                "mock_response": {"status_code": 200, "data": {"orders": [12, 0, 40]}},
            },
            node_id="fetch",
            label="Fetch orders",
        ),
        create_node(
            "condition",
            {"expression": "len(input['data']['orders']) > 0"},
            node_id="has_orders",
            label="Any orders?",
        ),
        create_node(
            "ai-generate",
            {"prompt": "Write a one-line report for {{customer}} about: {input}"},
            node_id="report",
            label="Write report",
        ),
        create_node("log", {"message": "No orders for {{customer}}"}, node_id="empty", label="Nothing to do"),
        create_node("end", node_id="end", label="End"),
    ]
    edges = [
        create_edge("start", "fetch"),
        create_edge("fetch", "has_orders"),
        create_edge("has_orders", "report", condition="true"),
        create_edge("has_orders", "empty", condition="false"),
        create_edge("report", "end"),
        create_edge("empty", "end"),
    ]
    return create_workflow("Order report", nodes=nodes, edges=edges)


def main() -> None:
    engine = WorkflowEngine()
    workflow = build_workflow()

    execution = engine.execute_sync(workflow, variables={"customer": "ACME"}, mode=ExecutionMode.MOCK)

    table = Table(title=f"{workflow.name} ({execution.status.value})")
    table.add_column("Node")
    table.add_column("Result")
    table.add_column("ms", justify="right")
    for node_id in execution.context.order:
        result = execution.node_results[node_id]
        table.add_row(node_id, str(result.data)[:80], str(result.duration_ms))
    for node_id in execution.context.skipped:
        table.add_row(node_id, "[dim]skipped[/]", "-")

    console.print(table)
    console.print(f"\n[bold]Output:[/] {execution.output}")


if __name__ == "__main__":
    main()
