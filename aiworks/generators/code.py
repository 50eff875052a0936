"""Source code scaffolds generated from a workflow graph.

The output is illustrative: one function per node, called in topological
order. Nothing is compiled or checked.
"""

from __future__ import annotations

import json
import re
from collections import deque

from aiworks.workflow.models import Workflow, WorkflowNode

LANGUAGES = ("javascript", "typescript", "python")


def topological_order(workflow: Workflow) -> list[WorkflowNode]:
    """Kahn's algorithm; nodes left over by a cycle are appended in definition order."""
    in_degree = {n.id: 0 for n in workflow.nodes}
    for edge in workflow.edges:
        if edge.target in in_degree:
            in_degree[edge.target] += 1

    queue = deque(n.id for n in workflow.nodes if in_degree[n.id] == 0)
    ordered: list[str] = []
    while queue:
        node_id = queue.popleft()
        ordered.append(node_id)
        for target in workflow.successors(node_id):
            if target in in_degree:
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    queue.append(target)

    seen = set(ordered)
    ordered.extend(n.id for n in workflow.nodes if n.id not in seen)
    return [workflow.get_node(node_id) for node_id in ordered]


def _identifier(node: WorkflowNode, index: int) -> str:
    name = re.sub(r"\W+", "_", node.label or node.type).strip("_").lower()
    if not name or name[0].isdigit():
        name = f"step_{name}" if name else "step"
    return f"{name}_{index}"


def _camel(identifier: str) -> str:
    head, *rest = identifier.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _python(workflow: Workflow) -> str:
    nodes = topological_order(workflow)
    lines = [
        f'"""{workflow.name or "Workflow"} - generated scaffold."""',
        "",
        "import asyncio",
        "",
    ]
    names = []
    for index, node in enumerate(nodes, 1):
        name = _identifier(node, index)
        names.append(name)
        lines += [
            "",
            f"async def {name}(data):",
            f'    """{node.display_name} ({node.type})."""',
            f"    config = {node.config!r}",
            f"    # {node.type} step",
            "    return data",
            "",
        ]
    lines += ["", "async def main(variables=None):", "    data = variables or {}"]
    lines += [f"    data = await {name}(data)" for name in names]
    lines += [
        "    return data",
        "",
        "",
        'if __name__ == "__main__":',
        "    print(asyncio.run(main()))",
        "",
    ]
    return "\n".join(lines)


def _script(workflow: Workflow, typed: bool) -> str:
    nodes = topological_order(workflow)
    data_type = ": Record<string, unknown>" if typed else ""
    returns = ": Promise<Record<string, unknown>>" if typed else ""
    lines = [f"// {workflow.name or 'Workflow'} - generated scaffold", ""]
    names = []
    for index, node in enumerate(nodes, 1):
        name = _camel(_identifier(node, index))
        names.append(name)
        config = json.dumps(node.config, ensure_ascii=False)
        lines += [
            f"// {node.display_name} ({node.type})",
            f"async function {name}(data{data_type}){returns} {{",
            f"  const config = {config};",
            f"  // {node.type} step",
            "  return data;",
            "}",
            "",
        ]
    lines += [f"export async function main(variables{data_type} = {{}}){returns} {{"]
    lines += ["  let data = variables;"]
    lines += [f"  data = await {name}(data);" for name in names]
    lines += ["  return data;", "}", ""]
    return "\n".join(lines)


def generate_code(workflow: Workflow, language: str) -> str:
    """Render a scaffold for one language.

    Raises:
        ValueError: If the language is not supported.
    """
    language = language.lower()
    if language == "python":
        return _python(workflow)
    if language == "javascript":
        return _script(workflow, typed=False)
    if language == "typescript":
        return _script(workflow, typed=True)
    raise ValueError(f"Unsupported language '{language}'. Choose from: {', '.join(LANGUAGES)}")


def generate_all(workflow: Workflow) -> dict[str, str]:
    """Scaffolds for every supported language, keyed by language."""
    return {language: generate_code(workflow, language) for language in LANGUAGES}
