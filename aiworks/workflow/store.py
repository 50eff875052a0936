"""JSON file-based workflow storage."""

from __future__ import annotations

import asyncio
from pathlib import Path

from aiworks.workflow.models import Workflow, utcnow


class JSONWorkflowStore:
    """Stores each workflow as ``<base_dir>/<workflow_id>.json``.

    Example:
        >>> store = JSONWorkflowStore("./workflows")
        >>> await store.save(workflow)
        >>> loaded = await store.load(workflow.id)
    """

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir)
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _get_lock(self, workflow_id: str) -> asyncio.Lock:
        if workflow_id not in self._locks:
            self._locks[workflow_id] = asyncio.Lock()
        return self._locks[workflow_id]

    @staticmethod
    def _validate_id(workflow_id: str) -> None:
        """Reject ids that could escape the storage directory."""
        if not workflow_id or ".." in workflow_id or "/" in workflow_id or "\\" in workflow_id:
            raise ValueError(f"Invalid workflow id: {workflow_id!r}")

    def _path(self, workflow_id: str) -> Path:
        self._validate_id(workflow_id)
        path = self._base_dir / f"{workflow_id}.json"
        if not str(path.resolve()).startswith(str(self._base_dir.resolve())):
            raise ValueError(f"Invalid workflow id: {workflow_id!r}")
        return path

    async def save(self, workflow: Workflow) -> Workflow:
        """Write a workflow, replacing any earlier version."""
        path = self._path(workflow.id)
        async with self._get_lock(workflow.id):
            if path.exists():
                workflow = workflow.model_copy(update={"updated_at": utcnow()})
            payload = workflow.model_dump_json(indent=2)

            def _write_file() -> None:
                self._base_dir.mkdir(parents=True, exist_ok=True)
                path.write_text(payload, encoding="utf-8")

            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, _write_file)
        return workflow

    async def load(self, workflow_id: str) -> Workflow | None:
        """Read a workflow, or None when it was never saved."""
        path = self._path(workflow_id)
        async with self._get_lock(workflow_id):
            if not path.exists():
                return None

            def _read_file() -> Workflow:
                return Workflow.model_validate_json(path.read_text(encoding="utf-8"))

            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, _read_file)

    async def list(self) -> list[Workflow]:
        """All stored workflows, ordered by creation time."""
        if not self._base_dir.exists():
            return []

        def _read_all() -> list[Workflow]:
            return [
                Workflow.model_validate_json(p.read_text(encoding="utf-8"))
                for p in sorted(self._base_dir.glob("*.json"))
            ]

        loop = asyncio.get_running_loop()
        workflows = await loop.run_in_executor(None, _read_all)
        return sorted(workflows, key=lambda w: w.created_at)

    async def delete(self, workflow_id: str) -> bool:
        """Remove a workflow file. Returns False when it did not exist."""
        path = self._path(workflow_id)
        async with self._get_lock(workflow_id):
            if not path.exists():
                return False
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, path.unlink)
            return True
