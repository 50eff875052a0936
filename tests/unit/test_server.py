"""Unit tests for the HTTP API."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from aiworks.generators.workflow import WorkflowGenerator
from aiworks.llm.keys import ApiKeyValidator
from aiworks.server.app import create_app
from aiworks.workflow.store import JSONWorkflowStore
from tests.conftest import MockLLMProvider

GRAPH = {
    "nodes": [
        {"id": "start", "type": "start"},
        {"id": "shout", "type": "transform", "config": {"operation": "uppercase", "source": "text"}},
        {"id": "end", "type": "end"},
    ],
    "edges": [
        {"id": "e1", "source": "start", "target": "shout"},
        {"id": "e2", "source": "shout", "target": "end"},
    ],
}


def key_validator(valid: bool) -> ApiKeyValidator:
    provider = MagicMock()
    provider.validate_api_key = AsyncMock(return_value=valid)
    return ApiKeyValidator(provider_factory=lambda key: provider)


@pytest.fixture
def store(tmp_path) -> JSONWorkflowStore:
    return JSONWorkflowStore(tmp_path / "workflows")


@pytest.fixture
def client(settings, engine, store):
    app = create_app(
        settings,
        engine=engine,
        generator=WorkflowGenerator(),
        key_validator=key_validator(True),
        store=store,
    )
    with TestClient(app) as client:
        yield client


def create(client, name: str = "Shout", **extra) -> dict:
    response = client.post("/api/workflows", json={"name": name, **GRAPH, **extra})
    assert response.status_code == 201
    return response.json()


class TestHealth:
    def test_live(self, client) -> None:
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestWorkflowEndpoints:
    """Tests for /api/workflows."""

    def test_create_and_get(self, client, store) -> None:
        created = create(client)

        assert created["name"] == "Shout"
        assert len(created["nodes"]) == 3
        assert (store.base_dir / f"{created['id']}.json").exists()

        response = client.get(f"/api/workflows/{created['id']}")
        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    def test_create_keeps_given_id(self, client) -> None:
        created = create(client, id="daily-report")

        assert created["id"] == "daily-report"

    def test_create_rejects_unsafe_id(self, client) -> None:
        response = client.post("/api/workflows", json={"name": "x", "id": "../etc", **GRAPH})

        assert response.status_code == 400

    def test_create_requires_name(self, client) -> None:
        response = client.post("/api/workflows", json={"name": "", **GRAPH})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_canvas_node_shape(self, client) -> None:
        body = {
            "name": "Canvas",
            "nodes": [{"id": "n1", "type": "log", "data": {"label": "Say hi", "parameters": {"message": "hi"}}}],
            "edges": [],
        }

        created = client.post("/api/workflows", json=body).json()

        assert created["nodes"][0]["label"] == "Say hi"
        assert created["nodes"][0]["config"] == {"message": "hi"}

    def test_list(self, client) -> None:
        create(client, "First")
        create(client, "Second")

        names = [w["name"] for w in client.get("/api/workflows").json()]
        assert names == ["First", "Second"]

    def test_get_unknown(self, client) -> None:
        response = client.get("/api/workflows/missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "HTTP_404"

    def test_delete(self, client) -> None:
        created = create(client)

        assert client.delete(f"/api/workflows/{created['id']}").status_code == 204
        assert client.get(f"/api/workflows/{created['id']}").status_code == 404
        assert client.delete(f"/api/workflows/{created['id']}").status_code == 404

    def test_execute_saved(self, client) -> None:
        created = create(client)

        response = client.post(
            f"/api/workflows/{created['id']}/execute",
            json={"variables": {"text": "hello"}},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "completed"
        assert body["output"] == "HELLO"
        assert body["context"]["order"] == ["start", "shout", "end"]

    def test_execute_without_body(self, client) -> None:
        created = create(client)

        response = client.post(f"/api/workflows/{created['id']}/execute")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "completed"
        assert body["output"] is None

    def test_execute_loads_from_store(self, settings, engine, store) -> None:
        first = create_app(settings, engine=engine, generator=WorkflowGenerator(), store=store)
        with TestClient(first) as client:
            workflow_id = create(client)["id"]

        engine.delete_workflow(workflow_id)
        second = create_app(settings, engine=engine, generator=WorkflowGenerator(), store=store)
        with TestClient(second) as client:
            response = client.post(f"/api/workflows/{workflow_id}/execute", json={"variables": {"text": "x"}})

        assert response.json()["output"] == "X"

    def test_execute_adhoc(self, client) -> None:
        response = client.post("/api/workflows/execute", json={**GRAPH, "variables": {"text": "abc"}})

        assert response.status_code == 200
        assert response.json()["output"] == "ABC"

    def test_execute_adhoc_requires_graph(self, client) -> None:
        response = client.post("/api/workflows/execute", json={"nodes": []})

        assert response.status_code == 400

    def test_execute_invalid_graph(self, client) -> None:
        graph = {"nodes": [{"id": "a", "type": "teleport"}], "edges": []}

        response = client.post("/api/workflows/execute", json=graph)

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "INVALID_WORKFLOW"
        assert "Node 'a' has unknown type 'teleport'" in error["details"]

    def test_execute_mock_mode(self, client) -> None:
        graph = {
            "nodes": [
                {"id": "start", "type": "start"},
                {"id": "call", "type": "api-call", "config": {"url": "https://api.test/items"}},
            ],
            "edges": [{"source": "start", "target": "call"}],
            "mode": "mock",
        }

        body = client.post("/api/workflows/execute", json=graph).json()

        assert body["status"] == "completed"
        assert body["output"]["data"]["mock"] is True


class TestExecutionEndpoints:
    """Tests for /api/executions."""

    def test_history(self, client) -> None:
        created = create(client)
        first = client.post(f"/api/workflows/{created['id']}/execute", json={"variables": {"text": "a"}}).json()
        second = client.post("/api/workflows/execute", json={**GRAPH, "variables": {"text": "b"}}).json()

        listed = client.get("/api/executions").json()
        assert [e["id"] for e in listed] == [second["id"], first["id"]]

        filtered = client.get("/api/executions", params={"workflowId": created["id"]}).json()
        assert [e["id"] for e in filtered] == [first["id"]]

        assert len(client.get("/api/executions", params={"limit": 1}).json()) == 1

    def test_get_execution(self, client) -> None:
        run = client.post("/api/workflows/execute", json={**GRAPH, "variables": {"text": "a"}}).json()

        assert client.get(f"/api/executions/{run['id']}").json()["output"] == "A"
        assert client.get("/api/executions/missing").status_code == 404


class TestAIEndpoints:
    """Tests for generation and API key endpoints."""

    def test_generate_workflow_mock(self, client) -> None:
        response = client.post("/api/ai/generate-workflow", json={"prompt": "fetch data and log it"})

        assert response.status_code == 200
        types = [n["type"] for n in response.json()["nodes"]]
        assert types == ["start", "api-call", "log", "end"]

    def test_generate_workflow_requires_prompt(self, client) -> None:
        assert client.post("/api/ai/generate-workflow", json={"prompt": " "}).status_code == 400

    def test_generate_workflow_bad_llm_output(self, settings, engine) -> None:
        generator = WorkflowGenerator(provider=MockLLMProvider(response_content="no idea"))
        app = create_app(settings, engine=engine, generator=generator, store=None)

        with TestClient(app) as client:
            response = client.post("/api/ai/generate-workflow", json={"prompt": "anything"})

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "GENERATION_FAILED"

    def test_generate_code_all(self, client) -> None:
        response = client.post("/api/ai/generate-code", json={"name": "Shout", **GRAPH})

        assert response.status_code == 200
        assert set(response.json()) == {"javascript", "typescript", "python"}

    def test_generate_code_single_language(self, client) -> None:
        response = client.post("/api/ai/generate-code", json={**GRAPH, "language": "Python"})

        assert list(response.json()) == ["python"]

    def test_generate_code_errors(self, client) -> None:
        assert client.post("/api/ai/generate-code", json={"nodes": []}).status_code == 400
        assert client.post("/api/ai/generate-code", json={**GRAPH, "language": "cobol"}).status_code == 400

    def test_validate_api_key(self, client) -> None:
        response = client.post("/api/validate-api-key", json={"apiKey": "good"})

        assert response.status_code == 200
        assert response.json() == {"valid": True, "message": "API key is valid"}

    def test_validate_api_key_blank(self, client) -> None:
        response = client.post("/api/validate-api-key", json={"apiKey": ""})

        assert response.status_code == 400
        assert response.json()["valid"] is False

    def test_validate_api_key_rejected(self, settings, engine) -> None:
        app = create_app(settings, engine=engine, generator=WorkflowGenerator(), key_validator=key_validator(False))

        with TestClient(app) as client:
            response = client.post("/api/validate-api-key", json={"apiKey": "bad"})

        assert response.status_code == 401
        assert response.json() == {"valid": False, "message": "Invalid API key"}
