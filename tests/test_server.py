# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from coreason_cookbook.models import File, PipelineFailure, PipelineResult, StepDefinition
from coreason_cookbook.pipeline import GenerationPipeline
from coreason_cookbook.progress import ProgressRegistry
from coreason_cookbook.server import create_app, progress_events
from coreason_cookbook.sse import KEEPALIVE, SSE_HEADERS

STEPS = [StepDefinition(id="one", label="One", description="first")]

RESULT = PipelineResult(
    original_files=[File(path="src/App.tsx", content="a")],
    repaired_files=[File(path="src/App.tsx", content="a")],
    build_output="Sandbox created with template: vite-support, ID: sbx-1",
    preview_url="https://5173-sbx-1.e2b.app",
    sandbox_id="sbx-1",
    session_id="s1",
)


@pytest.fixture
def mock_pipeline() -> MagicMock:
    pipeline = MagicMock(spec=GenerationPipeline)
    pipeline.run_pipeline = AsyncMock(return_value=RESULT)
    pipeline.run_fixer = AsyncMock(return_value=RESULT)
    return pipeline


@pytest.fixture
def client(mock_pipeline: MagicMock, registry: ProgressRegistry) -> TestClient:
    return TestClient(create_app(pipeline=mock_pipeline, registry=registry))


def _parse(event: str) -> dict[str, object]:
    assert event.startswith("data: ") and event.endswith("\n\n")
    return json.loads(event[len("data: ") :])


def test_create_session(client: TestClient) -> None:
    first = client.post("/api/sessions").json()["session_id"]
    second = client.post("/api/sessions").json()["session_id"]

    assert first and first != second


def test_generate(client: TestClient, mock_pipeline: MagicMock) -> None:
    response = client.post(
        "/api/generate",
        json={"description": "a red button", "use_fixer": True, "session_id": "s1"},
    )

    assert response.status_code == 200
    assert response.json()["preview_url"] == "https://5173-sbx-1.e2b.app"
    args = mock_pipeline.run_pipeline.call_args
    assert args.args == ("a red button", None, None)
    assert args.kwargs["use_fixer"] is True
    assert args.kwargs["session_id"] == "s1"


def test_generate_edit_accepts_contents_key(client: TestClient, mock_pipeline: MagicMock) -> None:
    client.post(
        "/api/generate",
        json={
            "existing_files": [{"path": "a", "contents": "old"}],
            "edit_instruction": "add b",
            "existing_sandbox_id": "sbx-1",
        },
    )

    args = mock_pipeline.run_pipeline.call_args
    assert args.args[1] == [File(path="a", content="old")]
    assert args.kwargs["existing_sandbox_id"] == "sbx-1"


def test_generate_failure(client: TestClient, mock_pipeline: MagicMock) -> None:
    mock_pipeline.run_pipeline.return_value = PipelineFailure(
        error="Failed to generate app", message="boom", session_id="s1"
    )

    response = client.post("/api/generate", json={"description": "x"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate app", "message": "boom", "session_id": "s1"}


def test_fix(client: TestClient, mock_pipeline: MagicMock) -> None:
    response = client.post("/api/fix", json={"files": [{"path": "a", "content": "b"}]})

    assert response.status_code == 200
    mock_pipeline.run_fixer.assert_awaited_once()


def test_fix_failure(client: TestClient, mock_pipeline: MagicMock) -> None:
    mock_pipeline.run_fixer.return_value = PipelineFailure(error="Failed to run Benchify fixer", message="down")

    response = client.post("/api/fix", json={"files": [{"path": "a", "content": "b"}]})

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to run Benchify fixer"


def test_fix_requires_files(client: TestClient) -> None:
    assert client.post("/api/fix", json={"files": []}).status_code == 422


@pytest.mark.asyncio
async def test_progress_events_stream(registry: ProgressRegistry) -> None:
    tracker = registry.tracker("s1", STEPS)
    disconnected = [False]

    async def is_disconnected() -> bool:
        return disconnected[0]

    stream = progress_events(registry, "s1", is_disconnected, keepalive=1.0)

    assert _parse(await stream.__anext__()) == {"type": "connected", "sessionId": "s1"}

    initial = _parse(await stream.__anext__())
    assert initial["type"] == "progress"
    assert initial["data"]["steps"][0]["status"] == "pending"  # type: ignore[index]

    tracker.start_step("one")
    update = _parse(await stream.__anext__())
    assert update["data"]["steps"][0]["status"] == "in-progress"  # type: ignore[index]
    assert registry.subscriber_count("s1") == 1

    disconnected[0] = True
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()
    assert registry.subscriber_count("s1") == 0


@pytest.mark.asyncio
async def test_progress_events_keepalive(registry: ProgressRegistry) -> None:
    async def is_disconnected() -> bool:
        return False

    stream = progress_events(registry, "quiet", is_disconnected, keepalive=0.01)

    await stream.__anext__()
    assert await stream.__anext__() == KEEPALIVE

    await stream.aclose()
    assert registry.subscriber_count("quiet") == 0


def test_sse_headers() -> None:
    assert SSE_HEADERS["Content-Type"] == "text/event-stream"
    assert SSE_HEADERS["Cache-Control"] == "no-cache"
