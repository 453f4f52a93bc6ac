# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

import asyncio
from typing import AsyncIterator, Awaitable, Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from coreason_cookbook.config import CookbookConfig
from coreason_cookbook.factory import ServiceFactory
from coreason_cookbook.models import File, PipelineFailure, PipelineResult, ProgressState
from coreason_cookbook.pipeline import GenerationPipeline
from coreason_cookbook.progress import ProgressRegistry, generate_session_id
from coreason_cookbook.sse import KEEPALIVE, SSE_HEADERS, connected_event, progress_event
from coreason_cookbook.utils.logger import logger


class GenerateRequest(BaseModel):
    """Payload to generate a new application or edit an existing one."""

    description: str = ""
    existing_files: list[File] | None = None
    edit_instruction: str | None = None
    use_fixer: bool = False
    use_buggy_code: bool = False
    session_id: str | None = None
    existing_sandbox_id: str | None = None


class FixRequest(BaseModel):
    """Payload to repair files with the code fixer and preview the result."""

    files: list[File] = Field(min_length=1)
    session_id: str | None = None
    existing_sandbox_id: str | None = None


async def progress_events(
    registry: ProgressRegistry,
    session_id: str,
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive: float = 15.0,
) -> AsyncIterator[str]:
    """Stream a session's progress as server-sent events until the client leaves.

    The first event announces the connection. The session's current state
    follows when it exists, then every update. A comment line is sent after
    ``keepalive`` quiet seconds so proxies keep the connection open.
    """
    queue: asyncio.Queue[ProgressState] = asyncio.Queue()
    unsubscribe = registry.subscribe(session_id, queue.put_nowait)
    logger.info(f"SSE connection opened for session {session_id}")
    try:
        yield connected_event(session_id)
        while not await is_disconnected():
            try:
                state = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield KEEPALIVE
                continue
            yield progress_event(state)
    finally:
        unsubscribe()
        logger.info(f"SSE connection closed for session {session_id}")


def _respond(result: PipelineResult | PipelineFailure) -> JSONResponse:
    if isinstance(result, PipelineFailure):
        return JSONResponse(status_code=500, content=result.model_dump(mode="json"))
    return JSONResponse(content=result.model_dump(mode="json"))


def create_app(
    pipeline: GenerationPipeline | None = None,
    registry: ProgressRegistry | None = None,
    config: CookbookConfig | None = None,
) -> FastAPI:
    """Build the HTTP surface of the pipeline.

    Args:
        pipeline: Pipeline to serve. Built from configuration on first use
            when omitted.
        registry: Progress registry shared by the pipeline and the progress
            stream. Taken from ``pipeline`` when omitted.
        config: Configuration for a lazily built pipeline and the stream.

    Returns:
        FastAPI: The application.
    """
    settings = config or CookbookConfig()
    shared_registry = registry or (pipeline.registry if pipeline else ServiceFactory.get_registry(settings))

    app = FastAPI(title="coreason-cookbook")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.config = settings
    app.state.registry = shared_registry
    app.state.pipeline = pipeline

    def get_pipeline() -> GenerationPipeline:
        if app.state.pipeline is None:
            app.state.pipeline = ServiceFactory.get_pipeline(settings, registry=shared_registry)
        return app.state.pipeline

    @app.post("/api/sessions")
    async def create_session() -> dict[str, str]:
        return {"session_id": generate_session_id()}

    @app.post("/api/generate")
    async def generate(payload: GenerateRequest) -> JSONResponse:
        logger.info(
            f"Generate request: edit={bool(payload.existing_files and payload.edit_instruction)}, "
            f"files={len(payload.existing_files or [])}, fixer={payload.use_fixer}, buggy={payload.use_buggy_code}"
        )
        result = await get_pipeline().run_pipeline(
            payload.description,
            payload.existing_files,
            payload.edit_instruction,
            use_fixer=payload.use_fixer,
            use_buggy_code=payload.use_buggy_code,
            session_id=payload.session_id,
            existing_sandbox_id=payload.existing_sandbox_id,
        )
        return _respond(result)

    @app.post("/api/fix")
    async def fix(payload: FixRequest) -> JSONResponse:
        logger.info(f"Fix request: files={len(payload.files)}")
        result = await get_pipeline().run_fixer(
            payload.files,
            session_id=payload.session_id,
            existing_sandbox_id=payload.existing_sandbox_id,
        )
        return _respond(result)

    @app.get("/api/progress/{session_id}")
    async def progress(session_id: str, request: Request) -> StreamingResponse:
        events = progress_events(
            shared_registry,
            session_id,
            request.is_disconnected,
            keepalive=settings.stream_keepalive_seconds,
        )
        return StreamingResponse(events, media_type="text/event-stream", headers=SSE_HEADERS)

    return app


app = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
