# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

from typing import Any

from mcp.server.fastmcp import FastMCP
from mcp.types import TextContent

from coreason_cookbook.config import CookbookConfig
from coreason_cookbook.factory import ServiceFactory
from coreason_cookbook.models import File, PipelineFailure, PipelineResult
from coreason_cookbook.pipeline import GenerationPipeline
from coreason_cookbook.utils.logger import logger

_pipeline: GenerationPipeline | None = None

# Initialize MCP Server
mcp = FastMCP("coreason-cookbook")


def get_pipeline() -> GenerationPipeline:
    """Build the pipeline from configuration on first use."""
    global _pipeline
    if _pipeline is None:
        _pipeline = ServiceFactory.get_pipeline(CookbookConfig())
    return _pipeline


def summarize(result: PipelineResult | PipelineFailure) -> list[TextContent]:
    """Render a pipeline outcome as MCP text blocks."""
    if isinstance(result, PipelineFailure):
        return [TextContent(type="text", text=f"{result.error}: {result.message}")]

    output = [
        TextContent(type="text", text=result.build_output),
        TextContent(type="text", text=f"Preview URL: {result.preview_url}"),
        TextContent(type="text", text=f"Sandbox ID: {result.sandbox_id}"),
        TextContent(type="text", text=f"Session ID: {result.session_id}"),
    ]

    if result.build_errors:
        lines = []
        for error in result.build_errors:
            location = f" ({error.file}:{error.line})" if error.file else ""
            lines.append(f"- [{error.kind}] {error.message}{location}")
        output.append(TextContent(type="text", text="Build errors:\n" + "\n".join(lines)))

    files = "\n".join(f"- {file.path}" for file in result.repaired_files)
    output.append(TextContent(type="text", text=f"Files:\n{files}"))
    return output


def _to_files(files: list[dict[str, Any]]) -> list[File]:
    return [File.model_validate(file) for file in files]


@mcp.tool()  # type: ignore[misc]
async def generate_app(description: str, use_fixer: bool = False, session_id: str | None = None) -> list[TextContent]:
    """
    Generate a React application from a description and run it in a sandbox.
    Returns the preview URL, sandbox id and any build errors.
    """
    try:
        result = await get_pipeline().run_pipeline(description, use_fixer=use_fixer, session_id=session_id)
    except Exception as e:
        logger.error(f"generate_app failed: {e}")
        return [TextContent(type="text", text=f"Error generating app: {e!s}")]
    return summarize(result)


@mcp.tool()  # type: ignore[misc]
async def edit_app(
    files: list[dict[str, Any]],
    instruction: str,
    sandbox_id: str | None = None,
    use_fixer: bool = False,
) -> list[TextContent]:
    """
    Apply an edit instruction to an existing application.
    Each file is an object with "path" and "content". When sandbox_id is
    given the running sandbox is updated in place.
    """
    try:
        result = await get_pipeline().run_pipeline(
            "",
            _to_files(files),
            instruction,
            use_fixer=use_fixer,
            existing_sandbox_id=sandbox_id,
        )
    except Exception as e:
        logger.error(f"edit_app failed: {e}")
        return [TextContent(type="text", text=f"Error editing app: {e!s}")]
    return summarize(result)


@mcp.tool()  # type: ignore[misc]
async def fix_app(files: list[dict[str, Any]], sandbox_id: str | None = None) -> list[TextContent]:
    """
    Repair application files with the Benchify fixer and preview the result.
    """
    try:
        result = await get_pipeline().run_fixer(_to_files(files), existing_sandbox_id=sandbox_id)
    except Exception as e:
        logger.error(f"fix_app failed: {e}")
        return [TextContent(type="text", text=f"Error fixing app: {e!s}")]
    return summarize(result)


def main() -> None:
    """Entry point for the MCP server."""
    mcp.run()


if __name__ == "__main__":  # pragma: no cover
    main()
