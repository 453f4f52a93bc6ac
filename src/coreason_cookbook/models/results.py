# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

"""Result records exchanged between the pipeline, its collaborators and callers."""

from pydantic import BaseModel, Field

from coreason_cookbook.models.errors import BuildError
from coreason_cookbook.models.files import File


class CommandResult(BaseModel):
    """Captured output of a command run inside a sandbox.

    Attributes:
        stdout: Standard output of the command.
        stderr: Standard error of the command.
        exit_code: Process exit code (0 for success).
    """

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0


class SandboxHandle(BaseModel):
    """Opaque reference to a remote sandbox."""

    id: str
    preview_url: str = ""


class SandboxResult(BaseModel):
    """Outcome of provisioning or updating a sandbox.

    Attributes:
        handle: The sandbox that now runs the application.
        files: Authoritative file set read back from the sandbox.
        build_errors: Code and environment errors found along the way.
        has_errors: Whether ``build_errors`` is non-empty.
        template: Template the sandbox was created from.
    """

    handle: SandboxHandle
    files: list[File] = Field(default_factory=list)
    build_errors: list[BuildError] = Field(default_factory=list)
    has_errors: bool = False
    template: str = ""


class FixerResult(BaseModel):
    """Answer of the code fixer."""

    success: bool
    suggested_files: list[File] | None = None


class PipelineResult(BaseModel):
    """Successful pipeline run."""

    original_files: list[File]
    repaired_files: list[File]
    build_output: str
    preview_url: str
    sandbox_id: str
    build_errors: list[BuildError] = Field(default_factory=list)
    has_errors: bool = False
    session_id: str
    edit_instruction: str | None = None


class PipelineFailure(BaseModel):
    """Pipeline run that hit a fatal error."""

    error: str
    message: str
    session_id: str | None = None
