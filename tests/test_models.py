# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

import pytest
from pydantic import ValidationError

from coreason_cookbook.models import BuildError, File, PipelineFailure, ProgressStep, SandboxHandle, SandboxResult


def test_file_accepts_content_or_contents() -> None:
    assert File(path="a", content="x") == File.model_validate({"path": "a", "contents": "x"})
    assert File.model_validate({"path": "a", "content": "x"}).model_dump() == {"path": "a", "content": "x"}


def test_file_requires_content() -> None:
    with pytest.raises(ValidationError):
        File.model_validate({"path": "a"})


def test_build_error_kind_validated() -> None:
    error = BuildError(kind="type-error", message="m", file="src/App.tsx", line=1, column=2)
    assert error.file == "src/App.tsx"

    with pytest.raises(ValidationError):
        BuildError(kind="typescript", message="m")  # type: ignore[arg-type]


def test_progress_step_defaults() -> None:
    step = ProgressStep(id="one", label="One", description="first")
    assert step.status == "pending"
    assert step.started_at is None
    assert step.error is None


def test_sandbox_result_defaults() -> None:
    result = SandboxResult(handle=SandboxHandle(id="sbx"))
    assert result.files == []
    assert result.build_errors == []
    assert result.has_errors is False
    assert result.handle.preview_url == ""


def test_pipeline_failure_optional_session() -> None:
    failure = PipelineFailure(error="Failed to generate app", message="boom")
    assert failure.session_id is None
