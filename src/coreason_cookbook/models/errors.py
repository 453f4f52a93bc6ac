# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_cookbook

from typing import Literal

from pydantic import BaseModel, Field

BuildErrorKind = Literal["type-error", "build-error", "runtime-error"]


class BuildError(BaseModel):
    """A code or environment problem surfaced to the user.

    Instances are produced by ``coreason_cookbook.error_detection`` only.

    Attributes:
        kind: ``type-error`` for TypeScript diagnostics, ``build-error`` for
            bundler/syntax/install failures, ``runtime-error`` for a preview
            that never became healthy.
        message: Human readable description.
        file: Source file the error points to, when known.
        line: 1-based line number, when known.
        column: 1-based column number, when known.
    """

    kind: BuildErrorKind
    message: str
    file: str | None = None
    line: int | None = None
    column: int | None = None


class ErrorDetectionResult(BaseModel):
    """Outcome of scanning captured process output."""

    errors: list[BuildError] = Field(default_factory=list)
    has_errors: bool = False
    is_infrastructure_only: bool = False
